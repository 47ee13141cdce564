"""Interactive creation of a new ``skate.json`` project file."""

import logging
from pathlib import Path

from skate.config import DEFAULT_BACKGROUND, DEFAULT_CONFIG_FILE, ConfigError, Dimensions, PresentationConfig

_log = logging.getLogger(__name__)

SLIDE_RATIOS: dict[str, tuple[int, int]] = {
    "16:9": (16, 9),
    "4:3": (4, 3),
    "1:1": (1, 1),
}


def _ask(question: str, default: str = "", placeholder: str = "") -> str:
    hint = f" [{default}]" if default else f" ({placeholder})" if placeholder else ""
    answer = input(f"{question}{hint} ").strip()
    return answer or default


def _choose(question: str, options: list[str]) -> str:
    while True:
        answer = input(f"{question} [{'/'.join(options)}] ").strip().lower()
        for option in options:
            if option.lower() == answer:
                return option
        print(f"Please answer one of: {', '.join(options)}")


def prompt_config(default_name: str) -> PresentationConfig:
    """
    Ask for the details of a new presentation on stdin.

    Raises:
        ConfigError: If the name is empty or no slides were given.
    """
    name = _ask("Project name:", default=default_name)
    if not name:
        raise ConfigError("Project name cannot be empty.")

    password = _ask("Password:", placeholder="Leave empty for no remote slide control.")
    control = _choose("Allow client slide control:", ["Yes", "No"]) == "Yes"
    background = _ask("Background:", default=DEFAULT_BACKGROUND)

    slides: list[str] = []
    while slide := _ask("Slide:", placeholder="Leave empty to finish list."):
        slides.append(slide)
    if not slides:
        raise ConfigError("At least one slide is required.")

    width, height = SLIDE_RATIOS[_choose("Slide ratio:", list(SLIDE_RATIOS))]

    return PresentationConfig(
        name=name,
        password=password or None,
        control=control or None,
        slides=slides,
        slide_ratio=Dimensions(width=width, height=height),
        background=background,
    )


def init_project(directory: Path) -> Path:
    """Prompt for a presentation and write its project file into ``directory``."""
    config = prompt_config(default_name=directory.name or "skate")
    config_path = directory / DEFAULT_CONFIG_FILE
    config_path.write_text(config.to_json(), encoding="utf-8")
    _log.debug(f"Wrote {config_path}")
    return config_path
