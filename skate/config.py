"""
Presentation configuration.

A presentation is described by a ``skate.json`` project file. The file is
validated with pydantic and then merged with environment variables and
command-line options into an immutable PresentationSettings, which is all the
server needs to run.

Precedence, highest first: command-line option, environment variable
(``SKATE_CONFIG``, ``SKATE_PORT``, ``SKATE_PASSWORD``, ``SKATE_CONTROL``),
project file, built-in default.
"""

import dataclasses
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

_log = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "skate.json"
DEFAULT_PORT = 3000
DEFAULT_BACKGROUND = "#111122"

ENV_CONFIG = "SKATE_CONFIG"
ENV_PORT = "SKATE_PORT"
ENV_PASSWORD = "SKATE_PASSWORD"
ENV_CONTROL = "SKATE_CONTROL"

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when the presentation cannot be configured."""


class Dimensions(BaseModel):
    width: int = Field(ge=1, le=65535)
    height: int = Field(ge=1, le=65535)


class PresentationConfig(BaseModel):
    """Contents of a ``skate.json`` project file."""

    name: str
    password: str | None = None
    control: bool | None = None
    slides: list[str] = Field(min_length=1)
    slide_ratio: Dimensions
    background: str | None = DEFAULT_BACKGROUND

    def to_json(self) -> str:
        """Serialize for writing back to disk, leaving out unset options."""
        return self.model_dump_json(indent=2, exclude_none=True)


@dataclasses.dataclass(frozen=True)
class PresentationSettings:
    """Resolved, read-only settings the server is built from."""

    name: str
    slides: tuple[str, ...]
    slide_ratio: tuple[int, int] = (16, 9)
    password: str = ""
    control: bool = False
    background: str = DEFAULT_BACKGROUND
    root: Path = dataclasses.field(default_factory=Path.cwd)
    port: int = DEFAULT_PORT

    @property
    def slide_count(self) -> int:
        return len(self.slides)

    def slide_path(self, page: int) -> Path:
        """Path of the slide shown for ``page``, wrapping past the last slide."""
        return self.root / self.slides[page % self.slide_count]


def load_config(path: str | os.PathLike[str]) -> PresentationConfig:
    """
    Read and validate a project file.

    Raises:
        ConfigError: If the file can't be read or doesn't describe a presentation.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {path} ({e.strerror})") from e

    try:
        return PresentationConfig.model_validate_json(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}:\n{e}") from e


def _parse_port(value: str | int) -> int:
    try:
        port = int(value)
    except ValueError as e:
        raise ConfigError(f"Invalid port: {value!r}") from e
    if not 0 < port < 65536:
        raise ConfigError(f"Port out of range: {port}")
    return port


def load_settings(
    config_path: str | None = None,
    port: int | None = None,
    password: str | None = None,
    control: bool = False,
    environ: Mapping[str, str] | None = None,
    root: Path | None = None,
) -> PresentationSettings:
    """
    Build PresentationSettings from the project file, environment and options.

    Args:
        config_path: Project file from the command line, if any.
        port: Port from the command line, if any.
        password: Password from the command line, if any.
        control: True when client slide control was enabled on the command line.
        environ: Environment to read ``SKATE_*`` variables from. Defaults to os.environ.
        root: Directory slide paths are relative to. Defaults to the working directory.

    Returns:
        PresentationSettings: The merged settings.

    Raises:
        ConfigError: If the project file or any override is invalid.
    """
    environ = os.environ if environ is None else environ
    root = Path.cwd() if root is None else root

    path = config_path or environ.get(ENV_CONFIG) or str(root / DEFAULT_CONFIG_FILE)
    _log.debug(f"Loading presentation from {path}")
    config = load_config(path)

    if password is None:
        password = environ.get(ENV_PASSWORD, config.password) or ""
    if not control:
        env_control = environ.get(ENV_CONTROL)
        if env_control is not None:
            control = env_control.strip().lower() in _TRUTHY
        else:
            control = bool(config.control)
    if port is None:
        port = _parse_port(environ.get(ENV_PORT, DEFAULT_PORT))
    else:
        port = _parse_port(port)

    settings = PresentationSettings(
        name=config.name,
        slides=tuple(config.slides),
        slide_ratio=(config.slide_ratio.width, config.slide_ratio.height),
        password=password,
        control=control,
        background=config.background or DEFAULT_BACKGROUND,
        root=root,
        port=port,
    )
    _log.info(
        f"Loaded presentation {settings.name!r} with {settings.slide_count} slide(s), "
        f"control {'enabled' if settings.control else 'disabled'}"
    )
    return settings
