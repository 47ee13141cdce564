"""Shared-secret check for slide control requests."""

import logging
import secrets

_log = logging.getLogger(__name__)


class ControlGate:
    """
    Authorizes control requests against the configured password.

    An unconfigured server has the empty string as its password, so it
    accepts an empty credential. The presentation's ``control`` flag is not
    consulted here; it only affects the viewer page.
    """

    def __init__(self, password: str = "") -> None:
        self._password = password.encode("utf-8", "surrogatepass")

    def authorize(self, candidate: str) -> bool:
        allowed = secrets.compare_digest(candidate.encode("utf-8", "surrogatepass"), self._password)
        if not allowed:
            _log.warning("Rejected control request with invalid password")
        return allowed
