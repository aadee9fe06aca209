"""Console logging for the crowdfund relay.

``log`` writes through the ``crowdfund`` logger, which is also the parent of
every ``logging.getLogger(__name__)`` logger in the package, so
:func:`configure_console_log` sets the level for both.
"""

from __future__ import annotations

import logging
from typing import Any

from .constants import LOG_DATE_FORMAT


class SimpleLogger:
    """Very small wrapper around :mod:`logging` used across the project."""

    def __init__(self) -> None:
        self._logger = logging.getLogger("crowdfund")
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                "%(asctime)s - %(levelname)s - %(message)s",
                datefmt=LOG_DATE_FORMAT,
            )
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)
        self.configure()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def configure(self, level: int = logging.INFO) -> None:
        self._logger.setLevel(level)

    # ------------------------------------------------------------------
    # Basic logging methods
    # ------------------------------------------------------------------
    def debug(
        self,
        msg: str,
        source: str | None = None,
        payload: Any | None = None,
        **_: Any,
    ) -> None:
        self._logger.debug(self._format(msg, source, payload))

    def info(
        self,
        msg: str,
        source: str | None = None,
        payload: Any | None = None,
        **_: Any,
    ) -> None:
        self._logger.info(self._format(msg, source, payload))

    def warning(
        self,
        msg: str,
        source: str | None = None,
        payload: Any | None = None,
        **_: Any,
    ) -> None:
        self._logger.warning(self._format(msg, source, payload))

    def error(
        self,
        msg: str,
        source: str | None = None,
        payload: Any | None = None,
        **_: Any,
    ) -> None:
        self._logger.error(self._format(msg, source, payload))

    def success(
        self,
        msg: str,
        source: str | None = None,
        payload: Any | None = None,
        **_: Any,
    ) -> None:
        self._logger.info(self._format(msg, source, payload))

    def banner(
        self,
        msg: str,
        source: str | None = None,
        payload: Any | None = None,
        **_: Any,
    ) -> None:
        self._logger.info(self._format(f"==== {msg} ====", source, payload))

    # ------------------------------------------------------------------
    # Chain helpers
    # ------------------------------------------------------------------
    def print_explorer_link(
        self, explorer_url: str, kind: str, value: str, source: str | None = None
    ) -> str:
        """Log and return the block-explorer URL for an ``address`` or ``tx``."""
        url = f"{explorer_url.rstrip('/')}/{kind}/{value}"
        self.info(f"🔗 Explorer: {url}", source=source)
        return url

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _format(self, msg: str, source: str | None, payload: Any | None = None) -> str:
        base = f"[{source}] {msg}" if source else msg
        if payload is not None:
            base = f"{base} {payload}"
        return base


# Public API ---------------------------------------------------------------
log = SimpleLogger()


def configure_console_log(debug: bool = False) -> None:
    """Configure the console logger."""
    level = logging.DEBUG if debug else logging.INFO
    log.configure(level)


__all__ = ["log", "configure_console_log"]
