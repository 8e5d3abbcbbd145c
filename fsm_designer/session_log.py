"""SessionLog - mirrors command/response pairs to a text file."""
from __future__ import annotations

import logging
from typing import TextIO

from fsm_designer.types import FileOperationError

logger = logging.getLogger(__name__)


class SessionLog:
    """Handle for the session's single active log file.

    Each recorded exchange is two lines: ``> <statement>`` followed by the
    response text. Starting a new log closes the previous one.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding
        self._file: TextIO | None = None
        self._path: str | None = None

    @property
    def active(self) -> bool:
        return self._file is not None

    @property
    def path(self) -> str | None:
        return self._path

    def start(self, path: str) -> str:
        if self._file is not None:
            self.stop()
        try:
            self._file = open(path, "w", encoding=self._encoding)
        except OSError as exc:
            raise FileOperationError(
                f"Could not start logging to {path}: {exc.strerror or exc}"
            ) from exc
        self._path = path
        logger.info("session log started: %s", path)
        return f"Started logging to {path}"

    def stop(self) -> str:
        if self._file is None:
            return "LOGGING was not enabled"
        f, path = self._file, self._path
        self._file = None
        self._path = None
        try:
            f.close()
        except OSError as exc:
            raise FileOperationError(f"Error while closing log file: {exc}") from exc
        logger.info("session log stopped: %s", path)
        return "STOPPED LOGGING"

    def record(self, command: str, response: str) -> None:
        """Append one exchange. No-op while logging is inactive."""
        if self._file is None:
            return
        try:
            self._file.write(f"> {command}\n{response}\n")
            self._file.flush()
        except OSError as exc:
            raise FileOperationError(f"Error writing to log file: {exc}") from exc
