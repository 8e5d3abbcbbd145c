"""Interpreter configuration dataclass."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace

LOG_LEVEL_ENV = "FSM_DESIGNER_LOG_LEVEL"


@dataclass(frozen=True)
class InterpreterConfig:
    """Immutable settings for an interpreter session.

    Attributes:
        prompt: Printed before each interactive read.
        compiled_suffix: LOAD treats files ending in this (case-insensitive)
            as compiled FSMs; anything else is run as a script.
        encoding: Text encoding for scripts, PRINT dumps and session logs.
        echo_scripts: Echo each statement read from a script before its
            response.
        log_level: Level name for the diagnostic ``logging`` output.
    """

    prompt: str = "? "
    compiled_suffix: str = ".fs"
    encoding: str = "utf-8"
    echo_scripts: bool = True
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> InterpreterConfig:
        """Defaults, with the log level overridable via ``FSM_DESIGNER_LOG_LEVEL``.

        Unknown level names are ignored.
        """
        config = cls()
        level = os.getenv(LOG_LEVEL_ENV, "").strip().upper()
        if level and isinstance(logging.getLevelName(level), int):
            config = replace(config, log_level=level)
        return config
