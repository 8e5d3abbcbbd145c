"""fsm-designer - Define, run and persist deterministic finite state machines."""
from __future__ import annotations

from fsm_designer.config import InterpreterConfig
from fsm_designer.interpreter import Interpreter
from fsm_designer.machine import FSM
from fsm_designer.session_log import SessionLog
from fsm_designer.statements import KEYWORDS, Statement, StatementReader
from fsm_designer.types import (
    Diagnostic,
    Execution,
    FileOperationError,
    FSMError,
    InvalidCommandError,
    InvalidFileFormatError,
    InvalidInputError,
    InvalidStateError,
    InvalidSymbolError,
    InvalidTransitionError,
)

__version__ = "1.0.0"

__all__ = [
    "FSM",
    "Interpreter",
    "InterpreterConfig",
    "SessionLog",
    "Statement",
    "StatementReader",
    "KEYWORDS",
    "Diagnostic",
    "Execution",
    "FSMError",
    "InvalidSymbolError",
    "InvalidStateError",
    "InvalidTransitionError",
    "InvalidCommandError",
    "InvalidInputError",
    "FileOperationError",
    "InvalidFileFormatError",
]
