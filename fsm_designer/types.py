"""Shared types and exceptions for the FSM designer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

Symbol = str
StateName = str
TransitionKey = tuple[Symbol, StateName]


@dataclass(frozen=True, slots=True)
class Diagnostic:
    level: str  # "warning" or "error"
    message: str

    def __str__(self) -> str:
        return f"{self.level.capitalize()}: {self.message}"


DiagnosticHook = Callable[[Diagnostic], None]


@dataclass(frozen=True)
class Execution:
    """Outcome of running an input string through the machine.

    ``trace`` always starts with the initial state and lists every state
    visited. ``halted`` is set when the run stopped before the input was
    exhausted (undeclared symbol or missing transition).
    """

    trace: tuple[StateName, ...]
    accepted: bool
    halted: bool = False

    @property
    def verdict(self) -> str:
        return "ACCEPT" if self.accepted else "REJECT"


class FSMError(Exception):
    """Base class for every error reported by the designer."""


class InvalidSymbolError(FSMError):
    """Raised for a symbol that is not a single alphanumeric character."""


class InvalidStateError(FSMError):
    """Raised for a state name that is empty or not alphanumeric."""


class InvalidTransitionError(FSMError):
    """Raised when a transition references an undeclared symbol or state."""


class InvalidCommandError(FSMError):
    """Raised for unknown keywords, wrong arity, or malformed arguments."""


class InvalidInputError(FSMError):
    """Raised when EXECUTE is given nothing to run."""


class FileOperationError(FSMError):
    """Raised when a file named in a command cannot be read or written."""


class InvalidFileFormatError(FSMError):
    """Raised when a compiled file is foreign, corrupt, or a different version."""
