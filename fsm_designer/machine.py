"""FSM - deterministic finite state machine definition and execution."""

from __future__ import annotations

import re
from typing import Any

from fsm_designer.types import (
    Diagnostic,
    DiagnosticHook,
    Execution,
    InvalidFileFormatError,
    StateName,
    Symbol,
    TransitionKey,
)

_SYMBOL_RE = re.compile(r"[A-Za-z0-9]")
_STATE_RE = re.compile(r"[A-Za-z0-9]+")


def is_valid_symbol(text: str | None) -> bool:
    return text is not None and _SYMBOL_RE.fullmatch(text) is not None


def is_valid_state(text: str | None) -> bool:
    return text is not None and _STATE_RE.fullmatch(text) is not None


class FSM:
    """Deterministic FSM built up incrementally from declarations.

    Symbols and states are stored uppercased. Mutators never raise on bad
    input: they return ``False`` and report through diagnostic hooks
    registered with :meth:`on_diagnostic`.

    States referenced by :meth:`set_initial_state`, :meth:`set_current_state`
    and :meth:`add_final_state` are declared on the fly with a warning;
    :meth:`add_transition` instead rejects anything undeclared.
    """

    def __init__(self) -> None:
        # dicts double as insertion-ordered sets
        self._symbols: dict[Symbol, None] = {}
        self._states: dict[StateName, None] = {}
        self._final_states: dict[StateName, None] = {}
        self._transitions: dict[TransitionKey, StateName] = {}
        self._initial_state: StateName | None = None
        self._current_state: StateName | None = None
        self._hooks: list[DiagnosticHook] = []

    # -- Diagnostics --

    def on_diagnostic(self, callback: DiagnosticHook) -> None:
        self._hooks.append(callback)

    def off_diagnostic(self, callback: DiagnosticHook) -> None:
        try:
            self._hooks.remove(callback)
        except ValueError:
            pass

    def _warn(self, message: str) -> None:
        self._emit(Diagnostic("warning", message))

    def _error(self, message: str) -> None:
        self._emit(Diagnostic("error", message))

    def _emit(self, diagnostic: Diagnostic) -> None:
        for cb in list(self._hooks):
            cb(diagnostic)

    # -- Queries --

    @property
    def symbols(self) -> list[Symbol]:
        return list(self._symbols)

    @property
    def states(self) -> list[StateName]:
        return list(self._states)

    @property
    def final_states(self) -> list[StateName]:
        return list(self._final_states)

    @property
    def transitions(self) -> dict[TransitionKey, StateName]:
        """Copy of the ``(symbol, from_state) -> to_state`` mapping."""
        return dict(self._transitions)

    @property
    def initial_state(self) -> StateName | None:
        return self._initial_state

    @property
    def current_state(self) -> StateName | None:
        return self._current_state

    def is_accepting(self, state: str) -> bool:
        return state.upper() in self._final_states

    # -- Declarations --

    def add_symbol(self, symbol: str) -> bool:
        if not is_valid_symbol(symbol):
            self._error(f"invalid symbol {symbol!r}")
            return False
        symbol = symbol.upper()
        if symbol in self._symbols:
            self._warn(f"symbol {symbol} already declared")
            return False
        self._symbols[symbol] = None
        return True

    def add_state(self, state: str) -> bool:
        if not is_valid_state(state):
            self._error(f"invalid state {state!r}")
            return False
        state = state.upper()
        if state in self._states:
            self._warn(f"state {state} already declared")
            return False
        self._states[state] = None
        if self._initial_state is None:
            self._initial_state = state
            self._current_state = state
        return True

    def _ensure_state(self, state: str) -> StateName | None:
        """Normalize *state*, declaring it if needed. None if the name is invalid."""
        if not is_valid_state(state):
            self._error(f"invalid state {state!r}")
            return None
        state = state.upper()
        if state not in self._states:
            self._warn(f"{state} was not previously declared as a state")
            self._states[state] = None
            if self._initial_state is None:
                self._initial_state = state
                self._current_state = state
        return state

    def set_initial_state(self, state: str) -> bool:
        name = self._ensure_state(state)
        if name is None:
            return False
        self._initial_state = name
        self._current_state = name
        return True

    def set_current_state(self, state: str) -> bool:
        name = self._ensure_state(state)
        if name is None:
            return False
        self._current_state = name
        return True

    def add_final_state(self, state: str) -> bool:
        name = self._ensure_state(state)
        if name is None:
            return False
        if name in self._final_states:
            self._warn(f"{name} was already a final state")
            return False
        self._final_states[name] = None
        return True

    def add_transition(self, symbol: str, from_state: str, to_state: str) -> bool:
        symbol = symbol.upper()
        from_state = from_state.upper()
        to_state = to_state.upper()

        if symbol not in self._symbols:
            self._error(f"invalid symbol {symbol}")
            return False
        for state in (from_state, to_state):
            if state not in self._states:
                self._error(f"invalid state {state}")
                return False

        key = (symbol, from_state)
        previous = self._transitions.get(key)
        if previous is not None:
            self._warn(
                f"transition <{symbol},{from_state}> overridden ({previous} -> {to_state})"
            )
        self._transitions[key] = to_state
        return True

    # -- Execution --

    def reset(self) -> bool:
        """Move the current state back to the initial state."""
        if self._initial_state is None:
            return False
        self._current_state = self._initial_state
        return True

    def step(self, symbol: str) -> bool:
        """Advance one symbol from the current state. False if no transition."""
        if self._current_state is None:
            return False
        target = self._transitions.get((symbol.upper(), self._current_state))
        if target is None:
            return False
        self._current_state = target
        return True

    def execute(self, text: str) -> Execution:
        """Run *text* from the initial state, one character per symbol.

        Leaves ``current_state`` on the last visited state.
        """
        if not self.reset():
            self._error("FSM is not initialized: no initial state")
            return Execution(trace=(), accepted=False, halted=True)

        trace: list[StateName] = [self._current_state]
        for ch in text:
            symbol = ch.upper()
            if symbol not in self._symbols:
                self._error(f"invalid input symbol {symbol!r}")
                return Execution(trace=tuple(trace), accepted=False, halted=True)
            if not self.step(symbol):
                self._warn(
                    f"no transition for <{symbol},{self._current_state}>"
                )
                return Execution(trace=tuple(trace), accepted=False, halted=True)
            trace.append(self._current_state)

        return Execution(
            trace=tuple(trace),
            accepted=self._current_state in self._final_states,
        )

    def trace(self, text: str) -> list[StateName]:
        return list(self.execute(text).trace)

    def clear(self) -> None:
        self._symbols.clear()
        self._states.clear()
        self._final_states.clear()
        self._transitions.clear()
        self._initial_state = None
        self._current_state = None

    # -- Snapshot / restore --

    def snapshot(self) -> dict[str, Any]:
        return {
            "symbols": list(self._symbols),
            "states": list(self._states),
            "final_states": list(self._final_states),
            "initial_state": self._initial_state,
            "transitions": [
                [symbol, from_state, to_state]
                for (symbol, from_state), to_state in self._transitions.items()
            ],
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> FSM:
        """Rebuild a machine from :meth:`snapshot` output.

        Every entry goes back through the normal declaration path, so data
        that could not have been produced by a valid session is rejected.
        """
        fsm = cls()
        try:
            for symbol in data["symbols"]:
                if not fsm.add_symbol(symbol):
                    raise InvalidFileFormatError(f"Invalid symbol in compiled FSM: {symbol!r}")
            for state in data["states"]:
                if not fsm.add_state(state):
                    raise InvalidFileFormatError(f"Invalid state in compiled FSM: {state!r}")
            initial = data["initial_state"]
            if initial is not None:
                if initial not in fsm._states:
                    raise InvalidFileFormatError(
                        f"Initial state {initial!r} is not a declared state"
                    )
                fsm.set_initial_state(initial)
            for state in data["final_states"]:
                if state not in fsm._states or not fsm.add_final_state(state):
                    raise InvalidFileFormatError(f"Invalid final state in compiled FSM: {state!r}")
            for symbol, from_state, to_state in data["transitions"]:
                if not fsm.add_transition(symbol, from_state, to_state):
                    raise InvalidFileFormatError(
                        f"Invalid transition in compiled FSM: {symbol} {from_state} {to_state}"
                    )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise InvalidFileFormatError(f"Malformed compiled FSM data: {exc}") from exc
        return fsm
