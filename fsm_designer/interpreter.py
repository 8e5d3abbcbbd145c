"""Interpreter - reads statements and dispatches them to the FSM."""
from __future__ import annotations

import logging
import os
import sys
from typing import Callable, Iterable, TextIO

from fsm_designer.config import InterpreterConfig
from fsm_designer.machine import FSM, is_valid_state, is_valid_symbol
from fsm_designer.persistence import (
    compile_fsm,
    load_compiled,
    read_script,
    write_script,
)
from fsm_designer.session_log import SessionLog
from fsm_designer.statements import (
    Statement,
    StatementReader,
    split_commands,
    tokenize,
    tokenize_transitions,
)
from fsm_designer.types import (
    Diagnostic,
    FSMError,
    InvalidCommandError,
    InvalidInputError,
    InvalidStateError,
    InvalidSymbolError,
    InvalidTransitionError,
)

logger = logging.getLogger(__name__)

Handler = Callable[[list[str]], "str | None"]


def _format_list(items: Iterable[str]) -> str:
    return "[" + ", ".join(items) + "]"


class Interpreter:
    """One interactive/batch session over a single FSM.

    Statements come from :meth:`run` (a text stream) or :meth:`run_script`
    (a file). Each is split into commands and routed to a handler by
    keyword. Handlers raise :class:`FSMError` subclasses; those are turned
    into one ``Error: ...`` line and the session carries on. Engine
    diagnostics raised while a command runs are printed ahead of its result.

    Scripts loaded with ``LOAD`` run through this same instance, so their
    declarations land in the caller's FSM.
    """

    def __init__(
        self,
        fsm: FSM | None = None,
        output: TextIO | None = None,
        config: InterpreterConfig | None = None,
        session_log: SessionLog | None = None,
    ) -> None:
        self._config = config if config is not None else InterpreterConfig()
        self._out = output if output is not None else sys.stdout
        self._log = session_log if session_log is not None else SessionLog(self._config.encoding)
        self._diagnostics: list[Diagnostic] = []
        self._running = True
        self._loading: list[str] = []
        self._handlers: dict[str, Handler] = {
            "SYMBOLS": self._symbols,
            "STATES": self._states,
            "INITIAL-STATE": self._initial_state,
            "FINAL-STATES": self._final_states,
            "TRANSITIONS": self._transitions,
            "PRINT": self._print,
            "COMPILE": self._compile,
            "LOAD": self._load,
            "EXECUTE": self._execute,
            "CLEAR": self._clear,
            "LOG": self._log_command,
            "EXIT": self._exit,
        }
        self._fsm: FSM = fsm if fsm is not None else FSM()
        self._fsm.on_diagnostic(self._collect)

    @property
    def fsm(self) -> FSM:
        return self._fsm

    @property
    def running(self) -> bool:
        return self._running

    @property
    def session_log(self) -> SessionLog:
        return self._log

    def bind(self, fsm: FSM) -> None:
        """Make *fsm* the session's machine, moving the diagnostic hook over."""
        self._fsm.off_diagnostic(self._collect)
        fsm.on_diagnostic(self._collect)
        self._fsm = fsm

    def close(self) -> None:
        if self._log.active:
            self._log.stop()

    def _collect(self, diagnostic: Diagnostic) -> None:
        self._diagnostics.append(diagnostic)

    def _write(self, text: str) -> None:
        print(text, file=self._out)

    # -- Statement acquisition --

    def run(self, stream: TextIO, interactive: bool = False) -> None:
        """Read statements from *stream* until EXIT or end of input.

        Errors reading *stream* itself propagate to the caller.
        """
        reader = StatementReader()
        prompt = self._config.prompt if interactive else None
        self._prompt(prompt)
        for line in stream:
            self._process(reader.feed(line), reader.line_number, script=False)
            if not self._running:
                return
            self._prompt(prompt)
        self._process(reader.finish(), reader.line_number, script=False)

    def _prompt(self, prompt: str | None) -> None:
        if prompt is not None:
            self._out.write(prompt)
            self._out.flush()

    def run_script(self, path: str) -> None:
        """Run every statement in the script at *path*, numbering its lines."""
        key = os.path.abspath(path)
        if key in self._loading:
            raise InvalidCommandError(f"Recursive LOAD of {path}")
        lines = read_script(path, self._config.encoding)
        logger.debug("running script %s (%d lines)", path, len(lines))
        self._loading.append(key)
        try:
            reader = StatementReader()
            for line in lines:
                self._process(reader.feed(line), reader.line_number, script=True)
                if not self._running:
                    return
            self._process(reader.finish(), reader.line_number, script=True)
        finally:
            self._loading.pop()

    def load(self, path: str) -> str | None:
        """Load a compiled FSM or run a script, depending on the file suffix."""
        if path.lower().endswith(self._config.compiled_suffix.lower()):
            self.bind(load_compiled(path))
            return f"Loaded FSM from {path}"
        self.run_script(path)
        return None

    def _process(
        self,
        items: list[Statement | Diagnostic],
        line_number: int,
        script: bool,
    ) -> None:
        for item in items:
            if not self._running:
                return
            if isinstance(item, Diagnostic):
                self._write(f"Line {line_number}: {item.message}")
            else:
                self.handle_statement(item, script=script)

    def handle_statement(self, statement: Statement, script: bool = False) -> None:
        """Split one candidate statement into commands and run each."""
        tokens = tokenize(statement.text)
        if script and self._config.echo_scripts:
            self._write(" ".join(tokens) + ";")
        line = statement.line if script else None
        for command in split_commands(tokens):
            self._run_command(command, line)
            if not self._running:
                return

    # -- Dispatch --

    def _run_command(self, tokens: list[str], line: int | None) -> None:
        keyword = tokens[0].upper()
        command_text = " ".join(tokens) + ";"
        collected: list[Diagnostic] = []
        outer, self._diagnostics = self._diagnostics, collected
        error: FSMError | None = None
        result: str | None = None
        try:
            result = self.dispatch(tokens)
        except FSMError as exc:
            logger.debug("command %s failed: %s", keyword, exc)
            error = exc
        finally:
            self._diagnostics = outer

        response = [str(d) for d in collected]
        if error is not None:
            response.append(f"Error: {error}")
        elif result:
            response.append(result)

        prefix = f"Line {line}: " if line is not None else ""
        for text in response:
            if prefix and (text.startswith("Error: ") or text.startswith("Warning: ")):
                text = prefix + text
            self._write(text)

        if keyword != "LOG" and self._log.active:
            try:
                self._log.record(command_text, "\n".join(response))
            except FSMError as exc:
                self._write(f"Error: {exc}")

    def dispatch(self, tokens: list[str]) -> str | None:
        """Run one tokenized command and return its textual result, if any."""
        if not tokens:
            raise InvalidCommandError("No command provided")
        keyword = tokens[0].upper()
        handler = self._handlers.get(keyword)
        if handler is None:
            raise InvalidCommandError(f"Invalid command: {tokens[0]}")
        logger.debug("dispatch %s %s", keyword, tokens[1:])
        return handler(tokens)

    # -- Handlers --

    def _symbols(self, tokens: list[str]) -> str | None:
        args = tokens[1:]
        if not args:
            return _format_list(self.fsm.symbols)
        _declare_each(args, is_valid_symbol, self.fsm.add_symbol, InvalidSymbolError, "symbol")
        return None

    def _states(self, tokens: list[str]) -> str | None:
        args = tokens[1:]
        if not args:
            return _format_list(self.fsm.states)
        _declare_each(args, is_valid_state, self.fsm.add_state, InvalidStateError, "state")
        return None

    def _initial_state(self, tokens: list[str]) -> str | None:
        args = tokens[1:]
        if len(args) != 1:
            raise InvalidCommandError("INITIAL-STATE requires exactly one state")
        if not is_valid_state(args[0]):
            raise InvalidStateError(f"Invalid state: {args[0]}")
        self.fsm.set_initial_state(args[0])
        return None

    def _final_states(self, tokens: list[str]) -> str | None:
        args = tokens[1:]
        if not args:
            return _format_list(self.fsm.final_states)
        _declare_each(args, is_valid_state, self.fsm.add_final_state, InvalidStateError, "state")
        return None

    def _transitions(self, tokens: list[str]) -> str | None:
        _, triples = tokenize_transitions(" ".join(tokens))
        if not triples:
            return _format_list(
                f"{symbol} {from_state} {to_state}"
                for (symbol, from_state), to_state in self.fsm.transitions.items()
            )
        for fields in triples:
            if len(fields) != 3:
                raise InvalidCommandError(
                    f"Invalid transition format: {' '.join(fields)}"
                )
        for symbol, from_state, to_state in triples:
            if not self.fsm.add_transition(symbol, from_state, to_state):
                raise InvalidTransitionError(
                    f"Transition rejected: {symbol} {from_state} {to_state}"
                )
        return None

    def _print(self, tokens: list[str]) -> str | None:
        args = tokens[1:]
        if len(args) > 1:
            raise InvalidCommandError("PRINT takes at most one filename")
        if args:
            write_script(self.fsm, args[0], self._config.encoding)
            return f"FSM written to {args[0]}"
        fsm = self.fsm
        transitions = [
            f"{symbol} {from_state} {to_state}"
            for (symbol, from_state), to_state in fsm.transitions.items()
        ]
        return "\n".join([
            f"SYMBOLS: {_format_list(fsm.symbols)}",
            f"STATES: {_format_list(fsm.states)}",
            f"INITIAL STATE: {fsm.initial_state or '-'}",
            f"CURRENT STATE: {fsm.current_state or '-'}",
            f"FINAL STATES: {_format_list(fsm.final_states)}",
            f"TRANSITIONS: {_format_list(transitions)}",
        ])

    def _compile(self, tokens: list[str]) -> str | None:
        args = tokens[1:]
        if len(args) != 1:
            raise InvalidCommandError("COMPILE requires one filename")
        compile_fsm(self.fsm, args[0])
        return "Compile successful"

    def _load(self, tokens: list[str]) -> str | None:
        args = tokens[1:]
        if len(args) != 1:
            raise InvalidCommandError("LOAD requires one filename")
        return self.load(args[0])

    def _execute(self, tokens: list[str]) -> str | None:
        args = tokens[1:]
        if not args:
            raise InvalidInputError("Input cannot be empty")
        if len(args) != 1:
            raise InvalidCommandError("EXECUTE requires one input string")
        execution = self.fsm.execute(args[0])
        if not execution.trace:
            return None
        return " ".join(execution.trace) + " " + execution.verdict

    def _clear(self, tokens: list[str]) -> str | None:
        if len(tokens) != 1:
            raise InvalidCommandError("CLEAR takes no arguments")
        self.fsm.clear()
        return "CLEARED"

    def _log_command(self, tokens: list[str]) -> str | None:
        args = tokens[1:]
        if len(args) > 1:
            raise InvalidCommandError("LOG takes at most one filename")
        if args:
            return self._log.start(args[0])
        return self._log.stop()

    def _exit(self, tokens: list[str]) -> str | None:
        if len(tokens) != 1:
            raise InvalidCommandError("EXIT takes no arguments")
        if self._log.active:
            self._log.stop()
        self._running = False
        return "TERMINATED BY USER"


def _declare_each(
    names: list[str],
    is_valid: Callable[[str], bool],
    declare: Callable[[str], bool],
    error: type[FSMError],
    kind: str,
) -> None:
    """Declare every well-formed name, then report all malformed ones at once."""
    invalid = []
    for name in names:
        if is_valid(name):
            declare(name)
        else:
            invalid.append(f"Invalid {kind}: {name}")
    if invalid:
        raise error("; ".join(invalid))
