"""Persistence - compiled (binary) and script (text) forms of an FSM."""
from __future__ import annotations

import io
import logging
import os
import pickle
from typing import Any

from fsm_designer.machine import FSM
from fsm_designer.types import FileOperationError, InvalidFileFormatError

logger = logging.getLogger(__name__)

_FORMAT_TAG = "fsm-designer"
_COMPILED_VERSION = 1


class _SnapshotUnpickler(pickle.Unpickler):
    """Unpickler limited to builtin containers and scalars.

    Compiled files only ever hold a snapshot dict, so any attempt to
    resolve a global means the file was not written by :func:`compile_fsm`.
    """

    def find_class(self, module: str, name: str) -> Any:
        raise pickle.UnpicklingError(f"global {module}.{name} is not allowed")


def _check_target(path: str) -> None:
    if not path or not path.strip():
        raise FileOperationError("File name cannot be empty")
    parent = os.path.dirname(path)
    if parent and not os.path.isdir(parent):
        raise FileOperationError(f"Directory path does not exist: {parent}")


def compile_fsm(fsm: FSM, path: str) -> None:
    """Write *fsm* to *path* in the compiled binary form."""
    _check_target(path)
    payload = {
        "format": _FORMAT_TAG,
        "version": _COMPILED_VERSION,
        "fsm": fsm.snapshot(),
    }
    try:
        with open(path, "wb") as f:
            pickle.dump(payload, f, protocol=pickle.HIGHEST_PROTOCOL)
    except OSError as exc:
        raise FileOperationError(
            f"Error compiling FSM to file '{path}': {exc.strerror or exc}"
        ) from exc
    logger.info("compiled FSM to %s", path)


def load_compiled(path: str) -> FSM:
    """Read a compiled file and rebuild the FSM it holds."""
    _check_target(path)
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as exc:
        raise FileOperationError(
            f"Error reading FSM from file '{path}': {exc.strerror or exc}"
        ) from exc

    try:
        payload = _SnapshotUnpickler(io.BytesIO(raw)).load()
    except (
        pickle.UnpicklingError,
        EOFError,
        AttributeError,
        ImportError,
        IndexError,
        KeyError,
        OverflowError,
        TypeError,
        ValueError,
    ) as exc:
        raise InvalidFileFormatError(
            f"File '{path}' does not contain a valid FSM"
        ) from exc

    if not isinstance(payload, dict) or payload.get("format") != _FORMAT_TAG:
        raise InvalidFileFormatError(f"File '{path}' does not contain a valid FSM")
    version = payload.get("version")
    if version != _COMPILED_VERSION:
        raise InvalidFileFormatError(
            f"Incompatible FSM version {version!r} in file '{path}', "
            f"expected {_COMPILED_VERSION}"
        )
    data = payload.get("fsm")
    if not isinstance(data, dict):
        raise InvalidFileFormatError(f"File '{path}' does not contain a valid FSM")
    fsm = FSM.from_snapshot(data)
    logger.info("loaded compiled FSM from %s", path)
    return fsm


def format_script(fsm: FSM) -> str:
    """Render *fsm* as command-language statements that rebuild it.

    Empty sections are left out, since a bare keyword would be a query.
    """
    lines: list[str] = []
    if fsm.symbols:
        lines.append("SYMBOLS " + " ".join(fsm.symbols) + ";")
    if fsm.states:
        lines.append("STATES " + " ".join(fsm.states) + ";")
    if fsm.initial_state is not None:
        lines.append(f"INITIAL-STATE {fsm.initial_state};")
    if fsm.final_states:
        lines.append("FINAL-STATES " + " ".join(fsm.final_states) + ";")
    transitions = fsm.transitions
    if transitions:
        triples = ", ".join(
            f"{symbol} {from_state} {to_state}"
            for (symbol, from_state), to_state in transitions.items()
        )
        lines.append(f"TRANSITIONS {triples};")
    return "\n".join(lines)


def write_script(fsm: FSM, path: str, encoding: str = "utf-8") -> None:
    _check_target(path)
    try:
        with open(path, "w", encoding=encoding) as f:
            text = format_script(fsm)
            f.write(text + "\n" if text else "")
    except OSError as exc:
        raise FileOperationError(
            f"Error writing the file '{path}': {exc.strerror or exc}"
        ) from exc
    logger.info("wrote FSM script to %s", path)


def read_script(path: str, encoding: str = "utf-8") -> list[str]:
    """Return the physical lines of a script file."""
    try:
        with open(path, encoding=encoding) as f:
            return f.read().splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else exc
        raise FileOperationError(f"Error reading file '{path}': {reason}") from exc
