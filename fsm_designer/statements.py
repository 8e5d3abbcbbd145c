"""Statement acquisition, splitting and tokenizing for the command language."""

from __future__ import annotations

from dataclasses import dataclass

from fsm_designer.types import Diagnostic

KEYWORDS = frozenset({
    "SYMBOLS",
    "STATES",
    "INITIAL-STATE",
    "FINAL-STATES",
    "TRANSITIONS",
    "PRINT",
    "COMPILE",
    "LOAD",
    "EXECUTE",
    "CLEAR",
    "LOG",
    "EXIT",
})


@dataclass(frozen=True)
class Statement:
    """One candidate statement, without its terminating semicolon.

    ``line`` is the physical line on which the statement ended.
    ``terminated`` is False only for text left over at end of input.
    """

    text: str
    line: int
    terminated: bool = True


class StatementReader:
    """Accumulates physical lines into semicolon-terminated statements.

    Lines are joined with a single space. Every semicolon closes the
    buffered text as a candidate statement; whatever follows it on the same
    line starts the next one. A non-blank line with no semicolon is flagged
    but kept, so wrapped statements still go through.
    """

    def __init__(self) -> None:
        self._buffer: list[str] = []
        self._line_number = 0

    @property
    def line_number(self) -> int:
        return self._line_number

    @property
    def pending(self) -> str:
        return " ".join(self._buffer).strip()

    def feed(self, line: str) -> list[Statement | Diagnostic]:
        """Consume one physical line. Returns completed statements in order."""
        self._line_number += 1
        line = line.rstrip("\r\n")
        if not line.strip():
            return []
        if ";" not in line:
            self._buffer.append(line)
            return [Diagnostic("error", "semicolon expected")]

        out: list[Statement | Diagnostic] = []
        *complete, rest = line.split(";")
        for piece in complete:
            self._buffer.append(piece)
            text = self.pending
            self._buffer.clear()
            if text:
                out.append(Statement(text, self._line_number))
        if rest.strip():
            self._buffer.append(rest)
        return out

    def finish(self) -> list[Statement | Diagnostic]:
        """Flush text left without a terminator at end of input."""
        text = self.pending
        self._buffer.clear()
        if not text:
            return []
        return [
            Diagnostic("error", f"semicolon missing at end of input: {text}"),
            Statement(text, self._line_number, terminated=False),
        ]


def tokenize(text: str) -> list[str]:
    return text.split()


def split_commands(tokens: list[str]) -> list[list[str]]:
    """Split a token list wherever a keyword appears past the first position.

    The token right after EXECUTE is always its input string, even when it
    spells a keyword.

    >>> split_commands(["STATES", "Q0", "EXECUTE", "01"])
    [['STATES', 'Q0'], ['EXECUTE', '01']]
    >>> split_commands(["EXECUTE", "exit"])
    [['EXECUTE', 'exit']]
    """
    commands: list[list[str]] = []
    for i, tok in enumerate(tokens):
        if i > 0 and len(commands[-1]) == 1 and commands[-1][0].upper() == "EXECUTE":
            commands[-1].append(tok)
        elif i == 0 or tok.upper() in KEYWORDS:
            commands.append([tok])
        else:
            commands[-1].append(tok)
    return commands


def tokenize_transitions(text: str) -> tuple[str, list[list[str]]]:
    """Tokenize a TRANSITIONS statement into its keyword and argument triples.

    The argument text is split on commas first, then each piece on
    whitespace. Empty pieces (e.g. from a trailing comma) are dropped; the
    arity of each remaining piece is left to the caller.

    >>> tokenize_transitions("TRANSITIONS 0 Q0 Q1, 1 Q1 Q0")
    ('TRANSITIONS', [['0', 'Q0', 'Q1'], ['1', 'Q1', 'Q0']])
    """
    parts = text.strip().split(None, 1)
    if not parts:
        return "", []
    keyword = parts[0]
    if len(parts) == 1:
        return keyword, []
    triples = [piece.split() for piece in parts[1].split(",")]
    return keyword, [fields for fields in triples if fields]
