"""Command-line entry point: banner, optional startup script, interactive loop.

Run:
    fsm-designer [SCRIPT]
    python -m fsm_designer [SCRIPT]

SCRIPT is loaded non-interactively (a script or a compiled ``.fs`` file)
before the interactive prompt starts. Set ``FSM_DESIGNER_LOG_LEVEL`` to
e.g. ``DEBUG`` to trace dispatch on stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime

from fsm_designer import __version__
from fsm_designer.config import InterpreterConfig
from fsm_designer.interpreter import Interpreter
from fsm_designer.types import FSMError

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="fsm-designer",
        description="Define and run deterministic finite state machines",
    )
    p.add_argument("script", nargs="?", default=None,
                   help="Command script or compiled FSM to load before the prompt")
    return p.parse_args(argv)


def banner(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"FSM DESIGNER {__version__} {now:%B} {now.day}, {now:%Y, %H:%M}"


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = InterpreterConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    print(banner())
    interpreter = Interpreter(config=config)
    try:
        if args.script:
            print(f"Loading commands from file: {args.script}")
            result = interpreter.load(args.script)
            if result:
                print(result)
        if interpreter.running:
            interpreter.run(sys.stdin, interactive=True)
    except FSMError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("failed reading input: %s", exc)
        print(f"Error: failed reading input: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print()
        return 130
    finally:
        interpreter.close()
    return 0
