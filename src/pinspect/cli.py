"""Command line entry point."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace

from textual.logging import TextualHandler

from .app import InspectStatus
from .config import PreferenceStore
from .host import PromptRejected, inspect_chat, inspect_prompt, toggle_inspection

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 2


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[TextualHandler()],
    )


def _read_prompt(file_path: str) -> str:
    # newline="": line endings pass through untouched
    if file_path:
        with open(file_path, encoding="utf-8", newline="") as fh:
            return fh.read()
    return sys.stdin.buffer.read().decode("utf-8")


def _write_result(file_path: str, text: str) -> None:
    with open(file_path, "w", encoding="utf-8", newline="") as fh:
        fh.write(text)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pinspect",
        description="Inspect and edit a prompt before it is sent",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default="",
        help="prompt file to inspect (default: stdin)",
    )
    parser.add_argument(
        "--chat",
        action="store_true",
        default=False,
        help="treat the prompt as a JSON array of chat messages",
    )
    parser.add_argument(
        "-o", "--output",
        default="",
        help="write the result here (default: back to FILE, or stdout)",
    )
    parser.add_argument(
        "--hook",
        action="store_true",
        default=False,
        help="only open the inspector when inspection is enabled",
    )
    parser.add_argument(
        "--toggle",
        action="store_true",
        default=False,
        help="toggle prompt inspection on/off and exit",
    )
    parser.add_argument(
        "--config",
        default="",
        help="preferences file (default: $PINSPECT_CONFIG or ~/.config/pinspect/prefs.json)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="debug logging",
    )
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    store = PreferenceStore(args.config or None)
    config = store.load()

    if args.toggle:
        config = toggle_inspection(config, store)
        state = "enabled" if config.enabled else "disabled"
        print(f"Prompt inspection is now {state}")
        return EXIT_OK

    try:
        prompt = _read_prompt(args.file)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"pinspect: {exc}", file=sys.stderr)
        return EXIT_ERROR

    if not args.hook:
        config = replace(config, enabled=True)

    if args.chat:
        try:
            messages = json.loads(prompt)
        except json.JSONDecodeError as exc:
            print(f"pinspect: invalid chat JSON: {exc.msg} (line {exc.lineno})", file=sys.stderr)
            return EXIT_ERROR
        if not isinstance(messages, list):
            print("pinspect: chat prompt must be a JSON array", file=sys.stderr)
            return EXIT_ERROR
        try:
            status = inspect_chat(messages, config, store)
        except PromptRejected as exc:
            print(f"pinspect: {exc}", file=sys.stderr)
            return EXIT_ERROR
        result = (
            prompt
            if messages == json.loads(prompt)
            else json.dumps(messages, indent=4, ensure_ascii=False)
        )
    else:
        outcome = inspect_prompt(prompt, config, store)
        status = outcome.status
        result = outcome.text

    if status is InspectStatus.CANCELLED:
        print("pinspect: generation cancelled", file=sys.stderr)
        return EXIT_CANCELLED

    try:
        if args.output:
            _write_result(args.output, result)
        elif args.file:
            if result != prompt:
                _write_result(args.file, result)
        else:
            sys.stdout.write(result)
    except OSError as exc:
        print(f"pinspect: {exc}", file=sys.stderr)
        return EXIT_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
