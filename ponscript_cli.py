import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from ponscript.pon_datatypes import PonError
from ponscript.pon_printer import Printer
from ponscript.pon_runtime import make_player
from ponscript.pon_script import Script


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run or inspect a ponscript file.")
    parser.add_argument("script", help="Script path, relative to --base-path")
    parser.add_argument("--base-path", default=None, help="Directory or URL scripts are loaded from (default: the script's directory)")
    parser.add_argument("--dump", action="store_true", help="Print the parsed tags instead of playing")
    parser.add_argument("--tick-ms", type=int, default=16, help="Clock advance per frame")
    parser.add_argument("--max-ticks", type=int, default=None, help="Stop after this many frames")
    parser.add_argument("--realtime", action="store_true", help="Sleep tick-ms between frames")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def dump_script(file_path: str) -> int:
    """Parse a script file and print its tags, one per line."""
    try:
        source = Path(file_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: cannot read {file_path}: {e}", file=sys.stderr)
        return 1
    try:
        script = Script.from_text(source, file_path)
    except PonError as e:
        print(str(e), file=sys.stderr)
        return 1
    print(Printer(show_lines=True).pformat_all(script.tags))
    return 0


async def play_script(args) -> int:
    """Play a script to the end, printing text lines as they complete."""
    if args.base_path is None:
        p = Path(args.script)
        base_path, name = str(p.parent.resolve()), p.name
    else:
        base_path, name = args.base_path, args.script
    player = make_player(base_path, tick_ms=args.tick_ms, realtime=args.realtime, emit=print)
    result = await player.play(name, max_ticks=args.max_ticks)
    for msg in result.error_messages:
        print(msg, file=sys.stderr)
    if result.status == 'error':
        return 1
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    debug = args.debug or bool(os.environ.get("PONSCRIPT_DEBUG"))
    logging.basicConfig(level=logging.DEBUG if debug else logging.WARNING, format="[%(levelname)s] %(name)s: %(message)s")
    if args.dump:
        return dump_script(args.script)
    return asyncio.run(play_script(args))


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        print("\nExiting.")
