"""
Parses ponscript source text into a flat list of Tags.

The language is line oriented. The first character of a trimmed line
selects its kind:

    # comment           (no tag)
    ;name{"k": "v"}     command
    :name               label
    -code               embedded code, silent
    =code               embedded code, printed
    ---                 opens a raw code block closed by a blank line or ---
    anything else       text, one `ch` tag per character, `$` is a break

Parsing is eager: `ScriptParser(text).tags` is the complete sequence or a
ParseError is raised.
"""

import logging
from typing import Iterator, List, Optional, Tuple

from ponscript.pon_datatypes import (
    Tag, TagValues, ParseError, SCALAR_TYPES,
    BODY_KEY, LABEL_TAG, CODE_TAG, CHAR_TAG, BREAK_TAG,
)
from ponscript.pon_serialize import load_object_literal

logger = logging.getLogger(__name__)

RAW_CODE_DELIMITER = "---"

# (line number, raw line) or None once input is exhausted
Line = Optional[Tuple[int, str]]


class ScriptParser:
    """Converts script text into the ordered list of tags it describes."""

    def __init__(self, script_text: str):
        self.script_text = script_text
        self._tags: List[Tag] = []
        self._lines: Iterator[Tuple[int, str]] = self._iter_lines(script_text)
        self._parse()

    @property
    def tags(self) -> List[Tag]:
        return self._tags

    @staticmethod
    def _iter_lines(text: str) -> Iterator[Tuple[int, str]]:
        for num, line in enumerate(text.split("\n"), start=1):
            yield num, line.rstrip("\r")

    def _next_line(self) -> Line:
        return next(self._lines, None)

    def _error(self, message: str, line_num: int) -> ParseError:
        return ParseError(message, line_num, self.script_text)

    def _parse(self) -> None:
        while (item := self._next_line()) is not None:
            line_num, raw = item
            line = raw.strip()
            if line == "":
                continue

            if line == RAW_CODE_DELIMITER:
                self._parse_raw_code(line_num)
                continue

            ch0 = line[0]
            body = line[1:].strip()
            match ch0:
                case '#':
                    pass
                case ';':
                    self._parse_command(line, body, line_num)
                case ':':
                    self._add_tag(LABEL_TAG, {BODY_KEY: body}, line_num)
                case '-':
                    self._add_tag(CODE_TAG, {BODY_KEY: body, "print": False}, line_num)
                case '=':
                    self._add_tag(CODE_TAG, {BODY_KEY: body, "print": True}, line_num)
                case _:
                    self._parse_text(line, line_num)

        logger.debug("parsed %d tags", len(self._tags))

    def _parse_raw_code(self, start_line: int) -> None:
        # Block lines are kept verbatim (no trimming) and joined by newlines.
        # The tag carries no print flag; blocks always run silently.
        code_lines: List[str] = []
        while True:
            item = self._next_line()
            if item is None:
                raise self._error("unterminated raw code block", start_line)
            _, raw = item
            if raw.strip() == "" or raw.strip() == RAW_CODE_DELIMITER:
                break
            code_lines.append(raw)
        self._add_tag(CODE_TAG, {BODY_KEY: "\n".join(code_lines)}, start_line)

    def _parse_command(self, line: str, body: str, line_num: int) -> None:
        brace = body.find("{")
        if brace < 0:
            raise self._error("command has no '{' object literal", line_num)
        name = body[:brace].strip()
        if not name:
            raise self._error("command has no name", line_num)
        try:
            values = load_object_literal(body[brace:])
        except ValueError as e:
            raise self._error(f"command '{name}': {e}", line_num) from e
        if not isinstance(values, dict):
            raise self._error(f"command '{name}': object literal must be a mapping", line_num)
        for key, value in values.items():
            if not isinstance(key, str) or not isinstance(value, SCALAR_TYPES):
                raise self._error(
                    f"command '{name}': value of {key!r} must be a string, number or boolean",
                    line_num,
                )
        values[BODY_KEY] = line
        self._add_tag(name, values, line_num)

    def _parse_text(self, line: str, line_num: int) -> None:
        for ch in line:
            if ch == "$":
                self._add_tag(BREAK_TAG, {BODY_KEY: line}, line_num)
            else:
                self._add_tag(CHAR_TAG, {BODY_KEY: ch, "text": ch}, line_num)

    def _add_tag(self, name: str, values: TagValues, line_num: int) -> None:
        self._tags.append(Tag(name, values, line_num))


def parse_script(script_text: str) -> List[Tag]:
    return ScriptParser(script_text).tags
