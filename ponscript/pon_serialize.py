from __future__ import annotations

import json
import re
from typing import Any, Optional

import yaml
from yaml.composer import ComposerError


def _norm_text(data: bytes | bytearray | str, *, encoding: Optional[str] = None) -> str:
    if isinstance(data, (bytes, bytearray)):
        enc = encoding or 'utf-8'
        try:
            return data.decode(enc, errors='replace')
        except LookupError:
            return data.decode('utf-8', errors='replace')
    return data


def encoding_from_content_type(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    m = re.search(r'charset\s*=\s*([^\s;]+)', content_type, re.IGNORECASE)
    if m:
        return m.group(1).strip('"').strip("'")
    return None


def decode_text(data: bytes | bytearray | str, *, content_type: Optional[str] = None) -> str:
    """Decode wire bytes to text, honouring a charset in the Content-Type."""
    text = _norm_text(data, encoding=encoding_from_content_type(content_type))
    # Drop a UTF-8 byte order mark so the first script line parses cleanly
    if text.startswith("\ufeff"):
        text = text[1:]
    return text


class _LiteralLoader(yaml.SafeLoader):
    """
    A YAML loader for relaxed command literals.

    Only `true`/`false` and plain decimal numbers are typed; every other
    plain scalar stays a string, so `yes`, `no` or `1:30` read as written.
    Anchors and aliases are rejected because `&` starts an entity value.
    """

    yaml_implicit_resolvers = {}

    def compose_node(self, parent, index):
        event = self.peek_event()
        if isinstance(event, yaml.AliasEvent) or getattr(event, "anchor", None) is not None:
            raise ComposerError(None, None, "anchors and aliases are not allowed", event.start_mark)
        return super().compose_node(parent, index)


_LiteralLoader.add_implicit_resolver(
    "tag:yaml.org,2002:bool", re.compile(r"^(?:true|false)$"), list("tf"))
_LiteralLoader.add_implicit_resolver(
    "tag:yaml.org,2002:int", re.compile(r"^-?(?:0|[1-9][0-9]*)$"), list("-0123456789"))
_LiteralLoader.add_implicit_resolver(
    "tag:yaml.org,2002:float",
    re.compile(r"^-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][-+]?[0-9]+)?$"),
    list("-0123456789"))


def load_object_literal(text: str) -> Any:
    """
    Decode a command's object literal.

    JSON is tried first; on failure the text is read as a YAML flow mapping,
    which accepts the relaxed forms script authors tend to write
    (`{time: 500}`, single-quoted strings). Bare words stay strings.
    Raises ValueError when neither reading succeeds.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as json_err:
        try:
            return yaml.load(text, Loader=_LiteralLoader)
        except ComposerError as yaml_err:
            raise ValueError(f"malformed object literal: {yaml_err.problem}") from yaml_err
        except yaml.YAMLError:
            raise ValueError(f"malformed object literal: {json_err.msg}") from json_err


def dump_object_literal(values: dict) -> str:
    return json.dumps(values, ensure_ascii=False, separators=(", ", ": "))


__all__ = [
    "decode_text",
    "encoding_from_content_type",
    "load_object_literal",
    "dump_object_literal",
]
