"""
A pretty-printer for ponscript tags.
"""
from typing import Iterable

from ponscript.pon_datatypes import Tag, BODY_KEY
from ponscript.pon_serialize import dump_object_literal


class Printer:
    """Formats each tag as text for dumps and debugging.

    Labels, code and commands come out in script source form; characters
    and breaks are not source syntax and show as `ch 'x'` and `br`.
    """

    def __init__(self, show_lines: bool = False):
        self.show_lines = show_lines

    def pformat(self, tag: Tag) -> str:
        match tag.name:
            case "__label__":
                text = f":{tag.values[BODY_KEY]}"
            case "__code__":
                text = self._pformat_code(tag)
            case "ch":
                text = f"ch {tag.values.get('text', '')!r}"
            case "br":
                text = "br"
            case _:
                values = {k: v for k, v in tag.values.items() if k != BODY_KEY}
                text = f";{tag.name}{dump_object_literal(values)}"
        if self.show_lines and tag.line is not None:
            return f"{tag.line:>4} | {text}"
        return text

    def _pformat_code(self, tag: Tag) -> str:
        body = str(tag.values[BODY_KEY])
        if "\n" in body:
            return "---\n" + body + "\n---"
        marker = "=" if tag.values.get("print") else "-"
        return f"{marker}{body}"

    def pformat_all(self, tags: Iterable[Tag]) -> str:
        return "\n".join(self.pformat(t) for t in tags)
