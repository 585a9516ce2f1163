"""
Defines the core data types for the ponscript runtime.

This module provides the Tag instruction type produced by the parser, the
value kinds a tag may carry, and the exception hierarchy shared by the
parser, the resource layer and the conductor.
"""

from typing import Any, Dict, Optional, Union

# A tag value is one of a closed set of scalar kinds; keys stay open.
TagValue = Union[str, int, float, bool]
TagValues = Dict[str, TagValue]

# Reserved tag names
LABEL_TAG = "__label__"
CODE_TAG = "__code__"
CHAR_TAG = "ch"
BREAK_TAG = "br"

# Reserved value key holding the source text of a tag
BODY_KEY = "__body__"

SCALAR_TYPES = (str, int, float, bool)


# =================================================================
# Errors
# =================================================================

class PonError(Exception):
    """Base class for every error raised by ponscript."""
    pass


class ParseError(PonError):
    """A script could not be parsed. Carries the offending line when known."""
    def __init__(self, message: str, line: Optional[int] = None, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.source = source

    def __str__(self) -> str:
        if self.line is None:
            return f"ParseError: {self.message}"
        text = f"ParseError: {self.message} (line {self.line})"
        if self.source:
            context = source_context(self.source, self.line)
            if context:
                text = f"{text}\n{context}"
        return text


class LabelNotFoundError(PonError):
    def __init__(self, label: str, file_path: Optional[str] = None):
        where = f" in {file_path}" if file_path else ""
        super().__init__(f"LabelNotFound: '{label}'{where}")
        self.label = label
        self.file_path = file_path


class LoadError(PonError):
    """Wraps the underlying failure of fetching or parsing a script."""
    def __init__(self, path: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"LoadError: {path}{detail}")
        self.path = path
        self.cause = cause


class EvalError(PonError):
    """The evaluator failed on an expression or an embedded code body."""
    def __init__(self, expression: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"EvalError: {expression!r}{detail}")
        self.expression = expression
        self.cause = cause


def source_context(source: str, line: int, radius: int = 2) -> str:
    lines = source.split("\n")
    if not line or line < 1 or line > len(lines):
        return ""
    start = max(1, line - radius)
    end = min(len(lines), line + radius)
    width = len(str(end))
    out = []
    for i in range(start, end + 1):
        prefix = ">" if i == line else " "
        out.append(f"{prefix} {str(i).rjust(width)} | {lines[i - 1]}")
    return "\n".join(out)


# =================================================================
# Tag
# =================================================================

class Tag:
    """One parsed instruction: a name plus a mapping of scalar values.

    Tags built by the parser are templates shared by every clone of a
    Script. Anything that needs to rewrite values works on `clone()`.
    """
    def __init__(self, name: str, values: TagValues, line: Optional[int] = None):
        self.name = name
        self.values = values
        self.line = line

    @property
    def body(self) -> Any:
        return self.values.get(BODY_KEY)

    @property
    def is_label(self) -> bool:
        return self.name == LABEL_TAG

    @property
    def is_code(self) -> bool:
        return self.name == CODE_TAG

    def clone(self) -> 'Tag':
        return Tag(self.name, dict(self.values), self.line)

    def __repr__(self) -> str:
        return f"<Tag {self.name} values={self.values!r}>"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Tag):
            return NotImplemented
        return self.name == other.name and self.values == other.values

    __hash__ = None  # mutable values


def to_text(value: Any) -> str:
    """Render a value the way the script language prints it."""
    match value:
        case None:
            return "null"
        case bool():
            return "true" if value else "false"
        case float() if value.is_integer():
            return str(int(value))
        case _:
            return str(value)
