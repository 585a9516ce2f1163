from typing import Dict, List, Optional

from ponscript.pon_datatypes import Tag, LabelNotFoundError, LABEL_TAG, BODY_KEY
from ponscript.pon_parser import parse_script


class Script:
    """A parsed tag sequence plus a playback cursor.

    The tag list is shared, read-only, between a script and all of its
    clones; only the cursor is per instance. Resource caches hand out
    clones so that independent playbacks never move each other's cursor.
    """

    def __init__(self, tags: List[Tag], file_path: Optional[str] = None):
        self._tags = tags
        self.file_path = file_path
        self.cursor = 0

    @classmethod
    def from_text(cls, script_text: str, file_path: Optional[str] = None) -> 'Script':
        return cls(parse_script(script_text), file_path)

    @property
    def tags(self) -> List[Tag]:
        return self._tags

    def __len__(self) -> int:
        return len(self._tags)

    def __repr__(self) -> str:
        return f"<Script {self.file_path or '<inline>'} cursor={self.cursor}/{len(self._tags)}>"

    def get_next_tag(self) -> Optional[Tag]:
        """Return the tag under the cursor and advance, or None when exhausted."""
        if self.cursor >= len(self._tags):
            return None
        tag = self._tags[self.cursor]
        self.cursor += 1
        return tag

    def labels(self) -> Dict[str, int]:
        index: Dict[str, int] = {}
        for i, tag in enumerate(self._tags):
            if tag.name == LABEL_TAG:
                index.setdefault(tag.values[BODY_KEY], i)
        return index

    def has_label(self, name: str) -> bool:
        return name in self.labels()

    def jump_to_label(self, name: str) -> None:
        """Move the cursor to the tag right after the first label `name`."""
        for i, tag in enumerate(self._tags):
            if tag.name == LABEL_TAG and tag.values[BODY_KEY] == name:
                self.cursor = i + 1
                return
        raise LabelNotFoundError(name, self.file_path)

    def rewind(self) -> None:
        self.cursor = 0

    def clone(self) -> 'Script':
        return Script(self._tags, self.file_path)
