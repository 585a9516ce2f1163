from __future__ import annotations
import os
from typing import Optional, Dict, Any
from ponscript.pon_serialize import decode_text


def resolve_locator(locator: str, base_dir: Optional[str]) -> str:
    # Accept both 'file://...' locators and bare paths
    rest = locator[7:] if locator.startswith("file://") else locator
    # Absolute filesystem root
    if rest.startswith("/"):
        return "/" + rest.lstrip("/")
    # Home directory
    if rest.startswith("~"):
        tail = rest[1:]
        return os.path.expanduser("~" + (tail if tail.startswith("/") else ("/" + tail if tail else "")))
    # Empty → base dir or CWD
    if rest == "":
        return base_dir or os.getcwd()
    # Default: relative to the base dir (or CWD); handles './' and '../' too
    base = base_dir or os.getcwd()
    return os.path.normpath(os.path.join(base, rest))


async def file_get_text(locator: str, config: Optional[Dict[str, Any]] = None, *, base_dir: Optional[str] = None) -> str:
    path = resolve_locator(locator, base_dir)
    cfg = dict(config or {})
    encoding = cfg.get("encoding")
    if os.path.isdir(path):
        raise IsADirectoryError(path)
    if not os.path.isfile(path):
        raise FileNotFoundError(path)
    with open(path, "rb") as f:
        data = f.read()
    if encoding:
        return data.decode(encoding)
    return decode_text(data)
