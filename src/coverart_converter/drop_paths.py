"""Turn a tkinterdnd2 drop payload into the paths it names, in drop order."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Sequence
from urllib.parse import urlsplit
from urllib.request import url2pathname

SplitList = Callable[[str], Sequence[str]]


def _path_from_file_uri(uri: str) -> str:
    parts = urlsplit(uri)
    local = url2pathname(parts.path)
    if parts.netloc and parts.netloc.lower() != "localhost":
        # UNC share: file://server/share/x.png
        return f"//{parts.netloc}{local}"
    return local


def dropped_path(item: str) -> Optional[Path]:
    """Return the path for one payload item, or None if the item is blank."""
    text = item.strip()
    if text[:1] == "{" and text[-1:] == "}":
        text = text[1:-1]
    text = text.strip().strip('"')
    if text.startswith("file:"):
        text = _path_from_file_uri(text)
    return Path(text) if text else None


def dropped_paths(raw_data: Any, split_texts: Optional[SplitList] = None) -> Iterator[Path]:
    """Yield every path in a drop payload.

    ``split_texts`` is normally ``tk.splitlist``. Without it, or when the
    payload is not a valid Tcl list, each line is one item. Items repeat as
    often as they were dropped; the controller's in-flight gate decides.
    """
    data = str(raw_data or "").strip()
    if not data:
        return

    items: Sequence[str] = [data]
    if split_texts is not None:
        try:
            items = split_texts(data)
        except Exception as exc:
            logging.debug("Drop payload is not a Tcl list (%s); splitting on lines", exc)

    for item in items:
        for line in str(item).splitlines():
            path = dropped_path(line)
            if path is not None:
                yield path
