"""
Response path selectors.

A selector such as ``$.candidates[0].content.parts[0].text`` walks an
arbitrary JSON document down to the string holding the model's answer.
Supported segments: ``.field``, ``["field"]`` / ``['field']`` and ``[n]``.
The leading ``$`` is optional.
"""
from __future__ import annotations
from typing import Any, Union

from .errors import CognitorError

FIELD_NOT_FOUND = "field not found"
INDEX_OUT_OF_BOUNDS = "index out of bounds"
NOT_AN_ARRAY = "not an array"
NOT_AN_OBJECT = "not an object"
LEAF_NOT_A_STRING = "leaf not a string"
INVALID_PATH = "invalid path"

Segment = Union[str, int]

class ExtractionError(CognitorError):
    def __init__(self, reason: str, path: str, at: str = "$"):
        self.reason = reason
        self.path = path
        self.at = at
        super().__init__(f"{reason} at '{at}' (path '{path}')")

def parse_path(path: str) -> list[Segment]:
    """Split a selector into field names (str) and array indexes (int)."""
    if not path or not path.strip():
        raise ExtractionError(INVALID_PATH, path)
    # a bare leading field ("answer.text") reads as ".answer.text"
    src = path if path[0] in "$.[" else "." + path
    segments: list[Segment] = []
    i = 1 if src.startswith("$") else 0
    n = len(src)
    while i < n:
        c = src[i]
        if c == ".":
            j = i + 1
            while j < n and src[j] not in ".[":
                j += 1
            name = src[i + 1:j]
            if not name:
                raise ExtractionError(INVALID_PATH, path, src[:i + 1])
            segments.append(name)
            i = j
        elif c == "[":
            end = src.find("]", i)
            if end == -1:
                raise ExtractionError(INVALID_PATH, path, src[i:])
            inner = src[i + 1:end].strip()
            if len(inner) >= 2 and inner[0] == inner[-1] and inner[0] in "'\"":
                segments.append(inner[1:-1])
            elif inner.isascii() and inner.isdigit():
                segments.append(int(inner))
            else:
                raise ExtractionError(INVALID_PATH, path, src[:end + 1])
            i = end + 1
        else:
            raise ExtractionError(INVALID_PATH, path, src[:i + 1])
    return segments

def _describe(segments: list[Segment]) -> str:
    out = "$"
    for s in segments:
        out += f"[{s}]" if isinstance(s, int) else f".{s}"
    return out

def extract(document: Any, path: str) -> str:
    segments = parse_path(path)
    node = document
    for pos, seg in enumerate(segments):
        at = _describe(segments[:pos + 1])
        if isinstance(seg, int):
            if not isinstance(node, list):
                raise ExtractionError(NOT_AN_ARRAY, path, at)
            if seg >= len(node):
                raise ExtractionError(INDEX_OUT_OF_BOUNDS, path, at)
            node = node[seg]
        else:
            if not isinstance(node, dict):
                raise ExtractionError(NOT_AN_OBJECT, path, at)
            if seg not in node:
                raise ExtractionError(FIELD_NOT_FOUND, path, at)
            node = node[seg]
    if not isinstance(node, str):
        raise ExtractionError(LEAF_NOT_A_STRING, path, _describe(segments))
    return node
