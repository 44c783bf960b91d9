from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional
import logging

import httpx

from .errors import ContextError
from .utils import expand_home

@dataclass(frozen=True)
class ContextItem:
    source: str
    text: str

@dataclass(frozen=True)
class PromptContext:
    items: tuple[ContextItem, ...] = ()

    def extend(self, source: str, text: str) -> "PromptContext":
        return PromptContext(self.items + (ContextItem(source, text),))

    def render(self) -> str:
        return "\n".join(f"Context from {i.source}:\n{i.text}\n" for i in self.items)

    def __bool__(self) -> bool:
        return bool(self.items)

def is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")

def gather(sources: Iterable[str], client: Optional[httpx.Client] = None, timeout: float = 30.0) -> PromptContext:
    """Read every file or URL in ``sources`` into a PromptContext, in order."""
    ctx = PromptContext()
    owned = client is None
    client = client or httpx.Client(timeout=timeout, follow_redirects=True)
    try:
        for source in sources:
            ctx = ctx.extend(source, _fetch(source, client))
    finally:
        if owned:
            client.close()
    return ctx

def _fetch(source: str, client: httpx.Client) -> str:
    if is_url(source):
        logging.debug("fetching context from %s", source)
        try:
            r = client.get(source)
        except httpx.HTTPError as e:
            raise ContextError(f"Failed to fetch URL: {source} - {e}") from e
        if not r.is_success:
            raise ContextError(f"Failed to fetch URL: {source} - Status: {r.status_code}")
        return r.text
    try:
        return expand_home(source).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ContextError(f"Failed to read file: {source} ({e})") from e
