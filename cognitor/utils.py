from __future__ import annotations
from pathlib import Path
from typing import Mapping
import os, re, stat, tempfile

PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")

def render(template: str, variables: Mapping[str, str]) -> str:
    """Substitute ``{{name}}`` placeholders found in ``variables``.

    Unknown placeholders are kept verbatim and substituted values are never
    expanded again, so the same template can be rendered in several passes.
    """
    def _sub(m: re.Match) -> str:
        name = m.group(1)
        return variables[name] if name in variables else m.group(0)
    return PLACEHOLDER.sub(_sub, template)

def expand_home(path: str | Path) -> Path:
    return Path(os.path.expanduser(str(path)))

def resolve_path(base: Path, p: str | Path) -> Path:
    pp = expand_home(p)
    return pp if pp.is_absolute() else base / pp

def _file_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except OSError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask

def atomic_write(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` through a uniquely named sibling temp file."""
    if not path.name or path.name in (".", ".."):
        raise IsADirectoryError(f"not a file path: '{path}'")
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = _file_mode(path)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise

def redact(text: str, secret: str | None, mask: str = "***") -> str:
    if not secret:
        return text
    return text.replace(secret, mask)

def truncate(text: str, limit: int = 500) -> str:
    return text if len(text) <= limit else text[:limit] + "..."
