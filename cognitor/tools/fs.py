from __future__ import annotations
from pathlib import Path

from ..config import ExecutorConfig
from ..utils import atomic_write, resolve_path

class FileSystemTool:
    def __init__(self, cfg: ExecutorConfig):
        self.cfg = cfg

    def target(self, path: str) -> Path:
        return resolve_path(self.cfg.working_dir, path)

    def write(self, path: str, content: str) -> int:
        """Create or overwrite ``path`` (parents included); returns bytes written."""
        data = content.encode("utf-8")
        atomic_write(self.target(path), data)
        return len(data)
