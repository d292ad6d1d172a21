"""File output for rendered sitemap documents.

`LocalFileWriter` writes below a public output directory using an atomic
write pattern (write to a temporary file, then rename) so a crawler never sees
a half-written sitemap. Writes are best-effort: a failure is logged and
reported as False, and callers carry on with the remaining files.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol, Union

logger = logging.getLogger(__name__)

__all__ = ["FileWriter", "LocalFileWriter"]


class FileWriter(Protocol):
    def write(self, path: str, content: str) -> bool: ...


class LocalFileWriter:
    """Write files under `root`; leading slashes in `path` are relative to it."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def target(self, path: str) -> Path:
        return self.root / path.lstrip("/")

    def write(self, path: str, content: str) -> bool:
        """Atomically write `content` to `path`, creating parent directories.

        Args:
            path: Output path relative to the writer root.
            content: Document text, written as UTF-8.

        Returns:
            True on success, False if the write failed (the error is logged).
        """
        target = self.target(path)
        tmp_path = f"{target}.tmp"
        try:
            os.makedirs(target.parent, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, target)
        except OSError as e:
            logger.error("Failed writing %s: %s", target, e)
            try:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
            except OSError:  # pragma: no cover - best effort
                logger.debug("Could not remove temporary file %s", tmp_path, exc_info=True)
            return False
        logger.debug("Wrote %s (%d chars)", target, len(content))
        return True
