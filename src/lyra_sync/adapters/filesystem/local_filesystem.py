from __future__ import annotations

import os
import tempfile
from pathlib import Path

from lyra_sync.domain.ports import FileSystemPort


class LocalFileSystemAdapter(FileSystemPort):
    def ensure_directory(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def path_exists(self, path: Path) -> bool:
        return path.exists()

    def write_text_atomic(self, path: Path, content: str) -> None:
        # temp file lives next to the target so os.replace stays on one filesystem
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                handle.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")
