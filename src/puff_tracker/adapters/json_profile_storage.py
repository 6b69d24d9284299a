"""JSON file storage for the cached profile."""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from puff_tracker.services.profile_storage import ProfileStorage


@dataclass
class JsonFileProfileStorage(ProfileStorage):
    """Stores the profile blob as ``<directory>/<key>.json``."""

    directory: Path
    key: str = "cachedUserProfile"

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def read(self) -> str | None:
        """Return the stored blob, or None when nothing was saved."""
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write(self, blob: str) -> None:
        """Atomically replace the stored blob."""
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.key}.", suffix=".tmp", dir=self.directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(blob)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        """Delete the stored blob if present."""
        self.path.unlink(missing_ok=True)
