"""Snapshot file storage for Folkfeed."""

import json
import os
import tempfile
from pathlib import Path

from folkfeed.errors import PersistError, SnapshotLoadError
from folkfeed.models import Snapshot
from folkfeed.utils.logging import get_logger

logger = get_logger(__name__)


def _published_mode() -> int:
    """Return the mode a plain file created under the current umask gets."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def encode_snapshot(snapshot: Snapshot, include_images: bool = True) -> str:
    """Serialize a snapshot to the on-disk JSON text."""
    return json.dumps(snapshot.to_dict(include_images), indent=2, ensure_ascii=False)


class SnapshotWriter:
    """Writes the JSON snapshot, replacing any previous one atomically."""

    def __init__(self, path: Path | str, include_images: bool = True) -> None:
        """Initialize the writer.

        Args:
            path: Target snapshot path. Parent directories are created on write.
            include_images: Whether article records carry the ``image`` field.
        """
        self._path = Path(path)
        self._include_images = include_images

    @property
    def path(self) -> Path:
        return self._path

    def write(self, snapshot: Snapshot) -> Path:
        """Write the snapshot through a temporary file and rename it into place.

        Readers see either the previous snapshot or the new one, never a
        partial file.

        Returns:
            The path that was written.

        Raises:
            PersistError: If the directory or the file cannot be written.
        """
        text = encode_snapshot(snapshot, self._include_images)
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, _published_mode())
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error("Failed to write snapshot", path=str(self._path), error=str(e))
            raise PersistError(f"cannot write {self._path}: {e}") from e

        logger.info(
            "Snapshot written",
            path=str(self._path),
            items=len(snapshot.items),
            size=len(text),
        )
        return self._path


def decode_snapshot(text: str | bytes) -> Snapshot:
    """Decode snapshot JSON.

    Raises:
        SnapshotLoadError: If the text is not valid snapshot JSON.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SnapshotLoadError(f"malformed JSON: {e}") from e
    return Snapshot.from_dict(data)


def read_snapshot(path: Path | str) -> Snapshot:
    """Read a snapshot from disk.

    Raises:
        FileNotFoundError: If no snapshot has been written yet.
        SnapshotLoadError: If the file cannot be read or decoded.
    """
    snapshot_path = Path(path)
    try:
        text = snapshot_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotLoadError(f"cannot read {snapshot_path}: {e}") from e
    return decode_snapshot(text)
