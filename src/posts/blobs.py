"""
Blob storage for normalized images.

Image paths are stored and exchanged relative to the data directory
(e.g. "images/main_image_1700000000000_1a2b3c4d.jpg"). Every path coming
from outside is resolved here and must land inside the managed image root
before any filesystem access happens.
"""
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Any, Union

from posts.errors import ImageNotFound, PathOutsideRoot

logger = logging.getLogger(__name__)


def is_safe_path(base_path: Union[str, Path], file_path: Union[str, Path]) -> bool:
    """
    Verify that a file path is safely contained within a base directory.

    Both paths are resolved (symlinks included) before comparison, so
    "images/../blogs.json" or a symlink pointing outside the root is rejected.

    Args:
        base_path: The base directory that should contain the file
        file_path: The full file path to validate

    Returns:
        True if the path is safe, False if it escapes the base directory
    """
    try:
        base = Path(base_path).resolve()
        target = Path(file_path).resolve()
        return target.is_relative_to(base) and target != base
    except (ValueError, RuntimeError, OSError):
        return False


def make_blob_filename(prefix: str) -> str:
    """Unique blob file name: <prefix>_<epoch ms>_<random>.jpg."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}.jpg"


class BlobStorage:
    """Reads and writes image blobs under a managed root.

    Attributes:
        data_dir: Directory that relative image paths are resolved against
        image_dir: Managed image root; every blob lives below it
    """

    def __init__(self, data_dir: Union[str, Path], image_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)
        self.image_dir = Path(image_dir)
        os.makedirs(self.image_dir, mode=0o755, exist_ok=True)

    @classmethod
    def from_settings(cls, settings) -> "BlobStorage":
        return cls(settings.data_dir, settings.image_dir)

    def relative_path(self, filename: str) -> str:
        """Relative path (as stored in records) for a blob file name."""
        return (self.image_dir / filename).relative_to(self.data_dir).as_posix()

    def resolve(self, image_path: Any) -> Path:
        """Resolve a relative image path to an absolute path inside the root.

        Raises:
            PathOutsideRoot: If the path is not a non-empty relative string or
                resolves outside the managed image root
        """
        if not isinstance(image_path, str) or not image_path or "\x00" in image_path:
            raise PathOutsideRoot(f"Invalid image path: {image_path!r}")
        if Path(image_path).is_absolute():
            raise PathOutsideRoot(f"Absolute image path rejected: {image_path[:100]!r}")

        candidate = self.data_dir / image_path
        if not is_safe_path(self.image_dir, candidate):
            raise PathOutsideRoot(f"Image path escapes managed root: {image_path[:100]!r}")
        return candidate.resolve()

    def exists(self, image_path: str) -> bool:
        try:
            return self.resolve(image_path).is_file()
        except PathOutsideRoot:
            return False

    def read(self, image_path: str) -> bytes:
        """Read blob bytes.

        Raises:
            ImageNotFound: If the blob is missing (or the path is outside the root)
        """
        path = self.resolve(image_path)
        try:
            with open(path, "rb") as f:
                return f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise ImageNotFound(f"Image not found: {image_path[:100]!r}") from e

    def write(self, filename: str, data: bytes) -> str:
        """Write a blob and return its relative path.

        Raises:
            OSError: On any filesystem failure
        """
        path = self.image_dir / filename
        with open(path, "wb") as f:
            f.write(data)
        relative = self.relative_path(filename)
        logger.debug(f"Wrote blob {relative} ({len(data)} bytes)")
        return relative

    def remove(self, image_path: str) -> None:
        """Delete a blob; a blob that is already gone is not an error."""
        try:
            self.resolve(image_path).unlink()
            logger.debug(f"Removed blob {image_path}")
        except FileNotFoundError:
            pass
