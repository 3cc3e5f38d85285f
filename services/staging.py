"""
Staging area for rendered statements awaiting download.
Files are deleted by a detached task once the retention window passes.
"""
import asyncio
from pathlib import Path
from typing import Optional, Set

from core.config import get_settings
from core.exceptions import DataNotFoundError, StorageError
from core.exporters import create_output_filename
from core.logger import setup_logger

logger = setup_logger(__name__)

ALLOWED_EXTENSIONS = (".xlsx",)


class StagingStore:
    """Filesystem store for generated files."""

    def __init__(self, base_path: Optional[str] = None, retention_seconds: Optional[int] = None):
        settings = get_settings()
        self.base_path = Path(base_path or settings.temp_storage_path)
        self.retention_seconds = (
            settings.file_retention_seconds if retention_seconds is None else retention_seconds
        )
        # Strong references so pending cleanups are not garbage collected
        self._cleanup_tasks: Set[asyncio.Task] = set()

    def stage(self, content: bytes, extension: str = "xlsx") -> Path:
        """
        Write content to a new uniquely named file.

        Args:
            content: File bytes
            extension: File extension without dot

        Returns:
            Path to staged file

        Raises:
            StorageError: If the file cannot be written
        """
        try:
            path = Path(create_output_filename(str(self.base_path), extension))
            path.write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to stage file in {self.base_path}: {e}")
            raise StorageError(
                "Failed to store generated file",
                details={"base_path": str(self.base_path), "error": str(e)}
            )

        logger.info(f"Staged {path.name} ({len(content)} bytes)")
        return path

    def resolve(self, filename: str) -> Path:
        """
        Locate a staged file by name.

        Args:
            filename: Name returned by stage()

        Returns:
            Resolved path inside the staging directory

        Raises:
            ValueError: If the name is not a valid staged file name
            DataNotFoundError: If no such file exists
        """
        # Security: Validate filename to prevent path traversal
        if not filename or ".." in filename or "/" in filename or "\\" in filename:
            raise ValueError("Invalid filename")

        if not filename.endswith(ALLOWED_EXTENSIONS):
            raise ValueError("Invalid file type")

        base = self.base_path.resolve()
        file_path = (base / filename).resolve()
        if file_path.parent != base:
            raise ValueError("Invalid file path")

        if not file_path.exists():
            raise DataNotFoundError("File not found", details={"filename": filename})

        return file_path

    async def delete_later(self, path: Path, delay: Optional[float] = None) -> None:
        """Remove a staged file after the retention window."""
        await asyncio.sleep(self.retention_seconds if delay is None else delay)
        try:
            path.unlink()
            logger.debug(f"Cleaned up: {path}")
        except FileNotFoundError:
            logger.debug(f"Already removed: {path}")
        except OSError as e:
            logger.warning(f"Failed to cleanup {path}: {e}")

    def schedule_cleanup(self, path: Path) -> asyncio.Task:
        """
        Schedule deletion of a staged file without waiting for it.

        Must be called from a running event loop.
        """
        task = asyncio.get_running_loop().create_task(self.delete_later(path))
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)
        return task
