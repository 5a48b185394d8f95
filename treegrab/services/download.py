"""
Local file writing for downloaded blobs.
"""

import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from ..infrastructure.error_handler import LocalIOError
from ..infrastructure.logger import logger


class DownloadService:
    """Writes blob content to disk so that a file is either absent or complete."""

    async def ensure_directory(self, path: Path) -> None:
        """Create ``path`` and any missing parents."""

        try:
            await aiofiles.os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise LocalIOError(f"Cannot create directory {path}", path=path, original_error=e) from e

    async def save_content(self, content: bytes, target_path: Path) -> int:
        """
        Atomically write ``content`` to ``target_path``.

        The bytes go to a temporary sibling first, which is then renamed over
        the target. On failure the temporary file is removed.

        Args:
            content: Raw file bytes
            target_path: Final location of the file

        Returns:
            Number of bytes written

        Raises:
            LocalIOError: If the directory or file cannot be written
        """
        target_path = Path(target_path)
        await self.ensure_directory(target_path.parent)

        temp_path = target_path.with_name(f".{target_path.name}.{uuid.uuid4().hex}.part")

        try:
            async with aiofiles.open(temp_path, 'wb') as f:
                await f.write(content)
            await aiofiles.os.replace(temp_path, target_path)

        except OSError as e:
            await self._discard(temp_path)
            raise LocalIOError(f"Cannot write {target_path}", path=target_path, original_error=e) from e

        except BaseException:
            # Cancelled mid-write
            await self._discard(temp_path)
            raise

        logger.debug(f"Wrote {len(content)} bytes to {target_path}")
        return len(content)

    @staticmethod
    async def _discard(temp_path: Path) -> None:
        try:
            await aiofiles.os.remove(temp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary file {temp_path}: {e}")


__all__ = ["DownloadService"]
