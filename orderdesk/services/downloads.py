"""
Download Manager - saves generated artifacts to the local download folder

Flow:
1. Bytes arrive from the generation endpoint
2. They are staged in a temporary file (the transient handle)
3. The staged file is copied to <download_dir>/<prefix>_<epoch-ms><ext>
4. The staging file is deleted on every exit path, success or failure
"""

import os
import tempfile
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles
import aiofiles.os

from orderdesk.core.config import settings
from orderdesk.core.logging_config import logger
from orderdesk.schemas.document import DocumentKind, GeneratedDocument


CHUNK_SIZE = 64 * 1024


def build_filename(kind: DocumentKind, timestamp_ms: Optional[int] = None) -> str:
    """<prefix>_<epoch-ms><ext>, e.g. invoice_1705312800000.pdf"""
    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    return f"{kind.spec.filename_prefix}_{stamp}{kind.spec.extension}"


class DownloadManager:
    """Writes artifacts into `download_dir`, staging them in `staging_dir`"""

    def __init__(self, download_dir: Optional[str] = None, staging_dir: Optional[str] = None):
        self.download_dir = Path(download_dir or settings.DOWNLOAD_DIR).expanduser()
        staging = staging_dir or settings.STAGING_DIR
        self.staging_dir = Path(staging).expanduser() if staging else None

    @asynccontextmanager
    async def staged(self, content: bytes, suffix: str = "") -> AsyncIterator[Path]:
        """
        Hold the bytes in a temporary file for the duration of the block.

        The file is removed when the block exits, whether it completed or
        raised.
        """
        if self.staging_dir is not None:
            self.staging_dir.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(
            prefix="orderdesk_",
            suffix=suffix,
            dir=str(self.staging_dir) if self.staging_dir else None,
        )
        os.close(fd)
        path = Path(name)
        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
            yield path
        finally:
            if await aiofiles.os.path.exists(path):
                await aiofiles.os.remove(path)
            logger.debug(f"Released staging file {path.name}")

    async def _copy(self, source: Path, destination: Path) -> None:
        async with aiofiles.open(source, "rb") as src, aiofiles.open(destination, "wb") as dst:
            while chunk := await src.read(CHUNK_SIZE):
                await dst.write(chunk)

    async def save(
        self,
        kind: DocumentKind,
        content: bytes,
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> GeneratedDocument:
        """Persist `content` as a new file in the download directory"""
        filename = filename or build_filename(kind)
        self.download_dir.mkdir(parents=True, exist_ok=True)
        destination = self.download_dir / filename

        async with self.staged(content, suffix=kind.spec.extension) as staged_path:
            await self._copy(staged_path, destination)

        logger.info(f"Saved {filename} ({len(content)} bytes)")
        return GeneratedDocument(
            kind=kind,
            filename=filename,
            content_type=content_type or kind.spec.content_type,
            size_bytes=len(content),
            path=destination,
        )


__all__ = ["DownloadManager", "build_filename"]
