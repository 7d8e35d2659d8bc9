from __future__ import annotations

import asyncio
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceDocument:
    """A captured input file: its name, declared type and raw bytes."""

    name: str
    mime_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class AsyncReadable(Protocol):
    """Anything that looks like an uploaded file (e.g. FastAPI's UploadFile)."""

    filename: Optional[str]
    content_type: Optional[str]

    async def read(self) -> bytes: ...


async def load_path(
    path: Union[str, Path], mime_type: Optional[str] = None
) -> SourceDocument:
    """Read a file from disk into a SourceDocument.

    When ``mime_type`` is not given it is guessed from the file name and may
    end up empty; classification falls back to the name suffix in that case.
    """
    path = Path(path)
    if mime_type is None:
        mime_type = mimetypes.guess_type(path.name)[0] or ""
    content = await asyncio.to_thread(path.read_bytes)
    logger.debug("Loaded %s (%d bytes, mime=%r)", path.name, len(content), mime_type)
    return SourceDocument(name=path.name, mime_type=mime_type, content=content)


async def load_upload(upload: AsyncReadable) -> SourceDocument:
    content = await upload.read()
    return SourceDocument(
        name=upload.filename or "",
        mime_type=upload.content_type or "",
        content=content,
    )
