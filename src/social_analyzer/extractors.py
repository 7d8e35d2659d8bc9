"""
Format-dispatched text extraction: PDF (through pypdf), plain text and
Markdown. Images are recognised but deliberately not extracted.
"""

from __future__ import annotations

import asyncio
import importlib
import io
import logging
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol

from .document import SourceDocument
from .errors import ErrorKind, PipelineError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
PLAIN_TEXT_MIME_TYPE = "text/plain"
PLAIN_TEXT_SUFFIXES = (".txt", ".md")


class ExtractorKind(str, Enum):
    PDF = "pdf"
    IMAGE = "image"
    PLAIN_TEXT = "plain_text"
    UNSUPPORTED = "unsupported"


def classify(document: SourceDocument) -> ExtractorKind:
    """Decide which extractor handles ``document`` without touching its bytes."""
    mime_type = document.mime_type or ""
    if mime_type == PDF_MIME_TYPE:
        return ExtractorKind.PDF
    if mime_type.startswith("image/"):
        return ExtractorKind.IMAGE
    if mime_type == PLAIN_TEXT_MIME_TYPE or (document.name or "").lower().endswith(
        PLAIN_TEXT_SUFFIXES
    ):
        return ExtractorKind.PLAIN_TEXT
    return ExtractorKind.UNSUPPORTED


# --- PDF capability ---------------------------------------------------------


class CapabilityState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


class PdfDocument(Protocol):
    page_count: int

    def page_tokens(self, number: int) -> List[str]:
        """Text tokens of 1-based page ``number``, in extraction order."""
        ...


class _PypdfDocument:
    """Adapts a pypdf reader to the token-per-page view used by the extractor."""

    def __init__(self, pypdf: Any, data: bytes):
        self._reader = pypdf.PdfReader(io.BytesIO(data))
        self.page_count = len(self._reader.pages)

    def page_tokens(self, number: int) -> List[str]:
        tokens: List[str] = []

        # pypdf also reports "" at operator boundaries and "\n" at line
        # breaks; only fragments carrying text count as tokens.
        def visitor(text, *_):
            text = text.strip()
            if text:
                tokens.append(text)

        self._reader.pages[number - 1].extract_text(visitor_text=visitor)
        return tokens


class PdfCapability:
    """Readiness gate around the PDF parsing library.

    The library is loaded once, asynchronously, by :meth:`initialize`. Until
    that has succeeded every extraction attempt fails immediately with
    ``DependencyNotReady``; nothing waits for the load to finish.
    """

    def __init__(self, opener: Optional[Callable[[bytes], PdfDocument]] = None):
        self._opener = opener
        self.state = CapabilityState.UNINITIALIZED
        self.error: Optional[BaseException] = None

    @property
    def ready(self) -> bool:
        return self.state is CapabilityState.READY

    async def initialize(self) -> CapabilityState:
        if self.ready:
            return self.state
        if self._opener is None:
            try:
                pypdf = await asyncio.to_thread(importlib.import_module, "pypdf")
            except ImportError as exc:
                self.state = CapabilityState.FAILED
                self.error = exc
                logger.error("PDF library failed to load: %s", exc)
                return self.state
            self._opener = lambda data: _PypdfDocument(pypdf, data)
        self.state = CapabilityState.READY
        self.error = None
        logger.debug("PDF capability ready")
        return self.state

    def require(self) -> None:
        if self.state is CapabilityState.FAILED:
            raise PipelineError(
                ErrorKind.DEPENDENCY_NOT_READY,
                f"PDF library failed to load: {self.error}",
            )
        if self.state is not CapabilityState.READY:
            raise PipelineError(
                ErrorKind.DEPENDENCY_NOT_READY,
                "PDF library still loading. Try again in a few seconds.",
            )

    def open(self, data: bytes) -> PdfDocument:
        self.require()
        return self._opener(data)


# Process-wide handle; initialised by the CLI and the web app on startup.
pdf_capability = PdfCapability()


# --- extractors -------------------------------------------------------------


class PdfExtractor:
    def __init__(self, capability: Optional[PdfCapability] = None):
        self.capability = capability or pdf_capability

    async def extract(self, data: bytes) -> str:
        """Return the text of every page, in page order, separated by blank lines.

        Tokens within a page are joined with single spaces exactly as the
        parser reports them. A failure on any page discards all text read so
        far.
        """
        self.capability.require()
        pages: List[str] = []
        try:
            document = await asyncio.to_thread(self.capability.open, data)
            logger.debug("PDF opened with %d page(s)", document.page_count)
            for number in range(1, document.page_count + 1):
                tokens = await asyncio.to_thread(document.page_tokens, number)
                pages.append(" ".join(tokens))
        except PipelineError:
            raise
        except Exception as exc:
            raise PipelineError(
                ErrorKind.EXTRACTION_FAILED, f"Failed to extract text from PDF: {exc}"
            ) from exc
        return "\n\n".join(pages).strip()


class PlainTextExtractor:
    async def extract(self, data: bytes, encoding: str = "utf-8") -> str:
        try:
            text = data.decode(encoding)
        except (UnicodeDecodeError, LookupError) as exc:
            raise PipelineError(
                ErrorKind.DECODE_FAILED, f"Failed to read file as {encoding} text."
            ) from exc
        return text.strip()


class ImageExtractor:
    """OCR is not available; image input always fails."""

    async def extract(self, data: bytes) -> str:
        raise PipelineError(
            ErrorKind.UNSUPPORTED_FORMAT,
            "Image text extraction is not enabled. Use a PDF or paste text.",
        )


async def extract_text(
    document: SourceDocument, pdf: Optional[PdfCapability] = None
) -> str:
    """Route ``document`` to the matching extractor and return its text."""
    kind = classify(document)
    logger.info("Extracting %r as %s", document.name, kind.value)
    if kind is ExtractorKind.PDF:
        return await PdfExtractor(pdf).extract(document.content)
    if kind is ExtractorKind.IMAGE:
        return await ImageExtractor().extract(document.content)
    if kind is ExtractorKind.PLAIN_TEXT:
        return await PlainTextExtractor().extract(document.content)
    raise PipelineError(
        ErrorKind.UNSUPPORTED_FORMAT, "Unsupported file type. Upload a PDF or text file."
    )
