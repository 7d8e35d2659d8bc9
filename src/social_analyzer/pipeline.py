from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .config import get_settings
from .document import SourceDocument
from .errors import ErrorKind, PipelineError
from .extractors import PdfCapability, extract_text
from .response_parser import ParseTier, SuggestionRecord, parse_suggestions
from .suggestions import GenerationParameters, SuggestionClient, build_request

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 10


class PipelineState(str, Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    GATING = "gating"
    REQUESTING = "requesting"
    PARSING = "parsing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineResult:
    document_name: str
    extracted_text: str
    tier: ParseTier
    suggestions: List[SuggestionRecord] = field(default_factory=list)

    def to_list(self) -> List[dict]:
        return [record.to_dict() for record in self.suggestions]

    def suggestions_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_list(), ensure_ascii=False, indent=indent)

    def download_bytes(self) -> bytes:
        return self.suggestions_json().encode("utf-8")

    def download_filename(self) -> str:
        return f"{self.document_name or 'tips'}.tips.json"


class SuggestionPipeline:
    """Runs one document at a time through extract -> gate -> request -> parse.

    Starting a new run abandons any run still in flight. A failed run leaves
    no extracted text or suggestions behind, only ``error``.
    """

    def __init__(
        self,
        client: SuggestionClient,
        *,
        credential: Optional[str] = None,
        pdf: Optional[PdfCapability] = None,
        parameters: Optional[GenerationParameters] = None,
        min_text_length: int = MIN_TEXT_LENGTH,
    ):
        self.client = client
        self.credential = credential
        self.pdf = pdf
        self.parameters = parameters
        self.min_text_length = min_text_length
        self.state = PipelineState.IDLE
        self.result: Optional[PipelineResult] = None
        self.error: Optional[PipelineError] = None
        self._active: Optional[asyncio.Task] = None
        self._extracted_text = ""

    @classmethod
    def from_settings(cls, pdf: Optional[PdfCapability] = None) -> "SuggestionPipeline":
        settings = get_settings()
        client = SuggestionClient(
            base_url=settings.base_url,
            model=settings.model,
            timeout_seconds=settings.timeout_seconds,
        )
        return cls(
            client,
            credential=settings.api_key,
            pdf=pdf,
            parameters=GenerationParameters(
                temperature=settings.temperature,
                max_output_tokens=settings.max_output_tokens,
            ),
            min_text_length=settings.min_text_length,
        )

    @property
    def extracted_text(self) -> str:
        return self._extracted_text

    @property
    def suggestions(self) -> List[SuggestionRecord]:
        return list(self.result.suggestions) if self.result else []

    def reset(self) -> None:
        self.state = PipelineState.IDLE
        self.result = None
        self.error = None
        self._extracted_text = ""

    async def run(
        self, document: SourceDocument, credential: Optional[str] = None
    ) -> PipelineResult:
        if self._active is not None and not self._active.done():
            logger.info("Abandoning in-flight run for a new document")
            self._active.cancel()
        self.reset()
        task = asyncio.ensure_future(self._execute(document, credential or self.credential))
        self._active = task
        try:
            return await task
        finally:
            if self._active is task:
                self._active = None

    async def _execute(
        self, document: SourceDocument, credential: Optional[str]
    ) -> PipelineResult:
        try:
            self._transition(PipelineState.EXTRACTING)
            text = await extract_text(document, self.pdf)

            self._transition(PipelineState.GATING)
            if not text or len(text) < self.min_text_length:
                raise PipelineError(
                    ErrorKind.INSUFFICIENT_TEXT,
                    "No text could be extracted from this file.",
                )
            self._extracted_text = text

            self._transition(PipelineState.REQUESTING)
            request = build_request(text, self.parameters)
            raw = await self.client.send(request, credential)

            self._transition(PipelineState.PARSING)
            parsed = parse_suggestions(raw)
        except PipelineError as exc:
            if self._owns_state():
                self._fail(exc)
            raise
        except asyncio.CancelledError:
            # A replacing run has already reset the state and now owns it.
            if self._owns_state():
                self.reset()
            raise

        self.result = PipelineResult(
            document_name=document.name,
            extracted_text=text,
            tier=parsed.tier,
            suggestions=parsed.records,
        )
        self._transition(PipelineState.DONE)
        logger.info(
            "Produced %d suggestion(s) for %r via %s",
            len(parsed.records),
            document.name,
            parsed.tier.value,
        )
        return self.result

    def _owns_state(self) -> bool:
        return self._active is None or asyncio.current_task() is self._active

    def _transition(self, state: PipelineState) -> None:
        logger.debug("Pipeline %s -> %s", self.state.value, state.value)
        self.state = state

    def _fail(self, error: PipelineError) -> None:
        logger.warning("Pipeline failed during %s: %s", self.state.value, error.message)
        self.state = PipelineState.FAILED
        self.error = error
        self.result = None
        self._extracted_text = ""
