"""Turn raw model output into suggestion records.

Models do not reliably honour "JSON only" instructions, so parsing falls
through three tiers and never raises:

1. the first ``[`` ... last ``]`` span, parsed as a JSON array;
2. the whole response parsed as a JSON array;
3. up to five non-blank lines, each wrapped as a generic tip.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

MAX_SALVAGED_LINES = 5
SALVAGE_PLATFORM = "General"

# Greedy: spans from the first "[" to the last "]", across lines.
ARRAY_PATTERN = re.compile(r"\[.*\]", re.DOTALL)


@dataclass(frozen=True)
class SuggestionRecord:
    title: Any
    body: Any
    platform: Optional[Any] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SuggestionRecord":
        return cls(
            title=data.get("title"),
            body=data.get("body"),
            platform=data.get("platform"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"title": self.title, "body": self.body}
        if self.platform is not None:
            data["platform"] = self.platform
        return data


class ParseTier(str, Enum):
    EMBEDDED_ARRAY = "embedded_array"
    WHOLE_CONTENT = "whole_content"
    LINE_SALVAGE = "line_salvage"
    EMPTY = "empty"


@dataclass(frozen=True)
class ParseResult:
    tier: ParseTier
    records: List[SuggestionRecord] = field(default_factory=list)

    @property
    def structured(self) -> bool:
        return self.tier in (ParseTier.EMBEDDED_ARRAY, ParseTier.WHOLE_CONTENT)


def _load_records(text: str) -> Optional[List[SuggestionRecord]]:
    """Strictly parse ``text`` as a JSON array of objects or strings, or return None.

    A bare string item becomes an untitled record with the string as its body.
    """
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if not isinstance(data, list) or not all(
        isinstance(item, (dict, str)) for item in data
    ):
        return None
    return [
        SuggestionRecord.from_dict(item)
        if isinstance(item, dict)
        else SuggestionRecord(title=None, body=item)
        for item in data
    ]


def salvage_lines(raw: str) -> List[SuggestionRecord]:
    lines = [line for line in raw.split("\n") if line.strip()][:MAX_SALVAGED_LINES]
    return [
        SuggestionRecord(title=f"Tip {i + 1}", body=line, platform=SALVAGE_PLATFORM)
        for i, line in enumerate(lines)
    ]


def parse_suggestions(raw: str) -> ParseResult:
    match = ARRAY_PATTERN.search(raw)
    if match:
        records = _load_records(match.group(0))
        if records is not None:
            logger.debug("Parsed %d suggestion(s) from embedded array", len(records))
            return ParseResult(ParseTier.EMBEDDED_ARRAY, records)

    records = _load_records(raw)
    if records is not None:
        logger.debug("Parsed %d suggestion(s) from whole response", len(records))
        return ParseResult(ParseTier.WHOLE_CONTENT, records)

    records = salvage_lines(raw)
    logger.warning(
        "Model response was not a JSON array; salvaged %d line(s)", len(records)
    )
    if not records:
        return ParseResult(ParseTier.EMPTY)
    return ParseResult(ParseTier.LINE_SALVAGE, records)


def parse(raw: str) -> List[SuggestionRecord]:
    return parse_suggestions(raw).records
