"""
Extract text from PDF, plain text and Markdown files and turn it into
structured social media engagement suggestions via a chat-completion model.
"""

from .document import SourceDocument
from .errors import ErrorKind, PipelineError
from .pipeline import PipelineResult, PipelineState, SuggestionPipeline
from .response_parser import SuggestionRecord, parse_suggestions

__all__ = [
    "ErrorKind",
    "PipelineError",
    "PipelineResult",
    "PipelineState",
    "SourceDocument",
    "SuggestionPipeline",
    "SuggestionRecord",
    "parse_suggestions",
]
