from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx

from .errors import ErrorKind, PipelineError

logger = logging.getLogger(__name__)

MAX_PROMPT_CHARS = 4000

SYSTEM_INSTRUCTION = "You are an expert social media strategist."

USER_PROMPT_TEMPLATE = """\
You are an expert social media strategist. Analyze the following content and provide 5 specific, actionable engagement improvement tips.

Content:
\"\"\"
{content}
\"\"\"

Provide your response as a JSON array with exactly 5 objects. Each object must have:
- "title": A short, catchy title (5-8 words)
- "body": A detailed explanation (2-3 sentences)
- "platform": Best platform for this tip (Instagram/LinkedIn/Twitter/Facebook/TikTok)

Respond ONLY with valid JSON, no other text."""


@dataclass(frozen=True)
class GenerationParameters:
    temperature: float = 0.7
    max_output_tokens: int = 1200


@dataclass(frozen=True)
class SuggestionRequest:
    system_instruction: str
    user_prompt: str
    parameters: GenerationParameters = field(default_factory=GenerationParameters)

    def messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_instruction},
            {"role": "user", "content": self.user_prompt},
        ]

    def to_payload(self, model: str) -> Dict:
        """Body of a chat-completion request for ``model``."""
        return {
            "model": model,
            "messages": self.messages(),
            "max_tokens": self.parameters.max_output_tokens,
            "temperature": self.parameters.temperature,
        }


def build_request(
    text: str,
    parameters: Optional[GenerationParameters] = None,
    max_chars: int = MAX_PROMPT_CHARS,
) -> SuggestionRequest:
    """Compose the prompt for ``text``, keeping only its first ``max_chars`` characters."""
    return SuggestionRequest(
        system_instruction=SYSTEM_INSTRUCTION,
        user_prompt=USER_PROMPT_TEMPLATE.format(content=text[:max_chars]),
        parameters=parameters or GenerationParameters(),
    )


class SuggestionClient:
    """Thin async wrapper around an OpenAI-style chat-completion endpoint."""

    def __init__(
        self,
        *,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self.model = model
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def send(self, request: SuggestionRequest, credential: Optional[str]) -> str:
        """Issue one request and return the raw assistant text.

        Raises:
            PipelineError: ``MissingCredential`` before any network activity when
                no credential is given, ``ServiceError`` for transport failures,
                timeouts and unsuccessful responses.
        """
        if not credential:
            raise PipelineError(
                ErrorKind.MISSING_CREDENTIAL,
                "API key not found. Set OPENAI_API_KEY in your environment.",
            )

        payload = request.to_payload(self.model)
        logger.info(
            "Requesting suggestions from %s (model=%s, prompt=%d chars)",
            self._base_url,
            self.model,
            len(request.user_prompt),
        )
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self._base_url}/chat/completions",
                    json=payload,
                    headers={"Authorization": f"Bearer {credential}"},
                )
        except httpx.HTTPError as exc:
            raise PipelineError(
                ErrorKind.SERVICE_ERROR, f"Text-generation request failed: {exc}"
            ) from exc

        if not response.is_success:
            raise PipelineError(ErrorKind.SERVICE_ERROR, _error_message(response))

        try:
            data = response.json()
        except ValueError as exc:
            raise PipelineError(
                ErrorKind.SERVICE_ERROR, "Invalid response from text-generation service"
            ) from exc
        return _message_content(data)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = {}
    error = data.get("error") if isinstance(data, dict) else None
    message = error.get("message") if isinstance(error, dict) else None
    if isinstance(message, str) and message:
        return message
    return "Text-generation request failed"


def _message_content(data: object) -> str:
    choices = data.get("choices") if isinstance(data, dict) else None
    if not isinstance(choices, list) or not choices:
        return ""
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) else ""
