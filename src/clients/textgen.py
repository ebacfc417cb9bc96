"""Generative Language API client (``generateContent``)."""

from core import get_logger
from core.errors import ConfigMissing, MalformedUpstreamResponse, UpstreamParseFailed
from models import GenerationConfig

from .base import ProviderClient

logger = get_logger(__name__)


class TextGenerationClient(ProviderClient):
    """
    Single-shot text generation over plain HTTP.

    The API key travels in the URL query string, as the API expects.
    """

    provider = "textgen"

    def __init__(
        self,
        api_key: str,
        config: GenerationConfig | None = None,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self.config = config or GenerationConfig()
        self.base_url = base_url.rstrip("/")

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.config.model_name}:generateContent"

    def generate(self, prompt: str) -> str:
        """
        Generate text for a prompt.

        Returns:
            The first candidate's first text part

        Raises:
            ConfigMissing: No API key configured
            UpstreamRequestFailed: Transport failure or non-2xx status
            UpstreamParseFailed: The body is not the expected JSON shape
            MalformedUpstreamResponse: No candidates or no text parts
        """
        if not self.api_key:
            raise ConfigMissing("GOOGLE_AISTUDIO_API_KEY is not set")

        response = self._request(
            "POST",
            self.url,
            params={"key": self.api_key},
            json=self.config.request_body(prompt),
        )
        body = self._json(response)
        text = extract_text(body)

        logger.info("text_generated", model=self.config.model_name, chars=len(text))
        return text


def extract_text(body: object) -> str:
    """Pull ``candidates[0].content.parts[0].text`` out of a response body."""
    if not isinstance(body, dict):
        raise UpstreamParseFailed(f"Expected a JSON object, got {type(body).__name__}")

    candidates = body.get("candidates")
    if candidates is not None and not isinstance(candidates, list):
        raise UpstreamParseFailed("Field 'candidates' is not a list")
    if not candidates:
        raise MalformedUpstreamResponse("No candidates in response")

    try:
        parts = candidates[0]["content"].get("parts") or []
    except (KeyError, TypeError, AttributeError) as e:
        raise UpstreamParseFailed(f"Candidate has no content: {e}") from e
    if not isinstance(parts, list):
        raise UpstreamParseFailed("Field 'parts' is not a list")
    if not parts:
        raise MalformedUpstreamResponse("No parts in content")

    first = parts[0]
    if not isinstance(first, dict) or "text" not in first:
        raise MalformedUpstreamResponse("No text in first content part")
    if not isinstance(first["text"], str):
        raise UpstreamParseFailed("Field 'text' is not a string")
    return first["text"]
