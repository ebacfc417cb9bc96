"""
Text generation configuration with strong typing.
Request parameters for the Generative Language ``generateContent`` call.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TextModel(str, Enum):
    """Known model variants."""

    GEMMA_3_27B = "gemma-3-27b-it"  # Default: free tier, good enough for short summaries
    GEMINI_FLASH = "gemini-2.0-flash"


class GenerationConfig(BaseModel):
    """Type-safe generation parameters."""

    model_config = ConfigDict(frozen=True)  # Immutable for thread safety

    model_name: str = Field(default=TextModel.GEMMA_3_27B.value)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=1000, ge=1, le=8192)
    top_p: float = Field(default=0.95, ge=0.0, le=1.0)

    def to_request(self) -> dict[str, Any]:
        """The ``generationConfig`` block of a request body."""
        return {
            "temperature": self.temperature,
            "maxOutputTokens": self.max_output_tokens,
            "topP": self.top_p,
        }

    def request_body(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": self.to_request(),
        }
