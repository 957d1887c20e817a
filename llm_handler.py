"""
LLM client wrapper for the generation backend (Google Gemini).
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

import google.generativeai as genai
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from data_models import FilePayload

LOGGER = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.S)


class GenerationError(RuntimeError):
    """Raised when a backend call fails or returns unusable content."""


@dataclass(frozen=True)
class GenerationRequest:
    """A single call to the generation backend."""

    prompt: str
    payload: Optional[FilePayload] = None
    system_instruction: Optional[str] = None
    response_schema: Optional[Dict[str, Any]] = None
    use_search: bool = False
    temperature: Optional[float] = None


class GenerationBackend(Protocol):
    def generate(self, request: GenerationRequest) -> str:
        """Return the model text for ``request`` or raise GenerationError."""
        ...


def strip_code_fences(text: str) -> str:
    """Remove a markdown code fence wrapped around a model response."""
    text = text.strip()
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def parse_json_response(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object out of a model response.

    Args:
        text: Raw model text, possibly wrapped in a ```json fence.

    Returns:
        The decoded JSON object.

    Raises:
        GenerationError: If the text is not a JSON object.
    """
    cleaned = strip_code_fences(text)
    if not cleaned.startswith("{"):
        match = re.search(r"\{.*\}", cleaned, re.S)
        if not match:
            LOGGER.warning("No JSON found in LLM response (first 200 chars): %s", cleaned[:200])
            raise GenerationError("Model response did not contain JSON.")
        cleaned = match.group(0)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        LOGGER.error("Failed to parse JSON from LLM response: %s. Response text (first 200 chars): %s", exc, cleaned[:200])
        raise GenerationError("Model response was not valid JSON.") from exc

    if not isinstance(data, dict):
        raise GenerationError("Model response JSON was not an object.")
    LOGGER.debug("Parsed JSON data (keys: %s)", list(data.keys())[:10])
    return data


class GeminiClient:
    """Wrapper around the Google Gemini API implementing GenerationBackend."""

    def __init__(
        self,
        api_key: str,
        model_name: str,
        fallback_models: Sequence[str] = (),
        search_tool: str = "google_search_retrieval",
    ) -> None:
        """
        Initialize the Gemini client.

        Args:
            api_key: Google Gemini API key.
            model_name: Name of the preferred Gemini model.
            fallback_models: Models to try when the preferred one is unavailable.
            search_tool: Tool name enabling search-grounded generation.
        """
        if not api_key:
            raise ValueError("Gemini API key is required")
        genai.configure(api_key=api_key)
        self._model_name = model_name
        self._fallback_models = list(fallback_models)
        self._search_tool = search_tool
        self._generation_config: Dict[str, Any] = {
            "temperature": 0.4,
            "top_p": 0.95,
            "candidate_count": 1,
        }
        self._safety_settings = self._build_safety_settings()
        self._initialize_model()
        LOGGER.info("Gemini client initialized with model %s", self._model_name)

    @classmethod
    def from_settings(cls, settings) -> "GeminiClient":
        """
        Build a client from application settings.

        Args:
            settings: Settings carrying the API key, model names and search tool.

        Returns:
            Configured GeminiClient.
        """
        return cls(
            settings.gemini_api_key,
            settings.gemini_model,
            fallback_models=settings.fallback_models,
            search_tool=settings.search_tool,
        )

    @property
    def model_name(self) -> str:
        return self._model_name

    @staticmethod
    def _build_safety_settings() -> Dict[Any, Any]:
        categories = [
            HarmCategory.HARM_CATEGORY_HARASSMENT,
            HarmCategory.HARM_CATEGORY_HATE_SPEECH,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
        ]
        return {category: HarmBlockThreshold.BLOCK_ONLY_HIGH for category in categories}

    def _initialize_model(self) -> None:
        """Pick the first preferred model that supports generateContent."""
        preferred = [self._model_name, *self._fallback_models]
        preferred = [m for i, m in enumerate(preferred) if m and m not in preferred[:i]]

        try:
            models = list(genai.list_models())
            LOGGER.debug("Gemini list_models returned %d models", len(models))
        except Exception as exc:
            LOGGER.debug("Gemini list_models unavailable: %s", str(exc)[:100])
            return

        available = set()
        for model in models:
            methods = getattr(model, "supported_generation_methods", None) or []
            if any(str(method).lower() in {"generatecontent", "generate_content"} for method in methods):
                name = getattr(model, "name", "")
                available.add(name)
                available.add(name.split("/", 1)[-1])

        for choice in preferred:
            if choice in available:
                self._model_name = choice
                return

        # Last resort: any generateContent model, flash before pro
        candidates = sorted(
            (name for name in available if "/" not in name),
            key=lambda n: (
                0 if "flash-latest" in n else
                1 if "flash" in n else
                2 if "1.5-pro" in n else
                3 if "pro" in n else
                9,
                n,
            ),
        )
        if candidates:
            LOGGER.warning("None of %s available; falling back to %s", preferred, candidates[0])
            self._model_name = candidates[0]
            return
        raise RuntimeError(f"No supported Gemini model found among {preferred}")

    def _build_contents(self, request: GenerationRequest) -> List[Any]:
        parts: List[Any] = []
        if request.payload is not None:
            parts.append({"mime_type": request.payload.mime_type, "data": request.payload.raw_bytes()})
        parts.append(request.prompt)
        return parts

    def _build_generation_config(self, request: GenerationRequest) -> Dict[str, Any]:
        config = dict(self._generation_config)
        if request.temperature is not None:
            config["temperature"] = request.temperature
        if request.response_schema is not None:
            config["response_mime_type"] = "application/json"
            config["response_schema"] = request.response_schema
        return config

    @staticmethod
    def _extract_text(response: Any) -> str:
        """Pull the text out of a generate_content response."""
        try:
            return (response.text or "").strip()
        except ValueError:
            # Raised by the SDK when the candidate was blocked or has no parts.
            candidates = getattr(response, "candidates", None) or []
            if candidates and candidates[0].content.parts:
                return (candidates[0].content.parts[0].text or "").strip()
            feedback = getattr(response, "prompt_feedback", None)
            raise GenerationError(f"Gemini returned no usable candidate: {feedback}") from None

    def generate(self, request: GenerationRequest) -> str:
        """
        Send one request to Gemini.

        Args:
            request: Prompt, optional file payload and call mode.

        Returns:
            The stripped response text.

        Raises:
            GenerationError: On any SDK error or empty response.
        """
        if request.use_search and request.response_schema is not None:
            raise GenerationError("Schema-constrained output cannot be combined with search grounding.")

        model = genai.GenerativeModel(
            self._model_name,
            system_instruction=request.system_instruction,
            safety_settings=self._safety_settings,
        )
        kwargs: Dict[str, Any] = {"generation_config": self._build_generation_config(request)}
        if request.use_search:
            kwargs["tools"] = self._search_tool

        LOGGER.debug(
            "Gemini request: model=%s schema=%s search=%s file=%s",
            self._model_name,
            request.response_schema is not None,
            request.use_search,
            request.payload.original_name if request.payload else None,
        )
        try:
            response = model.generate_content(self._build_contents(request), **kwargs)
        except Exception as exc:
            LOGGER.error("Gemini generation failed: %s", exc)
            raise GenerationError(f"Gemini request failed: {exc}") from exc

        text = self._extract_text(response)
        if not text:
            LOGGER.warning("Empty response from Gemini")
            raise GenerationError("No response generated from the model.")

        LOGGER.debug("Raw LLM response (first 200 chars): %s", text[:200])
        return text
