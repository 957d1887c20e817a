"""
Core pipeline coordinating resume reasoning, company search, and result structuring.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

from data_models import (
    AnalysisResult,
    CareerAdvice,
    CompanyMatch,
    FilePayload,
    Preferences,
    TargetCompany,
    ThinkingProcess,
)
from llm_handler import GenerationBackend, GenerationError, GenerationRequest, parse_json_response
from prompts import (
    CRITIC_SYSTEM_PROMPT,
    MATCHER_SYSTEM_PROMPT,
    ROAST_PROMPT,
    build_improvement_prompt,
    build_reasoning_prompt,
    build_search_prompt,
    build_structuring_prompt,
)
from schemas import MATCH_RESULT_SCHEMA, ROAST_SCHEMA, THINKING_SCHEMA

LOGGER = logging.getLogger(__name__)

PHASE_SEARCHING = "searching"
PHASE_STRUCTURING = "structuring"
PIPELINE_PHASES = ("resume", "preferences", "intersection", "search", PHASE_SEARCHING, PHASE_STRUCTURING)


class ProgressSink(Protocol):
    def notify(self, phase: str, payload: str) -> None:
        ...


class NullSink:
    """Progress sink that ignores every event."""

    def notify(self, phase: str, payload: str) -> None:
        return None


class CallbackSink:
    """Adapts a plain ``callback(phase, payload)`` function to ProgressSink."""

    def __init__(self, callback: Callable[[str, str], None]) -> None:
        self._callback = callback

    def notify(self, phase: str, payload: str) -> None:
        self._callback(phase, payload)


def clamp_score(value: Any) -> float:
    """
    Coerce a model score to a float within [0, 100].

    Args:
        value: Raw score from the model response.

    Returns:
        The clamped score.

    Raises:
        GenerationError: If the value is not numeric.
    """
    try:
        score = float(value)
    except (TypeError, ValueError) as exc:
        raise GenerationError(f"Invalid score in model response: {value!r}") from exc
    return max(0.0, min(100.0, score))


def _company_matches(raw_matches: List[Dict[str, Any]]) -> List[CompanyMatch]:
    """Keep well-formed, distinct companies from the structuring response."""
    matches: List[CompanyMatch] = []
    seen = set()
    for raw in raw_matches:
        try:
            company = CompanyMatch.from_dict(raw)
        except (KeyError, ValueError, TypeError) as exc:
            LOGGER.warning("Dropping malformed company match %r: %s", raw.get("name") if isinstance(raw, dict) else raw, exc)
            continue
        key = company.name.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        matches.append(company)
    return matches


def _base_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    if "score" not in data:
        LOGGER.error("'score' field missing in LLM response! Response keys: %s", list(data.keys())[:10])
        raise GenerationError("Model response is missing a score.")
    grade = str(data.get("grade") or "").strip()
    if not grade:
        raise GenerationError("Model response is missing a grade.")
    return {
        "score": clamp_score(data["score"]),
        "grade": grade,
        "summary": str(data.get("summary") or ""),
        "markdown_content": str(data.get("markdownContent") or ""),
    }


def build_match_result(data: Dict[str, Any], thinking: Optional[ThinkingProcess]) -> AnalysisResult:
    """
    Turn the structuring-phase JSON into an AnalysisResult.

    Args:
        data: Parsed JSON object from the structuring call.
        thinking: Phase-one reasoning to attach to the result.

    Returns:
        Validated analysis result.
    """
    advice_data = data.get("careerAdvice")
    advice = None
    if isinstance(advice_data, dict):
        advice = CareerAdvice(
            current_level=str(advice_data.get("currentLevel") or ""),
            estimated_salary=str(advice_data.get("estimatedSalary") or ""),
            recommended_roles=[str(role) for role in advice_data.get("recommendedRoles") or []],
            reality_check=str(advice_data.get("realityCheck") or ""),
            company_matches=_company_matches(advice_data.get("companyMatches") or []),
        )
    return AnalysisResult(career_advice=advice, thinking=thinking, **_base_fields(data))


def _structure(builder: Callable[..., AnalysisResult], phase: str, *args: Any) -> AnalysisResult:
    """Run a result builder, reporting malformed model output as GenerationError."""
    try:
        return builder(*args)
    except (TypeError, ValueError, KeyError, AttributeError) as exc:
        LOGGER.error("Malformed %s response: %s", phase, exc)
        raise GenerationError(f"Model returned a malformed {phase} result: {exc}") from exc


def build_roast_result(data: Dict[str, Any]) -> AnalysisResult:
    """
    Turn the one-shot critique JSON into an AnalysisResult.

    Target companies without a name are skipped.
    """
    targets = [
        TargetCompany.from_dict(item)
        for item in data.get("targetCompanies") or []
        if isinstance(item, dict) and item.get("name")
    ]
    return AnalysisResult(target_companies=targets, **_base_fields(data))


class MatchPipeline:
    """Runs the reasoning, search and structuring phases against a backend."""

    def __init__(
        self,
        backend: GenerationBackend,
        reasoning_temperature: float = 0.4,
        search_temperature: float = 0.7,
        structuring_temperature: float = 0.2,
    ) -> None:
        self.backend = backend
        self.reasoning_temperature = reasoning_temperature
        self.search_temperature = search_temperature
        self.structuring_temperature = structuring_temperature

    @classmethod
    def from_settings(cls, backend: GenerationBackend, settings) -> "MatchPipeline":
        return cls(
            backend,
            reasoning_temperature=settings.reasoning_temperature,
            search_temperature=settings.search_temperature,
            structuring_temperature=settings.structuring_temperature,
        )

    def _call(self, request: GenerationRequest, phase: str) -> str:
        try:
            text = self.backend.generate(request)
        except GenerationError:
            raise
        except Exception as exc:
            LOGGER.error("Backend call failed during %s phase: %s", phase, exc)
            raise GenerationError(str(exc) or f"{phase} phase failed") from exc
        if not text or not text.strip():
            raise GenerationError(f"No response generated during the {phase} phase.")
        return text

    def run_reasoning(self, payload: FilePayload, preferences: Optional[Preferences]) -> ThinkingProcess:
        """Phase 1: schema-constrained reasoning over the resume and preferences."""
        text = self._call(
            GenerationRequest(
                prompt=build_reasoning_prompt(preferences),
                payload=payload,
                system_instruction=MATCHER_SYSTEM_PROMPT,
                response_schema=THINKING_SCHEMA,
                temperature=self.reasoning_temperature,
            ),
            "reasoning",
        )
        data = parse_json_response(text)
        try:
            return ThinkingProcess.from_dict(data)
        except (KeyError, TypeError) as exc:
            LOGGER.error("Reasoning response missing section: %s", exc)
            raise GenerationError(f"Reasoning response is missing {exc}.") from exc

    def run_search(self, thinking: ThinkingProcess, preferences: Optional[Preferences]) -> str:
        """Phase 2: search-grounded free-text company research."""
        return self._call(
            GenerationRequest(
                prompt=build_search_prompt(thinking, preferences),
                system_instruction=MATCHER_SYSTEM_PROMPT,
                use_search=True,
                temperature=self.search_temperature,
            ),
            "search",
        )

    def run_structuring(self, thinking: ThinkingProcess, search_text: str) -> AnalysisResult:
        """Phase 3: schema-constrained conversion into the final result."""
        text = self._call(
            GenerationRequest(
                prompt=build_structuring_prompt(thinking, search_text),
                system_instruction=MATCHER_SYSTEM_PROMPT,
                response_schema=MATCH_RESULT_SCHEMA,
                temperature=self.structuring_temperature,
            ),
            "structuring",
        )
        return _structure(build_match_result, "structuring", parse_json_response(text), thinking)

    def generate_match(
        self,
        payload: FilePayload,
        preferences: Optional[Preferences],
        sink: Optional[ProgressSink] = None,
    ) -> AnalysisResult:
        """
        Execute the three-phase matching pipeline.

        Phases run strictly in sequence. Any failure aborts the whole run;
        nothing is retried.

        Args:
            payload: Encoded resume file.
            preferences: Survey answers, or None when the survey was skipped.
            sink: Receives progress notifications between phases.

        Returns:
            Analysis result with company matches and the reasoning attached.

        Raises:
            GenerationError: If any phase fails or returns unparseable content.
        """
        sink = sink or NullSink()
        LOGGER.info("Starting match pipeline for %s", payload.original_name)

        thinking = self.run_reasoning(payload, preferences)
        for phase, step in thinking.steps():
            sink.notify(phase, step.content)

        sink.notify(PHASE_SEARCHING, "Searching the web for matching startups...")
        search_text = self.run_search(thinking, preferences)
        LOGGER.info("Search phase returned %d chars", len(search_text))

        sink.notify(PHASE_STRUCTURING, "Structuring company matches...")
        result = self.run_structuring(thinking, search_text)

        LOGGER.info(
            "Match pipeline finished: score=%.1f grade=%s companies=%d",
            result.score,
            result.grade,
            len(result.company_matches),
        )
        return result

    def generate_roast(self, payload: FilePayload) -> AnalysisResult:
        """Single-call critique without reasoning, search or tiers."""
        LOGGER.info("Starting one-shot critique for %s", payload.original_name)
        text = self._call(
            GenerationRequest(
                prompt=ROAST_PROMPT,
                payload=payload,
                system_instruction=CRITIC_SYSTEM_PROMPT,
                response_schema=ROAST_SCHEMA,
                temperature=0.7,
            ),
            "critique",
        )
        return _structure(build_roast_result, "critique", parse_json_response(text))

    def generate_improvement(self, payload: FilePayload, previous_critique: Optional[str] = None) -> str:
        """
        Rewrite the resume in FIX_MODE.

        Args:
            payload: Encoded resume file.
            previous_critique: Markdown critique to build on, if available.

        Returns:
            Markdown with the rewritten resume and a change summary.
        """
        LOGGER.info("Generating improved resume for %s", payload.original_name)
        return self._call(
            GenerationRequest(
                prompt=build_improvement_prompt(previous_critique),
                payload=payload,
                system_instruction=CRITIC_SYSTEM_PROMPT,
                temperature=0.3,
            ),
            "improvement",
        ).strip()
