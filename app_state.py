"""
Session controller driving the linear UI state machine.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from data_models import AnalysisResult, CompanyMatch, FilePayload, HistoryRecord, Preferences
from llm_handler import GenerationError
from local_store import KeyValueStore
from matcher import MatchPipeline
from persistence import HistoryGateway
from preferences import SurveyWizard
from resume_loader import FileReadError, FileValidationError, load_resume_file

LOGGER = logging.getLogger(__name__)

HISTORY_KEY = "matchHistory"
COUNT_KEY = "userMatchCount"
THEME_KEY = "theme"
LOCAL_HISTORY_LIMIT = 10


class AppState(str, Enum):
    IDLE = "IDLE"
    SURVEY = "SURVEY"
    ANALYZING = "ANALYZING"
    COMPLETE = "COMPLETE"
    FIXING = "FIXING"
    FIX_COMPLETE = "FIX_COMPLETE"
    ERROR = "ERROR"


TRANSITIONS: Dict[AppState, Tuple[AppState, ...]] = {
    AppState.IDLE: (AppState.SURVEY, AppState.ANALYZING, AppState.COMPLETE),
    AppState.SURVEY: (AppState.ANALYZING,),
    AppState.ANALYZING: (AppState.COMPLETE, AppState.ERROR),
    AppState.COMPLETE: (AppState.FIXING,),
    AppState.FIXING: (AppState.FIX_COMPLETE, AppState.ERROR),
    AppState.FIX_COMPLETE: (),
    AppState.ERROR: (),
}


class StateTransitionError(RuntimeError):
    """Raised when an action is not allowed in the current state."""


@dataclass(frozen=True)
class ThinkingEntry:
    phase: str
    content: str


@dataclass(frozen=True)
class SwipeDecision:
    company: CompanyMatch
    liked: bool


class MatchSession:
    """
    Holds the state of one user session.

    Generation and validation failures are surfaced through ``state`` and
    ``error``. Persistence failures never are: history falls back to the
    local key-value store.
    """

    def __init__(
        self,
        pipeline: Optional[MatchPipeline],
        store: KeyValueStore,
        gateway: Optional[HistoryGateway] = None,
        user_id: Optional[str] = None,
        local_history_limit: int = LOCAL_HISTORY_LIMIT,
        on_thinking: Optional[Callable[[ThinkingEntry], None]] = None,
    ) -> None:
        self.pipeline = pipeline
        self.store = store
        self.gateway = gateway
        self.user_id = user_id
        self.local_history_limit = local_history_limit
        self.on_thinking = on_thinking

        self.state = AppState.IDLE
        self.error: Optional[str] = None
        self.current_file: Optional[FilePayload] = None
        self.preferences: Optional[Preferences] = None
        self.survey: Optional[SurveyWizard] = None
        self.result: Optional[AnalysisResult] = None
        self.improved_markdown: Optional[str] = None
        self.thinking: List[ThinkingEntry] = []
        self.swipes: List[SwipeDecision] = []
        self.history: List[HistoryRecord] = []
        self.match_count = 0

    # ------------------------------------------------------------------
    # State machine

    def _transition(self, target: AppState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise StateTransitionError(f"Cannot move from {self.state.value} to {target.value}")
        LOGGER.debug("State %s -> %s", self.state.value, target.value)
        self.state = target

    def _fail(self, message: str) -> None:
        self._transition(AppState.ERROR)
        self.error = message
        LOGGER.error("Session error: %s", message)

    def reset(self) -> None:
        """Return to IDLE from any state, dropping the current run."""
        self.state = AppState.IDLE
        self.error = None
        self.current_file = None
        self.preferences = None
        self.survey = None
        self.result = None
        self.improved_markdown = None
        self.thinking = []
        self.swipes = []

    # ------------------------------------------------------------------
    # Upload and survey

    def select_file(self, path: Path) -> bool:
        """
        Validate and encode a file; the session stays IDLE either way.

        Returns:
            True when the file was accepted.
        """
        if self.state is not AppState.IDLE:
            raise StateTransitionError("A file can only be selected from IDLE")
        self.error = None
        try:
            self.current_file = load_resume_file(path)
        except (FileValidationError, FileReadError) as exc:
            self.current_file = None
            self.error = str(exc)
            return False
        return True

    def start_survey(self) -> SurveyWizard:
        """
        Move from IDLE to SURVEY.

        Returns:
            A fresh wizard; pass its result to ``submit_preferences``.

        Raises:
            StateTransitionError: If no file is selected or a run is in progress.
        """
        if self.current_file is None:
            raise StateTransitionError("Select a file before starting the survey")
        self._transition(AppState.SURVEY)
        self.survey = SurveyWizard()
        return self.survey

    def submit_preferences(self, preferences: Optional[Preferences]) -> Optional[AnalysisResult]:
        """Finish the survey (None means skipped) and run the analysis."""
        if self.state is not AppState.SURVEY:
            raise StateTransitionError("No survey in progress")
        self.preferences = preferences
        return self._run(lambda payload, sink: self.pipeline.generate_match(payload, preferences, sink))

    # ------------------------------------------------------------------
    # Generation

    def notify(self, phase: str, payload: str) -> None:
        """ProgressSink hook: record a thinking entry and forward it to ``on_thinking``."""
        entry = ThinkingEntry(phase, payload)
        self.thinking.append(entry)
        if self.on_thinking:
            self.on_thinking(entry)

    def analyze(self) -> Optional[AnalysisResult]:
        """Run the three-phase pipeline without preferences."""
        return self._run(lambda payload, sink: self.pipeline.generate_match(payload, self.preferences, sink))

    def roast(self) -> Optional[AnalysisResult]:
        """Run the one-shot critique instead of the matching pipeline."""
        return self._run(lambda payload, sink: self.pipeline.generate_roast(payload))

    def _run(self, generate) -> Optional[AnalysisResult]:
        if self.pipeline is None:
            raise StateTransitionError("Generation is not configured for this session")
        if self.current_file is None:
            raise StateTransitionError("No file selected")
        self._transition(AppState.ANALYZING)
        self.error = None
        self.thinking = []
        try:
            result = generate(self.current_file, self)
        except GenerationError as exc:
            self._fail(str(exc) or "Unable to analyze document.")
            return None

        self.result = result
        self._transition(AppState.COMPLETE)
        self.add_to_history(self.current_file, result)
        return result

    def fix_resume(self) -> Optional[str]:
        """Rewrite the current resume using the critique as context."""
        if self.current_file is None or self.result is None:
            self.error = "Cannot fix resume from history. Please re-upload the file."
            return None
        if self.pipeline is None:
            raise StateTransitionError("Generation is not configured for this session")
        self._transition(AppState.FIXING)
        self.error = None
        try:
            markdown = self.pipeline.generate_improvement(self.current_file, self.result.markdown_content)
        except GenerationError as exc:
            self._fail(str(exc) or "Unable to fix resume.")
            return None
        self.improved_markdown = markdown
        self._transition(AppState.FIX_COMPLETE)
        return markdown

    # ------------------------------------------------------------------
    # Result interactions

    def swipe(self, company: CompanyMatch, liked: bool) -> Optional[str]:
        """
        Record a like/dislike for a matched company.

        Returns:
            The careers page URL for a liked company, otherwise None.
        """
        self.swipes.append(SwipeDecision(company, liked))
        LOGGER.info("Company %s marked %s", company.name, "liked" if liked else "disliked")
        return company.careers_url() if liked else None

    @property
    def liked_companies(self) -> List[CompanyMatch]:
        return [decision.company for decision in self.swipes if decision.liked]

    def toggle_theme(self) -> str:
        theme = "light" if self.store.get(THEME_KEY) == "dark" else "dark"
        self.store.set(THEME_KEY, theme)
        return theme

    @property
    def theme(self) -> str:
        return self.store.get(THEME_KEY) or "light"

    # ------------------------------------------------------------------
    # History

    def _local_history(self) -> List[HistoryRecord]:
        raw = self.store.get(HISTORY_KEY)
        if not raw:
            return []
        try:
            return [HistoryRecord.from_dict(item) for item in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as exc:
            LOGGER.error("Failed to parse local history: %s", exc)
            return []

    def _save_local(self, payload: FilePayload, result: AnalysisResult) -> HistoryRecord:
        """Prepend a record to the capped local history; ids stay unique within it."""
        now = int(time.time() * 1000)
        taken = {item.id for item in self.history}
        record_id, suffix = str(now), 1
        while record_id in taken:
            record_id = f"{now}-{suffix}"
            suffix += 1
        record = HistoryRecord(
            id=record_id,
            timestamp=now,
            file_name=payload.original_name,
            analysis=result,
            resume=payload,
        )
        self.history = [record, *self.history][: self.local_history_limit]
        self.store.set(HISTORY_KEY, json.dumps([item.to_dict() for item in self.history]))
        self.match_count += 1
        self.store.set(COUNT_KEY, str(self.match_count))
        return record

    def add_to_history(self, payload: FilePayload, result: AnalysisResult) -> HistoryRecord:
        """Save to the database when possible, otherwise to the local store."""
        record = self.gateway.save(payload, result, self.user_id) if self.gateway else None
        if record is None:
            LOGGER.warning("Database save unavailable; keeping %s in local history", payload.original_name)
            return self._save_local(payload, result)

        self.history = [record, *self.history]
        self.match_count = self.gateway.count(self.user_id)
        return record

    def load_history(self) -> List[HistoryRecord]:
        """
        Load saved analyses, preferring the database over the local store.

        Returns:
            Records newest first. ``match_count`` is refreshed as a side effect.
        """
        records: List[HistoryRecord] = []
        if self.gateway:
            records = self.gateway.list(self.user_id)
            if records:
                self.history = records
                self.match_count = self.gateway.count(self.user_id)
                return records

        self.history = self._local_history()
        stored_count = self.store.get(COUNT_KEY)
        self.match_count = int(stored_count) if stored_count and stored_count.isdigit() else len(self.history)
        return self.history

    def clear_history(self) -> None:
        """Delete saved analyses in the database (when available) and locally."""
        if self.gateway and not self.gateway.clear_all(self.user_id):
            LOGGER.warning("Database clear failed; clearing local history only")
        self.history = []
        self.match_count = 0
        self.store.remove(HISTORY_KEY)
        self.store.remove(COUNT_KEY)

    def select_history(self, record: HistoryRecord) -> None:
        """Show a saved result; the fix action needs the stored resume."""
        self.reset()
        self.result = record.analysis
        self.current_file = record.resume
        self._transition(AppState.COMPLETE)
