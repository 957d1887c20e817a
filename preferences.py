"""
Linear preferences survey that feeds the matching pipeline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

from data_models import Preferences

LOGGER = logging.getLogger(__name__)

Answer = Union[str, Sequence[str]]


class QuestionKind(str, Enum):
    TEXT = "text"
    SELECT = "select"
    MULTI_SELECT = "multi-select"


@dataclass(frozen=True)
class Question:
    id: str
    title: str
    kind: QuestionKind
    options: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    placeholder: str = ""


COMMON_ROLES = [
    "Founding Engineer",
    "Full Stack Engineer",
    "Frontend Engineer",
    "Backend Engineer",
    "Product Engineer",
    "Machine Learning Engineer",
    "AI Engineer",
    "DevOps Engineer",
    "Product Manager",
    "Product Designer",
    "Growth Marketer",
    "Sales Development Rep",
    "Account Executive",
    "Chief of Staff",
    "Data Scientist",
    "Solutions Engineer",
]

QUESTIONS: List[Question] = [
    Question(
        id="targetRole",
        title="What role are you targeting next?",
        kind=QuestionKind.TEXT,
        suggestions=COMMON_ROLES,
        placeholder="e.g. Founding Engineer, Product Manager",
    ),
    Question(
        id="yearsOfExperience",
        title="How many years of professional experience?",
        kind=QuestionKind.SELECT,
        options=[
            "0-2 years (Junior)",
            "3-5 years (Mid-Level)",
            "5-8 years (Senior)",
            "8-12 years (Staff)",
            "12+ years (Lead/Exec)",
        ],
    ),
    Question(
        id="targetLocations",
        title="Where are you hunting? (Select hubs)",
        kind=QuestionKind.MULTI_SELECT,
        options=[
            "San Francisco / Bay Area",
            "New York City",
            "London",
            "Remote",
            "Austin",
            "Los Angeles",
            "Seattle",
            "Boston",
        ],
    ),
    Question(
        id="startupStage",
        title="What's your risk appetite?",
        kind=QuestionKind.MULTI_SELECT,
        options=[
            "Seed (1-10 ppl) :: Chaos mode. High equity. Building from scratch.",
            "Series A (10-50 ppl) :: Finding product-market fit. Growing fast.",
            "Series B+ (50+ ppl) :: Scaling up. More stability, less equity.",
            "Big Tech / Public :: Safety blanket. High salary, low risk.",
        ],
    ),
    Question(
        id="salaryExpectation",
        title="What is your base salary expectation?",
        kind=QuestionKind.SELECT,
        options=["Under $100k", "$100k - $150k", "$150k - $200k", "$200k+", "Open / Equity heavy"],
    ),
    Question(
        id="preferredDomains",
        title="Which spaces excite you?",
        kind=QuestionKind.MULTI_SELECT,
        options=[
            "AI / LLMs",
            "Fintech",
            "Crypto / Web3",
            "B2B SaaS",
            "Consumer",
            "Climate Tech",
            "Health / Bio",
            "Hard Tech / Hardware",
        ],
    ),
]


class SurveyError(ValueError):
    """Raised for an invalid answer or an answer after the survey ended."""


class SurveyWizard:
    """
    Forward-only questionnaire.

    The wizard ends either with ``Preferences`` (every question answered) or
    with ``None`` (skipped). There is no backward navigation.
    """

    def __init__(self, questions: Sequence[Question] = QUESTIONS) -> None:
        self._questions = list(questions)
        self._answers: Dict[str, Answer] = {}
        self._step = 0
        self._finished = False
        self.result: Optional[Preferences] = None

    @property
    def step(self) -> int:
        return self._step

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def progress(self) -> float:
        """Percentage of answered questions."""
        return self._step / len(self._questions) * 100

    @property
    def current_question(self) -> Optional[Question]:
        if self._finished:
            return None
        return self._questions[self._step]

    def answer(self, value: Answer) -> Optional[Preferences]:
        """
        Record the answer to the current question and advance.

        Args:
            value: Free text for TEXT questions, one option for SELECT,
                a list of options for MULTI_SELECT.

        Returns:
            The completed Preferences after the last question, otherwise None.

        Raises:
            SurveyError: If the survey already ended or the answer is invalid.
        """
        question = self.current_question
        if question is None:
            raise SurveyError("Survey already finished")

        self._answers[question.id] = self._normalize(question, value)
        self._step += 1
        if self._step < len(self._questions):
            return None

        self._finished = True
        self.result = self._compile()
        LOGGER.info("Survey completed for role %s", self.result.target_role)
        return self.result

    def skip(self) -> None:
        """End the survey without preferences."""
        if self._finished:
            raise SurveyError("Survey already finished")
        self._finished = True
        self.result = None
        LOGGER.info("Survey skipped at step %d", self._step)

    @staticmethod
    def _normalize(question: Question, value: Answer) -> Answer:
        if question.kind is QuestionKind.TEXT:
            text = str(value).strip()
            if not text:
                raise SurveyError(f"'{question.title}' requires an answer")
            return text

        if question.kind is QuestionKind.SELECT:
            if value not in question.options:
                raise SurveyError(f"'{value}' is not an option for '{question.title}'")
            return str(value)

        if isinstance(value, str):
            value = [value]
        selected = list(value)
        if not selected:
            raise SurveyError(f"'{question.title}' requires at least one selection")
        unknown = [item for item in selected if item not in question.options]
        if unknown:
            raise SurveyError(f"Unknown options for '{question.title}': {', '.join(unknown)}")
        return selected

    def _compile(self) -> Preferences:
        answers = self._answers
        return Preferences(
            target_role=str(answers.get("targetRole") or "Any"),
            years_of_experience=str(answers.get("yearsOfExperience") or "Not specified"),
            target_locations=list(answers.get("targetLocations") or []),
            startup_stage=list(answers.get("startupStage") or []),
            salary_expectation=str(answers.get("salaryExpectation") or "Open"),
            preferred_domains=list(answers.get("preferredDomains") or []),
        )
