"""
Tests for the preferences survey.
"""

import pytest

from preferences import QUESTIONS, QuestionKind, SurveyError, SurveyWizard

ANSWERS = [
    "Founding Engineer",
    "3-5 years (Mid-Level)",
    ["Remote", "New York City"],
    ["Series A (10-50 ppl) :: Finding product-market fit. Growing fast."],
    "$150k - $200k",
    "AI / LLMs",
]


class TestSurveyWizard:
    def test_question_order(self):
        assert [q.id for q in QUESTIONS] == [
            "targetRole",
            "yearsOfExperience",
            "targetLocations",
            "startupStage",
            "salaryExpectation",
            "preferredDomains",
        ]
        assert QUESTIONS[0].kind is QuestionKind.TEXT

    def test_full_run_compiles_preferences(self):
        wizard = SurveyWizard()
        results = [wizard.answer(answer) for answer in ANSWERS]

        assert results[:-1] == [None] * 5
        prefs = results[-1]
        assert wizard.is_finished
        assert wizard.result == prefs
        assert prefs.target_role == "Founding Engineer"
        assert prefs.years_of_experience == "3-5 years (Mid-Level)"
        assert prefs.target_locations == ["Remote", "New York City"]
        assert prefs.salary_expectation == "$150k - $200k"
        # single string for a multi-select is wrapped
        assert prefs.preferred_domains == ["AI / LLMs"]

    def test_progress(self):
        wizard = SurveyWizard()
        assert wizard.progress == 0
        wizard.answer("Data Scientist")
        assert wizard.progress == pytest.approx(100 / 6)
        assert wizard.step == 1
        assert wizard.current_question.id == "yearsOfExperience"

    def test_skip_yields_no_preferences(self):
        wizard = SurveyWizard()
        wizard.answer("Data Scientist")
        wizard.skip()

        assert wizard.is_finished
        assert wizard.result is None
        assert wizard.current_question is None

    def test_rejects_unknown_option(self):
        wizard = SurveyWizard()
        wizard.answer("Data Scientist")
        with pytest.raises(SurveyError):
            wizard.answer("40 years")
        assert wizard.step == 1

    def test_rejects_empty_text_and_selection(self):
        wizard = SurveyWizard()
        with pytest.raises(SurveyError):
            wizard.answer("   ")
        wizard.answer("Data Scientist")
        wizard.answer("0-2 years (Junior)")
        with pytest.raises(SurveyError):
            wizard.answer([])

    def test_no_answers_after_finish(self):
        wizard = SurveyWizard()
        for answer in ANSWERS:
            wizard.answer(answer)
        with pytest.raises(SurveyError):
            wizard.answer("again")
        with pytest.raises(SurveyError):
            wizard.skip()
