"""
Tests for JSON export and the HTML summary.
"""

import json

from conftest import make_match_response, make_thinking
from data_models import AnalysisResult, TargetCompany, ThinkingProcess
from matcher import build_match_result
from reporting import write_analysis_json, write_html_summary


def sample_result():
    return build_match_result(make_match_response(), ThinkingProcess.from_dict(make_thinking()))


class TestReporting:
    def test_json_export(self, tmp_path):
        result = sample_result()
        path = tmp_path / "out" / "analysis.json"

        write_analysis_json(result, path)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["grade"] == "B-"
        assert AnalysisResult.from_dict(data) == result

    def test_html_groups_by_tier(self, tmp_path):
        path = tmp_path / "summary.html"

        write_html_summary(sample_result(), path, "resume.pdf")

        html = path.read_text(encoding="utf-8")
        assert "Resume Verdict: resume.pdf" in html
        assert "Reach (5)" in html
        assert "Safety (4)" in html
        assert "https://target-labs-0.com/careers" in html
        assert "Mid-Level" in html
        assert "How We Got Here" in html

    def test_html_escapes_model_text(self, tmp_path):
        result = AnalysisResult(
            score=10,
            grade="F",
            summary="<script>alert(1)</script>",
            markdown_content="# Roast",
            target_companies=[TargetCompany("Acme & Co", "acme.com", "Fits")],
        )
        path = tmp_path / "summary.html"

        write_html_summary(result, path)

        html = path.read_text(encoding="utf-8")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "Acme &amp; Co" in html
        assert "Reach (" not in html
