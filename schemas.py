"""
Response schemas sent to Gemini for schema-constrained calls.

These describe the wire shape only. The domain types in ``data_models``
are built from the parsed JSON and never generated from these dictionaries.
"""

from __future__ import annotations

from typing import Any, Dict, List

from data_models import Tier

Schema = Dict[str, Any]


def _string(description: str = "") -> Schema:
    schema: Schema = {"type": "STRING"}
    if description:
        schema["description"] = description
    return schema


def _string_list(description: str = "") -> Schema:
    schema: Schema = {"type": "ARRAY", "items": {"type": "STRING"}}
    if description:
        schema["description"] = description
    return schema


def _object(properties: Dict[str, Schema], required: List[str]) -> Schema:
    return {"type": "OBJECT", "properties": properties, "required": required}


REASONING_STEP_SCHEMA = _object(
    {
        "title": _string("Short heading for this step"),
        "content": _string("Free-text reasoning"),
        "insights": _string_list("3-5 short bullet insights"),
    },
    ["title", "content", "insights"],
)

THINKING_SCHEMA = _object(
    {
        "resumeAnalysis": REASONING_STEP_SCHEMA,
        "preferencesAnalysis": REASONING_STEP_SCHEMA,
        "intersectionAnalysis": REASONING_STEP_SCHEMA,
        "searchStrategy": REASONING_STEP_SCHEMA,
    },
    ["resumeAnalysis", "preferencesAnalysis", "intersectionAnalysis", "searchStrategy"],
)

COMPANY_MATCH_SCHEMA = _object(
    {
        "name": _string(),
        "domain": _string("Primary web domain, e.g. example.com"),
        "tier": {"type": "STRING", "format": "enum", "enum": [tier.value for tier in Tier]},
        "reason": _string("Why this company fits the candidate"),
        "description": _string("One-line description"),
        "location": _string(),
        "funding": _string("Funding stage"),
        "employeeCount": _string(),
        "industry": _string(),
        "foundedYear": _string(),
        "techStack": _string_list(),
        "investors": _string_list(),
        "hiringRoles": _string_list(),
        "matchScore": {"type": "NUMBER", "description": "Fit from 0 to 100"},
    },
    ["name", "domain", "tier", "reason"],
)

CAREER_ADVICE_SCHEMA = _object(
    {
        "currentLevel": _string(),
        "estimatedSalary": _string(),
        "recommendedRoles": _string_list(),
        "realityCheck": _string(),
        "companyMatches": {"type": "ARRAY", "items": COMPANY_MATCH_SCHEMA},
    },
    ["currentLevel", "estimatedSalary", "recommendedRoles", "realityCheck", "companyMatches"],
)

_SCORE = {"type": "NUMBER", "description": "Overall resume score from 0 to 100"}
_GRADE = _string("Letter grade such as A, B+ or C-")

MATCH_RESULT_SCHEMA = _object(
    {
        "score": _SCORE,
        "grade": _GRADE,
        "summary": _string("One or two sentence verdict"),
        "markdownContent": _string("Markdown summary of the analysis"),
        "careerAdvice": CAREER_ADVICE_SCHEMA,
    },
    ["score", "grade", "summary", "markdownContent", "careerAdvice"],
)

ROAST_SCHEMA = _object(
    {
        "score": _SCORE,
        "grade": _GRADE,
        "summary": _string("One or two sentence verdict"),
        "markdownContent": _string("Full critique in markdown"),
        "targetCompanies": {
            "type": "ARRAY",
            "items": _object(
                {"name": _string(), "domain": _string(), "reason": _string()},
                ["name", "domain", "reason"],
            ),
        },
    },
    ["score", "grade", "summary", "markdownContent", "targetCompanies"],
)
