"""
System instructions and prompt builders for each generation phase.
"""

from __future__ import annotations

import json
from typing import Optional

from data_models import Preferences, ThinkingProcess

CRITIC_SYSTEM_PROMPT = """You are "FlameCV", a brutally honest, funny, high-signal resume critic and fixer.

You operate in two modes: ROAST_MODE (default) and FIX_MODE.

ROAST_MODE:
- Call out cliches, fluff, buzzwords and weak phrasing with sharp, witty commentary.
- Give concrete, specific rewrite suggestions for the summary and the weakest bullets.
- Highlight what is actually strong and worth keeping.
- Default markdown structure: "# Overall Verdict", "# Roast", "# How To Fix It",
  "# Quick Wins (Do This In 10 Minutes)".

FIX_MODE (triggered when the message contains FIX_MODE):
- Do NOT roast. Calmly rewrite the resume to be as strong as possible.
- Output "# Rewritten Resume" followed by "# What Changed and Why".
- Preserve truthful content; never fabricate degrees, employers or skills.
  Suggested metrics must be labelled as suggestions.

Guardrails:
- Roast THE RESUME, never the person. No insults to intelligence, worth or identity.
- Never mention or speculate about protected traits.
- No emojis unless asked. Prefer short sections and bullet points.
"""

MATCHER_SYSTEM_PROMPT = """You are "Matchpoint", a senior startup recruiter and career strategist.
You read resumes carefully, are honest about the candidate's level, and recommend
real, currently operating startups. You never invent companies or funding data."""

NO_PREFERENCES = "No preferences provided. Infer the best-fit roles, stages and locations from the resume alone."

ROAST_PROMPT = "Roast my resume. Be brutal but helpful. Score it from 0 to 100, give a letter grade, and suggest target companies."


def format_preferences(preferences: Optional[Preferences]) -> str:
    """
    Render preferences as a bullet list.

    Args:
        preferences: Survey answers, or None when the survey was skipped.

    Returns:
        Prompt text; the no-preferences placeholder when skipped.
    """
    if preferences is None:
        return NO_PREFERENCES

    def joined(values) -> str:
        return ", ".join(values) if values else "Any"

    return "\n".join(
        [
            f"- Target role: {preferences.target_role}",
            f"- Experience: {preferences.years_of_experience}",
            f"- Locations: {joined(preferences.target_locations)}",
            f"- Startup stage: {joined(preferences.startup_stage)}",
            f"- Salary expectation: {preferences.salary_expectation}",
            f"- Domains: {joined(preferences.preferred_domains)}",
        ]
    )


def build_reasoning_prompt(preferences: Optional[Preferences]) -> str:
    """
    Build the phase-one prompt asking for the four reasoning sections.

    Args:
        preferences: Survey answers, or None when the survey was skipped.

    Returns:
        Prompt text sent together with the resume file.
    """
    return f"""Study the attached resume and the candidate preferences below, then think step by step.

Candidate preferences:
{format_preferences(preferences)}

Produce four reasoning sections:
1. resumeAnalysis: seniority, strongest evidence, gaps and red flags in the resume.
2. preferencesAnalysis: what the candidate is asking for and whether it is realistic.
3. intersectionAnalysis: where the resume and the preferences overlap or conflict.
4. searchStrategy: what kinds of startups to look for and which signals to search on.

Each section needs a title, the reasoning itself as content, and 3-5 short insights."""


def build_search_prompt(thinking: ThinkingProcess, preferences: Optional[Preferences]) -> str:
    """Restate the phase-one insights as context for the search-grounded call."""
    context = []
    for phase, step in thinking.steps():
        context.append(f"{step.title} ({phase}):")
        context.extend(f"- {insight}" for insight in step.insights)
    context_text = "\n".join(context)

    return f"""Using live web search, find real startups that are hiring and fit this candidate.

Analysis so far:
{context_text}

Candidate preferences:
{format_preferences(preferences)}

Return 12-15 distinct companies split into three tiers:
- Reach (4-5): ambitious, competitive companies slightly above the candidate's level.
- Target (4-5): strong, realistic fits.
- Safety (4-5): companies very likely to be interested.

For every company give: name, primary web domain, one-line description, location,
funding stage, and a tailored reason it matches this candidate. Prefer companies
with recent funding or open roles that match the candidate."""


def build_structuring_prompt(thinking: ThinkingProcess, search_text: str) -> str:
    return f"""Convert the research below into the final structured result.

Reasoning (JSON):
{json.dumps(thinking.to_dict(), ensure_ascii=False, indent=2)}

Company research:
\"\"\"{search_text}\"\"\"

Rules:
- score is an integer from 0 to 100 for the resume overall; grade is a letter grade.
- summary is one or two sentences; markdownContent is a concise markdown write-up.
- careerAdvice.companyMatches must contain EVERY distinct company from the research,
  each with tier exactly one of Reach, Target or Safety.
- Do not add companies that are not in the research."""


def build_improvement_prompt(previous_critique: Optional[str]) -> str:
    if not previous_critique:
        return "FIX_MODE: Rewrite my resume based on your own suggestions. Here is the original resume:"
    return f"""FIX_MODE: Rewrite my resume based on your own suggestions and the following critique you provided:

{previous_critique}

Here is the original resume to rewrite:"""
