"""
Summary reporting utilities (JSON export and HTML summary generation).
"""

from __future__ import annotations

import json
import logging
from html import escape
from pathlib import Path
from typing import List

from data_models import AnalysisResult, CompanyMatch, Tier

LOGGER = logging.getLogger(__name__)

TIER_COLORS = {
    Tier.REACH: "#7e5a9b",
    Tier.TARGET: "#677472",
    Tier.SAFETY: "#4f7ca8",
}


def write_analysis_json(result: AnalysisResult, output_path: Path) -> None:
    """
    Persist an analysis result to JSON.

    Args:
        result: Analysis to export.
        output_path: Destination file path.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(result.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    LOGGER.info("Wrote analysis JSON to %s", output_path)


def _company_row(company: CompanyMatch) -> str:
    match_score = f"{company.match_score:.0f}" if company.match_score is not None else "N/A"
    stack = ", ".join(company.tech_stack or [])
    return (
        "<tr>"
        f"<td>{match_score}</td>"
        f"<td>{escape(company.name)}</td>"
        f"<td>{escape(company.description or '')}</td>"
        f"<td>{escape(company.location or '')}</td>"
        f"<td>{escape(company.funding or '')}</td>"
        f"<td>{escape(stack)}</td>"
        f"<td>{escape(company.reason)}</td>"
        f'<td><a href="{escape(company.careers_url())}" target="_blank">Careers</a></td>'
        "</tr>"
    )


def _tier_section(tier: Tier, companies: List[CompanyMatch]) -> str:
    if not companies:
        return ""
    rows = "".join(_company_row(company) for company in companies)
    return f"""
    <h2 style="color: {TIER_COLORS[tier]}">{tier.value} ({len(companies)})</h2>
    <table>
        <thead>
            <tr>
                <th>Match</th>
                <th>Company</th>
                <th>Description</th>
                <th>Location</th>
                <th>Funding</th>
                <th>Tech Stack</th>
                <th>Why It Fits</th>
                <th>Careers</th>
            </tr>
        </thead>
        <tbody>
            {rows}
        </tbody>
    </table>"""


def _thinking_section(result: AnalysisResult) -> str:
    if result.thinking is None:
        return ""
    items = []
    for _, step in result.thinking.steps():
        insights = "".join(f"<li>{escape(insight)}</li>" for insight in step.insights)
        items.append(f"<h3>{escape(step.title)}</h3><p>{escape(step.content)}</p><ul>{insights}</ul>")
    return "<h2>How We Got Here</h2>" + "".join(items)


def write_html_summary(result: AnalysisResult, output_path: Path, file_name: str = "") -> None:
    """
    Generate an HTML page with the verdict and tier-grouped company matches.

    Args:
        result: Analysis to render.
        output_path: Destination HTML file path.
        file_name: Name of the analysed resume, shown in the heading.
    """
    advice = result.career_advice
    advice_html = ""
    if advice is not None:
        roles = ", ".join(advice.recommended_roles) or "N/A"
        advice_html = f"""
    <div class="card">
        <p><strong>Current level:</strong> {escape(advice.current_level)}</p>
        <p><strong>Estimated salary:</strong> {escape(advice.estimated_salary)}</p>
        <p><strong>Recommended roles:</strong> {escape(roles)}</p>
        <p><strong>Reality check:</strong> {escape(advice.reality_check)}</p>
    </div>"""

    tiers = "".join(_tier_section(tier, companies) for tier, companies in result.matches_by_tier().items())
    targets = ""
    if result.target_companies:
        items = "".join(
            f"<li><strong>{escape(c.name)}</strong> ({escape(c.domain)}): {escape(c.reason)}</li>"
            for c in result.target_companies
        )
        targets = f"<h2>Target Companies</h2><ul>{items}</ul>"

    title = f"Resume Verdict: {escape(file_name)}" if file_name else "Resume Verdict"
    html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{title}</title>
    <style>
        body {{
            font-family: Arial, sans-serif;
            margin: 2rem;
            background-color: #f7f1ec;
        }}
        h1, h2, h3 {{
            color: #677472;
        }}
        .score {{
            font-size: 2.5rem;
            font-weight: bold;
            color: #677472;
        }}
        .card {{
            background-color: white;
            padding: 1rem 1.5rem;
            margin-bottom: 1.5rem;
            box-shadow: 0 2px 8px rgba(0,0,0,0.1);
        }}
        pre {{
            white-space: pre-wrap;
            background-color: white;
            padding: 1rem;
            border-left: 3px solid #677472;
        }}
        table {{
            border-collapse: collapse;
            width: 100%;
            background-color: white;
            box-shadow: 0 2px 8px rgba(0,0,0,0.1);
            margin-bottom: 2rem;
        }}
        th, td {{
            border: 1px solid #e0e0e0;
            padding: 12px;
            text-align: left;
        }}
        th {{
            background-image: linear-gradient(to right, #677472, #91a29e);
            background-color: #677472;
            color: white;
        }}
        tr:nth-child(even) {{
            background-color: rgba(218, 179, 155, 0.15);
        }}
        a {{
            color: #677472;
            font-weight: 500;
        }}
    </style>
</head>
<body>
    <h1>{title}</h1>
    <p class="score">{result.score:.0f} / 100 &middot; {escape(result.grade)}</p>
    <p>{escape(result.summary)}</p>
    {advice_html}
    {tiers}
    {targets}
    <h2>Full Analysis</h2>
    <pre>{escape(result.markdown_content)}</pre>
    {_thinking_section(result)}
</body>
</html>"""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(html, encoding="utf-8")
    LOGGER.info("Wrote HTML summary to %s", output_path)
