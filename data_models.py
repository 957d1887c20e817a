"""
Shared data models used across the application.

Every value object maps to and from the camelCase dictionaries used on the
wire (model responses, database rows, the local fallback store).
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, Iterator, List, Optional, Tuple


def _optional_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    return [str(item) for item in value]


@dataclass(frozen=True)
class FilePayload:
    """An uploaded resume encoded as base64."""

    content: str
    mime_type: str
    original_name: str

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.content)

    @property
    def size(self) -> int:
        return len(self.raw_bytes())

    @property
    def extension(self) -> str:
        suffix = PurePath(self.original_name).suffix.lstrip(".").lower()
        return suffix or "bin"

    def to_dict(self) -> Dict[str, Any]:
        return {"base64": self.content, "mimeType": self.mime_type, "name": self.original_name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilePayload":
        return cls(
            content=data.get("base64", ""),
            mime_type=data.get("mimeType", ""),
            original_name=data.get("name", ""),
        )


@dataclass(frozen=True)
class Preferences:
    """Answers collected by the preferences survey."""

    target_role: str
    years_of_experience: str
    target_locations: List[str] = field(default_factory=list)
    startup_stage: List[str] = field(default_factory=list)
    salary_expectation: str = "Open"
    preferred_domains: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "targetRole": self.target_role,
            "yearsOfExperience": self.years_of_experience,
            "targetLocations": list(self.target_locations),
            "startupStage": list(self.startup_stage),
            "salaryExpectation": self.salary_expectation,
            "preferredDomains": list(self.preferred_domains),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preferences":
        return cls(
            target_role=data.get("targetRole", "Any"),
            years_of_experience=data.get("yearsOfExperience", "Not specified"),
            target_locations=list(data.get("targetLocations") or []),
            startup_stage=list(data.get("startupStage") or []),
            salary_expectation=data.get("salaryExpectation", "Open"),
            preferred_domains=list(data.get("preferredDomains") or []),
        )


@dataclass(frozen=True)
class ReasoningStep:
    title: str
    content: str
    insights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "content": self.content, "insights": list(self.insights)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReasoningStep":
        return cls(
            title=str(data["title"]),
            content=str(data["content"]),
            insights=[str(item) for item in data.get("insights") or []],
        )


@dataclass(frozen=True)
class ThinkingProcess:
    """Four-section reasoning artifact produced by the first pipeline phase."""

    resume_analysis: ReasoningStep
    preferences_analysis: ReasoningStep
    intersection_analysis: ReasoningStep
    search_strategy: ReasoningStep

    def steps(self) -> Iterator[Tuple[str, ReasoningStep]]:
        """Yield ``(phase_name, step)`` pairs in pipeline order."""
        yield "resume", self.resume_analysis
        yield "preferences", self.preferences_analysis
        yield "intersection", self.intersection_analysis
        yield "search", self.search_strategy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resumeAnalysis": self.resume_analysis.to_dict(),
            "preferencesAnalysis": self.preferences_analysis.to_dict(),
            "intersectionAnalysis": self.intersection_analysis.to_dict(),
            "searchStrategy": self.search_strategy.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThinkingProcess":
        """
        Build a ThinkingProcess from its wire form.

        Raises:
            KeyError: If a section or a mandatory step field is missing.
        """
        return cls(
            resume_analysis=ReasoningStep.from_dict(data["resumeAnalysis"]),
            preferences_analysis=ReasoningStep.from_dict(data["preferencesAnalysis"]),
            intersection_analysis=ReasoningStep.from_dict(data["intersectionAnalysis"]),
            search_strategy=ReasoningStep.from_dict(data["searchStrategy"]),
        )


class Tier(str, Enum):
    REACH = "Reach"
    TARGET = "Target"
    SAFETY = "Safety"


@dataclass(frozen=True)
class CompanyMatch:
    """A startup recommended by the structuring phase."""

    name: str
    domain: str
    tier: Tier
    reason: str
    description: Optional[str] = None
    location: Optional[str] = None
    funding: Optional[str] = None
    employee_count: Optional[str] = None
    industry: Optional[str] = None
    founded_year: Optional[str] = None
    tech_stack: Optional[List[str]] = None
    investors: Optional[List[str]] = None
    hiring_roles: Optional[List[str]] = None
    match_score: Optional[float] = None

    def careers_url(self) -> str:
        base = self.domain if self.domain.startswith("http") else f"https://{self.domain}"
        return f"{base.rstrip('/')}/careers"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "domain": self.domain,
            "tier": self.tier.value,
            "reason": self.reason,
        }
        optional = {
            "description": self.description,
            "location": self.location,
            "funding": self.funding,
            "employeeCount": self.employee_count,
            "industry": self.industry,
            "foundedYear": self.founded_year,
            "techStack": self.tech_stack,
            "investors": self.investors,
            "hiringRoles": self.hiring_roles,
            "matchScore": self.match_score,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompanyMatch":
        """
        Build a CompanyMatch from its wire form.

        Raises:
            KeyError: If name, domain, tier or reason is missing.
            ValueError: If the tier is not Reach, Target or Safety.
        """
        founded = data.get("foundedYear")
        match_score = data.get("matchScore")
        return cls(
            name=str(data["name"]),
            domain=str(data["domain"]),
            tier=Tier(data["tier"]),
            reason=str(data["reason"]),
            description=data.get("description"),
            location=data.get("location"),
            funding=data.get("funding"),
            employee_count=data.get("employeeCount"),
            industry=data.get("industry"),
            founded_year=str(founded) if founded is not None else None,
            tech_stack=_optional_list(data.get("techStack")),
            investors=_optional_list(data.get("investors")),
            hiring_roles=_optional_list(data.get("hiringRoles")),
            match_score=float(match_score) if match_score is not None else None,
        )


@dataclass(frozen=True)
class CareerAdvice:
    current_level: str
    estimated_salary: str
    recommended_roles: List[str] = field(default_factory=list)
    reality_check: str = ""
    company_matches: List[CompanyMatch] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentLevel": self.current_level,
            "estimatedSalary": self.estimated_salary,
            "recommendedRoles": list(self.recommended_roles),
            "realityCheck": self.reality_check,
            "companyMatches": [company.to_dict() for company in self.company_matches],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CareerAdvice":
        return cls(
            current_level=str(data.get("currentLevel") or ""),
            estimated_salary=str(data.get("estimatedSalary") or ""),
            recommended_roles=[str(role) for role in data.get("recommendedRoles") or []],
            reality_check=str(data.get("realityCheck") or ""),
            company_matches=[CompanyMatch.from_dict(item) for item in data.get("companyMatches") or []],
        )


@dataclass(frozen=True)
class TargetCompany:
    """Untiered company suggestion returned by the one-shot critique."""

    name: str
    domain: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "domain": self.domain, "reason": self.reason}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TargetCompany":
        return cls(
            name=str(data.get("name") or ""),
            domain=str(data.get("domain") or ""),
            reason=str(data.get("reason") or ""),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Terminal artifact of a generation request."""

    score: float
    grade: str
    summary: str
    markdown_content: str
    career_advice: Optional[CareerAdvice] = None
    thinking: Optional[ThinkingProcess] = None
    target_companies: List[TargetCompany] = field(default_factory=list)

    @property
    def company_matches(self) -> List[CompanyMatch]:
        return list(self.career_advice.company_matches) if self.career_advice else []

    def matches_by_tier(self) -> Dict[Tier, List[CompanyMatch]]:
        grouped: Dict[Tier, List[CompanyMatch]] = {tier: [] for tier in Tier}
        for company in self.company_matches:
            grouped[company.tier].append(company)
        return grouped

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "score": self.score,
            "grade": self.grade,
            "summary": self.summary,
            "markdownContent": self.markdown_content,
        }
        if self.career_advice is not None:
            data["careerAdvice"] = self.career_advice.to_dict()
        if self.thinking is not None:
            data["thinking"] = self.thinking.to_dict()
        if self.target_companies:
            data["targetCompanies"] = [company.to_dict() for company in self.target_companies]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        advice = data.get("careerAdvice")
        thinking = data.get("thinking")
        return cls(
            score=float(data["score"]),
            grade=str(data.get("grade") or ""),
            summary=str(data.get("summary") or ""),
            markdown_content=str(data.get("markdownContent") or ""),
            career_advice=CareerAdvice.from_dict(advice) if advice else None,
            thinking=ThinkingProcess.from_dict(thinking) if thinking else None,
            target_companies=[TargetCompany.from_dict(item) for item in data.get("targetCompanies") or []],
        )


@dataclass(frozen=True)
class HistoryRecord:
    """A saved analysis, either from the database or the local fallback."""

    id: str
    timestamp: int
    file_name: str
    analysis: AnalysisResult
    resume: Optional[FilePayload] = None
    file_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "fileName": self.file_name,
            "analysis": self.analysis.to_dict(),
            "resume": self.resume.to_dict() if self.resume else None,
            "fileUrl": self.file_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryRecord":
        resume = data.get("resume")
        return cls(
            id=str(data["id"]),
            timestamp=int(data["timestamp"]),
            file_name=data.get("fileName", ""),
            analysis=AnalysisResult.from_dict(data["analysis"]),
            resume=FilePayload.from_dict(resume) if resume else None,
            file_url=data.get("fileUrl"),
        )
