# portal/models.py
from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    SHORTLISTED = "shortlisted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def _skill_list(value) -> List[str]:
    """Decode a skills column (JSON text, bytes or list) into a list of strings."""
    if not value:
        return []
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return [value]
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        return [str(value)]
    return [str(item) for item in value if item is not None]


def _text(row: Dict[str, Any], key: str) -> str:
    value = row.get(key)
    return "" if value is None else str(value)


def _int(row: Dict[str, Any], key: str) -> int:
    try:
        return int(row.get(key) or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class UserRole:
    id: str
    email: str
    role: str
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserRole":
        return cls(
            id=_text(row, "id"),
            email=_text(row, "email"),
            role=_text(row, "role"),
            created_at=row.get("created_at"),
        )


@dataclass
class CandidateProfile:
    id: str
    user_id: str
    full_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    title: str = ""
    bio: str = ""
    skills: List[str] = field(default_factory=list)
    experience_years: int = 0
    resume_url: str = ""
    portfolio_url: str = ""
    linkedin_url: str = ""
    github_url: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CandidateProfile":
        return cls(
            id=_text(row, "id"),
            user_id=_text(row, "user_id"),
            full_name=_text(row, "full_name"),
            email=_text(row, "email"),
            phone=_text(row, "phone"),
            location=_text(row, "location"),
            title=_text(row, "title"),
            bio=_text(row, "bio"),
            skills=_skill_list(row.get("skills")),
            experience_years=_int(row, "experience_years"),
            resume_url=_text(row, "resume_url"),
            portfolio_url=_text(row, "portfolio_url"),
            linkedin_url=_text(row, "linkedin_url"),
            github_url=_text(row, "github_url"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RecruiterProfile:
    id: str
    user_id: str
    full_name: str = ""
    email: str = ""
    phone: str = ""
    company_name: str = ""
    company_website: str = ""
    company_description: str = ""
    company_logo_url: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "RecruiterProfile":
        return cls(
            id=_text(row, "id"),
            user_id=_text(row, "user_id"),
            full_name=_text(row, "full_name"),
            email=_text(row, "email"),
            phone=_text(row, "phone"),
            company_name=_text(row, "company_name"),
            company_website=_text(row, "company_website"),
            company_description=_text(row, "company_description"),
            company_logo_url=_text(row, "company_logo_url"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Job:
    """A posted job. ``recruiter`` and ``applications`` are only set when the
    fetch asked for them."""

    id: str
    recruiter_id: str
    title: str = ""
    description: str = ""
    required_skills: List[str] = field(default_factory=list)
    location: str = ""
    job_type: str = "Full-time"
    experience_required: int = 0
    salary_min: int = 0
    salary_max: int = 0
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    recruiter: Optional[RecruiterProfile] = None
    applications: Optional[List["Application"]] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Job":
        recruiter_row = row.get("recruiter")
        application_rows = row.get("applications")
        return cls(
            id=_text(row, "id"),
            recruiter_id=_text(row, "recruiter_id"),
            title=_text(row, "title"),
            description=_text(row, "description"),
            required_skills=_skill_list(row.get("required_skills")),
            location=_text(row, "location"),
            job_type=_text(row, "job_type") or "Full-time",
            experience_required=_int(row, "experience_required"),
            salary_min=_int(row, "salary_min"),
            salary_max=_int(row, "salary_max"),
            is_active=bool(row.get("is_active", True)),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            recruiter=RecruiterProfile.from_row(recruiter_row) if recruiter_row else None,
            applications=(
                [Application.from_row(item) for item in application_rows]
                if application_rows is not None
                else None
            ),
        )

    @property
    def application_count(self) -> int:
        return len(self.applications or [])

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "recruiter_id": self.recruiter_id,
            "title": self.title,
            "description": self.description,
            "required_skills": list(self.required_skills),
            "location": self.location,
            "job_type": self.job_type,
            "experience_required": self.experience_required,
            "salary_min": self.salary_min,
            "salary_max": self.salary_max,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self.recruiter is not None:
            data["recruiter"] = self.recruiter.to_dict()
        if self.applications is not None:
            data["applications"] = [app.to_dict() for app in self.applications]
        return data


@dataclass
class Application:
    """A candidate's application to a job.

    ``status`` is kept as the raw stored string so values outside
    ``ApplicationStatus`` stay visible to the aggregations.
    """

    id: str
    job_id: str
    candidate_id: str
    status: str = ApplicationStatus.PENDING.value
    cover_letter: str = ""
    applied_at: Optional[str] = None
    updated_at: Optional[str] = None
    job: Optional[Job] = None
    candidate: Optional[CandidateProfile] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Application":
        job_row = row.get("job")
        candidate_row = row.get("candidate")
        return cls(
            id=_text(row, "id"),
            job_id=_text(row, "job_id"),
            candidate_id=_text(row, "candidate_id"),
            status=_text(row, "status"),
            cover_letter=_text(row, "cover_letter"),
            applied_at=row.get("applied_at"),
            updated_at=row.get("updated_at"),
            job=Job.from_row(job_row) if job_row else None,
            candidate=CandidateProfile.from_row(candidate_row) if candidate_row else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "job_id": self.job_id,
            "candidate_id": self.candidate_id,
            "status": self.status,
            "cover_letter": self.cover_letter,
            "applied_at": self.applied_at,
            "updated_at": self.updated_at,
        }
        if self.job is not None:
            data["job"] = self.job.to_dict()
        if self.candidate is not None:
            data["candidate"] = self.candidate.to_dict()
        return data
