"""
Dashboard payloads for candidates and recruiters.

These functions take records already fetched by ``db_io`` (as models) and
return plain dicts ready for JSON.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from backend.portal.config import ANALYTICS_RULES
from backend.portal.matching import (
    average_per_job,
    matched_skills,
    missing_skills,
    percent,
    skill_coverage_percent,
    skill_demand,
    skill_match_percent,
    status_counts,
    success_rate,
    top_n,
)
from backend.portal.models import Application, ApplicationStatus, CandidateProfile, Job


def _pairs(entries) -> List[Dict[str, object]]:
    return [{"skill": skill, "count": count} for skill, count in entries]


def candidate_analytics(
    profile: CandidateProfile,
    applications: Sequence[Application],
    active_jobs: Sequence[Job],
    rules: Optional[Dict[str, int]] = None,
) -> Dict[str, object]:
    """Application funnel and skill-gap view for one candidate."""
    rules = {**ANALYTICS_RULES, **(rules or {})}
    counts = status_counts(applications)
    demand = skill_demand(active_jobs)
    top_skills = top_n(demand, rules["top_skills"])

    return {
        "total_applications": len(applications),
        "status_counts": counts,
        "success_rate": success_rate(applications),
        "top_skills": _pairs(top_skills),
        "matched_skills": matched_skills(profile.skills, demand),
        "skill_coverage": skill_coverage_percent(profile.skills, demand),
        "missing_skills": _pairs(missing_skills(profile.skills, top_skills, rules["missing_skills"])),
    }


def recruiter_analytics(jobs: Sequence[Job], rules: Optional[Dict[str, int]] = None) -> Dict[str, object]:
    """Hiring overview across every job a recruiter owns.

    Jobs are expected to carry their ``applications``; a job fetched without
    them counts as having none.
    """
    rules = {**ANALYTICS_RULES, **(rules or {})}
    applications = [app for job in jobs for app in (job.applications or [])]
    total_jobs = len(jobs)
    total_applications = len(applications)
    avg = average_per_job(total_applications, total_jobs)
    counts = status_counts(applications)

    busiest = sorted(jobs, key=lambda job: job.application_count, reverse=True)[: rules["top_jobs"]]

    return {
        "total_jobs": total_jobs,
        "active_jobs": sum(1 for job in jobs if job.is_active),
        "total_applications": total_applications,
        "status_counts": counts,
        "success_rate": success_rate(applications),
        "response_rate": percent(total_applications - counts[ApplicationStatus.PENDING.value], total_applications),
        "acceptance_rate": percent(counts[ApplicationStatus.ACCEPTED.value], total_applications),
        "avg_applications_per_job": avg,
        "avg_applications_per_job_display": f"{avg:.1f}",
        "top_jobs": [
            {
                "id": job.id,
                "title": job.title,
                "location": job.location,
                "is_active": job.is_active,
                "applications": job.application_count,
            }
            for job in busiest
        ],
        "top_skills": _pairs(top_n(skill_demand(jobs), rules["top_skills"])),
    }


def annotate_job_matches(
    profile: CandidateProfile,
    jobs: Iterable[Job],
    applied_job_ids: Iterable[str] = (),
) -> List[Dict[str, object]]:
    """Serialize jobs for the job browser with match percent and applied flag."""
    applied = set(applied_job_ids or [])
    rows = []
    for job in jobs:
        row = job.to_dict()
        row["skill_match"] = skill_match_percent(profile.skills, job.required_skills)
        row["applied"] = job.id in applied
        rows.append(row)
    return rows


def annotate_applicants(job: Job) -> Dict[str, object]:
    """Serialize a recruiter's job with each applicant's match percent."""
    row = job.to_dict()
    applicants = []
    for application in job.applications or []:
        item = application.to_dict()
        if application.candidate is not None:
            item["skill_match"] = skill_match_percent(application.candidate.skills, job.required_skills)
        applicants.append(item)
    row["applications"] = applicants
    row["status_counts"] = status_counts(job.applications or [])
    return row
