"""
Skill matching and application aggregation shared by the candidate and
recruiter dashboards.

Every function here is pure: it reads the records handed to it, never mutates
them, and performs no I/O. Two skill policies coexist on purpose:

* matching (``skill_match_percent``, ``missing_skills``, ``matched_skills``)
  compares trimmed skills case-insensitively;
* demand counting (``skill_demand``) keys on the exact label stored on the
  job, so "React" and "react" are separate entries.
"""
from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from backend.portal.models import ApplicationStatus

UNKNOWN_STATUS = "unknown"

KNOWN_STATUSES = tuple(status.value for status in ApplicationStatus)

SUCCESS_STATUSES = (ApplicationStatus.ACCEPTED.value, ApplicationStatus.SHORTLISTED.value)


class InvalidArgument(ValueError):
    """Raised when a required collection is missing or a limit is negative."""


def _require(value, name: str):
    if value is None:
        raise InvalidArgument(f"{name} must not be None")
    return value


def _require_limit(value: int, name: str) -> int:
    if value is None or value < 0:
        raise InvalidArgument(f"{name} must be a non-negative integer, got {value!r}")
    return value


def normalize_skill(skill: Optional[str]) -> str:
    """Trim and lowercase a skill label for matching."""
    return (skill or "").strip().lower()


def _skill_keys(skills: Iterable[str]) -> Set[str]:
    return {normalize_skill(skill) for skill in skills}


def percent(part: int, whole: int) -> int:
    """Round ``100 * part / whole`` half-up to an int; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    # floor(100p/w + 1/2) without going through floats
    return (200 * part + whole) // (2 * whole)


# ------------------------------------------------------
# SKILL MATCHING
# ------------------------------------------------------
def skill_match_percent(candidate_skills: Sequence[str], required_skills: Sequence[str]) -> int:
    """Share of ``required_skills`` the candidate has, as an int in [0, 100]."""
    _require(candidate_skills, "candidate_skills")
    _require(required_skills, "required_skills")
    if not required_skills:
        return 0
    have = _skill_keys(candidate_skills)
    matched = sum(1 for skill in required_skills if normalize_skill(skill) in have)
    return percent(matched, len(required_skills))


def skill_demand(jobs: Iterable) -> Dict[str, int]:
    """Count how many job requirement entries use each exact skill label."""
    _require(jobs, "jobs")
    demand: Dict[str, int] = {}
    for job in jobs:
        for skill in job.required_skills or []:
            demand[skill] = demand.get(skill, 0) + 1
    return demand


def top_n(demand: Mapping[str, int], n: int) -> List[Tuple[str, int]]:
    """Return the ``n`` highest counts; ties keep the mapping's order."""
    _require(demand, "demand")
    _require_limit(n, "n")
    ranked = sorted(demand.items(), key=lambda item: item[1], reverse=True)
    return ranked[:n]


def missing_skills(
    candidate_skills: Sequence[str],
    top_skills: Sequence[Tuple[str, int]],
    limit: int,
) -> List[Tuple[str, int]]:
    """Entries of ``top_skills`` the candidate lacks, in order, at most ``limit``."""
    _require(candidate_skills, "candidate_skills")
    _require(top_skills, "top_skills")
    _require_limit(limit, "limit")
    have = _skill_keys(candidate_skills)
    missing = [(skill, count) for skill, count in top_skills if normalize_skill(skill) not in have]
    return missing[:limit]


def matched_skills(candidate_skills: Sequence[str], demand: Mapping[str, int]) -> List[str]:
    """Candidate skills that appear (case-insensitively) among demanded skills."""
    _require(candidate_skills, "candidate_skills")
    _require(demand, "demand")
    wanted = _skill_keys(demand.keys())
    return [skill for skill in candidate_skills if normalize_skill(skill) in wanted]


def skill_coverage_percent(candidate_skills: Sequence[str], demand: Mapping[str, int]) -> int:
    """Share of the candidate's own skills that employers are asking for."""
    matched = matched_skills(candidate_skills, demand)
    return percent(len(matched), len(candidate_skills))


# ------------------------------------------------------
# APPLICATION AGGREGATES
# ------------------------------------------------------
def status_counts(applications: Iterable) -> Dict[str, int]:
    """Count applications per status.

    All five known statuses are always present. Anything else lands in the
    ``unknown`` bucket so bad rows show up instead of vanishing.
    """
    _require(applications, "applications")
    tally = Counter()
    for application in applications:
        status = application.status
        if isinstance(status, ApplicationStatus):
            status = status.value
        tally[status if status in KNOWN_STATUSES else UNKNOWN_STATUS] += 1
    counts = {status: tally.get(status, 0) for status in KNOWN_STATUSES}
    counts[UNKNOWN_STATUS] = tally.get(UNKNOWN_STATUS, 0)
    return counts


def success_rate(applications: Sequence) -> int:
    """Percent of applications that were accepted or shortlisted."""
    _require(applications, "applications")
    counts = status_counts(applications)
    total = sum(counts.values())
    successes = sum(counts[status] for status in SUCCESS_STATUSES)
    return percent(successes, total)


def average_per_job(total_applications: int, total_jobs: int) -> float:
    """Applications per job as a raw float; the caller formats it."""
    _require(total_applications, "total_applications")
    _require(total_jobs, "total_jobs")
    if not total_jobs:
        return 0.0
    return total_applications / total_jobs
