# portal/search.py
from __future__ import annotations

from typing import List, Optional, Sequence

from backend.portal.matching import InvalidArgument


def _contains(haystack: Optional[str], needle: str) -> bool:
    return needle in (haystack or "").lower()


def search_jobs(jobs: Sequence, term: Optional[str]) -> List:
    """Filter jobs whose title, description, location or any skill contains ``term``."""
    if jobs is None:
        raise InvalidArgument("jobs must not be None")
    needle = (term or "").strip().lower()
    if not needle:
        return list(jobs)
    return [
        job
        for job in jobs
        if _contains(job.title, needle)
        or _contains(job.description, needle)
        or _contains(job.location, needle)
        or any(_contains(skill, needle) for skill in job.required_skills or [])
    ]


def search_candidates(
    candidates: Sequence,
    term: Optional[str] = None,
    min_experience: Optional[int] = None,
) -> List:
    """Filter candidate profiles by free text and minimum years of experience."""
    if candidates is None:
        raise InvalidArgument("candidates must not be None")
    results = list(candidates)
    needle = (term or "").strip().lower()
    if needle:
        results = [
            candidate
            for candidate in results
            if _contains(candidate.full_name, needle)
            or _contains(candidate.title, needle)
            or _contains(candidate.location, needle)
            or _contains(candidate.bio, needle)
            or any(_contains(skill, needle) for skill in candidate.skills or [])
        ]
    if min_experience is not None:
        results = [c for c in results if (c.experience_years or 0) >= min_experience]
    return results


# ------------------------------------------------------
# SKILL LIST EDITING
# ------------------------------------------------------
def add_skill(skills: Sequence[str], skill: Optional[str]) -> List[str]:
    """Return a copy of ``skills`` with ``skill`` appended (trimmed, exact dedupe)."""
    updated = list(skills or [])
    cleaned = (skill or "").strip()
    if cleaned and cleaned not in updated:
        updated.append(cleaned)
    return updated


def remove_skill(skills: Sequence[str], skill: str) -> List[str]:
    return [s for s in skills or [] if s != skill]


def clean_skills(skills: Sequence[str]) -> List[str]:
    """Trim, drop blanks and exact duplicates, keeping first-seen order."""
    cleaned: List[str] = []
    for skill in skills or []:
        cleaned = add_skill(cleaned, skill)
    return cleaned
