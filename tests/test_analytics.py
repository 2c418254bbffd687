from backend.portal.analytics import (
    annotate_applicants,
    annotate_job_matches,
    candidate_analytics,
    recruiter_analytics,
)
from backend.portal.models import Application, CandidateProfile, Job


def _app(app_id, status, job_id="j1", candidate=None):
    return Application(id=app_id, job_id=job_id, candidate_id="c1", status=status, candidate=candidate)


PROFILE = CandidateProfile(id="c1", user_id="u1", skills=["Python", "docker", "Excel"])


def test_candidate_analytics():
    jobs = [
        Job(id="j1", recruiter_id="r", required_skills=["Python", "Docker", "Kubernetes"]),
        Job(id="j2", recruiter_id="r", required_skills=["Kubernetes", "Go"]),
        Job(id="j3", recruiter_id="r", required_skills=["Kubernetes", "Python"]),
    ]
    applications = [_app("a1", "accepted"), _app("a2", "pending"), _app("a3", "shortlisted"), _app("a4", "rejected")]

    result = candidate_analytics(PROFILE, applications, jobs)

    assert result["total_applications"] == 4
    assert result["success_rate"] == 50
    assert result["status_counts"]["pending"] == 1
    assert result["top_skills"][0] == {"skill": "Kubernetes", "count": 3}
    assert result["top_skills"][1] == {"skill": "Python", "count": 2}
    assert result["matched_skills"] == ["Python", "docker"]
    assert result["skill_coverage"] == 67
    assert result["missing_skills"] == [{"skill": "Kubernetes", "count": 3}, {"skill": "Go", "count": 1}]


def test_candidate_analytics_with_nothing_yet():
    result = candidate_analytics(CandidateProfile(id="c", user_id="u"), [], [])
    assert result["total_applications"] == 0
    assert result["success_rate"] == 0
    assert result["top_skills"] == []
    assert result["missing_skills"] == []
    assert result["skill_coverage"] == 0


def test_candidate_analytics_honours_rule_overrides():
    jobs = [Job(id="j", recruiter_id="r", required_skills=["A", "B", "C"])]
    result = candidate_analytics(PROFILE, [], jobs, rules={"top_skills": 2, "missing_skills": 1})
    assert [entry["skill"] for entry in result["top_skills"]] == ["A", "B"]
    assert result["missing_skills"] == [{"skill": "A", "count": 1}]


def test_recruiter_analytics():
    jobs = [
        Job(id="j1", recruiter_id="r", title="Quiet", required_skills=["SQL"], applications=[_app("a1", "pending")]),
        Job(
            id="j2",
            recruiter_id="r",
            title="Busy",
            is_active=False,
            required_skills=["SQL", "Python"],
            applications=[_app("a2", "accepted"), _app("a3", "shortlisted"), _app("a4", "bogus")],
        ),
        Job(id="j3", recruiter_id="r", title="Empty", applications=[]),
    ]

    result = recruiter_analytics(jobs)

    assert result["total_jobs"] == 3
    assert result["active_jobs"] == 2
    assert result["total_applications"] == 4
    assert result["status_counts"]["unknown"] == 1
    assert result["success_rate"] == 50
    assert abs(result["avg_applications_per_job"] - 4 / 3) < 1e-9
    assert result["avg_applications_per_job_display"] == "1.3"
    assert [job["title"] for job in result["top_jobs"]] == ["Busy", "Quiet", "Empty"]
    assert result["top_skills"] == [{"skill": "SQL", "count": 2}, {"skill": "Python", "count": 1}]


def test_recruiter_analytics_without_jobs():
    result = recruiter_analytics([])
    assert result["avg_applications_per_job"] == 0.0
    assert result["avg_applications_per_job_display"] == "0.0"
    assert result["top_jobs"] == []


def test_annotate_job_matches():
    jobs = [
        Job(id="j1", recruiter_id="r", required_skills=["python", "Go"]),
        Job(id="j2", recruiter_id="r", required_skills=[]),
    ]
    rows = annotate_job_matches(PROFILE, jobs, {"j2"})
    assert rows[0]["skill_match"] == 50
    assert rows[0]["applied"] is False
    assert rows[1]["skill_match"] == 0
    assert rows[1]["applied"] is True


def test_annotate_applicants():
    applicant = CandidateProfile(id="c1", user_id="u1", skills=["SQL"])
    job = Job(
        id="j1",
        recruiter_id="r",
        required_skills=["SQL", "Python"],
        applications=[_app("a1", "reviewed", candidate=applicant), _app("a2", "pending")],
    )
    row = annotate_applicants(job)
    assert row["applications"][0]["skill_match"] == 50
    assert "skill_match" not in row["applications"][1]
    assert row["status_counts"]["reviewed"] == 1


def test_recruiter_response_and_acceptance_rates():
    jobs = [
        Job(
            id="j1",
            recruiter_id="r",
            applications=[_app("a1", "pending"), _app("a2", "reviewed"), _app("a3", "accepted"), _app("a4", "rejected")],
        ),
        Job(id="j2", recruiter_id="r", applications=[_app("a5", "accepted"), _app("a6", "pending")]),
    ]
    result = recruiter_analytics(jobs)
    # 4 of 6 no longer pending, 2 of 6 accepted
    assert result["response_rate"] == 67
    assert result["acceptance_rate"] == 33


def test_recruiter_rates_are_zero_without_applications():
    result = recruiter_analytics([Job(id="j1", recruiter_id="r", applications=[])])
    assert result["response_rate"] == 0
    assert result["acceptance_rate"] == 0
