import pytest
from fastapi.testclient import TestClient

from backend import main

CANDIDATE_ROW = {"id": "c1", "user_id": "u-cand", "full_name": "Ada", "skills": '["Python", "SQL"]'}
RECRUITER_ROW = {"id": "r1", "user_id": "u-rec", "full_name": "Rita", "company_name": "Acme"}
ROLES = {
    "u-cand": {"id": "u-cand", "email": "ada@example.com", "role": "candidate"},
    "u-rec": {"id": "u-rec", "email": "rita@example.com", "role": "recruiter"},
}

CAND = {"X-User-Id": "u-cand"}
REC = {"X-User-Id": "u-rec"}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main, "fetch_user_role", lambda user_id: ROLES.get(user_id))
    monkeypatch.setattr(
        main, "fetch_candidate_profile", lambda user_id: CANDIDATE_ROW if user_id == "u-cand" else None
    )
    monkeypatch.setattr(
        main, "fetch_recruiter_profile", lambda user_id: RECRUITER_ROW if user_id == "u-rec" else None
    )
    return TestClient(main.app)


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_identity_header_is_required(client):
    assert client.get("/api/candidate/profile").status_code == 422


def test_role_mismatch_is_forbidden(client):
    assert client.get("/api/candidate/profile", headers=REC).status_code == 403
    assert client.get("/api/recruiter/analytics", headers=CAND).status_code == 403
    assert client.get("/api/candidate/profile", headers={"X-User-Id": "nobody"}).status_code == 403


def test_register_role_validates_value(client, monkeypatch):
    monkeypatch.setattr(main, "set_user_role", lambda user_id, email, role: {"id": user_id, "role": role})
    assert client.post("/api/me/role", json={"role": "admin"}, headers=CAND).status_code == 400
    response = client.post(
        "/api/me/role", json={"role": "candidate"}, headers={"X-User-Id": "new", "X-User-Email": "n@x.io"}
    )
    assert response.status_code == 201
    assert response.json()["role"] == "candidate"


def test_candidate_profile(client):
    response = client.get("/api/candidate/profile", headers=CAND)
    assert response.status_code == 200
    assert response.json()["profile"]["skills"] == ["Python", "SQL"]


def test_save_candidate_profile_cleans_skills(client, monkeypatch):
    saved = {}

    def fake_save(user_id, fields):
        saved.update(fields)
        return {**CANDIDATE_ROW, "skills": fields["skills"]}

    monkeypatch.setattr(main, "save_candidate_profile", fake_save)
    response = client.put(
        "/api/candidate/profile",
        json={"full_name": "Ada", "skills": [" Go ", "Go", "", "Rust"]},
        headers=CAND,
    )
    assert response.status_code == 200
    assert saved["skills"] == ["Go", "Rust"]


def test_browse_jobs_adds_match_and_applied_flag(client, monkeypatch):
    captured = {}

    def fake_fetch_jobs(**kwargs):
        captured.update(kwargs)
        return [
            {"id": "j1", "recruiter_id": "r1", "title": "Data Engineer", "required_skills": '["python", "Spark"]',
             "recruiter": RECRUITER_ROW},
            {"id": "j2", "recruiter_id": "r1", "title": "Designer", "required_skills": '["Figma"]'},
        ]

    monkeypatch.setattr(main, "fetch_jobs", fake_fetch_jobs)
    monkeypatch.setattr(main, "fetch_applied_job_ids", lambda candidate_id: {"j2"})

    response = client.get("/api/candidate/jobs", headers=CAND)
    body = response.json()
    assert captured == {"is_active": True, "with_recruiter": True}
    assert [job["skill_match"] for job in body["jobs"]] == [50, 0]
    assert [job["applied"] for job in body["jobs"]] == [False, True]
    assert body["jobs"][0]["recruiter"]["company_name"] == "Acme"

    response = client.get("/api/candidate/jobs", params={"search": "spark"}, headers=CAND)
    assert response.json()["showing"] == 1
    assert response.json()["total"] == 2


@pytest.mark.parametrize(
    "result,status_code",
    [
        ({"error": "job_not_found"}, 404),
        ({"error": "duplicate"}, 409),
        ({"error": "failed"}, 500),
        ({"application": {"id": "a1", "job_id": "j1", "candidate_id": "c1", "status": "pending"}}, 201),
    ],
)
def test_apply_maps_outcomes(client, monkeypatch, result, status_code):
    monkeypatch.setattr(main, "create_application", lambda candidate_id, job_id, cover_letter: result)
    response = client.post("/api/candidate/jobs/j1/apply", json={"cover_letter": "Hello"}, headers=CAND)
    assert response.status_code == status_code


def test_candidate_analytics_endpoint(client, monkeypatch):
    monkeypatch.setattr(
        main,
        "fetch_candidate_applications",
        lambda candidate_id, with_jobs=True: [
            {"id": "a1", "job_id": "j1", "candidate_id": "c1", "status": "accepted"},
            {"id": "a2", "job_id": "j2", "candidate_id": "c1", "status": "pending"},
        ],
    )
    monkeypatch.setattr(
        main,
        "fetch_jobs",
        lambda **kwargs: [{"id": "j1", "recruiter_id": "r1", "required_skills": '["Python", "Go"]'}],
    )
    response = client.get("/api/candidate/analytics", headers=CAND)
    analytics = response.json()["analytics"]
    assert analytics["success_rate"] == 50
    assert analytics["missing_skills"] == [{"skill": "Go", "count": 1}]


def test_post_job_rejects_inverted_salary(client, monkeypatch):
    monkeypatch.setattr(main, "create_job", lambda recruiter_id, fields: pytest.fail("should not save"))
    response = client.post(
        "/api/recruiter/jobs",
        json={"title": "Engineer", "salary_min": 90000, "salary_max": 50000},
        headers=REC,
    )
    assert response.status_code == 400


def test_post_job(client, monkeypatch):
    saved = {}

    def fake_create(recruiter_id, fields):
        saved.update(fields, recruiter_id=recruiter_id)
        return {"id": "j9", "recruiter_id": recruiter_id, "title": fields["title"],
                "required_skills": fields["required_skills"]}

    monkeypatch.setattr(main, "create_job", fake_create)
    response = client.post(
        "/api/recruiter/jobs",
        json={"title": "Engineer", "required_skills": ["Go", "Go "]},
        headers=REC,
    )
    assert response.status_code == 201
    assert saved["recruiter_id"] == "r1"
    assert saved["job_type"] == "Full-time"
    assert response.json()["job"]["required_skills"] == ["Go"]


def test_update_missing_job_is_404(client, monkeypatch):
    monkeypatch.setattr(main, "update_job", lambda recruiter_id, job_id, fields: False)
    response = client.put("/api/recruiter/jobs/j1", json={"title": "X"}, headers=REC)
    assert response.status_code == 404


def test_visibility_toggle(client, monkeypatch):
    calls = []
    monkeypatch.setattr(
        main, "set_job_active", lambda recruiter_id, job_id, is_active: calls.append(is_active) or True
    )
    assert client.patch("/api/recruiter/jobs/j1/visibility", json={}, headers=REC).status_code == 200
    assert client.patch("/api/recruiter/jobs/j1/visibility", json={"is_active": False}, headers=REC).status_code == 200
    assert calls == [None, False]


def test_application_status_update(client, monkeypatch):
    monkeypatch.setattr(main, "update_application_status", lambda recruiter_id, app_id, status: app_id == "a1")
    ok = client.patch("/api/recruiter/applications/a1/status", json={"status": " Shortlisted "}, headers=REC)
    assert ok.status_code == 200
    assert ok.json()["status"] == "shortlisted"
    bad = client.patch("/api/recruiter/applications/a1/status", json={"status": "hired"}, headers=REC)
    assert bad.status_code == 400
    missing = client.patch("/api/recruiter/applications/zz/status", json={"status": "rejected"}, headers=REC)
    assert missing.status_code == 404


def test_recruiter_jobs_include_applicant_match(client, monkeypatch):
    monkeypatch.setattr(
        main,
        "fetch_jobs",
        lambda **kwargs: [
            {
                "id": "j1",
                "recruiter_id": "r1",
                "required_skills": '["SQL", "Python"]',
                "applications": [
                    {"id": "a1", "job_id": "j1", "candidate_id": "c1", "status": "pending", "candidate": CANDIDATE_ROW}
                ],
            }
        ],
    )
    response = client.get("/api/recruiter/jobs", headers=REC)
    job = response.json()["jobs"][0]
    assert job["applications"][0]["skill_match"] == 100
    assert job["status_counts"]["pending"] == 1


def test_candidate_search(client, monkeypatch):
    monkeypatch.setattr(
        main,
        "fetch_candidate_profiles",
        lambda: [
            {"id": "c1", "user_id": "u1", "full_name": "Ada", "skills": '["Python"]', "experience_years": 6},
            {"id": "c2", "user_id": "u2", "full_name": "Bob", "skills": '["Python"]', "experience_years": 1},
        ],
    )
    response = client.get(
        "/api/recruiter/candidates", params={"search": "python", "min_experience": 5}, headers=REC
    )
    body = response.json()
    assert body["total"] == 2
    assert [c["id"] for c in body["candidates"]] == ["c1"]


def test_recruiter_analytics_endpoint(client, monkeypatch):
    monkeypatch.setattr(
        main,
        "fetch_jobs",
        lambda **kwargs: [
            {"id": "j1", "recruiter_id": "r1", "is_active": 1, "applications": [
                {"id": "a1", "job_id": "j1", "candidate_id": "c1", "status": "accepted"},
            ]},
            {"id": "j2", "recruiter_id": "r1", "is_active": 0, "applications": []},
        ],
    )
    analytics = client.get("/api/recruiter/analytics", headers=REC).json()["analytics"]
    assert analytics["total_jobs"] == 2
    assert analytics["active_jobs"] == 1
    assert analytics["avg_applications_per_job_display"] == "0.5"
    assert analytics["success_rate"] == 100


def test_status_update_checks_role_before_status(client, monkeypatch):
    monkeypatch.setattr(main, "update_application_status", lambda recruiter_id, app_id, status: pytest.fail("should not save"))
    response = client.patch("/api/recruiter/applications/a1/status", json={"status": "hired"}, headers=CAND)
    assert response.status_code == 403


def test_app_uses_package_metadata(client):
    from backend import API_TITLE, API_VERSION

    assert main.app.title == API_TITLE
    assert client.get("/").json()["version"] == API_VERSION
