from fastapi import FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Optional
from pathlib import Path
import traceback
from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parent

# Load environment variables from backend/portal/.env so DB configs pick them up
load_dotenv(BASE_DIR / "portal" / ".env")

from backend import API_TITLE, API_VERSION, CORS_ORIGINS
from backend.portal.config import APPLICATION_STATUSES, DEFAULT_JOB_TYPE, USER_ROLES
from backend.portal.db_io import (
    fetch_user_role,
    set_user_role,
    fetch_candidate_profile,
    fetch_recruiter_profile,
    save_candidate_profile,
    save_recruiter_profile,
    fetch_candidate_profiles,
    fetch_jobs,
    create_job,
    update_job,
    set_job_active,
    fetch_candidate_applications,
    fetch_applied_job_ids,
    create_application,
    update_application_status,
    ensure_portal_schema,
)
from backend.portal.models import Application, CandidateProfile, Job, RecruiterProfile, UserRole
from backend.portal.analytics import (
    annotate_applicants,
    annotate_job_matches,
    candidate_analytics,
    recruiter_analytics,
)
from backend.portal.search import clean_skills, search_candidates, search_jobs

# Initialize FastAPI app
app = FastAPI(title=API_TITLE, version=API_VERSION)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RolePayload(BaseModel):
    role: str = Field(..., description="candidate or recruiter")


class CandidateProfilePayload(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=64)
    location: str = Field(default="", max_length=255)
    title: str = Field(default="", max_length=255)
    bio: str = Field(default="", max_length=8000)
    skills: list[str] = Field(default=[])
    experience_years: int = Field(default=0, ge=0, le=80)
    resume_url: str = Field(default="", max_length=512)
    portfolio_url: str = Field(default="", max_length=512)
    linkedin_url: str = Field(default="", max_length=512)
    github_url: str = Field(default="", max_length=512)


class RecruiterProfilePayload(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=64)
    company_name: str = Field(..., min_length=1, max_length=255)
    company_website: str = Field(default="", max_length=512)
    company_description: str = Field(default="", max_length=8000)
    company_logo_url: str = Field(default="", max_length=512)


class JobPayload(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=20000)
    required_skills: list[str] = Field(default=[])
    location: str = Field(default="", max_length=255)
    job_type: str = Field(default=DEFAULT_JOB_TYPE, max_length=64)
    experience_required: int = Field(default=0, ge=0, le=80)
    salary_min: int = Field(default=0, ge=0)
    salary_max: int = Field(default=0, ge=0)
    is_active: bool = Field(default=True)


class JobVisibilityPayload(BaseModel):
    is_active: Optional[bool] = Field(default=None, description="Omit to toggle")


class ApplicationPayload(BaseModel):
    cover_letter: str = Field(default="", max_length=8000)


class StatusUpdatePayload(BaseModel):
    status: str = Field(..., description="New status value")


# ============================================================
# IDENTITY HELPERS
# ============================================================
def _require_role(user_id: str, role: str) -> UserRole:
    row = fetch_user_role(user_id)
    if not row:
        raise HTTPException(status_code=403, detail="No role registered for this user.")
    user_role = UserRole.from_row(row)
    if user_role.role != role:
        raise HTTPException(status_code=403, detail=f"This action requires the {role} role.")
    return user_role


def _current_candidate(user_id: str) -> CandidateProfile:
    _require_role(user_id, "candidate")
    row = fetch_candidate_profile(user_id)
    if not row:
        raise HTTPException(status_code=404, detail="Candidate profile not found")
    return CandidateProfile.from_row(row)


def _current_recruiter(user_id: str) -> RecruiterProfile:
    _require_role(user_id, "recruiter")
    row = fetch_recruiter_profile(user_id)
    if not row:
        raise HTTPException(status_code=404, detail="Recruiter profile not found")
    return RecruiterProfile.from_row(row)


def _job_fields(payload: JobPayload) -> dict:
    if payload.salary_max and payload.salary_min > payload.salary_max:
        raise HTTPException(status_code=400, detail="salary_min cannot exceed salary_max.")
    fields = payload.model_dump()
    fields["required_skills"] = clean_skills(fields["required_skills"])
    return fields


# ============================================================
# HEALTH CHECK
# ============================================================
@app.get("/api/health")
async def health_check():
    return {"status": "ok", "message": "Job Portal API is running"}


# ============================================================
# ROLES
# ============================================================
@app.get("/api/me/role")
async def get_my_role(user_id: str = Header(..., alias="X-User-Id")):
    row = fetch_user_role(user_id)
    if not row:
        raise HTTPException(status_code=404, detail="No role registered for this user.")
    return {"success": True, "role": UserRole.from_row(row).role}


@app.post("/api/me/role", status_code=201)
async def register_my_role(
    payload: RolePayload,
    user_id: str = Header(..., alias="X-User-Id"),
    email: str = Header("", alias="X-User-Email"),
):
    if payload.role not in USER_ROLES:
        raise HTTPException(status_code=400, detail=f"Invalid role. Allowed: {', '.join(USER_ROLES)}")
    try:
        row = set_user_role(user_id, email, payload.role)
        if not row:
            raise HTTPException(status_code=500, detail="Unable to register role.")
        return JSONResponse(
            status_code=201,
            content={"success": True, "role": UserRole.from_row(row).role},
        )
    except HTTPException:
        raise
    except Exception:
        print("[API] Error in /api/me/role POST:")
        traceback.print_exc()
        raise HTTPException(status_code=500, detail="Internal Server Error")


# ============================================================
# CANDIDATE
# ============================================================
@app.get("/api/candidate/profile")
async def get_candidate_profile(user_id: str = Header(..., alias="X-User-Id")):
    profile = _current_candidate(user_id)
    return {"success": True, "profile": profile.to_dict()}


@app.put("/api/candidate/profile")
async def put_candidate_profile(
    payload: CandidateProfilePayload,
    user_id: str = Header(..., alias="X-User-Id"),
):
    _require_role(user_id, "candidate")
    try:
        fields = payload.model_dump()
        fields["skills"] = clean_skills(fields["skills"])
        row = save_candidate_profile(user_id, fields)
        if not row:
            raise HTTPException(status_code=500, detail="Failed to save profile")
        return {"success": True, "profile": CandidateProfile.from_row(row).to_dict()}
    except HTTPException:
        raise
    except Exception:
        print("[API] Error in /api/candidate/profile PUT:")
        traceback.print_exc()
        raise HTTPException(status_code=500, detail="Internal Server Error")


@app.get("/api/candidate/jobs")
async def browse_jobs(
    search: Optional[str] = Query(None),
    user_id: str = Header(..., alias="X-User-Id"),
):
    profile = _current_candidate(user_id)
    try:
        jobs = [Job.from_row(row) for row in fetch_jobs(is_active=True, with_recruiter=True)]
        matches = search_jobs(jobs, search)
        applied = fetch_applied_job_ids(profile.id)
        return JSONResponse(
            status_code=200,
            content={
                "success": True,
                "jobs": annotate_job_matches(profile, matches, applied),
                "total": len(jobs),
                "showing": len(matches),
            },
        )
    except Exception:
        print("[API] Error in /api/candidate/jobs:")
        traceback.print_exc()
        raise HTTPException(status_code=500, detail="Internal Server Error")


@app.post("/api/candidate/jobs/{job_id}/apply", status_code=201)
async def apply_to_job(
    job_id: str,
    payload: ApplicationPayload,
    user_id: str = Header(..., alias="X-User-Id"),
):
    profile = _current_candidate(user_id)
    result = create_application(profile.id, job_id, payload.cover_letter)
    error = result.get("error")
    if error == "job_not_found":
        raise HTTPException(status_code=404, detail="Job not found or no longer accepting applications.")
    if error == "duplicate":
        raise HTTPException(status_code=409, detail="You have already applied to this job.")
    if error:
        raise HTTPException(status_code=500, detail="Failed to submit application")
    application = Application.from_row(result["application"])
    return JSONResponse(
        status_code=201,
        content={
            "success": True,
            "message": "Application submitted successfully!",
            "application": application.to_dict(),
        },
    )


@app.get("/api/candidate/applications")
async def list_my_applications(user_id: str = Header(..., alias="X-User-Id")):
    profile = _current_candidate(user_id)
    try:
        rows = fetch_candidate_applications(profile.id, with_jobs=True)
        applications = [Application.from_row(row).to_dict() for row in rows]
        return {"success": True, "applications": applications, "total": len(applications)}
    except Exception:
        print("[API] Error in /api/candidate/applications:")
        traceback.print_exc()
        raise HTTPException(status_code=500, detail="Internal Server Error")


@app.get("/api/candidate/analytics")
async def my_candidate_analytics(user_id: str = Header(..., alias="X-User-Id")):
    profile = _current_candidate(user_id)
    try:
        applications = [
            Application.from_row(row)
            for row in fetch_candidate_applications(profile.id, with_jobs=False)
        ]
        active_jobs = [Job.from_row(row) for row in fetch_jobs(is_active=True)]
        return {
            "success": True,
            "analytics": candidate_analytics(profile, applications, active_jobs),
        }
    except Exception:
        print("[API] Error in /api/candidate/analytics:")
        traceback.print_exc()
        raise HTTPException(status_code=500, detail="Internal Server Error")


# ============================================================
# RECRUITER
# ============================================================
@app.get("/api/recruiter/profile")
async def get_recruiter_profile(user_id: str = Header(..., alias="X-User-Id")):
    profile = _current_recruiter(user_id)
    return {"success": True, "profile": profile.to_dict()}


@app.put("/api/recruiter/profile")
async def put_recruiter_profile(
    payload: RecruiterProfilePayload,
    user_id: str = Header(..., alias="X-User-Id"),
):
    _require_role(user_id, "recruiter")
    try:
        row = save_recruiter_profile(user_id, payload.model_dump())
        if not row:
            raise HTTPException(status_code=500, detail="Failed to save profile")
        return {"success": True, "profile": RecruiterProfile.from_row(row).to_dict()}
    except HTTPException:
        raise
    except Exception:
        print("[API] Error in /api/recruiter/profile PUT:")
        traceback.print_exc()
        raise HTTPException(status_code=500, detail="Internal Server Error")


@app.get("/api/recruiter/jobs")
async def list_my_jobs(user_id: str = Header(..., alias="X-User-Id")):
    profile = _current_recruiter(user_id)
    try:
        rows = fetch_jobs(recruiter_id=profile.id, with_applications=True, with_candidates=True)
        jobs = [annotate_applicants(Job.from_row(row)) for row in rows]
        return {"success": True, "jobs": jobs, "total": len(jobs)}
    except Exception:
        print("[API] Error in /api/recruiter/jobs GET:")
        traceback.print_exc()
        raise HTTPException(status_code=500, detail="Internal Server Error")


@app.post("/api/recruiter/jobs", status_code=201)
async def post_job(payload: JobPayload, user_id: str = Header(..., alias="X-User-Id")):
    profile = _current_recruiter(user_id)
    fields = _job_fields(payload)
    row = create_job(profile.id, fields)
    if not row:
        raise HTTPException(status_code=500, detail="Failed to save job")
    return JSONResponse(
        status_code=201,
        content={"success": True, "job": Job.from_row(row).to_dict()},
    )


@app.put("/api/recruiter/jobs/{job_id}")
async def put_job(job_id: str, payload: JobPayload, user_id: str = Header(..., alias="X-User-Id")):
    profile = _current_recruiter(user_id)
    fields = _job_fields(payload)
    ok = update_job(profile.id, job_id, fields)
    if not ok:
        raise HTTPException(status_code=404, detail="Job not found")
    return {"success": True}


@app.patch("/api/recruiter/jobs/{job_id}/visibility")
async def patch_job_visibility(
    job_id: str,
    payload: JobVisibilityPayload,
    user_id: str = Header(..., alias="X-User-Id"),
):
    profile = _current_recruiter(user_id)
    ok = set_job_active(profile.id, job_id, payload.is_active)
    if not ok:
        raise HTTPException(status_code=404, detail="Job not found")
    return {"success": True}


@app.patch("/api/recruiter/applications/{application_id}/status")
async def patch_application_status(
    application_id: str,
    payload: StatusUpdatePayload,
    user_id: str = Header(..., alias="X-User-Id"),
):
    profile = _current_recruiter(user_id)
    status = (payload.status or "").strip().lower()
    if status not in APPLICATION_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status. Allowed: {', '.join(APPLICATION_STATUSES)}",
        )
    ok = update_application_status(profile.id, application_id, status)
    if not ok:
        raise HTTPException(status_code=404, detail="Application not found")
    return {"success": True, "status": status}


@app.get("/api/recruiter/candidates")
async def find_candidates(
    search: Optional[str] = Query(None),
    min_experience: Optional[int] = Query(None, ge=0),
    user_id: str = Header(..., alias="X-User-Id"),
):
    _current_recruiter(user_id)
    try:
        candidates = [CandidateProfile.from_row(row) for row in fetch_candidate_profiles()]
        matches = search_candidates(candidates, search, min_experience)
        return {
            "success": True,
            "candidates": [candidate.to_dict() for candidate in matches],
            "total": len(candidates),
            "showing": len(matches),
        }
    except Exception:
        print("[API] Error in /api/recruiter/candidates:")
        traceback.print_exc()
        raise HTTPException(status_code=500, detail="Internal Server Error")


@app.get("/api/recruiter/analytics")
async def my_recruiter_analytics(user_id: str = Header(..., alias="X-User-Id")):
    profile = _current_recruiter(user_id)
    try:
        jobs = [Job.from_row(row) for row in fetch_jobs(recruiter_id=profile.id, with_applications=True)]
        return {"success": True, "analytics": recruiter_analytics(jobs)}
    except Exception:
        print("[API] Error in /api/recruiter/analytics:")
        traceback.print_exc()
        raise HTTPException(status_code=500, detail="Internal Server Error")


# ============================================================
# ROOT ENDPOINT
# ============================================================
@app.get("/")
async def root():
    return {
        "message": "Welcome to Job Portal API",
        "docs": "/docs",
        "version": API_VERSION,
    }

# ============================================================
# RUN LOCAL
# ============================================================
if __name__ == "__main__":
    import uvicorn
    ensure_portal_schema()
    uvicorn.run(app, host="0.0.0.0", port=8000)
