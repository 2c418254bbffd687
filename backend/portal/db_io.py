import json
import traceback
from datetime import datetime, date
from decimal import Decimal
from uuid import uuid4

import mysql.connector
from mysql.connector.constants import ClientFlag

from backend.portal.config import APPLICATION_STATUSES, DB_CONFIG, DEFAULT_JOB_TYPE, USER_ROLES
from backend.portal.models import ApplicationStatus

CANDIDATE_FIELDS = (
    "full_name",
    "email",
    "phone",
    "location",
    "title",
    "bio",
    "skills",
    "experience_years",
    "resume_url",
    "portfolio_url",
    "linkedin_url",
    "github_url",
)

RECRUITER_FIELDS = (
    "full_name",
    "email",
    "phone",
    "company_name",
    "company_website",
    "company_description",
    "company_logo_url",
)

JOB_FIELDS = (
    "title",
    "description",
    "required_skills",
    "location",
    "job_type",
    "experience_required",
    "salary_min",
    "salary_max",
    "is_active",
)

JSON_FIELDS = {"skills", "required_skills"}


# ------------------------------------------------------
# MySQL CONNECTION
# ------------------------------------------------------
def connect_mysql():
    """Establish MySQL connection using DB_CONFIG."""
    try:
        # FOUND_ROWS makes UPDATE rowcount report matched rows, not changed rows
        db = mysql.connector.connect(**DB_CONFIG, client_flags=[ClientFlag.FOUND_ROWS])
        return db
    except Exception as e:
        print("[DB ERROR] Unable to connect to MySQL:", e)
        return None


def _close(db, cursor=None):
    try:
        if cursor is not None:
            cursor.close()
    except Exception:
        pass
    db.close()


def _serialize_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        try:
            return float(value)
        except Exception:
            return str(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="ignore")
    return value


def _serialize_row(row):
    if not row:
        return row
    return {key: _serialize_value(val) for key, val in row.items()}


def _serialize_rows(rows):
    return [_serialize_row(row) for row in rows or []]


def _placeholders(values):
    return ", ".join(["%s"] * len(values))


def _column_values(fields, allowed):
    """Pick whitelisted columns from ``fields``, JSON-encoding skill lists."""
    columns, values = [], []
    for key in allowed:
        if key not in fields:
            continue
        value = fields[key]
        if key in JSON_FIELDS:
            value = json.dumps(list(value or []), ensure_ascii=False)
        elif key == "is_active":
            value = 1 if value else 0
        columns.append(key)
        values.append(value)
    return columns, values


# ------------------------------------------------------
# SCHEMA BOOTSTRAP
# ------------------------------------------------------
SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS user_roles (
        id VARCHAR(64) PRIMARY KEY,
        email VARCHAR(255) NOT NULL DEFAULT '',
        role VARCHAR(16) NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS candidate_profiles (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(64) NOT NULL UNIQUE,
        full_name VARCHAR(255) NOT NULL DEFAULT '',
        email VARCHAR(255) NOT NULL DEFAULT '',
        phone VARCHAR(64) NOT NULL DEFAULT '',
        location VARCHAR(255) NOT NULL DEFAULT '',
        title VARCHAR(255) NOT NULL DEFAULT '',
        bio TEXT,
        skills TEXT,
        experience_years INT NOT NULL DEFAULT 0,
        resume_url VARCHAR(512) NOT NULL DEFAULT '',
        portfolio_url VARCHAR(512) NOT NULL DEFAULT '',
        linkedin_url VARCHAR(512) NOT NULL DEFAULT '',
        github_url VARCHAR(512) NOT NULL DEFAULT '',
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS recruiter_profiles (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(64) NOT NULL UNIQUE,
        full_name VARCHAR(255) NOT NULL DEFAULT '',
        email VARCHAR(255) NOT NULL DEFAULT '',
        phone VARCHAR(64) NOT NULL DEFAULT '',
        company_name VARCHAR(255) NOT NULL DEFAULT '',
        company_website VARCHAR(512) NOT NULL DEFAULT '',
        company_description TEXT,
        company_logo_url VARCHAR(512) NOT NULL DEFAULT '',
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS jobs (
        id VARCHAR(36) PRIMARY KEY,
        recruiter_id VARCHAR(36) NOT NULL,
        title VARCHAR(255) NOT NULL,
        description TEXT,
        required_skills TEXT,
        location VARCHAR(255) NOT NULL DEFAULT '',
        job_type VARCHAR(64) NOT NULL DEFAULT 'Full-time',
        experience_required INT NOT NULL DEFAULT 0,
        salary_min INT NOT NULL DEFAULT 0,
        salary_max INT NOT NULL DEFAULT 0,
        is_active TINYINT(1) NOT NULL DEFAULT 1,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
        INDEX idx_jobs_recruiter (recruiter_id),
        INDEX idx_jobs_active (is_active)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS applications (
        id VARCHAR(36) PRIMARY KEY,
        job_id VARCHAR(36) NOT NULL,
        candidate_id VARCHAR(36) NOT NULL,
        status VARCHAR(32) NOT NULL DEFAULT 'pending',
        cover_letter TEXT,
        applied_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
        UNIQUE KEY uq_application (job_id, candidate_id),
        INDEX idx_applications_candidate (candidate_id)
    )
    """,
)


def ensure_portal_schema():
    """Create the portal tables when they are missing (idempotent)."""
    db = connect_mysql()
    if not db:
        return False

    cursor = None
    try:
        cursor = db.cursor()
        for statement in SCHEMA_STATEMENTS:
            cursor.execute(statement)
        db.commit()
        print("[DB] Portal schema ready.")
        return True
    except Exception:
        traceback.print_exc()
        return False
    finally:
        _close(db, cursor)


# ------------------------------------------------------
# USER ROLES
# ------------------------------------------------------
def fetch_user_role(user_id):
    db = connect_mysql()
    if not db:
        return None

    cursor = None
    try:
        cursor = db.cursor(dictionary=True)
        cursor.execute(
            "SELECT id, email, role, created_at FROM user_roles WHERE id = %s LIMIT 1",
            (user_id,),
        )
        return _serialize_row(cursor.fetchone())
    except Exception:
        traceback.print_exc()
        return None
    finally:
        _close(db, cursor)


def set_user_role(user_id, email, role):
    """Register the role for a user. An existing role is kept as-is."""
    if role not in USER_ROLES:
        return None
    existing = fetch_user_role(user_id)
    if existing:
        return existing

    db = connect_mysql()
    if not db:
        return None

    cursor = None
    try:
        cursor = db.cursor()
        cursor.execute(
            "INSERT INTO user_roles (id, email, role) VALUES (%s, %s, %s)",
            (user_id, email or "", role),
        )
        db.commit()
    except Exception:
        traceback.print_exc()
        return None
    finally:
        _close(db, cursor)
    return fetch_user_role(user_id)


# ------------------------------------------------------
# PROFILES
# ------------------------------------------------------
def _fetch_profile(table, user_id):
    db = connect_mysql()
    if not db:
        return None

    cursor = None
    try:
        cursor = db.cursor(dictionary=True)
        cursor.execute(f"SELECT * FROM {table} WHERE user_id = %s LIMIT 1", (user_id,))
        return _serialize_row(cursor.fetchone())
    except Exception:
        traceback.print_exc()
        return None
    finally:
        _close(db, cursor)


def _save_profile(table, allowed, user_id, fields):
    columns, values = _column_values(fields or {}, allowed)
    existing = _fetch_profile(table, user_id)

    db = connect_mysql()
    if not db:
        return None

    cursor = None
    try:
        cursor = db.cursor()
        if existing:
            if columns:
                assignments = ", ".join(f"{col} = %s" for col in columns)
                cursor.execute(
                    f"UPDATE {table} SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE user_id = %s",
                    (*values, user_id),
                )
        else:
            cols = ["id", "user_id", *columns]
            cursor.execute(
                f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({_placeholders(cols)})",
                (str(uuid4()), user_id, *values),
            )
        db.commit()
        print(f"[DB] Saved {table} row for user {user_id}.")
    except Exception:
        traceback.print_exc()
        return None
    finally:
        _close(db, cursor)
    return _fetch_profile(table, user_id)


def fetch_candidate_profile(user_id):
    return _fetch_profile("candidate_profiles", user_id)


def fetch_recruiter_profile(user_id):
    return _fetch_profile("recruiter_profiles", user_id)


def save_candidate_profile(user_id, fields):
    """Update the owner's candidate profile, inserting it on first save."""
    return _save_profile("candidate_profiles", CANDIDATE_FIELDS, user_id, fields)


def save_recruiter_profile(user_id, fields):
    """Update the owner's recruiter profile, inserting it on first save."""
    return _save_profile("recruiter_profiles", RECRUITER_FIELDS, user_id, fields)


def fetch_candidate_profiles():
    db = connect_mysql()
    if not db:
        return []

    cursor = None
    try:
        cursor = db.cursor(dictionary=True)
        cursor.execute("SELECT * FROM candidate_profiles ORDER BY created_at DESC")
        return _serialize_rows(cursor.fetchall())
    except Exception:
        traceback.print_exc()
        return []
    finally:
        _close(db, cursor)


def _fetch_by_ids(cursor, table, ids):
    ids = [i for i in dict.fromkeys(ids) if i]
    if not ids:
        return {}
    cursor.execute(f"SELECT * FROM {table} WHERE id IN ({_placeholders(ids)})", tuple(ids))
    return {row["id"]: _serialize_row(row) for row in cursor.fetchall()}


# ------------------------------------------------------
# JOBS
# ------------------------------------------------------
def fetch_jobs(
    is_active=None,
    recruiter_id=None,
    with_recruiter=False,
    with_applications=False,
    with_candidates=False,
):
    """
    Fetch jobs newest first, optionally nesting related records:
        - recruiter: the owning recruiter profile
        - applications: the job's applications (newest first)
        - applications[].candidate: the applicant's profile
    """
    db = connect_mysql()
    if not db:
        return []

    clauses = ["1=1"]
    params = []
    if is_active is not None:
        clauses.append("is_active = %s")
        params.append(1 if is_active else 0)
    if recruiter_id:
        clauses.append("recruiter_id = %s")
        params.append(recruiter_id)

    cursor = None
    try:
        cursor = db.cursor(dictionary=True)
        cursor.execute(
            f"SELECT * FROM jobs WHERE {' AND '.join(clauses)} ORDER BY created_at DESC",
            tuple(params),
        )
        jobs = _serialize_rows(cursor.fetchall())
        if not jobs:
            return []

        if with_recruiter:
            recruiters = _fetch_by_ids(cursor, "recruiter_profiles", [j["recruiter_id"] for j in jobs])
            for job in jobs:
                job["recruiter"] = recruiters.get(job["recruiter_id"])

        if with_applications:
            job_ids = [job["id"] for job in jobs]
            cursor.execute(
                f"SELECT * FROM applications WHERE job_id IN ({_placeholders(job_ids)}) ORDER BY applied_at DESC",
                tuple(job_ids),
            )
            applications = _serialize_rows(cursor.fetchall())
            candidates = {}
            if with_candidates:
                candidates = _fetch_by_ids(
                    cursor, "candidate_profiles", [a["candidate_id"] for a in applications]
                )
            by_job = {job_id: [] for job_id in job_ids}
            for app in applications:
                if with_candidates:
                    app["candidate"] = candidates.get(app["candidate_id"])
                by_job.setdefault(app["job_id"], []).append(app)
            for job in jobs:
                job["applications"] = by_job.get(job["id"], [])

        return jobs
    except Exception:
        traceback.print_exc()
        return []
    finally:
        _close(db, cursor)


def fetch_job(job_id):
    db = connect_mysql()
    if not db:
        return None

    cursor = None
    try:
        cursor = db.cursor(dictionary=True)
        cursor.execute("SELECT * FROM jobs WHERE id = %s LIMIT 1", (job_id,))
        return _serialize_row(cursor.fetchone())
    except Exception:
        traceback.print_exc()
        return None
    finally:
        _close(db, cursor)


def create_job(recruiter_id, fields):
    fields = dict(fields or {})
    fields.setdefault("job_type", DEFAULT_JOB_TYPE)
    fields.setdefault("is_active", True)
    columns, values = _column_values(fields, JOB_FIELDS)

    db = connect_mysql()
    if not db:
        return None

    job_id = str(uuid4())
    cols = ["id", "recruiter_id", *columns]
    cursor = None
    try:
        cursor = db.cursor()
        cursor.execute(
            f"INSERT INTO jobs ({', '.join(cols)}) VALUES ({_placeholders(cols)})",
            (job_id, recruiter_id, *values),
        )
        db.commit()
        print(f"[DB] Created job {job_id} for recruiter {recruiter_id}.")
    except Exception:
        traceback.print_exc()
        return None
    finally:
        _close(db, cursor)
    return fetch_job(job_id)


def update_job(recruiter_id, job_id, fields):
    """Update a job owned by ``recruiter_id``. Returns False when no such job."""
    columns, values = _column_values(fields or {}, JOB_FIELDS)
    if not columns:
        return False

    db = connect_mysql()
    if not db:
        return False

    assignments = ", ".join(f"{col} = %s" for col in columns)
    cursor = None
    try:
        cursor = db.cursor()
        cursor.execute(
            f"UPDATE jobs SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = %s AND recruiter_id = %s",
            (*values, job_id, recruiter_id),
        )
        db.commit()
        return cursor.rowcount > 0
    except Exception:
        traceback.print_exc()
        return False
    finally:
        _close(db, cursor)


def set_job_active(recruiter_id, job_id, is_active=None):
    """Open or close a job; ``is_active=None`` flips the current state."""
    db = connect_mysql()
    if not db:
        return False

    if is_active is None:
        sql = "UPDATE jobs SET is_active = 1 - is_active WHERE id = %s AND recruiter_id = %s"
        params = (job_id, recruiter_id)
    else:
        sql = "UPDATE jobs SET is_active = %s WHERE id = %s AND recruiter_id = %s"
        params = (1 if is_active else 0, job_id, recruiter_id)

    cursor = None
    try:
        cursor = db.cursor()
        cursor.execute(sql, params)
        db.commit()
        return cursor.rowcount > 0
    except Exception:
        traceback.print_exc()
        return False
    finally:
        _close(db, cursor)


# ------------------------------------------------------
# APPLICATIONS
# ------------------------------------------------------
def fetch_candidate_applications(candidate_id, with_jobs=True):
    """Applications of one candidate, newest first, each with its job and recruiter."""
    db = connect_mysql()
    if not db:
        return []

    cursor = None
    try:
        cursor = db.cursor(dictionary=True)
        cursor.execute(
            "SELECT * FROM applications WHERE candidate_id = %s ORDER BY applied_at DESC",
            (candidate_id,),
        )
        applications = _serialize_rows(cursor.fetchall())
        if with_jobs and applications:
            jobs = _fetch_by_ids(cursor, "jobs", [a["job_id"] for a in applications])
            recruiters = _fetch_by_ids(
                cursor, "recruiter_profiles", [j["recruiter_id"] for j in jobs.values()]
            )
            for job in jobs.values():
                job["recruiter"] = recruiters.get(job["recruiter_id"])
            for app in applications:
                app["job"] = jobs.get(app["job_id"])
        return applications
    except Exception:
        traceback.print_exc()
        return []
    finally:
        _close(db, cursor)


def fetch_applied_job_ids(candidate_id):
    db = connect_mysql()
    if not db:
        return set()

    cursor = None
    try:
        cursor = db.cursor()
        cursor.execute("SELECT job_id FROM applications WHERE candidate_id = %s", (candidate_id,))
        return {row[0] for row in cursor.fetchall()}
    except Exception:
        traceback.print_exc()
        return set()
    finally:
        _close(db, cursor)


def create_application(candidate_id, job_id, cover_letter=""):
    """
    Apply a candidate to an active job.

    Returns {"application": row} on success, or {"error": reason} where reason
    is one of "unavailable", "job_not_found", "duplicate", "failed".
    """
    db = connect_mysql()
    if not db:
        return {"error": "unavailable"}

    application_id = str(uuid4())
    cursor = None
    try:
        cursor = db.cursor(dictionary=True)
        cursor.execute("SELECT id FROM jobs WHERE id = %s AND is_active = 1 LIMIT 1", (job_id,))
        if not cursor.fetchone():
            return {"error": "job_not_found"}

        cursor.execute(
            """
            INSERT INTO applications (id, job_id, candidate_id, cover_letter, status)
            VALUES (%s, %s, %s, %s, %s)
            """,
            (application_id, job_id, candidate_id, cover_letter or "", ApplicationStatus.PENDING.value),
        )
        db.commit()

        cursor.execute("SELECT * FROM applications WHERE id = %s LIMIT 1", (application_id,))
        row = _serialize_row(cursor.fetchone())
        print(f"[DB] Candidate {candidate_id} applied to job {job_id}.")
        return {"application": row}
    except mysql.connector.IntegrityError:
        return {"error": "duplicate"}
    except Exception:
        traceback.print_exc()
        return {"error": "failed"}
    finally:
        _close(db, cursor)


def update_application_status(recruiter_id, application_id, status):
    """Set the status of an application on one of the recruiter's own jobs."""
    if status not in APPLICATION_STATUSES:
        return False
    db = connect_mysql()
    if not db:
        return False

    query = """
        UPDATE applications a
        JOIN jobs j ON j.id = a.job_id
        SET a.status = %s, a.updated_at = CURRENT_TIMESTAMP
        WHERE a.id = %s AND j.recruiter_id = %s
    """
    cursor = None
    try:
        cursor = db.cursor()
        cursor.execute(query, (status, application_id, recruiter_id))
        db.commit()
        return cursor.rowcount > 0
    except Exception:
        traceback.print_exc()
        return False
    finally:
        _close(db, cursor)
