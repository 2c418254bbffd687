import os

from backend.portal.models import ApplicationStatus

# ------------------------------------------------------
# MYSQL CONFIGURATION
# ------------------------------------------------------
def _read_env(*keys, default=None):
    """Return the first found environment variable from provided keys."""
    for key in keys:
        if key and key in os.environ:
            return os.environ[key]
    return default


DB_CONFIG = {
    "host": _read_env("PORTAL_DB_HOST", "DB_HOST", "MYSQL_HOST", default="127.0.0.1"),
    "user": _read_env("PORTAL_DB_USER", "DB_USER", "MYSQL_USER", default="portal"),
    "password": _read_env("PORTAL_DB_PASSWORD", "DB_PASSWORD", "MYSQL_PASSWORD", default=""),
    "database": _read_env("PORTAL_DB_NAME", "DB_NAME", "MYSQL_DB", default="job_portal"),
    "port": int(_read_env("PORTAL_DB_PORT", "DB_PORT", "MYSQL_PORT", default=3306)),
    "autocommit": True,
}


# ------------------------------------------------------
# APPLICATION LIFECYCLE
# ------------------------------------------------------
APPLICATION_STATUSES = tuple(status.value for status in ApplicationStatus)

USER_ROLES = ("candidate", "recruiter")

DEFAULT_JOB_TYPE = "Full-time"


# ------------------------------------------------------
# ANALYTICS RULES (used in analytics.py)
# ------------------------------------------------------
ANALYTICS_RULES = {
    "top_skills": int(_read_env("PORTAL_TOP_SKILLS", default=10)),
    "missing_skills": int(_read_env("PORTAL_MISSING_SKILLS", default=5)),
    "top_jobs": int(_read_env("PORTAL_TOP_JOBS", default=5)),
}
