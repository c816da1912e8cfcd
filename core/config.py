from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Volunteer Match API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # Frontend Domains (CORS)
    # -------------------------------------------------
    FRONTEND_DOMAIN: Optional[str] = Field(None, description="Public domain of the web frontend")

    DEFAULT_FRONTEND_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (Primary DB & Auth)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # -------------------------------------------------
    # REST client (data access layer)
    # -------------------------------------------------
    API_BASE_URL: str = Field("http://localhost:5000/api", description="Base URL the data access layer talks to")
    API_TIMEOUT_SECONDS: float = Field(10.0, description="Per-call HTTP timeout for the REST client")
    API_TOKEN: Optional[str] = Field(None, description="Bearer token used by background jobs")

    # Read cache lifetime (default: 5 minutes)
    CACHE_DURATION_SECONDS: int = 300

    # Admin dashboard auto-refresh interval
    DASHBOARD_REFRESH_SECONDS: int = 30

    # -------------------------------------------------
    # Matching workflow
    # -------------------------------------------------
    # "single_match": first assigned volunteer closes the request to others
    # "fill_slots": matched requests keep accepting volunteers until full
    FULFILLMENT_POLICY: str = "single_match"

    # -------------------------------------------------
    # Local key-value store for CSR shortlists
    # -------------------------------------------------
    SHORTLIST_STORE_PATH: str = ".shortlists.json"

    # -------------------------------------------------
    # Daily report delivery (Discord, Slack, etc.)
    # -------------------------------------------------
    REPORT_WEBHOOK_URL: Optional[str] = None

    # Run the daily report job inside the API process
    ENABLE_SCHEDULER: bool = False

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list after loading settings
# -------------------------------------------------
cors_origins = []

if settings.FRONTEND_DOMAIN:
    domain = settings.FRONTEND_DOMAIN
    if not domain.startswith("http"):
        domain = f"https://{domain}"
    cors_origins.append(domain.rstrip("/"))

cors_origins.extend([d.rstrip("/") for d in settings.DEFAULT_FRONTEND_ORIGINS])

settings.BACKEND_CORS_ORIGINS = sorted(list(set(cors_origins)))
