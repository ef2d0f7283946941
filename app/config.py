"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration.

    Values are read from environment variables (or a `.env` file).
    """

    # Supabase
    supabase_url: str
    supabase_service_key: str
    supabase_http_max_connections: int = 100
    supabase_http_max_keepalive_connections: int = 50
    supabase_postgrest_timeout_seconds: int = 30
    # Rows per select page; keep at or below the PostgREST db-max-rows cap.
    supabase_page_size: int = 1000

    # App
    app_name: str = "OVS API"
    app_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"
    enable_scheduler: bool = True

    # Scheduling
    timezone: str = "UTC"
    otp_cleanup_interval_minutes: int = 30

    # Sessions
    session_secret: str
    admin_session_cookie: str = "ovs_session"
    admin_session_ttl_minutes: int = 480
    voter_session_ttl_minutes: int = 60
    cookie_secure: bool = False

    # Email (SMTP)
    email_user: str | None = None
    email_pass: str | None = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_timeout_seconds: int = 20
    mail_from_name: str = "UNIMAK EC"
    nextauth_url: str = "http://localhost:3000"

    # Voter credentials
    password_length: int = 12
    bcrypt_rounds: int = 12
    otp_bcrypt_rounds: int = 10
    otp_ttl_minutes: int = 10
    allow_src_voting: bool = False

    # Performance tuning
    slow_request_log_threshold_ms: int = 0
    slow_query_log_threshold_ms: int = 0

    @property
    def is_production(self) -> bool:
        """Return True when running in production."""
        return self.environment == "production"

    @property
    def origins_list(self) -> list[str]:
        """Parse comma-separated ALLOWED_ORIGINS into a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def email_configured(self) -> bool:
        """Return True when SMTP credentials are present."""
        return bool(self.email_user and self.email_pass)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()  # type: ignore[call-arg]
