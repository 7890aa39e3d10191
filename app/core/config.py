"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Cross-field requirements (e.g. SECRET_KEY when local
claims tokens are used) are validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    Firebase credentials are optional at load time so the app can start
    (and be tested) without them; routes that need a backing client fail
    with 503 until credentials are configured.
    """

    # App
    app_name: str = "syncly-tenancy"
    app_version: str = "1.0.0"
    debug: bool = False

    # Firebase: use key (env, full JSON string) or path (file). Project id is
    # read from the service account unless overridden.
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None
    firebase_project_id: str | None = None
    firebase_http_timeout_seconds: float = 30.0

    # Caller identity: "firebase" verifies Firebase ID tokens; "local" verifies
    # HS256 claims tokens minted by this service (dev/test and service calls).
    auth_token_mode: str = "firebase"
    secret_key: SecretStr = SecretStr("")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    # Self-only operations require a sign-in at most this old (platform admins exempt).
    reauth_max_age_seconds: int = 300

    # Provisioning
    saga_step_timeout_seconds: float = 15.0
    # Attempts still in_progress after this long are treated as crashed by recovery.
    saga_stale_after_seconds: int = 900
    batch_write_limit: int = 500
    min_password_length: int = 6

    # Permission migration
    auto_migrate_roles_on_startup: bool = True

    # Operations log
    operations_log_default_limit: int = 100
    operations_log_max_limit: int = 1000

    # Request tracing
    request_id_header: str = "X-Request-ID"

    # CORS / rate limiting
    allowed_origins: str = "http://localhost:3000,http://localhost:5173"
    rate_limit_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_auth_and_limits(self) -> "Settings":
        """Validate token mode and numeric limits.

        - local: SECRET_KEY required (HS256 signing key).
        - firebase: tokens are verified against the Firebase project.
        - batch_write_limit must stay within Firestore's 500-write commit cap.
        """
        if self.auth_token_mode not in ("firebase", "local"):
            raise ValueError(
                f"auth_token_mode must be 'firebase' or 'local', got: {self.auth_token_mode!r}"
            )
        if self.auth_token_mode == "local" and not self.secret_key.get_secret_value():
            raise ValueError(
                "SECRET_KEY is required when AUTH_TOKEN_MODE is 'local'. "
                "Generate with: openssl rand -hex 32."
            )
        if not 1 <= self.batch_write_limit <= 500:
            raise ValueError("batch_write_limit must be between 1 and 500")
        if self.saga_step_timeout_seconds <= 0:
            raise ValueError("saga_step_timeout_seconds must be positive")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
