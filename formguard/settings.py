from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment/.env.

    Validation is explicit via validate_startup(); do not raise on import.
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # CSRF
    CSRF_SESSION_KEY: str = Field(default="csrf_tokens", description="Session key holding the form token map")
    CSRF_FORM_FIELD: str = Field(default="csrf_token", description="Hidden form field carrying the token")
    CSRF_HEADER_NAME: str = Field(default="X-CSRF-Token", description="Header alternative to the form field")

    # Session
    SECRET_KEY: str | None = Field(default=None)
    SESSION_MAX_AGE: int = Field(default=3600)
    SESSION_SECURE: bool = Field(default=True)

    # Login
    ADMIN_USERNAME: str = Field(default="admin")
    ADMIN_PASSWORD_HASH: str | None = Field(default=None)

    # Rate limiting
    RATE_LIMIT_LOGIN: str = Field(default="5/minute")

    # CORS
    ALLOWED_ORIGINS: list[str] | str = Field(default_factory=list)

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def _parse_allowed_origins(cls, value):
        """Allow env to be provided as JSON array or comma-separated string."""
        if value is None or value == "":
            return []
        if isinstance(value, (list, tuple)):
            return [str(v).strip() for v in value if str(v).strip()]
        if isinstance(value, str):
            s = value.strip()
            # Try JSON first
            try:
                import json
                parsed = json.loads(s)
                if isinstance(parsed, (list, tuple)):
                    return [str(v).strip() for v in parsed if str(v).strip()]
            except ValueError:
                pass
            # Fallback to comma-separated
            return [part.strip() for part in s.split(",") if part.strip()]
        return []

    @field_validator("SESSION_MAX_AGE")
    @classmethod
    def _session_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("SESSION_MAX_AGE must be positive")
        return v

    @field_validator("CSRF_SESSION_KEY", "CSRF_FORM_FIELD", "CSRF_HEADER_NAME")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("CSRF names must not be blank")
        return v

    def validate_startup(self) -> dict:
        """Perform non-fatal configuration validation for startup.

        Returns a dict with errors/warnings; caller decides how to handle.
        """
        errors: list[str] = []
        warnings: list[str] = []

        if not self.ADMIN_PASSWORD_HASH:
            warnings.append("ADMIN_PASSWORD_HASH not set - login will be refused")
        if not self.SECRET_KEY:
            warnings.append("SECRET_KEY not set - using ephemeral (sessions end on restart)")
        elif len(self.SECRET_KEY) < 32:
            errors.append("SECRET_KEY must be at least 32 characters")
        if not self.SESSION_SECURE:
            warnings.append("SESSION_SECURE disabled - session cookie is sent over plain HTTP")

        return {"errors": errors, "warnings": warnings, "is_valid": len(errors) == 0}


# Singleton settings instance
settings = Settings()
