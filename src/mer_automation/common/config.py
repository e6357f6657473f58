"""MER automation configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "api_key": "insecure-admin-key-change-me",
}


class MerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MER_", frozen=True)

    environment: str = "development"
    log_level: str = "INFO"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/mer.db"

    # API
    api_title: str = "MER Automation"
    api_version: str = "0.1.0"
    api_key: str = "insecure-admin-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Table names
    sheet_active_users: str = "Active Users"
    sheet_basket_index: str = "Basket Index"
    sheet_basket_registration: str = "Basket Registration"
    sheet_registration: str = "MER Directory & Building Access Registration"
    sheet_training: str = "Safety Training Requests"
    sheet_quiz: str = "Quiz OH 102"
    sheet_lab_access: str = "Lab Access & Sedona Registration"

    # Usage logs and exemptions
    log_root: str = "./data/invoices"
    exemptions_path: str = "./data/basket_exemptions.json"

    # Basket lifecycle
    active_period_months: int = 6
    grace_period_days: int = 60

    # Quiz
    quiz_passing_score: int = 100

    # Email
    email_provider: str = ""  # "sendgrid" or "resend"
    email_api_key: str = ""
    email_from: str = "mer-automation@example.edu"
    email_from_name: str = "MER Automation"
    access_control_email: str = "access-control@example.edu"

    # Calendar
    safety_training_title: str = (
        "Training: OH 102 | Description: Site-Specific Hazard Communication"
    )

    # Forms
    training_request_form_url: str = "https://forms.example.edu/training-request"
    quiz_form_url: str = "https://forms.example.edu/oh102-quiz"
    onboarding_form_url: str = "https://forms.example.edu/building-access"
    supplies_form_url: str = "https://forms.example.edu/cleanroom-supplies"
    purge_form_url: str = "https://forms.example.edu/basket-purge"
    lab_access_form_url: str = ""

    # Badges and access requests
    badge_organization: str = "MER"
    access_signature: str = "MER Facilities"

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"MER_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default API key, set MER_API_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> MerSettings:
    settings = MerSettings()
    settings.validate_for_production()
    return settings
