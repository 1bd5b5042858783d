"""Application configuration"""
from typing import List, Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings


class ConfigurationError(RuntimeError):
    """Raised when required inputs are missing or the trigger is unusable."""


class Settings(BaseSettings):
    """Application settings

    GitHub Actions exposes `with:` inputs as INPUT_<NAME> environment variables,
    so each input is also accepted under its plain environment name.
    """

    # Backlog
    backlog_host: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("INPUT_BACKLOG-HOST", "BACKLOG_HOST")
    )
    backlog_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("INPUT_BACKLOG-API-KEY", "BACKLOG_API_KEY")
    )
    # When false, a stage whose custom field is missing is skipped instead.
    create_missing_fields: bool = Field(
        default=True,
        validation_alias=AliasChoices("INPUT_CREATE-MISSING-FIELDS", "CREATE_MISSING_FIELDS"),
    )

    # GitHub
    github_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("INPUT_SECRET", "GITHUB_TOKEN")
    )
    github_event_path: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("GITHUB_EVENT_PATH")
    )
    github_repository: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("GITHUB_REPOSITORY")
    )
    github_api_url: str = Field(
        default="https://api.github.com", validation_alias=AliasChoices("GITHUB_API_URL")
    )

    # Logging
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("INPUT_LOG-LEVEL", "LOG_LEVEL"))
    github_actions: bool = Field(default=False, validation_alias=AliasChoices("GITHUB_ACTIONS"))

    class Config:
        env_file = ".env"
        case_sensitive = False
        populate_by_name = True
        extra = "ignore"

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_unset(cls, value, info):
        # Actions passes unset inputs as empty strings.
        if isinstance(value, str) and not value.strip():
            return cls.model_fields[info.field_name].default
        return value

    def missing_required(self) -> List[str]:
        """Names of required settings that are not set"""
        required = {
            "backlog-host": self.backlog_host,
            "backlog-api-key": self.backlog_api_key,
            "secret": self.github_token,
            "GITHUB_EVENT_PATH": self.github_event_path,
        }
        return [name for name, value in required.items() if not value]

    def require_runtime(self) -> None:
        """Raise ConfigurationError if any required input is missing"""
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(f"Input required and not supplied: {', '.join(missing)}")


def load_settings(**overrides) -> Settings:
    """Load settings from the environment, reporting bad values as ConfigurationError"""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
