"""
Configuration Schema Validation

Pydantic models for the Courier configuration file: configured message
providers, the default provider, the webchat server and logging.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

WEBCHAT_DEFAULT_PORT = 18788


class ProviderConfigSchema(BaseModel):
    """Schema for a single message provider entry."""

    model_config = ConfigDict(extra="allow")

    enabled: bool = Field(True, description="Whether the provider can be selected")
    bot_token: Optional[str] = Field(None, description="Bot/API token")
    app_token: Optional[str] = Field(None, description="App-level token (Slack socket mode)")
    api_base: Optional[str] = Field(None, description="Override for the provider API base URL")
    default_account_id: Optional[str] = Field(
        None,
        description="Account used when an action does not specify one",
    )


class WebChatConfigSchema(BaseModel):
    """Schema for the loopback webchat asset server."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    port: int = Field(WEBCHAT_DEFAULT_PORT, ge=0, le=65535)
    root: Optional[str] = Field(None, description="Directory holding the webchat assets")


class LoggingConfigSchema(BaseModel):
    """Schema for logging configuration."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    level: str = "INFO"
    json_output: bool = Field(False, alias="json")

    @field_validator("level")
    @classmethod
    def normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


class CourierConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    providers: dict[str, ProviderConfigSchema] = Field(default_factory=dict)
    default_provider: Optional[str] = None
    webchat: WebChatConfigSchema = Field(default_factory=WebChatConfigSchema)
    logging: LoggingConfigSchema = Field(default_factory=LoggingConfigSchema)

    @field_validator("providers", mode="before")
    @classmethod
    def normalize_provider_keys(cls, value: object) -> object:
        if isinstance(value, dict):
            return {str(key).strip().lower(): entry or {} for key, entry in value.items()}
        return value

    @field_validator("default_provider")
    @classmethod
    def normalize_default_provider(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip().lower() or None

    def enabled_providers(self) -> list[str]:
        """Return the names of configured, enabled providers in file order."""
        return [name for name, entry in self.providers.items() if entry.enabled]

    def provider_config(self, provider: str) -> ProviderConfigSchema | None:
        return self.providers.get(provider)
