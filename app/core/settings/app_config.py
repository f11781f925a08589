"""Application environment configuration."""

from typing import Literal

from pydantic import BaseModel


class AppConfig(BaseModel, frozen=True):
    """Application identity, environment and browser access settings."""

    name: str
    version: str
    env: Literal["development", "staging", "production"]
    debug: bool
    frontend_url: str

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def cors_origins(self) -> list[str]:
        """Any origin in development, otherwise only the configured frontend."""
        if self.is_development:
            return ["*"]
        return [self.frontend_url]
