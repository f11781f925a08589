"""Database connection configuration."""

from pydantic import BaseModel, SecretStr

_ASYNC_DRIVER_PREFIXES = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
}


class DatabaseConfig(BaseModel, frozen=True):
    """Database connection settings."""

    url: SecretStr
    timeout_seconds: float

    @property
    def async_url(self) -> str:
        """DB URL with an async driver for plain PostgreSQL URLs."""
        base = self.url.get_secret_value()
        for prefix, replacement in _ASYNC_DRIVER_PREFIXES.items():
            if base.startswith(prefix):
                return replacement + base[len(prefix) :]
        return base
