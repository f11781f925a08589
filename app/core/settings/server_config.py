"""HTTP server bind configuration."""

from pydantic import BaseModel


class ServerConfig(BaseModel, frozen=True):
    """Address uvicorn listens on."""

    host: str
    port: int
