"""Vector store configuration."""

from pydantic import BaseModel, SecretStr


class VectorStoreConfig(BaseModel, frozen=True):
    """Qdrant vector store settings."""

    url: str
    api_key: SecretStr
    collection_name: str
    top_k: int
