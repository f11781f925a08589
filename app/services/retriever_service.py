"""Vector search over ingested news article chunks."""

from langchain_core.embeddings import Embeddings
from qdrant_client import AsyncQdrantClient

from app.schemas.retriever_schema import RetrievedPassage


class NewsRetriever:
    """Embeds a query and returns the closest passages from Qdrant."""

    def __init__(
        self,
        client: AsyncQdrantClient,
        embeddings: Embeddings,
        collection_name: str,
        top_k: int = 5,
    ) -> None:
        self._client = client
        self._embeddings = embeddings
        self._collection_name = collection_name
        self._top_k = top_k

    async def search(self, query: str, k: int | None = None) -> list[RetrievedPassage]:
        """Return up to ``k`` passages ordered by similarity."""
        vector = await self._embeddings.aembed_query(query)
        result = await self._client.query_points(
            collection_name=self._collection_name,
            query=vector,
            limit=k or self._top_k,
            with_payload=True,
            with_vectors=False,
        )
        return [
            RetrievedPassage(
                id=str(point.id),
                score=point.score,
                chunk=(point.payload or {}).get("chunk"),
                metadata=dict(point.payload or {}),
            )
            for point in result.points
        ]
