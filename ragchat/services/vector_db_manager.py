from qdrant_client import AsyncQdrantClient, models
from ragchat.core.config import settings
from ragchat.models.document import DocumentEmbedding, RetrievedDocument
from typing import List, Optional
import logging
import uuid

logger = logging.getLogger(__name__)

# Namespace for deterministic point ids: one point per (document_id, chunk_index)
_POINT_NAMESPACE = uuid.UUID("6f1c8a62-1f0e-4c43-9a59-2d3b8f0f6c11")

def point_id_for_chunk(document_id: str, chunk_index: int) -> str:
    return str(uuid.uuid5(_POINT_NAMESPACE, f"{document_id}:{chunk_index}"))

class VectorDBManager:
    """
    Stores document chunk embeddings in Qdrant and answers cosine similarity
    searches scoped to a single user (and optionally one knowledge base).
    """

    def __init__(self, client: AsyncQdrantClient, collection_name: str, vector_size: int):
        self.client = client
        self.collection_name = collection_name
        self.vector_size = vector_size

    async def ensure_collection_exists(self):
        """Ensures the Qdrant collection exists or creates it."""
        if await self.client.collection_exists(collection_name=self.collection_name):
            logger.info(f"Collection '{self.collection_name}' already exists.")
            return
        logger.info(f"Collection '{self.collection_name}' does not exist. Creating it...")
        await self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=models.VectorParams(size=self.vector_size, distance=models.Distance.COSINE),
        )
        logger.info(f"Collection '{self.collection_name}' created with dimension {self.vector_size}.")

    @staticmethod
    def _document_filter(document_id: str) -> models.Filter:
        return models.Filter(
            must=[
                models.FieldCondition(
                    key="document_id",
                    match=models.MatchValue(value=document_id)
                )
            ]
        )

    async def save_document_embeddings(self, embeddings: List[DocumentEmbedding]):
        """
        Upserts document chunks into the Qdrant collection.
        Each chunk becomes a point keyed by its document id and chunk index.
        """
        points = []
        for row in embeddings:
            points.append(
                models.PointStruct(
                    id=point_id_for_chunk(row.document_id, row.chunk_index),
                    vector=row.embedding,
                    payload={
                        "embedding_id": row.id,
                        "document_id": row.document_id,
                        "knowledge_base_id": row.knowledge_base_id,
                        "chunk_index": row.chunk_index,
                        "content": row.content,
                        "document_title": row.document_title,
                        "user_id": row.user_id,
                        "created_at": row.created_at.isoformat(),
                    }
                )
            )

        if not points:
            return None
        operation_info = await self.client.upsert(
            collection_name=self.collection_name,
            wait=True,
            points=points
        )
        logger.info(f"Upserted {len(points)} points to Qdrant. Status: {operation_info.status}")
        return operation_info

    async def delete_document_embeddings(self, document_id: str):
        """Deletes all chunks associated with a document_id from Qdrant."""
        await self.client.delete(
            collection_name=self.collection_name,
            points_selector=models.FilterSelector(filter=self._document_filter(document_id)),
            wait=True,
        )
        logger.info(f"Deleted chunks for document_id: {document_id}")

    async def get_document_embeddings(self, document_id: str) -> List[DocumentEmbedding]:
        """All stored chunks of one document, ordered by chunk index (vectors omitted)."""
        rows: List[DocumentEmbedding] = []
        offset = None
        while True:
            points, offset = await self.client.scroll(
                collection_name=self.collection_name,
                scroll_filter=self._document_filter(document_id),
                limit=256,
                offset=offset,
                with_payload=True,
                with_vectors=False,
            )
            for point in points:
                payload = point.payload or {}
                rows.append(
                    DocumentEmbedding(
                        id=payload.get("embedding_id") or str(point.id),
                        document_id=payload["document_id"],
                        knowledge_base_id=payload.get("knowledge_base_id"),
                        chunk_index=payload["chunk_index"],
                        content=payload.get("content", ""),
                        embedding=[],
                        document_title=payload.get("document_title"),
                        user_id=payload["user_id"],
                        created_at=payload["created_at"],
                    )
                )
            if offset is None:
                break
        return sorted(rows, key=lambda row: row.chunk_index)

    async def search_similar_documents(
        self,
        embedding: List[float],
        user_id: str,
        limit: int = 5,
        similarity_threshold: float = 0.0,
        knowledge_base_id: Optional[str] = None,
    ) -> List[RetrievedDocument]:
        """
        Nearest chunks by cosine similarity among the user's own chunks,
        ordered by descending similarity.
        """
        must = [
            models.FieldCondition(key="user_id", match=models.MatchValue(value=user_id))
        ]
        if knowledge_base_id:
            must.append(
                models.FieldCondition(key="knowledge_base_id", match=models.MatchValue(value=knowledge_base_id))
            )

        response = await self.client.query_points(
            collection_name=self.collection_name,
            query=embedding,
            query_filter=models.Filter(must=must),
            limit=limit,
            score_threshold=similarity_threshold,
            with_payload=True # Retrieve the chunk text and other metadata
        )
        results = []
        for hit in response.points:
            payload = hit.payload or {}
            document_id = payload.get("document_id")
            results.append(
                RetrievedDocument(
                    document_id=document_id,
                    document_title=payload.get("document_title") or document_id,
                    content=payload.get("content", ""),
                    similarity=hit.score,
                    chunk_index=payload.get("chunk_index", 0),
                )
            )
        return sorted(results, key=lambda doc: doc.similarity, reverse=True)


def create_qdrant_client() -> AsyncQdrantClient:
    if settings.QDRANT_LOCATION:
        return AsyncQdrantClient(location=settings.QDRANT_LOCATION)
    return AsyncQdrantClient(host=settings.QDRANT_HOST, port=settings.QDRANT_PORT)

# Initialize Qdrant client globally; the collection itself is ensured on startup
qdrant_manager = VectorDBManager(
    client=create_qdrant_client(),
    collection_name=settings.QDRANT_COLLECTION_NAME,
    vector_size=settings.EMBEDDING_DIMENSION
)
