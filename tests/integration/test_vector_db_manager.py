"""Integration tests for the Qdrant-backed vector store (embedded in-memory mode)."""

from typing import List, Optional

from ragchat.models.document import DocumentEmbedding
from ragchat.services.vector_db_manager import point_id_for_chunk


def row(
    document_id: str,
    chunk_index: int,
    vector: List[float],
    user_id: str = "user-1",
    knowledge_base_id: Optional[str] = None,
    title: Optional[str] = "Handbook",
) -> DocumentEmbedding:
    return DocumentEmbedding(
        document_id=document_id,
        knowledge_base_id=knowledge_base_id,
        chunk_index=chunk_index,
        content=f"{document_id} chunk {chunk_index}",
        embedding=vector,
        document_title=title,
        user_id=user_id,
    )


async def test_search_is_scoped_to_user_and_sorted(vector_db) -> None:
    await vector_db.save_document_embeddings([
        row("doc-a", 0, [1.0, 0.0, 0.0, 0.0]),
        row("doc-a", 1, [0.7, 0.7, 0.0, 0.0]),
        row("doc-b", 0, [0.2, 1.0, 0.0, 0.0]),
        row("doc-other", 0, [1.0, 0.0, 0.0, 0.0], user_id="user-2"),
    ])

    results = await vector_db.search_similar_documents([1.0, 0.0, 0.0, 0.0], user_id="user-1", limit=5)

    assert [r.content for r in results] == ["doc-a chunk 0", "doc-a chunk 1", "doc-b chunk 0"]
    assert results[0].similarity > 0.99
    assert all(r.document_id != "doc-other" for r in results)
    similarities = [r.similarity for r in results]
    assert similarities == sorted(similarities, reverse=True)


async def test_search_respects_threshold_and_limit(vector_db) -> None:
    await vector_db.save_document_embeddings([
        row("doc-a", 0, [1.0, 0.0, 0.0, 0.0]),
        row("doc-a", 1, [0.7, 0.7, 0.0, 0.0]),
        row("doc-b", 0, [0.2, 1.0, 0.0, 0.0]),
    ])

    above_floor = await vector_db.search_similar_documents(
        [1.0, 0.0, 0.0, 0.0], user_id="user-1", limit=5, similarity_threshold=0.5
    )
    limited = await vector_db.search_similar_documents([1.0, 0.0, 0.0, 0.0], user_id="user-1", limit=1)

    assert {r.content for r in above_floor} == {"doc-a chunk 0", "doc-a chunk 1"}
    assert [r.content for r in limited] == ["doc-a chunk 0"]


async def test_search_filters_by_knowledge_base(vector_db) -> None:
    await vector_db.save_document_embeddings([
        row("doc-a", 0, [1.0, 0.0, 0.0, 0.0], knowledge_base_id="kb-1"),
        row("doc-b", 0, [1.0, 0.0, 0.0, 0.0], knowledge_base_id="kb-2"),
        row("doc-c", 0, [1.0, 0.0, 0.0, 0.0]),
    ])

    results = await vector_db.search_similar_documents(
        [1.0, 0.0, 0.0, 0.0], user_id="user-1", knowledge_base_id="kb-1"
    )

    assert [r.document_id for r in results] == ["doc-a"]


async def test_title_falls_back_to_document_id(vector_db) -> None:
    await vector_db.save_document_embeddings([row("doc-a", 0, [1.0, 0.0, 0.0, 0.0], title=None)])

    results = await vector_db.search_similar_documents([1.0, 0.0, 0.0, 0.0], user_id="user-1")

    assert results[0].document_title == "doc-a"


async def test_get_and_delete_document_embeddings(vector_db) -> None:
    await vector_db.save_document_embeddings([
        row("doc-a", 2, [0.0, 0.0, 1.0, 0.0]),
        row("doc-a", 0, [1.0, 0.0, 0.0, 0.0]),
        row("doc-a", 1, [0.0, 1.0, 0.0, 0.0]),
        row("doc-b", 0, [1.0, 0.0, 0.0, 0.0]),
    ])

    stored = await vector_db.get_document_embeddings("doc-a")
    assert [r.chunk_index for r in stored] == [0, 1, 2]
    assert stored[0].content == "doc-a chunk 0"

    await vector_db.delete_document_embeddings("doc-a")

    assert await vector_db.get_document_embeddings("doc-a") == []
    assert len(await vector_db.get_document_embeddings("doc-b")) == 1


async def test_same_chunk_index_overwrites(vector_db) -> None:
    await vector_db.save_document_embeddings([row("doc-a", 0, [1.0, 0.0, 0.0, 0.0])])
    replacement = row("doc-a", 0, [0.0, 1.0, 0.0, 0.0])
    replacement.content = "new content"
    await vector_db.save_document_embeddings([replacement])

    stored = await vector_db.get_document_embeddings("doc-a")

    assert len(stored) == 1
    assert stored[0].content == "new content"


async def test_ensure_collection_is_idempotent(vector_db) -> None:
    await vector_db.ensure_collection_exists()

    assert await vector_db.client.collection_exists(collection_name=vector_db.collection_name)


def test_point_ids_are_deterministic() -> None:
    assert point_id_for_chunk("doc-a", 0) == point_id_for_chunk("doc-a", 0)
    assert point_id_for_chunk("doc-a", 0) != point_id_for_chunk("doc-a", 1)
    assert point_id_for_chunk("doc-a", 0) != point_id_for_chunk("doc-b", 0)
