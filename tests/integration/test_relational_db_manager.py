"""Integration tests for document and knowledge-base persistence on SQLite."""

from ragchat.services.relational_db_manager import RelationalDBManager


async def test_save_and_get_document(db_session) -> None:
    manager = RelationalDBManager(db_session)

    saved = await manager.save_document(id="doc-1", title="Handbook", content="full text", user_id="user-1")
    fetched = await manager.get_document_by_id("doc-1")

    assert saved.id == "doc-1"
    assert fetched is not None
    assert fetched.title == "Handbook"
    assert fetched.content == "full text"
    assert fetched.kind == "text"
    assert fetched.created_at is not None


async def test_missing_document_returns_none(db_session) -> None:
    assert await RelationalDBManager(db_session).get_document_by_id("nope") is None


async def test_documents_by_user(db_session) -> None:
    manager = RelationalDBManager(db_session)
    await manager.save_document(id="doc-1", title="A", content="a", user_id="user-1")
    await manager.save_document(id="doc-2", title="B", content="b", user_id="user-2")
    await manager.save_document(id="doc-3", title="C", content="c", user_id="user-1")

    documents = await manager.get_documents_by_user_id("user-1")

    assert {d.id for d in documents} == {"doc-1", "doc-3"}


async def test_knowledge_bases(db_session) -> None:
    manager = RelationalDBManager(db_session)

    created = await manager.create_knowledge_base(user_id="user-1", name="Papers", description="Research papers")
    await manager.create_knowledge_base(user_id="user-2", name="Other")

    knowledge_bases = await manager.list_knowledge_bases("user-1")

    assert created.id
    assert [kb.name for kb in knowledge_bases] == ["Papers"]
    assert knowledge_bases[0].description == "Research papers"
