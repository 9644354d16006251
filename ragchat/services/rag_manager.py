from typing import Any, Callable, Dict, List, Optional
from enum import Enum
from pydantic import BaseModel
import logging

from ragchat.core.config import settings
from ragchat.models.chat import ChatMessage, MessagePart, get_text_from_message, index_of_message, insert_context
from ragchat.models.document import RetrievedDocument
from ragchat.services.embedding_service import EmbeddingService, embedding_service
from ragchat.services.query_rewriter import QueryRewriter, query_rewriter
from ragchat.services.vector_db_manager import VectorDBManager, qdrant_manager
from ragchat.utils.text_cleaning import clean_query_text

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

ThresholdPolicy = Callable[[int], float]

def static_threshold_policy(threshold: float) -> ThresholdPolicy:
    """Same similarity floor whatever the query length."""
    return lambda query_length: threshold

def dynamic_threshold_policy(
    short_length: int = settings.RAG_SHORT_QUERY_LENGTH,
    medium_length: int = settings.RAG_MEDIUM_QUERY_LENGTH,
    short_threshold: float = settings.RAG_SHORT_QUERY_THRESHOLD,
    medium_threshold: float = settings.RAG_MEDIUM_QUERY_THRESHOLD,
    long_threshold: float = settings.RAG_LONG_QUERY_THRESHOLD,
) -> ThresholdPolicy:
    """
    Search floor by cleaned query length. Short queries embed less precisely,
    so they get a lower floor; longer ones a stricter one.
    """
    def policy(query_length: int) -> float:
        if query_length < short_length:
            return short_threshold
        if query_length < medium_length:
            return medium_threshold
        return long_threshold
    return policy

class RetrievalState(str, Enum):
    IDLE = "idle"
    REWRITING = "rewriting"
    EMBEDDING = "embedding"
    SEARCHING = "searching"
    FILTERING = "filtering"
    INJECTED = "injected"
    NO_MATCHES = "no_matches"
    SKIPPED = "skipped"
    FAILED_SOFT = "failed_soft"

class RetrievalOutcome(BaseModel):
    state: RetrievalState
    updated_messages: List[ChatMessage]
    retrieved_documents: List[RetrievedDocument] = []
    query: Optional[str] = None
    error: Optional[str] = None

def format_context_message(documents: List[RetrievedDocument], role: str = settings.RAG_CONTEXT_ROLE) -> ChatMessage:
    """Render retrieved chunks as one synthetic message: title, similarity percentage and content per chunk."""
    documents_text = "\n\n---\n\n".join(
        f"📄 **{doc.document_title}** ({doc.similarity * 100:.0f}% relevant)\n{doc.content}"
        for doc in documents
    )
    plural = "s" if len(documents) > 1 else ""
    text = (
        f"**Knowledge Base Context** ({len(documents)} relevant document{plural}):\n\n"
        f"{documents_text}\n\n"
        "*Use information from these documents to answer the user's question. "
        "Cite the document title when referencing specific information.*"
    )
    return ChatMessage(role=role, parts=[MessagePart(type="text", text=text)], synthetic=True)

class RAGManager:
    """
    Retrieval-Augmented Generation Manager.

    Runs one retrieval pass per chat turn: rewrite the query with recent
    history, clean and embed it, search the user's chunks, filter and sort the
    hits, then splice a context message in front of the triggering user
    message. Retrieval is best-effort relative to generation, so nothing here
    raises past retrieve_relevant_context; failures end in FAILED_SOFT with the
    message list unchanged.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_db_manager: VectorDBManager,
        query_rewriter: Optional[QueryRewriter] = None,
        top_k: int = settings.RAG_TOP_K,
        min_display_similarity: float = settings.RAG_MIN_DISPLAY_SIMILARITY,
        threshold_policy: Optional[ThresholdPolicy] = None,
        context_role: str = settings.RAG_CONTEXT_ROLE,
    ):
        """
        Initialize the RAG Manager.

        Args:
            embedding_service: Client for query embeddings
            vector_db_manager: Vector store accessor for similarity search
            query_rewriter: Optional rewriter; None disables rewriting
            top_k: Number of nearest chunks requested from the store
            min_display_similarity: Floor applied after search, before injection
            threshold_policy: Maps cleaned query length to the search-time floor
            context_role: Role of the injected context message
        """
        self.embedding_service = embedding_service
        self.vector_db_manager = vector_db_manager
        self.query_rewriter = query_rewriter
        self.top_k = top_k
        self.min_display_similarity = min_display_similarity
        self.threshold_policy = threshold_policy or dynamic_threshold_policy()
        self.context_role = context_role

    async def _rewrite(self, query_text: str, history: List[ChatMessage]) -> str:
        if self.query_rewriter is None:
            return query_text
        result = await self.query_rewriter.rewrite(current_query=query_text, conversation_history=history)
        if not result.success:
            logger.info(f"Query rewrite not applied ({result.error}); using original query")
        return result.rewritten_query

    def _filter_and_sort(self, documents: List[RetrievedDocument]) -> List[RetrievedDocument]:
        kept = [doc for doc in documents if doc.similarity >= self.min_display_similarity]
        return sorted(kept, key=lambda doc: doc.similarity, reverse=True)

    async def retrieve_relevant_context(
        self,
        message: Optional[ChatMessage],
        ui_messages: List[ChatMessage],
        user_id: Optional[str],
        is_tool_approval_flow: bool = False,
    ) -> RetrievalOutcome:
        """
        Retrieve context for the current turn and inject it into a copy of the message list.

        Args:
            message: The triggering message of this turn
            ui_messages: In-memory message list for generation, current message included
            user_id: Authenticated caller; retrieval only searches this user's chunks
            is_tool_approval_flow: True when the request replays history to run a pending tool

        Returns:
            RetrievalOutcome with the final state, the (possibly) updated list
            and the documents that were injected
        """
        if message is None or message.role != "user" or not user_id or is_tool_approval_flow:
            logger.info("Skipping RAG retrieval (not a fresh authenticated user turn)")
            return RetrievalOutcome(state=RetrievalState.SKIPPED, updated_messages=list(ui_messages))

        state = RetrievalState.IDLE
        try:
            message_text = get_text_from_message(message)
            if not message_text.strip():
                return RetrievalOutcome(state=RetrievalState.SKIPPED, updated_messages=list(ui_messages))

            position = index_of_message(ui_messages, message)

            state = RetrievalState.REWRITING
            query_text = await self._rewrite(message_text, list(ui_messages[:position]))

            cleaned_query = clean_query_text(query_text)
            if not cleaned_query:
                logger.info("Query is empty after cleaning; nothing to retrieve")
                return RetrievalOutcome(state=RetrievalState.SKIPPED, updated_messages=list(ui_messages))

            state = RetrievalState.EMBEDDING
            query_embedding = await self.embedding_service.embed(cleaned_query)

            state = RetrievalState.SEARCHING
            search_threshold = self.threshold_policy(len(cleaned_query))
            search_results = await self.vector_db_manager.search_similar_documents(
                embedding=query_embedding,
                user_id=user_id,
                limit=self.top_k,
                similarity_threshold=search_threshold,
            )
            logger.info(f"Found {len(search_results)} candidate chunk(s) above search floor {search_threshold}")

            state = RetrievalState.FILTERING
            documents = self._filter_and_sort(search_results)
            if not documents:
                logger.info(f"No chunk passed the display floor {self.min_display_similarity}")
                return RetrievalOutcome(
                    state=RetrievalState.NO_MATCHES,
                    updated_messages=list(ui_messages),
                    query=cleaned_query,
                )

            context_message = format_context_message(documents, role=self.context_role)
            updated_messages = insert_context(ui_messages, position, context_message)
            logger.info(f"Injected {len(documents)} document chunk(s) before the user message")
            return RetrievalOutcome(
                state=RetrievalState.INJECTED,
                updated_messages=updated_messages,
                retrieved_documents=documents,
                query=cleaned_query,
            )
        except Exception as e:
            # Retrieval must never fail the chat turn
            logger.error(f"Error retrieving documents during {state.value}: {e}", exc_info=True)
            return RetrievalOutcome(
                state=RetrievalState.FAILED_SOFT,
                updated_messages=list(ui_messages),
                error=str(e),
            )

    async def search_documents(
        self,
        query: str,
        user_id: Optional[str],
        limit: int = 5,
        knowledge_base_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Explicit knowledge-base search with a fixed quality floor.

        Returns:
            {"results": [...], "count": n, "query": query} or {"error": ..., "results": []}
        """
        if not user_id:
            return {"error": "Unauthorized", "results": []}
        limit = max(1, min(limit, 10))

        try:
            cleaned_query = clean_query_text(query)
            if not cleaned_query:
                return {"error": "Query is empty after cleaning", "results": []}

            query_embedding = await self.embedding_service.embed(cleaned_query)
            results = await self.vector_db_manager.search_similar_documents(
                embedding=query_embedding,
                user_id=user_id,
                limit=limit,
                similarity_threshold=settings.SEARCH_TOOL_SIMILARITY_THRESHOLD,
                knowledge_base_id=knowledge_base_id,
            )
        except Exception as e:
            logger.error(f"Error retrieving documents: {e}", exc_info=True)
            return {"error": "Failed to retrieve documents", "results": []}

        return {
            "results": [
                {
                    "document_id": result.document_id,
                    "document_title": result.document_title,
                    "content": result.content,
                    "similarity": round(result.similarity, 2),
                    "chunk_index": result.chunk_index,
                }
                for result in results
            ],
            "count": len(results),
            "query": query,
        }

# Initialize RAG manager
rag_manager = RAGManager(
    embedding_service=embedding_service,
    vector_db_manager=qdrant_manager,
    query_rewriter=query_rewriter if settings.RAG_QUERY_REWRITE_ENABLED else None,
)
