from typing import List, Optional
from pydantic import BaseModel
import logging

from ragchat.core.config import settings
from ragchat.models.chat import ChatMessage, get_text_from_message
from ragchat.services.llm_service import LLMService, llm_service

logger = logging.getLogger(__name__)

REWRITE_SYSTEM_PROMPT = """You are a query optimization assistant. Your job is to rewrite a user's short or ambiguous query into a clear, complete query that is easy to search for.

**Rewrite rules:**
1. If the user uses pronouns or references (it, this, that, they...), replace them with the concrete entity or concept from the conversation
2. If the query is too short, add the context needed to understand it
3. If the query is vague, make the user's actual intent explicit
4. Keep the core question unchanged
5. Output plain query text only, without explanations or extra content

**Examples:**
- Input: "What is it?" + context: "...React Hooks..."
  Output: "What are React Hooks?"

- Input: "More detail please" + context: "...introduced vector databases..."
  Output: "Explain in detail how vector databases work and where they are used"

- Input: "Are there others?" + context: "...recommended Next.js..."
  Output: "Besides Next.js, what other full-stack React frameworks are there?"

**Important: output only the rewritten query text, nothing else.**"""

# A rewrite longer than this multiple of the original is treated as the model explaining itself
MAX_REWRITE_LENGTH_RATIO = 5

class RewriteResult(BaseModel):
    original_query: str
    rewritten_query: str
    success: bool
    error: Optional[str] = None

class QueryRewriter:
    """
    Resolves pronouns and ellipsis in follow-up questions using recent dialogue
    before the query is embedded. Short anaphoric queries ("and the second
    one?") embed poorly, so rewriting them improves retrieval recall.

    The rewriter is fail-open: whatever goes wrong, the caller gets the
    original query back with success=False, never an exception.
    """

    def __init__(self, llm_service: LLMService = llm_service):
        self.llm_service = llm_service

    @staticmethod
    def _recent_history(conversation_history: List[ChatMessage], max_history_messages: int) -> List[dict]:
        # Injected messages are not dialogue; max_history_messages counts user+assistant turn pairs
        dialogue = [message for message in conversation_history if not message.synthetic]
        recent = dialogue[-max_history_messages * 2:] if max_history_messages > 0 else []
        history = []
        for message in recent:
            if message.role not in ("user", "assistant"):
                continue
            text = get_text_from_message(message)
            if text.strip():
                history.append({"role": message.role, "content": text})
        return history

    @staticmethod
    def _build_user_prompt(current_query: str, history: List[dict]) -> str:
        if not history:
            return (
                f"**Current query:**\n{current_query}\n\n"
                "Rewrite this query into a clearer, more complete form. Output only the rewritten query text."
            )
        lines = "\n".join(f"{i}. [{msg['role']}]: {msg['content']}" for i, msg in enumerate(history, 1))
        return (
            f"**Conversation history:**\n{lines}\n\n"
            f"**Current query:**\n{current_query}\n\n"
            "Using the conversation history, rewrite the current query into a clear, complete query. "
            "Output only the rewritten query text."
        )

    def _fallback(self, current_query: str, error: str) -> RewriteResult:
        return RewriteResult(
            original_query=current_query,
            rewritten_query=current_query,
            success=False,
            error=error,
        )

    async def rewrite(
        self,
        current_query: str,
        conversation_history: List[ChatMessage],
        max_history_messages: int = settings.REWRITE_MAX_HISTORY_MESSAGES,
    ) -> RewriteResult:
        """
        Rewrite ``current_query`` using the tail of ``conversation_history``.

        Args:
            current_query: Text of the triggering user message
            conversation_history: Messages before the current one, oldest first
            max_history_messages: Number of user/assistant turn pairs to include

        Returns:
            RewriteResult; on any failure rewritten_query equals current_query
        """
        try:
            history = self._recent_history(conversation_history, max_history_messages)
            logger.info(f"Rewriting query ({len(current_query)} chars) with {len(history)} history message(s)")

            rewritten = await self.llm_service.chat_completion(
                messages=[
                    {"role": "system", "content": REWRITE_SYSTEM_PROMPT},
                    {"role": "user", "content": self._build_user_prompt(current_query, history)},
                ],
                temperature=settings.REWRITE_TEMPERATURE,
                max_tokens=settings.REWRITE_MAX_TOKENS,
            )
        except Exception as e:
            logger.error(f"Query rewrite failed, keeping original query: {e}")
            return self._fallback(current_query, str(e) or type(e).__name__)

        rewritten = rewritten.strip()
        if not rewritten:
            logger.warning("Rewritten query is empty, keeping original query")
            return self._fallback(current_query, "Empty rewritten query")

        if len(rewritten) > len(current_query) * MAX_REWRITE_LENGTH_RATIO:
            logger.warning("Rewritten query is too long (likely contains an explanation), keeping original query")
            return self._fallback(current_query, "Rewritten query too long")

        logger.info(f"Query rewritten: {current_query!r} -> {rewritten!r}")
        return RewriteResult(
            original_query=current_query,
            rewritten_query=rewritten,
            success=True,
        )

# Initialize query rewriter globally or via dependency injection
query_rewriter = QueryRewriter()
