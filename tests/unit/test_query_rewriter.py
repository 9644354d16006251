"""Unit tests for the fail-open query rewriter."""

from typing import Dict, List, Optional

import httpx

from ragchat.models.chat import ChatMessage
from ragchat.services.llm_service import LLMService
from ragchat.services.query_rewriter import QueryRewriter


class FakeLLM:
    def __init__(self, reply: str = "", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[List[Dict[str, str]]] = []

    async def chat_completion(self, messages, temperature=0.7, max_tokens=1000) -> str:
        self.calls.append(messages)
        if self.error:
            raise self.error
        return self.reply


def conversation(count: int) -> List[ChatMessage]:
    roles = ["user", "assistant"]
    return [ChatMessage.from_text(roles[i % 2], f"message {i}") for i in range(count)]


async def test_successful_rewrite() -> None:
    llm = FakeLLM(reply="What are React Hooks?")
    rewriter = QueryRewriter(llm_service=llm)

    result = await rewriter.rewrite("What is it?", conversation(2))

    assert result.success is True
    assert result.rewritten_query == "What are React Hooks?"
    assert result.original_query == "What is it?"
    assert result.error is None


async def test_network_error_falls_back_to_original() -> None:
    llm = FakeLLM(error=httpx.ConnectError("connection refused"))
    rewriter = QueryRewriter(llm_service=llm)

    result = await rewriter.rewrite("What is it?", [])

    assert result.success is False
    assert result.rewritten_query == "What is it?"
    assert "connection refused" in result.error


async def test_overlong_rewrite_is_rejected() -> None:
    query = "What is it?"
    llm = FakeLLM(reply="x" * (len(query) * 6))
    rewriter = QueryRewriter(llm_service=llm)

    result = await rewriter.rewrite(query, [])

    assert result.success is False
    assert result.rewritten_query == query
    assert result.error == "Rewritten query too long"


async def test_empty_rewrite_is_rejected() -> None:
    rewriter = QueryRewriter(llm_service=FakeLLM(reply="   "))

    result = await rewriter.rewrite("What is it?", [])

    assert result.success is False
    assert result.rewritten_query == "What is it?"
    assert result.error == "Empty rewritten query"


async def test_missing_api_key_falls_back() -> None:
    rewriter = QueryRewriter(llm_service=LLMService(api_key=None))

    result = await rewriter.rewrite("What is it?", [])

    assert result.success is False
    assert result.rewritten_query == "What is it?"
    assert result.error == "LLM_API_KEY not configured"


async def test_history_is_limited_to_recent_turn_pairs() -> None:
    llm = FakeLLM(reply="rewritten")
    rewriter = QueryRewriter(llm_service=llm)

    await rewriter.rewrite("and then?", conversation(14), max_history_messages=2)

    user_prompt = llm.calls[0][1]["content"]
    assert "message 9" not in user_prompt
    assert "1. [user]: message 10" in user_prompt
    assert "4. [assistant]: message 13" in user_prompt


async def test_history_skips_non_dialogue_messages() -> None:
    llm = FakeLLM(reply="rewritten")
    rewriter = QueryRewriter(llm_service=llm)
    history = [
        ChatMessage.from_text("system", "context block"),
        ChatMessage.from_text("user", "tell me about qdrant"),
        ChatMessage.from_text("assistant", ""),
    ]

    await rewriter.rewrite("and its filters?", history)

    user_prompt = llm.calls[0][1]["content"]
    assert "context block" not in user_prompt
    assert "1. [user]: tell me about qdrant" in user_prompt
    assert "[assistant]" not in user_prompt


async def test_prompt_without_history() -> None:
    llm = FakeLLM(reply="rewritten")
    rewriter = QueryRewriter(llm_service=llm)

    await rewriter.rewrite("vector databases", [])

    system_prompt = llm.calls[0][0]["content"]
    user_prompt = llm.calls[0][1]["content"]
    assert "query optimization assistant" in system_prompt
    assert "Conversation history" not in user_prompt
    assert "vector databases" in user_prompt


async def test_history_skips_injected_messages() -> None:
    llm = FakeLLM(reply="rewritten")
    rewriter = QueryRewriter(llm_service=llm)
    history = [
        ChatMessage.from_text("user", "I uploaded my notes"),
        ChatMessage.from_text("assistant", "Got it."),
        ChatMessage.from_text("user", "[Attachment: notes.txt]\n\nattachment body\n\n[End of attachment]", synthetic=True),
    ]

    await rewriter.rewrite("summarize it", history, max_history_messages=1)

    user_prompt = llm.calls[0][1]["content"]
    assert "attachment body" not in user_prompt
    assert "1. [user]: I uploaded my notes" in user_prompt
    assert "2. [assistant]: Got it." in user_prompt
