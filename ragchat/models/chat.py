from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional, Sequence
import uuid

PartType = Literal["text", "file", "reasoning", "tool-call", "tool-result"]

class MessagePart(BaseModel):
    # Tool parts carry provider-specific fields we pass through untouched
    model_config = ConfigDict(extra="allow")

    type: PartType
    text: Optional[str] = None
    name: Optional[str] = None
    media_type: Optional[str] = None
    url: Optional[str] = None
    file_id: Optional[str] = None

class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: str  # "user", "assistant", "system", "tool"
    parts: List[MessagePart] = []
    # Set on messages the backend injects (attachment bodies, notices, retrieved context)
    synthetic: bool = False

    @classmethod
    def from_text(cls, role: str, text: str, synthetic: bool = False) -> "ChatMessage":
        return cls(role=role, parts=[MessagePart(type="text", text=text)], synthetic=synthetic)


def get_text_from_message(message: ChatMessage) -> str:
    """Flatten the text parts of a message, ignoring files, reasoning and tool parts."""
    return "".join(part.text or "" for part in message.parts if part.type == "text")


def insert_context(messages: Sequence[ChatMessage], position: int, context_message: ChatMessage) -> List[ChatMessage]:
    """
    Return a new list with ``context_message`` placed at ``position``.

    The input sequence is never mutated, so the same list can still be used
    for persistence by the caller.
    """
    position = max(0, min(position, len(messages)))
    return [*messages[:position], context_message, *messages[position:]]


def index_of_message(messages: Sequence[ChatMessage], message: ChatMessage) -> int:
    """Position of ``message`` (matched by id), or the last position if it is not in the list."""
    for i, candidate in enumerate(messages):
        if candidate.id == message.id:
            return i
    return max(len(messages) - 1, 0)
