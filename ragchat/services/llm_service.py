from typing import Dict, List, Optional
import logging

import httpx
from openai import APIError, APIResponseValidationError, APIStatusError, AsyncOpenAI

from ragchat.core.config import settings
from ragchat.core.exceptions import ConfigurationError, LLMResponseMalformed, LLMServiceError

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

TITLE_SYSTEM_PROMPT = """
You will generate a short title based on the first message a user begins a conversation with.
- Keep it under 80 characters
- The title should be a summary of the user's message
- Do not use quotes or colons
Output only the title.
""".strip()

class LLMService:
    """Service for calling an OpenAI-compatible chat-completion endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = settings.LLM_API_KEY,
        base_url: str = settings.LLM_BASE_URL,
        model: str = settings.LLM_MODEL,
        timeout: float = settings.LLM_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the LLM service.

        Args:
            api_key: Bearer token for the endpoint; checked when a call is made
            base_url: API base URL, the client appends /chat/completions
            model: Model name, a fast model keeps rewrite latency low
            timeout: Request timeout in seconds
            http_client: Optional httpx client for the SDK (tests pass one with a mock transport)
        """
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.timeout = timeout
        self._http_client = http_client
        self._client: Optional[AsyncOpenAI] = None

    def _get_client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise ConfigurationError("LLM_API_KEY not configured")
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
                http_client=self._http_client,
            )
        return self._client

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        """
        Send one chat-completion request and return the first choice's text.

        Args:
            messages: List of {"role", "content"} dictionaries
            temperature: Sampling temperature
            max_tokens: Cap on generated tokens

        Returns:
            The content of choices[0].message, stripped

        Raises:
            ConfigurationError: If no API key is configured
            LLMServiceError: On a non-2xx response or a transport failure
            LLMResponseMalformed: If the response has no usable choice
        """
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except APIStatusError as e:
            logger.error(f"LLM API error: {e.status_code} {e.response.text}")
            raise LLMServiceError(
                f"LLM API error: {e.status_code} {e.response.reason_phrase}",
                status_code=e.status_code,
                body=e.response.text,
            ) from e
        except APIResponseValidationError as e:
            raise LLMResponseMalformed(f"LLM response could not be parsed: {e}") from e
        except APIError as e:
            raise LLMServiceError(f"LLM API request failed: {e}") from e

        choices = getattr(response, "choices", None)
        if not isinstance(choices, list) or not choices:
            logger.error(f"Invalid LLM response: {response}")
            raise LLMResponseMalformed("Invalid response from LLM API")

        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            raise LLMResponseMalformed("LLM choice has no message content")
        return content.strip()

    async def generate_title(self, message_text: str) -> str:
        """
        Generate a short chat title from the first user message.
        Falls back to the start of the message if the model is unavailable.
        """
        fallback = " ".join(message_text.split())[:settings.TITLE_MAX_LENGTH] or "New chat"
        try:
            title = await self.chat_completion(
                messages=[
                    {"role": "system", "content": TITLE_SYSTEM_PROMPT},
                    {"role": "user", "content": message_text},
                ],
                temperature=0.3,
                max_tokens=40,
            )
        except Exception as e:
            logger.warning(f"Title generation failed, using message prefix: {e}")
            return fallback

        title = " ".join(title.replace('"', "").replace(":", "").split())
        return title[:settings.TITLE_MAX_LENGTH] or fallback

# Initialize LLM service globally or via dependency injection
llm_service = LLMService()
