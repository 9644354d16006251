from typing import Any, List, Optional
import logging
import math

import httpx
from openai import APIError, APIResponseValidationError, APIStatusError, AsyncOpenAI

from ragchat.core.config import settings
from ragchat.core.exceptions import ConfigurationError, EmbeddingResponseMalformed, EmbeddingServiceError

logger = logging.getLogger(__name__)

class EmbeddingService:
    """
    Client for a remote, OpenAI-compatible embedding endpoint.

    Request:  {"model", "input": str | list[str], "dimensions"}
    Response: {"data": [{"embedding": [float, ...]}, ...]}

    There is no retry logic: a failed window aborts the whole call and the
    caller decides what to do about it.
    """

    def __init__(
        self,
        api_key: Optional[str] = settings.EMBEDDING_API_KEY,
        base_url: str = settings.EMBEDDING_BASE_URL,
        model: str = settings.EMBEDDING_MODEL,
        dimensions: int = settings.EMBEDDING_DIMENSION,
        batch_size: int = settings.EMBEDDING_BATCH_SIZE,
        timeout: float = settings.EMBEDDING_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the embedding client.

        Args:
            api_key: Bearer token for the endpoint; checked when a call is made
            base_url: API base URL, the client appends /embeddings
            model: Embedding model name
            dimensions: Vector size, must match the vector store collection
            batch_size: Upstream limit on inputs per request
            timeout: Request timeout in seconds
            http_client: Optional httpx client for the SDK (tests pass one with a mock transport)
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.dimensions = dimensions
        self.batch_size = batch_size
        self.timeout = timeout
        self._http_client = http_client
        self._client: Optional[AsyncOpenAI] = None

    def _get_client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise ConfigurationError("EMBEDDING_API_KEY is not set")
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
                http_client=self._http_client,
            )
        return self._client

    async def _post(self, payload_input: Any) -> List[List[float]]:
        client = self._get_client()
        try:
            response = await client.embeddings.create(
                model=self.model,
                input=payload_input,
                dimensions=self.dimensions,
                encoding_format="float",
            )
        except APIStatusError as e:
            raise EmbeddingServiceError(
                f"Embedding API error: {e.status_code} - {e.response.text}",
                status_code=e.status_code,
                body=e.response.text,
            ) from e
        except APIResponseValidationError as e:
            raise EmbeddingResponseMalformed(f"Embedding response could not be parsed: {e}") from e
        except APIError as e:
            raise EmbeddingServiceError(f"Embedding API request failed: {e}") from e

        # Compatible providers do not always honor the schema, so the payload is checked by hand
        items = getattr(response, "data", None)
        if not isinstance(items, list):
            raise EmbeddingResponseMalformed("Embedding response has no 'data' array")

        vectors = []
        for item in items:
            vector = item.get("embedding") if isinstance(item, dict) else getattr(item, "embedding", None)
            if not isinstance(vector, list):
                raise EmbeddingResponseMalformed("Embedding item has no 'embedding' vector")
            vectors.append(vector)
        return vectors

    async def embed(self, text: str) -> List[float]:
        """Embed a single text."""
        vectors = await self._post(text)
        if not vectors:
            raise EmbeddingResponseMalformed("Embedding response contained no vectors")
        return vectors[0]

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Embed many texts, one vector per input in input order.

        Inputs are sent in windows of ``batch_size``; 130 texts with a limit of
        64 means three requests.
        """
        embeddings: List[List[float]] = []
        for start in range(0, len(texts), self.batch_size):
            window = texts[start:start + self.batch_size]
            vectors = await self._post(window)
            if len(vectors) != len(window):
                raise EmbeddingResponseMalformed(
                    f"Expected {len(window)} embeddings, got {len(vectors)}"
                )
            embeddings.extend(vectors)
        logger.info(f"Generated {len(embeddings)} embeddings in {math.ceil(len(texts) / self.batch_size)} request(s)")
        return embeddings

# Initialize embedding service globally or via dependency injection
embedding_service = EmbeddingService()
