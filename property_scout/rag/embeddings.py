"""
Text embeddings for retrieval.

The default backend is an offline TF-IDF weighting over a fixed property
vocabulary, so retrieval works without any network access. When an OpenAI
key is configured, an OpenAI-compatible embeddings endpoint is used instead;
its failures raise EmbeddingFailure rather than silently mixing vector
spaces.
"""

import asyncio
import logging
import math
import re
from typing import Any, List, Optional, Sequence

import aiohttp

from property_scout.config.settings import RAGConfig
from property_scout.error_handling.exceptions import EmbeddingFailure


logger = logging.getLogger(__name__)

PROPERTY_VOCABULARY = [
    # property types
    "land", "plot", "house", "villa", "apartment", "farm", "quinta", "commercial", "rural", "urban",
    # features
    "bedroom", "bathroom", "kitchen", "pool", "garden", "garage", "terrace", "balcony", "view", "sea",
    # places
    "portugal", "lisbon", "porto", "algarve", "alentejo", "coimbra", "braga", "faro", "cascais", "sintra",
    "central", "north", "south", "coast", "beach", "mountain", "countryside", "city", "town", "village",
    # price and size
    "cheap", "affordable", "expensive", "luxury", "budget", "small", "large", "spacious", "sqm", "hectare",
    # condition
    "new", "renovated", "restored", "ruin", "construction", "modern", "traditional", "old",
    # amenities
    "water", "electricity", "road", "access", "internet", "heating", "cooling", "furnished",
    # transaction
    "buy", "rent", "invest", "sale", "price", "cost", "value",
    # legal and process
    "tax", "imt", "notary", "lawyer", "contract", "deed", "registration", "nif", "visa", "golden",
]

TFIDF_BACKEND = "tfidf"
OPENAI_BACKEND = "openai"
OPENAI_DIMENSION = 1536
OPENAI_BATCH_SIZE = 10
MAX_INPUT_CHARS = 8000

_NON_LETTERS = re.compile(r"[^a-z]")


def tfidf_embedding(text: str, vocabulary: Sequence[str] = PROPERTY_VOCABULARY) -> List[float]:
    """
    Vocabulary-weighted term frequency vector, L2-normalized.

    Words shorter than three letters are ignored. A word that contains a
    vocabulary term, or is contained in it, adds half its count on top of
    any exact match.
    """
    words = text.lower().split()
    counts = {}
    for word in words:
        clean = _NON_LETTERS.sub("", word)
        if len(clean) > 2:
            counts[clean] = counts.get(clean, 0) + 1

    size = len(vocabulary)
    total_words = max(len(words), 1)
    vector = []
    for index, term in enumerate(vocabulary):
        exact = counts.get(term, 0)
        partial = sum(0.5 * n for word, n in counts.items() if term in word or word in term)
        tf = (exact + partial) / total_words
        idf = math.log(size / (index + 1))
        vector.append(tf * idf)

    norm = math.sqrt(sum(v * v for v in vector))
    if norm > 0:
        vector = [v / norm for v in vector]
    return vector


def parse_embedding_response(data: Any, expected: int) -> List[List[float]]:
    """
    Pull the vectors out of an OpenAI-style embeddings body, in input order.

    Raises:
        EmbeddingFailure: If the body does not hold exactly ``expected`` numeric vectors
    """
    items = data.get("data") if isinstance(data, dict) else None
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise EmbeddingFailure("Embedding API response has no data list")
    if len(items) != expected:
        raise EmbeddingFailure(f"Expected {expected} embeddings, got {len(items)}")

    vectors = []
    for item in sorted(items, key=lambda item: item.get("index") if isinstance(item.get("index"), int) else 0):
        vector = item.get("embedding")
        if not isinstance(vector, list) or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in vector
        ):
            raise EmbeddingFailure("Embedding API returned an item without a numeric embedding")
        vectors.append([float(v) for v in vector])
    return vectors


class EmbeddingService:
    """
    Map text to fixed-length vectors.

    Attributes:
        backend: "openai" or "tfidf"
        dimension: Length of every produced vector
    """

    def __init__(self, config: Optional[RAGConfig] = None):
        self.config = config or RAGConfig()
        key = self.config.openai_api_key
        self.backend = OPENAI_BACKEND if key and key.startswith("sk-") else TFIDF_BACKEND
        self._session: Optional[aiohttp.ClientSession] = None
        logger.info(f"Embedding backend: {self.backend} (dimension {self.dimension})")

    @property
    def dimension(self) -> int:
        return OPENAI_DIMENSION if self.backend == OPENAI_BACKEND else len(PROPERTY_VOCABULARY)

    def info(self) -> dict:
        return {"backend": self.backend, "dimension": self.dimension}

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.embedding_timeout_seconds)
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _openai_embeddings(self, texts: Sequence[str]) -> List[List[float]]:
        session = await self._ensure_session()
        payload = {
            "model": self.config.embedding_model,
            "input": [t[:MAX_INPUT_CHARS] for t in texts],
        }
        headers = {
            "Authorization": f"Bearer {self.config.openai_api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with session.post(self.config.embedding_url, json=payload, headers=headers) as response:
                if response.status != 200:
                    body = await response.text()
                    raise EmbeddingFailure(f"Embedding API error: {response.status} - {body[:200]}")
                data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise EmbeddingFailure(f"Embedding API unreachable: {e}") from e
        except asyncio.TimeoutError as e:
            raise EmbeddingFailure(
                f"Embedding API timed out after {self.config.embedding_timeout_seconds}s"
            ) from e
        except ValueError as e:
            raise EmbeddingFailure(f"Embedding API returned invalid JSON: {e}") from e

        return parse_embedding_response(data, len(texts))

    async def generate_embedding(self, text: str) -> List[float]:
        """Embed one text."""
        if self.backend == TFIDF_BACKEND:
            return tfidf_embedding(text)
        return (await self._openai_embeddings([text]))[0]

    async def generate_embeddings(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed many texts; equivalent to embedding each one separately."""
        if self.backend == TFIDF_BACKEND:
            return [tfidf_embedding(text) for text in texts]

        vectors: List[List[float]] = []
        for start in range(0, len(texts), OPENAI_BATCH_SIZE):
            vectors.extend(await self._openai_embeddings(texts[start:start + OPENAI_BATCH_SIZE]))
        return vectors
