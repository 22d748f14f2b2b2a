"""
Retrieval-augmented context for AI prompts.

RAGService indexes knowledge, listings and conversation turns into the
vector store and assembles a token-budgeted context block from them.
"""

import logging
import math
import time
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from property_scout.config.settings import RAGConfig
from property_scout.models import Listing, VectorDocument
from property_scout.rag.embeddings import EmbeddingService
from property_scout.rag.knowledge_base import get_all_knowledge
from property_scout.rag.vector_store import ScoredDocument, VectorStore


logger = logging.getLogger(__name__)

KNOWLEDGE_COLLECTION = "knowledge"
LISTINGS_COLLECTION = "listings"
CONVERSATIONS_COLLECTION = "conversations"
COLLECTIONS = (KNOWLEDGE_COLLECTION, LISTINGS_COLLECTION, CONVERSATIONS_COLLECTION)

CHARS_PER_TOKEN = 4

KNOWLEDGE_HEADER = "=== Relevant Information ==="
LISTINGS_HEADER = "=== Similar Properties ==="
CONVERSATIONS_HEADER = "=== Previous Relevant Conversations ==="


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def listing_document_text(listing: Listing) -> str:
    parts = [
        listing.title,
        f"Price: €{listing.price_eur:g}",
        f"Location: {listing.city}" if listing.city else "",
        f"Bedrooms: {listing.beds}" if listing.beds else "",
        f"Bathrooms: {listing.baths}" if listing.baths else "",
        f"Area: {listing.area_sqm:g} sqm" if listing.area_sqm else "",
        listing.description or "",
    ]
    return ". ".join(p for p in parts if p)


class RAGService:
    """
    Index and retrieve documents for prompt grounding.

    Attributes:
        store: Vector store holding all collections
        embeddings: Embedding backend
    """

    def __init__(
        self,
        store: Optional[VectorStore] = None,
        embeddings: Optional[EmbeddingService] = None,
        config: Optional[RAGConfig] = None
    ):
        self.config = config or RAGConfig()
        self.store = store or VectorStore(self.config.data_dir, self.config.store_name)
        self.embeddings = embeddings or EmbeddingService(self.config)

    async def initialize(self) -> None:
        """Index the knowledge base unless it is already fully indexed."""
        knowledge = get_all_knowledge()
        if self.store.get_stats().get(KNOWLEDGE_COLLECTION) == len(knowledge):
            logger.info("Knowledge base already indexed")
            return

        texts = [f"{doc.title}\n{doc.content}" for doc in knowledge]
        vectors = await self.embeddings.generate_embeddings(texts)
        documents = [
            VectorDocument(
                id=doc.id,
                content=doc.content,
                metadata={"title": doc.title, "category": doc.category, "tags": list(doc.tags)},
                embedding=vector,
            )
            for doc, vector in zip(knowledge, vectors)
        ]
        await self.store.add_documents(KNOWLEDGE_COLLECTION, documents)
        logger.info(f"Indexed {len(documents)} knowledge documents")

    async def index_listings(self, listings: Sequence[Listing]) -> None:
        if not listings:
            return

        texts = [listing_document_text(l) for l in listings]
        vectors = await self.embeddings.generate_embeddings(texts)
        indexed_at = datetime.now().isoformat()
        documents = [
            VectorDocument(
                id=listing.id,
                content=text,
                metadata={
                    "title": listing.title,
                    "price_eur": listing.price_eur,
                    "city": listing.city,
                    "source_site": listing.source_site,
                    "source_url": listing.source_url,
                    "beds": listing.beds,
                    "baths": listing.baths,
                    "area_sqm": listing.area_sqm,
                    "indexed_at": indexed_at,
                },
                embedding=vector,
            )
            for listing, text, vector in zip(listings, texts, vectors)
        ]
        await self.store.add_documents(LISTINGS_COLLECTION, documents)
        logger.info(f"Indexed {len(documents)} listings")

    async def store_conversation(
        self,
        conversation_id: str,
        user_query: str,
        assistant_response: str,
        search_context: Optional[str] = None
    ) -> str:
        """Store one conversation turn; returns the document id."""
        lines = [f"User: {user_query}", f"Assistant: {assistant_response}"]
        if search_context:
            lines.append(f"Context: {search_context}")
        content = "\n".join(lines)

        document = VectorDocument(
            id=f"conv-{conversation_id}-{int(time.time() * 1000)}",
            content=content,
            metadata={
                "conversation_id": conversation_id,
                "user_query": user_query,
                "timestamp": datetime.now().isoformat(),
            },
            embedding=await self.embeddings.generate_embedding(content),
        )
        await self.store.add_documents(CONVERSATIONS_COLLECTION, [document])
        return document.id

    async def retrieve_knowledge(self, query: str, top_k: int = 3, min_score: float = 0.3) -> List[ScoredDocument]:
        vector = await self.embeddings.generate_embedding(query)
        return self.store.search(KNOWLEDGE_COLLECTION, vector, top_k, min_score)

    async def retrieve_similar_listings(self, query: str, top_k: int = 5, min_score: float = 0.3) -> List[ScoredDocument]:
        vector = await self.embeddings.generate_embedding(query)
        return self.store.search(LISTINGS_COLLECTION, vector, top_k, min_score)

    async def retrieve_conversation_context(
        self,
        query: str,
        conversation_id: Optional[str] = None,
        top_k: int = 3
    ) -> List[ScoredDocument]:
        """Similar earlier turns, restricted to one conversation when an id is given."""
        vector = await self.embeddings.generate_embedding(query)
        results = self.store.search(CONVERSATIONS_COLLECTION, vector, top_k * 2, 0.2)
        if conversation_id:
            results = [r for r in results if r.document.metadata.get("conversation_id") == conversation_id]
        return results[:top_k]

    async def build_context(
        self,
        query: str,
        include_knowledge: bool = True,
        include_listings: bool = False,
        include_conversations: bool = False,
        conversation_id: Optional[str] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Assemble knowledge, similar listings and earlier turns into one block.

        Candidates are added in that order while the running token estimate
        stays under ``max_tokens``. The first candidate that does not fit ends
        the context; nothing is truncated mid-document.

        Raises:
            EmbeddingFailure: If a network embedding backend fails
        """
        budget = max_tokens if max_tokens is not None else self.config.max_context_tokens
        sections = []
        if include_knowledge:
            knowledge = await self.retrieve_knowledge(query, 3, 0.2)
            sections.append((
                KNOWLEDGE_HEADER,
                [f"[{r.document.metadata.get('title', r.document.id)}]\n{r.document.content}" for r in knowledge],
            ))
        if include_listings:
            similar = await self.retrieve_similar_listings(query, 3, 0.3)
            sections.append((
                LISTINGS_HEADER,
                [
                    f"- {r.document.metadata.get('title')}: €{r.document.metadata.get('price_eur')} "
                    f"in {r.document.metadata.get('city') or 'Portugal'}"
                    for r in similar
                ],
            ))
        if include_conversations:
            turns = await self.retrieve_conversation_context(query, conversation_id, 2)
            sections.append((CONVERSATIONS_HEADER, [r.document.content for r in turns]))

        parts: List[str] = []
        used = 0
        for header, candidates in sections:
            header_added = False
            for text in candidates:
                tokens = estimate_tokens(text)
                if used + tokens >= budget:
                    return "\n\n".join(parts)
                if not header_added:
                    parts.append(header)
                    header_added = True
                parts.append(text)
                used += tokens
        return "\n\n".join(parts)

    def get_stats(self) -> Dict[str, object]:
        return {
            "collections": self.store.get_stats(),
            "embedding_backend": self.embeddings.backend,
            "embedding_dimension": self.embeddings.dimension,
        }

    async def clear(self, collection: Optional[str] = None) -> None:
        for name in ([collection] if collection else COLLECTIONS):
            await self.store.clear_collection(name)
