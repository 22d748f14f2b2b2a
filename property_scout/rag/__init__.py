"""Retrieval-augmented generation: vector store, embeddings and context building."""

from .vector_store import VectorStore, ScoredDocument, cosine_similarity
from .embeddings import EmbeddingService, PROPERTY_VOCABULARY, tfidf_embedding
from .knowledge_base import KnowledgeDocument, PORTUGAL_REAL_ESTATE_KNOWLEDGE, get_all_knowledge
from .context_builder import (
    RAGService,
    estimate_tokens,
    KNOWLEDGE_COLLECTION,
    LISTINGS_COLLECTION,
    CONVERSATIONS_COLLECTION,
)

__all__ = [
    'VectorStore',
    'ScoredDocument',
    'cosine_similarity',
    'EmbeddingService',
    'PROPERTY_VOCABULARY',
    'tfidf_embedding',
    'KnowledgeDocument',
    'PORTUGAL_REAL_ESTATE_KNOWLEDGE',
    'get_all_knowledge',
    'RAGService',
    'estimate_tokens',
    'KNOWLEDGE_COLLECTION',
    'LISTINGS_COLLECTION',
    'CONVERSATIONS_COLLECTION',
]
