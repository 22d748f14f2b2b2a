"""
File-snapshotted vector store.

Documents live in named collections held in memory. Every mutating call
rewrites the whole store to a single JSON file, ``{collection: [documents]}``,
through a temporary file and an atomic rename, so a reader never sees a
partial snapshot.
"""

import asyncio
import json
import logging
import math
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from property_scout.models import VectorDocument


logger = logging.getLogger(__name__)


@dataclass
class ScoredDocument:
    document: VectorDocument
    score: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine of the angle between two vectors.

    Returns 0 when the lengths differ or either vector has zero magnitude.
    """
    if len(a) != len(b) or not a:
        return 0.0

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    return max(-1.0, min(1.0, similarity))


class VectorStore:
    """
    Named collections of embedded documents with cosine-similarity search.

    Attributes:
        file_path: Location of the JSON snapshot
    """

    def __init__(self, data_dir: str = "./data/rag", store_name: str = "property-assistant"):
        """
        Initialize the store, loading the snapshot if one exists.

        Args:
            data_dir: Directory holding snapshot files
            store_name: Snapshot file name without extension
        """
        self.data_dir = Path(data_dir)
        self.file_path = self.data_dir / f"{store_name}.json"
        self._collections: Dict[str, List[VectorDocument]] = {}
        self._lock = asyncio.Lock()
        self._load()

    def _load(self) -> None:
        if not self.file_path.exists():
            logger.info(f"No vector store snapshot at {self.file_path}, starting empty")
            return

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            self._collections = {
                name: [VectorDocument.from_dict(d) for d in docs]
                for name, docs in data.items()
            }
            counts = {name: len(docs) for name, docs in self._collections.items()}
            logger.info(f"Loaded vector store from {self.file_path}: {counts}")
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError) as e:
            logger.error(f"Failed to parse vector store snapshot {self.file_path}: {e}")
            self._collections = {}
        except OSError as e:
            logger.error(f"Failed to read vector store snapshot {self.file_path}: {e}")
            self._collections = {}

    def _snapshot(self) -> str:
        return json.dumps(
            {name: [doc.to_dict() for doc in docs] for name, docs in self._collections.items()},
            ensure_ascii=False,
        )

    def _write(self, payload: str) -> bool:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=".vector-store-", suffix=".tmp")
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(payload)
                os.replace(tmp_path, self.file_path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
            return True
        except OSError as e:
            logger.error(f"Failed to write vector store snapshot {self.file_path}: {e}")
            return False

    async def _persist(self) -> bool:
        return await asyncio.to_thread(self._write, self._snapshot())

    def get_collection(self, name: str) -> List[VectorDocument]:
        return list(self._collections.get(name, []))

    async def add_documents(self, collection: str, documents: Sequence[VectorDocument]) -> bool:
        """
        Upsert documents by id and persist the store.

        Returns:
            True if the snapshot was written
        """
        async with self._lock:
            existing = self._collections.setdefault(collection, [])
            positions = {doc.id: i for i, doc in enumerate(existing)}
            for doc in documents:
                if doc.id in positions:
                    existing[positions[doc.id]] = doc
                else:
                    positions[doc.id] = len(existing)
                    existing.append(doc)
            logger.debug(f"Upserted {len(documents)} documents into {collection} ({len(existing)} total)")
            return await self._persist()

    async def delete_documents(self, collection: str, ids: Sequence[str]) -> bool:
        async with self._lock:
            doomed = set(ids)
            docs = self._collections.get(collection, [])
            self._collections[collection] = [d for d in docs if d.id not in doomed]
            return await self._persist()

    async def clear_collection(self, collection: str) -> bool:
        async with self._lock:
            self._collections[collection] = []
            return await self._persist()

    def search(
        self,
        collection: str,
        query_embedding: Sequence[float],
        top_k: int = 5,
        min_score: float = 0.0
    ) -> List[ScoredDocument]:
        """
        Nearest documents by cosine similarity.

        Documents without embeddings are skipped.

        Args:
            collection: Collection name
            query_embedding: Query vector
            top_k: Maximum number of results
            min_score: Minimum similarity to include

        Returns:
            Results sorted by descending score
        """
        scored = [
            ScoredDocument(doc, cosine_similarity(query_embedding, doc.embedding))
            for doc in self._collections.get(collection, [])
            if doc.embedding
        ]
        scored = [s for s in scored if s.score >= min_score]
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored[:top_k]

    def search_by_keywords(self, collection: str, query: str, top_k: int = 5) -> List[ScoredDocument]:
        """Keyword-frequency search over content and metadata."""
        terms = [t for t in query.lower().split() if t]
        if not terms:
            return []

        scored = []
        for doc in self._collections.get(collection, []):
            text = f"{doc.content} {json.dumps(doc.metadata, ensure_ascii=False, default=str)}".lower()
            hits = sum(len(re.findall(re.escape(term), text)) for term in terms)
            score = hits / len(terms)
            if score > 0:
                scored.append(ScoredDocument(doc, score))
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored[:top_k]

    def get_stats(self) -> Dict[str, int]:
        return {name: len(docs) for name, docs in self._collections.items()}
