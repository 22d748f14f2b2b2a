"""
Conversational follow-ups: grounded answers and "pick N" selections.

Questions are answered by the AI gateway with knowledge, similar listings
and earlier turns retrieved through the RAG service. When no AI backend is
reachable the retrieved context itself is returned.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from property_scout.ai.gateway import AIGateway
from property_scout.error_handling.exceptions import AIBackendUnavailable, EmbeddingFailure
from property_scout.rag.context_builder import RAGService
from property_scout.search.picker import ListingPicker, PickResult
from property_scout.search.store import SearchStore


logger = logging.getLogger(__name__)

CHAT_CONTEXT_TOKENS = 1500

ASSISTANT_SYSTEM_PROMPT = """You are a property assistant for Portugal with deep knowledge about Portuguese real estate.

You have access to a knowledge base about:
- Buying process and legal requirements (NIF, lawyers, notaries)
- Taxes (IMT, Stamp Duty, IMI)
- Regions of Portugal (Algarve, Lisbon, Porto, Alentejo, Silver Coast)
- Property types (land, ruins, villas, apartments)
- Visas and residency (Golden Visa, D7 visa)

IMPORTANT RULES:
- Use the KNOWLEDGE CONTEXT provided to answer accurately
- Cite specific figures, percentages and requirements from the context
- If information isn't in the context, say you're not certain
- Keep responses focused and informative"""

NO_AI_WITH_CONTEXT = "AI is currently unavailable, so here is what I found in the knowledge base:"
NO_AI_WITHOUT_CONTEXT = (
    "AI is currently unavailable and nothing in the knowledge base matches your question. "
    "Property searches still work without AI."
)
SEARCH_EXPIRED = "That search is no longer available. Please run it again."


@dataclass
class AssistantReply:
    text: str
    context: str
    used_ai: bool = False


def build_answer_prompt(question: str, context: str, search_context: Optional[str] = None) -> str:
    parts = []
    if context:
        parts.append(f"KNOWLEDGE CONTEXT:\n{context}")
    if search_context:
        parts.append(f"RECENT SEARCH RESULTS:\n{search_context}")
    if not parts:
        return question
    return "\n\n".join(parts) + f"\n\nUSER QUESTION: {question}"


def offline_reply(context: str) -> str:
    if not context:
        return NO_AI_WITHOUT_CONTEXT
    return f"{NO_AI_WITH_CONTEXT}\n\n{context}"


class PropertyAssistant:
    """
    Answer follow-up questions and picks for the CLI.

    Attributes:
        rag: RAG service used to ground answers
        gateway: AI gateway, or None to answer from retrieved context only
        store: Completed searches available to "pick N" follow-ups
        picker: Listing picker for stored searches
    """

    def __init__(
        self,
        rag: RAGService,
        gateway: Optional[AIGateway] = None,
        store: Optional[SearchStore] = None,
        picker: Optional[ListingPicker] = None
    ):
        self.rag = rag
        self.gateway = gateway
        self.store = store or SearchStore()
        self.picker = picker or ListingPicker(gateway)

    async def retrieve_context(self, question: str, conversation_id: Optional[str] = None) -> str:
        """Knowledge, similar listings and earlier turns for a question; empty if retrieval fails."""
        try:
            await self.rag.initialize()
            return await self.rag.build_context(
                question,
                include_knowledge=True,
                include_listings=True,
                include_conversations=conversation_id is not None,
                conversation_id=conversation_id,
                max_tokens=CHAT_CONTEXT_TOKENS,
            )
        except (EmbeddingFailure, OSError) as e:
            logger.warning(f"Retrieval failed, answering without context: {e}")
            return ""

    async def answer(
        self,
        question: str,
        conversation_id: Optional[str] = None,
        search_context: Optional[str] = None
    ) -> AssistantReply:
        """
        Answer a free-text question.

        Args:
            question: The user's question
            conversation_id: Scopes earlier turns and stores this one
            search_context: Summary of the user's latest search, if any

        Returns:
            The reply, the context it was grounded on and whether AI wrote it
        """
        context = await self.retrieve_context(question, conversation_id)

        if self.gateway is None or not (await self.gateway.check_health()).available:
            logger.info("AI unavailable; replying with retrieved context")
            return AssistantReply(offline_reply(context), context)

        try:
            text = await self.gateway.complete(
                build_answer_prompt(question, context, search_context), ASSISTANT_SYSTEM_PROMPT
            )
        except AIBackendUnavailable as e:
            logger.warning(f"AI answer failed, replying with retrieved context: {e}")
            return AssistantReply(offline_reply(context), context)

        if conversation_id:
            try:
                await self.rag.store_conversation(conversation_id, question, text, search_context)
            except (EmbeddingFailure, OSError) as e:
                logger.warning(f"Could not store conversation turn: {e}")

        return AssistantReply(text, context, used_ai=True)

    async def pick(self, request: str, search_id: str, count: Optional[int] = None) -> PickResult:
        """Pick listings out of a stored search."""
        stored = self.store.get(search_id)
        if stored is None:
            logger.info(f"Pick requested for unknown search {search_id}")
            return PickResult([], SEARCH_EXPIRED)
        return await self.picker.pick(request, stored.listings, count)
