"""Proposal generation prompt and provider call.

Exposes one async function that asks the provider for a validated
``ProposalBatch`` built from the user's source text.
"""

from __future__ import annotations

from typing import Optional

from app.modules.flashcards.models.flashcards import ProposalBatch, ProposalItem
from app.modules.flashcards.provider import ChatMessage, ProviderClient


SYSTEM_PROMPT = (
    "You are an expert educator who turns study material into flashcards. "
    "Read the source text and produce between 3 and 15 question/answer pairs. "
    "Rules: "
    "- Each card is self-contained: the question makes sense without the source text. "
    "- One fact or concept per card; questions are clear and specific. "
    "- Answers are concise and accurate (at most a few sentences), plain text, no markdown. "
    "- Cover the most important ideas first; do not invent facts absent from the text. "
    "- Write the cards in the language of the source text. "
    "Return a single JSON object of the form "
    '{"flashcards": [{"question": "...", "answer": "..."}]}.'
)


def _build_instruction(source_text: str) -> str:
    return (
        "Create flashcards from the source text below. "
        "Follow the system rules and output only the JSON object.\n\n"
        f"Source text:\n{source_text}"
    )


async def generate_proposals(
    provider: ProviderClient, source_text: str, *, model: Optional[str] = None
) -> ProposalBatch:
    """Generate and validate proposals for the given source text."""
    res = await provider.structured_chat_completion(
        ProposalBatch,
        [
            ChatMessage(role="system", content=SYSTEM_PROMPT),
            ChatMessage(role="user", content=_build_instruction(source_text)),
        ],
        model=model,
    )
    return _postprocess(res)


def _postprocess(batch: ProposalBatch) -> ProposalBatch:
    """Drop exact duplicate cards while keeping the model's order."""
    seen: set[tuple[str, str]] = set()
    cards: list[ProposalItem] = []
    for c in batch.flashcards:
        key = (c.question, c.answer)
        if key in seen:
            continue
        seen.add(key)
        cards.append(c)
    return ProposalBatch(flashcards=cards)
