from .flashcards import FlashcardSource, ProposalBatch, ProposalItem

__all__ = [
    "FlashcardSource",
    "ProposalBatch",
    "ProposalItem",
]
