# Import models so Alembic and Base metadata are aware of them
from .auth import User  # noqa: F401
from .flashcards import Generation, FlashcardProposal, Flashcard, GenerationErrorLog  # noqa: F401
