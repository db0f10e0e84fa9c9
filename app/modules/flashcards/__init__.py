"""Flashcard generation: provider client, orchestrator and library service."""
