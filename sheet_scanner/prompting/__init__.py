"""Prompt text for answer-sheet analysis."""
