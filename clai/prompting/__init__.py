"""Prompt and response-schema construction for summarization calls."""
