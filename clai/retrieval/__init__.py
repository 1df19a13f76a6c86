"""Retrieval package.

Architectural role:
    Provides web content acquisition used by the core engine.

Scope:
    - `web`: classification, provider fallback, fetch, and extraction pipeline.
"""
