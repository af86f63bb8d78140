"""Domain layer — board records, ordering rules, and the in-memory index.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
