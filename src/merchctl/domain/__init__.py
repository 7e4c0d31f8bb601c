"""Domain layer — scopes, entities, ordering and pruning rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
