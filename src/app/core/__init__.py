"""Core services and cross-cutting concerns.

Subpackages are imported explicitly (``app.core.errors``,
``app.core.database``...) so that ``app.config`` can depend on
``app.core.constants`` without pulling in the database layer.
"""
