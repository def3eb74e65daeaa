"""Relationship engine for taskboard."""

from taskboard.engine.relationships import RelationshipSynchronizer, unique_ids

__all__ = [
    "RelationshipSynchronizer",
    "unique_ids",
]
