"""Entity Store Gateway - typed access to the relational store"""

from .gateway import EntityKind, EntityStore

__all__ = ["EntityKind", "EntityStore"]
