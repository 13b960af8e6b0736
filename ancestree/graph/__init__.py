"""Graph package - family trees, profiles and the document store."""

from ancestree.graph.classifier import FamilyGroups, ParentLabels, classify, classify_tree
from ancestree.graph.connections import ConnectionRegistry
from ancestree.graph.document_store import (
    DocumentStore,
    MemoryDocumentStore,
    SQLiteDocumentStore,
    create_store,
)
from ancestree.graph.family_tree import FamilyTreeService
from ancestree.graph.profile_store import ProfileStore

__all__ = [
    "FamilyGroups",
    "ParentLabels",
    "classify",
    "classify_tree",
    "ConnectionRegistry",
    "DocumentStore",
    "MemoryDocumentStore",
    "SQLiteDocumentStore",
    "create_store",
    "FamilyTreeService",
    "ProfileStore",
]
