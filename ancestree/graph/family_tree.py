"""FamilyTreeService: store-backed facade over tree operations.

Usage:
    service = FamilyTreeService(store)
    service.add_member("user-1", Member(id="m1", full_name="Ann", relationship_to_user="mother"))
    groups = service.get_groups("user-1")

Each mutation is read-modify-write against the store with no concurrency
check, so the last writer wins.
"""

import logging
from typing import Optional

from ancestree.errors import InvalidRequestError, NotFoundError
from ancestree.graph import tree_ops
from ancestree.graph.classifier import FamilyGroups, ParentLabels, classify_tree, label_parents
from ancestree.graph.document_store import DocumentStore
from ancestree.graph.family_sync import tree_from_family_data
from ancestree.models import (
    Edge,
    EdgeRelation,
    FamilyData,
    FamilyHead,
    FamilyMember,
    FamilyTree,
    Member,
    now_iso,
)

logger = logging.getLogger(__name__)

TREES = "familyTrees"
FAMILY_DATA = "familyData"


class FamilyTreeService:
    """Family tree and family data persistence for one store."""

    def __init__(self, store: DocumentStore):
        self.store = store

    # ─────────────────────────────────────────
    # Tree
    # ─────────────────────────────────────────

    def get_tree(self, user_id: str) -> FamilyTree:
        """Load the user's tree, creating an empty one on first access."""
        if not user_id:
            raise InvalidRequestError("Missing userId")
        doc = self.store.get(TREES, user_id)
        if doc is None:
            tree = FamilyTree.empty(user_id)
            self.store.set(TREES, user_id, tree.to_document(), merge=True)
            logger.info("Created empty family tree for %s", user_id)
            return tree
        return FamilyTree.from_document(user_id, doc)

    def save_tree(self, tree: FamilyTree) -> FamilyTree:
        self.store.set(TREES, tree.owner_user_id, tree.to_document(), merge=True)
        return tree

    def add_member(self, user_id: str, member: Member) -> FamilyTree:
        tree = tree_ops.add_member(self.get_tree(user_id), member)
        logger.info("Upserted member %s in tree of %s", member.id, user_id)
        return self.save_tree(tree)

    def add_relative(
        self,
        user_id: str,
        member: Member,
        link_to: str,
        relation: EdgeRelation,
    ) -> FamilyTree:
        tree = tree_ops.add_relative(self.get_tree(user_id), member, link_to, relation)
        logger.info("Added relative %s (%s of %s) for %s", member.id, relation.value, link_to, user_id)
        return self.save_tree(tree)

    def link_relation(self, user_id: str, edge: Edge, reciprocal: bool = False) -> FamilyTree:
        tree = self.get_tree(user_id)
        if reciprocal:
            tree = tree_ops.link_with_reciprocal(tree, edge)
        else:
            tree = tree_ops.link_relation(tree, edge)
        logger.info("Linked %s -[%s]-> %s for %s", edge.from_id, edge.relation.value, edge.to_id, user_id)
        return self.save_tree(tree)

    def delete_member(self, user_id: str, member_id: str) -> FamilyTree:
        tree = tree_ops.delete_member(self.get_tree(user_id), member_id)
        logger.info("Deleted member %s from tree of %s", member_id, user_id)
        return self.save_tree(tree)

    def move_member(self, user_id: str, member_id: str, x: float, y: float) -> FamilyTree:
        tree = tree_ops.move_member(self.get_tree(user_id), member_id, x, y)
        if tree is None:
            raise NotFoundError(f"Unknown member: {member_id}")
        return self.save_tree(tree)

    def get_groups(self, user_id: str, owner_id: Optional[str] = None) -> tuple[FamilyGroups, ParentLabels]:
        """Classify the tree and label the parents."""
        tree = self.get_tree(user_id)
        groups = classify_tree(tree, owner_id=owner_id)
        return groups, label_parents(groups.parents, tree)

    # ─────────────────────────────────────────
    # Heads-and-members data
    # ─────────────────────────────────────────

    def get_family_data(self, user_id: str) -> FamilyData:
        return FamilyData.from_document(self.store.get(FAMILY_DATA, user_id))

    def save_family_data(
        self,
        user_id: str,
        heads: list[FamilyHead],
        members: list[FamilyMember],
    ) -> FamilyTree:
        """Overwrite family data and rebuild the tree from it."""
        if not user_id:
            raise InvalidRequestError("Missing userId")
        data = FamilyData(family_heads=heads, family_members=members, updated_at=now_iso())
        self.store.set(FAMILY_DATA, user_id, data.to_document())

        tree = tree_from_family_data(user_id, data)
        self.store.set(TREES, user_id, tree.to_document())
        logger.info(
            "Saved family data for %s: %d heads, %d members, %d edges",
            user_id, len(heads), len(members), len(tree.edges),
        )
        return tree
