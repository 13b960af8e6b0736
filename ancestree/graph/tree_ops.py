"""Pure operations on a FamilyTree.

Every function returns a new tree and leaves its argument untouched.
An edge (from_id, to_id, relation) reads "to_id is from_id's <relation>".
"""

from typing import Optional

from ancestree.errors import InvalidRequestError
from ancestree.models import Edge, EdgeRelation, FamilyTree, Member, now_iso

INVERSE = {
    EdgeRelation.PARENT: EdgeRelation.CHILD,
    EdgeRelation.CHILD: EdgeRelation.PARENT,
    EdgeRelation.GRANDPARENT: EdgeRelation.GRANDCHILD,
    EdgeRelation.GRANDCHILD: EdgeRelation.GRANDPARENT,
    EdgeRelation.SIBLING: EdgeRelation.SIBLING,
    EdgeRelation.SPOUSE: EdgeRelation.SPOUSE,
    EdgeRelation.COUSIN: EdgeRelation.COUSIN,
}

SYMMETRIC = {EdgeRelation.SIBLING, EdgeRelation.SPOUSE, EdgeRelation.COUSIN}

GRID_COLUMNS = 5
DEFAULT_NODE = (100.0, 100.0)
RELATIVE_OFFSET_X = 160.0


def add_member(tree: FamilyTree, member: Member) -> FamilyTree:
    """Insert a member, replacing any member with the same id."""
    members = [m for m in tree.members if m.id != member.id]
    members.append(member)
    return tree.model_copy(update={"members": members, "updated_at": now_iso()})


def link_relation(tree: FamilyTree, edge: Edge) -> FamilyTree:
    """Append an edge after removing any edge with the same triple."""
    if edge.from_id == edge.to_id:
        raise InvalidRequestError("Cannot link a member to themselves")
    edges = [e for e in tree.edges if e.key != edge.key]
    edges.append(edge)
    return tree.model_copy(update={"edges": edges, "updated_at": now_iso()})


def delete_member(tree: FamilyTree, member_id: str) -> FamilyTree:
    """Remove a member and every edge that references it."""
    members = [m for m in tree.members if m.id != member_id]
    edges = [e for e in tree.edges if not e.touches(member_id)]
    return tree.model_copy(update={"members": members, "edges": edges, "updated_at": now_iso()})


def reciprocal_edge(edge: Edge) -> Edge:
    """The same relationship seen from the other end."""
    return Edge(from_id=edge.to_id, to_id=edge.from_id, relation=INVERSE[edge.relation])


def link_with_reciprocal(tree: FamilyTree, edge: Edge) -> FamilyTree:
    """Link an edge and its reciprocal in one step."""
    return link_relation(link_relation(tree, edge), reciprocal_edge(edge))


def add_relative(
    tree: FamilyTree,
    member: Member,
    link_to: str,
    relation: EdgeRelation,
) -> FamilyTree:
    """Add a new member as `relation` of an existing member.

    The new member is placed to the right of the member it links to unless
    it already carries coordinates.
    """
    anchor = tree.get_member(link_to)
    if anchor is None:
        raise InvalidRequestError(f"Unknown member: {link_to}")

    if member.x is None or member.y is None:
        ax = anchor.x if anchor.x is not None else DEFAULT_NODE[0]
        ay = anchor.y if anchor.y is not None else DEFAULT_NODE[1]
        member = member.model_copy(update={"x": ax + RELATIVE_OFFSET_X, "y": ay})

    tree = add_member(tree, member)
    return link_relation(tree, Edge(from_id=link_to, to_id=member.id, relation=relation))


def grid_position(index: int) -> tuple[float, float]:
    """Default board position for the index-th member."""
    return (
        120.0 + (index % GRID_COLUMNS) * 220.0,
        120.0 + (index // GRID_COLUMNS) * 160.0,
    )


def assign_positions(tree: FamilyTree) -> FamilyTree:
    """Give members without coordinates a grid position."""
    members = []
    for i, m in enumerate(tree.members):
        if m.x is None or m.y is None:
            x, y = grid_position(i)
            m = m.model_copy(update={"x": x, "y": y})
        members.append(m)
    return tree.model_copy(update={"members": members})


def move_member(tree: FamilyTree, member_id: str, x: float, y: float) -> Optional[FamilyTree]:
    """Drop a dragged member at new coordinates. None if the id is unknown."""
    if tree.get_member(member_id) is None:
        return None
    members = [
        m.model_copy(update={"x": round(x), "y": round(y)}) if m.id == member_id else m
        for m in tree.members
    ]
    return tree.model_copy(update={"members": members, "updated_at": now_iso()})
