"""One-way sync from the heads-and-members model into the family tree.

The sync is lossy: every member becomes a tree member, and a member attached
to a known head gets a single head -> member edge whose relation is derived
from the member's relationship-to-user label.
"""

from ancestree.graph.relationship_map import edge_relation_for, gender_for, parse_relation
from ancestree.models import Edge, FamilyData, FamilyTree, Member, now_iso


def tree_from_family_data(owner_user_id: str, data: FamilyData) -> FamilyTree:
    """Rebuild a tree from family heads and members."""
    members: list[Member] = []
    edges: list[Edge] = []
    heads = {h.id: h for h in data.family_heads}

    for head in data.family_heads:
        members.append(Member(
            id=head.id,
            full_name=head.name,
            gender=gender_for(head.relationship),
            relationship_to_user=head.relationship or None,
        ))

    for fm in data.family_members:
        members.append(Member(
            id=fm.id,
            full_name=fm.name,
            gender=gender_for(fm.relationship_to_user),
            birth_place=fm.birth_place,
            birth_date=fm.birth_date,
            notes=fm.notes,
            relationship_to_user=fm.relationship_to_user or None,
        ))

        head = heads.get(fm.connected_to)
        if head is None:
            continue
        relation = edge_relation_for(parse_relation(fm.relationship_to_user))
        edges.append(Edge(from_id=head.id, to_id=fm.id, relation=relation))

    return FamilyTree(
        owner_user_id=owner_user_id,
        members=members,
        edges=edges,
        updated_at=now_iso(),
    )


def summarize_tree(tree: FamilyTree, max_members: int = 100) -> str:
    """Plain-text summary of a tree for model prompts."""
    if not tree.members:
        return "None"

    names = {m.id: m.full_name for m in tree.members}
    lines = []
    for m in tree.members[:max_members]:
        parts = [m.full_name]
        if m.relationship_to_user:
            parts.append(f"({m.relationship_to_user})")
        if m.birth_date:
            parts.append(f"born {m.birth_date}")
        if m.birth_place:
            parts.append(f"in {m.birth_place}")
        lines.append("- " + " ".join(parts))

    for e in tree.edges:
        if e.from_id in names and e.to_id in names:
            lines.append(f"- {names[e.to_id]} is {e.relation.value} of {names[e.from_id]}")

    return "\n".join(lines)
