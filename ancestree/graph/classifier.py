"""Group family members into display buckets.

This is a best-effort display transform, not a validated graph algorithm:
members with missing or unusable relation data simply land in no bucket.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from ancestree.graph.relationship_map import Kin, RelationGroup, parse_relation
from ancestree.graph.tree_ops import SYMMETRIC
from ancestree.models import Edge, EdgeRelation, FamilyTree, Member

PARENTS = "parents"
SIBLINGS = "siblings"


@dataclass
class FamilyGroups:
    """Parents, siblings and everything else keyed by relation label."""
    parents: list[Member] = field(default_factory=list)
    siblings: list[Member] = field(default_factory=list)
    other: dict[str, list[Member]] = field(default_factory=dict)

    def bucket(self, name: str) -> list[Member]:
        if name == PARENTS:
            return self.parents
        if name == SIBLINGS:
            return self.siblings
        return self.other.setdefault(name, [])

    def add(self, name: str, member: Member) -> None:
        """Add to a bucket unless the member id is already there."""
        bucket = self.bucket(name)
        if all(m.id != member.id for m in bucket):
            bucket.append(member)

    def to_dict(self) -> dict:
        return {
            "parents": [m.to_document() for m in self.parents],
            "siblings": [m.to_document() for m in self.siblings],
            "other": {
                label: [m.to_document() for m in members]
                for label, members in self.other.items()
            },
        }


@dataclass
class ParentLabels:
    """Which parent looks like the father and which like the mother."""
    father: Optional[Member] = None
    mother: Optional[Member] = None
    unlabelled: list[Member] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "father": self.father.to_document() if self.father else None,
            "mother": self.mother.to_document() if self.mother else None,
            "unlabelled": [m.to_document() for m in self.unlabelled],
        }


def _bucket_for_text(member: Member) -> Optional[str]:
    """Bucket from the member's own relationship-to-user label."""
    label = parse_relation(member.relationship_to_user)
    if label is None:
        return None
    if isinstance(label, Kin):
        if label.group == RelationGroup.PARENT:
            return PARENTS
        if label.group == RelationGroup.SIBLING:
            return SIBLINGS
    return member.relationship_to_user.strip().lower()


def _bucket_for_edge(edge: Edge) -> str:
    if edge.relation == EdgeRelation.PARENT:
        return PARENTS
    if edge.relation == EdgeRelation.SIBLING:
        return SIBLINGS
    return edge.relation.value


def classify(
    members: Iterable[Member],
    edges: Iterable[Edge],
    owner_id: Optional[str] = None,
) -> FamilyGroups:
    """Partition members into parents, siblings and other relations.

    A member's relationship-to-user label wins; without one, edges pointing
    at the member decide. With `owner_id`, only edges leaving the owner count
    and the owner is never bucketed.
    """
    groups = FamilyGroups()
    edges = [e for e in (edges or []) if isinstance(e, Edge)]

    for member in members or []:
        if not isinstance(member, Member) or member.id == owner_id:
            continue

        name = _bucket_for_text(member)
        if name is not None:
            groups.add(name, member)
            continue

        for edge in edges:
            if edge.to_id != member.id:
                continue
            if owner_id is not None and edge.from_id != owner_id:
                continue
            groups.add(_bucket_for_edge(edge), member)

    return groups


def classify_tree(tree: FamilyTree, owner_id: Optional[str] = None) -> FamilyGroups:
    return classify(tree.members, tree.edges, owner_id=owner_id)


def related_ids(member_id: str, edges: Iterable[Edge], relation: EdgeRelation) -> list[str]:
    """Ids that are `member_id`'s `relation`.

    Symmetric relations (spouse, sibling, cousin) are read in both
    directions; parent / child style edges only as stored.
    """
    found: list[str] = []
    for e in edges:
        if e.relation != relation:
            continue
        if e.from_id == member_id:
            other = e.to_id
        elif relation in SYMMETRIC and e.to_id == member_id:
            other = e.from_id
        else:
            continue
        if other not in found:
            found.append(other)
    return found


def spouses_of(member_id: str, tree: FamilyTree) -> list[Member]:
    ids = related_ids(member_id, tree.edges, EdgeRelation.SPOUSE)
    return [m for m in tree.members if m.id in ids]


def _keyword(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    lowered = text.lower()
    if "father" in lowered:
        return "father"
    if "mother" in lowered:
        return "mother"
    return None


def label_parents(parents: Iterable[Member], tree: FamilyTree) -> ParentLabels:
    """Guess father / mother from names, then from a spouse's name.

    Unreliable whenever names don't contain the words; gender is not used.
    """
    labels = ParentLabels()
    for parent in parents:
        guess = _keyword(parent.full_name) or _keyword(parent.relationship_to_user)
        if guess is None:
            for spouse in spouses_of(parent.id, tree):
                spouse_kw = _keyword(spouse.full_name)
                if spouse_kw:
                    guess = "mother" if spouse_kw == "father" else "father"
                    break

        if guess == "father" and labels.father is None:
            labels.father = parent
        elif guess == "mother" and labels.mother is None:
            labels.mother = parent
        else:
            labels.unlabelled.append(parent)
    return labels
