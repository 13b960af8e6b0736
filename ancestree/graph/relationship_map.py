"""Free-text relationship labels parsed into a small sum type.

A label such as "Step-Sister", "great grandmother" or "mother-in-law" becomes
either `Kin` (recognised vocabulary with its display group) or `Other`
(anything we could not place). The fixed edge vocabulary is a lossy
projection of these labels, see `edge_relation_for`.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ancestree.models import EdgeRelation


class RelationGroup(str, Enum):
    """Display group of a recognised relation."""
    PARENT = "parent"
    SIBLING = "sibling"
    SPOUSE = "spouse"
    CHILD = "child"
    GRANDPARENT = "grandparent"
    GRANDCHILD = "grandchild"
    EXTENDED = "extended"  # uncle, aunt, cousin, nephew, niece
    IN_LAW = "in_law"


@dataclass(frozen=True)
class RelationInfo:
    """Base term information."""
    term: str
    group: RelationGroup
    gender: Optional[str]


@dataclass(frozen=True)
class Kin:
    """Recognised relation."""
    text: str            # normalised label, e.g. "step-sister"
    term: str            # base term, e.g. "sister"
    group: RelationGroup
    gender: Optional[str] = None
    step: bool = False
    half: bool = False
    generations: int = 0  # 1 for grand-, 2 for great-grand-, ...


@dataclass(frozen=True)
class Other:
    """Unmapped label, kept verbatim (lower-cased)."""
    text: str


RelationLabel = Union[Kin, Other]


MAPPINGS = {
    "father": RelationInfo("father", RelationGroup.PARENT, "M"),
    "mother": RelationInfo("mother", RelationGroup.PARENT, "F"),
    "dad": RelationInfo("father", RelationGroup.PARENT, "M"),
    "mom": RelationInfo("mother", RelationGroup.PARENT, "F"),
    "parent": RelationInfo("parent", RelationGroup.PARENT, None),
    "son": RelationInfo("son", RelationGroup.CHILD, "M"),
    "daughter": RelationInfo("daughter", RelationGroup.CHILD, "F"),
    "child": RelationInfo("child", RelationGroup.CHILD, None),
    "brother": RelationInfo("brother", RelationGroup.SIBLING, "M"),
    "sister": RelationInfo("sister", RelationGroup.SIBLING, "F"),
    "sibling": RelationInfo("sibling", RelationGroup.SIBLING, None),
    "husband": RelationInfo("husband", RelationGroup.SPOUSE, "M"),
    "wife": RelationInfo("wife", RelationGroup.SPOUSE, "F"),
    "spouse": RelationInfo("spouse", RelationGroup.SPOUSE, None),
    "uncle": RelationInfo("uncle", RelationGroup.EXTENDED, "M"),
    "aunt": RelationInfo("aunt", RelationGroup.EXTENDED, "F"),
    "cousin": RelationInfo("cousin", RelationGroup.EXTENDED, None),
    "nephew": RelationInfo("nephew", RelationGroup.EXTENDED, "M"),
    "niece": RelationInfo("niece", RelationGroup.EXTENDED, "F"),
}

# Substring fallback for labels outside the vocabulary. Order matters.
PARENT_KEYWORDS = ("father", "mother", "parent")
SIBLING_KEYWORDS = ("brother", "sister", "sibling")

# Only valid after grand-, as in "grandpa"
_GRAND_ONLY = {
    "pa": RelationInfo("father", RelationGroup.PARENT, "M"),
    "ma": RelationInfo("mother", RelationGroup.PARENT, "F"),
}


def _normalize(text: str) -> str:
    return re.sub(r"[\s_]+", "-", text.strip().lower())


def parse_relation(text: Optional[str]) -> Optional[RelationLabel]:
    """Parse a free-text relation label. Returns None for empty input."""
    if not text or not isinstance(text, str) or not text.strip():
        return None

    label = _normalize(text)
    rest = label

    in_law = rest.endswith("-in-law")
    if in_law:
        rest = rest[: -len("-in-law")]

    step = half = False
    if rest.startswith("step"):
        step, rest = True, rest[4:].lstrip("-")
    elif rest.startswith("half"):
        half, rest = True, rest[4:].lstrip("-")

    generations = 0
    while rest.startswith("great"):
        generations += 1
        rest = rest[5:].lstrip("-")
    if rest.startswith("grand"):
        generations += 1
        rest = rest[5:].lstrip("-")

    info = MAPPINGS.get(rest)
    if info is None and generations:
        info = _GRAND_ONLY.get(rest)
    if info is None:
        # grand-/great- words we don't know never fall back to parents
        return Other(label) if generations else _fallback(label)

    group = info.group
    if in_law:
        group = RelationGroup.IN_LAW
    elif generations and group == RelationGroup.PARENT:
        group = RelationGroup.GRANDPARENT
    elif generations and group == RelationGroup.CHILD:
        group = RelationGroup.GRANDCHILD
    elif generations and group != RelationGroup.EXTENDED:
        return Other(label)

    return Kin(
        text=label,
        term=info.term,
        group=group,
        gender=info.gender,
        step=step,
        half=half,
        generations=generations,
    )


def _fallback(label: str) -> RelationLabel:
    """Substring matching for labels outside the vocabulary."""
    if any(k in label for k in PARENT_KEYWORDS):
        return Kin(text=label, term="parent", group=RelationGroup.PARENT)
    if any(k in label for k in SIBLING_KEYWORDS):
        return Kin(text=label, term="sibling", group=RelationGroup.SIBLING)
    return Other(label)


def edge_relation_for(label: Optional[RelationLabel]) -> EdgeRelation:
    """Collapse a label onto the edge vocabulary.

    Everything that is not a parent, grandparent or sibling becomes cousin.
    """
    if isinstance(label, Kin):
        if label.group == RelationGroup.GRANDPARENT:
            return EdgeRelation.GRANDPARENT
        if label.group == RelationGroup.PARENT:
            return EdgeRelation.PARENT
        if label.group == RelationGroup.SIBLING:
            return EdgeRelation.SIBLING
    return EdgeRelation.COUSIN


def gender_for(text: Optional[str]) -> Optional[str]:
    """Implied gender of a relation label, if any."""
    label = parse_relation(text)
    return label.gender if isinstance(label, Kin) else None
