"""Data models for family trees, profiles and AI reports.

Stored documents use the camelCase field names the web client sends
(`fullName`, `fromId`, ...). Python code uses the snake_case attributes.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class Document(BaseModel):
    """Base for everything that is written to the document store."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _valid_items(model: type, raw_items: Optional[list]) -> list:
    """Validate each raw item, skipping the ones that don't fit `model`."""
    items = []
    for raw in raw_items or []:
        try:
            items.append(model.model_validate(raw))
        except ValidationError as e:
            logger.debug("Skipping malformed %s %r: %s", model.__name__, raw, e)
    return items


class EdgeRelation(str, Enum):
    """Fixed edge vocabulary of the family tree."""
    PARENT = "parent"
    CHILD = "child"
    SIBLING = "sibling"
    SPOUSE = "spouse"
    GRANDPARENT = "grandparent"
    GRANDCHILD = "grandchild"
    COUSIN = "cousin"


class Member(Document):
    """A person on the family tree board."""

    id: str = Field(min_length=1)
    full_name: str
    gender: Optional[str] = None
    birth_date: Optional[str] = None
    birth_place: Optional[str] = None
    photo_url: Optional[str] = None
    relationship_to_user: Optional[str] = None
    notes: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None


class Edge(Document):
    """Directed, typed link between two members."""

    from_id: str = Field(min_length=1)
    to_id: str = Field(min_length=1)
    relation: EdgeRelation

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.from_id, self.to_id, self.relation.value)

    def touches(self, member_id: str) -> bool:
        return self.from_id == member_id or self.to_id == member_id


class FamilyTree(Document):
    """One tree per user: members, edges and last update time."""

    owner_user_id: str
    members: list[Member] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    updated_at: str = Field(default_factory=now_iso)

    @classmethod
    def empty(cls, owner_user_id: str) -> "FamilyTree":
        return cls(owner_user_id=owner_user_id)

    @classmethod
    def from_document(cls, owner_user_id: str, doc: Optional[dict]) -> "FamilyTree":
        """Load a stored tree, dropping members and edges that don't parse."""
        if not doc:
            return cls.empty(owner_user_id)

        return cls(
            owner_user_id=doc.get("ownerUserId") or owner_user_id,
            members=_valid_items(Member, doc.get("members")),
            edges=_valid_items(Edge, doc.get("edges")),
            updated_at=doc.get("updatedAt") or now_iso(),
        )

    def get_member(self, member_id: str) -> Optional[Member]:
        for m in self.members:
            if m.id == member_id:
                return m
        return None


# ─────────────────────────────────────────
# Alternate "heads and members" model
# ─────────────────────────────────────────

class FamilyHead(Document):
    """Anchor of a family branch, e.g. father or grandfather."""

    id: str = Field(min_length=1)
    name: str
    relationship: str = "father"


class FamilyMember(Document):
    """Relative attached to exactly one head."""

    id: str = Field(min_length=1)
    name: str
    relationship: str = ""  # relation to the head, e.g. "wife", "son"
    relationship_to_user: str = ""
    connected_to: str = ""
    birth_place: Optional[str] = None
    birth_date: Optional[str] = None
    notes: Optional[str] = None


class FamilyData(Document):
    family_heads: list[FamilyHead] = Field(default_factory=list)
    family_members: list[FamilyMember] = Field(default_factory=list)
    updated_at: str = Field(default_factory=now_iso)

    @classmethod
    def from_document(cls, doc: Optional[dict]) -> "FamilyData":
        """Load stored family data, dropping heads and members that don't parse."""
        if not doc:
            return cls()
        return cls(
            family_heads=_valid_items(FamilyHead, doc.get("familyHeads")),
            family_members=_valid_items(FamilyMember, doc.get("familyMembers")),
            updated_at=doc.get("updatedAt") or now_iso(),
        )


# ─────────────────────────────────────────
# AI report shapes
# ─────────────────────────────────────────

class PredictedRelative(Document):
    user_id: str
    predicted_relationship: str
    relationship_probability: float
    common_ancestors: Optional[list[str]] = None
    shared_centimorgans: Optional[float] = None


class AncestryEstimation(Document):
    ethnicity_estimates: str


class GenerationalInsights(Document):
    health_insights: str
    trait_insights: str
    ancestry_insights: str


class DnaAnalysis(Document):
    relatives: list[PredictedRelative] = Field(default_factory=list)
    ancestry: AncestryEstimation
    insights: GenerationalInsights
    completed_at: str = Field(default_factory=now_iso)


# ─────────────────────────────────────────
# Profiles and connections
# ─────────────────────────────────────────

class UserProfile(Document):
    """User document in the `users` collection."""

    user_id: str
    full_name: Optional[str] = None
    birth_date: Optional[str] = None
    birth_place: Optional[str] = None
    clan_or_cultural_info: Optional[str] = None
    relatives_names: list[str] = Field(default_factory=list)
    location: Optional[str] = None
    marital_status: Optional[str] = None
    spouse_name: Optional[str] = None
    education: Optional[str] = None
    work: Optional[str] = None
    phone_number: Optional[str] = None
    profile_completed: bool = False
    dna_data: Optional[str] = None
    dna_file_name: Optional[str] = None
    analysis: Optional[DnaAnalysis] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ConnectionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class ConnectionRequest(Document):
    from_user_id: str
    to_user_id: str
    status: ConnectionStatus = ConnectionStatus.PENDING
    created_at: str = Field(default_factory=now_iso)
    responded_at: Optional[str] = None

    @property
    def id(self) -> str:
        return f"{self.from_user_id}_{self.to_user_id}"


class SuggestedMatch(Document):
    user_id: str
    full_name: Optional[str] = None
    score: float
    reasons: list[str] = Field(default_factory=list)
