"""User profiles and profile-based relative suggestions."""

import logging
from typing import Optional

from pydantic import ValidationError

from ancestree.errors import InvalidRequestError
from ancestree.graph.document_store import DocumentStore
from ancestree.models import DnaAnalysis, SuggestedMatch, UserProfile, now_iso

logger = logging.getLogger(__name__)

USERS = "users"
MAX_SUGGESTIONS = 9


def _load_profile(user_id: str, doc: dict) -> Optional[UserProfile]:
    doc.setdefault("userId", user_id)
    try:
        return UserProfile.model_validate(doc)
    except ValidationError as e:
        logger.debug("Skipping malformed profile %s: %s", user_id, e)
        return None


class ProfileStore:
    """Read and write documents in the `users` collection."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, user_id: str) -> Optional[UserProfile]:
        doc = self.store.get(USERS, user_id)
        if not doc:
            return None
        return _load_profile(user_id, doc)

    def get_all(self) -> list[UserProfile]:
        """Every readable profile. Documents that don't parse are skipped."""
        profiles = []
        for doc_id, doc in self.store.list_documents(USERS):
            profile = _load_profile(doc_id, doc)
            if profile is not None:
                profiles.append(profile)
        return profiles

    def save_profile(
        self,
        user_id: str,
        full_name: str,
        relatives_names: Optional[list[str]] = None,
        **fields,
    ) -> UserProfile:
        """Merge profile fields and mark the profile complete."""
        if not user_id or not full_name or not full_name.strip():
            raise InvalidRequestError("Missing required fields")

        profile = UserProfile(
            user_id=user_id,
            full_name=full_name.strip(),
            relatives_names=[n.strip() for n in relatives_names or [] if n and n.strip()],
            profile_completed=True,
            updated_at=now_iso(),
            **{k: v for k, v in fields.items() if v not in (None, "")},
        )
        self.store.set(USERS, user_id, profile.to_document(), merge=True)
        logger.info("Saved profile for %s", user_id)
        return self.get(user_id) or profile

    def save_analysis(
        self,
        user_id: str,
        dna_data: str,
        file_name: str,
        analysis: DnaAnalysis,
    ) -> None:
        self.store.set(USERS, user_id, {
            "userId": user_id,
            "dnaData": dna_data,
            "dnaFileName": file_name,
            "analysis": analysis.to_document(),
            "updatedAt": now_iso(),
        }, merge=True)
        logger.info("Stored DNA analysis for %s", user_id)

    def other_users_dna(self, user_id: str, limit: int) -> list[str]:
        """DNA text of other users who uploaded any, capped at `limit`."""
        dna = []
        for doc_id, doc in self.store.list_documents(USERS):
            if doc_id == user_id or not doc.get("dnaData"):
                continue
            dna.append(doc["dnaData"])
            if len(dna) >= limit:
                break
        return dna


def score_match(me: UserProfile, other: UserProfile) -> Optional[SuggestedMatch]:
    """Score one candidate on profile overlap. None when nothing matches."""
    score = 0.0
    reasons = []

    my_names = [n.lower() for n in me.relatives_names]
    other_names = [n.lower() for n in other.relatives_names]
    shared = [n for n in my_names if n in other_names]
    if shared:
        score += min(0.4, len(shared) * 0.1)
        reasons.append(f"Shared relatives: {', '.join(shared[:3])}")

    if me.birth_place and other.birth_place and me.birth_place.lower() == other.birth_place.lower():
        score += 0.25
        reasons.append("Same birth place")

    if (
        me.clan_or_cultural_info
        and other.clan_or_cultural_info
        and me.clan_or_cultural_info.lower() == other.clan_or_cultural_info.lower()
    ):
        score += 0.25
        reasons.append("Matching clan/cultural info")

    if me.full_name and other.full_name:
        a, b = me.full_name.lower(), other.full_name.lower()
        if a in b or b in a:
            score += 0.1
            reasons.append("Similar full name")

    if score <= 0:
        return None
    return SuggestedMatch(
        user_id=other.user_id,
        full_name=other.full_name,
        score=round(min(1.0, score), 4),
        reasons=reasons,
    )


def suggested_matches(profiles: ProfileStore, user_id: str) -> list[SuggestedMatch]:
    """Best profile-overlap matches for a user, highest score first."""
    me = profiles.get(user_id)
    if me is None:
        return []

    suggestions = []
    for other in profiles.get_all():
        if other.user_id == user_id:
            continue
        match = score_match(me, other)
        if match:
            suggestions.append(match)

    suggestions.sort(key=lambda s: s.score, reverse=True)
    return suggestions[:MAX_SUGGESTIONS]
