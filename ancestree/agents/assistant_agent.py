"""
Assistant Agent - genealogy Q&A with optional user context.

The user context is a JSON blob built from the profile and / or family data
and passed to the model, which is told to summarise rather than echo it.
"""

import json
import logging
from typing import Optional

from ancestree.agents.gateway import AIGateway
from ancestree.errors import InvalidRequestError
from ancestree.graph.classifier import classify_tree
from ancestree.graph.family_tree import FamilyTreeService
from ancestree.graph.profile_store import ProfileStore

logger = logging.getLogger(__name__)

SCOPES = ("all", "profile", "family", "none")


class AssistantAgent:
    """Answer genealogy and app-usage questions."""

    SYSTEM = """You are a helpful AI assistant specialized in genealogy and DNA analysis.

Answer the user's questions accurately and give guidance on using the application. Offer proactive suggestions related to genealogy and DNA analysis.

When a user context is provided, use it to personalize your answer. Do not reveal the raw data; summarize it and suggest helpful next steps.

KINSHIP RULES
- Nuclear terms: father, mother, son, daughter, spouse, husband, wife, sibling, brother, sister, parent, child.
- Ancestors: parent (1 generation), grandparent (2), great-grandparent (3), great-great-grandparent (4). Descendants mirror this.
- Extended: uncle/aunt = parent's sibling; nephew/niece = sibling's child; cousin = child of parent's sibling; second cousins share great-grandparents; "once removed" means one generation apart.
- In-law forms describe relations by marriage; step relations come through a step-parent; half-siblings share exactly one parent.
- Reciprocals: if A is parent of B then B is child of A; spouse and sibling are symmetric.
- Use gendered words only when gender is known.

APP MODEL
- Family tree: members (id, fullName, gender, birthDate, birthPlace, photoUrl, relationshipToUser) and edges (fromId, toId, relation in parent, child, sibling, spouse, grandparent, grandchild, cousin).
- Family information: family heads (anchors such as father or grandfather) and family members connected to exactly one head, each with a relationship to the head and a relationship to the user.
- Setting up a family: add the father or grandfather as a family head, then add relatives connected to that head with their relationship to the user, then save.

When asked about finding relatives, compare birth places, clan or cultural background and known relative names, and suggest concrete questions that would confirm a connection."""

    def __init__(self, gateway: AIGateway, profiles: ProfileStore, trees: FamilyTreeService):
        self.gateway = gateway
        self.profiles = profiles
        self.trees = trees

    def build_user_context(self, user_id: str, scope: str = "all") -> Optional[dict]:
        """Collect what we know about the user for the given scope."""
        if scope not in SCOPES:
            raise InvalidRequestError(f"Unknown scope: {scope}")
        if scope == "none":
            return None

        context: dict = {"userId": user_id}

        if scope in ("all", "profile"):
            profile = self.profiles.get(user_id)
            if profile:
                doc = profile.to_document()
                # raw DNA stays out of chat prompts
                doc.pop("dnaData", None)
                context["profile"] = doc

        if scope in ("all", "family"):
            data = self.trees.get_family_data(user_id)
            context["familyHeads"] = [h.to_document() for h in data.family_heads]
            context["familyMembers"] = [m.to_document() for m in data.family_members]
            tree = self.trees.get_tree(user_id)
            groups = classify_tree(tree)
            context["familyTree"] = {
                "memberCount": len(tree.members),
                "edgeCount": len(tree.edges),
                "groups": {
                    "parents": [m.full_name for m in groups.parents],
                    "siblings": [m.full_name for m in groups.siblings],
                    "other": {k: [m.full_name for m in v] for k, v in groups.other.items()},
                },
            }

        return context

    async def ask(self, query: str, user_id: Optional[str] = None, scope: str = "all") -> str:
        if not query or not isinstance(query, str) or not query.strip():
            raise InvalidRequestError("Missing query")

        user_context = self.build_user_context(user_id, scope) if user_id else None
        prompt = query.strip()
        if user_context:
            prompt = f"User Context (JSON): {json.dumps(user_context)}\n\nHere's the user's question:\n{prompt}"

        answer = await self.gateway.request("assistant", prompt, str, system=self.SYSTEM)
        logger.info("Assistant answered for %s (scope=%s)", user_id or "anonymous", scope)
        return answer
