"""
DNA Agent - relative prediction, ancestry estimation and generational
insights, all delegated to the model through the AI gateway.

No genetic analysis happens here: the agent builds prompts, caps the input
size, and persists whatever the model returns.
"""

import asyncio
import logging

from ancestree.agents.gateway import AIGateway
from ancestree.errors import AnalysisError, AncestreeError, InvalidRequestError
from ancestree.graph.family_sync import summarize_tree
from ancestree.graph.family_tree import FamilyTreeService
from ancestree.graph.profile_store import ProfileStore
from ancestree.models import (
    AncestryEstimation,
    DnaAnalysis,
    GenerationalInsights,
    PredictedRelative,
)

logger = logging.getLogger(__name__)


class DnaAgent:
    """Run the three DNA reports and store them on the user's profile."""

    RELATIVES_PROMPT = """You are an expert in genetic analysis and genealogy. Given a user's DNA data and the DNA data of other users, identify potential relatives, estimate the relationship probabilities, and identify possible common ancestors.

User DNA Data: {dna_data}

Other Users DNA Data:
{other_dna}

User Family Tree Data:
{family_tree}

Return a JSON array. Each item: {{"userId": str, "predictedRelationship": str, "relationshipProbability": number between 0 and 1, "commonAncestors": [str] (optional), "sharedCentimorgans": number (optional)}}. Return [] when no relatives are found."""

    ANCESTRY_PROMPT = """Analyze the following SNP data and generate a detailed ancestry report with ethnicity estimates and confidence intervals for each estimate.

SNP Data: {snp_data}

Return a JSON object: {{"ethnicityEstimates": str}}"""

    INSIGHTS_PROMPT = """Analyze the provided genetic marker data and generate insights into:

- Health Predispositions: potential health risks. State clearly that this is not a medical diagnosis and that users should consult healthcare professionals.
- Phenotypic Traits: e.g. eye color, hair type.
- Ancestral Origins: ancestral origins and potential historical group connections.

Genetic Marker Data: {markers}

Return a JSON object: {{"healthInsights": str, "traitInsights": str, "ancestryInsights": str}}"""

    SYSTEM = "You are an AI assistant specialized in genetic genealogy. Respond with valid JSON only. No markdown. No explanation."

    def __init__(self, gateway: AIGateway, profiles: ProfileStore, trees: FamilyTreeService):
        self.gateway = gateway
        self.profiles = profiles
        self.trees = trees

    async def predict_relatives(
        self,
        dna_data: str,
        other_users_dna: list[str],
        family_tree: str = "None",
    ) -> list[PredictedRelative]:
        others = self.gateway.cap_comparisons(other_users_dna)
        prompt = self.RELATIVES_PROMPT.format(
            dna_data=self.gateway.cap_dna(dna_data),
            other_dna="\n".join(others) if others else "None",
            family_tree=family_tree or "None",
        )
        return await self.gateway.request(
            "predict_relatives", prompt, list[PredictedRelative], system=self.SYSTEM
        )

    async def estimate_ancestry(self, snp_data: str) -> AncestryEstimation:
        prompt = self.ANCESTRY_PROMPT.format(snp_data=self.gateway.cap_dna(snp_data))
        return await self.gateway.request(
            "estimate_ancestry", prompt, AncestryEstimation, system=self.SYSTEM
        )

    async def generational_insights(self, markers: str) -> GenerationalInsights:
        prompt = self.INSIGHTS_PROMPT.format(markers=self.gateway.cap_dna(markers))
        return await self.gateway.request(
            "generational_insights", prompt, GenerationalInsights, system=self.SYSTEM
        )

    async def analyze(self, user_id: str, dna_data: str, file_name: str) -> DnaAnalysis:
        """Run all three reports concurrently and persist them.

        Raises AnalysisError on any upstream failure; nothing is stored then
        and the reports still in flight are cancelled.
        """
        if not user_id or not dna_data or not dna_data.strip():
            raise InvalidRequestError("Missing required fields")

        try:
            others = self.profiles.other_users_dna(user_id, self.gateway.max_comparison_profiles)
            tree_summary = summarize_tree(self.trees.get_tree(user_id))

            flows = [
                asyncio.ensure_future(self.predict_relatives(dna_data, others, tree_summary)),
                asyncio.ensure_future(self.estimate_ancestry(dna_data)),
                asyncio.ensure_future(self.generational_insights(dna_data)),
            ]
            try:
                relatives, ancestry, insights = await asyncio.gather(*flows)
            finally:
                # the first failure abandons the flows still running
                for flow in flows:
                    if not flow.done():
                        flow.cancel()

            analysis = DnaAnalysis(relatives=relatives, ancestry=ancestry, insights=insights)
            self.profiles.save_analysis(user_id, dna_data, file_name or "", analysis)
        except AncestreeError as e:
            logger.error("DNA analysis for %s failed: %s", user_id, e)
            raise AnalysisError() from e

        logger.info("DNA analysis for %s: %d predicted relatives", user_id, len(analysis.relatives))
        return analysis
