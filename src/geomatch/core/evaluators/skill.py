"""Skill overlap evaluation."""

from __future__ import annotations

from typing import Any

from ...schemas import Candidate


class SkillOverlapEvaluator:
    """Jaccard similarity between held and required skill ids."""

    method = "skill"

    def evaluate(self, candidate: Candidate, context: dict[str, Any]) -> dict[str, Any]:
        held = set(candidate.skill_ids)
        required = set(context["job"].required_skill_ids)
        union = held | required
        matched = held & required
        score = len(matched) / len(union) if union else 0.0

        return {
            "method": self.method,
            "scores": {"skill": score},
            "metadata": {
                "matched": sorted(matched),
                "missing": sorted(required - held),
                "extra": sorted(held - required),
            },
        }
