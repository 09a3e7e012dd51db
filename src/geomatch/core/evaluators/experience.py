"""Experience evaluation."""

from __future__ import annotations

from typing import Any

from ...schemas import Candidate


class ExperienceEvaluator:
    """Ratio of candidate experience to the posting's requirement, capped at 1."""

    method = "experience"

    def evaluate(self, candidate: Candidate, context: dict[str, Any]) -> dict[str, Any]:
        required = context["job"].experience_required
        years = candidate.years_of_experience
        if not required:
            score = 1.0
        else:
            score = min(1.0, years / required)

        return {
            "method": self.method,
            "scores": {"experience": score},
            "metadata": {"candidate_years": years, "required_years": required},
        }
