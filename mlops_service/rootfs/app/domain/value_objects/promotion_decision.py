"""Promotion decision value object."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PromotionDecision:
    """Outcome of evaluating a candidate model against the promotion gate.

    Attributes:
        approved: True when every gate criterion passed
        candidate_id: Model that was evaluated
        baseline_id: Production model it was compared to, if any
        reasons: Failure reasons, empty when approved
    """

    approved: bool
    candidate_id: str
    baseline_id: str | None = None
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "approved": self.approved,
            "candidate_id": self.candidate_id,
            "baseline_id": self.baseline_id,
            "reasons": list(self.reasons),
        }
