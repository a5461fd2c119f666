"""Promotion gate.

Domain service deciding whether a freshly trained model may replace the
current Production model. Nothing is promoted without passing every gate.

Gates:
    - Absolute thresholds per task (max RMSE / min R² / min accuracy)
    - Improvement over the current Production model on the primary metric
      (RMSE for regression, lower is better; accuracy for classification,
      higher is better)
"""

import logging

from domain.value_objects import ModelInfo, PromotionDecision

_LOGGER = logging.getLogger(__name__)

_LOWER_IS_BETTER = {"rmse", "mae"}


class PromotionGate:
    """Quality gate for model promotion."""

    def __init__(
        self,
        max_rmse: float | None = None,
        min_r2: float | None = None,
        min_accuracy: float | None = None,
        min_improvement: float = 0.0,
    ) -> None:
        """Initialize the promotion gate.

        Args:
            max_rmse: Reject regression models with a higher validation RMSE
            min_r2: Reject regression models with a lower validation R²
            min_accuracy: Reject classification models with lower accuracy
            min_improvement: Required improvement of the primary metric over
                the current Production model
        """
        if min_improvement < 0:
            raise ValueError(f"min_improvement must be non-negative, got {min_improvement}")
        self._max_rmse = max_rmse
        self._min_r2 = min_r2
        self._min_accuracy = min_accuracy
        self._min_improvement = min_improvement

    def evaluate(
        self,
        candidate: ModelInfo,
        baseline: ModelInfo | None = None,
    ) -> PromotionDecision:
        """Evaluate a candidate model.

        Args:
            candidate: Newly trained model
            baseline: Current Production model of the same name, if any

        Returns:
            Decision with failure reasons
        """
        reasons: list[str] = []
        metric = candidate.primary_metric
        value = candidate.metrics.get(metric)

        if value is None:
            reasons.append(f"Candidate has no {metric} metric")
        else:
            reasons.extend(self._check_thresholds(candidate))
            if baseline is not None:
                reasons.extend(self._check_improvement(candidate, baseline, metric, float(value)))

        decision = PromotionDecision(
            approved=not reasons,
            candidate_id=candidate.model_id,
            baseline_id=baseline.model_id if baseline else None,
            reasons=reasons,
        )
        _LOGGER.info(
            "Promotion gate for %s: %s%s",
            candidate.model_id,
            "PASS" if decision.approved else "FAIL",
            "" if decision.approved else f" ({'; '.join(reasons)})",
        )
        return decision

    def _check_thresholds(self, candidate: ModelInfo) -> list[str]:
        reasons = []
        metrics = candidate.metrics
        if candidate.task == "regression":
            if self._max_rmse is not None and metrics.get("rmse", float("inf")) > self._max_rmse:
                reasons.append(f"RMSE {metrics.get('rmse', float('inf')):.4f} > {self._max_rmse}")
            if self._min_r2 is not None and metrics.get("r2", float("-inf")) < self._min_r2:
                reasons.append(f"R2 {metrics.get('r2', float('-inf')):.4f} < {self._min_r2}")
        else:
            accuracy = metrics.get("accuracy", 0.0)
            if self._min_accuracy is not None and accuracy < self._min_accuracy:
                reasons.append(f"Accuracy {accuracy:.4f} < {self._min_accuracy}")
        return reasons

    def _check_improvement(
        self,
        candidate: ModelInfo,
        baseline: ModelInfo,
        metric: str,
        value: float,
    ) -> list[str]:
        if baseline.task != candidate.task:
            # Different tasks aren't comparable; the candidate only has to pass thresholds.
            return []
        baseline_value = baseline.metrics.get(metric)
        if baseline_value is None:
            return []
        baseline_value = float(baseline_value)

        if metric in _LOWER_IS_BETTER:
            improvement = baseline_value - value
        else:
            improvement = value - baseline_value

        if improvement < self._min_improvement:
            return [
                f"{metric} {value:.4f} does not improve on {baseline.model_id} "
                f"({baseline_value:.4f}) by at least {self._min_improvement}"
            ]
        return []
