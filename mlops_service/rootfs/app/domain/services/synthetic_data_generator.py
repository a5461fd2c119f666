"""Synthetic data generator for testing and validation.

Generates labelled tabular data with a known linear signal, so the
training and serving path can be exercised without a real dataset.
"""

import random
from datetime import datetime, timedelta
from typing import Sequence

from domain.value_objects import SUPPORTED_TASKS, TrainingData, TrainingDataPoint


class SyntheticDataGenerator:
    """Generator for synthetic tabular training data.

    Samples are built from:
    - Uniformly distributed features in [-10, 10]
    - A fixed, seed-dependent linear combination of the features
    - Gaussian noise on top of the signal

    Classification labels are "positive" when the noisy signal is above
    zero and "negative" otherwise.
    """

    NOISE_STD = 0.5
    POSITIVE_LABEL = "positive"
    NEGATIVE_LABEL = "negative"

    def __init__(self, seed: int | None = None) -> None:
        """Initialize the synthetic data generator.

        Args:
            seed: Random seed for reproducibility
        """
        self._random = random.Random(seed)

    def generate(
        self,
        num_samples: int = 100,
        num_features: int = 4,
        task: str = "regression",
    ) -> TrainingData:
        """Generate synthetic training data.

        Args:
            num_samples: Number of data points to generate
            num_features: Number of features per data point
            task: "regression" or "classification"

        Returns:
            TrainingData with generated samples
        """
        if num_samples < 1:
            raise ValueError("num_samples must be at least 1")
        if num_features < 1:
            raise ValueError("num_features must be at least 1")
        if task not in SUPPORTED_TASKS:
            raise ValueError(f"task must be one of {', '.join(SUPPORTED_TASKS)}, got {task!r}")

        weights = [self._random.uniform(-3, 3) for _ in range(num_features)]
        intercept = self._random.uniform(-5, 5)
        base_timestamp = datetime.now() - timedelta(hours=num_samples)

        data_points: list[TrainingDataPoint] = []
        for i in range(num_samples):
            data_points.append(
                self._generate_single_point(
                    weights=weights,
                    intercept=intercept,
                    task=task,
                    timestamp=base_timestamp + timedelta(hours=i),
                )
            )

        return TrainingData.from_sequence(data_points)

    def _generate_single_point(
        self,
        weights: Sequence[float],
        intercept: float,
        task: str,
        timestamp: datetime,
    ) -> TrainingDataPoint:
        """Generate a single training data point."""
        features = {
            f"feature_{index}": round(self._random.uniform(-10, 10), 3)
            for index in range(len(weights))
        }
        signal = intercept + sum(
            weight * value for weight, value in zip(weights, features.values())
        )
        noisy = signal + self._random.gauss(0, self.NOISE_STD)

        target: float | str
        if task == "classification":
            target = self.POSITIVE_LABEL if noisy > 0 else self.NEGATIVE_LABEL
        else:
            target = round(noisy, 3)

        return TrainingDataPoint(features=features, target=target, timestamp=timestamp)
