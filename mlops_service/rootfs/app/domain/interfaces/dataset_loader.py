"""Dataset loader interface.

Contract for turning a tabular data file into training data.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from domain.value_objects import DatasetVersion, TrainingData


class IDatasetLoader(ABC):
    """Contract for loading training data from files."""

    @abstractmethod
    def load(
        self,
        path: str | Path,
        target_column: str,
        feature_columns: Sequence[str] | None = None,
        task: str = "regression",
        dataset_version: DatasetVersion | None = None,
    ) -> TrainingData:
        """Load labelled samples from a file.

        Args:
            path: Data file path
            target_column: Column holding the label
            feature_columns: Columns to use as features (all others when omitted)
            task: "regression" or "classification"
            dataset_version: Version to attach to the resulting training data

        Raises:
            ValueError: If the file content cannot be used for training
        """
        pass
