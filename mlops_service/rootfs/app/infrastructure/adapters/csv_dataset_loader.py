"""CSV dataset loader adapter.

Infrastructure adapter that implements IDatasetLoader using pandas.
"""

import logging
from pathlib import Path
from typing import Sequence

import pandas as pd
from domain.interfaces import IDatasetLoader
from domain.value_objects import (
    SUPPORTED_TASKS,
    DatasetVersion,
    TrainingData,
    TrainingDataPoint,
)

_LOGGER = logging.getLogger(__name__)


class CsvDatasetLoader(IDatasetLoader):
    """Loads labelled samples from a CSV file with a header row."""

    def load(
        self,
        path: str | Path,
        target_column: str,
        feature_columns: Sequence[str] | None = None,
        task: str = "regression",
        dataset_version: DatasetVersion | None = None,
    ) -> TrainingData:
        """Load labelled samples from a CSV file.

        Missing feature cells are left out of the sample's feature mapping;
        rows without a target are dropped.

        Args:
            path: CSV file path
            target_column: Column holding the label
            feature_columns: Columns to use as features (all others when omitted)
            task: "regression" or "classification"
            dataset_version: Version to attach to the resulting training data

        Returns:
            TrainingData with one point per usable row
        """
        if task not in SUPPORTED_TASKS:
            raise ValueError(f"task must be one of {', '.join(SUPPORTED_TASKS)}, got {task!r}")

        try:
            frame = pd.read_csv(path)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise ValueError(f"Cannot read dataset {path}: {e}") from e

        if target_column not in frame.columns:
            raise ValueError(f"Target column {target_column!r} not found in {path}")

        if feature_columns is None:
            feature_columns = [c for c in frame.columns if c != target_column]
        else:
            absent = [c for c in feature_columns if c not in frame.columns]
            if absent:
                raise ValueError(f"Feature columns not found in {path}: {', '.join(absent)}")
        if not feature_columns:
            raise ValueError(f"No feature columns available in {path}")

        non_numeric = [
            c for c in feature_columns if not pd.api.types.is_numeric_dtype(frame[c])
        ]
        if non_numeric:
            raise ValueError(f"Non-numeric feature columns: {', '.join(non_numeric)}")

        before = len(frame)
        frame = frame.dropna(subset=[target_column])
        dropped = before - len(frame)
        if dropped:
            _LOGGER.warning("Dropped %d rows without %r from %s", dropped, target_column, path)

        if task == "regression" and not pd.api.types.is_numeric_dtype(frame[target_column]):
            raise ValueError(f"Regression target column {target_column!r} must be numeric")

        data_points = []
        for record in frame.to_dict(orient="records"):
            features = {
                name: float(record[name])
                for name in feature_columns
                if not pd.isna(record[name])
            }
            if not features:
                continue
            target = record[target_column]
            if task == "classification":
                target = self._label(target)
            else:
                target = float(target)
            data_points.append(TrainingDataPoint(features=features, target=target))

        if not data_points:
            raise ValueError(f"No usable rows in {path}")

        _LOGGER.info(
            "Loaded %d samples with %d features from %s",
            len(data_points),
            len(feature_columns),
            path,
        )
        return TrainingData.from_sequence(data_points, dataset_version=dataset_version)

    @staticmethod
    def _label(value: object) -> str:
        """Normalize a class label; 1.0 and 1 map to the same label."""
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
