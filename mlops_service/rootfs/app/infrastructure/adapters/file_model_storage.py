"""File-based model storage adapter.

Infrastructure adapter that implements IModelStorage using file system.
Besides the pickled models it keeps a small registry index with the
model name, version and stage of every stored model.
"""

import json
import logging
import os
import pickle
import re
from dataclasses import replace
from pathlib import Path
from typing import Any

from domain.interfaces import IModelStorage
from domain.value_objects import ModelInfo, ModelStage

_LOGGER = logging.getLogger(__name__)

_MODEL_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class ModelNotFoundError(LookupError):
    """Raised when a model is not found in storage."""

    pass


class StorageError(Exception):
    """Raised when a storage operation fails."""

    pass


class FileModelStorage(IModelStorage):
    """File-based implementation of model storage.

    This adapter stores models and metadata on the file system.
    """

    MODEL_FILE_SUFFIX = ".pkl"
    METADATA_FILE_SUFFIX = ".json"
    FEATURES_FILE_SUFFIX = "_features.json"
    INDEX_FILE_NAME = "models_index.json"

    def __init__(self, base_path: str | Path) -> None:
        """Initialize file-based storage.

        Args:
            base_path: Directory path for storing models
        """
        self._base_path = Path(base_path)
        self._ensure_directory_exists()

    @property
    def base_path(self) -> Path:
        return self._base_path

    def _ensure_directory_exists(self) -> None:
        """Create storage directory if it doesn't exist."""
        self._base_path.mkdir(parents=True, exist_ok=True)

    def _file_path(self, model_id: str, suffix: str) -> Path:
        # Ids are file name stems; anything else could point outside the store
        if not isinstance(model_id, str) or not _MODEL_ID_PATTERN.match(model_id):
            raise ModelNotFoundError(f"Model not found: {model_id!r}")
        return self._base_path / f"{model_id}{suffix}"

    def _model_path(self, model_id: str) -> Path:
        return self._file_path(model_id, self.MODEL_FILE_SUFFIX)

    def _metadata_path(self, model_id: str) -> Path:
        return self._file_path(model_id, self.METADATA_FILE_SUFFIX)

    def _features_path(self, model_id: str) -> Path:
        return self._file_path(model_id, self.FEATURES_FILE_SUFFIX)

    async def save_model(
        self,
        model_id: str,
        model: Any,
        info: ModelInfo,
    ) -> None:
        """Save a trained model to file storage.

        Args:
            model_id: Unique identifier for the model
            model: The trained model object
            info: Model metadata
        """
        try:
            with open(self._model_path(model_id), "wb") as f:
                pickle.dump(model, f)

            self._write_metadata(info)

            # Feature contract kept separately for cheap access during inference
            features_contract = {
                "model_id": info.model_id,
                "model_name": info.model_name,
                "feature_names": list(info.feature_names),
                "created_at": info.created_at.isoformat(),
            }
            with open(self._features_path(model_id), "w") as f:
                json.dump(features_contract, f, indent=2)

            await self._update_index(info)

            _LOGGER.info(
                "Model saved: %s (name: %s, version: %d)",
                model_id,
                info.model_name,
                info.version,
            )

        except (OSError, pickle.PickleError) as e:
            raise StorageError(f"Failed to save model {model_id}: {e}") from e

    async def load_model(self, model_id: str) -> tuple[Any, ModelInfo]:
        """Load a model from file storage.

        Args:
            model_id: Identifier of the model to load

        Returns:
            Tuple of (model object, model info)
        """
        model_path = self._model_path(model_id)
        if not model_path.exists():
            raise ModelNotFoundError(f"Model not found: {model_id}")

        # Only unpickle files the registry wrote metadata for
        model_info = await self.get_model_info(model_id)

        try:
            with open(model_path, "rb") as f:
                model = pickle.load(f)
        except (OSError, pickle.UnpicklingError) as e:
            raise StorageError(f"Failed to load model {model_id}: {e}") from e

        _LOGGER.debug("Model loaded: %s", model_id)
        return model, model_info

    async def get_model_info(self, model_id: str) -> ModelInfo:
        """Load the metadata of a model without unpickling it.

        Args:
            model_id: Identifier of the model

        Returns:
            Model information
        """
        metadata_path = self._metadata_path(model_id)
        if not self._model_path(model_id).exists() or not metadata_path.exists():
            raise ModelNotFoundError(f"Model not found: {model_id}")

        try:
            with open(metadata_path) as f:
                metadata = json.load(f)
            return ModelInfo.from_dict(metadata)
        except (OSError, json.JSONDecodeError, KeyError, ValueError) as e:
            raise StorageError(f"Failed to load metadata of model {model_id}: {e}") from e

    async def get_latest_model_id(self, model_name: str | None = None) -> str | None:
        """Get the ID of the most recently trained model.

        Args:
            model_name: Restrict to this registered model name (optional)

        Returns:
            Model ID or None if no models exist
        """
        entries = self._sorted_entries(await self._load_index(), model_name)
        return entries[0][0] if entries else None

    async def get_serving_model_id(self, model_name: str | None = None) -> str | None:
        """Get the ID of the model that should answer predictions.

        Args:
            model_name: Restrict to this registered model name (optional)

        Returns:
            Newest Production model, else newest non-archived model, else None
        """
        entries = self._sorted_entries(await self._load_index(), model_name)

        for model_id, data in entries:
            if data.get("stage") == ModelStage.PRODUCTION.value:
                return model_id
        for model_id, data in entries:
            if data.get("stage") != ModelStage.ARCHIVED.value:
                return model_id
        return None

    async def get_next_version(self, model_name: str) -> int:
        """Get the version number the next model of this name will receive."""
        index = await self._load_index()
        versions = [
            int(data.get("version", 0))
            for data in index.values()
            if data.get("model_name") == model_name
        ]
        return max(versions, default=0) + 1

    async def list_models(self, model_name: str | None = None) -> list[ModelInfo]:
        """List all available models.

        Args:
            model_name: Restrict to this registered model name (optional)

        Returns:
            List of model information objects, newest first
        """
        models = []
        index = await self._load_index()

        for model_id, data in index.items():
            if model_name is not None and data.get("model_name") != model_name:
                continue
            try:
                models.append(await self.get_model_info(model_id))
            except (ModelNotFoundError, StorageError) as e:
                _LOGGER.warning("Failed to load model %s: %s", model_id, e)

        return sorted(models, key=lambda x: x.created_at, reverse=True)

    async def load_feature_contract(self, model_id: str) -> tuple[str, ...]:
        """Load only the feature contract for a model without loading the model itself.

        Args:
            model_id: Identifier of the model

        Returns:
            Tuple of feature names

        Raises:
            ModelNotFoundError: If the model or feature contract is not found
            StorageError: If loading fails
        """
        features_path = self._features_path(model_id)

        if not features_path.exists():
            # Older models only carry the contract in their metadata
            info = await self.get_model_info(model_id)
            return info.feature_names

        try:
            with open(features_path) as f:
                features_data = json.load(f)
            return tuple(features_data["feature_names"])
        except (OSError, json.JSONDecodeError, KeyError) as e:
            raise StorageError(f"Failed to load feature contract for {model_id}: {e}") from e

    async def transition_stage(
        self,
        model_id: str,
        stage: ModelStage,
        archive_existing: bool = True,
    ) -> ModelInfo:
        """Move a model to a registry stage.

        Args:
            model_id: Model to transition
            stage: Target stage
            archive_existing: Archive other models of the same name holding
                the target stage (Staging/Production only)

        Returns:
            Updated model information
        """
        info = await self.get_model_info(model_id)
        index = await self._load_index()

        try:
            if archive_existing and stage in (ModelStage.STAGING, ModelStage.PRODUCTION):
                for other_id, data in index.items():
                    if other_id == model_id:
                        continue
                    if data.get("model_name") != info.model_name or data.get("stage") != stage.value:
                        continue
                    other = await self.get_model_info(other_id)
                    self._write_metadata(replace(other, stage=ModelStage.ARCHIVED))
                    data["stage"] = ModelStage.ARCHIVED.value
                    _LOGGER.info("Archived model %s (was %s)", other_id, stage.value)

            updated = replace(info, stage=stage)
            self._write_metadata(updated)
            index.setdefault(model_id, {})["stage"] = stage.value
            await self._save_index(index)
        except OSError as e:
            raise StorageError(f"Failed to transition model {model_id}: {e}") from e

        _LOGGER.info(
            "Model %s (%s v%d) moved from %s to %s",
            model_id,
            info.model_name,
            info.version,
            info.stage.value,
            stage.value,
        )
        return updated

    async def delete_model(self, model_id: str) -> None:
        """Delete a model from file storage.

        Args:
            model_id: Identifier of the model to delete
        """
        model_path = self._model_path(model_id)
        if not model_path.exists():
            raise ModelNotFoundError(f"Model not found: {model_id}")

        try:
            os.remove(model_path)
            for path in (self._metadata_path(model_id), self._features_path(model_id)):
                if path.exists():
                    os.remove(path)

            await self._remove_from_index(model_id)

            _LOGGER.info("Model deleted: %s", model_id)

        except OSError as e:
            raise StorageError(f"Failed to delete model {model_id}: {e}") from e

    def _write_metadata(self, info: ModelInfo) -> None:
        with open(self._metadata_path(info.model_id), "w") as f:
            json.dump(info.to_dict(), f, indent=2)

    @staticmethod
    def _sorted_entries(
        index: dict[str, dict[str, Any]],
        model_name: str | None,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Index entries filtered by name, newest first."""
        entries = [
            (model_id, data)
            for model_id, data in index.items()
            if model_name is None or data.get("model_name") == model_name
        ]
        return sorted(entries, key=lambda x: x[1].get("created_at", ""), reverse=True)

    async def _load_index(self) -> dict[str, dict[str, Any]]:
        """Load the models index.

        Returns:
            Dictionary mapping model_id to registry data
            (created_at, model_name, version, stage)
        """
        index_path = self._base_path / self.INDEX_FILE_NAME

        if not index_path.exists():
            return {}

        try:
            with open(index_path) as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            _LOGGER.warning("Unreadable models index %s: %s", index_path, e)
            return {}

    async def _update_index(self, info: ModelInfo) -> None:
        """Add or refresh a model entry in the index."""
        index = await self._load_index()
        index[info.model_id] = {
            "created_at": info.created_at.isoformat(),
            "model_name": info.model_name,
            "version": info.version,
            "stage": info.stage.value,
        }
        await self._save_index(index)

    async def _remove_from_index(self, model_id: str) -> None:
        """Remove a model from the index.

        Args:
            model_id: Model identifier to remove
        """
        index = await self._load_index()
        if model_id in index:
            del index[model_id]
            await self._save_index(index)

    async def _save_index(self, index: dict[str, dict[str, Any]]) -> None:
        """Save the models index.

        Args:
            index: Dictionary mapping model_id to registry data
        """
        index_path = self._base_path / self.INDEX_FILE_NAME
        with open(index_path, "w") as f:
            json.dump(index, f, indent=2)
