"""Model storage interface.

Contract for persisting, versioning and staging ML models.
"""

from abc import ABC, abstractmethod
from typing import Any

from domain.value_objects import ModelInfo, ModelStage


class IModelStorage(ABC):
    """Contract for ML model persistence and registry operations."""

    @abstractmethod
    async def save_model(
        self,
        model_id: str,
        model: Any,
        info: ModelInfo,
    ) -> None:
        """Save a trained model to storage.

        Args:
            model_id: Unique identifier for the model
            model: The trained model object
            info: Model metadata

        Raises:
            StorageError: If saving fails
        """
        pass

    @abstractmethod
    async def load_model(self, model_id: str) -> tuple[Any, ModelInfo]:
        """Load a model from storage.

        Args:
            model_id: Identifier of the model to load

        Returns:
            Tuple of (model object, model info)

        Raises:
            ModelNotFoundError: If model doesn't exist
            StorageError: If loading fails
        """
        pass

    @abstractmethod
    async def get_model_info(self, model_id: str) -> ModelInfo:
        """Load only the metadata of a model.

        Raises:
            ModelNotFoundError: If model doesn't exist
        """
        pass

    @abstractmethod
    async def get_latest_model_id(self, model_name: str | None = None) -> str | None:
        """Get the ID of the most recently trained model.

        Args:
            model_name: Restrict to this registered model name (optional)

        Returns:
            Model ID or None if no models exist
        """
        pass

    @abstractmethod
    async def get_serving_model_id(self, model_name: str | None = None) -> str | None:
        """Get the ID of the model that should answer predictions.

        The newest Production model wins; otherwise the newest model that
        is not Archived.

        Args:
            model_name: Restrict to this registered model name (optional)

        Returns:
            Model ID or None if no candidate exists
        """
        pass

    @abstractmethod
    async def get_next_version(self, model_name: str) -> int:
        """Get the version number the next model of this name will receive."""
        pass

    @abstractmethod
    async def list_models(self, model_name: str | None = None) -> list[ModelInfo]:
        """List available models, newest first.

        Args:
            model_name: Restrict to this registered model name (optional)

        Returns:
            List of model information objects
        """
        pass

    @abstractmethod
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
            archive_existing: Archive other models of the same name that
                currently hold the target stage (Staging/Production only)

        Returns:
            Updated model information

        Raises:
            ModelNotFoundError: If model doesn't exist
            StorageError: If the metadata cannot be written
        """
        pass

    @abstractmethod
    async def delete_model(self, model_id: str) -> None:
        """Delete a model from storage.

        Args:
            model_id: Identifier of the model to delete

        Raises:
            ModelNotFoundError: If model doesn't exist
            StorageError: If deletion fails
        """
        pass
