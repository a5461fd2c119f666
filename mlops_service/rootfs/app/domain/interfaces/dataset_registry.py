"""Dataset registry interface.

Contract for content-addressed versioning of data files.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from domain.value_objects import DatasetStatus, DatasetVersion


class IDatasetRegistry(ABC):
    """Contract for dataset versioning operations."""

    @abstractmethod
    def resolve(self, path: str | Path) -> Path:
        """Location of a data file inside the registry's workspace."""
        pass

    @abstractmethod
    def add(self, path: str | Path) -> DatasetVersion:
        """Snapshot a data file into the cache and write its pointer file.

        Raises:
            DatasetNotFoundError: If the file doesn't exist
            DatasetError: If the path cannot be versioned
        """
        pass

    @abstractmethod
    def status(self, path: str | Path) -> DatasetStatus:
        """Compare a data file to the version recorded in its pointer file."""
        pass

    @abstractmethod
    def get_version(self, path: str | Path) -> DatasetVersion:
        """Read the version recorded in the pointer file.

        Raises:
            DatasetNotFoundError: If the file is not tracked
            DatasetError: If the pointer file is malformed
        """
        pass

    @abstractmethod
    def checkout(self, path: str | Path) -> DatasetVersion:
        """Restore the data file to the version recorded in its pointer file.

        Raises:
            DatasetNotFoundError: If the file is not tracked
            DatasetError: If the cached object is missing or corrupt
        """
        pass
