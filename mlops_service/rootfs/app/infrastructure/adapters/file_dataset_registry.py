"""File-based dataset registry adapter.

Infrastructure adapter that implements IDatasetRegistry with the same
on-disk conventions as DVC: every tracked file gets a YAML pointer file
next to it (``<name>.dvc``) recording the MD5 and size of its content,
and the content itself is copied into a content-addressed cache laid out
as ``<cache>/<md5[:2]>/<md5[2:]>``.
"""

import hashlib
import logging
import os
import shutil
import uuid
from pathlib import Path

import yaml
from domain.interfaces import IDatasetRegistry
from domain.value_objects import DatasetStatus, DatasetVersion

_LOGGER = logging.getLogger(__name__)


class DatasetError(Exception):
    """Raised when a dataset cannot be versioned or restored."""

    pass


class DatasetNotFoundError(DatasetError, LookupError):
    """Raised when a dataset or its pointer file doesn't exist."""

    pass


def file_md5(path: str | Path, chunk_size: int = 1024 * 1024) -> str:
    """Compute the MD5 digest of a file, reading it in chunks."""
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


class FileDatasetRegistry(IDatasetRegistry):
    """Content-addressed dataset versioning on the local file system."""

    POINTER_SUFFIX = ".dvc"

    def __init__(self, workspace: str | Path, cache_dir: str | Path) -> None:
        """Initialize the dataset registry.

        Args:
            workspace: Root directory relative paths are resolved against
            cache_dir: Directory of the content-addressed cache
        """
        self._workspace = Path(workspace)
        self._cache_dir = Path(cache_dir)
        self._cache_dir.mkdir(parents=True, exist_ok=True)

    def resolve(self, path: str | Path) -> Path:
        """Absolute location of a data file (pointer suffix stripped)."""
        path = Path(path)
        if path.suffix == self.POINTER_SUFFIX:
            path = path.with_suffix("")
        return path if path.is_absolute() else self._workspace / path

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self._workspace).as_posix()
        except ValueError:
            return path.as_posix()

    def pointer_path(self, path: str | Path) -> Path:
        """Path of the pointer file tracking a data file."""
        data_path = self.resolve(path)
        return data_path.with_name(data_path.name + self.POINTER_SUFFIX)

    def cache_path(self, md5: str) -> Path:
        """Location of a content hash in the cache."""
        return self._cache_dir / md5[:2] / md5[2:]

    def add(self, path: str | Path) -> DatasetVersion:
        """Snapshot a data file into the cache and write its pointer file.

        Args:
            path: Data file to track

        Returns:
            The recorded dataset version
        """
        data_path = self.resolve(path)
        if not data_path.exists():
            raise DatasetNotFoundError(f"Dataset not found: {data_path}")
        if not data_path.is_file():
            raise DatasetError(f"Only regular files can be versioned: {data_path}")

        try:
            md5 = file_md5(data_path)
            size = data_path.stat().st_size

            self._store(data_path, md5)

            pointer = {"outs": [{"md5": md5, "size": size, "path": data_path.name}]}
            with open(self.pointer_path(data_path), "w") as f:
                yaml.safe_dump(pointer, f, sort_keys=True)
        except OSError as e:
            raise DatasetError(f"Failed to version {data_path}: {e}") from e

        version = DatasetVersion(path=self._relative(data_path), md5=md5, size=size)
        _LOGGER.info("Dataset %s versioned at %s (%d bytes)", version.path, version.short_hash, size)
        return version

    def _store(self, data_path: Path, md5: str) -> None:
        """Copy a data file into the cache under its content hash.

        The copy is written next to its final location and renamed into
        place, so readers never see a partial cache object. An existing
        object whose content no longer matches its hash is replaced.
        """
        cached = self.cache_path(md5)
        if cached.exists():
            if file_md5(cached) == md5:
                return
            _LOGGER.warning("Cache object %s is corrupt, replacing it", cached)

        cached.parent.mkdir(parents=True, exist_ok=True)
        tmp = cached.with_name(f"{cached.name}.{uuid.uuid4().hex}.tmp")
        try:
            shutil.copy2(data_path, tmp)
            if file_md5(tmp) != md5:
                raise DatasetError(f"{data_path} changed while it was being versioned")
            os.replace(tmp, cached)
        finally:
            tmp.unlink(missing_ok=True)
        _LOGGER.debug("Cached %s as %s", data_path, cached)

    def get_version(self, path: str | Path) -> DatasetVersion:
        """Read the version recorded in the pointer file."""
        data_path = self.resolve(path)
        pointer_path = self.pointer_path(data_path)
        if not pointer_path.exists():
            raise DatasetNotFoundError(f"Dataset is not tracked: {data_path}")

        try:
            with open(pointer_path) as f:
                pointer = yaml.safe_load(f)
            out = pointer["outs"][0]
            return DatasetVersion(
                path=self._relative(data_path),
                md5=str(out["md5"]),
                size=int(out["size"]),
            )
        except (OSError, yaml.YAMLError, KeyError, IndexError, TypeError, ValueError) as e:
            raise DatasetError(f"Malformed pointer file {pointer_path}: {e}") from e

    def status(self, path: str | Path) -> DatasetStatus:
        """Compare a data file to the version recorded in its pointer file."""
        data_path = self.resolve(path)
        if not self.pointer_path(data_path).exists():
            return DatasetStatus.UNTRACKED
        if not data_path.exists():
            return DatasetStatus.MISSING

        version = self.get_version(data_path)
        if file_md5(data_path) == version.md5:
            return DatasetStatus.UNCHANGED
        return DatasetStatus.MODIFIED

    def checkout(self, path: str | Path) -> DatasetVersion:
        """Restore the data file to the version recorded in its pointer file."""
        data_path = self.resolve(path)
        version = self.get_version(data_path)

        if not self.verify_cache(version):
            raise DatasetError(
                f"Cache object for {version.path} ({version.short_hash}) is missing or corrupt"
            )

        if data_path.exists() and file_md5(data_path) == version.md5:
            _LOGGER.debug("Dataset %s already at %s", version.path, version.short_hash)
            return version

        try:
            data_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self.cache_path(version.md5), data_path)
        except OSError as e:
            raise DatasetError(f"Failed to restore {data_path}: {e}") from e

        _LOGGER.info("Dataset %s restored to %s", version.path, version.short_hash)
        return version

    def verify_cache(self, version: DatasetVersion) -> bool:
        """Check that the cache holds an intact copy of a version."""
        cached = self.cache_path(version.md5)
        if not cached.exists():
            return False
        return file_md5(cached) == version.md5
