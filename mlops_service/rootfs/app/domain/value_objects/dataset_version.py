"""Dataset version value objects.

Immutable data structures describing a content-addressed dataset snapshot.
"""

import re
from dataclasses import dataclass
from enum import Enum

_MD5_PATTERN = re.compile(r"^[0-9a-f]{32}$")


class DatasetStatus(str, Enum):
    """Tracking status of a data file relative to its pointer file."""

    UNTRACKED = "untracked"
    UNCHANGED = "unchanged"
    MODIFIED = "modified"
    MISSING = "missing"


@dataclass(frozen=True)
class DatasetVersion:
    """A versioned dataset file.

    Attributes:
        path: Path of the tracked file, relative to the data workspace
        md5: Lowercase hex MD5 digest of the file content
        size: File size in bytes
    """

    path: str
    md5: str
    size: int

    def __post_init__(self) -> None:
        """Validate dataset version values."""
        if not self.path:
            raise ValueError("path cannot be empty")
        if not _MD5_PATTERN.match(self.md5):
            raise ValueError(f"md5 must be a 32 character hex digest, got {self.md5!r}")
        if self.size < 0:
            raise ValueError(f"size must be non-negative, got {self.size}")

    @property
    def short_hash(self) -> str:
        """Return the abbreviated content hash."""
        return self.md5[:8]
