"""Application services for ML operations.

These services orchestrate domain logic with infrastructure adapters
to fulfill use cases.
"""

from .ml_application_service import MLApplicationService

__all__ = [
    "MLApplicationService",
]
