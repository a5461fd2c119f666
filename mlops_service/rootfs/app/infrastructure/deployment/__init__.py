"""Deployment artefacts for the prediction service."""

from .manifests import ManifestRenderer, validate_manifest

__all__ = [
    "ManifestRenderer",
    "validate_manifest",
]
