"""Kubernetes manifest rendering.

Renders the resources needed to run the prediction service on a cluster:
a Deployment, a ClusterIP Service in front of it, and a ServiceMonitor
so a Prometheus operator scrapes the service's /metrics endpoint.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from domain.value_objects import DeploymentConfig

_LOGGER = logging.getLogger(__name__)

PORT_NAME = "http"
HEALTH_PATH = "/health"
DATA_VOLUME_NAME = "data"


class ManifestRenderer:
    """Builds Kubernetes resource documents from a deployment configuration."""

    def __init__(self, config: DeploymentConfig) -> None:
        self._config = config

    def _metadata(self, extra_labels: dict[str, str] | None = None) -> dict[str, Any]:
        labels = dict(self._config.labels)
        labels.update(extra_labels or {})
        return {
            "name": self._config.app_name,
            "namespace": self._config.namespace,
            "labels": labels,
        }

    def render_deployment(self) -> dict[str, Any]:
        """Render the Deployment running the API container."""
        cfg = self._config
        if cfg.replicas > 1 and not cfg.data_claim:
            _LOGGER.warning(
                "%d replicas without a data claim will each keep their own model store",
                cfg.replicas,
            )
        probe = {
            "httpGet": {"path": HEALTH_PATH, "port": PORT_NAME},
            "initialDelaySeconds": 5,
            "periodSeconds": 10,
        }
        env = [{"name": "API_PORT", "value": str(cfg.container_port)}]
        if cfg.data_claim:
            env.extend(
                {"name": name, "value": value}
                for name, value in self._storage_env().items()
                if name not in cfg.env
            )
        env.extend({"name": k, "value": str(v)} for k, v in sorted(cfg.env.items()))

        container: dict[str, Any] = {
            "name": cfg.app_name,
            "image": cfg.image,
            "ports": [{"name": PORT_NAME, "containerPort": cfg.container_port}],
            "env": env,
            "resources": {
                "requests": {"cpu": cfg.cpu_request, "memory": cfg.memory_request},
                "limits": {"cpu": cfg.cpu_limit, "memory": cfg.memory_limit},
            },
            "livenessProbe": probe,
            "readinessProbe": dict(probe),
        }
        pod_spec: dict[str, Any] = {"containers": [container]}
        if cfg.data_claim:
            container["volumeMounts"] = [
                {"name": DATA_VOLUME_NAME, "mountPath": cfg.data_mount_path}
            ]
            pod_spec["volumes"] = [
                {
                    "name": DATA_VOLUME_NAME,
                    "persistentVolumeClaim": {"claimName": cfg.data_claim},
                }
            ]
        return {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": self._metadata(),
            "spec": {
                "replicas": cfg.replicas,
                "selector": {"matchLabels": dict(cfg.labels)},
                "template": {
                    "metadata": {"labels": dict(cfg.labels)},
                    "spec": pod_spec,
                },
            },
        }

    def _storage_env(self) -> dict[str, str]:
        """Storage locations on the mounted data volume."""
        mount = self._config.data_mount_path.rstrip("/")
        return {
            "MODEL_PERSISTENCE_PATH": f"{mount}/models",
            "DATA_CACHE_PATH": f"{mount}/cache",
        }

    def render_service(self) -> dict[str, Any]:
        """Render the ClusterIP Service exposing the API."""
        cfg = self._config
        return {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": self._metadata(),
            "spec": {
                "type": "ClusterIP",
                "selector": dict(cfg.labels),
                "ports": [
                    {
                        "name": PORT_NAME,
                        "port": cfg.container_port,
                        "targetPort": PORT_NAME,
                    }
                ],
            },
        }

    def render_service_monitor(self) -> dict[str, Any]:
        """Render the ServiceMonitor picked up by the Prometheus operator."""
        cfg = self._config
        return {
            "apiVersion": "monitoring.coreos.com/v1",
            "kind": "ServiceMonitor",
            "metadata": self._metadata({"release": cfg.release_label}),
            "spec": {
                "selector": {"matchLabels": dict(cfg.labels)},
                "namespaceSelector": {"matchNames": [cfg.namespace]},
                "endpoints": [
                    {
                        "port": PORT_NAME,
                        "path": cfg.metrics_path,
                        "interval": cfg.scrape_interval,
                    }
                ],
            },
        }

    def render_all(self) -> list[dict[str, Any]]:
        """Render every resource, in apply order."""
        return [
            self.render_deployment(),
            self.render_service(),
            self.render_service_monitor(),
        ]

    def to_yaml(self) -> str:
        """Render every resource as one multi-document YAML string."""
        return yaml.safe_dump_all(self.render_all(), sort_keys=False)

    def write(self, out_dir: str | Path) -> list[Path]:
        """Write one YAML file per resource.

        Args:
            out_dir: Target directory (created if needed)

        Returns:
            Paths of the written files
        """
        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)

        written = []
        for doc in self.render_all():
            issues = validate_manifest(doc)
            if issues:
                raise ValueError(f"Invalid {doc.get('kind')} manifest: {'; '.join(issues)}")
            path = out_dir / f"{doc['kind'].lower()}.yaml"
            with open(path, "w") as f:
                yaml.safe_dump(doc, f, sort_keys=False)
            written.append(path)
            _LOGGER.info("Wrote %s", path)
        return written


def validate_manifest(doc: Any) -> list[str]:
    """Check the structural fields a Kubernetes resource needs.

    Args:
        doc: Parsed manifest document

    Returns:
        List of problems, empty when the document looks applicable
    """
    if not isinstance(doc, dict):
        return ["manifest must be a mapping"]

    issues = []
    for key in ("apiVersion", "kind"):
        if not doc.get(key):
            issues.append(f"missing {key}")
    metadata = doc.get("metadata")
    if not isinstance(metadata, dict) or not metadata.get("name"):
        issues.append("missing metadata.name")

    spec = doc.get("spec")
    kind = doc.get("kind")
    if kind in ("Deployment", "Service", "ServiceMonitor") and not isinstance(spec, dict):
        issues.append("missing spec")
        return issues

    if kind == "Deployment":
        replicas = spec.get("replicas", 1)
        if not isinstance(replicas, int) or replicas < 1:
            issues.append("spec.replicas must be a positive integer")
        containers = (
            spec.get("template", {}).get("spec", {}).get("containers") or []
        )
        if not containers:
            issues.append("spec.template.spec.containers cannot be empty")
        for index, container in enumerate(containers):
            if not container.get("image"):
                issues.append(f"container {index} has no image")
        selector = spec.get("selector", {}).get("matchLabels")
        template_labels = spec.get("template", {}).get("metadata", {}).get("labels") or {}
        if not selector:
            issues.append("spec.selector.matchLabels cannot be empty")
        elif any(template_labels.get(k) != v for k, v in selector.items()):
            issues.append("spec.selector.matchLabels must match the pod template labels")
    elif kind == "Service":
        if not spec.get("ports"):
            issues.append("spec.ports cannot be empty")
    elif kind == "ServiceMonitor":
        if not spec.get("selector"):
            issues.append("spec.selector cannot be empty")
        endpoints = spec.get("endpoints") or []
        if not endpoints:
            issues.append("spec.endpoints cannot be empty")
        for index, endpoint in enumerate(endpoints):
            if not endpoint.get("interval"):
                issues.append(f"endpoint {index} has no interval")

    return issues
