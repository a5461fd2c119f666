"""Deployment configuration value object.

Immutable data structure describing how the prediction service is deployed
on a Kubernetes cluster and scraped by Prometheus.
"""

import re
from dataclasses import dataclass, field

_DNS_LABEL_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
_INTERVAL_PATTERN = re.compile(r"^\d+[smh]$")


@dataclass(frozen=True)
class DeploymentConfig:
    """Configuration for a prediction service deployment.

    Attributes:
        app_name: Name used for the Deployment, Service and labels
        image: Container image reference
        replicas: Number of pod replicas
        container_port: Port the API listens on inside the container
        namespace: Kubernetes namespace
        scrape_interval: Prometheus scrape interval (e.g. "30s")
        metrics_path: HTTP path exposing Prometheus metrics
        env: Extra environment variables for the container
        cpu_request: CPU request (e.g. "250m")
        memory_request: Memory request (e.g. "256Mi")
        cpu_limit: CPU limit
        memory_limit: Memory limit
        release_label: Label the Prometheus operator selects ServiceMonitors by
        data_claim: PersistentVolumeClaim holding models and the dataset cache,
            shared by every replica (storage stays inside the pod when None)
        data_mount_path: Where the claim is mounted in the container
    """

    app_name: str
    image: str
    replicas: int = 2
    container_port: int = 5000
    namespace: str = "default"
    scrape_interval: str = "30s"
    metrics_path: str = "/metrics"
    env: dict[str, str] = field(default_factory=dict, hash=False)
    cpu_request: str = "250m"
    memory_request: str = "256Mi"
    cpu_limit: str = "1"
    memory_limit: str = "1Gi"
    release_label: str = "prometheus"
    data_claim: str | None = None
    data_mount_path: str = "/data"

    def __post_init__(self) -> None:
        """Validate deployment configuration."""
        if not self.app_name or len(self.app_name) > 63 or not _DNS_LABEL_PATTERN.match(self.app_name):
            raise ValueError(
                f"app_name must be a DNS-1123 label (lowercase alphanumerics and '-'), "
                f"got {self.app_name!r}"
            )
        if not self.image:
            raise ValueError("image cannot be empty")
        if self.replicas < 1:
            raise ValueError(f"replicas must be at least 1, got {self.replicas}")
        if not 1 <= self.container_port <= 65535:
            raise ValueError(
                f"container_port must be between 1 and 65535, got {self.container_port}"
            )
        if not self.namespace or not _DNS_LABEL_PATTERN.match(self.namespace):
            raise ValueError(f"namespace must be a DNS-1123 label, got {self.namespace!r}")
        if not _INTERVAL_PATTERN.match(self.scrape_interval):
            raise ValueError(
                f"scrape_interval must look like '30s', '1m' or '1h', got {self.scrape_interval!r}"
            )
        if not self.metrics_path.startswith("/"):
            raise ValueError(f"metrics_path must start with '/', got {self.metrics_path!r}")
        if self.data_claim is not None and not _DNS_LABEL_PATTERN.match(self.data_claim):
            raise ValueError(f"data_claim must be a DNS-1123 label, got {self.data_claim!r}")
        if not self.data_mount_path.startswith("/"):
            raise ValueError(f"data_mount_path must be absolute, got {self.data_mount_path!r}")

    @property
    def labels(self) -> dict[str, str]:
        """Selector labels shared by every rendered resource."""
        return {"app": self.app_name}
