"""Command line interface.

Entry point for the pipeline steps run outside the HTTP server: dataset
versioning, training, promotion, manifest rendering and the
post-deployment smoke test.
"""

import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

import click

from application.services import MLApplicationService
from domain.value_objects import DeploymentConfig, ModelStage, TrainingConfig
from infrastructure.adapters import (
    DatasetError,
    FileDatasetRegistry,
    ModelNotFoundError,
    PredictionClient,
)
from infrastructure.bootstrap import build_ml_service
from infrastructure.config import ServiceSettings, configure_logging
from infrastructure.deployment import ManifestRenderer

_LOGGER = logging.getLogger(__name__)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, sort_keys=True, default=str))


def _parse_env(values: tuple[str, ...]) -> dict[str, str]:
    env = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--env")
        env[key] = value
    return env


class _Context:
    """Lazily built settings and services shared by the commands."""

    def __init__(self) -> None:
        self._settings: ServiceSettings | None = None
        self._service: MLApplicationService | None = None

    @property
    def settings(self) -> ServiceSettings:
        if self._settings is None:
            try:
                self._settings = ServiceSettings.from_env()
            except ValueError as e:
                raise click.ClickException(f"Invalid configuration: {e}") from e
        return self._settings

    @property
    def service(self) -> MLApplicationService:
        if self._service is None:
            self._service = build_ml_service(self.settings)
        return self._service

    @property
    def registry(self) -> FileDatasetRegistry:
        return FileDatasetRegistry(self.settings.data_workspace, self.settings.data_cache_path)

    def training_config(self, model_name: str | None, task: str) -> TrainingConfig:
        try:
            return TrainingConfig(model_name=model_name or self.settings.default_model_name, task=task)
        except ValueError as e:
            raise click.BadParameter(str(e)) from e


pass_state = click.make_pass_decorator(_Context, ensure=True)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL (debug, info, warning...)")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """MLOps service command line."""
    ctx.ensure_object(_Context)
    configure_logging(log_level or ctx.obj.settings.log_level)


@cli.group()
def data() -> None:
    """Version dataset files."""


@data.command("add")
@click.argument("path", type=click.Path(path_type=Path))
@pass_state
def data_add(obj: _Context, path: Path) -> None:
    """Snapshot PATH into the cache and write its pointer file."""
    try:
        version = obj.registry.add(path)
    except DatasetError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Tracked {version.path} at {version.md5} ({version.size} bytes)")


@data.command("status")
@click.argument("path", type=click.Path(path_type=Path))
@pass_state
def data_status(obj: _Context, path: Path) -> None:
    """Show whether PATH matches its recorded version."""
    try:
        status = obj.registry.status(path)
    except DatasetError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"{path}: {status.value}")


@data.command("checkout")
@click.argument("path", type=click.Path(path_type=Path))
@pass_state
def data_checkout(obj: _Context, path: Path) -> None:
    """Restore PATH to its recorded version."""
    try:
        version = obj.registry.checkout(path)
    except DatasetError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Restored {version.path} at {version.md5}")


@cli.command()
@click.option("--data", "data_path", type=click.Path(path_type=Path), default=None,
              help="Dataset file to train on")
@click.option("--target", default=None, help="Target column of the dataset")
@click.option("--feature", "features", multiple=True, help="Feature column (repeatable, default: all)")
@click.option("--synthetic", type=click.IntRange(10, 10000), default=None,
              help="Train on this many synthetic samples instead of a dataset")
@click.option("--model-name", default=None, help="Registered model name")
@click.option("--task", type=click.Choice(["regression", "classification"]), default="regression")
@pass_state
def train(
    obj: _Context,
    data_path: Path | None,
    target: str | None,
    features: tuple[str, ...],
    synthetic: int | None,
    model_name: str | None,
    task: str,
) -> None:
    """Train a new model version."""
    config = obj.training_config(model_name, task)
    if synthetic is not None:
        coro = obj.service.train_with_synthetic_data(synthetic, config=config)
    elif data_path is not None:
        if not target:
            raise click.UsageError("--target is required with --data")
        coro = obj.service.train_from_dataset(
            data_path, target, config, feature_columns=list(features) or None
        )
    else:
        raise click.UsageError("Pass either --data or --synthetic")

    try:
        model_info = asyncio.run(coro)
    except (DatasetError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    _echo_json(model_info.to_dict())


@cli.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--target", required=True, help="Target column of the dataset")
@click.option("--feature", "features", multiple=True, help="Feature column (repeatable, default: all)")
@click.option("--model-name", default=None, help="Registered model name")
@click.option("--task", type=click.Choice(["regression", "classification"]), default="regression")
@click.option("--promote/--no-promote", default=True, help="Promote to Production when the gate passes")
@click.option("--fail-on-reject", is_flag=True, help="Exit with status 1 when the gate rejects the model")
@pass_state
def pipeline(
    obj: _Context,
    path: Path,
    target: str,
    features: tuple[str, ...],
    model_name: str | None,
    task: str,
    promote: bool,
    fail_on_reject: bool,
) -> None:
    """Version PATH, train on it, gate and promote the model."""
    config = obj.training_config(model_name, task)
    try:
        result = asyncio.run(
            obj.service.run_pipeline(
                path,
                target,
                config,
                auto_promote=promote,
                feature_columns=list(features) or None,
            )
        )
    except (DatasetError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    _echo_json(result.to_dict())
    if fail_on_reject and not result.decision.approved:
        sys.exit(1)


@cli.group()
def models() -> None:
    """Inspect and promote registered models."""


@models.command("list")
@click.option("--model-name", default=None, help="Only list versions of this model")
@pass_state
def models_list(obj: _Context, model_name: str | None) -> None:
    """List models, newest first."""
    infos = asyncio.run(obj.service.list_models(model_name))
    if not infos:
        click.echo("No models registered")
        return
    for info in infos:
        metric = info.primary_metric
        value = info.metrics.get(metric)
        click.echo(
            f"{info.model_id}  {info.model_name} v{info.version}  "
            f"{info.stage.value:<10}  {metric}={value if value is not None else '-'}"
        )


@models.command("promote")
@click.argument("model_id")
@click.argument("stage")
@pass_state
def models_promote(obj: _Context, model_id: str, stage: str) -> None:
    """Move MODEL_ID to STAGE (None, Staging, Production, Archived)."""
    try:
        target = ModelStage.parse(stage)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="STAGE") from e
    try:
        info = asyncio.run(obj.service.promote_model(model_id, target))
    except ModelNotFoundError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"{info.model_id} ({info.model_name} v{info.version}) is now {info.stage.value}")


@cli.group()
def manifests() -> None:
    """Kubernetes manifests."""


@manifests.command("render")
@click.option("--image", required=True, help="Container image reference")
@click.option("--app-name", default="mlops-service", show_default=True)
@click.option("--namespace", default="default", show_default=True)
@click.option("--replicas", type=int, default=2, show_default=True)
@click.option("--port", type=int, default=5000, show_default=True)
@click.option("--scrape-interval", default="30s", show_default=True)
@click.option("--release-label", default="prometheus", show_default=True,
              help="Label the Prometheus operator selects ServiceMonitors by")
@click.option("--env", "env", multiple=True, help="Container env var KEY=VALUE (repeatable)")
@click.option("--data-claim", default=None,
              help="PersistentVolumeClaim shared by the replicas for models and the dataset cache")
@click.option("--out-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Write one file per resource instead of printing")
def manifests_render(
    image: str,
    app_name: str,
    namespace: str,
    replicas: int,
    port: int,
    scrape_interval: str,
    release_label: str,
    env: tuple[str, ...],
    data_claim: str | None,
    out_dir: Path | None,
) -> None:
    """Render the Deployment, Service and ServiceMonitor."""
    try:
        config = DeploymentConfig(
            app_name=app_name,
            image=image,
            replicas=replicas,
            container_port=port,
            namespace=namespace,
            scrape_interval=scrape_interval,
            release_label=release_label,
            env=_parse_env(env),
            data_claim=data_claim,
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    renderer = ManifestRenderer(config)
    if out_dir is None:
        click.echo(renderer.to_yaml(), nl=False)
        return
    for path in renderer.write(out_dir):
        click.echo(f"Wrote {path}")


@cli.command()
def serve() -> None:
    """Run the HTTP prediction server."""
    # The server module builds its service at import time
    from infrastructure.api.server import main as serve_main

    serve_main()


@cli.command("smoke-test")
@click.option("--url", required=True, help="Base URL of the deployed service")
@click.option("--features", "features_json", required=True,
              help='Features as JSON, e.g. \'{"feature_0": 1.0}\' or \'[1.0, 2.0]\'')
@click.option("--model-name", default=None, help="Registered model name to query")
@click.option("--retries", type=click.IntRange(1, 100), default=5, show_default=True)
@click.option("--interval", type=float, default=2.0, show_default=True,
              help="Seconds between health check attempts")
@click.option("--timeout", type=int, default=10, show_default=True)
def smoke_test(
    url: str,
    features_json: str,
    model_name: str | None,
    retries: int,
    interval: float,
    timeout: int,
) -> None:
    """Check that a deployed service is healthy and answers a prediction."""
    try:
        features = json.loads(features_json)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--features") from e

    client = PredictionClient(url, timeout=timeout)

    for attempt in range(1, retries + 1):
        if client.health():
            break
        _LOGGER.info("Service not healthy yet (attempt %d/%d)", attempt, retries)
        if attempt < retries:
            time.sleep(interval)
    else:
        raise click.ClickException(f"{client.base_url} did not become healthy")

    try:
        body = client.predict(features, model_name=model_name)
    except (ConnectionError, ValueError) as e:
        raise click.ClickException(f"Prediction failed: {e}") from e

    click.echo(
        f"OK: prediction={body['prediction']} model={body.get('model_id')} "
        f"version={body.get('model_version')}"
    )


def main() -> None:
    """Console script entry point."""
    cli(obj=_Context())


if __name__ == "__main__":
    main()
