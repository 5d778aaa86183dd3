"""CLI interface for kubedeploy."""

from typing import Optional, Dict

import typer

from kubedeploy.config import get_config, get_secrets_to_mask, describe_config
from kubedeploy.errors import DeployError
from kubedeploy.logging import log_stdout, log_stderr
from kubedeploy.plugin import Plugin
from kubedeploy.secrets import register_secrets, mask_string
from kubedeploy.template import open_and_render
from kubedeploy.validation import validate_config, format_validation_result

app = typer.Typer()


def _overrides(**options: Optional[str]) -> Dict[str, str]:
    return {key: value for key, value in options.items() if value is not None}


@app.command()
def deploy(
    server: Optional[str] = typer.Option(None, "--server", help="Kubernetes API server address (env: KUBE_SERVER)"),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token (env: KUBE_TOKEN)"),
    ca: Optional[str] = typer.Option(None, "--ca", help="Base64-encoded certificate authority (env: KUBE_CA)"),
    namespace: Optional[str] = typer.Option(None, "--namespace", help="Namespace override (env: KUBE_NAMESPACE)"),
    template: Optional[str] = typer.Option(None, "--template", help="Deployment template file (env: KUBE_TEMPLATE)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Render and validate the manifest without contacting the cluster"),
):
    """Create or update the Deployment described by the template."""
    try:
        config = get_config(**_overrides(
            server=server, token=token, ca=ca, namespace=namespace, template=template,
        ))
        register_secrets(get_secrets_to_mask(config))

        validation_result = validate_config(config, check_files=True)
        if not validation_result.is_valid:
            log_stderr("Configuration validation failed:")
            log_stderr(format_validation_result(validation_result))
            raise typer.Exit(1)

        if validation_result.has_warnings:
            log_stderr(format_validation_result(validation_result))

        result = Plugin(config).exec(dry_run=dry_run)
        if result is not None:
            log_stdout(f"Deployment {result.namespace}/{result.name} {result.action.value}")

    except typer.Exit:
        raise
    except (DeployError, ValueError) as e:
        log_stderr(f"Deployment failed: {e}")
        raise typer.Exit(1)
    except Exception as e:
        log_stderr(f"Unexpected error: {e}")
        raise typer.Exit(1)


@app.command()
def render(
    template: Optional[str] = typer.Option(None, "--template", help="Deployment template file (env: KUBE_TEMPLATE)"),
):
    """Print the rendered template without decoding or deploying it."""
    try:
        config = get_config(**_overrides(template=template))
        register_secrets(get_secrets_to_mask(config))

        if not config.kube.template:
            log_stderr("KUBE_TEMPLATE, or template must be defined")
            raise typer.Exit(1)

        typer.echo(mask_string(open_and_render(config.kube.template, config)))

    except typer.Exit:
        raise
    except (DeployError, ValueError) as e:
        log_stderr(f"Render failed: {e}")
        raise typer.Exit(1)


@app.command()
def config(
    server: Optional[str] = typer.Option(None, "--server", help="Kubernetes API server address (env: KUBE_SERVER)"),
    namespace: Optional[str] = typer.Option(None, "--namespace", help="Namespace override (env: KUBE_NAMESPACE)"),
    template: Optional[str] = typer.Option(None, "--template", help="Deployment template file (env: KUBE_TEMPLATE)"),
):
    """Display the resolved configuration with credentials masked."""
    try:
        resolved = get_config(**_overrides(server=server, namespace=namespace, template=template))
        register_secrets(get_secrets_to_mask(resolved))

        log_stdout("Resolved Configuration:")
        for key, value in describe_config(resolved).items():
            log_stdout(f"  {key}: {value if value not in ('', None) else 'None'}")

        validation_result = validate_config(resolved, check_files=True)
        log_stdout("")
        log_stdout(format_validation_result(validation_result))

    except ValueError as e:
        log_stderr(f"Configuration error: {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
