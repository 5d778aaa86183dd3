"""The deploy procedure: validate, connect, render, decode, create-or-update."""

from typing import Optional

import yaml

from kubedeploy.client import check_server, create_kube_client, decode_ca
from kubedeploy.config import PluginConfig
from kubedeploy.logging import logger, log_stdout
from kubedeploy.manifest import DeploymentManifest, decode_deployment
from kubedeploy.reconcile import ReconcileResult, reconcile, resolve_namespace
from kubedeploy.template import open_and_render
from kubedeploy.validation import require_connection


def dump_manifest(manifest: DeploymentManifest) -> str:
    """Serialize a manifest back to YAML for display."""
    return yaml.safe_dump(manifest.body, default_flow_style=False, sort_keys=False)


class Plugin:
    """Deploys one templated Deployment per invocation.

    Every step runs to completion before the next one starts and the first
    failure is raised to the caller. Nothing is retried or rolled back.
    """

    def __init__(self, config: PluginConfig):
        self.config = config

    def prepare_manifest(self) -> DeploymentManifest:
        """Render and decode the template, then resolve its namespace."""
        kube = self.config.kube

        txt = open_and_render(kube.template, self.config)
        manifest = decode_deployment(txt)
        namespace = resolve_namespace(manifest, kube.namespace)

        logger.info("Manifest decoded", fields={"name": manifest.name, "namespace": namespace})
        return manifest

    def exec(self, dry_run: bool = False) -> Optional[ReconcileResult]:
        """Run the deploy.

        Args:
            dry_run: Check credentials, render and decode, print the manifest
                and stop before connecting to the cluster

        Returns:
            What was done to the cluster, or None for a dry run

        Raises:
            DeployError: For any failed step
        """
        kube = self.config.kube
        require_connection(self.config)

        if dry_run:
            decode_ca(kube.ca)
            check_server(kube.server)
            manifest = self.prepare_manifest()
            log_stdout(dump_manifest(manifest).rstrip())
            logger.info("Dry run, cluster not contacted")
            return None

        api = create_kube_client(kube.server, kube.token, kube.ca)
        manifest = self.prepare_manifest()

        result = reconcile(api, manifest)
        logger.info(
            f"Deployment {result.action.value}",
            fields={"name": result.name, "namespace": result.namespace},
        )
        return result
