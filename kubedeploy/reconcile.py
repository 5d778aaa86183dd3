"""Create-or-update of a Deployment against the cluster."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from kubedeploy.errors import (
    CREATE_STEP, LOOKUP_STEP, UPDATE_STEP,
    ClusterQueryError, ClusterWriteError,
)
from kubedeploy.logging import logger
from kubedeploy.manifest import DeploymentManifest

DEFAULT_NAMESPACE = "default"


class ReconcileAction(Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass
class ReconcileResult:
    action: ReconcileAction
    name: str
    namespace: str


def resolve_namespace(manifest: DeploymentManifest, override: Optional[str] = None) -> str:
    """Apply the namespace override, or default an unset namespace.

    Returns:
        The namespace the manifest now targets
    """
    if override:
        manifest.namespace = override

    if not manifest.namespace:
        manifest.namespace = DEFAULT_NAMESPACE

    return manifest.namespace


def find_deployment(api: Any, name: str, namespace: str) -> Optional[Any]:
    """Find a deployment by name among all deployments in the namespace.

    Returns:
        The existing deployment, or None if there is none with that name

    Raises:
        ClusterQueryError: If the deployments cannot be listed
    """
    try:
        deployments = api.list_namespaced_deployment(namespace)
    except Exception as e:
        raise ClusterQueryError(LOOKUP_STEP, e) from e

    for deployment in deployments.items or []:
        if deployment.metadata is not None and deployment.metadata.name == name:
            return deployment
    return None


def reconcile(api: Any, manifest: DeploymentManifest) -> ReconcileResult:
    """Replace the deployment if one with the same name exists, else create it.

    The manifest's namespace must already be resolved. Updates are a full
    replace of the existing object with ``manifest.body``.

    Raises:
        ClusterQueryError: If the lookup fails; nothing is written
        ClusterWriteError: If the create or replace call fails
    """
    name = manifest.name
    namespace = manifest.namespace

    existing = find_deployment(api, name, namespace)

    if existing is not None:
        logger.info("Updating deployment", fields={"name": name, "namespace": namespace})
        try:
            api.replace_namespaced_deployment(name, namespace, manifest.body)
        except Exception as e:
            raise ClusterWriteError(UPDATE_STEP, e) from e
        return ReconcileResult(ReconcileAction.UPDATED, name, namespace)

    logger.info("Creating deployment", fields={"name": name, "namespace": namespace})
    try:
        api.create_namespaced_deployment(namespace, manifest.body)
    except Exception as e:
        raise ClusterWriteError(CREATE_STEP, e) from e
    return ReconcileResult(ReconcileAction.CREATED, name, namespace)
