"""Decodes rendered manifest text into a Deployment descriptor."""

from dataclasses import dataclass
from typing import Any, Dict

import yaml

from kubedeploy.errors import DECODE_STEP, ManifestDecodeError

API_VERSION = "apps/v1"
KIND = "Deployment"


@dataclass
class DeploymentManifest:
    """A decoded apps/v1 Deployment.

    ``body`` is the full object submitted to the cluster; ``name`` and
    ``namespace`` read from and write to its metadata.
    """
    body: Dict[str, Any]

    @property
    def metadata(self) -> Dict[str, Any]:
        return self.body.setdefault("metadata", {})

    @property
    def name(self) -> str:
        return self.metadata.get("name", "")

    @property
    def namespace(self) -> str:
        return self.metadata.get("namespace") or ""

    @namespace.setter
    def namespace(self, value: str) -> None:
        self.metadata["namespace"] = value


def _invalid(message: str) -> ManifestDecodeError:
    return ManifestDecodeError(DECODE_STEP, ValueError(message))


def decode_deployment(text: str) -> DeploymentManifest:
    """Decode YAML or JSON manifest text into a DeploymentManifest.

    Raises:
        ManifestDecodeError: If the text is not exactly one apps/v1 Deployment
            with a name and a spec
    """
    try:
        documents = [doc for doc in yaml.safe_load_all(text) if doc is not None]
    except yaml.YAMLError as e:
        raise ManifestDecodeError(DECODE_STEP, e) from e

    if not documents:
        raise _invalid("manifest is empty")
    if len(documents) > 1:
        raise _invalid(f"expected a single document, got {len(documents)}")

    body = documents[0]
    if not isinstance(body, dict):
        raise _invalid(f"expected a mapping, got {type(body).__name__}")

    api_version = body.get("apiVersion")
    kind = body.get("kind")
    if kind != KIND:
        raise _invalid(f"kind is {kind!r}, expected {KIND!r}")
    if api_version != API_VERSION:
        raise _invalid(f"apiVersion is {api_version!r}, expected {API_VERSION!r}")

    metadata = body.get("metadata")
    if not isinstance(metadata, dict) or not metadata.get("name"):
        raise _invalid("metadata.name is required")
    if not isinstance(metadata["name"], str):
        raise _invalid("metadata.name must be a string")
    if not isinstance(body.get("spec"), dict):
        raise _invalid("spec is required")

    return DeploymentManifest(body=body)
