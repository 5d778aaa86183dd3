"""Builds an authenticated Kubernetes API client from plugin credentials."""

import base64
import binascii
from typing import Any, Dict
from urllib.parse import urlsplit

from kubernetes import client
from kubernetes import config as kube_config

from kubedeploy.errors import CLIENT_STEP, ClientConstructionError, CredentialDecodeError
from kubedeploy.logging import logger

CONTEXT_NAME = "drone"

_SERVER_SCHEMES = ("http", "https")


def decode_ca(ca: str) -> bytes:
    """Decode the base64 certificate authority.

    Raises:
        CredentialDecodeError: If the value is not valid base64 or decodes
            to nothing
    """
    try:
        ca_data = base64.b64decode("".join(ca.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise CredentialDecodeError(CLIENT_STEP, e) from e
    if not ca_data:
        raise CredentialDecodeError(CLIENT_STEP, ValueError("certificate authority is empty"))
    return ca_data


def check_server(server: str) -> None:
    """Reject an API server address that is not an absolute http(s) URL.

    Raises:
        ClientConstructionError: If the address cannot be used
    """
    try:
        parts = urlsplit(server)
        _ = parts.port  # raises ValueError for a non-numeric port
    except ValueError as e:
        raise ClientConstructionError(CLIENT_STEP, e) from e
    if parts.scheme not in _SERVER_SCHEMES or not parts.hostname:
        raise ClientConstructionError(
            CLIENT_STEP, ValueError(f"invalid server address: {server!r}")
        )


def build_kubeconfig(server: str, token: str, ca_data: bytes) -> Dict[str, Any]:
    """Build an in-memory kubeconfig with a single cluster/user/context triple."""
    return {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [{
            "name": CONTEXT_NAME,
            "cluster": {
                "server": server,
                "certificate-authority-data": base64.b64encode(ca_data).decode("ascii"),
            },
        }],
        "users": [{
            "name": CONTEXT_NAME,
            "user": {"token": token},
        }],
        "contexts": [{
            "name": CONTEXT_NAME,
            "context": {"cluster": CONTEXT_NAME, "user": CONTEXT_NAME},
        }],
        "current-context": CONTEXT_NAME,
        "preferences": {},
    }


def create_kube_client(server: str, token: str, ca: str) -> client.AppsV1Api:
    """Create the connection to Kubernetes based on the parameters passed in.

    Args:
        server: API server address
        token: Bearer token
        ca: Base64-encoded certificate authority

    Returns:
        AppsV1Api bound to the resolved client configuration

    Raises:
        CredentialDecodeError: If ``ca`` is not valid base64 or is empty
        ClientConstructionError: If ``server`` is not an http(s) URL or the
            kubeconfig cannot be resolved
    """
    ca_data = decode_ca(ca)
    check_server(server)
    kubeconfig = build_kubeconfig(server, token, ca_data)

    try:
        api_client = kube_config.new_client_from_config_dict(
            kubeconfig, context=CONTEXT_NAME, persist_config=False
        )
    except Exception as e:
        raise ClientConstructionError(CLIENT_STEP, e) from e

    logger.debug("Kubernetes client configured", fields={"server": server, "context": CONTEXT_NAME})
    return client.AppsV1Api(api_client)
