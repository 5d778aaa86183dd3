"""Errors raised while deploying a manifest.

Every failure is wrapped with a short description of the step that failed.
Nothing is retried; the CLI reports the message and exits non-zero.
"""

from typing import Optional


class DeployError(Exception):
    """Base class for failures of a single deploy step."""

    def __init__(self, step: str, cause: Optional[BaseException] = None):
        self.step = step
        self.cause = cause
        super().__init__(step)

    def __str__(self) -> str:
        if self.cause is None:
            return self.step
        return f"{self.step}: {self.cause}"


class MissingConfigurationError(DeployError, ValueError):
    """A required connection setting is empty."""


class CredentialDecodeError(DeployError):
    """The certificate authority is not valid base64."""


class ClientConstructionError(DeployError):
    """The kubeconfig could not be resolved into an API client."""


class TemplateReadError(DeployError):
    """The template file is missing or unreadable."""


class TemplateRenderError(DeployError):
    """Variable substitution failed."""


class ManifestDecodeError(DeployError):
    """The rendered text is not a valid apps/v1 Deployment."""


class ClusterQueryError(DeployError):
    """Listing the existing deployments failed."""


class ClusterWriteError(DeployError):
    """The create or update call failed."""


CLIENT_STEP = "can't create kubernetes client"
TEMPLATE_STEP = "can't read provided deployment template"
DECODE_STEP = "can't decode provided deployment template"
LOOKUP_STEP = "can't read deployments"
UPDATE_STEP = "can't update provided deployment"
CREATE_STEP = "can't create provided deployment"
