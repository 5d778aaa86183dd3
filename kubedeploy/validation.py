"""Configuration validation utilities for kubedeploy."""

import re
from pathlib import Path
from typing import List, Optional
from dataclasses import dataclass

from kubedeploy.config import PluginConfig
from kubedeploy.errors import MissingConfigurationError


# DNS-1123 label, which is what Kubernetes accepts for namespace names
_NAMESPACE_RE = re.compile(r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?$')

# (field, message, suggestion), in the order they are checked
REQUIRED_FIELDS = [
    ('server', "KUBE_SERVER is not defined",
     "Set KUBE_SERVER (or PLUGIN_SERVER) or use --server"),
    ('token', "KUBE_TOKEN is not defined",
     "Set KUBE_TOKEN (or PLUGIN_TOKEN) or use --token"),
    ('ca', "KUBE_CA is not defined",
     "Set KUBE_CA (or PLUGIN_CA) to the base64-encoded cluster CA or use --ca"),
    ('template', "KUBE_TEMPLATE, or template must be defined",
     "Set KUBE_TEMPLATE (or PLUGIN_TEMPLATE) or use --template"),
]


@dataclass
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    suggestion: Optional[str] = None


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[ValidationError]
    warnings: List[ValidationError]

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


class ConfigValidator:
    """Validates plugin configuration before anything touches the cluster."""

    def validate_config(self, config: PluginConfig, check_files: bool = True) -> ValidationResult:
        """Validate a plugin configuration.

        Args:
            config: Configuration to validate
            check_files: Whether to check that the template file exists

        Returns:
            ValidationResult with errors and warnings
        """
        errors = self._validate_required_fields(config)
        warnings = []

        warnings.extend(self._validate_server(config))
        warnings.extend(self._validate_namespace(config))

        if check_files:
            warnings.extend(self._validate_template_file(config))

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings
        )

    def _validate_required_fields(self, config: PluginConfig) -> List[ValidationError]:
        errors = []
        for name, message, suggestion in REQUIRED_FIELDS:
            if not getattr(config.kube, name):
                errors.append(ValidationError(field=name, message=message, suggestion=suggestion))
        return errors

    def _validate_server(self, config: PluginConfig) -> List[ValidationError]:
        warnings = []
        server = config.kube.server
        if server and not server.startswith('https://'):
            warnings.append(ValidationError(
                field="server",
                message=f"Server address is not an https:// URL: {server}",
                suggestion="The certificate authority is only used for TLS connections"
            ))
        return warnings

    def _validate_namespace(self, config: PluginConfig) -> List[ValidationError]:
        warnings = []
        namespace = config.kube.namespace
        if namespace and (len(namespace) > 63 or not _NAMESPACE_RE.match(namespace)):
            warnings.append(ValidationError(
                field="namespace",
                message=f"Namespace is not a valid DNS-1123 label: {namespace}",
                suggestion="Use lowercase letters, digits and '-', at most 63 characters"
            ))
        return warnings

    def _validate_template_file(self, config: PluginConfig) -> List[ValidationError]:
        warnings = []
        template = config.kube.template
        if template and not Path(template).is_file():
            warnings.append(ValidationError(
                field="template",
                message=f"Template file not found: {template}",
                suggestion="Check the path is relative to the build workspace"
            ))
        return warnings


validator = ConfigValidator()


def validate_config(config: PluginConfig, check_files: bool = True) -> ValidationResult:
    """Convenience function to validate configuration."""
    return validator.validate_config(config, check_files)


def require_connection(config: PluginConfig) -> None:
    """Raise for the first empty required connection setting.

    Raises:
        MissingConfigurationError: If server, token, ca or template is empty
    """
    for name, message, _ in REQUIRED_FIELDS:
        if not getattr(config.kube, name):
            raise MissingConfigurationError(message)


def format_validation_result(result: ValidationResult) -> str:
    """Format validation result for display to user."""
    lines = []

    if result.is_valid and not result.has_warnings:
        return "Configuration is valid"

    if result.has_errors:
        lines.append("Configuration has errors:")
        for error in result.errors:
            lines.append(f"  - {error.field}: {error.message}")
            if error.suggestion:
                lines.append(f"    hint: {error.suggestion}")
        lines.append("")

    if result.has_warnings:
        lines.append("Configuration warnings:")
        for warning in result.warnings:
            lines.append(f"  - {warning.field}: {warning.message}")
            if warning.suggestion:
                lines.append(f"    hint: {warning.suggestion}")
        lines.append("")

    if result.is_valid:
        lines.append("Configuration is valid (with warnings)")

    return "\n".join(lines)
