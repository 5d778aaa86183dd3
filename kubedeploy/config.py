"""Configuration management for kubedeploy with environment variable hierarchy."""

import os
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Any


@dataclass(frozen=True)
class Repo:
    """Repository that triggered the build."""
    owner: str = ""
    name: str = ""


@dataclass(frozen=True)
class Build:
    """Build/commit metadata, used only as template input."""
    tag: str = ""
    event: str = "push"
    number: int = 0
    commit: str = ""
    ref: str = "refs/heads/master"
    branch: str = "master"
    author: str = ""
    status: str = "success"
    link: str = ""
    started: int = 0  # Unix seconds
    created: int = 0  # Unix seconds


@dataclass(frozen=True)
class Job:
    started: int = 0


@dataclass
class KubeConfig:
    """Cluster connection parameters."""
    server: str = ""
    token: str = ""
    ca: str = ""  # Base64-encoded certificate authority
    namespace: str = ""  # Optional override
    template: str = ""  # Path to the manifest template


@dataclass
class PluginConfig:
    """Everything one plugin invocation needs."""
    repo: Repo = field(default_factory=Repo)
    build: Build = field(default_factory=Build)
    job: Job = field(default_factory=Job)
    kube: KubeConfig = field(default_factory=KubeConfig)


class ConfigManager:
    """Manages configuration with hierarchy: defaults < env vars < CLI args.

    Keys are dotted ``section.field`` names, e.g. ``kube.server`` or
    ``build.commit``. Each key maps to a list of environment variables; the
    first one set to a non-empty value wins.
    """

    DEFAULTS = {
        'build.event': 'push',
        'build.ref': 'refs/heads/master',
        'build.branch': 'master',
        'build.status': 'success',
    }

    ENV_VARS = {
        'kube.server': ['PLUGIN_SERVER', 'KUBE_SERVER'],
        'kube.token': ['PLUGIN_TOKEN', 'KUBE_TOKEN'],
        'kube.ca': ['PLUGIN_CA', 'KUBE_CA'],
        'kube.namespace': ['PLUGIN_NAMESPACE', 'KUBE_NAMESPACE'],
        'kube.template': ['PLUGIN_TEMPLATE', 'KUBE_TEMPLATE'],
        'repo.owner': ['DRONE_REPO_OWNER'],
        'repo.name': ['DRONE_REPO_NAME'],
        'build.tag': ['DRONE_TAG'],
        'build.event': ['DRONE_BUILD_EVENT'],
        'build.number': ['DRONE_BUILD_NUMBER'],
        'build.commit': ['DRONE_COMMIT_SHA'],
        'build.ref': ['DRONE_COMMIT_REF'],
        'build.branch': ['DRONE_COMMIT_BRANCH'],
        'build.author': ['DRONE_COMMIT_AUTHOR'],
        'build.status': ['DRONE_BUILD_STATUS'],
        'build.link': ['DRONE_BUILD_LINK'],
        'build.started': ['DRONE_BUILD_STARTED'],
        'build.created': ['DRONE_BUILD_CREATED'],
        'job.started': ['DRONE_JOB_STARTED'],
    }

    INT_FIELDS = {'build.number', 'build.started', 'build.created', 'job.started'}

    SECTIONS = {
        'repo': Repo,
        'build': Build,
        'job': Job,
        'kube': KubeConfig,
    }

    def get_config(self, **cli_overrides) -> PluginConfig:
        """Get the resolved configuration using hierarchy: defaults < env vars < CLI args.

        Args:
            **cli_overrides: CLI argument overrides keyed by field name. Bare
                names (``server``) refer to the ``kube`` section; other
                sections use ``section_field`` (``build_commit``).

        Returns:
            PluginConfig with resolved values

        Raises:
            ValueError: If a numeric field holds a non-integer value
        """
        config: Dict[str, Any] = dict(self.DEFAULTS)

        for key, env_vars in self.ENV_VARS.items():
            for env_var in env_vars:
                env_value = os.getenv(env_var)
                if env_value:
                    config[key] = env_value
                    break

        for name, value in cli_overrides.items():
            if value is not None:
                config[self._override_key(name)] = value

        for key in self.INT_FIELDS:
            if key in config:
                config[key] = self._parse_int(key, config[key])

        sections = {}
        for section, cls in self.SECTIONS.items():
            prefix = f"{section}."
            values = {
                key[len(prefix):]: value
                for key, value in config.items()
                if key.startswith(prefix)
            }
            sections[section] = cls(**values)

        return PluginConfig(**sections)

    def _override_key(self, name: str) -> str:
        """Map a CLI override name to its dotted configuration key."""
        section, _, rest = name.partition('_')
        if rest and section in self.SECTIONS:
            key = f"{section}.{rest}"
        else:
            key = f"kube.{name}"

        section = key.split('.', 1)[0]
        known = {f.name for f in fields(self.SECTIONS[section])}
        if key.split('.', 1)[1] not in known:
            raise ValueError(f"Unknown configuration option: {name}")
        return key

    def _parse_int(self, key: str, value: Any) -> int:
        if isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except ValueError:
            env_vars = self.ENV_VARS.get(key, [key])
            raise ValueError(f"{env_vars[0]} must be an integer, got: {value!r}")


config_manager = ConfigManager()


def get_config(**cli_overrides) -> PluginConfig:
    """Convenience function to get configuration."""
    return config_manager.get_config(**cli_overrides)


def get_secrets_to_mask(config: PluginConfig) -> List[str]:
    """Get the credential values that must never appear in logs."""
    return [value for value in (config.kube.token, config.kube.ca) if value]


def describe_config(config: PluginConfig) -> Dict[str, Optional[str]]:
    """Flatten the configuration for display, keyed by dotted name."""
    described = {}
    for section in ConfigManager.SECTIONS:
        obj = getattr(config, section)
        for f in fields(obj):
            described[f"{section}.{f.name}"] = getattr(obj, f.name)
    return described
