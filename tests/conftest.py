"""
Global pytest configuration for kubedeploy tests.

The plugin reads its connection parameters and build metadata from the
environment. When the suite itself runs as a CI step those variables are
set for real, so they are removed before every test.
"""

import os
import textwrap

import pytest

from kubedeploy.config import Build, KubeConfig, PluginConfig, Repo
from kubedeploy.secrets import clear_secrets

CA_B64 = "LS0tLS1CRUdJTiBDRVJUSUZJQ0FURS0tLS0tCg=="

DEPLOYMENT_TEMPLATE = textwrap.dedent("""
    apiVersion: apps/v1
    kind: Deployment
    metadata:
      name: {{ repo.name }}
      labels:
        app: {{ repo.name }}
        commit: "{{ .Build.Commit }}"
    spec:
      replicas: 2
      selector:
        matchLabels:
          app: {{ repo.name }}
      template:
        metadata:
          labels:
            app: {{ repo.name }}
        spec:
          containers:
            - name: web
              image: registry.example.com/{{ Repo.Owner }}/{{ Repo.Name }}:{{ build.commit }}
""")


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Remove plugin and Drone variables inherited from the host."""
    for key in list(os.environ):
        if key.startswith(("KUBE_", "PLUGIN_", "DRONE_")):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


@pytest.fixture(autouse=True)
def _clear_registered_secrets():
    """The default masker is module-global; start every test empty."""
    clear_secrets()
    yield
    clear_secrets()


@pytest.fixture
def template_file(tmp_path):
    path = tmp_path / "deployment.yaml"
    path.write_text(DEPLOYMENT_TEMPLATE)
    return path


@pytest.fixture
def plugin_config(template_file):
    return PluginConfig(
        repo=Repo(owner="octocat", name="hello-world"),
        build=Build(commit="abc123", branch="main", number=42),
        kube=KubeConfig(
            server="https://kube.example.com:6443",
            token="s3cr3t-token",
            ca=CA_B64,
            template=str(template_file),
        ),
    )
