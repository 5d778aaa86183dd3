"""End-to-end tests for the deploy procedure with a mocked cluster."""

import dataclasses

import pytest
from unittest.mock import patch, MagicMock

from kubernetes.client.rest import ApiException

from kubedeploy.errors import (
    ClientConstructionError, ClusterQueryError, CredentialDecodeError, ManifestDecodeError,
    MissingConfigurationError, TemplateReadError,
)
from kubedeploy.plugin import Plugin
from kubedeploy.reconcile import ReconcileAction


def _with_kube(config, **changes):
    return dataclasses.replace(config, kube=dataclasses.replace(config.kube, **changes))


def _deployment(name: str) -> MagicMock:
    deployment = MagicMock()
    deployment.metadata.name = name
    return deployment


def _cluster(*names) -> MagicMock:
    api = MagicMock()
    api.list_namespaced_deployment.return_value = MagicMock(
        items=[_deployment(name) for name in names]
    )
    return api


@pytest.fixture
def mock_client():
    with patch("kubedeploy.plugin.create_kube_client") as mock_create:
        yield mock_create


class TestPluginExec:

    def test_create_path(self, plugin_config, mock_client):
        api = _cluster("unrelated")
        mock_client.return_value = api

        result = Plugin(plugin_config).exec()

        mock_client.assert_called_once_with(
            "https://kube.example.com:6443", "s3cr3t-token", plugin_config.kube.ca
        )
        api.list_namespaced_deployment.assert_called_once_with("default")
        api.create_namespaced_deployment.assert_called_once()
        api.replace_namespaced_deployment.assert_not_called()

        namespace, body = api.create_namespaced_deployment.call_args.args
        assert namespace == "default"
        assert body["metadata"]["name"] == "hello-world"
        assert body["metadata"]["namespace"] == "default"
        assert body["metadata"]["labels"]["commit"] == "abc123"
        assert result.action is ReconcileAction.CREATED

    def test_update_path(self, plugin_config, mock_client):
        api = _cluster("hello-world")
        mock_client.return_value = api

        result = Plugin(plugin_config).exec()

        api.replace_namespaced_deployment.assert_called_once()
        api.create_namespaced_deployment.assert_not_called()
        name, namespace, body = api.replace_namespaced_deployment.call_args.args
        assert (name, namespace) == ("hello-world", "default")
        assert body["spec"]["replicas"] == 2
        assert body["spec"]["template"]["spec"]["containers"][0]["image"] == \
            "registry.example.com/octocat/hello-world:abc123"
        assert result.action is ReconcileAction.UPDATED

    def test_namespace_override(self, plugin_config, mock_client):
        api = _cluster()
        mock_client.return_value = api

        Plugin(_with_kube(plugin_config, namespace="staging")).exec()

        api.list_namespaced_deployment.assert_called_once_with("staging")
        namespace, body = api.create_namespaced_deployment.call_args.args
        assert namespace == "staging"
        assert body["metadata"]["namespace"] == "staging"

    def test_lookup_failure(self, plugin_config, mock_client):
        api = MagicMock()
        api.list_namespaced_deployment.side_effect = ApiException(status=401, reason="Unauthorized")
        mock_client.return_value = api

        with pytest.raises(ClusterQueryError, match="can't read deployments"):
            Plugin(plugin_config).exec()

        api.create_namespaced_deployment.assert_not_called()
        api.replace_namespaced_deployment.assert_not_called()

    @pytest.mark.parametrize("field", ["server", "token", "ca", "template"])
    def test_missing_configuration_stops_before_client(self, plugin_config, mock_client, field):
        with pytest.raises(MissingConfigurationError):
            Plugin(_with_kube(plugin_config, **{field: ""})).exec()

        mock_client.assert_not_called()

    @patch("kubedeploy.plugin.open_and_render")
    @patch("kubedeploy.client.kube_config.new_client_from_config_dict")
    def test_invalid_ca_stops_before_render(self, mock_new_client, mock_render, plugin_config):
        with pytest.raises(CredentialDecodeError, match="can't create kubernetes client"):
            Plugin(_with_kube(plugin_config, ca="not base64!!")).exec()

        mock_new_client.assert_not_called()
        mock_render.assert_not_called()

    def test_missing_template_file(self, plugin_config, mock_client, tmp_path):
        api = _cluster()
        mock_client.return_value = api

        with pytest.raises(TemplateReadError):
            Plugin(_with_kube(plugin_config, template=str(tmp_path / "missing.yaml"))).exec()

        api.list_namespaced_deployment.assert_not_called()

    def test_wrong_kind(self, plugin_config, mock_client, template_file):
        template_file.write_text("apiVersion: v1\nkind: Service\nmetadata:\n  name: web\nspec: {}\n")
        api = _cluster()
        mock_client.return_value = api

        with pytest.raises(ManifestDecodeError):
            Plugin(plugin_config).exec()

        api.list_namespaced_deployment.assert_not_called()


class TestPluginDryRun:

    def test_no_cluster_contact(self, plugin_config, mock_client, capsys):
        assert Plugin(plugin_config).exec(dry_run=True) is None

        mock_client.assert_not_called()
        out = capsys.readouterr().out
        assert "name: hello-world" in out
        assert "namespace: default" in out

    def test_still_checks_ca(self, plugin_config, mock_client):
        with pytest.raises(CredentialDecodeError):
            Plugin(_with_kube(plugin_config, ca="%%%%")).exec(dry_run=True)

    def test_still_checks_server(self, plugin_config, mock_client, capsys):
        with pytest.raises(ClientConstructionError, match="can't create kubernetes client"):
            Plugin(_with_kube(plugin_config, server="kube.example.com:6443")).exec(dry_run=True)

        mock_client.assert_not_called()
        assert capsys.readouterr().out == ""

    def test_prepare_manifest(self, plugin_config):
        manifest = Plugin(_with_kube(plugin_config, namespace="qa")).prepare_manifest()

        assert manifest.name == "hello-world"
        assert manifest.namespace == "qa"
