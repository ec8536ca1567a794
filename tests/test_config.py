"""
Tests for environment-driven configuration.
"""

import pytest

from chaos_manager.config import CleanConfig, DeployConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for var in ("NAMESPACE", "KEEP_NAMESPACE", "CHAOS_NAMESPACE", "CHAOS_KEEP_NAMESPACE"):
        monkeypatch.delenv(var, raising=False)


# =============================================================================
# DeployConfig
# =============================================================================


class TestKeepNamespace:
    def test_unset(self):
        assert DeployConfig().keep_namespace is False

    @pytest.mark.parametrize("value", ["1", "2", "true", "TRUE", "yes", "on", "keep"])
    def test_set_values_keep(self, monkeypatch: pytest.MonkeyPatch, value: str):
        monkeypatch.setenv("KEEP_NAMESPACE", value)
        assert DeployConfig().keep_namespace is True

    @pytest.mark.parametrize("value", ["", "  ", "0", "false", "False", "no", "off"])
    def test_off_values_delete(self, monkeypatch: pytest.MonkeyPatch, value: str):
        monkeypatch.setenv("KEEP_NAMESPACE", value)
        assert DeployConfig().keep_namespace is False

    def test_prefixed_variable(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CHAOS_KEEP_NAMESPACE", "1")
        assert DeployConfig().keep_namespace is True

    def test_bool_passes_through(self):
        assert DeployConfig(keep_namespace=True).keep_namespace is True


def test_deploy_namespace_default(monkeypatch: pytest.MonkeyPatch):
    assert DeployConfig().namespace == "substrate-ci"
    monkeypatch.setenv("NAMESPACE", "ci-7")
    assert DeployConfig().namespace == "ci-7"


# =============================================================================
# CleanConfig
# =============================================================================


class TestCleanConfig:
    def test_no_default_namespace(self):
        assert CleanConfig().namespace is None

    @pytest.mark.parametrize("var", ["CHAOS_NAMESPACE", "NAMESPACE"])
    def test_namespace_from_environment(self, monkeypatch: pytest.MonkeyPatch, var: str):
        monkeypatch.setenv(var, "ci-9")
        assert CleanConfig().namespace == "ci-9"
