"""
Tests for the deployment engine: namespace setup, readiness polling,
alice/bob sequencing, and cleanup.
"""

import pytest
from conftest import FakeClock, FakeKubeClient

from chaos_manager import deployment
from chaos_manager.deployment import DeploymentEngine
from chaos_manager.errors import ChaosError, MissingBootnode, NotFound, PlatformError
from chaos_manager.models import Role
from chaos_manager.topology import TopologyStore

IMAGE = "parity/substrate:latest"
ALICE_PEER_ID = "12D3KooWEyoppNCUx8Yx66oV9fJnriXwCcXwDDUA2kj6vnc6iDEp"


# =============================================================================
# EnsureNamespace
# =============================================================================


class TestEnsureNamespace:
    def test_idempotent(self, engine: DeploymentEngine, kube: FakeKubeClient, store: TopologyStore):
        engine.ensure_namespace("substrate-ci")
        engine.ensure_namespace("substrate-ci")

        assert len(kube.calls_to("create_namespace")) == 1
        assert len(kube.calls_to("read_namespace")) == 2
        assert store.topology.namespace == "substrate-ci"

    def test_existing_namespace_is_not_created(self, store: TopologyStore, clock: FakeClock):
        kube = FakeKubeClient(namespaces=("existing",))
        DeploymentEngine(kube, store, sleep=clock.sleep).ensure_namespace("existing")
        assert kube.calls_to("create_namespace") == []
        assert store.topology.namespace == "existing"

    def test_other_read_errors_abort(self, engine: DeploymentEngine, kube: FakeKubeClient, store: TopologyStore):
        def broken(name):
            raise PlatformError("connection refused")

        kube.read_namespace = broken
        with pytest.raises(PlatformError):
            engine.ensure_namespace("ns")
        assert kube.calls_to("create_namespace") == []
        assert store.topology.namespace is None


# =============================================================================
# Node creation and readiness
# =============================================================================


class TestCreateNode:
    def test_dev_node_recorded(self, engine: DeploymentEngine, store: TopologyStore):
        engine.ensure_namespace("ns")
        record = engine.create_dev_node(IMAGE, 9933)

        topology = store.topology
        assert topology.image == IMAGE
        assert topology.nodes == [record]
        assert record.node_id == "node-1"
        assert record.role is Role.DEV
        assert record.port == 9933
        assert record.ip

    def test_requires_namespace(self, engine: DeploymentEngine, kube: FakeKubeClient):
        with pytest.raises(ChaosError):
            engine.create_dev_node(IMAGE, 9933)
        assert kube.calls_to("create_pod") == []

    def test_unscheduled_pod_is_retried(self, store: TopologyStore, clock: FakeClock):
        kube = FakeKubeClient(pending_polls=3)
        engine = DeploymentEngine(kube, store, sleep=clock.sleep)
        engine.ensure_namespace("ns")

        engine.create_dev_node(IMAGE, 9933)

        assert len(kube.calls_to("get_pod")) == 4
        assert clock.sleeps == [5, 5, 5]

    def test_bounded_readiness_gives_up(self, store: TopologyStore, clock: FakeClock):
        kube = FakeKubeClient(pending_polls=10)
        engine = DeploymentEngine(kube, store, max_attempts=3, sleep=clock.sleep)
        engine.ensure_namespace("ns")

        with pytest.raises(NotFound):
            engine.create_dev_node(IMAGE, 9933)
        assert len(kube.calls_to("get_pod")) == 3
        assert store.topology.nodes == []

    def test_platform_error_on_create_is_fatal(self, store: TopologyStore, clock: FakeClock):
        kube = FakeKubeClient(fail_pods=("node-1",))
        engine = DeploymentEngine(kube, store, sleep=clock.sleep)
        engine.ensure_namespace("ns")

        with pytest.raises(PlatformError):
            engine.create_dev_node(IMAGE, 9933)
        assert kube.calls_to("get_pod") == []


# =============================================================================
# alice / bob
# =============================================================================


class TestAliceBob:
    def test_bob_joins_alice(self, engine: DeploymentEngine, kube: FakeKubeClient, store: TopologyStore):
        engine.ensure_namespace("ns")
        alice, bob = engine.create_alice_bob_nodes(IMAGE, 9933)

        topology = store.topology
        assert topology.bootnode == alice
        assert topology.nodes == [alice, bob]
        assert alice.peer_id == ALICE_PEER_ID
        assert bob.role is Role.VALIDATOR
        bootnodes_arg = f"--bootnodes=/dns4/{alice.ip}/tcp/30333/p2p/{ALICE_PEER_ID}"
        assert bootnodes_arg in kube.specs["bob"].args

    def test_validator_spec_built_only_after_bootnode_recorded(
        self, engine: DeploymentEngine, store: TopologyStore, monkeypatch: pytest.MonkeyPatch,
    ):
        real_build = deployment.build_node_spec
        seen = []

        def checked_build(role, image, port, bootnode=None, index=1):
            if role is Role.VALIDATOR:
                recorded = store.topology.bootnode
                assert recorded is not None and recorded.ip and recorded.peer_id
            seen.append(role)
            return real_build(role, image, port, bootnode=bootnode, index=index)

        monkeypatch.setattr(deployment, "build_node_spec", checked_build)
        engine.ensure_namespace("ns")
        engine.create_alice_bob_nodes(IMAGE, 9933)

        assert seen == [Role.BOOTNODE, Role.VALIDATOR]

    def test_half_created_topology_is_kept(self, store: TopologyStore, clock: FakeClock):
        kube = FakeKubeClient(fail_pods=("bob",))
        engine = DeploymentEngine(kube, store, sleep=clock.sleep)
        engine.ensure_namespace("ns")

        with pytest.raises(PlatformError):
            engine.create_alice_bob_nodes(IMAGE, 9933)

        assert [n.node_id for n in store.topology.nodes] == ["alice"]
        assert kube.calls_to("delete_namespace") == []

    def test_full_nodes_join_bootnode(self, engine: DeploymentEngine, store: TopologyStore):
        engine.spawn("alicebob", IMAGE, 9933, "ns", full_nodes=2)
        assert [n.node_id for n in store.topology.nodes] == ["alice", "bob", "fullnode-1", "fullnode-2"]

    def test_full_nodes_without_bootnode(self, engine: DeploymentEngine):
        with pytest.raises(MissingBootnode):
            engine.spawn("dev", IMAGE, 9933, "ns", full_nodes=1)


# =============================================================================
# spawn / cleanup
# =============================================================================


class TestSpawn:
    def test_no_chain_only_prepares_namespace(self, engine: DeploymentEngine, kube: FakeKubeClient):
        assert engine.spawn(None, IMAGE, 9933, "ns") == []
        assert kube.calls_to("create_pod") == []
        assert "ns" in kube.namespaces

    def test_unsupported_chain(self, engine: DeploymentEngine, kube: FakeKubeClient):
        with pytest.raises(ChaosError, match="Unsupported chain"):
            engine.spawn("kusama", IMAGE, 9933, "ns")
        assert kube.calls == []


class TestCleanup:
    def test_tracked_namespace_resets_topology(self, engine: DeploymentEngine, kube: FakeKubeClient,
                                               store: TopologyStore):
        engine.spawn("dev", IMAGE, 9933, "ns")

        assert engine.cleanup("ns") is True

        assert kube.calls_to("delete_namespace") == [("delete_namespace", "ns")]
        assert store.topology.is_empty

    def test_defaults_to_tracked_namespace(self, engine: DeploymentEngine, kube: FakeKubeClient,
                                           store: TopologyStore):
        engine.spawn("dev", IMAGE, 9933, "ns")
        engine.cleanup()
        assert kube.calls_to("delete_namespace") == [("delete_namespace", "ns")]
        assert store.topology.is_empty

    def test_other_namespace_leaves_topology(self, engine: DeploymentEngine, kube: FakeKubeClient,
                                             store: TopologyStore):
        engine.spawn("dev", IMAGE, 9933, "ns")
        before = store.topology

        engine.cleanup("other")

        assert kube.calls_to("delete_namespace") == [("delete_namespace", "other")]
        assert store.topology == before

    def test_nothing_to_clean(self, engine: DeploymentEngine, kube: FakeKubeClient):
        assert engine.cleanup() is False
        assert kube.calls == []
