"""
Shared fixtures for chaos-manager tests.

No test talks to a real cluster or node: the cluster client is replaced by
``FakeKubeClient`` and every poll uses a fake clock and a recording sleep.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from chaos_manager.deployment import DeploymentEngine
from chaos_manager.errors import AlreadyExists, NotFound, PlatformError
from chaos_manager.models import NamespaceInfo, NodeSpec, PodInfo
from chaos_manager.topology import TopologyStore


# =============================================================================
# Fakes
# =============================================================================


class FakeKubeClient:
    """In-memory stand-in for KubeClient that records every call.

    Args:
        namespaces: Namespaces that already exist.
        pending_polls: Number of get_pod calls per pod that report "no IP yet".
        fail_pods: Node ids whose creation is rejected.
    """

    def __init__(
        self,
        namespaces: tuple[str, ...] = (),
        pending_polls: int = 0,
        fail_pods: tuple[str, ...] = (),
    ) -> None:
        self.namespaces = set(namespaces)
        self.pending_polls = pending_polls
        self.fail_pods = set(fail_pods)
        self.calls: list[tuple] = []
        self.specs: dict[str, NodeSpec] = {}
        self._remaining: dict[str, int] = {}
        self._ips: dict[str, str] = {}

    def calls_to(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

    def read_namespace(self, name: str) -> NamespaceInfo:
        self.calls.append(("read_namespace", name))
        if name not in self.namespaces:
            raise NotFound(f"namespace '{name}' not found")
        return NamespaceInfo(name=name, phase="Active")

    def create_namespace(self, name: str) -> None:
        self.calls.append(("create_namespace", name))
        if name in self.namespaces:
            raise AlreadyExists(f"namespace '{name}' already exists")
        self.namespaces.add(name)

    def delete_namespace(self, name: str) -> None:
        self.calls.append(("delete_namespace", name))
        self.namespaces.discard(name)

    def create_pod(self, spec: NodeSpec, namespace: str) -> None:
        self.calls.append(("create_pod", spec.node_id, namespace))
        if spec.node_id in self.fail_pods:
            raise PlatformError(f"Failed to create pod '{spec.node_id}': exceeded quota")
        self.specs[spec.node_id] = spec
        self._remaining[spec.node_id] = self.pending_polls
        self._ips[spec.node_id] = f"10.42.0.{len(self._ips) + 10}"

    def get_pod(self, node_id: str, namespace: str) -> PodInfo:
        self.calls.append(("get_pod", node_id, namespace))
        if node_id not in self._remaining:
            raise NotFound(f"get_pod({node_id}): node is not present in the cluster")
        if self._remaining[node_id] > 0:
            self._remaining[node_id] -= 1
            raise NotFound(f"get_pod({node_id}): node is not present in the cluster")
        return PodInfo(name=node_id, ip=self._ips[node_id], phase="Running")

    def start_port_forward(self, namespace: str, pod: str, local_port: int, on_ready: Callable):
        self.calls.append(("start_port_forward", namespace, pod, local_port))
        return on_ready()


class FakeClock:
    """Monotonic clock advanced only by its own sleep()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def topology_file(tmp_path: Path) -> Path:
    return tmp_path / "state" / "topology.json"


@pytest.fixture
def store(topology_file: Path) -> TopologyStore:
    return TopologyStore(topology_file)


@pytest.fixture
def kube() -> FakeKubeClient:
    return FakeKubeClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine(kube: FakeKubeClient, store: TopologyStore, clock: FakeClock) -> DeploymentEngine:
    return DeploymentEngine(kube, store, sleep=clock.sleep)
