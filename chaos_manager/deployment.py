# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */


"""Deployment engine: namespace setup, node creation, readiness, topology updates."""

from __future__ import annotations

import time
from collections.abc import Callable

from rich.panel import Panel
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, stop_never, wait_fixed

from chaos_manager import console, logger
from chaos_manager.constants import CHAIN_ALICE_BOB, CHAIN_DEV, READY_POLL_INTERVAL_SECONDS, SUPPORTED_CHAINS
from chaos_manager.errors import AlreadyExists, ChaosError, NotFound
from chaos_manager.k8s import KubeClient
from chaos_manager.models import NodeRecord, NodeSpec, PodInfo, Role
from chaos_manager.nodespec import build_node_spec
from chaos_manager.topology import TopologyStore


def _log_waiting(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.info("%s (attempt %d), awaiting...", exc, retry_state.attempt_number)


class DeploymentEngine:
    """Creates nodes on the cluster and records them in the topology store.

    Every step runs sequentially; the store is the only state.

    Args:
        client: Cluster client used for namespaces and pods.
        store: Topology store; the engine is its only writer.
        poll_interval: Seconds between pod readiness checks.
        max_attempts: Readiness check cap, or None to poll until the pod is up.
        sleep: Sleep function used between readiness checks.
    """

    def __init__(
        self,
        client: KubeClient,
        store: TopologyStore,
        poll_interval: float = READY_POLL_INTERVAL_SECONDS,
        max_attempts: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.store = store
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    def _namespace(self) -> str:
        namespace = self.store.topology.namespace
        if namespace is None:
            raise ChaosError("No namespace is tracked; ensure a namespace before creating nodes")
        return namespace

    def ensure_namespace(self, namespace: str) -> None:
        """Read *namespace*, creating it when absent, and track it."""
        try:
            console.print(f"[yellow]ℹ️  Reading namespace '{namespace}'...[/yellow]")
            self.client.read_namespace(namespace)
        except NotFound:
            console.print("[yellow]ℹ️  Namespace not present, creating...[/yellow]")
            try:
                self.client.create_namespace(namespace)
            except AlreadyExists:
                logger.info("Namespace %s appeared concurrently", namespace)
        self.store.set_namespace(namespace)

    def await_ready(self, node_id: str, namespace: str) -> PodInfo:
        """Poll until pod *node_id* has an IP.

        Raises:
            NotFound: Only when ``max_attempts`` is set and exhausted.
        """
        stop = stop_after_attempt(self.max_attempts) if self.max_attempts else stop_never
        retrying = Retrying(
            stop=stop,
            wait=wait_fixed(self.poll_interval),
            retry=retry_if_exception_type(NotFound),
            sleep=self._sleep,
            before_sleep=_log_waiting,
            reraise=True,
        )
        return retrying(self.client.get_pod, node_id, namespace)

    def create_node(self, spec: NodeSpec) -> NodeRecord:
        """Create the pod for *spec*, wait for its IP, and record it."""
        namespace = self._namespace()
        console.print(f"[yellow]ℹ️  Creating {spec.role.value} node '{spec.node_id}'...[/yellow]")
        self.client.create_pod(spec, namespace)
        self.store.set_image(spec.image)

        console.print("[yellow]ℹ️  Polling pod status...[/yellow]")
        pod = self.await_ready(spec.node_id, namespace)
        record = NodeRecord.from_spec(spec, ip=pod.ip)
        self.store.add_node(record)
        console.print(f"[green]✅ Node '{record.node_id}' is up at {record.ip}:{record.port}[/green]")
        return record

    def create_dev_node(self, image: str, port: int) -> NodeRecord:
        return self.create_node(build_node_spec(Role.DEV, image, port))

    def create_alice_bob_nodes(self, image: str, port: int) -> tuple[NodeRecord, NodeRecord]:
        """Create the alice bootnode, then bob joining it.

        Bob's spec is only built once alice is recorded with an IP and peer id.
        """
        alice = self.create_node(build_node_spec(Role.BOOTNODE, image, port))
        bootnode = self.store.topology.bootnode
        bob = self.create_node(build_node_spec(Role.VALIDATOR, image, port, bootnode=bootnode))
        return alice, bob

    def create_full_nodes(self, image: str, port: int, count: int) -> list[NodeRecord]:
        """Create *count* full nodes joining the recorded bootnode."""
        existing = sum(1 for n in self.store.topology.nodes if n.role is Role.FULLNODE)
        records = []
        for i in range(existing + 1, existing + count + 1):
            bootnode = self.store.topology.bootnode
            records.append(self.create_node(build_node_spec(Role.FULLNODE, image, port, bootnode=bootnode, index=i)))
        return records

    def spawn(
        self,
        chain: str | None,
        image: str,
        port: int,
        namespace: str,
        full_nodes: int = 0,
    ) -> list[NodeRecord]:
        """Ensure *namespace* and start the network named by *chain*.

        With no chain only the namespace is prepared.

        Raises:
            ChaosError: If *chain* is not supported.
        """
        if chain is not None and chain not in SUPPORTED_CHAINS:
            raise ChaosError(f"Unsupported chain '{chain}' (expected one of: {', '.join(SUPPORTED_CHAINS)})")
        self.ensure_namespace(namespace)
        records: list[NodeRecord] = []
        if chain == CHAIN_DEV:
            console.print(Panel.fit("Starting a full node in dev mode", style="bold blue"))
            records.append(self.create_dev_node(image, port))
        elif chain == CHAIN_ALICE_BOB:
            console.print(Panel.fit("Starting alice (bootnode) and bob (validator)", style="bold blue"))
            records.extend(self.create_alice_bob_nodes(image, port))
        if full_nodes:
            records.extend(self.create_full_nodes(image, port, full_nodes))
        return records

    def cleanup(self, namespace: str | None = None) -> bool:
        """Delete *namespace* (default: the tracked one).

        The topology is reset when the deleted namespace is the tracked one.

        Returns:
            False if there was nothing to clean up.
        """
        tracked = self.store.topology.namespace
        namespace = namespace or tracked
        if not namespace:
            console.print("[yellow]ℹ️  Nothing to clean up[/yellow]")
            return False
        self.client.delete_namespace(namespace)
        if namespace == tracked:
            self.store.reset()
        console.print(f"[green]✅ Namespace '{namespace}' cleaned up[/green]")
        return True
