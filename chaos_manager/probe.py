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


"""Chain height liveness probe over JSON-RPC, optionally through a pod tunnel."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

import requests
from rich.panel import Panel
from tenacity import Retrying, retry_if_result, wait_fixed

from chaos_manager import console, logger
from chaos_manager.constants import (
    DEFAULT_RPC_PORT,
    DEFAULT_RPC_TIMEOUT_SECONDS,
    HEIGHT_POLL_INTERVAL_SECONDS,
    LOCALHOST_URL,
    RPC_METHOD_GET_BLOCK,
)
from chaos_manager.errors import ChainTimeout, RpcError
from chaos_manager.k8s import KubeClient
from chaos_manager.topology import TopologyStore


def get_chain_block_height(
    url: str,
    port: int,
    timeout: float = DEFAULT_RPC_TIMEOUT_SECONDS,
    session: requests.Session | None = None,
) -> int:
    """Fetch the best block height from a node's JSON-RPC endpoint.

    Args:
        url: Scheme and host, e.g. ``http://localhost``.
        port: RPC port.
        timeout: HTTP timeout in seconds.
        session: Optional session to reuse connections.

    Returns:
        The block number, decoded from its hex form.

    Raises:
        RpcError: On transport failure or an unexpected response body.
    """
    http = session or requests
    payload = {"id": 1, "jsonrpc": "2.0", "method": RPC_METHOD_GET_BLOCK}
    try:
        resp = http.post(f"{url}:{port}", json=payload, timeout=timeout)
        resp.raise_for_status()
        number = resp.json()["result"]["block"]["header"]["number"]
        return int(number, 16)
    except requests.RequestException as err:
        raise RpcError(f"Error requesting chain block height: {err}") from err
    except (ValueError, KeyError, TypeError) as err:
        raise RpcError(f"Malformed chain_getBlock response: {err!r}") from err


@dataclass(frozen=True)
class RpcTarget:
    url: str
    port: int


@dataclass(frozen=True)
class PodTarget:
    namespace: str
    pod: str


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a successful probe.

    Attributes:
        height: Last observed height, or None when there was nothing to probe.
        attempts: Number of RPC calls made.
        elapsed: Seconds spent polling.
    """

    height: int | None
    attempts: int
    elapsed: float


class LivenessProbe:
    """Polls a node until its chain passes a target height.

    Transport errors fail the probe on the spot; only a too-low height is
    retried, every ``poll_interval`` seconds. The deadline is checked before
    each request, so no request is made once ``timeout_ms`` has elapsed.

    Args:
        client_factory: Returns the cluster client; only called for pod targets.
        store: Topology store used to resolve default pod targets.
        poll_interval: Seconds between height requests.
        forward_port: Port tunnelled to when probing a pod.
        fetch_height: ``(url, port) -> int`` height fetcher.
        clock: Monotonic clock in seconds.
        sleep: Sleep function used between requests.
    """

    def __init__(
        self,
        client_factory: Callable[[], KubeClient],
        store: TopologyStore,
        poll_interval: float = HEIGHT_POLL_INTERVAL_SECONDS,
        forward_port: int = DEFAULT_RPC_PORT,
        fetch_height: Callable[[str, int], int] = get_chain_block_height,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client_factory = client_factory
        self.store = store
        self.poll_interval = poll_interval
        self.forward_port = forward_port
        self._fetch_height = fetch_height
        self._clock = clock
        self._sleep = sleep

    def resolve_target(
        self,
        url: str | None = None,
        port: int | None = None,
        namespace: str | None = None,
        pod: str | None = None,
    ) -> RpcTarget | PodTarget | None:
        """Pick what to probe: an explicit endpoint, else a pod in the topology.

        Returns None when neither can be determined.
        """
        if url and port:
            return RpcTarget(url, port)
        topology = self.store.topology
        namespace = namespace or topology.namespace
        if pod is None:
            first = topology.first_node()
            pod = first.node_id if first else None
        if namespace and pod:
            return PodTarget(namespace, pod)
        return None

    def check_height(
        self,
        target: RpcTarget | PodTarget | None,
        desired_height: int,
        timeout_ms: int,
    ) -> ProbeResult:
        """Wait until *target*'s chain height exceeds *desired_height*.

        Raises:
            ChainTimeout: If the deadline passes before a height above the target is seen.
            RpcError: On the first failed RPC call.
        """
        if target is None:
            console.print("[yellow]ℹ️  No endpoint or pod to probe, nothing to check[/yellow]")
            return ProbeResult(height=None, attempts=0, elapsed=0.0)
        if isinstance(target, PodTarget):
            return self._client_factory().start_port_forward(
                target.namespace,
                target.pod,
                self.forward_port,
                on_ready=lambda: self._poll(RpcTarget(LOCALHOST_URL, self.forward_port), desired_height, timeout_ms),
            )
        return self._poll(target, desired_height, timeout_ms)

    def _poll(self, target: RpcTarget, desired_height: int, timeout_ms: int) -> ProbeResult:
        console.print(Panel.fit(f"Polling chain height at {target.url}:{target.port}", style="bold blue"))
        started = self._clock()
        budget = timeout_ms / 1000
        attempts = 0
        last: int | None = None

        def _fetch() -> int:
            nonlocal attempts, last
            if self._clock() - started >= budget:
                seen = f"height {last}" if last is not None else "no height"
                raise ChainTimeout(
                    f"Timed out after {timeout_ms}ms: {seen} did not exceed {desired_height}")
            attempts += 1
            last = self._fetch_height(target.url, target.port)
            console.print(f"Current block height: {last}")
            return last

        height = Retrying(
            wait=wait_fixed(self.poll_interval),
            retry=retry_if_result(lambda h: h <= desired_height),
            sleep=self._sleep,
        )(_fetch)

        elapsed = self._clock() - started
        console.print(f"[green]✅ Block height reached {height} (> {desired_height})[/green]")
        logger.info("Height %d after %d attempt(s), %.1fs", height, attempts, elapsed)
        return ProbeResult(height=height, attempts=attempts, elapsed=elapsed)
