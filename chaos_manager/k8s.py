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


"""Typed wrapper over kubectl: namespaces, pods, and port-forward tunnels."""

from __future__ import annotations

import atexit
import json
import subprocess
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import yaml
from tenacity import Retrying, retry_if_exception_type, stop_after_delay, wait_fixed

from chaos_manager import console, logger
from chaos_manager.constants import (
    LABEL_APP,
    LABEL_ROLE,
    PORT_FORWARD_POLL_INTERVAL_SECONDS,
    PORT_FORWARD_READY_TIMEOUT_SECONDS,
)
from chaos_manager.errors import AlreadyExists, NotFound, PlatformError
from chaos_manager.models import NamespaceInfo, NodeSpec, PodInfo
from chaos_manager.utils import run_kubectl

T = TypeVar("T")

KubectlRunner = Callable[..., tuple[bool, str, str]]


def pod_manifest(spec: NodeSpec) -> dict:
    """Build the Kubernetes Pod manifest for a node.

    Args:
        spec: Launch specification produced by the node spec builder.

    Returns:
        Kubernetes Pod resource as a dictionary ready for YAML serialization.
    """
    labels = {LABEL_APP: spec.node_id, LABEL_ROLE: spec.role.value, **spec.labels}
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {
            "name": spec.node_id,
            "labels": labels,
        },
        "spec": {
            "containers": [
                {
                    "name": spec.node_id,
                    "image": spec.image,
                    "imagePullPolicy": "Always",
                    "ports": [{"containerPort": spec.port}],
                    "args": list(spec.args),
                }
            ]
        },
    }


def _pod_info(item: dict) -> PodInfo:
    metadata = item.get("metadata") or {}
    status = item.get("status") or {}
    return PodInfo(
        name=metadata.get("name", ""),
        ip=status.get("podIP") or None,
        phase=status.get("phase"),
        labels=metadata.get("labels") or {},
    )


def _is_not_found(stderr: str) -> bool:
    return "NotFound" in stderr or "not found" in stderr


class _TunnelPending(Exception):
    """kubectl port-forward is running but not forwarding yet."""


class KubeClient:
    """Namespace, pod, and tunnel primitives on the current kube context.

    Args:
        kubectl: Runner with the signature of :func:`run_kubectl`.
        keep_namespace: When set, :meth:`delete_namespace` does nothing.
        popen: Factory used to start long-running ``kubectl port-forward``.
    """

    def __init__(
        self,
        kubectl: KubectlRunner = run_kubectl,
        keep_namespace: bool = False,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ) -> None:
        self._kubectl = kubectl
        self.keep_namespace = keep_namespace
        self._popen = popen
        self._tunnels: list[tuple[subprocess.Popen, Path]] = []

    def _get_json(self, args: list[str], what: str) -> dict:
        ok, stdout, stderr = self._kubectl([*args, "-o", "json"])
        if not ok:
            if _is_not_found(stderr):
                raise NotFound(f"{what} not found: {stderr.strip()}")
            raise PlatformError(f"Failed to read {what}: {stderr.strip()[:200]}")
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as err:
            raise PlatformError(f"Unreadable kubectl output for {what}: {err}") from err

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def create_namespace(self, name: str) -> None:
        """Create *name*.

        Raises:
            AlreadyExists: If the namespace is present.
            PlatformError: For any other rejection.
        """
        ok, _, stderr = self._kubectl(["create", "namespace", name])
        if ok:
            logger.info("Created namespace %s", name)
            return
        if "AlreadyExists" in stderr:
            raise AlreadyExists(f"namespace '{name}' already exists")
        raise PlatformError(f"Failed to create namespace '{name}': {stderr.strip()[:200]}")

    def read_namespace(self, name: str) -> NamespaceInfo:
        """Read *name*.

        Raises:
            NotFound: If the namespace does not exist.
        """
        data = self._get_json(["get", "namespace", name], f"namespace '{name}'")
        return NamespaceInfo(
            name=data.get("metadata", {}).get("name", name),
            phase=data.get("status", {}).get("phase"),
        )

    def delete_namespace(self, name: str) -> None:
        """Delete *name* and, by cascade, every pod inside it.

        Raises:
            NotFound: If the namespace does not exist.
            PlatformError: For any other rejection.
        """
        console.print(f"[yellow]ℹ️  Taking down namespace '{name}'...[/yellow]")
        if self.keep_namespace:
            console.print(f"[yellow]⚠️  KEEP_NAMESPACE is set, leaving '{name}' in place[/yellow]")
            return
        ok, _, stderr = self._kubectl(["delete", "namespace", name, "--wait=false"])
        if ok:
            return
        if _is_not_found(stderr):
            raise NotFound(f"namespace '{name}' not found")
        raise PlatformError(f"Failed to delete namespace '{name}': {stderr.strip()[:200]}")

    # ------------------------------------------------------------------
    # Pods
    # ------------------------------------------------------------------

    def create_pod(self, spec: NodeSpec, namespace: str) -> None:
        """Create the pod described by *spec* in *namespace*.

        Raises:
            PlatformError: If the API server rejects the manifest.
        """
        manifest = yaml.safe_dump(pod_manifest(spec), default_flow_style=False)
        ok, _, stderr = self._kubectl(["create", "-n", namespace, "-f", "-"], input=manifest)
        if not ok:
            raise PlatformError(f"Failed to create pod '{spec.node_id}': {stderr.strip()[:200]}")
        logger.info("Created pod %s/%s", namespace, spec.node_id)

    def list_pods(self, namespace: str) -> list[PodInfo]:
        data = self._get_json(["get", "pods", "-n", namespace], f"pods in '{namespace}'")
        return [_pod_info(item) for item in data.get("items", [])]

    def get_pod(self, node_id: str, namespace: str) -> PodInfo:
        """Return the pod named *node_id* once it has an IP.

        Raises:
            NotFound: If no such pod exists or it has no IP yet.
        """
        for pod in self.list_pods(namespace):
            if pod.name == node_id and pod.ip:
                return pod
        raise NotFound(f"get_pod({node_id}): node is not present in the cluster")

    def get_deployment_status(self, name: str, namespace: str) -> dict[str, Any] | None:
        """Return the ``Available`` condition of a deployment, if reported."""
        data = self._get_json(
            ["get", "deployment", name, "-n", namespace], f"deployment '{name}'")
        conditions = (data.get("status") or {}).get("conditions") or []
        return next((c for c in conditions if c.get("type") == "Available"), None)

    # ------------------------------------------------------------------
    # Tunnels
    # ------------------------------------------------------------------

    def start_port_forward(
        self,
        namespace: str,
        pod: str,
        local_port: int,
        on_ready: Callable[[], T],
        remote_port: int | None = None,
        timeout: float = PORT_FORWARD_READY_TIMEOUT_SECONDS,
    ) -> T:
        """Tunnel ``127.0.0.1:local_port`` to the pod and call *on_ready*.

        kubectl output goes to a log file; the tunnel counts as up once kubectl
        reports ``Forwarding from 127.0.0.1:<local_port>`` and is still running.
        The tunnel stays open until the process exits.

        Returns:
            Whatever *on_ready* returns.

        Raises:
            PlatformError: If kubectl exits or the tunnel does not come up within *timeout*.
        """
        target_port = remote_port or local_port
        with tempfile.NamedTemporaryFile(
            prefix=f"port-forward-{pod}-", suffix=".log", delete=False
        ) as log:
            proc = self._popen(
                ["kubectl", "port-forward", "-n", namespace, f"pod/{pod}", f"{local_port}:{target_port}"],
                stdout=log,
                stderr=subprocess.STDOUT,
                start_new_session=True,
            )
        log_path = Path(log.name)
        if not self._tunnels:
            atexit.register(self.close_tunnels)
        self._tunnels.append((proc, log_path))

        ready_line = f"Forwarding from 127.0.0.1:{local_port}"

        def _await_forwarding() -> None:
            output = log_path.read_text(errors="replace")
            if proc.poll() is not None:
                raise PlatformError(f"kubectl port-forward exited: {output.strip()[:200]}")
            if ready_line not in output:
                raise _TunnelPending(output.strip()[:200] or "no output from kubectl")

        try:
            Retrying(
                stop=stop_after_delay(timeout),
                wait=wait_fixed(PORT_FORWARD_POLL_INTERVAL_SECONDS),
                retry=retry_if_exception_type(_TunnelPending),
                reraise=True,
            )(_await_forwarding)
        except _TunnelPending as err:
            raise PlatformError(
                f"Port-forward to {namespace}/{pod} not ready after {timeout}s: {err}") from err

        console.print("[green]✅ Forwarding server started, ready to connect[/green]")
        logger.info("Tunnel ready: 127.0.0.1:%d -> %s/%s:%d", local_port, namespace, pod, target_port)
        return on_ready()

    def close_tunnels(self) -> None:
        for proc, log_path in self._tunnels:
            if proc.poll() is None:
                proc.terminate()
                try:
                    proc.wait(timeout=5)
                except subprocess.TimeoutExpired:
                    proc.kill()
            log_path.unlink(missing_ok=True)
        self._tunnels.clear()
