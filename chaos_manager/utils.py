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


"""Utility functions for kubectl, multiaddrs, and command checks."""

from __future__ import annotations

import subprocess

import sh

from chaos_manager.constants import KUBECTL_TIMEOUT_SECONDS, P2P_PORT


def bootnode_multiaddr(ip: str, peer_id: str, p2p_port: int = P2P_PORT) -> str:
    """Build the libp2p multiaddr other nodes pass to ``--bootnodes``.

    Args:
        ip: Pod IP of the bootnode.
        peer_id: libp2p peer id of the bootnode.
        p2p_port: libp2p listen port inside the pod.

    Returns:
        Multiaddr such as ``/dns4/10.42.0.7/tcp/30333/p2p/12D3Koo...``.
    """
    return f"/dns4/{ip}/tcp/{p2p_port}/p2p/{peer_id}"


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        found = sh.which(cmd)
    except sh.ErrorReturnCode:
        found = None
    if not found:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.")


def run_kubectl(
    args: list[str],
    timeout: int = KUBECTL_TIMEOUT_SECONDS,
    input: str | None = None,
) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Args:
        args: kubectl arguments (e.g. ``["get", "pods", "-n", "default"]``).
        timeout: Maximum seconds to wait for the command to complete.
        input: Text fed to kubectl's stdin, e.g. a manifest for ``-f -``.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            ["kubectl", *args],
            capture_output=True,
            text=True,
            timeout=timeout,
            input=input,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)
