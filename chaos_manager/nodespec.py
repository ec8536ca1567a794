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


"""Role to launch-spec mapping for Substrate test nodes."""

from __future__ import annotations

from chaos_manager.constants import (
    DEV_NODE_ID,
    FULLNODE_ID_PREFIX,
    LOCAL_CHAIN_ARG,
    fixture_value,
)
from chaos_manager.errors import MissingBootnode
from chaos_manager.models import (
    BootnodeIdentity,
    DevIdentity,
    FullnodeIdentity,
    NodeRecord,
    NodeSpec,
    Role,
    ValidatorIdentity,
)
from chaos_manager.utils import bootnode_multiaddr


def _require_bootnode(role: Role, bootnode: NodeRecord | None) -> str:
    if bootnode is None or not bootnode.ip or not bootnode.peer_id:
        raise MissingBootnode(f"cannot build a {role.value} node: no bootnode with an IP and peer id is recorded")
    return bootnode_multiaddr(bootnode.ip, bootnode.peer_id)


def build_node_spec(
    role: Role,
    image: str,
    port: int,
    bootnode: NodeRecord | None = None,
    index: int = 1,
) -> NodeSpec:
    """Build the launch spec for a node of *role*.

    Identities are fixed fixtures, so the same inputs always give the same
    spec. Validators and full nodes join the network through *bootnode*.

    Args:
        role: Requested node role.
        image: Substrate image to run.
        port: RPC port to expose.
        bootnode: Recorded bootnode, required for validator and fullnode.
        index: Ordinal used to name full nodes.

    Returns:
        The node's launch specification.

    Raises:
        MissingBootnode: If *role* needs a bootnode and none is usable.
    """
    if role is Role.DEV:
        return NodeSpec(
            node_id=DEV_NODE_ID,
            image=image,
            port=port,
            args=("--dev", "--rpc-external", "--ws-external"),
            identity=DevIdentity(),
        )

    if role is Role.BOOTNODE:
        identity = BootnodeIdentity(
            node_key=fixture_value("bootnode", "node_key"),
            peer_id=fixture_value("bootnode", "peer_id"),
        )
        return NodeSpec(
            node_id=fixture_value("bootnode", "node_id"),
            image=image,
            port=port,
            args=(
                LOCAL_CHAIN_ARG,
                "--node-key", identity.node_key,
                "--validator",
                "--no-telemetry",
                "--rpc-cors=all",
                fixture_value("bootnode", "flag"),
            ),
            identity=identity,
        )

    if role is Role.VALIDATOR:
        addr = _require_bootnode(role, bootnode)
        identity = ValidatorIdentity(
            node_key=fixture_value("validator", "node_key"),
            peer_id=fixture_value("validator", "peer_id"),
            bootnode_addr=addr,
        )
        return NodeSpec(
            node_id=fixture_value("validator", "node_id"),
            image=image,
            port=port,
            args=(
                LOCAL_CHAIN_ARG,
                "--node-key", identity.node_key,
                "--validator",
                fixture_value("validator", "flag"),
                f"--bootnodes={addr}",
            ),
            identity=identity,
        )

    if role is Role.FULLNODE:
        addr = _require_bootnode(role, bootnode)
        return NodeSpec(
            node_id=f"{FULLNODE_ID_PREFIX}-{index}",
            image=image,
            port=port,
            args=(LOCAL_CHAIN_ARG, "--rpc-external", "--ws-external", f"--bootnodes={addr}"),
            identity=FullnodeIdentity(bootnode_addr=addr),
        )

    raise ValueError(f"unknown role: {role!r}")
