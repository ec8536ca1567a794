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


"""Topology records, node launch specs, and platform read models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    """Position of a node in the test network."""

    DEV = "dev"
    BOOTNODE = "bootnode"
    VALIDATOR = "validator"
    FULLNODE = "fullnode"


# ============================================================================
# Node identities (one variant per role)
# ============================================================================

@dataclass(frozen=True)
class DevIdentity:
    """Single dev-mode node; no network identity."""

    role: ClassVar[Role] = Role.DEV


@dataclass(frozen=True)
class BootnodeIdentity:
    """Fixture identity other nodes dial to join the network."""

    node_key: str
    peer_id: str
    role: ClassVar[Role] = Role.BOOTNODE


@dataclass(frozen=True)
class ValidatorIdentity:
    """Fixture validator identity plus the bootnode multiaddr it joins."""

    node_key: str
    peer_id: str
    bootnode_addr: str
    role: ClassVar[Role] = Role.VALIDATOR


@dataclass(frozen=True)
class FullnodeIdentity:
    """Non-validating node; libp2p key is generated by the node itself."""

    bootnode_addr: str
    role: ClassVar[Role] = Role.FULLNODE


NodeIdentity = DevIdentity | BootnodeIdentity | ValidatorIdentity | FullnodeIdentity


@dataclass(frozen=True)
class NodeSpec:
    """Launch specification for one node pod.

    Attributes:
        node_id: Pod and container name, unique within the namespace.
        image: Container image.
        port: RPC port exposed by the container.
        args: Command line passed to the node binary.
        identity: Role-specific identity material.
        labels: Extra pod labels.
    """

    node_id: str
    image: str
    port: int
    args: tuple[str, ...]
    identity: NodeIdentity = field(default_factory=DevIdentity)
    labels: dict[str, str] = field(default_factory=dict)

    @property
    def role(self) -> Role:
        return self.identity.role


# ============================================================================
# Platform read models
# ============================================================================

@dataclass(frozen=True)
class NamespaceInfo:
    name: str
    phase: str | None = None


@dataclass(frozen=True)
class PodInfo:
    name: str
    ip: str | None = None
    phase: str | None = None
    labels: dict[str, str] = field(default_factory=dict)


# ============================================================================
# Persisted topology
# ============================================================================

class NodeRecord(BaseModel):
    """A created node, as recorded in the topology file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    node_id: str
    ip: str
    port: int
    role: Role = Role.DEV
    peer_id: str | None = None
    private_key: str | None = None
    public_key: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: Any) -> Any:
        # Older topology files used podName / nodeType.
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "podName" in data and "nodeId" not in data and "node_id" not in data:
            data["nodeId"] = data.pop("podName")
        if "nodeType" in data and "role" not in data:
            data["role"] = data.pop("nodeType")
        return data

    @classmethod
    def from_spec(cls, spec: NodeSpec, ip: str) -> NodeRecord:
        """Compose the record for a pod created from *spec* and reachable at *ip*."""
        identity = spec.identity
        return cls(
            node_id=spec.node_id,
            ip=ip,
            port=spec.port,
            role=identity.role,
            peer_id=getattr(identity, "peer_id", None),
            private_key=getattr(identity, "node_key", None),
        )


class Topology(BaseModel):
    """The single active test cluster: namespace, image, and nodes.

    ``bootnode`` is a cross-reference into ``nodes`` kept for fast lookup.
    """

    model_config = ConfigDict(populate_by_name=True)

    namespace: str | None = None
    image: str | None = None
    bootnode: NodeRecord | None = None
    nodes: list[NodeRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_bootnode(self) -> Topology:
        bootnodes = [n for n in self.nodes if n.role is Role.BOOTNODE]
        if len(bootnodes) > 1:
            raise ValueError("topology holds more than one bootnode")
        if self.bootnode is not None and self.bootnode not in self.nodes:
            raise ValueError(f"bootnode '{self.bootnode.node_id}' is not among the topology nodes")
        if self.bootnode is None and bootnodes:
            self.bootnode = bootnodes[0]
        ids = [n.node_id for n in self.nodes]
        if len(ids) != len(set(ids)):
            raise ValueError("topology holds duplicate node ids")
        return self

    @property
    def is_empty(self) -> bool:
        return self.namespace is None and self.image is None and not self.nodes

    def find_node(self, node_id: str) -> NodeRecord | None:
        return next((n for n in self.nodes if n.node_id == node_id), None)

    def first_node(self) -> NodeRecord | None:
        return self.nodes[0] if self.nodes else None
