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


"""Durable, single-writer store for the active test cluster topology.

Every mutation is written through to disk before the mutating call returns,
so a subsequent command in the same process (or a later process) always sees
it. A missing or unreadable file is treated as an empty topology.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from pydantic import ValidationError

from chaos_manager import console, logger
from chaos_manager.errors import CorruptedTopology, TopologyConflict
from chaos_manager.models import NodeRecord, Role, Topology


def parse_topology(text: str) -> Topology:
    """Parse a persisted topology document.

    Raises:
        CorruptedTopology: If the text is not a valid topology.
    """
    try:
        return Topology.model_validate_json(text)
    except ValidationError as err:
        raise CorruptedTopology(f"topology file is corrupted: {err.error_count()} error(s)") from err


def dump_topology(topology: Topology) -> str:
    return topology.model_dump_json(by_alias=True, indent=2)


class TopologyStore:
    """Owns the topology file and the in-memory copy loaded from it."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._topology = self._load()

    @property
    def topology(self) -> Topology:
        """A detached copy of the current topology."""
        return self._topology.model_copy(deep=True)

    def _load(self) -> Topology:
        try:
            text = self.path.read_text(errors="replace")
        except FileNotFoundError:
            logger.info("No topology file at %s, starting empty", self.path)
            return Topology()
        try:
            return parse_topology(text)
        except CorruptedTopology as err:
            console.print(f"[yellow]⚠️  {err}, resetting...[/yellow]")
            empty = Topology()
            self._write(empty)
            return empty

    def _write(self, topology: Topology) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".topology-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(dump_topology(topology))
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("Topology updated (%s)", self.path)

    @contextmanager
    def edit(self) -> Iterator[Topology]:
        """Mutate a draft of the topology and write it through on exit.

        The draft is discarded if the block raises.
        """
        draft = self._topology.model_copy(deep=True)
        yield draft
        # Re-validate so invariants hold for what reaches disk.
        checked = Topology.model_validate(draft.model_dump())
        self._write(checked)
        self._topology = checked

    def set_namespace(self, namespace: str) -> None:
        """Track *namespace*; switching namespaces starts a fresh topology."""
        with self.edit() as draft:
            if draft.namespace not in (None, namespace):
                logger.info("Namespace changed from %s to %s, dropping old nodes", draft.namespace, namespace)
                draft.image = None
                draft.bootnode = None
                draft.nodes = []
            draft.namespace = namespace

    def set_image(self, image: str) -> None:
        with self.edit() as draft:
            draft.image = image

    def add_node(self, node: NodeRecord) -> None:
        """Append *node*; a bootnode also becomes ``topology.bootnode``.

        Raises:
            TopologyConflict: If the node id is taken or a second bootnode is added.
        """
        with self.edit() as draft:
            if draft.find_node(node.node_id) is not None:
                raise TopologyConflict(f"node '{node.node_id}' is already recorded")
            if node.role is Role.BOOTNODE:
                if draft.bootnode is not None:
                    raise TopologyConflict(
                        f"bootnode '{draft.bootnode.node_id}' is already recorded; refusing '{node.node_id}'")
                draft.bootnode = node
            draft.nodes.append(node)

    def reset(self) -> None:
        with self.edit() as draft:
            draft.namespace = None
            draft.image = None
            draft.bootnode = None
            draft.nodes = []
