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


"""Error hierarchy shared by the cluster client, store, engine, and probe."""

from __future__ import annotations


class ChaosError(RuntimeError):
    """Base for all errors reported to the operator."""


class NotFound(ChaosError):
    """Resource absent, or a pod without an assigned IP yet."""


class AlreadyExists(ChaosError):
    """Resource already present."""


class PlatformError(ChaosError):
    """kubectl or the API server rejected a request."""


class MissingBootnode(ChaosError):
    """A node that joins the bootnode was requested before the bootnode is recorded."""


class TopologyConflict(ChaosError):
    """A node would break the topology's uniqueness rules."""


class ChainTimeout(ChaosError):
    """Chain height did not pass the target before the deadline."""


class RpcError(ChaosError):
    """A JSON-RPC request failed at the transport or decoding level."""


class CorruptedTopology(ChaosError):
    """The persisted topology file could not be parsed."""
