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


"""Constants, fixture identity loading, and fixture_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_fixtures() -> dict:
    """Load the well-known node identities from fixtures.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    fixtures_file = Path(__file__).resolve().parent / "fixtures.yaml"
    with open(fixtures_file) as f:
        return yaml.safe_load(f)


FIXTURES = load_fixtures()


def fixture_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the FIXTURES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = FIXTURES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Deployment defaults --
DEFAULT_NAMESPACE = "substrate-ci"
DEFAULT_IMAGE = "parity/substrate:latest"
DEFAULT_RPC_PORT = 9933
DEFAULT_TOPOLOGY_FILE = Path.home() / ".chaos-manager" / "topology.json"
# Env flag values read as "off"; any other value reads as "on"
FALSE_FLAG_VALUES = frozenset({"", "0", "false", "no", "off"})

# -- Polling --
READY_POLL_INTERVAL_SECONDS = 5
HEIGHT_POLL_INTERVAL_SECONDS = 2
DEFAULT_DESIRED_HEIGHT = 10
DEFAULT_HEIGHT_TIMEOUT_MS = 600 * 1000
DEFAULT_RPC_TIMEOUT_SECONDS = 10
PORT_FORWARD_READY_TIMEOUT_SECONDS = 30
PORT_FORWARD_POLL_INTERVAL_SECONDS = 0.5
KUBECTL_TIMEOUT_SECONDS = 30

# -- Chains --
CHAIN_DEV = "dev"
CHAIN_ALICE_BOB = "alicebob"
SUPPORTED_CHAINS = (CHAIN_DEV, CHAIN_ALICE_BOB)
LOCAL_CHAIN_ARG = "--chain=local"

# -- Node network --
P2P_PORT = 30333
DEV_NODE_ID = "node-1"
FULLNODE_ID_PREFIX = "fullnode"
LOCALHOST_URL = "http://localhost"

# -- Pod labels --
LABEL_APP = "app"
LABEL_ROLE = "chaos-manager/role"

# -- JSON-RPC --
RPC_METHOD_GET_BLOCK = "chain_getBlock"
