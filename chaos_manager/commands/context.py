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


"""Construction of the client, store, engine, and probe for one command."""

from __future__ import annotations

from typing import NoReturn

import typer

from chaos_manager import console
from chaos_manager.config import DeployConfig, ProbeConfig, StoreConfig
from chaos_manager.deployment import DeploymentEngine
from chaos_manager.k8s import KubeClient
from chaos_manager.probe import LivenessProbe, get_chain_block_height
from chaos_manager.topology import TopologyStore
from chaos_manager.utils import require_command


def open_store(store_cfg: StoreConfig | None = None) -> TopologyStore:
    store_cfg = store_cfg or StoreConfig()
    return TopologyStore(store_cfg.topology_file)


def make_client(deploy_cfg: DeployConfig) -> KubeClient:
    require_command("kubectl")
    return KubeClient(keep_namespace=deploy_cfg.keep_namespace)


def make_engine(deploy_cfg: DeployConfig, store: TopologyStore) -> DeploymentEngine:
    return DeploymentEngine(
        make_client(deploy_cfg),
        store,
        poll_interval=deploy_cfg.ready_poll_interval_seconds,
        max_attempts=deploy_cfg.ready_max_attempts,
    )


def make_probe(probe_cfg: ProbeConfig, store: TopologyStore) -> LivenessProbe:
    return LivenessProbe(
        lambda: make_client(DeployConfig()),
        store,
        poll_interval=probe_cfg.poll_interval_seconds,
        forward_port=probe_cfg.forward_port,
        fetch_height=lambda url, port: get_chain_block_height(url, port, timeout=probe_cfg.rpc_timeout_seconds),
    )


def fail(err: Exception) -> NoReturn:
    """Report *err* to the operator and exit non-zero."""
    console.print(f"[red]❌ {err}[/red]")
    raise typer.Exit(code=1) from err
