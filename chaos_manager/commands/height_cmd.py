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


"""singlenodeheight: check that a node produces blocks past a height."""

from __future__ import annotations

import typer

from chaos_manager.commands.context import fail, make_probe, open_store
from chaos_manager.config import ProbeConfig


def single_node_height(
    port: int | None = typer.Option(None, "--port", "-p", help="RPC port of the node"),
    url: str | None = typer.Option(None, "--url", "-u", help="Connect url, e.g. http://10.0.0.5"),
    timeout: int | None = typer.Option(
        None, "--timeout", "-t", help="Wait time in milliseconds before giving up"),
    height: int | None = typer.Option(None, "--height", help="Height the chain must exceed"),
    pod: str | None = typer.Option(None, "--pod", help="Pod to test (default: first tracked node)"),
    namespace: str | None = typer.Option(
        None, "--namespace", help="Namespace to test (default: the tracked one)"),
) -> None:
    """Test if the targeted node is producing blocks above a certain height."""
    probe_cfg = ProbeConfig()
    overrides: dict = {}
    if timeout is not None:
        overrides["timeout_ms"] = timeout
    if height is not None:
        overrides["height"] = height
    if overrides:
        probe_cfg = probe_cfg.model_copy(update=overrides)

    try:
        probe = make_probe(probe_cfg, open_store())
        target = probe.resolve_target(url=url, port=port, namespace=namespace, pod=pod)
        probe.check_height(target, probe_cfg.height, probe_cfg.timeout_ms)
    except RuntimeError as err:
        fail(err)
