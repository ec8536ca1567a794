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


"""spawn: start a local testnet in a namespace."""

from __future__ import annotations

import typer

from chaos_manager import console
from chaos_manager.commands.context import fail, make_engine, open_store
from chaos_manager.config import DeployConfig
from chaos_manager.constants import CHAIN_ALICE_BOB

ALICE_BOB_VALIDATORS = 2


def spawn(
    chain: str | None = typer.Argument(None, help="Chain to start: dev or alicebob"),
    image: str | None = typer.Option(None, "--image", "-i", help="Image to deploy"),
    port: int | None = typer.Option(None, "--port", "-p", help="RPC port to deploy on"),
    namespace: str | None = typer.Option(
        None, "--namespace", help="Namespace to deploy to (overrides NAMESPACE)"),
    validator: int | None = typer.Option(
        None, "--validator", "-v", help="Number of validators (alicebob runs exactly 2)"),
    node: int | None = typer.Option(
        None, "--node", "-n", help="Number of extra full nodes joining the bootnode"),
) -> None:
    """Spawn a local testnet with options."""
    deploy_cfg = DeployConfig()
    overrides: dict = {}
    if image is not None:
        overrides["image"] = image
    if port is not None:
        overrides["port"] = port
    if namespace is not None:
        overrides["namespace"] = namespace
    if overrides:
        deploy_cfg = deploy_cfg.model_copy(update=overrides)

    if validator is not None and (chain != CHAIN_ALICE_BOB or validator != ALICE_BOB_VALIDATORS):
        console.print(
            f"[yellow]⚠️  --validator {validator} ignored: only the fixed alice/bob pair is supported[/yellow]")

    try:
        engine = make_engine(deploy_cfg, open_store())
        engine.spawn(
            chain,
            deploy_cfg.image,
            deploy_cfg.port,
            deploy_cfg.namespace,
            full_nodes=node or 0,
        )
    except RuntimeError as err:
        fail(err)
