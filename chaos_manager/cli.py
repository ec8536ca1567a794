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


"""
cli.py - chaos-manager command line.

Commands:
    spawn             Start a testnet (dev or alicebob) in a namespace
    clean             Delete a namespace and forget its topology
    singlenodeheight  Wait for a node's chain to pass a block height

Examples:
    # Single dev node in the default namespace
    chaos-manager spawn dev

    # Two validators in a dedicated namespace
    chaos-manager spawn alicebob --namespace substrate-ci-42 --image parity/substrate:latest

    # Wait until the first tracked node passes block 10
    chaos-manager singlenodeheight --height 10

    # Tear everything down
    chaos-manager clean
"""

from __future__ import annotations

import logging
import sys

import typer

from chaos_manager import console
from chaos_manager.commands import clean_cmd, height_cmd, spawn_cmd

app = typer.Typer(
    help="Spawn, probe, and clean up Substrate test clusters on Kubernetes.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.command("spawn")(spawn_cmd.spawn)
app.command("clean")(clean_cmd.clean)
app.command("singlenodeheight")(height_cmd.single_node_height)


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
