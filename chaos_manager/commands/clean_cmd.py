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


"""clean: tear down a test cluster namespace."""

from __future__ import annotations

import typer

from chaos_manager.commands.context import fail, make_engine, open_store
from chaos_manager.config import CleanConfig, DeployConfig


def clean(
    namespace: str | None = typer.Option(
        None, "--namespace", "-n", help="Namespace to clean up (default: the tracked one)"),
) -> None:
    """Clean up resources based on namespace."""
    namespace = namespace or CleanConfig().namespace
    try:
        engine = make_engine(DeployConfig(), open_store())
        engine.cleanup(namespace)
    except RuntimeError as err:
        fail(err)
