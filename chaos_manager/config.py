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


"""Configuration classes and config models."""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chaos_manager.constants import (
    DEFAULT_DESIRED_HEIGHT,
    DEFAULT_HEIGHT_TIMEOUT_MS,
    DEFAULT_IMAGE,
    DEFAULT_NAMESPACE,
    DEFAULT_RPC_PORT,
    DEFAULT_RPC_TIMEOUT_SECONDS,
    DEFAULT_TOPOLOGY_FILE,
    FALSE_FLAG_VALUES,
    HEIGHT_POLL_INTERVAL_SECONDS,
    READY_POLL_INTERVAL_SECONDS,
)


# ============================================================================
# Configuration classes
# ============================================================================

class DeployConfig(BaseSettings):
    """Deployment configuration, auto-loaded from CHAOS_* env vars.

    ``NAMESPACE`` and ``KEEP_NAMESPACE`` are honoured without the prefix so
    existing CI jobs keep working.

    Attributes:
        namespace: Kubernetes namespace holding the test cluster.
        image: Substrate node image to deploy.
        port: RPC port exposed by each node container.
        ready_poll_interval_seconds: Delay between pod readiness checks.
        ready_max_attempts: Cap on readiness checks, or None to poll forever.
        keep_namespace: When set, namespace deletion becomes a no-op.
    """

    model_config = SettingsConfigDict(env_prefix="CHAOS_", extra="ignore", populate_by_name=True)

    namespace: str = Field(
        default=DEFAULT_NAMESPACE,
        validation_alias=AliasChoices("CHAOS_NAMESPACE", "NAMESPACE"),
    )
    image: str = DEFAULT_IMAGE
    port: int = Field(default=DEFAULT_RPC_PORT, ge=1, le=65535)
    ready_poll_interval_seconds: float = Field(default=READY_POLL_INTERVAL_SECONDS, ge=0)
    ready_max_attempts: int | None = Field(default=None, ge=1)
    keep_namespace: bool = Field(
        default=False,
        validation_alias=AliasChoices("CHAOS_KEEP_NAMESPACE", "KEEP_NAMESPACE"),
    )

    @field_validator("keep_namespace", mode="before")
    @classmethod
    def _flag_is_set(cls, value):
        # Empty or explicitly "off" values leave deletion enabled.
        if isinstance(value, str):
            return value.strip().lower() not in FALSE_FLAG_VALUES
        return value


class CleanConfig(BaseSettings):
    """Teardown configuration, auto-loaded from CHAOS_* env vars.

    Unlike :class:`DeployConfig` there is no default namespace: when neither
    the CLI nor the environment names one, the tracked namespace is cleaned.

    Attributes:
        namespace: Namespace to delete, or None for the tracked one.
    """

    model_config = SettingsConfigDict(env_prefix="CHAOS_", extra="ignore", populate_by_name=True)

    namespace: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CHAOS_NAMESPACE", "NAMESPACE"),
    )


class ProbeConfig(BaseSettings):
    """Chain height probe configuration, auto-loaded from CHAOS_* env vars.

    Attributes:
        height: Block height the chain must exceed.
        timeout_ms: Wall-clock budget for the whole poll, in milliseconds.
        poll_interval_seconds: Delay between height requests.
        forward_port: Local and remote port used when tunnelling to a pod.
        rpc_timeout_seconds: Per-request HTTP timeout.
    """

    model_config = SettingsConfigDict(env_prefix="CHAOS_", extra="ignore")

    height: int = Field(default=DEFAULT_DESIRED_HEIGHT, ge=0)
    timeout_ms: int = Field(default=DEFAULT_HEIGHT_TIMEOUT_MS, ge=0)
    poll_interval_seconds: float = Field(default=HEIGHT_POLL_INTERVAL_SECONDS, ge=0)
    forward_port: int = Field(default=DEFAULT_RPC_PORT, ge=1, le=65535)
    rpc_timeout_seconds: float = Field(default=DEFAULT_RPC_TIMEOUT_SECONDS, gt=0)


class StoreConfig(BaseSettings):
    """Topology persistence configuration, auto-loaded from CHAOS_* env vars.

    Attributes:
        topology_file: JSON file holding the active topology.
    """

    model_config = SettingsConfigDict(env_prefix="CHAOS_", extra="ignore")

    topology_file: Path = DEFAULT_TOPOLOGY_FILE
