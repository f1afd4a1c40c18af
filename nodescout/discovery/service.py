from __future__ import annotations

from typing import Any, Optional, Sequence, Set

import bittensor as bt
import boto3
from botocore.exceptions import BotoCoreError

from nodescout.discovery.config import Backend, ObjectStoreBackend, OnlineBackend, load_discovery_env
from nodescout.discovery.errors import ConfigurationError
from nodescout.discovery.object_store import ObjectStoreConfig, discover_object_store
from nodescout.discovery.online import fetch_online
from nodescout.discovery.schemas import NodeIdentity


def _build_s3_client(backend: ObjectStoreBackend) -> Any:
    # Credentials come from boto3's default chain (env, shared config, instance role).
    try:
        return boto3.client(
            "s3",
            endpoint_url=backend.endpoint_url,
            region_name=backend.region,
        )
    except (BotoCoreError, ValueError) as e:
        raise ConfigurationError(f"[nodescout] Could not build S3 client for bucket {backend.bucket!r}: {e}") from e


class DiscoveryService:
    """Discovers participating nodes through the backend chosen at construction."""

    def __init__(self, backend: Backend, *, s3_client: Any = None) -> None:
        self.backend = backend
        self._store: Optional[ObjectStoreConfig] = None

        if isinstance(backend, OnlineBackend):
            if not backend.url:
                raise ConfigurationError("[nodescout] Online backend requires a non-empty URL.")
        elif isinstance(backend, ObjectStoreBackend):
            if not backend.bucket or not backend.prefix:
                raise ConfigurationError("[nodescout] Object-store backend requires a bucket and a prefix.")
            self._store = ObjectStoreConfig(
                s3=s3_client if s3_client is not None else _build_s3_client(backend),
                bucket=backend.bucket,
                prefix=backend.prefix,
                max_concurrent_fetches=backend.max_concurrent_fetches,
                max_listed_objects=backend.max_listed_objects,
            )
        else:
            raise ConfigurationError(f"[nodescout] Unsupported discovery backend: {backend!r}")

        bt.logging.info(f"Discovery service using {self.mode} backend")

    @classmethod
    def from_env(cls) -> "DiscoveryService":
        return cls(load_discovery_env().backend)

    @property
    def mode(self) -> str:
        return self.backend.kind

    async def discover_participants(
        self,
        override_templates: Optional[Sequence[str]] = None,
    ) -> Set[NodeIdentity]:
        """
        Run one discovery cycle.

        Override templates only affect the online backend; stored submissions
        are taken at face value.
        """
        if self._store is not None:
            nodes = await discover_object_store(self._store)
        else:
            nodes = await fetch_online(self.backend.url, override_templates, timeout_s=self.backend.timeout_s)
        bt.logging.info(f"Discovered {len(nodes)} participants")
        return nodes
