from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Union

from nodescout.discovery.errors import ConfigurationError
from nodescout.discovery.identity import PORT_SUFFIX_PLACEHOLDER
from nodescout.utils.env import _env_float, _env_int, _env_list, _env_str


@dataclass(frozen=True)
class OnlineBackend:
    url: str
    timeout_s: float = 10.0
    kind: Literal["online"] = field(default="online", init=False)


@dataclass(frozen=True)
class ObjectStoreBackend:
    bucket: str
    prefix: str
    endpoint_url: Optional[str] = None
    region: Optional[str] = None
    max_concurrent_fetches: int = 32
    max_listed_objects: int = 10_000
    kind: Literal["object_store"] = field(default="object_store", init=False)


Backend = Union[OnlineBackend, ObjectStoreBackend]


@dataclass(frozen=True)
class DiscoveryEnvConfig:
    backend: Backend
    url_overrides: List[str] = field(default_factory=list)


def _fail(msg: str) -> None:
    raise ConfigurationError(f"[nodescout] {msg}")


def validate_override_templates(templates: List[str]) -> List[str]:
    for t in templates:
        if PORT_SUFFIX_PLACEHOLDER not in t:
            _fail(f"URL override template {t!r} is missing the {PORT_SUFFIX_PLACEHOLDER} placeholder.")
    return list(templates)


def load_discovery_env() -> DiscoveryEnvConfig:
    """
    Load discovery configuration from env/.env with strict validation.

    A non-empty NODESCOUT_ONLINE_URL selects the registration endpoint;
    otherwise the S3 bucket/prefix pair is required. Exactly one backend is
    ever selected.
    """
    try:
        overrides = validate_override_templates(_env_list("NODESCOUT_URL_OVERRIDES"))

        online_url = _env_str("NODESCOUT_ONLINE_URL", "")
        if online_url:
            if not online_url.startswith("http"):
                _fail(f"NODESCOUT_ONLINE_URL must be http(s). Got: {online_url!r}")
            timeout_s = _env_float("NODESCOUT_ONLINE_TIMEOUT_S", 10.0)
            if timeout_s <= 0:
                _fail(f"NODESCOUT_ONLINE_TIMEOUT_S must be positive. Got: {timeout_s!r}")
            return DiscoveryEnvConfig(
                backend=OnlineBackend(url=online_url, timeout_s=timeout_s),
                url_overrides=overrides,
            )

        bucket = _env_str("NODESCOUT_S3_BUCKET", "")
        prefix = _env_str("NODESCOUT_S3_PREFIX", "").rstrip("/")
        if not bucket and not prefix:
            _fail("No discovery backend configured: set NODESCOUT_ONLINE_URL or NODESCOUT_S3_BUCKET/NODESCOUT_S3_PREFIX.")
        if not bucket:
            _fail("Missing required env var: NODESCOUT_S3_BUCKET (required when NODESCOUT_ONLINE_URL is unset).")
        if not prefix:
            _fail("Missing required env var: NODESCOUT_S3_PREFIX (required when NODESCOUT_ONLINE_URL is unset).")

        concurrency = max(1, min(256, _env_int("NODESCOUT_MAX_CONCURRENT_FETCHES", 32)))
        max_listed = max(1, _env_int("NODESCOUT_MAX_LISTED_OBJECTS", 10_000))

        return DiscoveryEnvConfig(
            backend=ObjectStoreBackend(
                bucket=bucket,
                prefix=prefix,
                endpoint_url=_env_str("NODESCOUT_S3_ENDPOINT_URL", "") or None,
                region=_env_str("NODESCOUT_S3_REGION", "") or None,
                max_concurrent_fetches=int(concurrency),
                max_listed_objects=int(max_listed),
            ),
            url_overrides=overrides,
        )
    except ValueError as e:
        raise ConfigurationError(f"[nodescout] Invalid numeric env var: {e}") from e
