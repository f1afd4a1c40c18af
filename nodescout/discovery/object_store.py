from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Deque, Dict, List, Optional, Set

import bittensor as bt
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from nodescout.discovery.errors import ListingError, ObjectFetchError
from nodescout.discovery.identity import stored_identity
from nodescout.discovery.schemas import NodeIdentity, SubmissionRecord

# Submissions older than this are not considered participating.
LOOKBACK = timedelta(minutes=20)
# Same cap the writers agree on; larger bodies are truncated and fail to parse.
MAX_OBJECT_BYTES = 1_000_000_000


@dataclass(frozen=True)
class ObjectStoreConfig:
    # boto3 S3 client (or anything with get_paginator/get_object).
    s3: Any
    bucket: str
    prefix: str
    max_concurrent_fetches: int = 32
    max_listed_objects: int = 10_000


def as_utc(t: datetime) -> datetime:
    # Naive datetimes are taken to already be UTC.
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def rfc3339_seconds(t: datetime) -> str:
    return as_utc(t).strftime("%Y-%m-%dT%H:%M:%SZ")


def submissions_root(prefix: str) -> str:
    return f"{prefix}/submissions"


def listing_offset(prefix: str, t: datetime) -> str:
    """
    Listing start key for submissions written after `t`.

    Submission keys begin with <date>/<RFC3339 timestamp>, so they sort by
    time and everything lexicographically after this key is newer than `t`.
    """
    t = as_utc(t)
    return f"{submissions_root(prefix)}/{t.strftime('%Y-%m-%d')}/{rfc3339_seconds(t)}"


def _entry_key(entry: Dict[str, Any]) -> str:
    key = entry.get("Key") if isinstance(entry, dict) else None
    if not isinstance(key, str) or not key:
        raise ListingError(f"listing entry without a key: {entry!r}")
    if key.endswith("/"):
        raise ListingError(f"listing entry is a folder marker: {key}")
    return key


def _list_candidates(store: ObjectStoreConfig, offset: str) -> List[str]:
    # Keys arrive oldest first; only the newest `max_listed_objects` are held.
    keys: Deque[str] = deque(maxlen=max(1, store.max_listed_objects))
    listed = 0
    paginator = store.s3.get_paginator("list_objects_v2")
    pages = paginator.paginate(
        Bucket=store.bucket,
        Prefix=f"{submissions_root(store.prefix)}/",
        StartAfter=offset,
    )
    try:
        for page in pages:
            for entry in page.get("Contents", []) or []:
                try:
                    keys.append(_entry_key(entry))
                except ListingError as e:
                    bt.logging.warning(f"Got error when listing objects: {e}")
                    continue
                listed += 1
    except (BotoCoreError, ClientError) as e:
        # No continuation token past a failed page: keep what was listed so far.
        bt.logging.warning(f"Got error when listing objects, listing truncated at {listed}: {e}")
    if listed > len(keys):
        bt.logging.warning(
            f"Listed {listed} objects, keeping the newest {len(keys)}; older submissions were skipped"
        )
    return list(keys)


def _get_record(store: ObjectStoreConfig, key: str) -> SubmissionRecord:
    try:
        resp = store.s3.get_object(Bucket=store.bucket, Key=key, Range=f"bytes=0-{MAX_OBJECT_BYTES - 1}")
        body = resp["Body"].read()
    except (BotoCoreError, ClientError, OSError) as e:
        raise ObjectFetchError(key, f"fetch failed: {e}") from e

    try:
        return SubmissionRecord.model_validate_json(body)
    except ValidationError as e:
        raise ObjectFetchError(key, f"invalid submission: {e.error_count()} error(s)") from e


async def discover_object_store(
    store: ObjectStoreConfig,
    *,
    now: Optional[datetime] = None,
) -> Set[NodeIdentity]:
    """
    Identities of every node that wrote a submission within the lookback window.

    A bad listing entry or a bad object is logged and skipped; it never fails
    the call.
    """
    cutoff = (now or datetime.now(timezone.utc)) - LOOKBACK
    offset = listing_offset(store.prefix, cutoff)

    bt.logging.info("Obtaining list of objects in bucket...")
    candidates = await asyncio.to_thread(_list_candidates, store, offset)
    bt.logging.info(f"Results count {len(candidates)}")
    candidates.reverse()

    sem = asyncio.Semaphore(max(1, store.max_concurrent_fetches))

    async def _fetch(key: str) -> Optional[SubmissionRecord]:
        async with sem:
            try:
                return await asyncio.to_thread(_get_record, store, key)
            except ObjectFetchError as e:
                bt.logging.warning(f"Failure when fetching object: {e}")
                return None
            except Exception as e:
                # Any other client fault still only costs this one object.
                bt.logging.warning(f"Failure when fetching object: {key}: {type(e).__name__}: {e}")
                return None

    records = await asyncio.gather(*(_fetch(key) for key in candidates))

    results: Set[NodeIdentity] = set()
    for record in records:
        if record is not None:
            results.add(stored_identity(record))
    return results
