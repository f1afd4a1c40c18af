from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence, Set

import bittensor as bt
import requests
from pydantic import TypeAdapter, ValidationError

from nodescout.discovery.errors import ResponseParseError, TransportError
from nodescout.discovery.identity import resolve_record
from nodescout.discovery.schemas import NodeIdentity, SubmissionRecord

_SUBMISSIONS = TypeAdapter(List[SubmissionRecord])


def _get_submissions(url: str, timeout_s: float) -> List[SubmissionRecord]:
    try:
        r = requests.get(url, timeout=timeout_s)
        r.raise_for_status()
    except requests.RequestException as e:
        raise TransportError(f"GET {url} failed: {e}") from e

    try:
        data = r.json()
    except ValueError as e:
        raise ResponseParseError(f"GET {url} returned invalid JSON: {e}") from e

    try:
        return _SUBMISSIONS.validate_python(data)
    except ValidationError as e:
        raise ResponseParseError(f"GET {url} returned an unexpected shape: {e}") from e


async def fetch_online(
    url: str,
    override_templates: Optional[Sequence[str]] = None,
    *,
    timeout_s: float = 10.0,
) -> Set[NodeIdentity]:
    """Fetch the submission list from a registration endpoint. All-or-nothing."""
    records = await asyncio.to_thread(_get_submissions, url, timeout_s)
    bt.logging.debug(f"Registration endpoint returned {len(records)} submissions")

    results: Set[NodeIdentity] = set()
    for record in records:
        results.add(resolve_record(record, override_templates))
    return results
