from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from nodescout.discovery.object_store import as_utc, rfc3339_seconds, submissions_root
from nodescout.discovery.schemas import SubmissionRecord


def submission_key(prefix: str, submitter: str, now: datetime) -> str:
    """<prefix>/submissions/<YYYY-MM-DD>/<RFC3339>/<submitter>.json, time-sortable."""
    now = as_utc(now)
    return f"{submissions_root(prefix)}/{now.strftime('%Y-%m-%d')}/{rfc3339_seconds(now)}/{submitter}.json"


def publish_submission(
    s3: Any,
    bucket: str,
    prefix: str,
    record: SubmissionRecord,
    *,
    now: Optional[datetime] = None,
) -> str:
    key = submission_key(prefix.rstrip("/"), record.submitter, now or datetime.now(timezone.utc))
    s3.put_object(
        Bucket=bucket,
        Key=key,
        Body=record.model_dump_json(by_alias=True).encode("utf-8"),
        ContentType="application/json",
    )
    return key
