import sys
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import pytest

# Ensure repo root is on sys.path so `import nodescout` works under all pytest import modes.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from botocore.exceptions import ClientError, EndpointConnectionError  # noqa: E402


class _Body:
    def __init__(self, data: bytes):
        self._data = data

    def read(self) -> bytes:
        return self._data


class _Paginator:
    def __init__(self, s3: "FakeS3"):
        self._s3 = s3

    def paginate(self, **kwargs: Any):
        self._s3.paginate_calls.append(kwargs)
        return self._pages(kwargs["Prefix"], kwargs.get("StartAfter", ""))

    def _pages(self, prefix: str, start_after: str):
        s3 = self._s3
        keys = sorted(k for k in s3.objects if k.startswith(prefix) and k > start_after)
        entries: List[Dict[str, Any]] = [{"Key": k} for k in keys] + list(s3.extra_entries)
        for i in range(0, max(1, len(entries)), s3.page_size):
            if s3.fail_on_page is not None and i // s3.page_size == s3.fail_on_page:
                raise EndpointConnectionError(endpoint_url="http://fake-s3")
            yield {"Contents": entries[i : i + s3.page_size]}


class FakeS3:
    """Just enough of a boto3 S3 client for listing, reading and writing submissions."""

    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}
        self.page_size = 1000
        self.fail_on_page: Optional[int] = None
        self.extra_entries: List[Dict[str, Any]] = []
        self.missing: Set[str] = set()
        self.delay_s = 0.0

        self.paginate_calls: List[Dict[str, Any]] = []
        self.fetched: List[str] = []
        self.max_active = 0
        self._active = 0
        self._lock = threading.Lock()

    def put_object(self, *, Bucket: str, Key: str, Body: bytes, ContentType: Optional[str] = None) -> Dict[str, Any]:
        self.objects[Key] = Body
        return {}

    def get_paginator(self, name: str) -> _Paginator:
        assert name == "list_objects_v2"
        return _Paginator(self)

    def get_object(self, *, Bucket: str, Key: str, Range: Optional[str] = None) -> Dict[str, Any]:
        with self._lock:
            self._active += 1
            self.max_active = max(self.max_active, self._active)
            self.fetched.append(Key)
        try:
            if self.delay_s:
                time.sleep(self.delay_s)
            if Key in self.missing:
                raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "gone"}}, "GetObject")
            return {"Body": _Body(self.objects[Key])}
        finally:
            with self._lock:
                self._active -= 1


class FakeLog:
    def __init__(self) -> None:
        self.messages: Dict[str, List[str]] = {"info": [], "warning": [], "debug": [], "error": []}

    def info(self, msg: str = "", *args: Any, **kwargs: Any) -> None:
        self.messages["info"].append(msg)

    def warning(self, msg: str = "", *args: Any, **kwargs: Any) -> None:
        self.messages["warning"].append(msg)

    def debug(self, msg: str = "", *args: Any, **kwargs: Any) -> None:
        self.messages["debug"].append(msg)

    def error(self, msg: str = "", *args: Any, **kwargs: Any) -> None:
        self.messages["error"].append(msg)


@pytest.fixture
def fake_s3() -> FakeS3:
    return FakeS3()


@pytest.fixture
def clean_env(monkeypatch):
    import os

    for key in list(os.environ):
        if key.startswith("NODESCOUT_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def fake_log() -> FakeLog:
    return FakeLog()


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: starts real servers on localhost ports")
