from __future__ import annotations

from typing import Optional

import requests


class RegistrationClient:
    def __init__(
        self,
        registry_url: str,
        *,
        timeout_s: float = 5.0,
    ) -> None:
        self.registry_url = registry_url.rstrip("/")
        self.timeout_s = timeout_s

    def register(
        self,
        *,
        submitter: str,
        control_port: int,
        remote_addr: Optional[str] = None,
    ) -> None:
        payload = {
            "submitter": submitter,
            "graphql_control_port": int(control_port),
        }
        if remote_addr:
            payload["remote_addr"] = remote_addr
        requests.post(
            f"{self.registry_url}/submit",
            json=payload,
            timeout=self.timeout_s,
        ).raise_for_status()

    def list_submissions(self) -> list[dict]:
        r = requests.get(f"{self.registry_url}/submissions", timeout=self.timeout_s)
        r.raise_for_status()
        data = r.json()
        return data if isinstance(data, list) else []
