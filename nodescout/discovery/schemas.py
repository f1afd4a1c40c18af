from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SubmissionRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Address the node was seen at: "ip" or "ip:port".
    remote_addr: str
    # Submitter identity (public key).
    submitter: str
    # Port of the node's control interface. Values >= 10000 are routed ports
    # (see nodescout.discovery.identity.resolve).
    control_port: int = Field(alias="graphql_control_port", ge=0, le=65535, strict=True)


@dataclass(frozen=True)
class NodeIdentity:
    """A reachable node. Equality and hashing cover (ip, port, submitter)."""

    ip: str
    port: int
    submitter: Optional[str] = None

    @property
    def address(self) -> str:
        return f"{self.ip}:{self.port}"
