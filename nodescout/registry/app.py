from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from nodescout.discovery.schemas import SubmissionRecord
from nodescout.registry.storage import InMemorySubmissions
from nodescout.utils.env import _env_int, _env_str


TTL_SECONDS = _env_int("NODESCOUT_REGISTRY_TTL_SECONDS", 1200)
_CORS_ORIGINS_RAW = _env_str("NODESCOUT_REGISTRY_CORS_ORIGINS", "*") or "*"
if _CORS_ORIGINS_RAW == "*":
    CORS_ORIGINS = ["*"]
else:
    CORS_ORIGINS = [x.strip() for x in _CORS_ORIGINS_RAW.split(",") if x.strip()]


class SubmitRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    submitter: str
    control_port: int = Field(alias="graphql_control_port", ge=0, le=65535, strict=True)
    # Defaults to the address the request came from.
    remote_addr: Optional[str] = None


app = FastAPI(title="nodescout Submission Registry", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
store = InMemorySubmissions(ttl_seconds=TTL_SECONDS)


@app.get("/healthz")
def healthz():
    return {"ok": True, "ttl_seconds": TTL_SECONDS}


@app.post("/submit")
def submit(req: SubmitRequest, request: Request):
    remote_addr = req.remote_addr or (request.client.host if request.client else "")
    store.upsert(
        SubmissionRecord(
            remote_addr=remote_addr,
            submitter=req.submitter,
            control_port=req.control_port,
        )
    )
    store.prune()
    return {"ok": True}


@app.get("/submissions")
def submissions() -> List[dict]:
    return [r.model_dump(by_alias=True) for r in store.list_active()]
