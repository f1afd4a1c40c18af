from __future__ import annotations

from typing import Optional, Sequence

from nodescout.discovery.schemas import NodeIdentity, SubmissionRecord

PORT_SUFFIX_PLACEHOLDER = "{port_suffix}"
ROUTED_PORT_BASE = 10000
ROUTED_HTTP_PORT = 80


def render_override(template: str, port_suffix: int) -> str:
    # Plain substitution: any other braces in the template are left untouched.
    return template.replace(PORT_SUFFIX_PLACEHOLDER, str(port_suffix))


def resolve(
    remote_addr: str,
    control_port: int,
    submitter: Optional[str],
    override_templates: Optional[Sequence[str]] = None,
) -> NodeIdentity:
    """
    Map a submission to the identity a peer should connect to.

    Ports >= 10000 are routed: one exposed proxy multiplexes many nodes, and the
    port encodes which proxy (the ten-thousands digit, 1-based) and which node
    behind it (the remainder). When an override template exists for that proxy
    the node is reached at the rendered host on port 80.

    Examples with overrides ["n{port_suffix}.proxy-a", "n{port_suffix}.proxy-b"]:
    - 8301  -> (remote_addr, 8301)
    - 10042 -> ("n42.proxy-a", 80)
    - 20007 -> ("n7.proxy-b", 80)
    - 30001 -> (remote_addr, 30001)   no third template, falls back silently
    """
    if control_port >= ROUTED_PORT_BASE and override_templates:
        index = control_port // ROUTED_PORT_BASE - 1
        if index < len(override_templates):
            host = render_override(override_templates[index], control_port % ROUTED_PORT_BASE)
            return NodeIdentity(ip=host, port=ROUTED_HTTP_PORT, submitter=submitter)

    return NodeIdentity(ip=remote_addr, port=control_port, submitter=submitter)


def resolve_record(
    record: SubmissionRecord,
    override_templates: Optional[Sequence[str]] = None,
) -> NodeIdentity:
    return resolve(record.remote_addr, record.control_port, record.submitter, override_templates)


def stored_identity(record: SubmissionRecord) -> NodeIdentity:
    """
    Identity for a record read from the object store.

    Stored addresses carry a bare IP; anything after the first ':' is dropped
    and override templates never apply on this path.
    """
    ip = record.remote_addr.split(":", 1)[0]
    return NodeIdentity(ip=ip, port=record.control_port, submitter=record.submitter)
