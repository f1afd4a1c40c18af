from __future__ import annotations

import sys
from pathlib import Path

# Allow running as a script without requiring `PYTHONPATH=.`.
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import argparse
import asyncio
import json
from typing import Iterable, List, Optional

import bittensor as bt

from nodescout.discovery.config import load_discovery_env, validate_override_templates
from nodescout.discovery.errors import ConfigurationError, DiscoveryError
from nodescout.discovery.schemas import NodeIdentity
from nodescout.discovery.service import DiscoveryService


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="List the nodes currently participating in the cluster.")
    parser.add_argument(
        "--override",
        action="append",
        default=None,
        help="URL override template with a {port_suffix} placeholder; repeat in routing order. "
        "Defaults to NODESCOUT_URL_OVERRIDES.",
    )
    parser.add_argument("--json", action="store_true", help="Print the discovered set as a JSON array.")
    parser.add_argument("--watch", action="store_true", help="Keep polling instead of running one cycle.")
    parser.add_argument("--interval", type=float, default=60.0, help="Seconds between cycles with --watch.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _render(nodes: Iterable[NodeIdentity], as_json: bool) -> str:
    ordered = sorted(nodes, key=lambda n: (n.ip, n.port, n.submitter or ""))
    if as_json:
        return json.dumps([{"ip": n.ip, "port": n.port, "submitter": n.submitter} for n in ordered])
    return "\n".join(f"{n.address} {n.submitter or '-'}" for n in ordered)


async def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    if args.debug:
        bt.logging.set_debug(True)

    try:
        cfg = load_discovery_env()
        overrides = validate_override_templates(args.override) if args.override else cfg.url_overrides
        service = DiscoveryService(cfg.backend)
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        return 2

    while True:
        try:
            nodes = await service.discover_participants(overrides)
        except DiscoveryError as e:
            bt.logging.error(f"Discovery cycle failed: {e}")
            if not args.watch:
                return 1
        else:
            out = _render(nodes, args.json)
            if out:
                print(out, flush=True)
            if not args.watch:
                return 0
        await asyncio.sleep(max(1.0, args.interval))


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
