"""
Mint bearer tokens for local development and smoke tests.

Reads the shared secret from the service configuration (``JWT_SECRET``) so
that tokens validate against a running instance with the same environment.
"""

import argparse
import sys
from typing import Dict, List, Optional

from shared.config import get_config
from shared.errors import AccessLayerException

from .codec import TokenCodec


def _parse_claim(raw: str) -> tuple:
    name, sep, value = raw.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"claim must be name=value, got {raw!r}")
    return name, value


def _parse_args(argv: Optional[List[str]], default_ttl: int) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Issue a signed enterprise-auth bearer token.")
    parser.add_argument("--user-id", help="userId claim")
    parser.add_argument("--workspace-id", help="workspaceId claim")
    parser.add_argument("--region-uid", help="regionUid claim")
    parser.add_argument("--claim", action="append", type=_parse_claim, default=[], metavar="NAME=VALUE",
                        help="Additional claim, may be repeated")
    parser.add_argument("--ttl", type=int, default=default_ttl, help="Token lifetime in seconds")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    config = get_config()
    args = _parse_args(argv, config.token_ttl_seconds)

    claims: Dict[str, str] = {}
    for name, value in (("userId", args.user_id), ("workspaceId", args.workspace_id), ("regionUid", args.region_uid)):
        if value:
            claims[name] = value
    claims.update(dict(args.claim))

    try:
        codec = TokenCodec.from_config(config)
        token = codec.issue(claims, args.ttl)
    except AccessLayerException as exc:
        print(f"[issue-token] {exc.message}", file=sys.stderr)
        return 2

    print(token)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
