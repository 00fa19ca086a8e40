from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Sequence

from .domain.exceptions import ValidationError
from .integrations.common.verifier_factory import create_token_issuer, create_token_verifier
from .settings import settings_from_env


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pkg-jwt",
        description="Sign and verify HMAC tokens with the secret from JWT_SECRET",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level for pkg_jwt (default: WARNING).",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sign = sub.add_parser("sign", help="Issue a token for the given claims.")
    sign.add_argument(
        "--claims",
        "-c",
        default="{}",
        help="Claims as a JSON object, e.g. '{\"sub\": \"svc-a\", \"exp\": 1700000000}'.",
    )
    sign.add_argument(
        "--alg",
        help="Override the signing algorithm (default from env JWT_ALGORITHM).",
    )

    verify = sub.add_parser("verify", help="Verify a token and print its claims.")
    verify.add_argument("token", help="Compact token to verify.")

    return parser.parse_args(args=argv)


def _sign(args: argparse.Namespace) -> dict[str, Any]:
    settings = settings_from_env()
    if args.alg:
        settings.algorithm = args.alg

    claims = json.loads(args.claims)
    if not isinstance(claims, dict):
        raise ValueError("--claims must be a JSON object")

    token = create_token_issuer(settings).execute(claims)
    return {"token": token}


def _verify(args: argparse.Namespace) -> dict[str, Any]:
    verifier = create_token_verifier(settings_from_env())
    token = verifier.verify(args.token)
    return {"header": token.header, "claims": token.claims.to_dict()}


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        summary = _sign(args) if args.command == "sign" else _verify(args)
    except ValidationError as exc:
        json.dump({"ok": False, "error": str(exc), "errors": exc.flag_names}, sys.stdout, indent=2)
        sys.stdout.write("\n")
        raise SystemExit(1) from exc
    except Exception as exc:  # noqa: BLE001
        json.dump({"ok": False, "error": str(exc)}, sys.stdout, indent=2)
        sys.stdout.write("\n")
        raise

    json.dump({"ok": True, **summary}, sys.stdout, indent=2)
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
