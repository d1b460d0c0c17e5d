from __future__ import annotations

import argparse
import os
from pathlib import Path

from spinworks.integrations.youtube import SCOPES


def _build_flow(client_secret: str):
    from google_auth_oauthlib.flow import InstalledAppFlow

    return InstalledAppFlow.from_client_secrets_file(client_secret, SCOPES)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Authorize the upload channel and store its OAuth token.")
    parser.add_argument("--token-json", default="", help="Override YT_TOKEN_JSON")
    parser.add_argument("--port", type=int, default=0, help="Local redirect port (0 picks a free one)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None, flow_builder=_build_flow) -> int:
    args = _parse_args(argv)

    client_secret = os.environ.get("YT_CLIENT_SECRET_JSON", "configs/client_secret.json").strip()
    token_json = args.token_json or os.environ.get("YT_TOKEN_JSON", "configs/token.json").strip()

    if not Path(client_secret).exists():
        print(f"client secret not found: {client_secret}")
        return 1

    flow = flow_builder(client_secret)
    creds = flow.run_local_server(port=args.port)

    token_path = Path(token_json)
    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json(), encoding="utf-8")
    print(f"Wrote token: {token_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
