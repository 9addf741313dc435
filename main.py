"""Command line entrypoint: run one outfit recommendation against the local wardrobe."""

from __future__ import annotations

import argparse
import json

from curator_app.app import WardrobeCuratorApp
from curator_app.auth import AuthContext
from curator_app.config import CuratorConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Recommend an outfit from the stored wardrobe")
    parser.add_argument("query", help="Free-text request, e.g. 'formal office look'")
    parser.add_argument("--limit", type=int, default=10, help="Number of candidates to consider (1-50).")
    parser.add_argument("--user-id", default=None, help="Caller identity when the catalog is owner-scoped.")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    config = CuratorConfig.from_env()
    app = WardrobeCuratorApp(config)
    auth = AuthContext(user_id=args.user_id) if args.user_id else None
    response = app.recommend({"query": args.query, "limit": args.limit}, auth)
    print(json.dumps(response, indent=2))


if __name__ == "__main__":
    main()
