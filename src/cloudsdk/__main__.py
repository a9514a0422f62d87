from __future__ import annotations

import argparse
import asyncio

from cloudsdk.app import run_app


def main() -> None:
    parser = argparse.ArgumentParser(description="cloudsdk command line")
    parser.add_argument(
        "--service",
        choices=["databases", "users", "secrets", "deleted-secrets", "entities"],
        default="databases",
        help="databases/users: document database feeds; secrets/deleted-secrets: vault listings; entities: text analytics",
    )
    parser.add_argument(
        "--database",
        default=None,
        help="Database id whose users to list (required for --service users)",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Maximum items per page requested from the server (default: server decides)",
    )
    parser.add_argument(
        "--text",
        action="append",
        default=None,
        help="Document text to recognize entities in (repeatable, used with --service entities)",
    )
    parser.add_argument(
        "--drain",
        action="store_true",
        help="Collect every page before printing instead of printing page by page",
    )
    args = parser.parse_args()

    asyncio.run(
        run_app(
            service=args.service,
            database=args.database,
            page_size=args.page_size,
            drain=args.drain,
            texts=args.text,
        )
    )


if __name__ == "__main__":
    main()
