#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cross-stitch shop management commands.

Commands:
  init                Create tables and seed the catalog when it is empty
  stats               Print catalog/feedback counts and feedback statistics
  serve               Run the web server (uvicorn)
"""

import argparse
import os

from .api import prepare_store
from .config import load_settings
from .logs import setup_logging
from .repository import build_store


def cmd_init(args):
    settings = load_settings(args.config)
    setup_logging(settings.log_level)
    store = prepare_store(build_store(settings))
    try:
        stats = store.database_stats()
        print(f"Catalog items: {stats.catalog_count}")
        print(f"Feedback entries: {stats.feedback_count}")
    finally:
        store.close()


def cmd_stats(args):
    settings = load_settings(args.config)
    setup_logging(settings.log_level)
    store = build_store(settings)
    try:
        # 新库没有表时也能输出 0
        store.initialize()
        db_stats = store.database_stats()
        fb = store.feedback_statistics()
    finally:
        store.close()
    print("=== Database ===")
    print(f"Catalog items: {db_stats.catalog_count}")
    print(f"Feedback entries: {db_stats.feedback_count}")
    print("\n=== Feedback ===")
    print(f"Total: {fb.total_count}")
    print(f"Last 7 days: {fb.last_7_days_count}")
    print(f"Most recent: {fb.most_recent_display_timestamp or '(none)'}")


def cmd_serve(args):
    import uvicorn

    if args.config:
        # build_app 在 uvicorn 内部重新读取配置
        os.environ["SHOP_CONFIG"] = args.config
    settings = load_settings(args.config)
    uvicorn.run(
        "crossstitch.api:build_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )


def main(argv=None):
    parser = argparse.ArgumentParser(description="Cross-stitch shop (catalog + feedback)")
    parser.add_argument("--config", default=None, help="path to config.yaml")
    sub = parser.add_subparsers()

    p_init = sub.add_parser("init", help="create schema and seed catalog")
    p_init.set_defaults(func=cmd_init)

    p_stats = sub.add_parser("stats", help="show database statistics")
    p_stats.set_defaults(func=cmd_stats)

    p_serve = sub.add_parser("serve", help="run the web server")
    p_serve.add_argument("--host", required=False)
    p_serve.add_argument("--port", required=False, type=int)
    p_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
