"""
Entry point for the article migration tool.

Usage::

    python main.py migrate --files-base-path /srv/legacy/files --limit 50
    python main.py migrate --update-existing --domains news_site,sports_site
    python main.py clear --yes
    python main.py load-source --csv-dir exports/legacy --database data/legacy.duckdb
"""

import argparse
import json
import sys

from article_migrator.migration_tool import ArticleMigrationTool
from article_migrator.utils.labels import split_list_option
from article_migrator.utils.logging_setup import configure_logging
from article_migrator.utils.pre_flight_checks import PreFlightCheckError

CONFIG_FILE = "config/migration_config.json"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Migrate legacy articles into the destination content store.")
    parser.add_argument("--config", default=CONFIG_FILE, help="Path of the JSON configuration file")
    parser.add_argument("--log-level", default="INFO")
    sub = parser.add_subparsers(dest="command", required=True)

    migrate = sub.add_parser("migrate", help="Migrate published articles")
    migrate.add_argument("--files-base-path", help="Local directory or http(s) URL of the legacy files")
    migrate.add_argument("--limit", type=int, default=None, help="Number of articles to migrate (0 = all)")
    migrate.add_argument("--update-existing", action="store_true", help="Update articles migrated before")
    migrate.add_argument("--domains", default="", help="Comma separated domain ids to assign")
    migrate.add_argument("--skip-canonical-domain", action="store_true")

    clear = sub.add_parser("clear", help="Delete everything migrated from the configured source")
    clear.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    load = sub.add_parser("load-source", help="Build a source database from CSV table exports")
    load.add_argument("--csv-dir", required=True)
    load.add_argument("--database", required=True)
    load.add_argument("--replace", action="store_true", help="Replace tables that already exist")
    return parser


def confirm(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def main(argv=None) -> int:
    """
    Main function to run the article migration tool.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "load-source":
        try:
            counts = ArticleMigrationTool.load_source(args.csv_dir, args.database, replace=args.replace)
        except FileNotFoundError as e:
            print(f"[ERROR] {e}")
            return 1
        print(f"[INFO] Imported tables: {json.dumps(counts)}")
        return 0

    tool = ArticleMigrationTool(config_file=args.config)

    if args.command == "clear":
        if not args.yes and not confirm(
            f"This deletes everything migrated from '{tool.connection_key}'. Continue?"
        ):
            print("[INFO] Aborted.")
            return 1
        try:
            report = tool.clear()
        except PreFlightCheckError as e:
            print(f"[ERROR] Pre-flight check failed: {e}")
            return 1
        print(f"[INFO] {report.summary()}")
        return 0

    try:
        report = tool.migrate(
            limit=args.limit,
            update_existing=args.update_existing or None,
            domains=split_list_option(args.domains) or None,
            files_base_path=args.files_base_path,
            skip_canonical_domain=args.skip_canonical_domain or None,
        )
    except PreFlightCheckError as e:
        print(f"[ERROR] Pre-flight check failed: {e}")
        return 1
    print(f"[INFO] Migration finished: {report.summary()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
