"""
Entry point for the Tumblr to Ghost migration tool.

Examples::

    python main.py myblog.tumblr.com
    python main.py myblog.tumblr.com --output ./ghost-export.json --limit 100
    python main.py --input dumps/myblog.json --content-format lexical --dry-run
"""

import argparse
import os
import sys
from typing import List, Optional

from ghostify.exporters.ghost_exporter import LAYOUTS
from ghostify.migration_tool import TumblrMigrationTool
from ghostify.parsers.content_schema import CONTENT_FORMATS
from ghostify.parsers.renderers import GALLERY_SCOPES
from ghostify.utils.errors import ConfigError, ExportValidationError, PreFlightCheckError
from ghostify.utils.pre_flight_checks import run_tumblr_pre_flight_checks

CONFIG_FILE = "config/migration_config.json"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments.

    Options left out fall back to the config file, then to the environment
    (``TUMBLR_API_KEY``, ``TUMBLR_BLOG_NAME``), then to built-in defaults.
    """
    # Minimal first parser to pick up the config path before the rest
    base = argparse.ArgumentParser(add_help=False)
    base.add_argument("--config", default=CONFIG_FILE, help="Path to the JSON configuration file")
    base_args, remaining = base.parse_known_args(argv)

    p = argparse.ArgumentParser(
        parents=[base],
        description="Migrate a Tumblr blog's public posts into a Ghost import file",
    )
    p.add_argument("blog", nargs="?", default=None, help="Tumblr blog name, e.g. myblog.tumblr.com")
    p.add_argument("--output", "-o", default=None, help="Import file to write (default ./<blog>.json)")
    p.add_argument("--limit", "-l", type=int, default=None, help="Maximum number of posts to migrate")
    p.add_argument("--input", dest="input_path", default=None, help="Read posts from a saved API JSON dump instead of the API")
    p.add_argument("--content-format", choices=CONTENT_FORMATS, default=None, help="Content field written for each post")
    p.add_argument("--layout", choices=LAYOUTS, default=None, help="Top-level shape of the import file")
    p.add_argument("--gallery-scope", choices=GALLERY_SCOPES, default=None, help="Post types whose photo rows become gallery cards")
    p.add_argument("--dry-run", action="store_true", help="Build and validate the export without writing it")
    p.add_argument("--skip-preflight", action="store_true", help="Do not check the API key and blog before fetching")
    return p.parse_args(remaining, namespace=base_args)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function to run the Tumblr to Ghost migration tool.
    """
    args = parse_args(argv)

    config_file = args.config
    if config_file == CONFIG_FILE and not os.path.exists(config_file):
        config_file = None

    overrides = {
        "tumblr": {"blog_name": args.blog},
        "migration": {
            "limit": args.limit,
            "content_format": args.content_format,
            "layout": args.layout,
            "gallery_scope": args.gallery_scope,
        },
    }

    try:
        tool = TumblrMigrationTool(overrides, config_file=config_file)
    except ConfigError as e:
        print(f"[ERROR] {e}")
        return 1

    tool.log_message("Starting Tumblr to Ghost migration.")
    blog_name = tool.config["tumblr"].get("blog_name")

    if not args.input_path and not args.skip_preflight:
        try:
            run_tumblr_pre_flight_checks(tool.config, blog_name)
        except PreFlightCheckError as e:
            tool.log_message(f"Pre-flight check failed: {e}", "ERROR")
            return 1

    try:
        result = tool.run(blog_name, output=args.output, input_path=args.input_path, dry_run=args.dry_run)
    except ConfigError as e:
        tool.log_message(str(e), "ERROR")
        return 1
    except ExportValidationError as e:
        tool.log_message(f"Export not written: {len(e.violations)} validation error(s).", "ERROR")
        return 1
    except (OSError, ValueError) as e:
        tool.log_message(f"Migration failed: {e}", "ERROR")
        return 1

    if result is not None:
        tool.log_message(f"Import this file in Ghost Admin → Settings → Labs → Import content: {result.path}")
    tool.log_message("Migration finished.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
