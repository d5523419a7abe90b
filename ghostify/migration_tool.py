"""
High-level orchestration of the Tumblr → Ghost migration.

This module defines a :class:`TumblrMigrationTool` class that ties
together the extractors, transformer, exporter and utilities into a
complete pipeline: fetch a blog's posts from the Tumblr API (or read a
saved dump), transform each post, assemble and validate the Ghost import
document, write it, and optionally generate a redirect CSV.

Configuration is supplied via a JSON file path or directly as a
dictionary (see :func:`ghostify.utils.config.load_config`).  The
``tumblr`` section must include ``api_key`` for network fetches; the
``migration`` section selects the content format, layout and gallery
handling.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from ghostify.exporters.ghost_exporter import ExportResult, GhostExporter
from ghostify.extractors.tumblr_extractor import extract_posts_from_json, fetch_all_posts, parse_post
from ghostify.models.ghost_post import GhostPost
from ghostify.parsers.renderers import is_supported
from ghostify.transformers.post_transformer import PostTransformer, TransformOptions
from ghostify.utils.config import author_from_config, load_config, sanitize_blog_name, validate_config
from ghostify.utils.errors import ConfigError, ExportValidationError, report_error, report_ok
from ghostify.utils.redirects import generate_redirects_csv


class TumblrMigrationTool:
    """
    Encapsulates all state and behavior required to migrate the posts of
    one Tumblr blog into a Ghost import file.  Detailed success and failure
    information is recorded using the :mod:`ghostify.utils.errors` module.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, *, config_file: Optional[str] = None) -> None:
        self.config = load_config(config_file, overrides=config)
        validate_config(self.config, require_api_key=False)

        migration = self.config["migration"]
        self.report_dir: str = migration["report_dir"]
        self.author = author_from_config(self.config)
        self.transformer = PostTransformer(
            self.author,
            TransformOptions(
                content_format=migration["content_format"],
                gallery_scope=migration["gallery_scope"],
            ),
        )
        self.exporter = GhostExporter(
            self.author,
            version=migration["ghost_version"],
            layout=migration["layout"],
            content_format=migration["content_format"],
            import_tag=migration["import_tag"],
        )

    def log_message(self, message: str, level: str = "INFO") -> None:
        print(f"[{level}] {message}")
        # Append to log file
        os.makedirs(self.report_dir, exist_ok=True)
        with open(os.path.join(self.report_dir, "migration.log"), "a", encoding="utf-8") as f:
            f.write(f"{level}: {message}\n")

    def fetch_posts(self, blog_name: str) -> List[Dict[str, Any]]:
        """Fetch up to ``migration.limit`` raw posts, keeping whatever arrived before a failure."""
        validate_config(self.config, require_api_key=True)
        limit = int(self.config["migration"]["limit"])
        self.log_message(f"Fetching up to {limit} posts from {blog_name}")

        result = fetch_all_posts(self.config["tumblr"], blog_name, limit)
        if not result.complete:
            report_error("FETCH_FAILED", {"id": blog_name}, result.error, report_dir=self.report_dir)
            self.log_message(
                f"Fetching stopped early: {result.error}. Continuing with {len(result.posts)} posts.",
                "WARNING",
            )
        self.log_message(f"Fetched {len(result.posts)} posts from {blog_name}")
        return result.posts

    def load_posts(self, input_path: str) -> List[Dict[str, Any]]:
        self.log_message(f"Reading posts from {input_path}")
        records = extract_posts_from_json(input_path)
        limit = self.config["migration"].get("limit")
        if limit is not None:
            records = records[: int(limit)]
        return records

    def transform_posts(self, records: List[Any]) -> List[GhostPost]:
        """
        Transform raw post records in order.  A record that cannot be read
        or transformed is reported and skipped; the rest of the run goes on.
        """
        ghost_posts: List[GhostPost] = []
        for index, record in enumerate(records):
            try:
                post = parse_post(record, index)
            except ValueError as e:
                report_error("TRANSFORM_FAILED", record if isinstance(record, dict) else {}, e, report_dir=self.report_dir)
                self.log_message(str(e), "ERROR")
                continue

            if not is_supported(post.type):
                report_error("UNSUPPORTED_TYPE", post, report_dir=self.report_dir)
                self.log_message(f"Post {post.id} has unsupported type '{post.type}', rendering a placeholder", "WARNING")

            try:
                ghost_post = self.transformer.transform(post)
            except Exception as e:
                report_error("TRANSFORM_FAILED", post, e, report_dir=self.report_dir)
                self.log_message(f"Failed to transform post {post.id}: {e}", "ERROR")
                continue

            ghost_posts.append(ghost_post)
            report_ok("POST_TRANSFORMED", ghost_post, {"source_id": post.id, "type": post.type}, report_dir=self.report_dir)
        return ghost_posts

    def export(self, posts: List[GhostPost], output_path: str, *, dry_run: bool = False) -> Optional[ExportResult]:
        """
        Validate and write the import file.  With ``dry_run`` the document is
        built and validated but nothing is written.

        :raises ExportValidationError: when the document fails validation.
        """
        unique, duplicates = self.exporter.dedupe_posts(posts)
        for duplicate in duplicates:
            report_error("DUPLICATE_POST", duplicate, report_dir=self.report_dir)
        unique = self.exporter.assign_unique_slugs(unique)

        try:
            if dry_run:
                self.exporter.export_to_string(unique)
                self.log_message(f"Dry-run: would write {len(unique)} posts to {output_path}")
                return None
            result = self.exporter.export_to_file(
                unique, output_path, backup=bool(self.config["migration"]["backup"])
            )
        except ExportValidationError as e:
            for violation in e.violations:
                self.log_message(str(violation), "ERROR")
            report_error("VALIDATION_FAILED", {"id": output_path}, e, report_dir=self.report_dir)
            raise

        if result.backup_path:
            self.log_message(f"Existing file backed up to {result.backup_path}")
        data = result.document.get("data") or result.document["db"][0]["data"]
        report_ok(
            "EXPORT_WRITTEN",
            {"id": output_path},
            {"path": output_path, "posts": len(data["posts"]), "tags": len(data["tags"])},
            report_dir=self.report_dir,
        )
        self.log_message(f"Wrote {len(data['posts'])} posts and {len(data['tags'])} tags to {output_path}")

        site_url = self.config["migration"].get("ghost_site_url")
        if site_url:
            csv_path = generate_redirects_csv(
                unique, ghost_site_url=site_url, out_path=os.path.join(self.report_dir, "redirect_map.csv")
            )
            self.log_message(f"Redirect CSV generated at {csv_path}")
        return result

    def default_output(self, blog_name: Optional[str], input_path: Optional[str]) -> str:
        configured = self.config["migration"].get("output")
        if configured:
            return configured
        if blog_name:
            return os.path.join(".", f"{sanitize_blog_name(blog_name)}.json")
        stem = os.path.splitext(os.path.basename(input_path or ""))[0]
        return os.path.join(".", f"{sanitize_blog_name(stem)}-ghost.json")

    def run(
        self,
        blog_name: Optional[str] = None,
        *,
        output: Optional[str] = None,
        input_path: Optional[str] = None,
        dry_run: bool = False,
    ) -> Optional[ExportResult]:
        """
        Fetch (or read), transform, validate and write.

        :raises ConfigError: when neither a blog name nor an input file is known.
        :raises ExportValidationError: when the assembled document is invalid.
        """
        blog_name = blog_name or self.config["tumblr"].get("blog_name") or None
        if input_path:
            records = self.load_posts(input_path)
        elif blog_name:
            records = self.fetch_posts(blog_name)
        else:
            raise ConfigError("No Tumblr blog name given. Pass one or set TUMBLR_BLOG_NAME.")

        if not records:
            self.log_message("No posts found.", "WARNING")

        ghost_posts = self.transform_posts(records)
        self.log_message(f"Transformed {len(ghost_posts)} of {len(records)} posts")

        output_path = output or self.default_output(blog_name, input_path)
        return self.export(ghost_posts, output_path, dry_run=dry_run)
