"""
Assembly, validation and writing of the Ghost import file.

:class:`GhostExporter` takes the transformed posts of a run and builds the
document Ghost's importer (Labs → Import content) accepts: the posts, the
tags and the single import author as top-level collections plus the join
tables that connect them.  The document is validated before anything is
written; a failed validation lists every problem at once and leaves the
output path untouched.

Two layouts are supported:

``flat``
    ``{"meta": {...}, "data": {...}}``
``wrapped``
    ``{"db": [{"meta": {...}, "data": {...}}]}``, the shape Ghost itself
    exports.

Usage example::

    transformer = PostTransformer(author)
    exporter = GhostExporter(author, content_format="mobiledoc")
    exporter.export_to_file([transformer.transform(p) for p in posts], "out/blog.json")
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ghostify.models.ghost_post import (
    AuthorConfig,
    GhostPost,
    GhostRole,
    GhostTag,
    GhostUser,
    PostAuthor,
    PostTag,
    RoleUser,
    Violation,
)
from ghostify.parsers.content_schema import CONTENT_FORMATS, document_html
from ghostify.utils.errors import ExportValidationError
from ghostify.utils.ids import stable_id
from ghostify.utils.slugs import EMAIL_RE, SLUG_RE
from ghostify.utils.tags import normalize_label, tag_slug

GHOST_VERSION = "5.0.0"
LAYOUTS = ("flat", "wrapped")

DATA_COLLECTIONS = ("posts", "tags", "users", "posts_tags", "posts_authors", "roles", "roles_users")
REQUIRED_POST_FIELDS = ("id", "title", "slug", "status", "published_at")
REQUIRED_TAG_FIELDS = ("id", "name", "slug")
REQUIRED_USER_FIELDS = ("id", "name", "slug", "email", "status")
AUTHOR_ROLE = "Author"


@dataclass
class ExportResult:
    path: str
    backup_path: Optional[str]
    document: Dict[str, Any]


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _iso(epoch_seconds: float) -> str:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


class GhostExporter:
    def __init__(
        self,
        author: AuthorConfig,
        *,
        version: str = GHOST_VERSION,
        layout: str = "flat",
        content_format: str = "mobiledoc",
        import_tag: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if layout not in LAYOUTS:
            raise ValueError(f"layout must be one of {LAYOUTS}, got {layout!r}")
        if content_format not in CONTENT_FORMATS:
            raise ValueError(f"content_format must be one of {CONTENT_FORMATS}, got {content_format!r}")
        self.author = author
        self.version = version
        self.layout = layout
        self.content_format = content_format
        self.import_tag = normalize_label(import_tag or "") or None
        self.clock = clock

    ###########################################################################
    # Assembly
    ###########################################################################

    @staticmethod
    def dedupe_posts(posts: Iterable[GhostPost]) -> Tuple[List[GhostPost], List[GhostPost]]:
        """Split ``posts`` into first occurrences and later copies of the same id."""
        seen = set()
        unique: List[GhostPost] = []
        duplicates: List[GhostPost] = []
        for post in posts:
            if post.id in seen:
                duplicates.append(post)
                continue
            seen.add(post.id)
            unique.append(post)
        return unique, duplicates

    @staticmethod
    def assign_unique_slugs(posts: Sequence[GhostPost]) -> List[GhostPost]:
        """Suffix repeated post slugs with ``-2``, ``-3``… in post order."""
        used = set()
        result: List[GhostPost] = []
        for post in posts:
            slug = post.slug
            n = 2
            while slug in used:
                slug = f"{post.slug}-{n}"
                n += 1
            used.add(slug)
            result.append(post if slug == post.slug else post.model_copy(update={"slug": slug}))
        return result

    def post_tag_labels(self, post: GhostPost) -> List[str]:
        labels = list(post.tag_labels)
        if self.import_tag and tag_slug(self.import_tag) not in {tag_slug(label) for label in labels}:
            labels.append(self.import_tag)
        return labels

    def extract_unique_tags(self, posts: Sequence[GhostPost]) -> Dict[str, GhostTag]:
        """Tags keyed by slug; the first label seen for a slug is the one displayed."""
        tags: Dict[str, GhostTag] = {}
        for post in posts:
            for label in self.post_tag_labels(post):
                slug = tag_slug(label)
                if slug not in tags:
                    tags[slug] = GhostTag(id=stable_id("tag", slug), name=label, slug=slug)
        return tags

    def build_user(self, now: str) -> GhostUser:
        return GhostUser(
            id=stable_id("user", self.author.slug),
            name=self.author.name,
            slug=self.author.slug,
            email=self.author.email,
            created_at=now,
            updated_at=now,
        )

    def build_role(self, now: str) -> GhostRole:
        return GhostRole(
            id=stable_id("role", AUTHOR_ROLE),
            name=AUTHOR_ROLE,
            description="Authors",
            created_at=now,
            updated_at=now,
        )

    def create_posts_tags(self, posts: Sequence[GhostPost], tags: Dict[str, GhostTag]) -> List[PostTag]:
        rows: List[PostTag] = []
        for post in posts:
            seen = set()
            for label in self.post_tag_labels(post):
                slug = tag_slug(label)
                if slug in seen:
                    continue
                seen.add(slug)
                rows.append(PostTag(post_id=post.id, tag_id=tags[slug].id, sort_order=len(seen) - 1))
        return rows

    def create_posts_authors(self, posts: Sequence[GhostPost], user: GhostUser) -> List[PostAuthor]:
        rows: List[PostAuthor] = []
        for post in posts:
            author_id = user.id
            if post.author_slug and post.author_slug != user.slug:
                # Leaves a dangling reference that validation reports.
                author_id = stable_id("user", post.author_slug)
            rows.append(PostAuthor(post_id=post.id, author_id=author_id))
        return rows

    def build_export(self, posts: Iterable[GhostPost]) -> Dict[str, Any]:
        exported_on = self.clock()
        now = _iso(exported_on)

        unique, _ = self.dedupe_posts(posts)
        unique = self.assign_unique_slugs(unique)
        tags = self.extract_unique_tags(unique)
        user = self.build_user(now)
        role = self.build_role(now)

        data = {
            "posts": [p.to_export_dict() for p in unique],
            "tags": [t.to_export_dict() for t in tags.values()],
            "users": [user.to_export_dict()],
            "posts_tags": [r.model_dump() for r in self.create_posts_tags(unique, tags)],
            "posts_authors": [r.model_dump() for r in self.create_posts_authors(unique, user)],
            "roles": [role.to_export_dict()],
            "roles_users": [RoleUser(role_id=role.id, user_id=user.id).model_dump()],
        }
        meta = {"exported_on": int(exported_on * 1000), "version": self.version}
        if self.layout == "wrapped":
            return {"db": [{"meta": meta, "data": data}]}
        return {"meta": meta, "data": data}

    ###########################################################################
    # Validation
    ###########################################################################

    def _unwrap(self, document: Any, violations: List[Violation]) -> Tuple[Any, Any]:
        if not isinstance(document, dict):
            violations.append(Violation(entity="export", field="document", message="must be a JSON object"))
            return None, None
        if "db" in document:
            db = document.get("db")
            if not isinstance(db, list) or not db or not isinstance(db[0], dict):
                violations.append(Violation(entity="export", field="db", message="must be a non-empty list"))
                return None, None
            document = db[0]
        return document.get("meta"), document.get("data")

    @staticmethod
    def _check_post(post: Dict[str, Any], content_format: str, violations: List[Violation]) -> None:
        pid = post.get("id")
        for field in REQUIRED_POST_FIELDS:
            if _blank(post.get(field)):
                violations.append(Violation(entity="post", entity_id=pid, field=field, message="required field is missing or empty"))

        present = [f for f in CONTENT_FORMATS if not _blank(post.get(f))]
        if content_format not in present:
            violations.append(Violation(
                entity="post", entity_id=pid, field=content_format,
                message="required content field is missing or empty",
            ))
        elif not document_html(post[content_format], content_format).strip():
            violations.append(Violation(
                entity="post", entity_id=pid, field=content_format,
                message="content document holds no HTML",
            ))
        others = [f for f in present if f != content_format]
        if others:
            violations.append(Violation(
                entity="post", entity_id=pid, field=others[0],
                message=f"only {content_format!r} content is allowed in this export",
            ))

        slug = post.get("slug")
        if not _blank(slug) and not SLUG_RE.fullmatch(str(slug)):
            violations.append(Violation(entity="post", entity_id=pid, field="slug", message=f"invalid slug {slug!r}"))

    def _check_tag(self, tag: Dict[str, Any], violations: List[Violation]) -> None:
        tid = tag.get("id")
        for field in REQUIRED_TAG_FIELDS:
            if _blank(tag.get(field)):
                violations.append(Violation(entity="tag", entity_id=tid, field=field, message="required field is missing or empty"))
        slug = tag.get("slug")
        if not _blank(slug) and not SLUG_RE.fullmatch(str(slug)):
            violations.append(Violation(entity="tag", entity_id=tid, field="slug", message=f"invalid slug {slug!r}"))

    def _check_user(self, user: Dict[str, Any], violations: List[Violation]) -> None:
        uid = user.get("id")
        for field in REQUIRED_USER_FIELDS:
            if _blank(user.get(field)):
                violations.append(Violation(entity="user", entity_id=uid, field=field, message="required field is missing or empty"))
        slug = user.get("slug")
        if not _blank(slug) and not SLUG_RE.fullmatch(str(slug)):
            violations.append(Violation(entity="user", entity_id=uid, field="slug", message=f"invalid slug {slug!r}"))
        email = user.get("email")
        if not _blank(email) and not EMAIL_RE.fullmatch(str(email)):
            violations.append(Violation(entity="user", entity_id=uid, field="email", message=f"invalid email {email!r}"))

    @staticmethod
    def _check_references(
        rows: List[Dict[str, Any]],
        collection: str,
        checks: Sequence[Tuple[str, set]],
        violations: List[Violation],
    ) -> None:
        for index, row in enumerate(rows):
            for field, known in checks:
                if row.get(field) not in known:
                    violations.append(Violation(
                        entity=collection, entity_id=index, field=field,
                        message=f"references unknown id {row.get(field)!r}",
                    ))

    def validate_export(self, document: Any, content_format: Optional[str] = None) -> List[Violation]:
        """Every rule the document breaks; an empty list means it can be imported."""
        content_format = content_format or self.content_format
        violations: List[Violation] = []
        meta, data = self._unwrap(document, violations)
        if violations:
            return violations

        if not isinstance(meta, dict):
            violations.append(Violation(entity="export", field="meta", message="export must contain meta"))
        else:
            for field in ("exported_on", "version"):
                if _blank(meta.get(field)):
                    violations.append(Violation(entity="meta", field=field, message="required field is missing or empty"))

        if not isinstance(data, dict):
            violations.append(Violation(entity="export", field="data", message="export must contain data"))
            return violations

        collections: Dict[str, List[Dict[str, Any]]] = {}
        for name in DATA_COLLECTIONS:
            value = data.get(name)
            if not isinstance(value, list):
                violations.append(Violation(entity="data", field=name, message=f"export must contain {name}"))
                value = []
            collections[name] = [row for row in value if isinstance(row, dict)]

        post_ids, post_slugs = set(), set()
        for post in collections["posts"]:
            self._check_post(post, content_format, violations)
            pid, slug = post.get("id"), post.get("slug")
            if pid in post_ids:
                violations.append(Violation(entity="post", entity_id=pid, field="id", message="duplicate post id"))
            if slug and slug in post_slugs:
                violations.append(Violation(entity="post", entity_id=pid, field="slug", message=f"duplicate slug {slug!r}"))
            post_ids.add(pid)
            post_slugs.add(slug)

        for tag in collections["tags"]:
            self._check_tag(tag, violations)
        for user in collections["users"]:
            self._check_user(user, violations)

        tag_ids = {t.get("id") for t in collections["tags"]}
        user_ids = {u.get("id") for u in collections["users"]}
        role_ids = {r.get("id") for r in collections["roles"]}
        self._check_references(collections["posts_tags"], "posts_tags",
                               [("post_id", post_ids), ("tag_id", tag_ids)], violations)
        self._check_references(collections["posts_authors"], "posts_authors",
                               [("post_id", post_ids), ("author_id", user_ids)], violations)
        self._check_references(collections["roles_users"], "roles_users",
                               [("role_id", role_ids), ("user_id", user_ids)], violations)
        return violations

    def assert_valid(self, document: Any) -> None:
        violations = self.validate_export(document)
        if violations:
            raise ExportValidationError(violations)

    ###########################################################################
    # Output
    ###########################################################################

    def export_to_string(self, posts: Iterable[GhostPost]) -> str:
        document = self.build_export(posts)
        self.assert_valid(document)
        return json.dumps(document, indent=2, ensure_ascii=False)

    def create_backup(self, output_path: str) -> Optional[str]:
        """Copy an existing ``output_path`` aside; returns the copy's path, if any."""
        if not os.path.exists(output_path):
            return None
        stamp = datetime.fromtimestamp(self.clock(), tz=timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        root, ext = os.path.splitext(output_path)
        backup_path = f"{root}-backup-{stamp}{ext or '.json'}"
        shutil.copy2(output_path, backup_path)
        return backup_path

    def export_to_file(self, posts: Iterable[GhostPost], output_path: str, *, backup: bool = True) -> ExportResult:
        """
        Build, validate and write the import file.

        :raises ExportValidationError: when the document is invalid; nothing
            is written in that case.
        """
        document = self.build_export(posts)
        self.assert_valid(document)

        out_dir = os.path.dirname(os.path.abspath(output_path))
        os.makedirs(out_dir, exist_ok=True)
        backup_path = self.create_backup(output_path) if backup else None

        # Write next to the target and rename, so a crash never leaves half a file.
        fd, tmp_path = tempfile.mkstemp(prefix=".ghostify-", suffix=".json", dir=out_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_path, output_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        return ExportResult(path=output_path, backup_path=backup_path, document=document)

    def validate_file(self, file_path: str) -> bool:
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"[ERROR] Validation failed: cannot read {file_path}: {e}")
            return False
        violations = self.validate_export(document)
        for violation in violations:
            print(f"[ERROR] {violation}")
        return not violations
