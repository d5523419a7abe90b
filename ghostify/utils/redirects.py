"""
Generation of redirect mapping CSV files.

The :func:`generate_redirects_csv` helper writes a CSV file mapping each
Tumblr post URL to the URL the post will have on the Ghost site.  The file
can be turned into 301 redirects (or Ghost's ``redirects.yaml``) so that
existing links keep working after the move.
"""

from __future__ import annotations

import csv
import os
from typing import Iterable

from ghostify.models.ghost_post import GhostPost


def ghost_post_url(ghost_site_url: str, slug: str) -> str:
    return f"{ghost_site_url.rstrip('/')}/{slug}/"


def generate_redirects_csv(
    posts: Iterable[GhostPost], *, ghost_site_url: str, out_path: str = "reports/redirect_map.csv"
) -> str:
    """Generate a CSV mapping old Tumblr URLs to new Ghost URLs.

    Parameters
    ----------
    posts:
        Transformed posts.  Posts without a ``source_url`` (for example ones
        read from a dump that lacks ``post_url``) are skipped.
    ghost_site_url:
        Base URL of the Ghost site; each post lives at ``<base>/<slug>/``.
    out_path:
        Location of the CSV file to be written.  The parent directory is
        created automatically.

    Returns
    -------
    str
        The path of the generated CSV file.
    """
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["OldURL", "NewURL"])
        for post in posts:
            if not post.source_url:
                continue
            writer.writerow([post.source_url, ghost_post_url(ghost_site_url, post.slug)])
    return out_path
