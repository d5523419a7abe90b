"""
Top-level package for the Tumblr → Ghost migration utility.

This package bundles all components required to fetch posts from the
Tumblr v2 API (or read them from a saved dump), turn each post into a Ghost
post with clean HTML, and write a validated Ghost import file.  Modules are
split into subpackages:

* :mod:`ghostify.models` – pydantic models for Tumblr and Ghost records
* :mod:`ghostify.extractors` – Tumblr API client and dump reader
* :mod:`ghostify.parsers` – HTML cleaning, gallery rebuild, per-type renderers
* :mod:`ghostify.transformers` – Tumblr post → Ghost post
* :mod:`ghostify.exporters` – import file assembly, validation and writing
* :mod:`ghostify.utils` – configuration, error logging, slugs, redirects

Each layer has no direct knowledge of configuration or execution
strategy; orchestration is handled in :mod:`ghostify.migration_tool`.
"""

__version__ = "0.1.0"
