"""
Post transformation: Tumblr records in, Ghost records out.
"""

from .post_transformer import PostTransformer, TransformOptions, format_timestamp

__all__ = ["PostTransformer", "TransformOptions", "format_timestamp"]
