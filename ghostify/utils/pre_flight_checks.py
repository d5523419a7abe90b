import requests

from ghostify.extractors.tumblr_extractor import get_blog_info
from ghostify.utils.errors import PreFlightCheckError, TumblrAPIError


def run_tumblr_pre_flight_checks(config: dict, blog_name: str) -> dict:
    """
    Verifies that the Tumblr API key works and that the blog exists.

    Args:
        config: The application configuration dictionary.
        blog_name: The blog to migrate, e.g. ``myblog`` or ``myblog.tumblr.com``.

    Returns:
        The ``blog`` object of the blog-info response.

    Raises:
        PreFlightCheckError: If any check fails.
    """
    print("[INFO] Running pre-flight checks...")

    tumblr_cfg = config.get("tumblr", {})
    if not tumblr_cfg.get("api_key"):
        raise PreFlightCheckError("Tumblr API key not found in the configuration.")
    if not blog_name:
        raise PreFlightCheckError("No Tumblr blog name given.")

    try:
        blog = get_blog_info(tumblr_cfg, blog_name)
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        if status == 401:
            raise PreFlightCheckError("The Tumblr API key is invalid.")
        elif status == 404:
            raise PreFlightCheckError(f"Tumblr blog '{blog_name}' was not found.")
        else:
            raise PreFlightCheckError(f"Unexpected error checking the blog info endpoint: {e}")
    except requests.RequestException as e:
        raise PreFlightCheckError(f"Network error connecting to the Tumblr API: {e}")
    except TumblrAPIError as e:
        raise PreFlightCheckError(f"Tumblr API rejected the blog info request: {e}")

    print("[INFO] Pre-flight checks passed successfully.")
    return blog
