"""
Dropbox API client layer.

Provides async HTTP communication with the Dropbox API.
"""

from dropbox_relay.api.http_client import AsyncHttpClient, encode_api_arg, sanitize_for_log

__all__ = ["AsyncHttpClient", "encode_api_arg", "sanitize_for_log"]
