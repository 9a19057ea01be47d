"""
Parsing of auth callback deep links.

Supabase redirects email-confirmation and magic links to
``rentable://auth-callback?type=signup`` style URLs. By the time the app
sees one, the backend has already exchanged it for a session; the app only
needs to recognize it and refresh local state.
"""

from typing import Optional
from urllib.parse import parse_qs, urlsplit

from .models import AuthCallback

AUTH_CALLBACK_HOST = "auth-callback"
AUTH_PATH_SEGMENT = "auth"


def is_auth_callback(url: str) -> bool:
    """Whether the URL's host or path marks it as an auth callback."""
    parts = urlsplit(url)
    if parts.hostname == AUTH_CALLBACK_HOST:
        return True
    segments = [s for s in parts.path.split("/") if s]
    return AUTH_PATH_SEGMENT in segments


def parse_auth_callback(url: str) -> Optional[AuthCallback]:
    """
    Extract callback parameters from an auth deep link.

    Query parameters take precedence; Supabase's implicit flow puts them
    in the fragment instead, which is used as a fallback.

    Returns:
        The callback, or None if the URL is not an auth callback
    """
    if not is_auth_callback(url):
        return None

    parts = urlsplit(url)
    params = parse_qs(parts.fragment)
    params.update(parse_qs(parts.query))

    def first(name: str) -> Optional[str]:
        values = params.get(name)
        return values[0] if values else None

    return AuthCallback(
        type=first("type"),
        access_token=first("access_token"),
        refresh_token=first("refresh_token"),
    )


def is_app_url(url: str, scheme: str) -> bool:
    """Whether the app should handle this URL at all."""
    parts = urlsplit(url)
    return parts.scheme == scheme or "supabase" in (parts.hostname or "")
