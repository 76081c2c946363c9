"""Redirect decisions for pages that depend on the session state."""

from __future__ import annotations

from urllib.parse import urlencode

from .session import SessionStore


def require_login(store: SessionStore, target: str) -> str | None:
    """Return the login redirect for ``target`` when nobody is logged in."""
    if store.is_logged_in:
        return None
    return f"{store.settings.login_path}?{urlencode({'redirect': target})}"


def guest_only(
    store: SessionStore,
    target: str,
    redirect: str | None = None,
    previous: str | None = None,
) -> str | None:
    """Keep logged-in users away from guest pages such as the login form."""
    if not store.is_logged_in:
        return None
    if redirect:
        return redirect
    if previous and previous != target:
        return previous
    return "/"
