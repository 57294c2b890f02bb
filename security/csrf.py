"""Double-submit CSRF check for logged-in, state-changing requests.

Login issues a readable csrf_token cookie; the client echoes it in the
X-CSRF-Token header on every POST/PUT/PATCH/DELETE.
"""
import secrets
from flask import g, request, jsonify, current_app

CSRF_COOKIE = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"

UNSAFE_METHODS = ("POST", "PUT", "PATCH", "DELETE")

# anonymous entry points and the stripe callback, which is signed instead
CSRF_EXEMPT_PATHS = frozenset({
    "/auth/login",
    "/auth/register",
    "/health",
    "/webhooks/stripe",
})


def issue_csrf_token(resp):
    resp.set_cookie(
        CSRF_COOKIE,
        secrets.token_urlsafe(32),
        httponly=False,  # read by the frontend
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        path="/",
    )
    return resp


def clear_csrf_token(resp):
    resp.delete_cookie(CSRF_COOKIE, path="/")
    return resp


def csrf_protect():
    """before_request hook: returns a 403 response when the token pair is missing or differs."""
    if not current_app.config.get("CSRF_ENABLED", True):
        return None
    if request.method not in UNSAFE_METHODS or request.path in CSRF_EXEMPT_PATHS:
        return None
    if getattr(g, "user", None) is None:
        # anonymous requests are rejected by login_required anyway
        return None

    cookie_token = request.cookies.get(CSRF_COOKIE)
    header_token = request.headers.get(CSRF_HEADER)
    if not cookie_token or not header_token or not secrets.compare_digest(cookie_token, header_token):
        return jsonify(error="CSRF validation failed"), 403
    return None
