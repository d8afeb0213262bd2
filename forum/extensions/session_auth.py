from datetime import timezone
from functools import wraps

from flask import current_app, g, jsonify, redirect, request, url_for


LOGIN_ENDPOINT = "auth.login"
LANDING_ENDPOINT = "main.index"


def _session_manager():
    return current_app.extensions["session_manager"]


def _read_session_token():
    return request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])


def _resolve_user_id():
    user_id, ok = _session_manager().validate(_read_session_token())
    return user_id if ok else None


def resolve_optional_user():
    """Resolve the session for pages that anonymous visitors may also see."""
    g.user_id = _resolve_user_id()
    return g.user_id


def get_current_user_id():
    return g.get("user_id")


def auth_required(api=False):
    """Only let requests with a live session through.

    Anonymous navigations are redirected to the login page; with ``api=True``
    they get a 401 JSON body instead.
    """

    def wrapper(fn):
        @wraps(fn)
        def decorator(*args, **kwargs):
            user_id = _resolve_user_id()
            if user_id is None:
                if api:
                    return jsonify({"error": "Authentication required"}), 401
                return redirect(url_for(LOGIN_ENDPOINT))

            g.user_id = user_id
            return fn(*args, **kwargs)

        return decorator

    return wrapper


def not_auth_required():
    """Send already signed-in users to the landing page."""

    def wrapper(fn):
        @wraps(fn)
        def decorator(*args, **kwargs):
            if _resolve_user_id() is not None:
                return redirect(url_for(LANDING_ENDPOINT))
            g.user_id = None
            return fn(*args, **kwargs)

        return decorator

    return wrapper


def set_session_cookie(response, token, expires_at):
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        token,
        expires=expires_at.replace(tzinfo=timezone.utc),
        path="/",
        secure=current_app.config["AUTH_COOKIE_SECURE"],
        httponly=True,
        samesite="Lax",
    )
    return response


def clear_session_cookie(response):
    response.delete_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        path="/",
        secure=current_app.config["AUTH_COOKIE_SECURE"],
        httponly=True,
        samesite="Lax",
    )
    return response
