from __future__ import annotations
from functools import wraps
from flask import request, g, current_app


def get_session_authority():
    return current_app.extensions["session_authority"]


def token_required():
    """
    Gate a view behind `Authorization: Bearer <access token>`.
    Failures raise AuthenticationError (401 via the error handlers); on success
    the decoded claims are available as g.current_user_claims.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            claims = get_session_authority().verify_token(request.headers.get("Authorization"))
            g.current_user_claims = claims
            return fn(*args, **kwargs)

        return wrapper

    return decorator
