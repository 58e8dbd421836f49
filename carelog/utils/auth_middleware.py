"""
Auth Middleware - JWT Token
===========================
Decorators protecting the API with a JWT bearer token.

How it works:
1. Read the token from the "Authorization: Bearer <token>" header
2. Decode it with the app's SECRET_KEY (HS256)
3. Load the user named by the `user_id` claim; inactive users are rejected
4. Pass the user to the protected function as `current_user`

The user id is what gets stamped on administration and appointment logs.
"""

from functools import wraps
from flask import current_app, request
import jwt
from carelog.models.base import db
from carelog.models.user import User


def _read_bearer_token():
    """Return (token, error_response)."""
    auth_header = request.headers.get('Authorization')
    if not auth_header:
        return None, ({'message': 'Token is missing. Please log in to get a token.'}, 401)
    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0] != 'Bearer' or not parts[1]:
        return None, ({'message': 'Invalid token format. Expected: Bearer <token>'}, 401)
    return parts[1], None


def _load_user(token):
    """Return (user, error_response)."""
    try:
        data = jwt.decode(
            token,
            current_app.config['SECRET_KEY'],
            algorithms=["HS256"]
        )
    except jwt.ExpiredSignatureError:
        return None, ({'message': 'Token has expired. Please log in again.'}, 401)
    except jwt.InvalidTokenError:
        return None, ({'message': 'Invalid token.'}, 401)

    user_id = data.get('user_id')
    user = db.session.get(User, user_id) if user_id is not None else None
    if not user or not user.is_active:
        return None, ({'message': 'User does not exist or is inactive'}, 401)
    return user, None


def _user_dict(user):
    return {
        'user_id': user.user_id,
        'email': user.email,
        'full_name': user.full_name,
        'is_admin': user.is_admin
    }


def token_required(f):
    """
    Only lets requests with a valid token through.

    - No token / malformed header -> 401
    - Forged, expired or unknown-user token -> 401
    - Otherwise calls the view with current_user=dict
    """
    @wraps(f)  # Flask-RESTX needs the wrapped function's name
    def decorated(*args, **kwargs):
        token, error = _read_bearer_token()
        if error:
            return error

        user, error = _load_user(token)
        if error:
            return error

        kwargs['current_user'] = _user_dict(user)
        return f(*args, **kwargs)

    return decorated


def admin_required(f):
    """Same as token_required, plus the user must be an admin (403 otherwise)."""
    @wraps(f)
    def decorated(*args, **kwargs):
        token, error = _read_bearer_token()
        if error:
            return error

        user, error = _load_user(token)
        if error:
            return error

        if not user.is_admin:
            return {
                'message': 'Access denied. Admin role required.',
                'required_role': 'admin'
            }, 403

        kwargs['current_user'] = _user_dict(user)
        return f(*args, **kwargs)

    return decorated
