# ------- ecocreds/utils/decorators.py -------
from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from ..extensions import db
from ..model.user import User
from .api import err

def _current_user():
    verify_jwt_in_request()
    uid = get_jwt_identity()
    try:
        uid = int(uid)
    except (TypeError, ValueError):
        uid = None
    return db.session.get(User, uid) if uid else None

def login_required(fn):
    """Resolve the JWT's user into ``g.user``; 401 if the token or user is missing."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        u = _current_user()
        if not u:
            return err("Unauthorized", 401)
        g.user = u
        return fn(*args, **kwargs)
    return wrapper

def role_required(*roles, message: str | None = None):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            u = _current_user()
            if not u:
                return err("Unauthorized", 401)
            if u.role not in roles:
                return err(message or "Forbidden", 403)
            g.user = u
            return fn(*args, **kwargs)
        return wrapper
    return decorator
