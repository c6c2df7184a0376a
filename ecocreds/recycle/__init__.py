from flask import Blueprint

bp = Blueprint("recycle", __name__, url_prefix="/api/recycle")

from . import routes  # noqa: E402,F401
