from flask import Blueprint

bp = Blueprint("rewards", __name__, url_prefix="/api/rewards")

from . import routes  # noqa: E402,F401
