from flask import request, g
from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token
from . import bp
from ..model import User
from ..extensions import db
from ..utils.api import ok, err
from ..utils.decorators import login_required


@bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    name = (data.get("name") or "").strip()

    if not email:
        return err("Email required", 400)
    if not password or len(password) < 6:
        return err("Password required, min 6 chars", 400)
    if not name:
        return err("Name required", 400)
    if User.query.filter_by(email=email).first():
        return err("Email already registered", 409)

    # new accounts start with a zero EcoCredits balance
    user = User(email=email, password_hash=generate_password_hash(password), name=name, role="user", eco_credits=0)
    db.session.add(user)
    db.session.commit()

    token = create_access_token(identity=str(user.id))
    return ok("Account created successfully", {"user": user.as_dict(), "token": token}, status=201)

@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        return err("Email and password are required", 400)
    user = User.query.filter_by(email=email).first()
    if not user or not check_password_hash(user.password_hash, password):
        return err("Invalid email or password", 401)

    token = create_access_token(identity=str(user.id))
    return ok("You've logged in successfully", {"user": user.as_dict(), "token": token})

@bp.get("/me")
@login_required
def me():
    return ok("ok", {"user": g.user.as_dict()})
