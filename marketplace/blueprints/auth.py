"""Auth blueprint — /auth/*

JSON session login for the marketplace API. Accounts are provisioned by
admins / the seed command; there is no self-registration here.
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf
from werkzeug.security import check_password_hash

from marketplace.extensions import limiter
from marketplace.models.user import User

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _login_limit():
    return current_app.config["LOGIN_RATE_LIMIT"]


# ──────────────────────────────────────────────
# GET /auth/csrf-token
# ──────────────────────────────────────────────

@auth_bp.route("/csrf-token")
def csrf_token():
    """Token for JSON clients; send it back as the X-CSRFToken header."""
    return jsonify(ok=True, csrf_token=generate_csrf())


# ──────────────────────────────────────────────
# POST /auth/login
# ──────────────────────────────────────────────

@auth_bp.route("/login", methods=["POST"])
@limiter.limit(_login_limit)
def login():
    """Email + password login. Body: {"email", "password", "remember"?}"""
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").lower().strip()
    password = data.get("password") or ""

    if not email or not password:
        return jsonify(ok=False, error="Email and password are required."), 400

    user = User.query.filter_by(email=email).first()
    if user is None or not check_password_hash(user.password_hash, password):
        return jsonify(ok=False, error="Invalid email or password."), 401

    if not user.is_active:
        return jsonify(ok=False, error="Your account has been deactivated."), 403

    login_user(user, remember=bool(data.get("remember")))
    current_app.logger.info(f"User {user.email} logged in ({user.role})")
    return jsonify(ok=True, user=user.to_dict())


# ──────────────────────────────────────────────
# POST /auth/logout
# ──────────────────────────────────────────────

@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify(ok=True)


# ──────────────────────────────────────────────
# GET /auth/me
# ──────────────────────────────────────────────

@auth_bp.route("/me")
@login_required
def me():
    data = current_user.to_dict()
    if current_user.is_vendor and current_user.vendor_profile is not None:
        data["vendor_profile"] = current_user.vendor_profile.to_dict()
    return jsonify(ok=True, user=data)
