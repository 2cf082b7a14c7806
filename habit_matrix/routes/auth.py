"""
Authentication routes for HabitMatrix.

Provides endpoints for registering new users and logging in to obtain
JSON Web Tokens (JWTs). The token is returned in the response body for
API clients and set as an HTTP-only cookie for browsers; either is
accepted on protected endpoints.
"""

from __future__ import annotations

from flask import Blueprint, jsonify
from flask_jwt_extended import create_access_token, jwt_required, set_access_cookies, unset_jwt_cookies

from ..schemas import LoginRequest, RegisterRequest, ThemeRequest, UserSchema
from ..services import AccountService
from .common import load, ok, service


auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple[dict, int]:
    """Register a new user.

    Expects JSON with ``username``, ``email``, ``password`` and
    ``confirm_password``. Usernames and emails must be unique.
    """
    data = load(RegisterRequest)
    user = service(AccountService, anonymous=True).register(data)
    return ok(UserSchema().dump(user), 201)


@auth_bp.route("/login", methods=["POST"])
def login():
    """Authenticate a user and return a JWT.

    Expects JSON with ``username`` (or the account email) and
    ``password``. Invalid credentials return 401.
    """
    data = load(LoginRequest)
    user = service(AccountService, anonymous=True).authenticate(data["username"], data["password"])
    access_token = create_access_token(identity=str(user.id), additional_claims={"username": user.username, "role": user.role.value})
    response = jsonify(
        {"success": True, "data": {"access_token": access_token, "user": UserSchema().dump(user)}}
    )
    set_access_cookies(response, access_token)
    return response, 200


@auth_bp.route("/logout", methods=["POST"])
def logout():
    """Clear the token cookies. Header tokens simply expire."""
    response = jsonify({"success": True, "data": None})
    unset_jwt_cookies(response)
    return response, 200


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me() -> tuple[dict, int]:
    accounts = service(AccountService)
    return ok(UserSchema().dump(accounts.get_user(accounts.require_user())))


@auth_bp.route("/me/theme", methods=["PUT"])
@jwt_required()
def save_theme() -> tuple[dict, int]:
    """Store the current user's theme (``light`` or ``dark``)."""
    data = load(ThemeRequest)
    return ok(UserSchema().dump(service(AccountService).save_theme(data["theme"])))
