"""
Authentication Blueprint.

Login, registration (with optional avatar upload) and logout pages.
"""

import logging

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

from .auth import register_user, verify_credentials
from .errors import AuthenticationError, RegistrationError
from .sessions import login_user, logout_user

logger = logging.getLogger(__name__)

# Create blueprint
auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _services():
    return current_app.extensions["job_portal"]


def _discard(stored) -> None:
    """Remove an avatar stored for a registration that did not complete."""
    if stored:
        stored.path.unlink(missing_ok=True)
        logger.info(f"Removed orphaned upload {stored.path.name}")


@auth_bp.route("/login", methods=["GET"])
def login():
    """Render the sign-in form."""
    return render_template("login.html", page_title="Sign In")


@auth_bp.route("/login", methods=["POST"])
def login_submit():
    """Check credentials and start a session."""
    services = _services()
    email = request.form.get("email", "")

    try:
        user = verify_credentials(services.repositories.users, email, request.form.get("password", ""))
    except AuthenticationError as e:
        logger.warning("Failed login attempt")
        flash(e.message, "error")
        return redirect(url_for("auth.login"))

    login_user(user)
    logger.info(f"User {user.id} signed in")
    return redirect(url_for("index"))


@auth_bp.route("/register", methods=["GET"])
def register():
    """Render the registration form."""
    return render_template("register.html", page_title="Create Account")


@auth_bp.route("/register", methods=["POST"])
def register_submit():
    """
    Create an account.

    Form Fields:
        name, email, password, confirmPassword, role
        avatar: Optional image upload

    Upload errors propagate to the app-level UploadError handler.
    """
    services = _services()
    form = request.form

    stored = services.uploads.accept_file("avatar", request.files.get("avatar"))

    try:
        register_user(
            services.repositories.users,
            name=form.get("name", ""),
            email=form.get("email", ""),
            password=form.get("password", ""),
            confirm_password=form.get("confirmPassword", ""),
            role=form.get("role"),
            avatar=stored.url if stored else None,
            rounds=services.config.bcrypt_rounds,
        )
    except RegistrationError as e:
        _discard(stored)
        flash(e.message, "error")
        return redirect(url_for("auth.register"))
    except Exception:
        _discard(stored)
        raise

    flash("Registration successful! You can now log in", "success")
    return redirect(url_for("auth.login"))


@auth_bp.route("/logout", methods=["GET"])
def logout():
    """Destroy the session and return home."""
    logout_user()
    return redirect(url_for("index"))
