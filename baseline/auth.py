"""
Authentication routes and utilities

PIN login for three roles issues a signed session cookie. Flask-Login reads
that cookie on every request through a request loader, so ``current_user`` is
either a SessionUser or anonymous.
"""
import hmac
from functools import wraps
from typing import Optional

from flask import Blueprint, current_app, jsonify, request
from flask_login import UserMixin, current_user, login_required

from baseline import login_manager
from baseline.admin_users import ADMIN_SLUGS, find_admin_by_pin
from baseline.document_store import DECK_PERSONA_SLUG, find_investor
from baseline.errors import AUTH_ERRORS, NETWORK_ERRORS, VALIDATION_ERRORS, SessionConfigError, json_error
from baseline.investor_activity import record_login
from baseline.rate_limit import RateLimitConfig, get_client_ip
from baseline.session import (
    SESSION_COOKIE,
    SessionPayload,
    SessionRole,
    create_session_token,
    verify_session_token,
)

auth_bp = Blueprint('auth', __name__)


class SessionUser(UserMixin):
    """The verified subject of a session cookie"""

    def __init__(self, payload: SessionPayload):
        self.id = payload.slug
        self.slug = payload.slug
        self.role = payload.role
        self.exp = payload.exp

    @property
    def is_admin(self) -> bool:
        return self.role is SessionRole.ADMIN and self.slug in ADMIN_SLUGS


def _session_secret() -> str:
    return current_app.config.get("SESSION_SECRET") or ""


def read_session() -> Optional[SessionPayload]:
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    return verify_session_token(token, _session_secret())


@login_manager.request_loader
def load_user_from_request(req):
    """Build the current user from the session cookie"""
    token = req.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    payload = verify_session_token(token, _session_secret())
    if payload is None:
        return None
    return SessionUser(payload)


@login_manager.unauthorized_handler
def unauthorized():
    if request.cookies.get(SESSION_COOKIE):
        response, status = json_error(AUTH_ERRORS["SESSION_INVALID"], 401)
        clear_session_cookie(response)
        return response, status
    return json_error(AUTH_ERRORS["NOT_AUTHENTICATED"], 401)


def roles_required(*roles):
    """Decorator to require a session with one of ``roles``"""
    allowed = {SessionRole(role) if isinstance(role, str) else role for role in roles}

    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            if current_user.role not in allowed and not current_user.is_admin:
                return json_error(AUTH_ERRORS["ROLE_NOT_PERMITTED"], 403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    """Decorator to require an admin session on the allow-list"""
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_admin:
            return json_error(AUTH_ERRORS["ADMIN_ACCESS_REQUIRED"], 403)
        return f(*args, **kwargs)
    return decorated_function


def set_session_cookie(response, token: str):
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=current_app.config.get("SESSION_MAX_AGE", 60 * 60 * 24),
        path="/",
        httponly=True,
        samesite="Lax",
        secure=bool(current_app.config.get("SESSION_COOKIE_SECURE")),
    )
    return response


def clear_session_cookie(response):
    response.set_cookie(
        SESSION_COOKIE,
        "",
        max_age=0,
        path="/",
        httponly=True,
        samesite="Lax",
        secure=bool(current_app.config.get("SESSION_COOKIE_SECURE")),
    )
    return response


def _issue_session(slug: str, role: SessionRole):
    token = create_session_token(
        slug, role, _session_secret(),
        max_age=current_app.config.get("SESSION_MAX_AGE", 60 * 60 * 24),
    )
    response = jsonify({"slug": slug, "role": role.value})
    return set_session_cookie(response, token)


def _pin_matches(expected, pin: str) -> bool:
    expected = str(expected or "")
    return bool(expected) and hmac.compare_digest(expected.encode("utf-8"), pin.encode("utf-8"))


def _rate_limited():
    """429 response once the caller has used up its login attempts, else None"""
    limiter = current_app.extensions["login_rate_limiter"]
    client_ip = get_client_ip(request.headers)
    result = limiter.check(client_ip, RateLimitConfig(
        max_requests=current_app.config.get("LOGIN_RATE_LIMIT", 5),
        window_ms=current_app.config.get("LOGIN_RATE_WINDOW", 15 * 60) * 1000,
    ))
    if result.success:
        return None

    now_ms = limiter.now_ms()
    reset_in = max(1, -(-(result.reset_at - now_ms) // 60000))
    current_app.logger.warning("Login rate limit exceeded for %s", client_ip)
    response, status = json_error(
        f"Too many login attempts. Please try again in {reset_in} minute{'' if reset_in == 1 else 's'}.",
        429,
    )
    response.headers.update(result.headers(now_ms))
    return response, status


@auth_bp.route('/api/auth/session', methods=['GET'])
def get_session():
    """Describe the current session"""
    if not request.cookies.get(SESSION_COOKIE):
        return json_error(AUTH_ERRORS["NOT_AUTHENTICATED"], 401)

    payload = read_session()
    if payload is None:
        response, status = json_error(AUTH_ERRORS["SESSION_INVALID"], 401)
        clear_session_cookie(response)
        return response, status

    return jsonify({"slug": payload.slug, "role": payload.role.value, "exp": payload.exp})


@auth_bp.route('/api/auth/session', methods=['POST'])
def create_session():
    """PIN login for admin, deck and investor roles"""
    limited = _rate_limited()
    if limited is not None:
        return limited

    data = request.get_json(silent=True) or {}
    role_value = data.get("role")
    pin = str(data.get("pin") or "").strip()
    slug = (data.get("slug") or "").strip()

    if not role_value or not pin:
        return json_error(VALIDATION_ERRORS["ROLE_AND_PIN_REQUIRED"], 400)
    role = SessionRole.parse(role_value)
    if role is None:
        return json_error(VALIDATION_ERRORS["UNSUPPORTED_ROLE"], 400)

    try:
        if role is SessionRole.ADMIN:
            persona = find_admin_by_pin(pin, current_app.config)
            if persona is None:
                return json_error(AUTH_ERRORS["ADMIN_PIN_INVALID"], 401)
            current_app.logger.info("Admin session issued for %s", persona.slug)
            return _issue_session(persona.slug, SessionRole.ADMIN)

        if role is SessionRole.DECK:
            persona = find_investor(DECK_PERSONA_SLUG)
            expected = persona.get("pin") if persona else current_app.config.get("DECK_PIN")
            if not _pin_matches(expected, pin):
                return json_error(AUTH_ERRORS["DECK_PIN_INVALID"], 401)
            return _issue_session(DECK_PERSONA_SLUG, SessionRole.DECK)

        if not slug:
            return json_error(VALIDATION_ERRORS["INVESTOR_SLUG_REQUIRED"], 400)
        investor = find_investor(slug)
        if investor is None or not _pin_matches(investor.get("pin"), pin):
            return json_error(AUTH_ERRORS["INVESTOR_CREDENTIALS_INVALID"], 401)
        response = _issue_session(slug, SessionRole.INVESTOR)
        record_login(slug)
        return response

    except SessionConfigError as e:
        current_app.logger.error("Session signing unavailable: %s", e)
        return json_error(NETWORK_ERRORS["SESSION_REQUEST_FAILED"], 500)
    except Exception:
        current_app.logger.exception("Session POST failed")
        return json_error(NETWORK_ERRORS["SESSION_REQUEST_FAILED"], 500)


@auth_bp.route('/api/auth/session', methods=['DELETE'])
def delete_session():
    """Log out"""
    return clear_session_cookie(jsonify({"ok": True}))
