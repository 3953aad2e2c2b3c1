"""
Investor activity routes: terms agreement, self-report and admin visit stats
"""
from functools import wraps

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from baseline import investor_activity
from baseline.auth import admin_required
from baseline.document_store import record_self_report
from baseline.errors import AUTH_ERRORS, DATABASE_ERRORS, VALIDATION_ERRORS, json_error
from baseline.session import SessionRole

investors_bp = Blueprint('investors', __name__)


def investor_only(message=AUTH_ERRORS["ROLE_NOT_PERMITTED"]):
    """Decorator to require an investor session; admins are not let through"""
    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            if current_user.role is not SessionRole.INVESTOR:
                return json_error(message, 403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


@investors_bp.route('/api/investor/agree-terms', methods=['GET'])
@investor_only()
def agreement_status():
    try:
        agreement = investor_activity.get_agreement(current_user.slug)
    except Exception:
        current_app.logger.exception("Agreement check failed for %s", current_user.slug)
        return json_error(DATABASE_ERRORS["AGREEMENT_FETCH_FAILED"], 500)
    return jsonify({
        "hasAgreed": agreement is not None,
        "agreedAt": agreement.agreed_at.isoformat() if agreement else None,
    })


@investors_bp.route('/api/investor/agree-terms', methods=['POST'])
@investor_only()
def agree_terms():
    """Record the investor's acceptance of the confidentiality terms"""
    try:
        agreement, created = investor_activity.record_agreement(current_user.slug)
    except Exception:
        current_app.logger.exception("Recording agreement failed for %s", current_user.slug)
        return json_error(DATABASE_ERRORS["AGREEMENT_SAVE_FAILED"], 500)

    if not created:
        return jsonify({"success": True, "alreadyAgreed": True, "agreedAt": agreement.agreed_at.isoformat()})
    return jsonify({
        "success": True,
        "alreadyAgreed": False,
        "agreedAt": agreement.agreed_at.isoformat(),
        "message": "Agreement recorded successfully",
    })


@investors_bp.route('/api/investor/self-report', methods=['POST'])
@investor_only(AUTH_ERRORS["INVESTOR_ONLY"])
def self_report():
    data = request.get_json(silent=True) or {}
    if data.get('investorSlug') != current_user.slug:
        return json_error(VALIDATION_ERRORS["SELF_REPORT_FORBIDDEN"], 403)

    try:
        count = record_self_report(current_user.slug)
    except LookupError:
        return json_error(DATABASE_ERRORS["SITE_STATE_FETCH"], 404)
    except Exception:
        current_app.logger.exception("Self-report failed for %s", current_user.slug)
        return json_error(DATABASE_ERRORS["QUESTIONNAIRE_UPDATE_FAILED"], 500)
    return jsonify({"ok": True, "newCount": count})


@investors_bp.route('/api/admin/session-stats', methods=['GET'])
@admin_required
def session_stats():
    """Visit totals and last login per investor"""
    try:
        stats = investor_activity.session_stats()
    except Exception:
        current_app.logger.exception("Session stats fetch failed")
        return json_error(DATABASE_ERRORS["SESSION_STATS_FAILED"], 500)
    return jsonify({"stats": stats})


@investors_bp.route('/api/admin/reset-visits', methods=['POST'])
@admin_required
def reset_visits():
    data = request.get_json(silent=True) or {}
    slug = data.get('investorSlug')
    if not isinstance(slug, str) or not slug.strip():
        return json_error(VALIDATION_ERRORS["INVESTOR_SLUG_MISSING"], 400)
    slug = slug.strip()

    try:
        investor_activity.reset_visits(slug)
    except Exception:
        current_app.logger.exception("Resetting visits for %s failed", slug)
        return json_error(DATABASE_ERRORS["RESET_VISITS_FAILED"], 500)
    return jsonify({"success": True, "message": f"Visit count reset for {slug}"})
