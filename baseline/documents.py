"""
Site content and BOS document routes
"""
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from baseline.auth import admin_required
from baseline.document_store import (
    DEFAULT_BOS_PAYLOAD,
    document_or_default,
    get_document,
    document_history,
    public_investors,
    public_site_payload,
    publish_document,
)
from baseline.errors import DATABASE_ERRORS, VALIDATION_ERRORS, json_error
from baseline.models import DocumentKind

documents_bp = Blueprint('documents', __name__)


def publish_from_request(kind: DocumentKind, failure_message: str):
    """Publish the request's ``{payload, notes}`` as the next version of ``kind``"""
    data = request.get_json(silent=True) or {}
    payload = data.get("payload")
    if not payload:
        return json_error(VALIDATION_ERRORS["PAYLOAD_REQUIRED"], 400)

    try:
        state = publish_document(kind, payload, current_user.slug, data.get("notes"))
    except Exception:
        current_app.logger.exception("Publishing %s failed", kind.value)
        return json_error(failure_message, 500)

    return jsonify({"ok": True, "version": state.version, "updated_at": state.to_dict()["updated_at"]})


@documents_bp.route('/api/site-state', methods=['GET'])
def site_state():
    """Latest investor-facing site content; investor PINs are only included for admins"""
    try:
        state = get_document(DocumentKind.SITE)
    except Exception:
        current_app.logger.exception("Site state fetch failed")
        return json_error(DATABASE_ERRORS["SITE_STATE_FETCH"], 500)
    if state is None:
        return json_error(DATABASE_ERRORS["SITE_STATE_FETCH"], 404)
    body = state.to_dict()
    if not getattr(current_user, "is_admin", False):
        body["payload"] = public_site_payload(body["payload"])
    return jsonify(body)


@documents_bp.route('/api/investors/list', methods=['GET'])
def investors_list():
    """Public investor names for the login dropdown"""
    try:
        investors = public_investors()
    except Exception:
        current_app.logger.exception("Investor list fetch failed")
        return json_error(DATABASE_ERRORS["SITE_STATE_FETCH"], 500)
    return jsonify({"investors": investors})


@documents_bp.route('/api/admin/update', methods=['POST'])
@admin_required
def admin_update():
    """Publish a new version of the site content"""
    return publish_from_request(DocumentKind.SITE, DATABASE_ERRORS["QUESTIONNAIRE_UPDATE_FAILED"])


@documents_bp.route('/api/bos', methods=['GET'])
@admin_required
def bos_state():
    """Business operating system document, seeded with an empty outline"""
    try:
        return jsonify(document_or_default(DocumentKind.BOS, DEFAULT_BOS_PAYLOAD))
    except Exception:
        current_app.logger.exception("BOS state fetch failed")
        return jsonify({"id": None, "updated_at": None, "version": 0, "payload": DEFAULT_BOS_PAYLOAD})


@documents_bp.route('/api/bos', methods=['POST'])
@admin_required
def save_bos_state():
    return publish_from_request(DocumentKind.BOS, DATABASE_ERRORS["GENERIC"])


@documents_bp.route('/api/admin/history', methods=['GET'])
@admin_required
def admin_history():
    """Most recent published versions of one document kind"""
    try:
        kind = DocumentKind(request.args.get('kind', DocumentKind.SITE.value))
    except ValueError:
        return json_error(VALIDATION_ERRORS["DOCUMENT_KIND_INVALID"], 400)
    limit = request.args.get('limit', 20, type=int)
    limit = max(1, min(limit or 20, 100))

    try:
        history = document_history(kind, limit)
    except Exception:
        current_app.logger.exception("History fetch for %s failed", kind.value)
        return json_error(DATABASE_ERRORS["HISTORY_FETCH_FAILED"], 500)
    return jsonify({"kind": kind.value, "history": [h.to_dict() for h in history]})
