"""
Update schedule routes
"""
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from baseline.auth import admin_required
from baseline.errors import DATABASE_ERRORS, VALIDATION_ERRORS, json_error
from baseline.timeline import (
    fetch_active_timeline,
    get_active_schedule,
    save_timeline,
    today_line_position,
    validate_timeline,
)

schedule_bp = Blueprint('schedule', __name__)


@schedule_bp.route('/api/admin/update-schedule', methods=['GET'])
def get_schedule():
    """Active timeline; public so the investor page can render it"""
    try:
        schedule = get_active_schedule()
    except Exception:
        current_app.logger.exception("Failed to fetch timeline")
        return json_error(DATABASE_ERRORS["SITE_STATE_FETCH"], 500)
    if schedule is None:
        return jsonify(None)
    return jsonify(schedule.to_timeline())


@schedule_bp.route('/api/admin/update-schedule', methods=['POST'])
@admin_required
def update_schedule():
    data = request.get_json(silent=True) or {}
    timeline = data.get('timeline')
    if not timeline or not isinstance(timeline, dict):
        return json_error(VALIDATION_ERRORS["PAYLOAD_REQUIRED"], 400)

    details = validate_timeline(timeline)
    if details:
        return json_error(VALIDATION_ERRORS["VALIDATION_FAILED"], 400, details=details)

    try:
        schedule = save_timeline(timeline, current_user.slug, data.get('notes'))
    except Exception:
        current_app.logger.exception("Timeline update failed")
        return json_error(DATABASE_ERRORS["QUESTIONNAIRE_UPDATE_FAILED"], 500)

    return jsonify({
        "ok": True,
        "version": schedule.version,
        "timeline": schedule.to_timeline(),
    })


@schedule_bp.route('/api/update-schedule', methods=['GET'])
def investor_schedule():
    """Timeline for the investor page, with the default roadmap until one is published"""
    timeline = fetch_active_timeline()
    timeline['todayPercent'] = today_line_position(timeline['timelineStart'], timeline['timelineEnd'])
    return jsonify(timeline)
