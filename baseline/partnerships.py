"""
Partner network routes: partners, connections, node positions and auto layout
"""
from flask import Blueprint, current_app, jsonify, request

from baseline import db, partner_network
from baseline.auth import admin_required
from baseline.errors import DATABASE_ERRORS, VALIDATION_ERRORS, json_error
from baseline.models import Partner, PartnerConnection
from baseline.partner_network import PartnerValidationError

partnerships_bp = Blueprint('partnerships', __name__, url_prefix='/api/admin/partnerships')


def _validation_failed(e: PartnerValidationError):
    db.session.rollback()
    return json_error(VALIDATION_ERRORS["VALIDATION_FAILED"], 400, details=e.errors)


def _save_failed(what: str):
    db.session.rollback()
    current_app.logger.exception("Failed to %s", what)
    return json_error(DATABASE_ERRORS["PARTNERSHIPS_SAVE_FAILED"], 500)


# ============ Partners ============

@partnerships_bp.route('', methods=['GET'])
@admin_required
def list_partners():
    try:
        partners = partner_network.list_partners(request.args.get('type'), request.args.get('status'))
        result = {"ok": True, "partners": [p.to_dict() for p in partners]}
        if request.args.get('connections') == 'true':
            result["connections"] = [c.to_dict() for c in partner_network.list_connections()]
        if request.args.get('positions') == 'true':
            result["positions"] = [p.to_dict() for p in partner_network.list_positions()]
    except Exception:
        current_app.logger.exception("Failed to fetch partners")
        return json_error(DATABASE_ERRORS["PARTNERSHIPS_FETCH_FAILED"], 500)
    return jsonify(result)


@partnerships_bp.route('', methods=['POST'])
@admin_required
def create_partner():
    data = request.get_json(silent=True) or {}
    partner = data.get('partner')
    if not isinstance(partner, dict) or not partner.get('name'):
        return json_error("Partner name is required", 400)

    try:
        created = partner_network.create_partner(partner, data.get('nodePosition'))
    except PartnerValidationError as e:
        return _validation_failed(e)
    except Exception:
        return _save_failed("create partner")
    return jsonify({"ok": True, "partner": created.to_dict()})


@partnerships_bp.route('', methods=['PUT'])
@admin_required
def update_partner():
    data = request.get_json(silent=True) or {}
    partner_id = data.get('id')
    if not partner_id:
        return json_error("Partner ID is required", 400)
    partner = db.session.get(Partner, partner_id)
    if partner is None:
        return json_error("Partner not found", 404)

    try:
        updated = partner_network.update_partner(partner, data.get('partner') or {})
    except PartnerValidationError as e:
        return _validation_failed(e)
    except Exception:
        return _save_failed("update partner")
    return jsonify({"ok": True, "partner": updated.to_dict()})


@partnerships_bp.route('', methods=['DELETE'])
@admin_required
def delete_partner():
    partner_id = request.args.get('id')
    if not partner_id:
        return json_error("Partner ID is required", 400)
    partner = db.session.get(Partner, partner_id)
    if partner is None:
        return json_error("Partner not found", 404)

    try:
        partner_network.delete_partner(partner)
    except Exception:
        return _save_failed("delete partner")
    return jsonify({"ok": True})


# ============ Connections ============

@partnerships_bp.route('/connections', methods=['GET'])
@admin_required
def list_connections():
    try:
        connections = partner_network.list_connections(request.args.get('partnerId'))
    except Exception:
        current_app.logger.exception("Failed to fetch connections")
        return json_error(DATABASE_ERRORS["PARTNERSHIPS_FETCH_FAILED"], 500)
    return jsonify({"ok": True, "connections": [c.to_dict() for c in connections]})


@partnerships_bp.route('/connections', methods=['POST'])
@admin_required
def create_connection():
    data = request.get_json(silent=True) or {}
    connection = data.get('connection')
    if not isinstance(connection, dict):
        return json_error("Both from_partner_id and to_partner_id are required", 400)

    try:
        created = partner_network.create_connection(connection)
    except PartnerValidationError as e:
        return _validation_failed(e)
    except Exception:
        return _save_failed("create connection")
    return jsonify({"ok": True, "connection": created.to_dict()})


@partnerships_bp.route('/connections', methods=['PUT'])
@admin_required
def update_connection():
    data = request.get_json(silent=True) or {}
    connection_id = data.get('id')
    if not connection_id:
        return json_error("Connection ID is required", 400)
    connection = db.session.get(PartnerConnection, connection_id)
    if connection is None:
        return json_error("Connection not found", 404)

    try:
        updated = partner_network.update_connection(connection, data.get('connection') or {})
    except PartnerValidationError as e:
        return _validation_failed(e)
    except Exception:
        return _save_failed("update connection")
    return jsonify({"ok": True, "connection": updated.to_dict()})


@partnerships_bp.route('/connections', methods=['DELETE'])
@admin_required
def delete_connection():
    connection_id = request.args.get('id')
    if not connection_id:
        return json_error("Connection ID is required", 400)
    connection = db.session.get(PartnerConnection, connection_id)
    if connection is None:
        return json_error("Connection not found", 404)

    try:
        partner_network.delete_connection(connection)
    except Exception:
        return _save_failed("delete connection")
    return jsonify({"ok": True})


# ============ Positions ============

@partnerships_bp.route('/positions', methods=['GET'])
@admin_required
def list_positions():
    try:
        positions = partner_network.list_positions()
    except Exception:
        current_app.logger.exception("Failed to fetch positions")
        return json_error(DATABASE_ERRORS["PARTNERSHIPS_FETCH_FAILED"], 500)
    return jsonify({"ok": True, "positions": [p.to_dict() for p in positions]})


@partnerships_bp.route('/positions', methods=['POST'])
@admin_required
def save_position():
    data = request.get_json(silent=True) or {}
    if not data.get('partnerId'):
        return json_error("Partner ID is required", 400)
    if data.get('x') is None or data.get('y') is None:
        return json_error("Position coordinates (x, y) are required", 400)

    try:
        saved = partner_network.save_positions([(data['partnerId'], data['x'], data['y'])])
    except PartnerValidationError as e:
        return _validation_failed(e)
    except Exception:
        return _save_failed("save position")
    return jsonify({"ok": True, "position": saved[0].to_dict()})


@partnerships_bp.route('/positions', methods=['PUT'])
@admin_required
def save_positions():
    data = request.get_json(silent=True) or {}
    positions = data.get('positions')
    if not isinstance(positions, list):
        return json_error("Positions array is required", 400)

    try:
        entries = [(p['partnerId'], p.get('x'), p.get('y')) for p in positions]
    except (KeyError, TypeError, AttributeError):
        return json_error("Each position needs partnerId, x and y", 400)

    try:
        partner_network.save_positions(entries)
    except PartnerValidationError as e:
        return _validation_failed(e)
    except Exception:
        return _save_failed("save positions")
    return jsonify({"ok": True})


@partnerships_bp.route('/layout', methods=['POST'])
@admin_required
def run_layout():
    """Auto-arrange the network with the force layout and save the positions"""
    data = request.get_json(silent=True) or {}
    options = {
        key: data[key] for key in ('width', 'height', 'seed')
        if isinstance(data.get(key), (int, float)) and not isinstance(data.get(key), bool)
    }
    if 'seed' in options:
        options['seed'] = int(options['seed'])
    try:
        saved = partner_network.auto_layout(**options)
    except Exception:
        return _save_failed("run auto layout")
    return jsonify({"ok": True, "positions": [p.to_dict() for p in saved]})
