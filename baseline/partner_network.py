"""
Partner network: validation and persistence for partners, their connections
and saved graph positions.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from baseline import db
from baseline.models import Partner, PartnerConnection, PartnerNodePosition
from baseline.network_layout import LayoutEdge, force_layout

logger = logging.getLogger(__name__)

PARTNER_TYPES = ('ecosystem', 'tech', 'person')
PARTNER_STATUSES = ('target', 'contacted', 'in_progress', 'secured', 'inactive')
COMPANY_SIZES = ('startup', 'small', 'medium', 'large', 'enterprise')
CONNECTION_TYPES = ('works_at', 'knows', 'target_intro', 'client_of', 'partner_of')

PARTNER_DEFAULTS = {
    'type': 'ecosystem',
    'location_country': 'USA',
    'ecosystem_impact': 5,
    'status': 'target',
}
CONNECTION_DEFAULTS = {
    'connection_type': 'knows',
    'strength': 3,
}


class PartnerValidationError(ValueError):
    """Submitted partner or connection data failed validation"""

    def __init__(self, errors: List[Dict[str, str]]):
        super().__init__("; ".join(e['message'] for e in errors))
        self.errors = errors


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def validate_partner(partner: Dict[str, Any]) -> List[Dict[str, str]]:
    errors = []

    def add(field, message):
        errors.append({'field': field, 'message': message})

    if _blank(partner.get('name')):
        add('name', 'Partner name is required')

    partner_type = partner.get('type')
    if _blank(partner_type):
        add('type', 'Partner type is required')
    elif partner_type not in PARTNER_TYPES:
        add('type', 'Partner type must be ecosystem, tech, or person')

    impact = partner.get('ecosystem_impact')
    if impact is None:
        add('ecosystem_impact', 'Ecosystem impact is required')
    elif not _is_number(impact) or impact < 1 or impact > 10:
        add('ecosystem_impact', 'Ecosystem impact must be between 1 and 10')

    status = partner.get('status')
    if _blank(status):
        add('status', 'Status is required')
    elif status not in PARTNER_STATUSES:
        add('status', 'Invalid status value')

    if partner.get('company_size') and partner['company_size'] not in COMPANY_SIZES:
        add('company_size', 'Invalid company size value')

    lat = partner.get('latitude')
    lng = partner.get('longitude')
    if (lat is None) != (lng is None):
        add('coordinates', 'Both latitude and longitude must be provided together')
    if lat is not None and (not _is_number(lat) or lat < -90 or lat > 90):
        add('latitude', 'Latitude must be between -90 and 90')
    if lng is not None and (not _is_number(lng) or lng < -180 or lng > 180):
        add('longitude', 'Longitude must be between -180 and 180')

    for field, label in (('population_reach', 'Population reach'), ('client_potential', 'Client potential')):
        value = partner.get(field)
        if value is not None and (not _is_number(value) or value < 0):
            add(field, f'{label} must be a positive number')

    if partner.get('website') and not is_valid_url(partner['website']):
        add('website', 'Website must be a valid URL')

    return errors


def validate_connection(connection: Dict[str, Any]) -> List[Dict[str, str]]:
    errors = []

    def add(field, message):
        errors.append({'field': field, 'message': message})

    source = connection.get('from_partner_id')
    target = connection.get('to_partner_id')
    if not source:
        add('from_partner_id', 'Source partner is required')
    if not target:
        add('to_partner_id', 'Target partner is required')
    if source and target and source == target:
        add('to_partner_id', 'Cannot connect a partner to itself')

    connection_type = connection.get('connection_type')
    if not connection_type:
        add('connection_type', 'Connection type is required')
    elif connection_type not in CONNECTION_TYPES:
        add('connection_type', 'Invalid connection type')

    strength = connection.get('strength')
    if strength is None:
        add('strength', 'Connection strength is required')
    elif not _is_number(strength) or strength < 1 or strength > 5:
        add('strength', 'Connection strength must be between 1 and 5')

    return errors


def _with_defaults(data: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(data)
    for key, value in defaults.items():
        if _blank(merged.get(key)):
            merged[key] = value
    return merged


def _clean_partner_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {}
    for field in Partner.EDITABLE_FIELDS:
        value = data.get(field)
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[field] = value
    return cleaned


def list_partners(partner_type: Optional[str] = None, status: Optional[str] = None) -> List[Partner]:
    query = Partner.query
    if partner_type and partner_type != 'all':
        query = query.filter_by(type=partner_type)
    if status and status != 'all':
        query = query.filter_by(status=status)
    return query.order_by(Partner.created_at.desc()).all()


def create_partner(data: Dict[str, Any], node_position: Optional[Dict[str, Any]] = None) -> Partner:
    fields = _clean_partner_fields(_with_defaults(data, PARTNER_DEFAULTS))
    errors = validate_partner(fields)
    if errors:
        raise PartnerValidationError(errors)

    partner = Partner(**fields)
    db.session.add(partner)
    db.session.flush()
    if node_position and _is_number(node_position.get('x')) and _is_number(node_position.get('y')):
        db.session.add(PartnerNodePosition(
            partner_id=partner.id,
            x_position=float(node_position['x']),
            y_position=float(node_position['y']),
        ))
    db.session.commit()
    logger.info("Created partner %s (%s)", partner.name, partner.id)
    return partner


def update_partner(partner: Partner, data: Dict[str, Any]) -> Partner:
    """Apply the submitted fields on top of the stored partner"""
    merged = partner.to_dict()
    merged.update({k: v for k, v in data.items() if k in Partner.EDITABLE_FIELDS})
    fields = _clean_partner_fields(merged)
    errors = validate_partner(fields)
    if errors:
        raise PartnerValidationError(errors)

    for field, value in fields.items():
        setattr(partner, field, value)
    partner.updated_at = datetime.now(timezone.utc)
    db.session.commit()
    return partner


def delete_partner(partner: Partner) -> None:
    """Connections and the saved position go with the partner"""
    db.session.delete(partner)
    db.session.commit()


def list_connections(partner_id: Optional[str] = None) -> List[PartnerConnection]:
    query = PartnerConnection.query
    if partner_id:
        query = query.filter(db.or_(
            PartnerConnection.from_partner_id == partner_id,
            PartnerConnection.to_partner_id == partner_id,
        ))
    return query.order_by(PartnerConnection.created_at.asc()).all()


def _require_partners(*partner_ids: str) -> None:
    found = {pid for (pid,) in db.session.query(Partner.id).filter(Partner.id.in_(partner_ids)).all()}
    missing = [pid for pid in partner_ids if pid not in found]
    if missing:
        raise PartnerValidationError([
            {'field': 'partner', 'message': f'Unknown partner {pid}'} for pid in missing
        ])


def create_connection(data: Dict[str, Any]) -> PartnerConnection:
    fields = _with_defaults(data, CONNECTION_DEFAULTS)
    errors = validate_connection(fields)
    if errors:
        raise PartnerValidationError(errors)
    _require_partners(fields['from_partner_id'], fields['to_partner_id'])

    connection = PartnerConnection(
        from_partner_id=fields['from_partner_id'],
        to_partner_id=fields['to_partner_id'],
        connection_type=fields['connection_type'],
        strength=int(fields['strength']),
        notes=(fields.get('notes') or None),
    )
    db.session.add(connection)
    db.session.commit()
    return connection


def update_connection(connection: PartnerConnection, data: Dict[str, Any]) -> PartnerConnection:
    """Only type, strength and notes change; the endpoints are fixed"""
    merged = connection.to_dict()
    for field in ('connection_type', 'strength', 'notes'):
        if field in data:
            merged[field] = data[field]
    errors = validate_connection(merged)
    if errors:
        raise PartnerValidationError(errors)

    connection.connection_type = merged['connection_type']
    connection.strength = int(merged['strength'])
    connection.notes = merged.get('notes') or None
    db.session.commit()
    return connection


def delete_connection(connection: PartnerConnection) -> None:
    db.session.delete(connection)
    db.session.commit()


def list_positions() -> List[PartnerNodePosition]:
    return PartnerNodePosition.query.all()


def _upsert_position(partner_id: str, x: float, y: float) -> PartnerNodePosition:
    position = PartnerNodePosition.query.filter_by(partner_id=partner_id).first()
    if position is None:
        position = PartnerNodePosition(partner_id=partner_id, x_position=x, y_position=y)
        db.session.add(position)
    else:
        position.x_position = x
        position.y_position = y
        position.updated_at = datetime.now(timezone.utc)
    return position


def save_positions(entries: Iterable[Tuple[str, float, float]]) -> List[PartnerNodePosition]:
    """Upsert positions keyed by partner; all or nothing"""
    entries = list(entries)
    for _, x, y in entries:
        if not _is_number(x) or not _is_number(y):
            raise PartnerValidationError([{'field': 'position', 'message': 'Position coordinates (x, y) are required'}])
    _require_partners(*{partner_id for partner_id, _, _ in entries})
    try:
        saved = [_upsert_position(partner_id, float(x), float(y)) for partner_id, x, y in entries]
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return saved


def auto_layout(width: Optional[float] = None, height: Optional[float] = None,
                seed: Optional[int] = None) -> List[PartnerNodePosition]:
    """Run the force layout over the whole network and persist the result"""
    partners = Partner.query.order_by(Partner.created_at.asc()).all()
    if not partners:
        return []
    edges = [
        LayoutEdge(c.from_partner_id, c.to_partner_id, c.strength)
        for c in PartnerConnection.query.all()
    ]
    current = {p.partner_id: (p.x_position, p.y_position) for p in list_positions()}

    kwargs = {}
    if width:
        kwargs['width'] = float(width)
    if height:
        kwargs['height'] = float(height)
    layout = force_layout([p.id for p in partners], edges, current, seed=seed, **kwargs)

    saved = save_positions((pid, x, y) for pid, (x, y) in layout.items())
    logger.info("Auto layout placed %d partners across %d connections", len(saved), len(edges))
    return saved
