"""
Database Models

Key Models:
- Slide: one rendered PDF page of the pitch deck
- PitchDeckSettings: global presentation settings (slide size)
- DocumentState / DocumentHistory: versioned JSON documents (site, pitch deck, BOS)
- UpdateSchedule / UpdateScheduleHistory: investor update timeline
- Partner / PartnerConnection / PartnerNodePosition: partner network graph
- InvestorAgreement / InvestorSession: terms acceptance and login visits per investor
"""
import enum
import uuid
from datetime import datetime, timezone

from baseline import db


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class SlideSize(enum.Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    WIDE = "wide"
    FULL = "full"


class DocumentKind(enum.Enum):
    SITE = "site"
    PITCH_DECK = "pitch_deck"
    BOS = "bos"


class Slide(db.Model):
    """
    A rendered pitch deck page.

    slide_number is the 1-based PDF page the image came from and never changes.
    display_order is the admin-controlled presentation position.
    """
    __tablename__ = 'pitch_deck_slides'

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    slide_number = db.Column(db.Integer, nullable=False)
    display_order = db.Column(db.Integer, nullable=False, index=True)
    image_url = db.Column(db.String(1000), nullable=False)
    storage_path = db.Column(db.String(500), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'slide_number': self.slide_number,
            'display_order': self.display_order,
            'image_url': self.image_url,
            'is_active': self.is_active,
            'created_at': _iso(self.created_at),
        }


class PitchDeckSettings(db.Model):
    __tablename__ = 'pitch_deck_settings'

    id = db.Column(db.Integer, primary_key=True)
    slide_size = db.Column(db.String(20), default=SlideSize.MEDIUM.value, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    @classmethod
    def current(cls):
        """Return the settings row, creating it on first use"""
        settings = cls.query.order_by(cls.id).first()
        if settings is None:
            settings = cls(slide_size=SlideSize.MEDIUM.value)
            db.session.add(settings)
            db.session.flush()
        return settings

    def to_dict(self):
        return {
            'slide_size': self.slide_size,
            'updated_at': _iso(self.updated_at),
        }


class DocumentState(db.Model):
    """Latest version of an admin-edited JSON document, one row per kind."""
    __tablename__ = 'document_state'

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(30), unique=True, nullable=False)
    payload = db.Column(db.JSON, nullable=False)
    version = db.Column(db.Integer, default=1, nullable=False)
    updated_by = db.Column(db.String(100))
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'updated_at': _iso(self.updated_at),
            'version': self.version,
            'payload': self.payload,
        }


class DocumentHistory(db.Model):
    """Append-only record of every published document version."""
    __tablename__ = 'document_history'

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(30), nullable=False, index=True)
    version = db.Column(db.Integer, nullable=False)
    author = db.Column(db.String(100), nullable=False)
    payload = db.Column(db.JSON, nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'kind': self.kind,
            'version': self.version,
            'author': self.author,
            'notes': self.notes,
            'payload': self.payload,
            'created_at': _iso(self.created_at),
        }


class UpdateSchedule(db.Model):
    __tablename__ = 'update_schedule_state'

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    timeline_start = db.Column(db.String(40), nullable=False)
    timeline_end = db.Column(db.String(40), nullable=False)
    timeline_months = db.Column(db.JSON)
    phases = db.Column(db.JSON)
    milestones = db.Column(db.JSON)
    title = db.Column(db.String(255), nullable=False)
    subtitle = db.Column(db.Text)
    footer_text = db.Column(db.Text)
    colors = db.Column(db.JSON)
    version = db.Column(db.Integer, default=1, nullable=False)
    updated_by = db.Column(db.String(100))
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)

    def to_timeline(self):
        """Convert to the camelCase shape the timeline editor uses"""
        return {
            'id': self.id,
            'timelineStart': self.timeline_start,
            'timelineEnd': self.timeline_end,
            'timelineMonths': self.timeline_months or [],
            'phases': self.phases or [],
            'milestones': self.milestones or [],
            'title': self.title,
            'subtitle': self.subtitle or '',
            'footerText': self.footer_text or '',
            'colors': self.colors or {},
            'version': self.version,
            'updatedBy': self.updated_by,
            'updatedAt': _iso(self.updated_at),
        }


class UpdateScheduleHistory(db.Model):
    __tablename__ = 'update_schedule_history'

    id = db.Column(db.Integer, primary_key=True)
    author = db.Column(db.String(100), nullable=False)
    version = db.Column(db.Integer, nullable=False)
    timeline = db.Column(db.JSON, nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)


class Partner(db.Model):
    __tablename__ = 'partners'

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(20), default='ecosystem', nullable=False, index=True)
    location_city = db.Column(db.String(120))
    location_state = db.Column(db.String(120))
    location_country = db.Column(db.String(120), default='USA')
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)
    ecosystem_impact = db.Column(db.Integer, default=5, nullable=False)
    population_reach = db.Column(db.Integer)
    company_size = db.Column(db.String(20))
    client_potential = db.Column(db.Integer)
    status = db.Column(db.String(20), default='target', nullable=False, index=True)
    end_game = db.Column(db.Text)
    notes = db.Column(db.Text)
    website = db.Column(db.String(500))
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    connections_from = db.relationship(
        'PartnerConnection', foreign_keys='PartnerConnection.from_partner_id',
        back_populates='from_partner', cascade='all, delete-orphan')
    connections_to = db.relationship(
        'PartnerConnection', foreign_keys='PartnerConnection.to_partner_id',
        back_populates='to_partner', cascade='all, delete-orphan')
    node_position = db.relationship(
        'PartnerNodePosition', back_populates='partner', uselist=False, cascade='all, delete-orphan')

    EDITABLE_FIELDS = (
        'name', 'type', 'location_city', 'location_state', 'location_country',
        'latitude', 'longitude', 'ecosystem_impact', 'population_reach',
        'company_size', 'client_potential', 'status', 'end_game', 'notes', 'website',
    )

    def to_dict(self):
        result = {field: getattr(self, field) for field in self.EDITABLE_FIELDS}
        result['id'] = self.id
        result['created_at'] = _iso(self.created_at)
        result['updated_at'] = _iso(self.updated_at)
        return result


class PartnerConnection(db.Model):
    __tablename__ = 'partner_connections'

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    from_partner_id = db.Column(db.String(36), db.ForeignKey('partners.id', ondelete='CASCADE'), nullable=False, index=True)
    to_partner_id = db.Column(db.String(36), db.ForeignKey('partners.id', ondelete='CASCADE'), nullable=False, index=True)
    connection_type = db.Column(db.String(20), default='knows', nullable=False)
    strength = db.Column(db.Integer, default=3, nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    from_partner = db.relationship('Partner', foreign_keys=[from_partner_id], back_populates='connections_from')
    to_partner = db.relationship('Partner', foreign_keys=[to_partner_id], back_populates='connections_to')

    def to_dict(self):
        return {
            'id': self.id,
            'from_partner_id': self.from_partner_id,
            'to_partner_id': self.to_partner_id,
            'connection_type': self.connection_type,
            'strength': self.strength,
            'notes': self.notes,
            'created_at': _iso(self.created_at),
        }


class PartnerNodePosition(db.Model):
    __tablename__ = 'partner_node_positions'

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    partner_id = db.Column(db.String(36), db.ForeignKey('partners.id', ondelete='CASCADE'), unique=True, nullable=False)
    x_position = db.Column(db.Float, nullable=False)
    y_position = db.Column(db.Float, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    partner = db.relationship('Partner', back_populates='node_position')

    def to_dict(self):
        return {
            'id': self.id,
            'partner_id': self.partner_id,
            'x_position': self.x_position,
            'y_position': self.y_position,
            'updated_at': _iso(self.updated_at),
        }


class InvestorAgreement(db.Model):
    """Terms acceptance, at most one row per investor."""
    __tablename__ = 'investor_agreements'

    id = db.Column(db.Integer, primary_key=True)
    investor_slug = db.Column(db.String(100), unique=True, nullable=False)
    agreed_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)


class InvestorSession(db.Model):
    __tablename__ = 'investor_sessions'

    id = db.Column(db.Integer, primary_key=True)
    investor_slug = db.Column(db.String(100), nullable=False, index=True)
    login_timestamp = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
