"""
Investor activity: login visits and terms acceptance
"""
import logging
from typing import Dict, Optional

from baseline import db
from baseline.models import InvestorAgreement, InvestorSession

logger = logging.getLogger(__name__)


def record_login(slug: str) -> None:
    """Log one investor visit; a failure here never blocks the login itself"""
    try:
        db.session.add(InvestorSession(investor_slug=slug))
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Could not record login for %s", slug)


def session_stats() -> Dict[str, Dict]:
    """Visit totals and the latest login per investor slug"""
    stats: Dict[str, Dict] = {}
    rows = InvestorSession.query.order_by(InvestorSession.login_timestamp.desc()).all()
    for row in rows:
        entry = stats.setdefault(row.investor_slug, {
            "lastLogin": row.login_timestamp.isoformat(),
            "totalVisits": 0,
        })
        entry["totalVisits"] += 1
    return stats


def reset_visits(slug: str) -> int:
    try:
        removed = InvestorSession.query.filter_by(investor_slug=slug).delete()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Reset %d visits for %s", removed, slug)
    return removed


def get_agreement(slug: str) -> Optional[InvestorAgreement]:
    return InvestorAgreement.query.filter_by(investor_slug=slug).first()


def record_agreement(slug: str):
    """Store the acceptance once. Returns ``(agreement, created)``"""
    existing = get_agreement(slug)
    if existing is not None:
        return existing, False

    agreement = InvestorAgreement(investor_slug=slug)
    try:
        db.session.add(agreement)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Investor %s agreed to terms", slug)
    return agreement, True
