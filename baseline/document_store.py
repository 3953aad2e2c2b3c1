"""
Versioned JSON documents edited from the admin dashboard.

Each kind (site content, pitch deck content, business operating system) has a
single current row in ``document_state``; every publish bumps its version and
appends the published payload to ``document_history``.
"""
import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from baseline import db
from baseline.admin_users import author_label
from baseline.models import DocumentHistory, DocumentKind, DocumentState

logger = logging.getLogger(__name__)

DECK_PERSONA_SLUG = "pre-pitch-deck"

DEFAULT_BOS_PAYLOAD: Dict[str, Any] = {
    "northStar": {
        "mission": "",
        "vision": "",
        "principles": [],
        "unfairAdvantages": [],
        "ifNotTrueTest": "",
    },
    "timeHorizons": {
        horizon: {"purpose": "", "narrative": "", "notBelongsHere": ""}
        for horizon in ("tenYear", "fiveYear", "threeYear", "oneYear")
    },
    "theBet": {
        "categoryOwned": "",
        "dataAsset": "",
        "behaviorsChanged": "",
        "whoFeelsThreatened": "",
        "fullNarrative": "",
    },
    "theProof": {"signals": []},
    "quarterly": {
        "currentQuarter": "",
        "theme": "",
        "primaryLever": "",
        "supportingLevers": [],
        "killList": [],
        "successSignal": "",
        "failureSignal": "",
    },
    "experiments": [],
    "weekly": {},
    "systemMap": {},
    "updatedAt": "",
}


def get_document(kind: DocumentKind) -> Optional[DocumentState]:
    return DocumentState.query.filter_by(kind=kind.value).first()


def document_or_default(kind: DocumentKind, default_payload: Dict[str, Any]) -> Dict[str, Any]:
    """Serialized document, or a version 0 placeholder when nothing is published yet"""
    state = get_document(kind)
    if state is None:
        return {
            "id": None,
            "updated_at": None,
            "version": 0,
            "payload": copy.deepcopy(default_payload),
        }
    return state.to_dict()


def publish_document(kind: DocumentKind, payload: Any, admin_slug: str, notes: Optional[str] = None) -> DocumentState:
    """Replace the current payload, bump the version and record history in one commit"""
    author = author_label(admin_slug)
    try:
        state = get_document(kind)
        if state is None:
            state = DocumentState(kind=kind.value, version=0, payload=payload)
            db.session.add(state)
        state.version = (state.version or 0) + 1
        state.payload = payload
        state.updated_by = author
        state.updated_at = datetime.now(timezone.utc)

        db.session.add(DocumentHistory(
            kind=kind.value,
            version=state.version,
            author=author,
            payload=payload,
            notes=notes or None,
        ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("%s published %s version %d", author, kind.value, state.version)
    return state


def document_history(kind: DocumentKind, limit: int = 20) -> List[DocumentHistory]:
    return (
        DocumentHistory.query
        .filter_by(kind=kind.value)
        .order_by(DocumentHistory.version.desc())
        .limit(limit)
        .all()
    )


def site_investors() -> List[Dict[str, Any]]:
    """Investor personas from the published site content"""
    state = get_document(DocumentKind.SITE)
    if state is None or not isinstance(state.payload, dict):
        return []
    investors = state.payload.get("investors") or []
    return [inv for inv in investors if isinstance(inv, dict)]


def find_investor(slug: str) -> Optional[Dict[str, Any]]:
    for investor in site_investors():
        if investor.get("slug") == slug:
            return investor
    return None


def public_investors() -> List[Dict[str, Any]]:
    """Login dropdown entries; PINs and personalised content stay server-side"""
    return [
        {
            "slug": inv.get("slug"),
            "name": inv.get("name"),
            "firm": inv.get("firm"),
            "title": inv.get("title"),
        }
        for inv in site_investors()
    ]


def public_site_payload(payload: Any) -> Any:
    """Site content as served to browsers, with every investor PIN removed"""
    if not isinstance(payload, dict) or not isinstance(payload.get("investors"), list):
        return payload
    public = dict(payload)
    public["investors"] = [
        {key: value for key, value in inv.items() if key != "pin"} if isinstance(inv, dict) else inv
        for inv in payload["investors"]
    ]
    return public


def record_self_report(slug: str) -> int:
    """Bump ``selfReportCount`` on one investor persona and publish the result.

    Raises LookupError when there is no site content or no persona with that slug.
    """
    state = get_document(DocumentKind.SITE)
    if state is None or not isinstance(state.payload, dict):
        raise LookupError("site content has not been published")

    payload = copy.deepcopy(state.payload)
    investor = next(
        (inv for inv in payload.get("investors") or [] if isinstance(inv, dict) and inv.get("slug") == slug),
        None,
    )
    if investor is None:
        raise LookupError(f"no investor persona {slug}")
    investor["selfReportCount"] = int(investor.get("selfReportCount") or 0) + 1

    author = f"Self-report: {slug}"
    try:
        state.version = (state.version or 0) + 1
        state.payload = payload
        state.updated_by = author
        state.updated_at = datetime.now(timezone.utc)
        db.session.add(DocumentHistory(
            kind=DocumentKind.SITE.value,
            version=state.version,
            author=author,
            payload=payload,
        ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("%s bumped site version to %d", author, state.version)
    return investor["selfReportCount"]
