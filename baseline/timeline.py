"""
Update schedule timeline: validation, defaults and persistence.

Timelines travel in the camelCase shape the Gantt editor uses
(``timelineStart``, ``phases[].startPercent`` ...). Phase bars are positioned
in percent of the full timeline width.
"""
import copy
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from baseline import db
from baseline.models import UpdateSchedule, UpdateScheduleHistory

logger = logging.getLogger(__name__)

DEFAULT_TIMELINE: Dict[str, Any] = {
    'timelineStart': '2025-12-01',
    'timelineEnd': '2026-06-30',
    'timelineMonths': ['Dec 2025', 'Jan 2026', 'Feb 2026', 'Mar 2026', 'Apr 2026', 'May 2026', 'Jun 2026'],
    'phases': [
        {
            'id': 'phase-planning',
            'type': 'planning',
            'label': 'Phase 1 – Planning',
            'timing': 'Dec 2025',
            'focus': 'MVP scope, data models, and facility onboarding architecture.',
            'startPercent': 3,
            'widthPercent': 20,
            'color': '#6b7280',
            'colorGradient': 'linear-gradient(90deg, #6b7280, #9ca3af)',
        },
        {
            'id': 'phase-dev',
            'type': 'dev',
            'label': 'Phase 2 – Build',
            'timing': 'Jan – Feb 2026',
            'focus': 'Facility OS foundations, ingestion pipeline, investor hub v1.',
            'startPercent': 18,
            'widthPercent': 35,
            'color': '#4f9edb',
            'colorGradient': 'linear-gradient(90deg, #4f9edb, #7cc0ff)',
        },
        {
            'id': 'phase-test',
            'type': 'test',
            'label': 'Phase 3 – Validation',
            'timing': 'Mar 2026',
            'focus': 'Closed pilots, QA, data quality sweeps, investor preview.',
            'startPercent': 48,
            'widthPercent': 20,
            'color': '#eab308',
            'colorGradient': 'linear-gradient(90deg, #facc15, #fde047)',
        },
        {
            'id': 'phase-launch',
            'type': 'launch',
            'label': 'Phase 4 – Launch',
            'timing': 'May 2026',
            'focus': 'MVP release, enablement, and investor launch cadence.',
            'startPercent': 61,
            'widthPercent': 15,
            'color': '#f26c1a',
            'colorGradient': 'linear-gradient(90deg, #f26c1a, #faae6b)',
        },
        {
            'id': 'phase-post',
            'type': 'post',
            'label': 'Phase 5 – Post-Launch & Phase 2 Prep',
            'timing': 'Late May – Jun 2026',
            'focus': 'Metrics review, second facility cohort, Phase 2 scope.',
            'startPercent': 72,
            'widthPercent': 15,
            'color': '#22c55e',
            'colorGradient': 'linear-gradient(90deg, #22c55e, #4ade80)',
        },
    ],
    'milestones': [
        {'id': 'm1', 'title': 'MVP Scope Defined', 'date': '2025-12-15', 'meta': 'Dec 15, 2025'},
        {'id': 'm2', 'title': 'Architecture Finalized', 'date': '2025-12-22', 'meta': 'Dec 22, 2025'},
        {'id': 'm3', 'title': 'UI/UX Complete', 'date': '2026-01-10', 'meta': 'Jan 10, 2026'},
        {'id': 'm4', 'title': 'Core Features Built', 'date': '2026-03-01', 'meta': 'Mar 1, 2026'},
        {'id': 'm5', 'title': 'Feature Freeze', 'date': '2026-03-08', 'meta': 'Mar 8, 2026'},
        {'id': 'm6', 'title': 'Alpha Testing', 'date': '2026-03-10', 'meta': 'Starts Mar 10, 2026'},
        {'id': 'm7', 'title': 'Beta Launch', 'date': '2026-04-01', 'meta': 'Apr 1, 2026'},
        {'id': 'm8', 'title': 'MVP Public Launch', 'date': '2026-05-10', 'meta': 'May 10, 2026'},
        {'id': 'm9', 'title': 'Metrics Review', 'date': '2026-05-25', 'meta': 'Late May 2026'},
        {'id': 'm10', 'title': 'Phase 2 Planning', 'date': '2026-06-15', 'meta': 'June 2026'},
    ],
    'title': 'Baseline Analytics – MVP Gantt',
    'subtitle': 'MVP build for Facility OS, investor reporting, and internal dashboard infrastructure.',
    'footerText': 'Edit dates, text, and bar widths in this file to refresh the roadmap.',
    'colors': {
        'planning': '#6b7280',
        'dev': '#4f9edb',
        'test': '#eab308',
        'launch': '#f26c1a',
        'post': '#22c55e',
    },
}


def default_timeline() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_TIMELINE)


def parse_date(value) -> Optional[datetime]:
    """Parse an ISO date or datetime string; None when it is not one"""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(text[:10]), datetime.min.time())
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ''


def _number(value) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def validate_phase(phase: Dict[str, Any]) -> List[str]:
    errors = []
    if not _text(phase.get('label')):
        errors.append('Phase label is required')
    if not _text(phase.get('timing')):
        errors.append('Phase timing is required')
    if not _text(phase.get('focus')):
        errors.append('Phase focus is required')

    start = _number(phase.get('startPercent'))
    width = _number(phase.get('widthPercent'))
    if start is None or start < 0 or start > 100:
        errors.append('Start position must be between 0-100%')
    if width is None or width <= 0 or width > 100:
        errors.append('Width must be between 1-100%')
    if start is not None and width is not None and start + width > 100:
        errors.append('Phase extends beyond 100% of timeline')
    return errors


def validate_milestone(milestone: Dict[str, Any]) -> List[str]:
    errors = []
    if not _text(milestone.get('title')):
        errors.append('Milestone title is required')
    if not milestone.get('date'):
        errors.append('Milestone date is required')
    elif parse_date(milestone.get('date')) is None:
        errors.append('Invalid milestone date')
    return errors


def validate_timeline(timeline: Dict[str, Any]) -> Dict[str, List[str]]:
    """
    Validate a whole timeline.

    Returns a mapping of field path (``timeline``, ``title``, ``phase-<i>``,
    ``milestone-<i>``) to error messages; empty when the timeline is valid.
    """
    errors: Dict[str, List[str]] = {}

    start = parse_date(timeline.get('timelineStart'))
    end = parse_date(timeline.get('timelineEnd'))
    timeline_errors = []
    if start is None:
        timeline_errors.append('Invalid start date')
    if end is None:
        timeline_errors.append('Invalid end date')
    if start is not None and end is not None and start >= end:
        timeline_errors.append('End date must be after start date')
    if timeline_errors:
        errors['timeline'] = timeline_errors

    if not _text(timeline.get('title')):
        errors['title'] = ['Title is required']

    for idx, phase in enumerate(timeline.get('phases') or []):
        phase_errors = validate_phase(phase if isinstance(phase, dict) else {})
        if phase_errors:
            errors[f'phase-{idx}'] = phase_errors

    for idx, milestone in enumerate(timeline.get('milestones') or []):
        milestone_errors = validate_milestone(milestone if isinstance(milestone, dict) else {})
        if milestone_errors:
            errors[f'milestone-{idx}'] = milestone_errors

    return errors


def today_line_position(start: str, end: str, now: Optional[datetime] = None) -> float:
    """Where today falls on the timeline, as a percentage clamped to 0-100"""
    start_at = parse_date(start)
    end_at = parse_date(end)
    if start_at is None or end_at is None or end_at <= start_at:
        return 0.0
    now = now or datetime.now(timezone.utc)
    percent = (now - start_at).total_seconds() / (end_at - start_at).total_seconds() * 100
    return min(max(percent, 0.0), 100.0)


def get_active_schedule() -> Optional[UpdateSchedule]:
    return UpdateSchedule.query.filter_by(is_active=True).order_by(UpdateSchedule.updated_at.desc()).first()


def fetch_active_timeline() -> Dict[str, Any]:
    """The active timeline, falling back to the built-in default"""
    try:
        schedule = get_active_schedule()
    except Exception:
        logger.exception("Timeline fetch failed")
        return default_timeline()
    if schedule is None:
        return default_timeline()

    fallback = DEFAULT_TIMELINE
    timeline = schedule.to_timeline()
    if not isinstance(schedule.timeline_months, list):
        timeline['timelineMonths'] = list(fallback['timelineMonths'])
    if not isinstance(schedule.phases, list):
        timeline['phases'] = copy.deepcopy(fallback['phases'])
    if not isinstance(schedule.milestones, list):
        timeline['milestones'] = copy.deepcopy(fallback['milestones'])
    if not schedule.colors:
        timeline['colors'] = dict(fallback['colors'])
    return timeline


def save_timeline(timeline: Dict[str, Any], author: str, notes: Optional[str] = None) -> UpdateSchedule:
    """Write a validated timeline to the active row and append it to history"""
    try:
        schedule = get_active_schedule()
        if schedule is None:
            schedule = UpdateSchedule(version=0, is_active=True)
            db.session.add(schedule)

        schedule.timeline_start = timeline.get('timelineStart')
        schedule.timeline_end = timeline.get('timelineEnd')
        schedule.timeline_months = timeline.get('timelineMonths') or []
        schedule.phases = timeline.get('phases') or []
        schedule.milestones = timeline.get('milestones') or []
        schedule.title = _text(timeline.get('title'))
        schedule.subtitle = timeline.get('subtitle') or ''
        schedule.footer_text = timeline.get('footerText') or ''
        schedule.colors = timeline.get('colors') or {}
        schedule.version = (schedule.version or 0) + 1
        schedule.updated_by = author
        schedule.updated_at = datetime.now(timezone.utc)

        db.session.add(UpdateScheduleHistory(
            author=author,
            version=schedule.version,
            timeline=timeline,
            notes=notes or None,
        ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Update schedule saved by %s (version %d)", author, schedule.version)
    return schedule
