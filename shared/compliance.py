"""Subcontractor compliance evaluation.

Two separate computations live here and are intentionally not unified:

- ``compliance_score`` is the live, expiry-aware 0-100 score used for
  reporting. It is recomputed on every read and never stored.
- ``bid_compliance_snapshot`` is the coarse boolean frozen onto a bid when it
  is submitted. It only looks at the three on-file flags.

All functions are pure and take ``now`` explicitly so callers control the clock.
"""
import math
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional
from shared.enums import ComplianceStatus

EXPIRING_WINDOW_DAYS = 30

POINTS_VALID = 25
POINTS_EXPIRING = 15
POINTS_ON_FILE = 12.5
TOTAL_POINTS = 100

# (report label, expiry field, status key in a compliance item)
DOCUMENT_TYPES = (
    ('Insurance', 'insurance_expiry', 'insurance_status'),
    ('License', 'license_expiry', 'license_status'),
    ('Workers Comp', 'workers_comp_expiry', 'workers_comp_status'),
)

EXPIRING_DOCUMENTS_LIMIT = 20


def _field(subcontractor, name):
    if isinstance(subcontractor, Mapping):
        return subcontractor.get(name)
    return getattr(subcontractor, name, None)


def to_datetime(value: Any, now: datetime) -> Optional[datetime]:
    """Normalize an expiry value to a datetime comparable with ``now``.

    Plain dates (and ISO date strings) become midnight at the start of that
    day in ``now``'s timezone.
    """
    if value is None or value == '':
        return None
    if isinstance(value, str):
        value = value.strip()
        value = date.fromisoformat(value) if len(value) == 10 else datetime.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is None and now.tzinfo is not None:
            return value.replace(tzinfo=now.tzinfo)
        if value.tzinfo is not None and now.tzinfo is None:
            return value.replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=now.tzinfo)
    raise TypeError(f"Unsupported expiry value: {value!r}")


def compliance_status(expiry: Any, now: datetime, window_days: int = EXPIRING_WINDOW_DAYS) -> ComplianceStatus:
    """Classify a single document's expiry.

    missing: no expiry recorded
    expired: expiry <= now
    expiring: now < expiry < now + window
    valid: expiry >= now + window
    """
    expiry_at = to_datetime(expiry, now)
    if expiry_at is None:
        return ComplianceStatus.MISSING
    if expiry_at <= now:
        return ComplianceStatus.EXPIRED
    if expiry_at < now + timedelta(days=window_days):
        return ComplianceStatus.EXPIRING
    return ComplianceStatus.VALID


def _document_points(status):
    if status == ComplianceStatus.VALID:
        return POINTS_VALID
    if status == ComplianceStatus.EXPIRING:
        return POINTS_EXPIRING
    return 0


def compliance_score(subcontractor, now: datetime, window_days: int = EXPIRING_WINDOW_DAYS) -> int:
    """Weighted compliance score in [0, 100], rounded half up."""
    points = 0.0
    for _, expiry_field, _ in DOCUMENT_TYPES:
        points += _document_points(compliance_status(_field(subcontractor, expiry_field), now, window_days))
    if _field(subcontractor, 'coi_on_file'):
        points += POINTS_ON_FILE
    if _field(subcontractor, 'w9_on_file'):
        points += POINTS_ON_FILE
    return int(math.floor(points * 100 / TOTAL_POINTS + 0.5))


def bid_compliance_snapshot(subcontractor) -> bool:
    """Coarse compliance flag frozen onto a bid at submission time.

    Ignores expiry dates entirely. An unknown subcontractor is not compliant.
    """
    if subcontractor is None:
        return False
    return bool(
        _field(subcontractor, 'license_verified')
        and _field(subcontractor, 'coi_on_file')
        and _field(subcontractor, 'w9_on_file')
    )


def _iso(value):
    if value is None:
        return None
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return str(value)


def evaluate_subcontractor(subcontractor, now: datetime, window_days: int = EXPIRING_WINDOW_DAYS) -> dict:
    """Build the per-subcontractor compliance item used in reports."""
    rating = _field(subcontractor, 'rating')
    item = {
        'subcontractor_id': str(_field(subcontractor, 'id')),
        'company_name': _field(subcontractor, 'company_name'),
        'trade': _field(subcontractor, 'primary_trade') or None,
        'coi_on_file': bool(_field(subcontractor, 'coi_on_file')),
        'w9_on_file': bool(_field(subcontractor, 'w9_on_file')),
        'rating': float(rating) if rating else None,
    }
    for _, expiry_field, status_key in DOCUMENT_TYPES:
        expiry = _field(subcontractor, expiry_field)
        item[status_key] = compliance_status(expiry, now, window_days).value
        item[expiry_field] = _iso(expiry)
    item['overall_score'] = compliance_score(subcontractor, now, window_days)
    return item


def _round_tenths(value):
    """Round to one decimal place, halves up."""
    return math.floor(value * 10 + 0.5) / 10


def _days_until(expiry, now):
    delta = to_datetime(expiry, now) - now
    return math.ceil(delta.total_seconds() / 86400)


def build_compliance_report(subcontractors: Iterable, now: datetime, window_days: int = EXPIRING_WINDOW_DAYS) -> dict:
    """Summarize compliance across a set of subcontractors.

    Returns summary counts, one item per subcontractor, the documents that
    are expiring or expired (soonest first) and a breakdown by trade.
    """
    subcontractors = list(subcontractors)
    items = [evaluate_subcontractor(sub, now, window_days) for sub in subcontractors]

    status_keys = [status_key for _, _, status_key in DOCUMENT_TYPES]
    summary = {
        'total_subs': len(items),
        'fully_compliant': sum(1 for item in items if item['overall_score'] == 100),
        'expiring_soon': sum(
            1 for item in items
            if any(item[key] == ComplianceStatus.EXPIRING.value for key in status_keys)
        ),
        'expired': sum(
            1 for item in items
            if any(item[key] == ComplianceStatus.EXPIRED.value for key in status_keys)
        ),
    }

    expiring_documents = []
    flagged = (ComplianceStatus.EXPIRING.value, ComplianceStatus.EXPIRED.value)
    for sub, item in zip(subcontractors, items):
        for label, expiry_field, status_key in DOCUMENT_TYPES:
            expiry = _field(sub, expiry_field)
            if expiry and item[status_key] in flagged:
                expiring_documents.append({
                    'subcontractor_id': item['subcontractor_id'],
                    'company_name': item['company_name'],
                    'doc_type': label,
                    'expiry_date': item[expiry_field],
                    'days_until': _days_until(expiry, now),
                })
    expiring_documents.sort(key=lambda doc: doc['days_until'])

    trades = {}
    for item in items:
        entry = trades.setdefault(item['trade'] or 'Unknown', {'count': 0, 'ratings': [], 'compliant': 0})
        entry['count'] += 1
        if item['rating']:
            entry['ratings'].append(item['rating'])
        if item['overall_score'] == 100:
            entry['compliant'] += 1

    by_trade = [{
        'trade': trade,
        'count': entry['count'],
        'avg_rating': _round_tenths(sum(entry['ratings']) / len(entry['ratings'])) if entry['ratings'] else 0,
        'compliant_count': entry['compliant'],
    } for trade, entry in trades.items()]

    return {
        'summary': summary,
        'compliance_items': items,
        'expiring_documents': expiring_documents[:EXPIRING_DOCUMENTS_LIMIT],
        'by_trade': by_trade,
    }
