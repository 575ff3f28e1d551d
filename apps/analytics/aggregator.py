"""
Dashboard figures derived from a full shipment snapshot.

Every function takes an iterable of shipment-like rows (model instances or dicts
with the same keys) and recomputes from scratch. Nothing here touches the database.
"""
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from django.utils import timezone

from apps.shipping import lifecycle

# Never assigned by this system; rows imported from elsewhere may carry it
CANCELLED = 'cancelled'

WEEKDAYS = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']


def _get(row, name):
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def _one_decimal(value: float) -> str:
    """12.25 -> '12.3' (half up, like a JS toFixed(1))"""
    return str(Decimal(value).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def _delivered(rows: List) -> List:
    return [row for row in rows if _get(row, 'status') == lifecycle.DELIVERED]


def category_label(category: str) -> str:
    """'food_items' -> 'Food items'"""
    if not category:
        return ''
    return category[:1].upper() + category[1:].replace('_', ' ', 1)


def shipment_stats(rows: Iterable) -> dict:
    rows = list(rows)
    counts = {status: 0 for status in lifecycle.STATUS_ORDER}
    for row in rows:
        status = _get(row, 'status')
        if status in counts:
            counts[status] += 1

    total = len(rows)
    delivered = counts[lifecycle.DELIVERED]
    return {
        'total': total,
        'delivered': delivered,
        'in_transit': counts[lifecycle.IN_TRANSIT] + counts[lifecycle.OUT_FOR_DELIVERY],
        'pending': counts[lifecycle.PENDING],
        'picked_up': counts[lifecycle.PICKED_UP],
        'active': sum(1 for row in rows if _get(row, 'status') not in (lifecycle.DELIVERED, CANCELLED)),
        'delivery_rate': _one_decimal(delivered / total * 100) if total else '0',
    }


def status_distribution(rows: Iterable) -> List[dict]:
    """One slice per status that actually occurs, in lifecycle order."""
    counts = {}
    for row in rows:
        status = _get(row, 'status')
        counts[status] = counts.get(status, 0) + 1

    labels = dict(lifecycle.STATUS_CHOICES)
    return [
        {'status': status, 'name': labels[status], 'value': counts[status]}
        for status in lifecycle.STATUS_ORDER
        if counts.get(status, 0) > 0
    ]


def _local_day(value: datetime, tz=None) -> Optional[date]:
    if value is None:
        return None
    if timezone.is_naive(value):
        return value.date()
    return timezone.localtime(value, tz).date()


def weekly_trend(rows: Iterable, today: date, tz=None) -> List[dict]:
    """
    Shipments created on each calendar day Mon..Sun of the week containing `today`,
    and how many of those are now delivered. Days run local midnight to local midnight.
    """
    monday = today - timedelta(days=today.weekday())
    days = [monday + timedelta(days=offset) for offset in range(7)]
    buckets = {day: {'shipments': 0, 'delivered': 0} for day in days}

    for row in rows:
        day = _local_day(_get(row, 'created_at'), tz)
        if day not in buckets:
            continue
        buckets[day]['shipments'] += 1
        if _get(row, 'status') == lifecycle.DELIVERED:
            buckets[day]['delivered'] += 1

    return [
        {
            'day': WEEKDAYS[index],
            'date': day.isoformat(),
            'shipments': buckets[day]['shipments'],
            'delivered': buckets[day]['delivered'],
        }
        for index, day in enumerate(days)
    ]


def category_distribution(rows: Iterable) -> List[dict]:
    counts = {}
    for row in rows:
        category = _get(row, 'category')
        counts[category] = counts.get(category, 0) + 1

    return [
        {'category': category, 'name': category_label(category), 'value': value}
        for category, value in counts.items()
    ]


def average_delivery_days(rows: Iterable) -> str:
    delivered = [row for row in _delivered(list(rows)) if _get(row, 'estimated_delivery')]
    if not delivered:
        return 'N/A'

    total_days = sum(
        lifecycle.delivery_days(_get(row, 'created_at'), _get(row, 'estimated_delivery'))
        for row in delivered
    )
    return _one_decimal(total_days / len(delivered))


def on_time_delivery_rate(rows: Iterable) -> str:
    delivered = _delivered(list(rows))
    if not delivered:
        return '0'

    on_time = sum(
        1 for row in delivered
        if lifecycle.is_on_time(_get(row, 'updated_at'), _get(row, 'estimated_delivery'))
    )
    return _one_decimal(on_time / len(delivered) * 100)


def build_dashboard(rows: Iterable, today: Optional[date] = None, now: Optional[datetime] = None) -> dict:
    rows = list(rows)
    now = now or timezone.now()
    today = today or timezone.localdate(now)

    return {
        'stats': shipment_stats(rows),
        'status_distribution': status_distribution(rows),
        'weekly_trend': weekly_trend(rows, today),
        'category_distribution': category_distribution(rows),
        'average_delivery_days': average_delivery_days(rows),
        'on_time_delivery_rate': on_time_delivery_rate(rows),
        'generated_at': now.isoformat(),
    }
