"""
Shipment lifecycle: status ranks, progress tables, checkpoint timeline.

A timeline is a list of dicts shaped like
    {'id': '2', 'status': 'Picked Up', 'location': '...', 'completed': False,
     'timestamp': '2024-06-10T12:00:00+00:00', 'description': '...'}

The first five entries are the canonical checkpoints, one per status, in rank
order. Admins may append 'Custom Update' entries after them.

All functions here are pure: they take `now` explicitly and return new lists.
"""
import copy
import math
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from django.utils import timezone

PENDING = 'pending'
PICKED_UP = 'picked_up'
IN_TRANSIT = 'in_transit'
OUT_FOR_DELIVERY = 'out_for_delivery'
DELIVERED = 'delivered'

STATUS_ORDER = [PENDING, PICKED_UP, IN_TRANSIT, OUT_FOR_DELIVERY, DELIVERED]

STATUS_CHOICES = [
    (PENDING, 'Pending'),
    (PICKED_UP, 'Picked Up'),
    (IN_TRANSIT, 'In Transit'),
    (OUT_FOR_DELIVERY, 'Out for Delivery'),
    (DELIVERED, 'Delivered'),
]

# Checkpoint label each status completes
STATUS_LABELS: Dict[str, str] = {
    PENDING: 'Order Received',
    PICKED_UP: 'Picked Up',
    IN_TRANSIT: 'In Transit',
    OUT_FOR_DELIVERY: 'Out for Delivery',
    DELIVERED: 'Delivered',
}

STATUS_DESCRIPTIONS: Dict[str, str] = {
    PENDING: 'Your shipment request has been received and is being processed.',
    PICKED_UP: 'Package has been picked up from the sender.',
    IN_TRANSIT: 'Your package is on its way to the destination.',
    OUT_FOR_DELIVERY: 'Package is out for delivery to the recipient.',
    DELIVERED: 'Package has been successfully delivered.',
}

# Shown on checkpoints that have not happened yet
UPCOMING_DESCRIPTIONS: Dict[str, str] = {
    PICKED_UP: 'Package will be picked up from the sender.',
    IN_TRANSIT: 'Your package will be on its way to the destination.',
    OUT_FOR_DELIVERY: 'Package will be out for delivery to the recipient.',
    DELIVERED: 'Package will be delivered to the recipient.',
}

# Progress bar on the shipment card
PROGRESS_PERCENT: Dict[str, int] = {
    PENDING: 10,
    PICKED_UP: 25,
    IN_TRANSIT: 50,
    OUT_FOR_DELIVERY: 75,
    DELIVERED: 100,
}

# Truck position on the route map
ROUTE_MAP_PROGRESS: Dict[str, int] = {
    PENDING: 5,
    PICKED_UP: 20,
    IN_TRANSIT: 50,
    OUT_FOR_DELIVERY: 80,
    DELIVERED: 100,
}

CUSTOM_EVENT_STATUS = 'Custom Update'
CUSTOM_EVENT_DESCRIPTION = 'Manual status update by admin'

PROCESSING_CENTER = 'Processing Center'
DISTRIBUTION_CENTER = 'Regional Distribution Center'

_LABEL_TO_STATUS = {label: status for status, label in STATUS_LABELS.items()}


def status_rank(status: str) -> int:
    try:
        return STATUS_ORDER.index(status)
    except ValueError:
        raise ValueError(f"Unknown shipment status: {status!r}")


def progress_percent(status: str) -> int:
    return PROGRESS_PERCENT[status]


def route_map_progress(status: str) -> int:
    return ROUTE_MAP_PROGRESS[status]


def _iso(value: datetime) -> str:
    return value.isoformat()


def build_default_timeline(now: datetime, pickup_location: str, delivery_location: str,
                           estimated_delivery: Optional[datetime] = None) -> List[dict]:
    """
    Five checkpoints for a freshly requested shipment. Only 'Order Received' is completed;
    the rest carry projected timestamps.
    """
    delivered_at = estimated_delivery or now + timedelta(days=3)
    plan = [
        (PENDING, PROCESSING_CENTER, now),
        (PICKED_UP, pickup_location, now + timedelta(hours=4)),
        (IN_TRANSIT, DISTRIBUTION_CENTER, now + timedelta(days=1)),
        (OUT_FOR_DELIVERY, delivery_location, now + timedelta(days=2)),
        (DELIVERED, delivery_location, delivered_at),
    ]

    timeline = []
    for index, (status, location, when) in enumerate(plan, start=1):
        completed = status == PENDING
        timeline.append({
            'id': str(index),
            'status': STATUS_LABELS[status],
            'location': location,
            'completed': completed,
            'timestamp': _iso(when),
            'description': STATUS_DESCRIPTIONS[status] if completed else UPCOMING_DESCRIPTIONS[status],
        })
    return timeline


def checkpoint_status(entry: dict) -> Optional[str]:
    """Status a timeline entry stands for, or None for custom entries."""
    return _LABEL_TO_STATUS.get(entry.get('status'))


def advance_timeline(timeline: List[dict], new_status: str, now: datetime,
                     backfill: bool = True) -> List[dict]:
    """
    Complete the checkpoint for `new_status`, stamped `now`.

    With `backfill`, every earlier checkpoint that is still incomplete is completed
    as well and stamped `now`. Checkpoints that were already completed keep their
    timestamps; later checkpoints and custom entries are left alone.
    """
    target_rank = status_rank(new_status)
    updated = copy.deepcopy(list(timeline or []))

    for entry in updated:
        status = checkpoint_status(entry)
        if status is None or entry.get('completed'):
            continue
        rank = status_rank(status)
        if rank == target_rank or (backfill and rank < target_rank):
            entry['completed'] = True
            entry['timestamp'] = _iso(now)
            entry['description'] = STATUS_DESCRIPTIONS[status]

    return updated


def custom_timeline_event(location: str, now: datetime, description: Optional[str] = None) -> dict:
    return {
        'id': f"custom-{int(now.timestamp() * 1000)}",
        'status': CUSTOM_EVENT_STATUS,
        'location': location,
        'completed': True,
        'timestamp': _iso(now),
        'description': description or CUSTOM_EVENT_DESCRIPTION,
    }


def is_on_time(updated_at: datetime, estimated_delivery: Optional[datetime]) -> bool:
    """A delivery counts as on time when its last update is no later than the estimate."""
    if estimated_delivery is None:
        return False
    return updated_at <= estimated_delivery


def delivery_days(created_at: datetime, estimated_delivery: datetime) -> int:
    """Whole days (rounded up) between creation and the delivery estimate."""
    seconds = abs((estimated_delivery - created_at).total_seconds())
    return math.ceil(seconds / 86400)


def estimate_delivery(now: datetime, category: str, weight, rng: Optional[random.Random] = None) -> datetime:
    """
    Base days by category, one extra day per started 10 kg, plus up to one day of slack.
    The delivery hour lands between 09:00 and 17:00.
    """
    rng = rng or random.Random()
    base_days = 2 if category == 'documents' else 5 if category == 'fragile' else 3
    weight_factor = math.ceil(float(weight) / 10)
    days = base_days + weight_factor + rng.randint(0, 1)
    hour = rng.randint(9, 17)
    local_hour = timezone.localtime(now).hour if timezone.is_aware(now) else now.hour
    return now + timedelta(days=days, hours=hour - local_hour)


def short_location(location: str) -> str:
    """'Lagos, Nigeria' -> 'Lagos'"""
    return (location or '').split(',', 1)[0].strip()
