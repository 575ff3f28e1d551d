import random
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.test import override_settings
from django.utils import timezone

from apps.shipping import lifecycle

NOW = datetime(2024, 6, 10, 12, 0, tzinfo=dt_timezone.utc)
LATER = NOW + timedelta(hours=6)


def default_timeline():
    return lifecycle.build_default_timeline(NOW, 'Lagos, Nigeria', 'Abuja, Nigeria', NOW + timedelta(days=4))


def completed_labels(timeline):
    return [entry['status'] for entry in timeline if entry['completed']]


class TestTables:
    def test_status_rank_is_a_total_order(self):
        assert [lifecycle.status_rank(s) for s in lifecycle.STATUS_ORDER] == [0, 1, 2, 3, 4]

    def test_unknown_status_rank_raises(self):
        with pytest.raises(ValueError):
            lifecycle.status_rank('cancelled')

    @pytest.mark.parametrize('table', [lifecycle.PROGRESS_PERCENT, lifecycle.ROUTE_MAP_PROGRESS])
    def test_progress_tables_are_monotonic_and_only_full_when_delivered(self, table):
        values = [table[s] for s in lifecycle.STATUS_ORDER]
        assert values == sorted(values)
        assert [s for s in lifecycle.STATUS_ORDER if table[s] == 100] == [lifecycle.DELIVERED]

    def test_progress_tables_stay_distinct(self):
        assert lifecycle.progress_percent('picked_up') == 25
        assert lifecycle.route_map_progress('picked_up') == 20
        assert lifecycle.progress_percent('out_for_delivery') == 75
        assert lifecycle.route_map_progress('out_for_delivery') == 80


class TestDefaultTimeline:
    def test_five_checkpoints_only_first_completed(self):
        timeline = default_timeline()

        assert [e['id'] for e in timeline] == ['1', '2', '3', '4', '5']
        assert [e['status'] for e in timeline] == [
            'Order Received', 'Picked Up', 'In Transit', 'Out for Delivery', 'Delivered'
        ]
        assert completed_labels(timeline) == ['Order Received']

    def test_locations_and_projected_times(self):
        timeline = default_timeline()

        assert [e['location'] for e in timeline] == [
            'Processing Center', 'Lagos, Nigeria', 'Regional Distribution Center',
            'Abuja, Nigeria', 'Abuja, Nigeria',
        ]
        assert timeline[0]['timestamp'] == NOW.isoformat()
        assert timeline[1]['timestamp'] == (NOW + timedelta(hours=4)).isoformat()
        assert timeline[2]['timestamp'] == (NOW + timedelta(days=1)).isoformat()
        assert timeline[4]['timestamp'] == (NOW + timedelta(days=4)).isoformat()
        assert timeline[1]['description'].startswith('Package will be')


class TestAdvanceTimeline:
    def test_exact_entry_only_without_backfill(self):
        timeline = lifecycle.advance_timeline(default_timeline(), 'in_transit', LATER, backfill=False)

        assert completed_labels(timeline) == ['Order Received', 'In Transit']
        in_transit = timeline[2]
        assert in_transit['timestamp'] == LATER.isoformat()
        assert in_transit['description'] == lifecycle.STATUS_DESCRIPTIONS['in_transit']

    def test_backfill_completes_skipped_checkpoints(self):
        timeline = lifecycle.advance_timeline(default_timeline(), 'out_for_delivery', LATER)

        assert completed_labels(timeline) == ['Order Received', 'Picked Up', 'In Transit', 'Out for Delivery']
        assert timeline[1]['timestamp'] == LATER.isoformat()
        assert timeline[4]['completed'] is False

    def test_completed_entries_keep_their_timestamps(self):
        first = lifecycle.advance_timeline(default_timeline(), 'picked_up', LATER)
        even_later = LATER + timedelta(days=1)
        second = lifecycle.advance_timeline(first, 'in_transit', even_later)

        assert second[0]['timestamp'] == NOW.isoformat()
        assert second[1]['timestamp'] == LATER.isoformat()
        assert second[2]['timestamp'] == even_later.isoformat()

    def test_advancing_to_same_status_is_a_no_op(self):
        first = lifecycle.advance_timeline(default_timeline(), 'picked_up', LATER)
        again = lifecycle.advance_timeline(first, 'picked_up', LATER + timedelta(hours=1))
        assert again == first

    def test_input_is_not_mutated(self):
        original = default_timeline()
        snapshot = [dict(e) for e in original]
        lifecycle.advance_timeline(original, 'delivered', LATER)
        assert original == snapshot

    def test_custom_entries_are_preserved_in_place(self):
        event = lifecycle.custom_timeline_event('Ibadan', LATER, 'Held at customs')
        timeline = default_timeline() + [event]

        advanced = lifecycle.advance_timeline(timeline, 'delivered', LATER + timedelta(days=2))

        assert advanced[-1] == event
        assert len(advanced) == 6


class TestCustomEvent:
    def test_shape(self):
        event = lifecycle.custom_timeline_event('Ibadan, Nigeria', NOW)

        assert event['id'] == f"custom-{int(NOW.timestamp() * 1000)}"
        assert event['status'] == 'Custom Update'
        assert event['completed'] is True
        assert event['description'] == 'Manual status update by admin'
        assert lifecycle.checkpoint_status(event) is None


class TestOnTime:
    def test_equal_timestamps_count_as_on_time(self):
        assert lifecycle.is_on_time(NOW, NOW) is True

    def test_one_second_late(self):
        assert lifecycle.is_on_time(NOW + timedelta(seconds=1), NOW) is False

    def test_missing_estimate(self):
        assert lifecycle.is_on_time(NOW, None) is False

    def test_model_property_requires_delivered_status(self, make_shipment):
        shipment = make_shipment(status='in_transit')
        assert shipment.is_on_time is False


class TestEstimates:
    def test_delivery_days_rounds_up(self):
        assert lifecycle.delivery_days(NOW, NOW + timedelta(days=2, hours=1)) == 3
        assert lifecycle.delivery_days(NOW + timedelta(days=2), NOW) == 2

    @pytest.mark.parametrize('category,weight,low,high', [
        ('documents', Decimal('0.5'), 3, 4),
        ('fragile', Decimal('12'), 7, 8),
        ('electronics', Decimal('25'), 6, 7),
    ])
    def test_estimate_delivery_window(self, category, weight, low, high):
        for seed in range(20):
            estimate = lifecycle.estimate_delivery(NOW, category, weight, rng=random.Random(seed))
            assert 9 <= estimate.hour <= 17
            days = (estimate.date() - NOW.date()).days
            assert low <= days <= high

    @override_settings(TIME_ZONE='Asia/Tokyo')
    def test_estimate_delivery_hour_is_local(self):
        for seed in range(20):
            estimate = lifecycle.estimate_delivery(NOW, 'documents', Decimal('1'), rng=random.Random(seed))
            assert 9 <= timezone.localtime(estimate).hour <= 17

    def test_short_location(self):
        assert lifecycle.short_location('Lagos, Nigeria') == 'Lagos'
        assert lifecycle.short_location('Warehouse 4') == 'Warehouse 4'
