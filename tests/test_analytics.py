from datetime import date, datetime, timedelta, timezone as dt_timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from apps.analytics import aggregator

NOW = datetime(2024, 6, 10, 12, 0, tzinfo=dt_timezone.utc)
LAGOS = ZoneInfo('Africa/Lagos')


def row(status='pending', category='electronics', created_at=NOW, updated_at=NOW, estimated_delivery=None):
    return SimpleNamespace(
        status=status, category=category, created_at=created_at, updated_at=updated_at,
        estimated_delivery=estimated_delivery or created_at + timedelta(days=3),
    )


class TestStats:
    def test_empty_snapshot(self):
        stats = aggregator.shipment_stats([])
        assert stats['total'] == 0
        assert stats['delivery_rate'] == '0'

    def test_one_of_four_delivered(self):
        rows = [row('delivered'), row('pending'), row('in_transit'), row('out_for_delivery')]
        stats = aggregator.shipment_stats(rows)

        assert stats['delivery_rate'] == '25.0'
        assert stats['in_transit'] == 2
        assert stats['pending'] == 1
        assert stats['picked_up'] == 0

    def test_rounds_half_up(self):
        rows = [row('delivered')] + [row('pending') for _ in range(7)]
        assert aggregator.shipment_stats(rows)['delivery_rate'] == '12.5'
        rows = [row('delivered')] + [row('pending') for _ in range(2)]
        assert aggregator.shipment_stats(rows)['delivery_rate'] == '33.3'

    def test_active_excludes_delivered_and_cancelled(self):
        rows = [row('delivered'), row('cancelled'), row('pending'), row('picked_up'), row('out_for_delivery')]
        assert aggregator.shipment_stats(rows)['active'] == 3
        assert aggregator.shipment_stats([])['active'] == 0

    def test_accepts_dict_rows(self):
        rows = [{'status': 'delivered'}, {'status': 'pending'}]
        assert aggregator.shipment_stats(rows)['delivery_rate'] == '50.0'


class TestDistributions:
    def test_status_distribution_skips_empty_statuses_and_keeps_rank_order(self):
        rows = [row('delivered'), row('pending'), row('pending')]
        assert aggregator.status_distribution(rows) == [
            {'status': 'pending', 'name': 'Pending', 'value': 2},
            {'status': 'delivered', 'name': 'Delivered', 'value': 1},
        ]

    def test_category_labels(self):
        rows = [row(category='food'), row(category='food'), row(category='fragile_goods')]
        assert aggregator.category_distribution(rows) == [
            {'category': 'food', 'name': 'Food', 'value': 2},
            {'category': 'fragile_goods', 'name': 'Fragile goods', 'value': 1},
        ]


class TestWeeklyTrend:
    def test_seven_buckets_monday_first(self):
        trend = aggregator.weekly_trend([], date(2024, 6, 13))

        assert [b['day'] for b in trend] == ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
        assert trend[0]['date'] == '2024-06-10'
        assert trend[6]['date'] == '2024-06-16'

    def test_sunday_belongs_to_the_week_that_started_monday(self):
        trend = aggregator.weekly_trend([], date(2024, 6, 16))
        assert trend[0]['date'] == '2024-06-10'

    def test_local_midnight_splits_buckets(self):
        late_monday = datetime(2024, 6, 10, 23, 59, 59, tzinfo=LAGOS)
        early_tuesday = datetime(2024, 6, 11, 0, 0, 1, tzinfo=LAGOS)
        rows = [row('pending', created_at=late_monday), row('delivered', created_at=early_tuesday)]

        trend = aggregator.weekly_trend(rows, date(2024, 6, 12), tz=LAGOS)

        assert (trend[0]['shipments'], trend[0]['delivered']) == (1, 0)
        assert (trend[1]['shipments'], trend[1]['delivered']) == (1, 1)

    def test_rows_outside_the_week_are_ignored(self):
        rows = [row(created_at=NOW - timedelta(days=7)), row(created_at=NOW + timedelta(days=7))]
        trend = aggregator.weekly_trend(rows, date(2024, 6, 10))
        assert sum(b['shipments'] for b in trend) == 0


class TestDeliveryFigures:
    def test_average_delivery_days_without_deliveries(self):
        assert aggregator.average_delivery_days([row('pending')]) == 'N/A'

    def test_average_delivery_days(self):
        rows = [
            row('delivered', estimated_delivery=NOW + timedelta(days=2, hours=1)),
            row('delivered', estimated_delivery=NOW + timedelta(days=1)),
            row('pending', estimated_delivery=NOW + timedelta(days=30)),
        ]
        assert aggregator.average_delivery_days(rows) == '2.0'

    def test_on_time_rate(self):
        estimate = NOW + timedelta(days=2)
        rows = [
            row('delivered', updated_at=estimate, estimated_delivery=estimate),
            row('delivered', updated_at=estimate + timedelta(seconds=1), estimated_delivery=estimate),
            row('in_transit', updated_at=estimate + timedelta(days=9), estimated_delivery=estimate),
        ]
        assert aggregator.on_time_delivery_rate(rows) == '50.0'

    def test_on_time_rate_without_deliveries(self):
        assert aggregator.on_time_delivery_rate([]) == '0'


def test_build_dashboard_shape():
    dashboard = aggregator.build_dashboard([row('delivered')], today=date(2024, 6, 10), now=NOW)

    assert set(dashboard) == {
        'stats', 'status_distribution', 'weekly_trend', 'category_distribution',
        'average_delivery_days', 'on_time_delivery_rate', 'generated_at',
    }
    assert dashboard['weekly_trend'][0]['shipments'] == 1
    assert dashboard['generated_at'] == NOW.isoformat()


@pytest.mark.django_db
class TestDashboardEndpoint:
    url = '/api/analytics/dashboard/'

    def test_requires_staff(self, api_client):
        assert api_client.get(self.url).status_code in (401, 403)

    def test_counts_live_rows(self, admin_client, make_shipment):
        make_shipment(status='delivered')
        make_shipment(status='pending')

        response = admin_client.get(self.url)

        assert response.status_code == 200
        assert response.data['stats']['total'] == 2
        assert response.data['stats']['delivery_rate'] == '50.0'
