from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.shipping import lifecycle
from apps.shipping.models import Shipment
from apps.support.models import Ticket, ChatSession


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def staff_user(db):
    return get_user_model().objects.create_user(
        username='dispatcher', email='dispatcher@movemate.com', password='s3cret-pass', is_staff=True
    )


@pytest.fixture
def admin_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def now():
    return datetime(2024, 6, 10, 12, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def make_shipment(db, now):
    def _make(**kwargs):
        created = kwargs.pop('created_at', None)
        updated = kwargs.pop('updated_at', None)
        defaults = {
            'sender_name': 'Ada Obi',
            'sender_phone': '08030000001',
            'receiver_name': 'Ben Cole',
            'receiver_phone': '08030000002',
            'pickup_location': 'Lagos, Nigeria',
            'delivery_location': 'Abuja, Nigeria',
            'package_description': 'Laptop',
            'weight': Decimal('2.50'),
            'category': 'electronics',
            'estimated_delivery': datetime(2024, 6, 14, 15, 0, tzinfo=dt_timezone.utc),
        }
        defaults.update(kwargs)
        defaults.setdefault('timeline', lifecycle.build_default_timeline(
            now, defaults['pickup_location'], defaults['delivery_location'], defaults['estimated_delivery']
        ))
        shipment = Shipment.objects.create(**defaults)

        stamps = {}
        if created is not None:
            stamps['created_at'] = created
        if updated is not None:
            stamps['updated_at'] = updated
        if stamps:
            Shipment.objects.filter(pk=shipment.pk).update(**stamps)
            shipment.refresh_from_db()
        return shipment
    return _make


@pytest.fixture
def make_ticket(db):
    def _make(**kwargs):
        defaults = {
            'name': 'Chidi Eze',
            'email': 'chidi@example.com',
            'subject': 'Parcel not moving',
            'message': 'My parcel has been in Lagos for three days.',
            'category': 'delivery_delay',
        }
        defaults.update(kwargs)
        return Ticket.objects.create(**defaults)
    return _make


@pytest.fixture
def make_chat_session(db):
    def _make(**kwargs):
        return ChatSession.objects.create(**kwargs)
    return _make
