import pytest

from apps.core.models import SiteConfig

pytestmark = pytest.mark.django_db


def test_tracking_url_falls_back_to_frontend_url():
    assert SiteConfig.load().tracking_url('MM-LX-AB123') == 'https://track.example.com/track?id=MM-LX-AB123'


def test_tracking_url_uses_configured_base():
    config = SiteConfig.load()
    config.tracking_base_url = 'https://movemate.example.org/'
    config.save()

    assert SiteConfig.load().tracking_url('MM-LX-AB123') == 'https://movemate.example.org/track?id=MM-LX-AB123'


def test_config_is_public_read_staff_write(api_client, admin_client):
    response = api_client.get('/api/core/config/')
    assert response.status_code == 200
    assert response.data['site_name'] == 'Movemate LogisticExpress'

    assert api_client.patch('/api/core/config/', {'site_name': 'X'}, format='json').status_code in (401, 403)

    response = admin_client.patch('/api/core/config/', {'phone_number': '+234 800 000 0000'}, format='json')
    assert response.status_code == 200
    assert SiteConfig.load().phone_number == '+234 800 000 0000'
