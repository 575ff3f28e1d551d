import logging

import pytest

from apps.utils.security import QueryInspector, SensitiveDataFilter


def masked(msg, *args):
    record = logging.LogRecord('apps.shipping', logging.INFO, __file__, 1, msg, args, None)
    SensitiveDataFilter().filter(record)
    return record.getMessage()


class TestMasking:
    def test_contact_details(self):
        line = masked('Shipment requested by chidi@example.com, phone 08030000001')
        assert line == 'Shipment requested by c***@example.com, phone ***PHONE***'

    def test_arguments_are_masked_too(self):
        assert masked('receiver phone %s', '+234 803 000 0002') == 'receiver phone ***PHONE***'

    def test_credentials(self):
        assert masked('login password=hunter2') == 'login password=***'
        assert masked('Authorization: Bearer abc.def.ghi') == 'Authorization: Bearer ***'

    def test_dates_and_tracking_ids_survive(self):
        line = 'MM-LX-A1B2C estimated 2024-06-14 weight 2.5'
        assert masked(line) == line


class TestQueryInspector:
    @pytest.mark.parametrize('value', ['kano', 'Lagos or Abuja', 'MM-LX-A1B2C', 'in_transit', ''])
    def test_ordinary_values(self, value):
        assert QueryInspector.threat(value) is None

    def test_script_tag(self):
        assert QueryInspector.threat('<script>alert(1)</script>') == 'xss'

    def test_sql_tautology(self):
        assert QueryInspector.threat("1' OR '1'='1") == 'sql_injection'


@pytest.mark.django_db
class TestMiddleware:
    def test_injection_in_query_string_is_blocked(self, api_client):
        response = api_client.get('/api/shipping/track/MM-LX-ZZZZZ/', {'q': '<script>alert(1)</script>'})
        assert response.status_code == 403

    def test_security_headers(self, api_client):
        response = api_client.get('/api/shipping/track/MM-LX-ZZZZZ/')
        assert response['X-Content-Type-Options'] == 'nosniff'
        assert 'Content-Security-Policy' in response
