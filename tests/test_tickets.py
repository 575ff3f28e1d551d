import pytest

from apps.support.models import Ticket
from apps.support.services import TicketService

pytestmark = pytest.mark.django_db

ADMIN_URL = '/api/support/admin/tickets/'

FORM = {
    'name': 'Chidi Eze',
    'email': 'chidi@example.com',
    'subject': 'Damaged box',
    'message': 'The corner of the box was crushed.',
    'category': 'damage_claim',
}


class TestReplyWorkflow:
    def test_first_reply_moves_open_ticket_in_progress(self, make_ticket):
        ticket = make_ticket()

        TicketService.add_reply(ticket, 'We are looking into it.')

        ticket.refresh_from_db()
        assert ticket.status == 'in_progress'
        assert len(ticket.responses) == 1
        assert ticket.responses[0]['isAdmin'] is True
        assert ticket.responses[0]['message'] == 'We are looking into it.'

    def test_second_reply_keeps_status(self, make_ticket):
        ticket = make_ticket()
        TicketService.add_reply(ticket, 'First')
        TicketService.add_reply(ticket, 'Second')

        ticket.refresh_from_db()
        assert ticket.status == 'in_progress'
        assert [r['message'] for r in ticket.responses] == ['First', 'Second']

    def test_reply_on_resolved_ticket_does_not_reopen(self, make_ticket):
        ticket = make_ticket(status='resolved')
        TicketService.add_reply(ticket, 'Follow-up')
        assert ticket.status == 'resolved'

    def test_free_form_status_changes(self, make_ticket):
        ticket = make_ticket(status='resolved')

        success, _ = TicketService.update_status(ticket, 'open')
        assert success
        assert Ticket.objects.get(pk=ticket.pk).status == 'open'

        success, message = TicketService.update_status(ticket, 'escalated')
        assert not success
        assert 'Invalid status' in message


class TestPublicEndpoints:
    def test_submit_form(self, api_client):
        response = api_client.post('/api/support/tickets/', FORM, format='json')

        assert response.status_code == 201
        assert response.data['ticket_id'].startswith('TKT-')
        assert response.data['status'] == 'open'
        assert response.data['responses'] == []

    @pytest.mark.parametrize('field', ['name', 'email', 'subject', 'message', 'category'])
    def test_every_field_is_required(self, api_client, field):
        payload = dict(FORM)
        del payload[field]

        response = api_client.post('/api/support/tickets/', payload, format='json')

        assert response.status_code == 400
        assert field in response.data

    def test_status_cannot_be_set_by_visitor(self, api_client):
        response = api_client.post('/api/support/tickets/', dict(FORM, status='resolved'), format='json')
        assert response.data['status'] == 'open'

    def test_lookup_requires_matching_email(self, api_client, make_ticket):
        ticket = make_ticket()
        url = f'/api/support/tickets/{ticket.ticket_id}/'

        assert api_client.get(url).status_code == 400
        assert api_client.get(url, {'email': 'someone@else.com'}).status_code == 404

        response = api_client.get(url, {'email': 'CHIDI@example.com'})
        assert response.status_code == 200
        assert response.data['subject'] == ticket.subject


class TestAdminEndpoints:
    def test_requires_staff(self, api_client):
        assert api_client.get(ADMIN_URL).status_code in (401, 403)

    def test_search_and_filter(self, admin_client, make_ticket):
        make_ticket(subject='Wrong address', category='shipment_issue')
        make_ticket(name='Funke', email='funke@example.com', subject='Refund', category='billing')

        response = admin_client.get(ADMIN_URL, {'search': 'funke'})
        assert [t['subject'] for t in response.data['results']] == ['Refund']

        response = admin_client.get(ADMIN_URL, {'category': 'shipment_issue'})
        assert [t['subject'] for t in response.data['results']] == ['Wrong address']

    def test_reply_endpoint(self, admin_client, make_ticket):
        ticket = make_ticket()

        response = admin_client.post(f'{ADMIN_URL}{ticket.pk}/reply/', {'message': 'On it'}, format='json')

        assert response.status_code == 201
        assert response.data['ticket']['status'] == 'in_progress'
        assert response.data['ticket']['response_count'] == 1

    def test_status_endpoint(self, admin_client, make_ticket):
        ticket = make_ticket()

        response = admin_client.post(f'{ADMIN_URL}{ticket.pk}/status/', {'status': 'resolved'}, format='json')
        assert response.status_code == 200
        assert response.data['ticket']['status'] == 'resolved'

        response = admin_client.post(f'{ADMIN_URL}{ticket.pk}/status/', {'status': 'bogus'}, format='json')
        assert response.status_code == 400
        assert response.data == {'error': 'Invalid status'}

    def test_stats(self, admin_client, make_ticket):
        make_ticket()
        make_ticket(status='in_progress')
        make_ticket(status='resolved')
        make_ticket(status='resolved')

        response = admin_client.get(f'{ADMIN_URL}stats/')

        assert response.data == {'total': 4, 'open': 1, 'in_progress': 1, 'resolved': 2}

    def test_export_csv(self, admin_client, make_ticket):
        ticket = make_ticket(status='in_progress', category='general')
        TicketService.add_reply(ticket, 'Hello')

        response = admin_client.get(f'{ADMIN_URL}export/')

        assert response.status_code == 200
        assert 'filename="tickets-' in response['Content-Disposition']
        header, line = response.content.decode().split('\n')
        assert header == 'Ticket ID,Name,Email,Subject,Category,Status,Created Date,Last Updated,Response Count'
        assert f'"{ticket.ticket_id}"' in line
        assert '"General Inquiry","in progress"' in line
        assert line.endswith('"1"')

    def test_delete(self, admin_client, make_ticket):
        ticket = make_ticket()
        assert admin_client.delete(f'{ADMIN_URL}{ticket.pk}/').status_code == 204
        assert not Ticket.objects.exists()
