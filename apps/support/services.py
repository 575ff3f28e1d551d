"""Support services - ticket workflow, chat sessions and the chat auto reply."""
import logging
from datetime import timedelta
from typing import Dict, Any, Optional, Tuple

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers import SchedulerAlreadyRunningError
from apscheduler.schedulers.background import BackgroundScheduler
from django.conf import settings
from django.db import connection
from django.db.models import F, Sum
from django.utils import timezone

from apps.core.models import SiteConfig
from apps.utils.exports import CSVGenerator, csv_response
from apps.utils.ids import generate_entry_id
from .models import Ticket, ChatSession

logger = logging.getLogger('apps.support')


def _entry_id(now) -> str:
    return generate_entry_id(now.timestamp())


# ==================== TICKETS ====================

class TicketService:
    """Business logic for support tickets."""

    @staticmethod
    def create_ticket(data: Dict[str, Any]) -> Ticket:
        ticket = Ticket.objects.create(
            name=data['name'],
            email=data['email'],
            subject=data['subject'],
            message=data['message'],
            category=data['category'],
            status='open',
        )
        logger.info(f"Ticket {ticket.ticket_id} opened ({ticket.category})")
        return ticket

    @staticmethod
    def find_for_requester(ticket_id: str, email: str) -> Optional[Ticket]:
        """Public lookup: the ticket is only returned to the address that opened it."""
        return Ticket.objects.filter(
            ticket_id=(ticket_id or '').strip().upper(),
            email__iexact=(email or '').strip()
        ).first()

    @staticmethod
    def update_status(ticket: Ticket, new_status: str, user=None) -> Tuple[bool, str]:
        valid_statuses = dict(Ticket.STATUS_CHOICES)
        if new_status not in valid_statuses:
            return False, f"Invalid status '{new_status}'"

        old_status = ticket.status
        ticket.status = new_status
        ticket.save()

        logger.info(
            f"Ticket {ticket.ticket_id} status changed: {old_status} -> {new_status} "
            f"by {getattr(user, 'pk', None)}"
        )
        return True, f"Ticket status updated to {valid_statuses[new_status]}"

    @staticmethod
    def add_reply(ticket: Ticket, message: str, now=None) -> dict:
        """Append an admin response. The first reply on an open ticket moves it to in progress."""
        now = now or timezone.now()
        response = {
            'id': _entry_id(now),
            'message': message,
            'isAdmin': True,
            'timestamp': now.isoformat(),
        }
        ticket.responses = list(ticket.responses or []) + [response]

        if ticket.status == 'open':
            ticket.status = 'in_progress'
            logger.info(f"Ticket {ticket.ticket_id} status changed: open -> in_progress")

        ticket.save()
        logger.info(f"Ticket {ticket.ticket_id}: admin reply #{len(ticket.responses)}")
        return response

    @staticmethod
    def get_stats() -> Dict[str, int]:
        return {
            'total': Ticket.objects.count(),
            'open': Ticket.objects.filter(status='open').count(),
            'in_progress': Ticket.objects.filter(status='in_progress').count(),
            'resolved': Ticket.objects.filter(status='resolved').count(),
        }


def _date(value):
    return timezone.localtime(value).strftime('%Y-%m-%d') if value else ''


class TicketExportService:
    COLUMNS = [
        {'header': 'Ticket ID', 'field': 'ticket_id'},
        {'header': 'Name', 'field': 'name'},
        {'header': 'Email', 'field': 'email'},
        {'header': 'Subject', 'field': 'subject'},
        {'header': 'Category', 'field': lambda t: t.get_category_display()},
        {'header': 'Status', 'field': 'status', 'formatter': lambda x: x.replace('_', ' ', 1)},
        {'header': 'Created Date', 'field': 'created_at', 'formatter': _date},
        {'header': 'Last Updated', 'field': 'updated_at', 'formatter': _date},
        {'header': 'Response Count', 'field': 'response_count'},
    ]

    @staticmethod
    def export_to_csv(queryset):
        content = CSVGenerator().generate(queryset, TicketExportService.COLUMNS)
        stamp = timezone.localdate().strftime('%Y-%m-%d')
        return csv_response(content, f"tickets-{stamp}.csv")


# ==================== CHAT ====================

class StaleSessionError(Exception):
    """The session row changed since the caller read it."""

    def __init__(self, session_id: str, expected_version: int):
        self.session_id = session_id
        self.expected_version = expected_version
        super().__init__(f"Chat session {session_id} is no longer at version {expected_version}")


def _auto_reply_delay() -> float:
    return float(getattr(settings, 'CHAT_AUTO_REPLY_DELAY', 30))


def _run_auto_reply(session_pk: int, due_at) -> None:
    try:
        ChatService.deliver_auto_reply(session_pk, due_at)
    except Exception as e:
        logger.exception(f"Auto reply for chat session #{session_pk} failed: {e}")
    finally:
        connection.close()


def _run_auto_reply_sweep() -> None:
    try:
        sent = ChatService.send_overdue_auto_replies()
        if sent:
            logger.info(f"Auto reply sweep sent {sent} replies")
    except Exception as e:
        logger.exception(f"Auto reply sweep failed: {e}")
    finally:
        connection.close()


class AutoReplyScheduler:
    """
    Date-triggered auto-reply jobs on an APScheduler background scheduler, one per
    chat session.

    Jobs are keyed by session, so scheduling again replaces the earlier job. A job
    only triggers a check; ChatService.deliver_auto_reply decides from the stored
    deadline whether anything is sent. An interval job sweeps whatever was missed.
    """

    JOB_PREFIX = 'chat-auto-reply-'
    SWEEP_JOB_ID = 'chat-auto-reply-sweep'

    def __init__(self):
        self.scheduler = BackgroundScheduler(
            timezone=settings.TIME_ZONE,
            job_defaults={'coalesce': True, 'max_instances': 1, 'misfire_grace_time': None},
        )

    @staticmethod
    def enabled() -> bool:
        return getattr(settings, 'CHAT_AUTO_REPLY_TIMERS', True)

    @classmethod
    def job_id(cls, session_pk: int) -> str:
        return f"{cls.JOB_PREFIX}{session_pk}"

    def start(self) -> None:
        if self.scheduler.running:
            return
        self.scheduler.add_job(
            _run_auto_reply_sweep, 'interval',
            seconds=getattr(settings, 'CHAT_AUTO_REPLY_SWEEP_INTERVAL', 60),
            id=self.SWEEP_JOB_ID, replace_existing=True,
        )
        try:
            self.scheduler.start()
        except SchedulerAlreadyRunningError:
            return
        logger.info("Chat auto reply scheduler started")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Chat auto reply scheduler stopped")

    def schedule(self, session_pk: int, due_at) -> None:
        if not self.enabled():
            return

        self.start()
        self.scheduler.add_job(
            _run_auto_reply, 'date', run_date=due_at,
            id=self.job_id(session_pk), replace_existing=True,
            args=(session_pk, due_at),
        )

    def cancel(self, session_pk: int) -> None:
        if not self.scheduler.running:
            return
        try:
            self.scheduler.remove_job(self.job_id(session_pk))
        except JobLookupError:
            pass

    def pending(self) -> int:
        """Auto replies waiting to fire, not counting the sweep."""
        return sum(1 for job in self.scheduler.get_jobs() if job.id != self.SWEEP_JOB_ID)


auto_reply_scheduler = AutoReplyScheduler()


class ChatService:
    """
    Business logic for chat sessions.

    Every write is a compare-and-set on `version`: the row is only updated when its
    version still matches the one the caller read, and the version is incremented.
    """

    @staticmethod
    def _commit(session: ChatSession, changes: Dict[str, Any],
                expected_version: Optional[int] = None) -> ChatSession:
        if expected_version is not None and expected_version != session.version:
            raise StaleSessionError(session.session_id, expected_version)

        changes = dict(changes, updated_at=timezone.now())
        updated = ChatSession.objects.filter(pk=session.pk, version=session.version).update(
            version=F('version') + 1, **changes
        )
        if not updated:
            raise StaleSessionError(session.session_id, session.version)

        session.refresh_from_db()
        return session

    @staticmethod
    def _message(content: str, now, is_bot: bool = False, is_agent: bool = False) -> dict:
        return {
            'id': _entry_id(now),
            'content': content,
            'isBot': is_bot,
            'isAgent': is_agent,
            'timestamp': now.isoformat(),
        }

    @staticmethod
    def resume_or_create(session_id: Optional[str] = None, customer_name: Optional[str] = None,
                         customer_email: Optional[str] = None) -> Tuple[ChatSession, bool]:
        """Re-associate a returning visitor by `session_id`, or start a new session."""
        if session_id:
            session = ChatSession.objects.filter(session_id=session_id).first()
            if session is not None:
                return session, False

        session = ChatSession.objects.create(
            session_id=session_id or ChatSession.generate_session_id(),
            customer_name=customer_name or 'Customer',
            customer_email=customer_email or '',
        )
        logger.info(f"Chat session {session.session_id} started")
        return session, True

    @staticmethod
    def create_session(data: Dict[str, Any]) -> ChatSession:
        session = ChatSession.objects.create(
            customer_name=data.get('customer_name') or 'Customer',
            customer_email=data.get('customer_email') or '',
            language=data.get('language') or 'en',
        )
        logger.info(f"Chat session {session.session_id} created by staff")
        return session

    @staticmethod
    def send_greeting(session: ChatSession, now=None) -> bool:
        """Opening agent message, only for a session without any messages."""
        if session.messages:
            return False

        now = now or timezone.now()
        greeting = ChatService._message(SiteConfig.load().chat_greeting, now, is_agent=True)
        ChatService._commit(session, {'messages': [greeting]})
        return True

    @staticmethod
    def post_visitor_message(session: ChatSession, content: str, now=None,
                             expected_version: Optional[int] = None) -> dict:
        """
        Visitor message: reopens the session, counts as unread, and (re)arms the
        auto-reply deadline.
        """
        now = now or timezone.now()
        message = ChatService._message(content, now)
        due_at = now + timedelta(seconds=_auto_reply_delay())

        ChatService._commit(session, {
            'messages': list(session.messages or []) + [message],
            'status': 'open',
            'unread_count': session.unread_count + 1,
            'auto_reply_due_at': due_at,
        }, expected_version)

        auto_reply_scheduler.schedule(session.pk, due_at)
        logger.info(f"Chat session {session.session_id}: visitor message, unread={session.unread_count}")
        return message

    @staticmethod
    def post_reply(session: ChatSession, content: str, now=None,
                   expected_version: Optional[int] = None) -> dict:
        """Staff reply. Authored by the bot when the session is in bot mode."""
        now = now or timezone.now()
        if session.is_bot:
            message = ChatService._message(content, now, is_bot=True)
        else:
            message = ChatService._message(content, now, is_agent=True)

        changes = {
            'messages': list(session.messages or []) + [message],
            'auto_reply_due_at': None,
        }
        if session.status == 'pending':
            changes['status'] = 'open'

        ChatService._commit(session, changes, expected_version)
        auto_reply_scheduler.cancel(session.pk)

        logger.info(f"Chat session {session.session_id}: {'bot' if message['isBot'] else 'agent'} reply")
        return message

    @staticmethod
    def update_status(session: ChatSession, new_status: str,
                      expected_version: Optional[int] = None) -> Tuple[bool, str]:
        valid_statuses = dict(ChatSession.STATUS_CHOICES)
        if new_status not in valid_statuses:
            return False, f"Invalid status '{new_status}'"

        old_status = session.status
        ChatService._commit(session, {'status': new_status}, expected_version)
        logger.info(f"Chat session {session.session_id} status changed: {old_status} -> {new_status}")
        return True, f"Chat status updated to {valid_statuses[new_status]}"

    @staticmethod
    def toggle_bot(session: ChatSession, expected_version: Optional[int] = None) -> ChatSession:
        ChatService._commit(session, {'is_bot': not session.is_bot}, expected_version)
        logger.info(f"Chat session {session.session_id}: bot mode {'on' if session.is_bot else 'off'}")
        return session

    @staticmethod
    def mark_read(session: ChatSession) -> ChatSession:
        """Opening a session in the console clears its unread counter."""
        if session.unread_count > 0:
            ChatService._commit(session, {'unread_count': 0})
        return session

    @staticmethod
    def delete_session(session: ChatSession, user=None) -> None:
        session_id = session.session_id
        auto_reply_scheduler.cancel(session.pk)
        session.delete()
        logger.info(f"Chat session {session_id} deleted by {getattr(user, 'pk', None)}")

    @staticmethod
    def total_unread() -> int:
        return ChatSession.objects.aggregate(total=Sum('unread_count'))['total'] or 0

    @staticmethod
    def deliver_auto_reply(session_pk: int, due_at, now=None) -> bool:
        """
        Send the auto reply armed for `due_at`, if it is still armed and overdue and
        nobody switched the session to bot mode. Returns whether a reply was sent.
        """
        now = now or timezone.now()
        session = ChatSession.objects.filter(pk=session_pk).first()
        if session is None or session.auto_reply_due_at is None:
            return False
        if session.auto_reply_due_at != due_at or due_at > now:
            return False

        try:
            if session.is_bot:
                ChatService._commit(session, {'auto_reply_due_at': None})
                return False

            reply = ChatService._message(SiteConfig.load().chat_auto_reply, now, is_agent=True)
            ChatService._commit(session, {
                'messages': list(session.messages or []) + [reply],
                'auto_reply_due_at': None,
            })
        except StaleSessionError:
            logger.info(f"Chat session {session.session_id} changed before its auto reply; skipped")
            return False

        logger.info(f"Chat session {session.session_id}: auto reply sent")
        return True

    @staticmethod
    def send_overdue_auto_replies(now=None) -> int:
        """Deliver every auto reply whose deadline has passed. Returns how many were sent."""
        now = now or timezone.now()
        overdue = ChatSession.objects.filter(auto_reply_due_at__lte=now).values_list('pk', 'auto_reply_due_at')
        return sum(1 for pk, due_at in overdue if ChatService.deliver_auto_reply(pk, due_at, now))
