import logging

from django.core.management.base import BaseCommand

from apps.support.services import ChatService

logger = logging.getLogger('apps.support')


class Command(BaseCommand):
    help = "Send the auto reply to every chat session whose visitor has waited past the deadline."

    def handle(self, *args, **options):
        sent = ChatService.send_overdue_auto_replies()
        logger.info(f"Auto-reply sweep finished: {sent} sent")
        self.stdout.write(self.style.SUCCESS(f"Sent {sent} auto repl{'y' if sent == 1 else 'ies'}"))
