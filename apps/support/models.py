"""Support app models - Tickets and live chat sessions."""
from django.db import models

from apps.utils.ids import generate_ticket_id, generate_session_id


class Ticket(models.Model):
    CATEGORY_CHOICES = [
        ('shipment_issue', 'Shipment Issue'),
        ('delivery_delay', 'Delivery Delay'),
        ('damage_claim', 'Damage Claim'),
        ('billing', 'Billing'),
        ('account', 'Account'),
        ('general', 'General Inquiry'),
        ('feedback', 'Feedback'),
        ('other', 'Other'),
    ]

    STATUS_CHOICES = [
        ('open', 'Open'),
        ('in_progress', 'In Progress'),
        ('resolved', 'Resolved'),
    ]

    ticket_id = models.CharField(max_length=40, unique=True, editable=False)
    name = models.CharField(max_length=100)
    email = models.EmailField()
    subject = models.CharField(max_length=255)
    message = models.TextField()
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='open')

    # [{id, message, isAdmin, timestamp}, ...] append-only
    responses = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']

    def __str__(self):
        return f"{self.ticket_id} - {self.subject}"

    def save(self, *args, **kwargs):
        if not self.ticket_id:
            self.ticket_id = self.generate_ticket_id()
        super().save(*args, **kwargs)

    @classmethod
    def generate_ticket_id(cls):
        ticket_id = generate_ticket_id()
        while cls.objects.filter(ticket_id=ticket_id).exists():
            ticket_id = generate_ticket_id()
        return ticket_id

    @property
    def response_count(self):
        return len(self.responses or [])


class ChatSession(models.Model):
    """
    A visitor conversation. `session_id` is kept by the widget to resume it.
    Every write goes through ChatService, which bumps `version`.
    """

    LANGUAGE_CHOICES = [
        ('en', 'English'),
        ('es', 'Spanish'),
        ('fr', 'French'),
        ('de', 'German'),
        ('zh', 'Chinese'),
        ('ar', 'Arabic'),
    ]

    STATUS_CHOICES = [
        ('open', 'Open'),
        ('pending', 'Pending'),
        ('resolved', 'Resolved'),
        ('closed', 'Closed'),
    ]

    session_id = models.CharField(max_length=64, unique=True)
    customer_name = models.CharField(max_length=100, default='Customer')
    customer_email = models.EmailField(blank=True)
    language = models.CharField(max_length=5, choices=LANGUAGE_CHOICES, default='en')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='open')
    is_bot = models.BooleanField(default=False)
    unread_count = models.PositiveIntegerField(default=0)

    # [{id, content, isBot, isAgent, timestamp}, ...] append-only
    messages = models.JSONField(default=list, blank=True)

    version = models.PositiveIntegerField(default=1)
    auto_reply_due_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']

    def __str__(self):
        return f"{self.session_id} ({self.customer_name})"

    def save(self, *args, **kwargs):
        if not self.session_id:
            self.session_id = self.generate_session_id()
        super().save(*args, **kwargs)

    @classmethod
    def generate_session_id(cls):
        session_id = generate_session_id()
        while cls.objects.filter(session_id=session_id).exists():
            session_id = generate_session_id()
        return session_id
