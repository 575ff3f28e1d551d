"""Shipping app models - Shipments and their checkpoint timeline."""
from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal

from apps.utils.ids import generate_tracking_id
from . import lifecycle


class Shipment(models.Model):
    """A tracked package, keyed by its public tracking ID."""

    STATUS_CHOICES = lifecycle.STATUS_CHOICES

    CATEGORY_CHOICES = [
        ('documents', 'Documents'),
        ('electronics', 'Electronics'),
        ('clothing', 'Clothing & Apparel'),
        ('food', 'Food & Perishables'),
        ('fragile', 'Fragile Items'),
        ('other', 'Other'),
    ]

    tracking_id = models.CharField(max_length=20, unique=True, editable=False)

    # Parties
    sender_name = models.CharField(max_length=100)
    sender_phone = models.CharField(max_length=30)
    receiver_name = models.CharField(max_length=100)
    receiver_phone = models.CharField(max_length=30)

    # Route
    pickup_location = models.CharField(max_length=255)
    delivery_location = models.CharField(max_length=255)
    current_location = models.CharField(max_length=255, default=lifecycle.PROCESSING_CENTER)

    # Package
    package_description = models.TextField()
    weight = models.DecimalField(
        max_digits=8, decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Kilograms"
    )
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=lifecycle.PENDING)
    estimated_delivery = models.DateTimeField(null=True, blank=True)
    timeline = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Shipment'
        verbose_name_plural = 'Shipments'
        ordering = ['-created_at']

    def __str__(self):
        return self.tracking_id

    def save(self, *args, **kwargs):
        if not self.tracking_id:
            self.tracking_id = self.generate_tracking_id()
        else:
            self.tracking_id = self.tracking_id.upper()
        super().save(*args, **kwargs)

    @classmethod
    def generate_tracking_id(cls):
        tracking_id = generate_tracking_id()
        while cls.objects.filter(tracking_id=tracking_id).exists():
            tracking_id = generate_tracking_id()
        return tracking_id

    @property
    def status_rank(self):
        return lifecycle.status_rank(self.status)

    @property
    def progress(self):
        return lifecycle.progress_percent(self.status)

    @property
    def route_progress(self):
        return lifecycle.route_map_progress(self.status)

    @property
    def current_location_short(self):
        return lifecycle.short_location(self.current_location)

    @property
    def is_delivered(self):
        return self.status == lifecycle.DELIVERED

    @property
    def is_on_time(self):
        if not self.is_delivered:
            return False
        return lifecycle.is_on_time(self.updated_at, self.estimated_delivery)
