"""Shipping services - request intake, admin edits, lookups and exports."""
import logging
import random
from typing import Dict, Any, Tuple, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.core.models import SiteConfig
from apps.utils.exports import (
    CSVGenerator, ExcelGenerator, build_receipt, make_qr_png,
    csv_response, excel_response, text_response,
)
from apps.utils.ids import normalize_tracking_id, is_valid_tracking_id
from . import lifecycle
from .models import Shipment

logger = logging.getLogger('apps.shipping')

INVALID_TRACKING_ID = 'Invalid tracking ID format. Use MM-LX-XXXXX'
EDITABLE_FIELDS = ('status', 'current_location', 'estimated_delivery', 'weight', 'category', 'timeline')


def _backfill_enabled() -> bool:
    return getattr(settings, 'SHIPMENT_TIMELINE_BACKFILL', True)


class ShipmentService:
    """Business logic for shipments."""

    @staticmethod
    def find_by_tracking_id(raw_tracking_id: str) -> Optional[Shipment]:
        """
        Normalize and validate a visitor-supplied tracking ID.
        Raises ValidationError on a malformed id; returns None when nothing matches.
        """
        tracking_id = normalize_tracking_id(raw_tracking_id)
        if not is_valid_tracking_id(tracking_id):
            raise ValidationError({'error': INVALID_TRACKING_ID})
        return Shipment.objects.filter(tracking_id=tracking_id).first()

    @staticmethod
    @transaction.atomic
    def create_from_request(data: Dict[str, Any], now=None, rng: Optional[random.Random] = None) -> Shipment:
        """
        Request-tracking flow: a new pending shipment with an estimated delivery
        and the five-checkpoint timeline.
        """
        now = now or timezone.now()
        estimated = lifecycle.estimate_delivery(now, data['category'], data['weight'], rng=rng)

        shipment = Shipment(
            sender_name=data['sender_name'],
            sender_phone=data['sender_phone'],
            receiver_name=data['receiver_name'],
            receiver_phone=data['receiver_phone'],
            pickup_location=data['pickup_location'],
            delivery_location=data['delivery_location'],
            package_description=data['package_description'],
            weight=data['weight'],
            category=data['category'],
            status=lifecycle.PENDING,
            current_location=lifecycle.PROCESSING_CENTER,
            estimated_delivery=estimated,
            timeline=lifecycle.build_default_timeline(
                now, data['pickup_location'], data['delivery_location'], estimated
            ),
        )
        shipment.save()

        logger.info(f"Shipment {shipment.tracking_id} requested ({shipment.category}, {shipment.weight} kg)")
        return shipment

    @staticmethod
    def update_shipment(shipment: Shipment, changes: Dict[str, Any], now=None) -> Tuple[bool, str]:
        """
        Admin edit. The timeline is re-advanced for the (possibly new) status on every save,
        which is a no-op for checkpoints already completed.
        """
        now = now or timezone.now()
        old_status = shipment.status

        for field in EDITABLE_FIELDS:
            if field in changes:
                setattr(shipment, field, changes[field])

        if shipment.status not in lifecycle.STATUS_ORDER:
            return False, f"Unknown status '{shipment.status}'"

        shipment.timeline = lifecycle.advance_timeline(
            shipment.timeline, shipment.status, now, backfill=_backfill_enabled()
        )
        shipment.save()

        if old_status != shipment.status:
            logger.info(f"Shipment {shipment.tracking_id} status changed: {old_status} -> {shipment.status}")
        else:
            logger.info(f"Shipment {shipment.tracking_id} updated")
        return True, f"Shipment {shipment.tracking_id} updated successfully"

    @staticmethod
    def mark_delivered(shipment: Shipment, now=None) -> Tuple[bool, str]:
        now = now or timezone.now()
        old_status = shipment.status

        shipment.status = lifecycle.DELIVERED
        shipment.current_location = 'Delivered'
        shipment.timeline = lifecycle.advance_timeline(
            shipment.timeline, lifecycle.DELIVERED, now, backfill=_backfill_enabled()
        )
        shipment.save()

        logger.info(f"Shipment {shipment.tracking_id} status changed: {old_status} -> delivered")
        return True, f"Shipment {shipment.tracking_id} marked as delivered"

    @staticmethod
    def add_timeline_event(shipment: Shipment, description: Optional[str] = None,
                           location: Optional[str] = None, now=None) -> dict:
        """Append a 'Custom Update' entry after the existing timeline."""
        now = now or timezone.now()
        event = lifecycle.custom_timeline_event(location or shipment.current_location, now, description)
        shipment.timeline = list(shipment.timeline or []) + [event]
        shipment.save()

        logger.info(f"Shipment {shipment.tracking_id}: custom timeline event at {event['location']}")
        return event

    @staticmethod
    def delete_shipment(shipment: Shipment, user=None) -> None:
        tracking_id = shipment.tracking_id
        shipment.delete()
        logger.info(f"Shipment {tracking_id} deleted by {getattr(user, 'pk', None)}")

    @staticmethod
    def receipt_text(shipment: Shipment) -> str:
        return build_receipt(shipment, SiteConfig.load())

    @staticmethod
    def tracking_url(shipment: Shipment) -> str:
        return SiteConfig.load().tracking_url(shipment.tracking_id)

    @staticmethod
    def qr_code_png(shipment: Shipment) -> bytes:
        return make_qr_png(ShipmentService.tracking_url(shipment))


def _date(value):
    return timezone.localtime(value).strftime('%Y-%m-%d') if value else ''


class ShipmentExportService:
    COLUMNS = [
        {'header': 'Tracking ID', 'field': 'tracking_id'},
        {'header': 'Sender', 'field': 'sender_name'},
        {'header': 'Receiver', 'field': 'receiver_name'},
        {'header': 'Pickup', 'field': 'pickup_location'},
        {'header': 'Delivery', 'field': 'delivery_location'},
        {'header': 'Status', 'field': 'status'},
        {'header': 'Current Location', 'field': 'current_location'},
        {'header': 'Estimated Delivery', 'field': 'estimated_delivery', 'formatter': _date},
        {'header': 'Weight', 'field': 'weight', 'formatter': lambda x: float(x) if x is not None else ''},
        {'header': 'Category', 'field': 'category'},
        {'header': 'Created Date', 'field': 'created_at', 'formatter': _date},
    ]

    @staticmethod
    def export(queryset, fmt: str = 'csv'):
        stamp = timezone.localdate().strftime('%Y-%m-%d')
        if fmt == 'xlsx':
            stream = ExcelGenerator(title="Shipments").generate(queryset, ShipmentExportService.COLUMNS)
            return excel_response(stream, f"shipments-{stamp}.xlsx")

        content = CSVGenerator().generate(queryset, ShipmentExportService.COLUMNS)
        return csv_response(content, f"shipments-{stamp}.csv")

    @staticmethod
    def receipt(shipment: Shipment):
        return text_response(
            ShipmentService.receipt_text(shipment),
            f"movemate-receipt-{shipment.tracking_id}.txt"
        )
