import logging

from django.http import HttpResponse
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, mixins, permissions, status, viewsets, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.utils.security import SecurityAuditLogger
from .filters import ShipmentFilter
from .models import Shipment
from .serializers import (
    ShipmentSerializer, ShipmentRequestSerializer, ShipmentUpdateSerializer, TimelineEventSerializer,
)
from .services import ShipmentService, ShipmentExportService

logger = logging.getLogger('apps.shipping')
audit_logger = SecurityAuditLogger()


# ==================== PUBLIC ====================

class ShipmentRequestView(generics.CreateAPIView):
    """Request tracking: creates a pending shipment and returns its tracking link."""
    serializer_class = ShipmentRequestSerializer
    permission_classes = (permissions.AllowAny,)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            shipment = ShipmentService.create_from_request(serializer.validated_data)
        except Exception as e:
            logger.exception(f"Shipment request from {serializer.validated_data['sender_name']} failed: {e}")
            return Response(
                {'error': 'Could not create the shipment. Please try again.'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        data = ShipmentSerializer(shipment).data
        data['tracking_url'] = ShipmentService.tracking_url(shipment)
        return Response(data, status=status.HTTP_201_CREATED)


class TrackedShipmentMixin:
    permission_classes = (permissions.AllowAny,)

    def get_shipment(self, tracking_id):
        return ShipmentService.find_by_tracking_id(tracking_id)

    @staticmethod
    def not_found():
        return Response({'error': 'Shipment not found'}, status=status.HTTP_404_NOT_FOUND)


class ShipmentTrackingView(TrackedShipmentMixin, APIView):
    """Public tracking lookup by tracking ID."""

    def get(self, request, tracking_id):
        shipment = self.get_shipment(tracking_id)
        if shipment is None:
            return self.not_found()

        data = ShipmentSerializer(shipment).data
        data['tracking_url'] = ShipmentService.tracking_url(shipment)
        return Response(data)


class ShipmentReceiptView(TrackedShipmentMixin, APIView):
    """Plain-text receipt download."""

    def get(self, request, tracking_id):
        shipment = self.get_shipment(tracking_id)
        if shipment is None:
            return self.not_found()
        return ShipmentExportService.receipt(shipment)


class ShipmentQRCodeView(TrackedShipmentMixin, APIView):
    """QR code (PNG) pointing at the public tracking page."""

    def get(self, request, tracking_id):
        shipment = self.get_shipment(tracking_id)
        if shipment is None:
            return self.not_found()
        return HttpResponse(ShipmentService.qr_code_png(shipment), content_type='image/png')


# ==================== ADMIN ====================

class AdminShipmentViewSet(mixins.ListModelMixin,
                           mixins.RetrieveModelMixin,
                           mixins.UpdateModelMixin,
                           mixins.DestroyModelMixin,
                           viewsets.GenericViewSet):
    """
    Shipment directory for staff: search, filter, sort, edit, delete, export.
    Shipments are created through the public request flow only.
    """
    permission_classes = [permissions.IsAdminUser]
    queryset = Shipment.objects.all()
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = ShipmentFilter
    search_fields = ['tracking_id', 'sender_name', 'receiver_name', 'pickup_location', 'delivery_location']
    ordering_fields = ['tracking_id', 'sender_name', 'receiver_name', 'status',
                       'estimated_delivery', 'created_at', 'updated_at', 'weight']
    ordering = ['-created_at']

    def get_serializer_class(self):
        if self.action in ['update', 'partial_update']:
            return ShipmentUpdateSerializer
        return ShipmentSerializer

    def perform_destroy(self, instance):
        audit_logger.log_admin_action('delete_shipment', self.request.user.pk, instance.tracking_id)
        ShipmentService.delete_shipment(instance, self.request.user)

    @action(detail=True, methods=['post'], url_path='mark-delivered')
    def mark_delivered(self, request, pk=None):
        shipment = self.get_object()
        success, message = ShipmentService.mark_delivered(shipment)
        if success:
            return Response({'message': message, 'shipment': ShipmentSerializer(shipment).data})
        return Response({'error': message}, status=status.HTTP_400_BAD_REQUEST)

    @action(detail=True, methods=['post'], url_path='events')
    def add_event(self, request, pk=None):
        """Append a 'Custom Update' checkpoint to the timeline."""
        shipment = self.get_object()
        serializer = TimelineEventSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event = ShipmentService.add_timeline_event(
            shipment,
            description=serializer.validated_data.get('description') or None,
            location=serializer.validated_data.get('location') or None,
        )
        return Response({'event': event, 'shipment': ShipmentSerializer(shipment).data},
                        status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'], url_path='export')
    def export(self, request):
        """Export the filtered directory as CSV (default) or Excel (?file_type=xlsx)."""
        queryset = self.filter_queryset(self.get_queryset())
        if not queryset.exists():
            return Response({'error': 'No data to export'}, status=status.HTTP_400_BAD_REQUEST)

        file_type = request.query_params.get('file_type', 'csv').lower()
        if file_type not in ('csv', 'xlsx'):
            return Response({'error': f"Unsupported export type '{file_type}'"},
                            status=status.HTTP_400_BAD_REQUEST)
        return ShipmentExportService.export(queryset, file_type)
