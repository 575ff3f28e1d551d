import logging

from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.shipping.models import Shipment
from .aggregator import build_dashboard

logger = logging.getLogger('apps.analytics')


class DashboardView(APIView):
    """Admin: shipment analytics, recomputed from the full table on every request."""
    permission_classes = (permissions.IsAdminUser,)

    def get(self, request):
        shipments = list(Shipment.objects.all())
        dashboard = build_dashboard(shipments)
        logger.debug(f"Dashboard computed over {len(shipments)} shipments")
        return Response(dashboard)
