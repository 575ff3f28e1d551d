from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'shipping'

router = DefaultRouter()
router.register(r'admin/shipments', views.AdminShipmentViewSet, basename='admin-shipment')

urlpatterns = [
    # Public
    path('request/', views.ShipmentRequestView.as_view(), name='request'),
    path('track/<str:tracking_id>/', views.ShipmentTrackingView.as_view(), name='track'),
    path('track/<str:tracking_id>/receipt/', views.ShipmentReceiptView.as_view(), name='receipt'),
    path('track/<str:tracking_id>/qr/', views.ShipmentQRCodeView.as_view(), name='qr'),

    # Admin directory
    path('', include(router.urls)),
]
