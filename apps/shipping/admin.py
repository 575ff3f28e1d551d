from django.contrib import admin
from .models import Shipment


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display = ('tracking_id', 'sender_name', 'receiver_name', 'status', 'current_location',
                    'estimated_delivery', 'created_at')
    list_filter = ('status', 'category')
    search_fields = ('tracking_id', 'sender_name', 'receiver_name', 'pickup_location', 'delivery_location')
    readonly_fields = ('tracking_id', 'created_at', 'updated_at')
