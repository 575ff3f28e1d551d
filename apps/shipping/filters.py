import django_filters

from .models import Shipment


class ShipmentFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Shipment.STATUS_CHOICES)
    category = django_filters.ChoiceFilter(choices=Shipment.CATEGORY_CHOICES)

    class Meta:
        model = Shipment
        fields = ['status', 'category']
