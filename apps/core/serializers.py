from rest_framework import serializers
from .models import SiteConfig


class SiteConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = SiteConfig
        fields = ('site_name', 'tracking_base_url', 'support_email', 'phone_number', 'address',
                  'chat_greeting', 'chat_auto_reply')
