from rest_framework import serializers
from .models import Ticket, ChatSession


# ==================== TICKETS ====================

class TicketSerializer(serializers.ModelSerializer):
    category_display = serializers.CharField(source='get_category_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    response_count = serializers.ReadOnlyField()

    class Meta:
        model = Ticket
        fields = ('id', 'ticket_id', 'name', 'email', 'subject', 'message',
                  'category', 'category_display', 'status', 'status_display',
                  'responses', 'response_count', 'created_at', 'updated_at')
        read_only_fields = ('ticket_id', 'status', 'responses', 'created_at', 'updated_at')

    def validate(self, attrs):
        for field in ('name', 'subject', 'message'):
            if field in attrs:
                attrs[field] = attrs[field].strip()
                if not attrs[field]:
                    raise serializers.ValidationError({field: "This field may not be blank."})
        return attrs

    def create(self, validated_data):
        from .services import TicketService
        return TicketService.create_ticket(validated_data)


class TicketStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Ticket.STATUS_CHOICES)


class TicketReplySerializer(serializers.Serializer):
    message = serializers.CharField(max_length=5000)


# ==================== CHAT ====================

class ChatSessionSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = ChatSession
        fields = ('id', 'session_id', 'customer_name', 'customer_email', 'language',
                  'status', 'status_display', 'is_bot', 'unread_count', 'messages',
                  'version', 'auto_reply_due_at', 'created_at', 'updated_at')
        read_only_fields = fields


class ChatSessionCreateSerializer(serializers.ModelSerializer):
    class Meta:
        model = ChatSession
        fields = ('customer_name', 'customer_email', 'language')
        extra_kwargs = {'customer_name': {'required': False}}


class ChatResumeSerializer(serializers.Serializer):
    session_id = serializers.CharField(required=False, allow_blank=True, max_length=64)
    customer_name = serializers.CharField(required=False, allow_blank=True, max_length=100)
    customer_email = serializers.EmailField(required=False, allow_blank=True)


class VersionedSerializer(serializers.Serializer):
    """Optional row version the client last saw; a mismatch is a 409."""
    version = serializers.IntegerField(required=False, min_value=1)


class ChatMessageSerializer(VersionedSerializer):
    content = serializers.CharField(max_length=2000)


class ChatStatusSerializer(VersionedSerializer):
    status = serializers.ChoiceField(choices=ChatSession.STATUS_CHOICES)
