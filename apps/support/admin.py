from django.contrib import admin
from .models import Ticket, ChatSession


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ('ticket_id', 'name', 'email', 'subject', 'category', 'status', 'updated_at')
    list_filter = ('status', 'category')
    search_fields = ('ticket_id', 'name', 'email', 'subject')
    readonly_fields = ('ticket_id', 'created_at', 'updated_at')


@admin.register(ChatSession)
class ChatSessionAdmin(admin.ModelAdmin):
    list_display = ('session_id', 'customer_name', 'customer_email', 'status', 'is_bot', 'unread_count', 'updated_at')
    list_filter = ('status', 'is_bot', 'language')
    search_fields = ('session_id', 'customer_name', 'customer_email')
    readonly_fields = ('session_id', 'version', 'created_at', 'updated_at')
