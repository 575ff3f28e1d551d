import django_filters
from .models import Ticket, ChatSession


class TicketFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Ticket.STATUS_CHOICES)
    category = django_filters.ChoiceFilter(choices=Ticket.CATEGORY_CHOICES)

    class Meta:
        model = Ticket
        fields = ['status', 'category']


class ChatSessionFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=ChatSession.STATUS_CHOICES)
    language = django_filters.ChoiceFilter(choices=ChatSession.LANGUAGE_CHOICES)
    has_unread = django_filters.BooleanFilter(method='filter_has_unread')

    class Meta:
        model = ChatSession
        fields = ['status', 'language', 'is_bot']

    def filter_has_unread(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(unread_count__gt=0) if value else queryset.filter(unread_count=0)
