from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, mixins, permissions, status, viewsets, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.utils.security import SecurityAuditLogger
from .filters import TicketFilter, ChatSessionFilter
from .models import Ticket, ChatSession
from .serializers import (
    TicketSerializer, TicketStatusSerializer, TicketReplySerializer,
    ChatSessionSerializer, ChatSessionCreateSerializer, ChatResumeSerializer,
    ChatMessageSerializer, ChatStatusSerializer, VersionedSerializer,
)
from .services import TicketService, TicketExportService, ChatService, StaleSessionError

audit_logger = SecurityAuditLogger()


def stale_response(exc: StaleSessionError) -> Response:
    current = ChatSession.objects.filter(session_id=exc.session_id).values_list('version', flat=True).first()
    return Response(
        {'error': 'This chat session was updated by someone else. Reload it and try again.',
         'version': current},
        status=status.HTTP_409_CONFLICT
    )


# ==================== TICKETS (PUBLIC) ====================

class TicketCreateView(generics.CreateAPIView):
    """Support form: open a ticket."""
    serializer_class = TicketSerializer
    permission_classes = (permissions.AllowAny,)


class TicketLookupView(APIView):
    """Ticket status for the person who opened it (?email= must match)."""
    permission_classes = (permissions.AllowAny,)

    def get(self, request, ticket_id):
        email = request.query_params.get('email')
        if not email:
            return Response({'error': 'Email is required'}, status=status.HTTP_400_BAD_REQUEST)

        ticket = TicketService.find_for_requester(ticket_id, email)
        if ticket is None:
            return Response({'error': 'Ticket not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(TicketSerializer(ticket).data)


# ==================== TICKETS (ADMIN) ====================

class AdminTicketViewSet(mixins.ListModelMixin,
                         mixins.CreateModelMixin,
                         mixins.RetrieveModelMixin,
                         mixins.DestroyModelMixin,
                         viewsets.GenericViewSet):
    """
    Ticket inbox for staff.
    """
    permission_classes = [permissions.IsAdminUser]
    queryset = Ticket.objects.all()
    serializer_class = TicketSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = TicketFilter
    search_fields = ['ticket_id', 'name', 'subject', 'email']
    ordering_fields = ['updated_at', 'created_at', 'status']
    ordering = ['-updated_at']

    def perform_destroy(self, instance):
        audit_logger.log_admin_action('delete_ticket', self.request.user.pk, instance.ticket_id)
        instance.delete()

    @action(detail=True, methods=['post'], url_path='status')
    def set_status(self, request, pk=None):
        ticket = self.get_object()
        serializer = TicketStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'error': 'Invalid status'}, status=status.HTTP_400_BAD_REQUEST)

        success, message = TicketService.update_status(ticket, serializer.validated_data['status'], request.user)
        if success:
            return Response({'message': message, 'ticket': TicketSerializer(ticket).data})
        return Response({'error': message}, status=status.HTTP_400_BAD_REQUEST)

    @action(detail=True, methods=['post'], url_path='reply')
    def reply(self, request, pk=None):
        ticket = self.get_object()
        serializer = TicketReplySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        response = TicketService.add_reply(ticket, serializer.validated_data['message'])
        return Response({'response': response, 'ticket': TicketSerializer(ticket).data},
                        status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(TicketService.get_stats())

    @action(detail=False, methods=['get'], url_path='export')
    def export(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        if not queryset.exists():
            return Response({'error': 'No data to export'}, status=status.HTTP_400_BAD_REQUEST)
        return TicketExportService.export_to_csv(queryset)


# ==================== CHAT (WIDGET) ====================

class ChatWidgetMixin:
    permission_classes = (permissions.AllowAny,)

    def get_session(self, session_id):
        return ChatSession.objects.filter(session_id=session_id).first()

    @staticmethod
    def not_found():
        return Response({'error': 'Chat session not found'}, status=status.HTTP_404_NOT_FOUND)


class ChatSessionStartView(APIView):
    """Resume the visitor's session by its stored id, or start a new one."""
    permission_classes = (permissions.AllowAny,)

    def post(self, request):
        serializer = ChatResumeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        session, created = ChatService.resume_or_create(
            session_id=serializer.validated_data.get('session_id') or None,
            customer_name=serializer.validated_data.get('customer_name') or None,
            customer_email=serializer.validated_data.get('customer_email') or None,
        )
        return Response(
            ChatSessionSerializer(session).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


class ChatSessionDetailView(ChatWidgetMixin, APIView):
    """
    Widget polling. With ?since_version=N, an unchanged session answers
    {"changed": false, "version": N} instead of the full payload.
    """

    def get(self, request, session_id):
        session = self.get_session(session_id)
        if session is None:
            return self.not_found()

        since_version = request.query_params.get('since_version')
        if since_version is not None:
            try:
                since_version = int(since_version)
            except ValueError:
                return Response({'error': 'since_version must be an integer'},
                                status=status.HTTP_400_BAD_REQUEST)
            if session.version <= since_version:
                return Response({'changed': False, 'version': session.version})

        return Response(ChatSessionSerializer(session).data)


class ChatGreetingView(ChatWidgetMixin, APIView):
    def post(self, request, session_id):
        session = self.get_session(session_id)
        if session is None:
            return self.not_found()

        try:
            sent = ChatService.send_greeting(session)
        except StaleSessionError as e:
            return stale_response(e)
        return Response({'sent': sent, 'session': ChatSessionSerializer(session).data})


class ChatMessageView(ChatWidgetMixin, APIView):
    """Visitor message."""

    def post(self, request, session_id):
        session = self.get_session(session_id)
        if session is None:
            return self.not_found()

        serializer = ChatMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        content = serializer.validated_data['content'].strip()
        if not content:
            return Response({'error': 'Message cannot be empty'}, status=status.HTTP_400_BAD_REQUEST)

        try:
            message = ChatService.post_visitor_message(
                session, content, expected_version=serializer.validated_data.get('version')
            )
        except StaleSessionError as e:
            return stale_response(e)
        return Response({'message': message, 'session': ChatSessionSerializer(session).data},
                        status=status.HTTP_201_CREATED)


# ==================== CHAT (ADMIN) ====================

class AdminChatSessionViewSet(mixins.ListModelMixin,
                              mixins.CreateModelMixin,
                              mixins.RetrieveModelMixin,
                              mixins.DestroyModelMixin,
                              viewsets.GenericViewSet):
    """
    Live chat console for staff. Opening a session marks it read.
    """
    permission_classes = [permissions.IsAdminUser]
    queryset = ChatSession.objects.all()
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = ChatSessionFilter
    search_fields = ['session_id', 'customer_name', 'customer_email']
    ordering_fields = ['updated_at', 'created_at', 'unread_count']
    ordering = ['-updated_at']

    def get_serializer_class(self):
        if self.action == 'create':
            return ChatSessionCreateSerializer
        return ChatSessionSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = ChatService.create_session(serializer.validated_data)
        return Response(ChatSessionSerializer(session).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, *args, **kwargs):
        session = self.get_object()
        try:
            ChatService.mark_read(session)
        except StaleSessionError as e:
            return stale_response(e)
        return Response(ChatSessionSerializer(session).data)

    def perform_destroy(self, instance):
        audit_logger.log_admin_action('delete_chat_session', self.request.user.pk, instance.session_id)
        ChatService.delete_session(instance, self.request.user)

    @action(detail=True, methods=['post'], url_path='status')
    def set_status(self, request, pk=None):
        session = self.get_object()
        serializer = ChatStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'error': 'Invalid status'}, status=status.HTTP_400_BAD_REQUEST)

        try:
            success, message = ChatService.update_status(
                session, serializer.validated_data['status'], serializer.validated_data.get('version')
            )
        except StaleSessionError as e:
            return stale_response(e)

        if success:
            return Response({'message': message, 'session': ChatSessionSerializer(session).data})
        return Response({'error': message}, status=status.HTTP_400_BAD_REQUEST)

    @action(detail=True, methods=['post'], url_path='toggle-bot')
    def toggle_bot(self, request, pk=None):
        session = self.get_object()
        serializer = VersionedSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            ChatService.toggle_bot(session, serializer.validated_data.get('version'))
        except StaleSessionError as e:
            return stale_response(e)
        return Response(ChatSessionSerializer(session).data)

    @action(detail=True, methods=['post'], url_path='reply')
    def reply(self, request, pk=None):
        session = self.get_object()
        serializer = ChatMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        content = serializer.validated_data['content'].strip()
        if not content:
            return Response({'error': 'Message cannot be empty'}, status=status.HTTP_400_BAD_REQUEST)

        try:
            message = ChatService.post_reply(session, content, expected_version=serializer.validated_data.get('version'))
        except StaleSessionError as e:
            return stale_response(e)
        return Response({'message': message, 'session': ChatSessionSerializer(session).data},
                        status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def unread(self, request):
        return Response({'unread': ChatService.total_unread()})
