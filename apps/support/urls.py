from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'support'

router = DefaultRouter()
router.register(r'admin/tickets', views.AdminTicketViewSet, basename='admin-ticket')
router.register(r'admin/chat', views.AdminChatSessionViewSet, basename='admin-chat')

urlpatterns = [
    # Tickets
    path('tickets/', views.TicketCreateView.as_view(), name='ticket_create'),
    path('tickets/<str:ticket_id>/', views.TicketLookupView.as_view(), name='ticket_lookup'),

    # Chat widget
    path('chat/sessions/', views.ChatSessionStartView.as_view(), name='chat_start'),
    path('chat/sessions/<str:session_id>/', views.ChatSessionDetailView.as_view(), name='chat_session'),
    path('chat/sessions/<str:session_id>/greet/', views.ChatGreetingView.as_view(), name='chat_greet'),
    path('chat/sessions/<str:session_id>/messages/', views.ChatMessageView.as_view(), name='chat_messages'),

    # Admin
    path('', include(router.urls)),
]
