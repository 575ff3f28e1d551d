from django.urls import path
from .views import SiteConfigView

app_name = 'core'

urlpatterns = [
    path('config/', SiteConfigView.as_view(), name='config'),
]
