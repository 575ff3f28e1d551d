"""Main URL Configuration for the Movemate backend."""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path('admin/', admin.site.urls),

    # Staff console tokens
    path('api/auth/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # API v1
    path('api/core/', include('apps.core.urls', namespace='core')),
    path('api/shipping/', include('apps.shipping.urls', namespace='shipping')),
    path('api/analytics/', include('apps.analytics.urls', namespace='analytics')),
    path('api/support/', include('apps.support.urls', namespace='support')),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
