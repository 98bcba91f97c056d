"""
URL configuration for the service manual publisher.
"""

from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/auth/token/', TokenObtainPairView.as_view(), name='token-obtain'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
    path('api/guides/', include('apps.guides.urls')),
    path('api/topics/', include('apps.topics.urls')),
]

admin.site.site_header = "Service Manual Publisher"
admin.site.site_title = "Service Manual Publisher"
admin.site.index_title = "Guides, editions and topics"
