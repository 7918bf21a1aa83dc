"""API views for notifications."""

from __future__ import annotations

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.domain.exceptions import StateError

from . import services
from .models import Notification
from .serializers import NotificationSerializer


class NotificationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """List, read and delete the authenticated user's notifications."""

    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):  # type: ignore
        qs = Notification.objects.filter(user=self.request.user).select_related('related_booking')
        if self.action == 'list' and self.request.query_params.get('unread_only') == 'true':
            qs = qs.filter(is_read=False)
        return qs

    @action(detail=True, methods=['patch'])
    def read(self, request, pk=None):  # type: ignore
        notification = self.get_object()
        if notification.is_read:
            raise StateError('Notification is already read', code='already_read')
        notification.is_read = True
        notification.save(update_fields=['is_read', 'updated_at'])
        return Response(self.get_serializer(notification).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=['patch'], url_path='read-all', url_name='read-all')
    def read_all(self, request):  # type: ignore
        modified = services.mark_all_read(request.user)
        return Response({'modified_count': modified}, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'], url_path='unread-count', url_name='unread-count')
    def unread_count(self, request):  # type: ignore
        return Response({'unread_count': services.unread_count(request.user)})
