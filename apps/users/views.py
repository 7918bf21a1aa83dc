"""User API views."""

from __future__ import annotations

from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .serializers import ChangePasswordSerializer, ProfileUpdateSerializer, UserSerializer


class UserViewSet(viewsets.GenericViewSet):
    """Profile of the authenticated user.

    - `profile` returns (GET) or updates (PUT/PATCH) the current profile
    - `password` changes the password after checking the current one
    """

    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    @action(detail=False, methods=["get", "put", "patch"])
    def profile(self, request):
        if request.method == "GET":
            return Response(UserSerializer(request.user).data)

        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(UserSerializer(user).data)

    @action(detail=False, methods=["put"])
    def password(self, request):
        serializer = ChangePasswordSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({"detail": "Password changed successfully."}, status=status.HTTP_200_OK)
