# users/views/me.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import generics
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle

from permissions.roles import effective_capabilities_for
from users.serializers import UserSerializer


class MeUserThrottle(UserRateThrottle):
    scope = "user"


# ---------------- ME ----------------
class MeView(generics.GenericAPIView):
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]
    throttle_classes = [MeUserThrottle]

    @extend_schema(responses={200: UserSerializer})
    def get(self, request):
        return Response(UserSerializer(request.user).data)


# ---------------- CAPABILITIES ----------------
class CapabilitiesView(generics.GenericAPIView):
    """
    What the current user may do. Frontends use this to hide actions
    (confirm, void, adjust stock) the backend would refuse anyway.
    """

    permission_classes = [IsAuthenticated]
    throttle_classes = [MeUserThrottle]

    @extend_schema(responses={200: dict})
    def get(self, request):
        user = request.user
        return Response(
            {
                "role": user.role,
                "is_superuser": bool(user.is_superuser),
                "capabilities": sorted(effective_capabilities_for(user)),
            }
        )
