# users/views.py

"""
CURRENT USER VIEW

Login and refresh are SimpleJWT's token views (see backend/urls.py);
this module only exposes the authenticated profile.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.throttling import UserRateThrottle

from common.results import success
from .serializers import UserSerializer


class MeUserThrottle(UserRateThrottle):
    scope = "user"


class MeView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = UserSerializer
    throttle_classes = [MeUserThrottle]

    @extend_schema(
        tags=["Auth"],
        responses={200: UserSerializer},
        description="Get current authenticated user profile",
    )
    def get(self, request):
        return success(UserSerializer(request.user).data)
