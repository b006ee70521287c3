"""
Authentication views.

Register, login and "who am I" endpoints used by the front-end.  Kept
apart from the authentication class (see ``core.authentication``) to
prevent circular imports when Django REST framework initialises
authentication classes.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from core.serializers.auth import LoginSerializer, RegisterSerializer
from core.services import accounts


# ---------------------------------------------------------------------
# Self-service registration (admin role cannot be requested)
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    token, user = accounts.register(s.validated_data)
    return Response({'token': token, 'user': user}, status=201)

register_view.cls.throttle_scope = 'login'


# ---------------------------------------------------------------------
# Email/password login, gated on email confirmation
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    Accepts ``{email, password}`` and returns ``{token, user}``.

    Unconfirmed non-admin accounts get 403 before the password is checked.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    token, user = accounts.login(vd['email'], vd['password'], ip=request.META.get('REMOTE_ADDR'))
    return Response({'token': token, 'user': user}, status=200)

# ScopedRateThrottle reads throttle_scope from the wrapped APIView class
login_view.cls.throttle_scope = 'login'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response(accounts.me(request.user.id))
