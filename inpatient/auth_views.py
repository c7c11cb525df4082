"""
Authentication endpoints.

Staff sign in with email and password.  A successful login opens a
Django session (for the browser UI), and also returns a DRF token and a
simplejwt pair for API clients.  Both successful and failed attempts are
written to the audit trail; failures never reveal whether the email
exists.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate, login as django_login, logout as django_logout
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.tokens import RefreshToken

from .models import User
from .serializers.auth import LoginSerializer
from .services.audit import log_action

logger = logging.getLogger(__name__)

INVALID_LOGIN = 'Invalid email or password'


def user_payload(user: User) -> dict:
    return {
        'id': user.id,
        'email': user.email,
        'name': user.display_name(),
        'role': user.role,
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data['email']
    password = s.validated_data['password']

    account = User.objects.filter(email__iexact=email).first()
    user = None
    if account is not None:
        user = authenticate(request._request, username=account.username, password=password)
    if user is None:
        log_action(
            user=None, action='login', entity_type='user', entity_id=None,
            details={'result': 'fail', 'email': email}, request=request,
        )
        logger.warning('failed login for %s', email)
        raise AuthenticationFailed(INVALID_LOGIN)

    django_login(request._request, user)
    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    log_action(
        user=user, action='login', entity_type='user', entity_id=user.id,
        details={'result': 'ok'}, request=request,
    )
    return Response({
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role,
        'user': user_payload(user),
    })


login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """End the session, drop the API token and blacklist a given refresh token."""
    user = request.user
    refresh = request.data.get('refresh')
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
        except TokenError:
            logger.info('logout with an unusable refresh token for user %s', user.id)
    Token.objects.filter(user=user).delete()
    log_action(
        user=user, action='logout', entity_type='user', entity_id=user.id,
        details={}, request=request,
    )
    django_logout(request._request)
    return Response({'ok': True}, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([AllowAny])
def refresh_view(request):
    """Exchange a simplejwt refresh token for a new access token."""
    s = TokenRefreshSerializer(data={'refresh': request.data.get('refresh') or request.data.get('jwt_refresh')})
    try:
        s.is_valid(raise_exception=True)
    except TokenError as exc:
        raise AuthenticationFailed(str(exc))
    data = dict(s.validated_data)
    payload = {'ok': True, 'jwt_access': data.pop('access')}
    if 'refresh' in data:
        payload['jwt_refresh'] = data['refresh']
    return Response(payload)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response({'ok': True, 'user': user_payload(request.user)})
