from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsAdminRole, IsConfirmedAccount
from core.serializers.push import NotifySerializer, SubscriptionSerializer
from core.services import push


@api_view(['POST'])
def subscribe(request):
    """Register a browser push subscription; repeating one is a no-op."""
    s = SubscriptionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = s.validated_data
    subscription = {'endpoint': data['endpoint'], 'keys': dict(data['keys'])}
    if 'expirationTime' in data:
        subscription['expirationTime'] = data['expirationTime']
    created = push.registry.add(subscription)
    return Response({'ok': True, 'created': created}, status=201)


@api_view(['GET'])
@permission_classes([AllowAny])
def public_key(request):
    return Response({'publicKey': push.public_key()})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsConfirmedAccount, IsAdminRole])
def notify(request):
    """Send one notification to every subscriber and wait for the outcome."""
    s = NotifySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    report = push.dispatch(dict(s.validated_data))
    return Response({'ok': True, **report.as_dict()})
