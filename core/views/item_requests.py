from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.serializers.item_requests import ApproveSerializer, RejectSerializer
from core.services import item_requests
from core.views.resources import actor_of


@api_view(['GET', 'POST'])
def item_requests_view(request):
    """
    GET: requests filtered by ``?status=`` (default ``pending``; ``all`` for every state), newest first.
    POST: file a new request; it always starts pending.
    """
    if request.method == 'POST':
        return Response(item_requests.create_request(request.data, actor_of(request)), status=201)
    status = request.query_params.get('status') or item_requests.ITEM_REQUEST_PENDING
    return Response(item_requests.list_requests(None if status == 'all' else status))


@api_view(['GET'])
def item_request_detail(request, pk):
    return Response(item_requests.get_request(pk))


@api_view(['PUT'])
def approve_item_request(request, pk):
    s = ApproveSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    record = item_requests.approve(pk, s.validated_data.get('approval_notes'), actor_of(request))
    return Response(record)


@api_view(['PUT'])
def reject_item_request(request, pk):
    s = RejectSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    record = item_requests.reject(pk, s.validated_data.get('rejection_reason'), actor_of(request))
    return Response(record)
