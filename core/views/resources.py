"""
Generic CRUD endpoints over every registered collection.

``/api/<collection>`` and ``/api/<collection>/<id>`` are routed last so
the fixed per-collection routes win.  Append-only collections are served
read-only here; their entries are written by hooks and the audit writer.
"""
from __future__ import annotations

from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.services import resources
from core.services.registry import get_collection


def actor_of(request):
    """Id of the authenticated account, or ``None``."""
    user = getattr(request, 'user', None)
    if user and getattr(user, 'is_authenticated', False):
        return str(user.id)
    return None


def role_of(request):
    return getattr(getattr(request, 'user', None), 'role', None)


@api_view(['GET', 'POST'])
def collection_view(request, collection):
    get_collection(collection)
    if request.method == 'GET':
        return Response(resources.list_records(collection, request.query_params.dict()))
    resources.ensure_writable(collection, request.method)
    resources.ensure_privileged(collection, request.data, role_of(request))
    return Response(resources.create_record(collection, request.data, actor_of(request)), status=201)


@api_view(['GET', 'PUT', 'DELETE'])
def record_view(request, collection, pk):
    get_collection(collection)
    if request.method == 'GET':
        return Response(resources.get_record(collection, pk))
    resources.ensure_writable(collection, request.method)
    if request.method == 'DELETE':
        resources.delete_record(collection, pk)
        return Response(status=204)
    resources.ensure_privileged(collection, request.data, role_of(request))
    return Response(resources.update_record(collection, pk, request.data, actor_of(request)))
