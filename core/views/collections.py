"""
Collection-specific conveniences layered on the generic engine:
name search, foreign-key scoped listings, bulk inserts and the
low-stock report.
"""
from __future__ import annotations

from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.services import resources
from core.views.resources import actor_of


@api_view(['GET'])
def search_students(request):
    """``?name=`` substring match on first or last name, at most 50 rows."""
    return Response(resources.search_by_name('students', request.query_params.get('name')))


@api_view(['GET'])
def fees_by_student(request, student_id):
    return Response(resources.list_by_field('fees', 'student_id', student_id))


@api_view(['GET'])
def fees_by_status(request, status):
    return Response(resources.list_by_field('fees', 'payment_status', status))


@api_view(['POST'])
def attendance_bulk(request):
    return Response(resources.bulk_create('attendance', request.data, actor_of(request)), status=201)


@api_view(['GET'])
def attendance_by_student(request, student_id):
    return Response(resources.list_by_field('attendance', 'student_id', student_id, sort='-attendance_date'))


@api_view(['GET'])
def attendance_by_class(request, class_id):
    return Response(resources.list_by_field('attendance', 'class_id', class_id, sort='-attendance_date'))


@api_view(['POST'])
def marks_bulk(request):
    return Response(resources.bulk_create('marks', request.data, actor_of(request)), status=201)


@api_view(['GET'])
def marks_by_student(request, student_id):
    return Response(resources.list_by_field('marks', 'student_id', student_id))


@api_view(['GET'])
def marks_by_class(request, class_id):
    return Response(resources.list_by_field('marks', 'class_id', class_id))


@api_view(['GET'])
def low_stock(request, threshold):
    limit = resources.parse_threshold(threshold)
    return Response(resources.list_at_most('store_items', 'quantity_in_stock', limit))
