from django.http import HttpResponse
from rest_framework.decorators import api_view

from core.services.exports import assignments_csv


@api_view(['GET'])
def export_assignments(request):
    """Download dormitory reassignments and bed changes as CSV (newest first, max 1000 rows)."""
    body = assignments_csv(request.query_params.dict())
    resp = HttpResponse(body, content_type='text/csv; charset=utf-8')
    resp['Content-Disposition'] = 'attachment; filename="assignments.csv"'
    return resp
