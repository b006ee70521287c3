"""CSV export of student dormitory assignment history."""
from __future__ import annotations

import csv
import io
from typing import Any, Dict, Optional

from django.db.models import Q

from core.services.registry import get_collection

EXPORT_LIMIT = 1000
COLUMNS = (
    'timestamp',
    'student_id',
    'student_name',
    'action',
    'from_dormitory',
    'to_dormitory',
    'from_bed',
    'to_bed',
    'changed_by',
)
STUDENT_ACTIONS = ('reassign', 'bed_change')


def _cell(value: Any) -> str:
    return '' if value is None else str(value)


def assignments_csv(filters: Optional[Dict[str, Any]] = None) -> str:
    """Render up to ``EXPORT_LIMIT`` entries, newest first, every cell quoted."""
    rows = get_collection('assignment_logs').find(
        filters,
        where=Q(fields__action__in=STUDENT_ACTIONS),
        sort='-created_at',
        limit=EXPORT_LIMIT,
        loose=True,
    )
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(COLUMNS)
    for row in rows:
        writer.writerow([_cell(row.get(col)) for col in COLUMNS])
    return buf.getvalue()
