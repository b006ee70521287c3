"""
Document store adapter.

A key-addressable, schema-less record store over :class:`core.models.Document`.
Each :class:`DocumentStore` is bound to one collection and offers insert,
find (exact-match filter, sort, limit), find-by-id, update-by-id (merge),
delete-by-id and bulk insert.  Records go in and come out as plain dicts
in their public JSON shape; callers never see model instances.

No transactions are used: each call is a single read or write and a record
is versioned only by overwrite.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from django.db import DataError
from django.db.models import Q
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework.exceptions import ValidationError

from core.models import Document

logger = logging.getLogger(__name__)

# Keys owned by the engine; client-supplied values are dropped on every write.
RESERVED_KEYS = frozenset({'id', '_id', 'created_at', 'updated_at', 'createdAt', 'updatedAt'})

DEFAULT_SORT = '-created_at'

_COLUMNS = {
    'id': 'id',
    '_id': 'id',
    'created_at': 'created_at',
    'createdAt': 'created_at',
    'updated_at': 'updated_at',
    'updatedAt': 'updated_at',
}

_UNDECODED = object()


def clean_fields(data: Any) -> Dict[str, Any]:
    """Return ``data`` without reserved keys, rejecting anything but an object."""
    if not isinstance(data, dict):
        raise ValidationError({'detail': 'record must be a JSON object'})
    return {k: v for k, v in data.items() if k not in RESERVED_KEYS}


def to_record(doc: Document) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        'id': doc.id,
        # legacy field for FE compatibility (Mongo-style identifiers)
        '_id': doc.id,
    }
    record.update(doc.fields or {})
    record['created_at'] = doc.created_at.isoformat() if doc.created_at else None
    record['updated_at'] = doc.updated_at.isoformat() if doc.updated_at else None
    return record


def _decode_scalar(value: str) -> Any:
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError):
        return _UNDECODED
    if isinstance(decoded, (dict, list, str)):
        return _UNDECODED
    return decoded


def _as_moment(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    try:
        return parse_datetime(value) if isinstance(value, str) else None
    except ValueError:
        return None


def exact_match(filters: Dict[str, Any], *, loose: bool = False) -> Q:
    """Build an AND of exact-match conditions over record fields.

    With ``loose`` a string value also matches its JSON scalar form, so a
    query string ``?quantity=5`` finds records holding the number ``5``.
    Timestamp keys match the stored column against an ISO 8601 value; one
    that does not parse matches nothing.  Keys containing ``__`` would
    reach Django lookups and are ignored.
    """
    cond = Q()
    for key, value in filters.items():
        if not key or '__' in key:
            logger.debug("ignoring filter key %r", key)
            continue
        if _COLUMNS.get(key) == 'id':
            cond &= Q(id=value)
            continue
        if key in _COLUMNS:
            moment = _as_moment(value)
            cond &= Q(**{_COLUMNS[key]: moment}) if moment is not None else Q(pk__in=[])
            continue
        term = Q(**{f'fields__{key}': value})
        if loose and isinstance(value, str):
            decoded = _decode_scalar(value)
            if decoded is not _UNDECODED:
                term |= Q(**{f'fields__{key}': decoded})
        cond &= term
    return cond


def order_by(sort: Optional[str]) -> List[str]:
    """Translate ``-field other`` / ``-field,other`` into ORM ordering."""
    ordering: List[str] = []
    for part in (sort or DEFAULT_SORT).replace(',', ' ').split():
        desc = part.startswith('-')
        name = part.lstrip('+-')
        if not name or '__' in name:
            continue
        column = _COLUMNS.get(name, f'fields__{name}')
        ordering.append(f'-{column}' if desc else column)
    return ordering or [DEFAULT_SORT]


class DocumentStore:
    """Store handle bound to a single collection."""

    def __init__(self, collection: str) -> None:
        self.collection = collection

    def __repr__(self) -> str:
        return f"DocumentStore({self.collection!r})"

    def _docs(self):
        return Document.objects.filter(collection=self.collection)

    def _save(self, doc: Document, **kwargs) -> None:
        try:
            doc.save(**kwargs)
        except (DataError, TypeError, ValueError) as exc:
            logger.warning("store rejected write to %s: %s", self.collection, exc)
            raise ValidationError({'detail': str(exc)})

    def insert(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        now = timezone.now()
        doc = Document(collection=self.collection, fields=clean_fields(fields), created_at=now, updated_at=now)
        self._save(doc, force_insert=True)
        return to_record(doc)

    def bulk_insert(self, rows: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        docs = []
        for row in rows:
            now = timezone.now()
            docs.append(Document(collection=self.collection, fields=clean_fields(row), created_at=now, updated_at=now))
        try:
            Document.objects.bulk_create(docs)
        except (DataError, TypeError, ValueError) as exc:
            logger.warning("store rejected bulk write to %s: %s", self.collection, exc)
            raise ValidationError({'detail': str(exc)})
        return [to_record(d) for d in docs]

    def find(
        self,
        filters: Optional[Dict[str, Any]] = None,
        *,
        where: Optional[Q] = None,
        sort: Optional[str] = None,
        limit: int = 0,
        loose: bool = False,
    ) -> List[Dict[str, Any]]:
        qs = self._docs()
        if filters:
            qs = qs.filter(exact_match(filters, loose=loose))
        if where is not None:
            qs = qs.filter(where)
        qs = qs.order_by(*order_by(sort))
        if limit and limit > 0:
            qs = qs[:limit]
        return [to_record(d) for d in qs]

    def find_by_id(self, pk: str) -> Optional[Dict[str, Any]]:
        doc = self._docs().filter(pk=pk).first()
        return to_record(doc) if doc else None

    def update_by_id(self, pk: str, fields: Dict[str, Any], *, merge: bool = True) -> Optional[Dict[str, Any]]:
        """Merge (or replace) the fields of one record; ``None`` if absent."""
        doc = self._docs().filter(pk=pk).first()
        if doc is None:
            return None
        changes = clean_fields(fields)
        doc.fields = {**(doc.fields or {}), **changes} if merge else changes
        doc.updated_at = timezone.now()
        self._save(doc, update_fields=['fields', 'updated_at'])
        return to_record(doc)

    def delete_by_id(self, pk: str) -> int:
        deleted, _ = self._docs().filter(pk=pk).delete()
        return deleted
