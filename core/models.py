"""
Database models for the EduHub backend.

Every collection the API exposes (students, classes, store items, ...)
is stored as schema-less documents in a single table.  The engine
imposes no field shapes: whatever JSON object the client sends is kept
in ``fields``, alongside an engine-assigned id and timestamps.
"""
from __future__ import annotations

import uuid

from django.db import models
from django.utils import timezone


def _new_id() -> str:
    return uuid.uuid4().hex


class Document(models.Model):
    """One record of one collection.

    ``id`` is assigned on insert and never changes afterwards.  Records
    are versioned only by overwrite; there is no revision history.
    """
    id = models.CharField(max_length=32, primary_key=True, default=_new_id, editable=False)
    # Every query filters by collection first; the composite index serves the default sort
    collection = models.CharField(max_length=64, db_index=True)
    fields = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=['collection', 'created_at'], name='doc_collection_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.collection}/{self.id}"
