"""
Django admin registration for stored documents.

Every record of every collection is one ``Document`` row, so a single
admin view lets superusers inspect and hand-edit data at ``/admin/``.
"""

from django.contrib import admin

from .models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ('id', 'collection', 'created_at', 'updated_at')
    list_filter = ('collection',)
    search_fields = ('id',)
    readonly_fields = ('id', 'created_at')
    ordering = ('-created_at',)
