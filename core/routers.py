"""
URL mappings for the EduHub API.

Fixed routes are registered before the generic ``api/<collection>``
patterns so that e.g. ``api/students/search`` is never read as a record
id.  Trailing slashes are omitted to match the front-end client.
"""
from django.urls import path, include

from .auth_views import login_view, me_view, register_view
from .views import assignments, collections, health, item_requests, push, resources

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    path('api/health', health.health, name='health'),

    # Auth
    path('api/auth/register', register_view, name='register_view'),
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/me', me_view, name='me_view'),

    # Push notifications
    path('api/push/subscribe', push.subscribe, name='push_subscribe'),
    path('api/push/publicKey', push.public_key, name='push_public_key'),
    path('api/push/notify', push.notify, name='push_notify'),

    # Item request workflow
    path('api/item-requests', item_requests.item_requests_view, name='item_requests'),
    path('api/item-requests/<str:pk>', item_requests.item_request_detail, name='item_request_detail'),
    path('api/item-requests/<str:pk>/approve', item_requests.approve_item_request, name='item_request_approve'),
    path('api/item-requests/<str:pk>/reject', item_requests.reject_item_request, name='item_request_reject'),

    # Assignment history export
    path('api/assignments/export', assignments.export_assignments, name='assignments_export'),

    # Collection conveniences
    path('api/students/search', collections.search_students, name='students_search'),
    path('api/fees/student/<str:student_id>', collections.fees_by_student),
    path('api/fees/status/<str:status>', collections.fees_by_status),
    path('api/attendance/bulk', collections.attendance_bulk),
    path('api/attendance/student/<str:student_id>', collections.attendance_by_student),
    path('api/attendance/class/<str:class_id>', collections.attendance_by_class),
    path('api/marks/bulk', collections.marks_bulk),
    path('api/marks/student/<str:student_id>', collections.marks_by_student),
    path('api/marks/class/<str:class_id>', collections.marks_by_class),
    path('api/store_items/low-stock/<str:threshold>', collections.low_stock, name='low_stock'),

    # Generic CRUD
    path('api/<str:collection>', resources.collection_view, name='collection'),
    path('api/<str:collection>/<str:pk>', resources.record_view, name='record'),
]
