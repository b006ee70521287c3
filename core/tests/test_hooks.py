"""
Business rules that fire when hooked collections are written.

Pure rules are checked on the hook objects directly; the scenarios go
through the resource engine so the audit trail and the notifications
handed to the dispatcher are observed end to end.
"""
import pytest
from django.contrib.auth.hashers import check_password
from rest_framework.exceptions import ValidationError

from core.services import audit, resources
from core.services.hooks import (
    HOOKS,
    IN_STOCK,
    LOW_STOCK,
    OUT_OF_STOCK,
    Hook,
    StoreItemHook,
    hook_for,
    stock_status,
)
from core.services.registry import get_collection

pytestmark = pytest.mark.django_db


def logs(collection='assignment_logs'):
    return get_collection(collection).find()


@pytest.mark.parametrize('qty,reorder,expected', [
    (0, 20, OUT_OF_STOCK),
    (-3, 20, OUT_OF_STOCK),
    (1, 20, LOW_STOCK),
    (20, 20, LOW_STOCK),
    (21, 20, IN_STOCK),
    (5, 0, IN_STOCK),
    ('8', '20', LOW_STOCK),
    (None, None, OUT_OF_STOCK),
])
def test_stock_status_thresholds(qty, reorder, expected):
    assert stock_status(qty, reorder) == expected


def test_hook_registry_is_explicit():
    assert set(HOOKS) == {'store_items', 'classes', 'users', 'students', 'dormitories', 'item_requests'}
    assert type(hook_for('fees')) is Hook
    assert isinstance(hook_for('store_items'), StoreItemHook)


def test_store_item_scenario(events):
    item = resources.create_record('store_items', {'item_name': 'Chalk', 'quantity_in_stock': 8, 'reorder_level': 20})
    assert item['status'] == LOW_STOCK
    # alerts are raised on update only
    assert events == []

    item = resources.update_record('store_items', item['id'], {'quantity_in_stock': 25})
    assert item['status'] == IN_STOCK
    assert events == []

    item = resources.update_record('store_items', item['id'], {'quantity_in_stock': 0})
    assert item['status'] == OUT_OF_STOCK
    assert len(events) == 1
    assert events[0]['title'] == 'Store Alert: OutOfStock'
    assert 'qty: 0' in events[0]['message']
    assert events[0]['message'].startswith('Chalk is OutOfStock')


def test_client_supplied_store_status_is_overwritten(events):
    item = resources.create_record('store_items', {'quantity_in_stock': 500, 'reorder_level': 100, 'status': OUT_OF_STOCK})
    assert item['status'] == IN_STOCK
    item = resources.update_record('store_items', item['id'], {'status': OUT_OF_STOCK})
    assert item['status'] == IN_STOCK
    assert events == []


def test_store_item_numbers_are_coerced(events):
    item = resources.create_record('store_items', {'quantity_in_stock': '12', 'reorder_level': '10'})
    assert item['quantity_in_stock'] == 12
    assert item['status'] == IN_STOCK
    item = resources.update_record('store_items', item['id'], {'reorder_level': '15'})
    assert item['reorder_level'] == 15
    assert item['status'] == LOW_STOCK
    assert events[-1]['message'] == 'Item is LowStock (qty: 12)'


def test_class_teacher_reassignment_is_logged(events, admin):
    cls = resources.create_record('classes', {'class_name': 'Form 1A', 'teacher_id': 'T1'})
    resources.update_record('classes', cls['id'], {'teacher_id': 'T2'}, actor=admin['id'])
    entries = logs()
    assert len(entries) == 1
    entry = entries[0]
    assert entry['action'] == 'assign_class'
    assert entry['from_teacher_id'] == 'T1'
    assert entry['to_teacher_id'] == 'T2'
    assert entry['class_id'] == cls['id']
    assert entry['changed_by'] == admin['id']


def test_class_teacher_cleared_is_an_unassignment(events):
    cls = resources.create_record('classes', {'class_name': 'Form 1A', 'teacher_id': 'T1'})
    resources.update_record('classes', cls['id'], {'teacher_id': None})
    entry = logs()[0]
    assert entry['action'] == 'unassign_class'
    assert entry['to_teacher_id'] is None
    assert entry['changed_by'] == 'system'


def test_class_update_without_teacher_change_logs_nothing(events):
    cls = resources.create_record('classes', {'class_name': 'Form 1A', 'teacher_id': 'T1'})
    resources.update_record('classes', cls['id'], {'capacity': 40})
    resources.update_record('classes', cls['id'], {'teacher_id': 'T1'})
    assert logs() == []


def test_dormitory_update_always_snapshots(events):
    dorm = resources.create_record('dormitories', {'dormitory_name': 'Boys A', 'capacity': 100, 'current_occupancy': 87})
    resources.update_record('dormitories', dorm['id'], {})
    resources.update_record('dormitories', dorm['id'], {'current_occupancy': 88})
    snapshots = get_collection('occupancy_snapshots').find(sort='current_occupancy')
    assert len(snapshots) == 2
    assert [s['current_occupancy'] for s in snapshots] == [87, 88]
    assert all(s['dormitory_id'] == dorm['id'] and s['capacity'] == 100 for s in snapshots)


def test_teacher_confirmation_activates_account(events):
    user = resources.create_record('users', {'email': 't@x.test', 'role': 'teacher', 'email_confirmed': False, 'status': 'pending'})
    user = resources.update_record('users', user['id'], {'email_confirmed': True})
    assert user['status'] == 'active'


def test_confirmation_of_other_roles_leaves_status(events):
    user = resources.create_record('users', {'email': 'b@x.test', 'role': 'burser', 'email_confirmed': False, 'status': 'pending'})
    user = resources.update_record('users', user['id'], {'email_confirmed': True})
    assert user['status'] == 'pending'


def test_already_confirmed_teacher_is_not_reactivated(events):
    user = resources.create_record('users', {'email': 't@x.test', 'role': 'teacher', 'email_confirmed': True, 'status': 'suspended'})
    user = resources.update_record('users', user['id'], {'email_confirmed': True})
    assert user['status'] == 'suspended'


def test_passwords_are_hashed_and_never_returned(events):
    user = resources.create_record('users', {'email': 'p@x.test', 'password': 'secret', 'password_hash': 'forged'})
    assert 'password' not in user and 'password_hash' not in user
    stored = get_collection('users').find_by_id(user['id'])
    assert stored['password_hash'] != 'forged'
    assert check_password('secret', stored['password_hash'])
    assert 'password' not in stored


def test_user_email_is_normalised_and_unique(events):
    user = resources.create_record('users', {'email': '  Head@School.Test ', 'role': 'headteacher'})
    assert user['email'] == 'head@school.test'
    with pytest.raises(ValidationError):
        resources.create_record('users', {'email': 'HEAD@school.test', 'role': 'teacher'})
    assert len(get_collection('users').find({'email': 'head@school.test'})) == 1


def test_user_cannot_take_another_users_email(events):
    first = resources.create_record('users', {'email': 'one@x.test'})
    second = resources.create_record('users', {'email': 'two@x.test'})
    with pytest.raises(ValidationError):
        resources.update_record('users', second['id'], {'email': 'One@x.test'})
    assert get_collection('users').find_by_id(second['id'])['email'] == 'two@x.test'
    # resaving its own address is fine
    assert resources.update_record('users', first['id'], {'email': 'ONE@x.test'})['email'] == 'one@x.test'


def test_student_dormitory_move_scenario(events):
    student = resources.create_record('students', {
        'first_name': 'Peter', 'last_name': 'Mwesigwa', 'dormitory_id': 'D1', 'bed_number': 'A1',
    })
    resources.update_record('students', student['id'], {'dormitory_id': 'D2', 'bed_number': 'B2'})
    entries = logs()
    assert len(entries) == 1
    entry = entries[0]
    assert entry['action'] == 'reassign'
    assert entry['from_dormitory'] == 'D1'
    assert entry['to_dormitory'] == 'D2'
    assert entry['from_bed'] == 'A1'
    assert entry['to_bed'] == 'B2'
    assert entry['student_name'] == 'Peter Mwesigwa'
    assert events == [{
        'title': 'Dormitory Assignment',
        'message': 'Peter Mwesigwa assigned to dormitory D2, bed B2',
    }]


def test_student_bed_change_within_dormitory(events):
    student = resources.create_record('students', {'first_name': 'Amina', 'dormitory': 'D1', 'bed_number': 'A1'})
    resources.update_record('students', student['id'], {'bed_number': 'A2'})
    entry = logs()[0]
    assert entry['action'] == 'bed_change'
    assert entry['from_dormitory'] == entry['to_dormitory'] == 'D1'
    assert len(events) == 1


def test_student_update_without_placement_change_is_silent(events):
    student = resources.create_record('students', {'first_name': 'Amina', 'dormitory_id': 'D1', 'bed_number': 'A1'})
    resources.update_record('students', student['id'], {'phone': '+256700000000'})
    assert logs() == []
    assert events == []


def test_item_request_create_forces_pending(events):
    req = resources.create_record('item_requests', {'item_name': 'Chalk', 'status': 'approved'})
    assert req['status'] == 'pending'


def test_audit_failure_does_not_fail_the_mutation(events, monkeypatch, caplog):
    def broken(self, fields):
        raise RuntimeError('disk full')

    cls = resources.create_record('classes', {'class_name': 'Form 2A', 'teacher_id': 'T1'})
    store = get_collection('assignment_logs')
    monkeypatch.setattr(type(store), 'insert', broken)
    updated = resources.update_record('classes', cls['id'], {'teacher_id': 'T9'})
    assert updated['teacher_id'] == 'T9'
    assert 'could not append assignment_logs entry' in caplog.text
    monkeypatch.undo()
    assert logs() == []


def test_log_action_writes_audit_entry(admin):
    entry = audit.log_action(actor=admin['id'], action='export', object_type='assignment_logs')
    assert entry['action'] == 'export'
    assert get_collection('audit_logs').find({'action': 'export'})[0]['actor'] == admin['id']
