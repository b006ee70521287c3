import pytest
from rest_framework.exceptions import NotFound, ValidationError

from core.models import Document
from core.services.registry import APPEND_ONLY, COLLECTIONS, get_collection
from core.services.store import DocumentStore, exact_match, order_by

pytestmark = pytest.mark.django_db


def test_registry_hands_out_one_handle_per_collection():
    first = get_collection('students')
    assert get_collection('students') is first
    assert isinstance(first, DocumentStore)
    assert len(COLLECTIONS) == 14
    assert APPEND_ONLY <= set(COLLECTIONS)


def test_unknown_collection_is_not_found():
    with pytest.raises(NotFound):
        get_collection('spaceships')


def test_insert_assigns_id_and_timestamps_and_drops_reserved_keys():
    store = get_collection('teachers')
    rec = store.insert({'first_name': 'Ann', 'id': 'forged', '_id': 'forged', 'createdAt': '1999'})
    assert rec['id'] != 'forged'
    assert rec['_id'] == rec['id']
    assert rec['first_name'] == 'Ann'
    assert rec['created_at'] and rec['updated_at']
    assert 'createdAt' not in rec
    doc = Document.objects.get(pk=rec['id'])
    assert doc.collection == 'teachers'
    assert doc.fields == {'first_name': 'Ann'}


def test_non_object_payload_is_rejected():
    with pytest.raises(ValidationError):
        get_collection('teachers').insert(['not', 'an', 'object'])


def test_find_filters_exactly_and_loosely():
    store = get_collection('marks')
    store.insert({'subject': 'Maths', 'score': 5, 'final': True})
    store.insert({'subject': 'maths', 'score': 7, 'final': False})

    assert [r['score'] for r in store.find({'subject': 'Maths'})] == [5]
    # query strings arrive as text; loose matching finds the JSON scalar
    assert [r['score'] for r in store.find({'score': '5'}, loose=True)] == [5]
    assert [r['score'] for r in store.find({'final': 'true'}, loose=True)] == [5]
    assert store.find({'score': '5'}) == []


def test_find_sorts_and_limits():
    store = get_collection('fees')
    for amount in (300, 100, 200):
        store.insert({'amount': amount})
    assert [r['amount'] for r in store.find(sort='amount')] == [100, 200, 300]
    assert [r['amount'] for r in store.find(sort='-amount', limit=2)] == [300, 200]


def test_find_is_scoped_to_its_collection():
    get_collection('rooms').insert({'name': 'R1'})
    get_collection('classes').insert({'name': 'R1'})
    assert len(get_collection('rooms').find({'name': 'R1'})) == 1


def test_update_merges_and_missing_record_returns_none():
    store = get_collection('students')
    rec = store.insert({'first_name': 'Ann', 'last_name': 'Lee'})
    updated = store.update_by_id(rec['id'], {'last_name': 'Ng', 'id': 'other'})
    assert updated['id'] == rec['id']
    assert updated['first_name'] == 'Ann'
    assert updated['last_name'] == 'Ng'
    assert store.update_by_id('0' * 32, {'x': 1}) is None


def test_delete_is_idempotent():
    store = get_collection('students')
    rec = store.insert({'first_name': 'Ann'})
    assert store.delete_by_id(rec['id']) == 1
    assert store.delete_by_id(rec['id']) == 0
    assert store.find_by_id(rec['id']) is None


def test_bulk_insert_returns_every_record():
    rows = get_collection('attendance').bulk_insert([{'status': 'present'}, {'status': 'late'}])
    assert len(rows) == 2
    assert len({r['id'] for r in rows}) == 2


def test_filter_keys_with_lookups_are_ignored():
    assert exact_match({'name__icontains': 'a'}) == exact_match({})


def test_order_by_translates_aliases_and_direction():
    assert order_by('-createdAt') == ['-created_at']
    assert order_by('last_name, -score') == ['fields__last_name', '-fields__score']
    assert order_by(None) == ['-created_at']
