import json
from decimal import Decimal

import pytest
import requests
from asgiref.sync import async_to_sync

from shared.infrastructure.remote_store import (
    InMemoryRemoteStore,
    RemoteStoreError,
    RestRemoteStore,
    build_remote_store,
)


def make_response(status_code, body=None):
    response = requests.models.Response()
    response.status_code = status_code
    response._content = json.dumps(body).encode() if body is not None else b''
    return response


def make_raw_response(status_code, content):
    response = requests.models.Response()
    response.status_code = status_code
    response._content = content
    return response


class RecordedCalls(list):
    """Outgoing requests, plus the queue of responses to replay"""

    def __init__(self):
        super().__init__()
        self.responses = []


@pytest.fixture
def http_calls(monkeypatch):
    calls = RecordedCalls()

    def fake_request(self, method, url, **kwargs):
        calls.append({'method': method, 'url': url, **kwargs})
        return calls.responses.pop(0)

    monkeypatch.setattr(requests.Session, 'request', fake_request)
    return calls


@pytest.fixture
def rest_store():
    return RestRemoteStore('https://backend.example.com/', 'anon-key')


def test_sign_up_stores_session(rest_store, http_calls):
    http_calls.responses.append(make_response(200, {
        'access_token': 'jwt-token',
        'user': {'id': 'user-1', 'email': 'ana@example.com'},
    }))

    user = async_to_sync(rest_store.auth.sign_up)('ana@example.com', 'Secret123', 'Ana', 'Lima')
    session = async_to_sync(rest_store.auth.get_session)()

    assert user.id == 'user-1'
    assert session.access_token == 'jwt-token'
    assert http_calls[0]['url'] == 'https://backend.example.com/auth/v1/signup'
    assert http_calls[0]['json']['data'] == {'first_name': 'Ana', 'last_name': 'Lima'}
    assert http_calls[0]['headers']['Authorization'] == 'Bearer anon-key'


def test_duplicate_sign_up_is_detected(rest_store, http_calls):
    http_calls.responses.append(make_response(422, {
        'error_code': 'user_already_exists',
        'msg': 'User already registered',
    }))

    with pytest.raises(RemoteStoreError) as exc_info:
        async_to_sync(rest_store.auth.sign_up)('ana@example.com', 'Secret123')

    assert exc_info.value.status == 422
    assert exc_info.value.is_duplicate_user


def test_sign_in_uses_password_grant(rest_store, http_calls):
    http_calls.responses.append(make_response(200, {
        'access_token': 'jwt-token',
        'user': {'id': 'user-1', 'email': 'ana@example.com'},
    }))

    session = async_to_sync(rest_store.auth.sign_in)('ana@example.com', 'Secret123')

    assert session.user.id == 'user-1'
    assert http_calls[0]['params'] == {'grant_type': 'password'}


def test_insert_serializes_decimals_with_user_token(rest_store, http_calls):
    http_calls.responses.append(make_response(200, {
        'access_token': 'jwt-token',
        'user': {'id': 'user-1', 'email': 'ana@example.com'},
    }))
    http_calls.responses.append(make_response(201, [{'id': 'booking-1', 'total_amount': '520.00'}]))
    async_to_sync(rest_store.auth.sign_in)('ana@example.com', 'Secret123')

    row = async_to_sync(rest_store.table('bookings').insert)({'total_amount': Decimal('520.00')})

    insert_call = http_calls[1]
    assert row['id'] == 'booking-1'
    assert insert_call['url'] == 'https://backend.example.com/rest/v1/bookings'
    assert json.loads(insert_call['data']) == {'total_amount': '520.00'}
    assert insert_call['headers']['Authorization'] == 'Bearer jwt-token'
    assert insert_call['headers']['Prefer'] == 'return=representation'


def test_select_builds_query(rest_store, http_calls):
    http_calls.responses.append(make_response(200, [{'id': 'pm-1'}]))

    rows = async_to_sync(rest_store.table('payment_methods').select)(
        {'user_id': 'user-1'}, order_by='created_at', descending=True, limit=5
    )

    assert rows == [{'id': 'pm-1'}]
    assert http_calls[0]['params'] == {
        'user_id': 'eq.user-1',
        'select': '*',
        'order': 'created_at.desc',
        'limit': 5,
    }


def test_network_failure_is_wrapped(rest_store, monkeypatch):
    def fail(self, method, url, **kwargs):
        raise requests.ConnectionError('connection refused')

    monkeypatch.setattr(requests.Session, 'request', fail)

    with pytest.raises(RemoteStoreError, match='connection refused'):
        async_to_sync(rest_store.table('bookings').select)()


def test_unknown_table_is_rejected(rest_store):
    with pytest.raises(ValueError):
        rest_store.table('users')


def test_in_memory_auth(remote_store):
    user = async_to_sync(remote_store.auth.sign_up)('ana@example.com', 'Secret123')

    assert async_to_sync(remote_store.auth.get_session)().user == user
    with pytest.raises(RemoteStoreError) as exc_info:
        async_to_sync(remote_store.auth.sign_up)('ana@example.com', 'Other123')
    assert exc_info.value.is_duplicate_user

    with pytest.raises(RemoteStoreError):
        async_to_sync(remote_store.auth.sign_in)('ana@example.com', 'wrong')
    assert async_to_sync(remote_store.auth.sign_in)('ana@example.com', 'Secret123').user.id == user.id


def test_in_memory_tables(remote_store):
    table = remote_store.table('wallet_transactions')
    for amount, created in (('10', 'b'), ('20', 'a'), ('30', None)):
        async_to_sync(table.insert)({'user_id': 'user-1', 'amount': amount, 'created_at': created})
    async_to_sync(table.insert)({'user_id': 'user-2', 'amount': '99', 'created_at': 'c'})

    rows = async_to_sync(table.select)({'user_id': 'user-1'}, order_by='created_at')
    assert [row['amount'] for row in rows] == ['20', '10', '30']

    updated = async_to_sync(table.update)({'status': 'completed'}, {'user_id': 'user-2'})
    assert [row['amount'] for row in updated] == ['99']
    assert async_to_sync(table.select)({'status': 'completed'}, limit=1)[0]['user_id'] == 'user-2'


def test_build_remote_store_defaults_to_memory(settings):
    settings.REMOTE_STORE_URL = ''
    assert isinstance(build_remote_store(), InMemoryRemoteStore)

    settings.REMOTE_STORE_URL = 'https://backend.example.com'
    assert isinstance(build_remote_store(), RestRemoteStore)


def test_non_json_success_body_is_a_remote_error(rest_store, http_calls):
    http_calls.responses.append(make_raw_response(200, b'<html>Gateway login</html>'))

    with pytest.raises(RemoteStoreError) as exc_info:
        async_to_sync(rest_store.table('bookings').insert)({'guests': 2})

    assert exc_info.value.status == 200


def test_error_body_that_is_not_an_object(rest_store, http_calls):
    http_calls.responses.append(make_response(500, ['upstream', 'failure']))

    with pytest.raises(RemoteStoreError) as exc_info:
        async_to_sync(rest_store.table('bookings').select)()

    assert exc_info.value.status == 500
    assert not exc_info.value.is_duplicate_user


def test_non_json_error_body_uses_text(rest_store, http_calls):
    http_calls.responses.append(make_raw_response(502, b'Bad Gateway'))

    with pytest.raises(RemoteStoreError, match='Bad Gateway'):
        async_to_sync(rest_store.auth.sign_in)('ana@example.com', 'Secret123')


@pytest.mark.parametrize("body", [['not', 'an', 'object'], 'just a string'])
def test_sign_up_with_unexpected_body(rest_store, http_calls, body):
    http_calls.responses.append(make_response(200, body))

    with pytest.raises(RemoteStoreError):
        async_to_sync(rest_store.auth.sign_up)('ana@example.com', 'Secret123')


def test_select_with_object_body_is_rejected(rest_store, http_calls):
    http_calls.responses.append(make_response(200, {'id': 'booking-1'}))

    with pytest.raises(RemoteStoreError):
        async_to_sync(rest_store.table('bookings').select)()
