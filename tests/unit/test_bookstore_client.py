"""
Unit tests for the bookstore REST client (HTTP layer mocked).
"""

import pytest
import requests
from prometheus_client import REGISTRY

from bookstore.exceptions import RemoteServiceError
from bookstore.services.bookstore_client import BookstoreApiClient


def _response(mocker, status=200, json_data=None, text=''):
    response = mocker.MagicMock()
    response.status_code = status
    response.text = text
    response.content = text.encode() if text else (b'{}' if json_data is not None else b'')
    if json_data is not None:
        response.json.return_value = json_data
    else:
        response.json.side_effect = ValueError('no json')
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
    return response


class TestBookstoreApiClient:

    def test_sends_bearer_token(self, app_context, mocker):
        request = mocker.patch('bookstore.services.bookstore_client.requests.request',
                               return_value=_response(mocker, json_data=[{'id': 1}]))

        drafts = BookstoreApiClient(access_token='abc').list_my_drafts()

        assert drafts == [{'id': 1}]
        args, kwargs = request.call_args
        assert args == ('GET', 'http://bookstore.test/api/temp-orders/me/list')
        assert kwargs['headers']['Authorization'] == 'Bearer abc'

    def test_no_token_no_header(self, app_context):
        assert 'Authorization' not in BookstoreApiClient().headers

    def test_official_list_params(self, app_context, mocker):
        request = mocker.patch('bookstore.services.bookstore_client.requests.request',
                               return_value=_response(mocker, json_data={'id': 3}))

        BookstoreApiClient().get_official_list('4', '2025')

        assert request.call_args[1]['params'] == {'classId': 4, 'year': 2025}

    def test_empty_body_decodes_to_none(self, app_context, mocker):
        mocker.patch('bookstore.services.bookstore_client.requests.request',
                     return_value=_response(mocker, status=204))

        assert BookstoreApiClient().cancel(5) is None

    def test_http_error_carries_plain_text_message(self, app_context, mocker):
        mocker.patch('bookstore.services.bookstore_client.requests.request',
                     return_value=_response(mocker, status=409, text='Book already in draft'))

        with pytest.raises(RemoteServiceError) as exc:
            BookstoreApiClient().add_items_to(3, [])

        assert exc.value.remote_status == 409
        assert exc.value.status_code == 409
        assert exc.value.server_message == 'Book already in draft'
        assert exc.value.message == 'Book already in draft'
        assert exc.value.operation == 'add_items_to'

    def test_http_error_without_message_uses_fallback(self, app_context, mocker):
        mocker.patch('bookstore.services.bookstore_client.requests.request',
                     return_value=_response(mocker, status=500, json_data={'error': 'x'}))

        with pytest.raises(RemoteServiceError) as exc:
            BookstoreApiClient().approve(3)

        assert exc.value.message == 'Approval failed.'
        assert exc.value.status_code == 502

    def test_connection_error(self, app_context, mocker):
        mocker.patch('bookstore.services.bookstore_client.requests.request',
                     side_effect=requests.ConnectionError('refused'))

        with pytest.raises(RemoteServiceError) as exc:
            BookstoreApiClient().get_me()

        assert exc.value.remote_status is None
        assert exc.value.status_code == 502

    def test_ping(self, app_context, mocker):
        mocker.patch('bookstore.services.bookstore_client.requests.get',
                     side_effect=requests.ConnectionError('refused'))
        assert BookstoreApiClient().ping() is False

    def test_base_url_required(self, app_context):
        app_context.config['BOOKSTORE_API_BASE'] = ''
        with pytest.raises(ValueError):
            BookstoreApiClient()

    def test_calls_are_counted_per_operation(self, app_context, mocker):
        mocker.patch('bookstore.services.bookstore_client.requests.request',
                     return_value=_response(mocker, status=403, text='Forbidden'))
        before = REGISTRY.get_sample_value('bookstore_api_requests_total',
                                           {'operation': 'approve_draft', 'outcome': 'error'}) or 0

        with pytest.raises(RemoteServiceError):
            BookstoreApiClient().approve(3)

        assert REGISTRY.get_sample_value('bookstore_api_requests_total',
                                         {'operation': 'approve_draft', 'outcome': 'error'}) == before + 1
