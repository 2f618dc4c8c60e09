"""Bookstore REST API client (orders, drafts, lists, catalog)."""
import time

import requests
from typing import Dict, Any, List, Optional
from flask import current_app

from bookstore.exceptions import RemoteServiceError
from bookstore.blueprints.metrics import record_api_call


def _server_message(response: Optional[requests.Response]) -> Optional[str]:
    """Plain-text error body sent by the API, if any."""
    if response is None:
        return None
    try:
        data = response.json()
    except ValueError:
        text = (response.text or '').strip()
        return text or None
    if isinstance(data, str) and data.strip():
        return data.strip()
    if isinstance(data, dict) and isinstance(data.get('message'), str) and data['message'].strip():
        return data['message'].strip()
    return None


def _decode(response: requests.Response) -> Any:
    if response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class BookstoreApiClient:
    """Cliente para la API REST de la librería escolar."""

    TEMP_ORDERS = '/api/temp-orders'
    CUSTOMER_ORDERS = '/api/customer-orders'
    LISTS = '/api/lists'
    BOOKS = '/api/books'
    SCHOOLS = '/api/schools'
    CLASSES = '/api/classes'
    PROFILE = '/api/profile'

    def __init__(self, access_token: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: Optional[float] = None):
        """
        Initialize the API client.

        Args:
            access_token: bearer token of the current user (sent when present)
            base_url: API base URL. If None, reads BOOKSTORE_API_BASE from config
            timeout: request timeout in seconds. If None, reads API_TIMEOUT
        """
        self.base_url = (base_url or current_app.config.get('BOOKSTORE_API_BASE') or '').rstrip('/')
        if not self.base_url:
            raise ValueError("BOOKSTORE_API_BASE is required")

        self.timeout = timeout or current_app.config.get('API_TIMEOUT', 10)
        self.headers = {'Content-Type': 'application/json'}
        if access_token:
            self.headers['Authorization'] = f'Bearer {access_token}'

    def _request(self, method: str, path: str, operation: str, fallback_message: str,
                 params: Optional[Dict[str, Any]] = None, json: Any = None) -> Any:
        """
        Send one request. No retries: failures surface to the caller.

        Raises:
            RemoteServiceError: on HTTP error status or connection failure
        """
        url = f"{self.base_url}{path}"
        current_app.logger.info(f"[API] {method} {path} ({operation})")
        started = time.perf_counter()

        try:
            response = requests.request(
                method, url, params=params, json=json, headers=self.headers, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            body = e.response.text if e.response is not None else ''
            current_app.logger.error(f"[API] {operation} failed with status {status}: {body[:500]}")
            record_api_call(operation, 'error', started)
            raise RemoteServiceError(
                fallback_message,
                remote_status=status,
                operation=operation,
                server_message=_server_message(e.response),
            ) from e
        except requests.RequestException as e:
            current_app.logger.error(f"[API] Could not reach bookstore API for {operation}: {e}")
            record_api_call(operation, 'unreachable', started)
            raise RemoteServiceError(fallback_message, operation=operation) from e

        record_api_call(operation, 'ok', started)
        return _decode(response)

    # ===== TEMP ORDERS (drafts) =====

    def get_my_draft(self) -> Dict[str, Any]:
        """Current user's active draft (created by the API on demand)."""
        return self._request('GET', f"{self.TEMP_ORDERS}/me", 'get_my_draft',
                             'Failed to load your draft') or {}

    def add_items(self, items: List[Dict[str, Any]]) -> Any:
        """Add items to the current user's draft."""
        return self._request('POST', f"{self.TEMP_ORDERS}/items", 'add_items',
                             'Error submitting draft order.', json=items)

    def add_items_to(self, temp_order_id: Any, items: List[Dict[str, Any]]) -> Any:
        """Add items to a specific draft (may already be SUBMITTED)."""
        return self._request('POST', f"{self.TEMP_ORDERS}/{temp_order_id}/items", 'add_items_to',
                             'Error adding items to draft.', json=items)

    def update_item(self, item_id: Any, patch: Dict[str, Any]) -> Any:
        return self._request('PUT', f"{self.TEMP_ORDERS}/items/{item_id}", 'update_item',
                             'Update failed', json=patch)

    def remove_item(self, item_id: Any) -> Any:
        return self._request('DELETE', f"{self.TEMP_ORDERS}/items/{item_id}", 'remove_item',
                             'Failed to remove item')

    def cancel(self, temp_order_id: Any) -> Any:
        """Cancel and delete a draft."""
        return self._request('DELETE', f"{self.TEMP_ORDERS}/{temp_order_id}", 'cancel_draft',
                             'Failed to delete draft')

    def submit(self, temp_order_id: Any) -> Any:
        return self._request('POST', f"{self.TEMP_ORDERS}/{temp_order_id}/submit", 'submit_draft',
                             'Error submitting draft order.')

    def list_submitted(self) -> List[Dict[str, Any]]:
        """Submitted drafts awaiting approval (admin only)."""
        data = self._request('GET', self.TEMP_ORDERS, 'list_submitted',
                             'Failed to load submitted drafts.')
        return data if isinstance(data, list) else []

    def approve(self, temp_order_id: Any) -> Any:
        """Approve a submitted draft (admin only)."""
        return self._request('POST', f"{self.TEMP_ORDERS}/{temp_order_id}/approve", 'approve_draft',
                             'Approval failed.')

    def list_my_drafts(self) -> List[Dict[str, Any]]:
        """All drafts of the current user, including approved history."""
        data = self._request('GET', f"{self.TEMP_ORDERS}/me/list", 'list_my_drafts',
                             'Failed to load your orders')
        return data if isinstance(data, list) else []

    def get_draft(self, temp_order_id: Any) -> Dict[str, Any]:
        """Draft detail (admin only)."""
        return self._request('GET', f"{self.TEMP_ORDERS}/{temp_order_id}", 'get_draft',
                             'Failed to load draft details.') or {}

    # ===== CUSTOMER ORDERS =====

    def get_official_list(self, class_id: Any, year: Any, school_id: Any = None) -> Any:
        """Official book list for a class and academic year."""
        params = {'classId': int(class_id), 'year': int(year)}
        if school_id is not None:
            params['schoolId'] = int(school_id)
        return self._request('GET', self.LISTS, 'get_official_list',
                             'No official list found for this class/year.', params=params)

    def create_order(self, order: Dict[str, Any]) -> Any:
        return self._request('POST', f"{self.CUSTOMER_ORDERS}/generate-personalized-order",
                             'create_order', 'Error creating order.', json=order)

    def get_all_orders(self) -> List[Dict[str, Any]]:
        data = self._request('GET', self.CUSTOMER_ORDERS, 'get_all_orders', 'Failed to fetch orders.')
        return data if isinstance(data, list) else []

    def get_order(self, order_id: Any) -> Dict[str, Any]:
        return self._request('GET', f"{self.CUSTOMER_ORDERS}/{order_id}", 'get_order',
                             'Failed to load order.') or {}

    def get_orders_by_customer(self, customer_id: Any) -> List[Dict[str, Any]]:
        data = self._request('GET', f"{self.CUSTOMER_ORDERS}/by-customer/{customer_id}",
                             'get_orders_by_customer', 'Failed to load your orders')
        return data if isinstance(data, list) else []

    def update_order(self, order_id: Any, data: Dict[str, Any]) -> Any:
        return self._request('PUT', f"{self.CUSTOMER_ORDERS}/{order_id}", 'update_order',
                             'Failed to update order.', json=data)

    def delete_order(self, order_id: Any) -> Any:
        return self._request('DELETE', f"{self.CUSTOMER_ORDERS}/{order_id}", 'delete_order',
                             'Failed to delete order.')

    # ===== LISTS / CATALOG =====

    def get_lists(self) -> Any:
        return self._request('GET', self.LISTS, 'get_lists', 'Failed to load book lists.')

    def get_list_books(self, list_id: Any) -> List[Dict[str, Any]]:
        data = self._request('GET', f"{self.LISTS}/{list_id}/books", 'get_list_books',
                             'Failed to load list books.')
        return data if isinstance(data, list) else []

    def get_books(self) -> Any:
        return self._request('GET', self.BOOKS, 'get_books', 'Failed to load books.')

    def search_books(self, query: str) -> Any:
        return self._request('GET', self.BOOKS, 'search_books', 'Failed to search books.',
                             params={'query': query})

    def get_schools(self) -> Any:
        return self._request('GET', self.SCHOOLS, 'get_schools', 'Failed to load schools.')

    def search_schools(self, name: str) -> Any:
        return self._request('GET', self.SCHOOLS, 'search_schools', 'Failed to search schools.',
                             params={'name': name})

    def get_classes_by_school(self, school_id: Any) -> Any:
        return self._request('GET', f"{self.CLASSES}/by-school/{school_id}", 'get_classes_by_school',
                             'Failed to load classes.')

    def get_me(self) -> Dict[str, Any]:
        """Profile of the authenticated user."""
        return self._request('GET', f"{self.PROFILE}/me", 'get_me', 'Failed to load your profile') or {}

    def ping(self) -> bool:
        """True when the API answers at all (any HTTP status)."""
        try:
            requests.get(self.base_url, timeout=self.timeout)
            return True
        except requests.RequestException as e:
            current_app.logger.warning(f"[API] Ping failed: {e}")
            return False
