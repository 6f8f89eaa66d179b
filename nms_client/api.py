"""
HTTP access to the NMS backend.

``ApiClient.request`` is the single entry point: bearer auth, JSON bodies,
30 second timeout and user-facing error messages raised as ``ApiError``.
"""
import logging
import time
from datetime import datetime, timezone

import requests

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    503: 'Service temporarily unavailable. Please try again later.',
    502: 'Bad gateway. The server is not responding properly.',
    504: 'Gateway timeout. The request took too long to complete.',
    429: 'Too many requests. Please wait a moment and try again.',
    401: 'Authentication required. Please log in again.',
    403: "Access denied. You don't have permission to perform this action.",
    404: 'Resource not found.',
}
SERVER_ERROR_MESSAGE = 'Server error. Please try again later.'


class ApiError(Exception):
    """Failed API call. ``status_code`` is None when the server could not be reached."""

    def __init__(self, status_code, message, payload=None, is_network_error=False):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload
        self.is_network_error = is_network_error

    @property
    def is_retryable(self):
        return self.is_network_error or self.status_code in (429, 502, 503, 504) or (
            self.status_code is not None and self.status_code >= 500
        )


def error_message(status_code, payload):
    if status_code in STATUS_MESSAGES:
        return STATUS_MESSAGES[status_code]
    if status_code >= 500:
        return SERVER_ERROR_MESSAGE
    if isinstance(payload, dict):
        for key in ('error', 'detail', 'message'):
            if payload.get(key):
                return str(payload[key])
    return f'HTTP error! status: {status_code}'


class ApiClient:
    def __init__(self, base_url, token=None, timeout=30, session=None):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        return cls(config.api_base_url, token=config.api_token, timeout=config.request_timeout)

    def _url(self, endpoint):
        if endpoint.startswith(('http://', 'https://')):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _headers(self, json_body=True):
        headers = {'Accept': 'application/json'}
        if json_body:
            headers['Content-Type'] = 'application/json'
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    def request(self, method, endpoint, json=None, params=None, files=None, data=None):
        """
        Send a request and return the decoded JSON body (None for 204).

        Raises:
            ApiError: on HTTP errors, timeouts and connection failures
        """
        url = self._url(endpoint)
        try:
            response = self.session.request(
                method, url,
                json=json, params=params, files=files, data=data,
                headers=self._headers(json_body=files is None),
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.warning(f"Request timeout for {endpoint}")
            raise ApiError(None, f'Request timeout for {endpoint}', is_network_error=True)
        except requests.ConnectionError as e:
            logger.warning(f"Network error for {method} {endpoint}: {str(e)}")
            raise ApiError(None, 'Network error. Please check your connection.', is_network_error=True)

        if response.status_code == 204:
            return None

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.ok:
            message = error_message(response.status_code, payload)
            logger.error(f"API error {response.status_code} for {method} {endpoint}: {message}")
            raise ApiError(response.status_code, message, payload=payload)
        return payload

    def get(self, endpoint, params=None):
        return self.request('GET', endpoint, params=params)

    def post(self, endpoint, json=None):
        return self.request('POST', endpoint, json=json)

    def put(self, endpoint, json=None):
        return self.request('PUT', endpoint, json=json)

    def patch(self, endpoint, json=None):
        return self.request('PATCH', endpoint, json=json)

    def delete(self, endpoint):
        return self.request('DELETE', endpoint)

    def upload_file(self, endpoint, field_name, filename, content, content_type, data=None):
        files = {field_name: (filename, content, content_type)}
        return self.request('POST', endpoint, files=files, data=data)

    def check_health(self):
        """Call ``/health/`` and report reachability and latency"""
        started = time.monotonic()
        try:
            payload = self.get('health/')
            healthy = bool(payload) and payload.get('status') == 'ok'
            status = payload.get('status', 'unknown') if payload else 'unknown'
        except ApiError as e:
            healthy = False
            status = 'offline' if e.is_network_error else f'error {e.status_code}'
        return {
            'is_healthy': healthy,
            'status': status,
            'response_time': round((time.monotonic() - started) * 1000),
            'last_checked': datetime.now(timezone.utc).isoformat(),
        }

    def get_current_user(self):
        """Profile of the authenticated user, including permissions and access scope"""
        return self.get('users/me/')

    def sync_batch(self, operations):
        return self.post('sync/batch/', json={'operations': operations})
