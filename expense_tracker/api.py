# expense_tracker/api.py

import json
import logging
from urllib.parse import urlencode

import requests

from .config import Settings
from .session import MemoryTokenStore

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Unable to connect to the server (Network Error)"


# ---------------- Errors ----------------
class ApiError(Exception):
    def __init__(self, message):
        super().__init__(message)
        self.message = message


class NetworkError(ApiError):
    """The request never got an HTTP response"""

    def __init__(self):
        super().__init__(NETWORK_ERROR_MESSAGE)


class HTTPError(ApiError):
    """Non-2xx response; ``message`` comes from the body when it has one"""

    def __init__(self, message, status, data=None):
        super().__init__(message)
        self.status = status
        self.data = data


# ---------------- Helpers ----------------
def build_query(params):
    """Encode non-empty params; commas stay literal so id lists read ``3,7``"""
    clean = [(k, v) for k, v in (params or {}).items() if v not in (None, "")]
    return urlencode(clean, safe=",")


def parse_body(response):
    """Read the body as text and turn it into a structured value.

    Non-JSON bodies (HTML error pages, plain text from proxies) are wrapped
    as ``{"message": text}`` so callers always get a mapping to inspect.
    """
    text = response.text
    if not text:
        if response.ok:
            return {}
        return {"message": f"Error {response.status_code}: {response.reason or ''}".rstrip()}
    try:
        return json.loads(text)
    except ValueError:
        logger.warning(f"Non-JSON response from server: {text[:200]!r}")
        return {"message": text}


def error_message(data, status):
    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if message:
            return str(message)
    return f"An error occurred ({status})"


# ---------------- Client ----------------
class ApiClient:
    def __init__(self, settings=None, tokens=None, session=None):
        self.settings = settings or Settings.from_env()
        self.tokens = tokens if tokens is not None else MemoryTokenStore()
        self.session = session or requests.Session()

    def url(self, endpoint):
        return self.settings.api_base + endpoint

    def request(self, endpoint, method="GET", json=None, headers=None, params=None):
        all_headers = {"Content-Type": "application/json"}
        all_headers.update(headers or {})
        token = self.tokens.get()
        if token:
            all_headers["Authorization"] = f"Bearer {token}"

        query = build_query(params)
        url = self.url(endpoint) + (f"?{query}" if query else "")
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method, url, headers=all_headers, json=json, timeout=self.settings.timeout
            )
        except requests.RequestException as e:
            logger.warning(f"{method} {endpoint} failed before a response: {e}")
            raise NetworkError() from e

        if response.status_code == 204:
            return None

        data = parse_body(response)
        if not response.ok:
            message = error_message(data, response.status_code)
            logger.warning(f"{method} {endpoint} -> {response.status_code}: {message}")
            raise HTTPError(message, response.status_code, data)
        return data

    # ---------------- Auth ----------------
    def login(self, username, password):
        data = self.request("/auth/signin", method="POST", json={"username": username, "password": password})
        if isinstance(data, dict) and data.get("token"):
            self.tokens.set(data["token"])
            logger.info(f"Logged in as {username}")
        return data

    def register(self, username, password, name):
        return self.request(
            "/auth/register", method="POST", json={"username": username, "password": password, "name": name}
        )

    def logout(self):
        self.tokens.remove()

    def is_authenticated(self):
        return self.tokens.is_authenticated()

    # ---------------- Categories ----------------
    def get_categories(self):
        """Category list; errors degrade to an empty list so pickers still render"""
        try:
            return self.request("/api/transactions/category")
        except ApiError as e:
            logger.error(f"Failed to fetch categories: {e.message}")
            return {"data": []}

    # ---------------- Transactions ----------------
    def get_transactions(self, params=None):
        return self.request("/api/transactions", params=params)

    def create_transaction(self, body):
        return self.request("/api/transactions", method="POST", json=body)

    def update_transaction(self, tx_id, body):
        return self.request(f"/api/transactions/{tx_id}", method="PUT", json=body)

    def delete_transaction(self, tx_id):
        return self.request(f"/api/transactions/{tx_id}", method="DELETE")

    # ---------------- Dashboard ----------------
    def get_dashboard(self, params=None):
        return self.request("/api/dashboard", params=params)
