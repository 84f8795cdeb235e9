"""Shared fixtures: an ApiClient wired to a scripted fake session."""

import json as json_module

import pytest
import requests

from expense_tracker.api import ApiClient
from expense_tracker.config import Settings
from expense_tracker.notify import Notifier
from expense_tracker.session import MemoryTokenStore


def make_response(status=200, body=None, text=None, reason="OK"):
    """Build a real requests.Response with the given status and body."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    if text is None:
        text = "" if body is None else json_module.dumps(body)
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    return response


class FakeSession:
    """Records every call and replays queued responses or exceptions."""

    def __init__(self):
        self.calls = []
        self.queue = []

    def reply(self, *args, **kwargs):
        self.queue.append(make_response(*args, **kwargs))

    def fail(self, exc):
        self.queue.append(exc)

    def request(self, method, url, headers=None, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "json": json, "timeout": timeout})
        if not self.queue:
            raise AssertionError(f"Unexpected request: {method} {url}")
        item = self.queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def tokens():
    return MemoryTokenStore()


@pytest.fixture
def client(session, tokens):
    return ApiClient(Settings(api_base="http://api.test"), tokens, session)


@pytest.fixture
def notifier():
    return Notifier()
