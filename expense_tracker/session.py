# expense_tracker/session.py
"""Session token stores.

Every store keeps a single opaque bearer token under the key ``token``.
Reads never fail: a store that cannot reach its backing storage behaves as
if no one is logged in.
"""

import json
import logging
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
COOKIE_NAME = "expense_tracker_token"
COOKIE_MAX_AGE = 30 * 24 * 60 * 60
PENDING_COOKIE_KEY = "_token_cookie_op"


class TokenStore:
    def get(self):
        raise NotImplementedError

    def set(self, token):
        raise NotImplementedError

    def remove(self):
        raise NotImplementedError

    def is_authenticated(self):
        return bool(self.get())


class MemoryTokenStore(TokenStore):
    def __init__(self, token=None):
        self._token = token

    def get(self):
        return self._token

    def set(self, token):
        self._token = token

    def remove(self):
        self._token = None


def _in_streamlit_run():
    try:
        from streamlit.runtime.scriptrunner import get_script_run_ctx
    except ImportError:
        return False
    return get_script_run_ctx() is not None


def _request_cookies():
    import streamlit as st
    return st.context.cookies


def _write_cookie(value, max_age):
    import streamlit.components.v1 as components
    cookie = f"{COOKIE_NAME}={quote(value)}; path=/; max-age={max_age}; SameSite=Strict"
    components.html(f"<script>window.parent.document.cookie = {json.dumps(cookie)};</script>", height=0)


class StreamlitTokenStore(TokenStore):
    """Keeps the token in ``st.session_state``, backed by a browser cookie.

    A fresh browser session starts from the cookie sent with the page
    request, so a reload stays logged in. Cookie writes are queued and only
    reach the browser in ``sync_cookie``, which the page calls once at the
    end of a full script run; a write rendered right before ``st.rerun()``
    would be discarded.

    Outside a Streamlit script run (tests, plain imports) there is no
    session state, so reads return None and writes are ignored.
    """

    def __init__(self, state=None):
        self._override = state

    def _state(self):
        if self._override is not None:
            return self._override
        if not _in_streamlit_run():
            return None
        import streamlit as st
        return st.session_state

    def get(self):
        state = self._state()
        if state is None:
            return None
        if TOKEN_KEY not in state:
            raw = _request_cookies().get(COOKIE_NAME)
            state[TOKEN_KEY] = unquote(raw) if raw else None
        return state[TOKEN_KEY]

    def set(self, token):
        state = self._state()
        if state is not None:
            state[TOKEN_KEY] = token
            state[PENDING_COOKIE_KEY] = token

    def remove(self):
        state = self._state()
        if state is not None:
            # None rather than a missing key, so the stale request cookie is not re-read
            state[TOKEN_KEY] = None
            state[PENDING_COOKIE_KEY] = ""

    def sync_cookie(self):
        """Flush the queued cookie write, if any, to the browser"""
        state = self._state()
        if state is None or PENDING_COOKIE_KEY not in state:
            return
        token = state.pop(PENDING_COOKIE_KEY)
        if token:
            _write_cookie(token, COOKIE_MAX_AGE)
        else:
            logger.info("Clearing session cookie")
            _write_cookie("", 0)
