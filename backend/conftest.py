"""
Shared pytest setup.

Environment is pinned before config.py is imported so a developer's .env
can never switch the suite onto live providers or the Redis backend.
"""
from __future__ import annotations

import os

os.environ["GOOGLE_MAPS_API_KEY"] = ""
os.environ["GOOGLE_PLACES_API_KEY"] = ""
os.environ["RAPIDAPI_KEY"] = ""
os.environ["CACHE_BACKEND"] = "in_memory"
os.environ["PERF_LOG_ENABLED"] = "false"
os.environ["USE_STUB_ATTRACTIONS"] = "false"
os.environ["USE_STUB_HOTELS"] = "false"
os.environ.setdefault("APP_ENV", "test")

from typing import Callable  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
import requests  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def json_response(payload: dict, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    else:
        resp.raise_for_status.return_value = None
    return resp


def routed_session(routes: dict[str, Callable[[dict], MagicMock] | MagicMock | Exception]) -> MagicMock:
    """
    requests.Session stand-in that answers by URL substring.

    A route value may be a response, an exception to raise, or a callable
    taking the request params and returning a response.
    """
    session = MagicMock(spec=requests.Session)

    def _get(url, params=None, **kwargs):
        for fragment, answer in routes.items():
            if fragment in url:
                if isinstance(answer, Exception):
                    raise answer
                if callable(answer) and not isinstance(answer, MagicMock):
                    return answer(params or {})
                return answer
        raise AssertionError(f"unexpected GET {url}")

    session.get.side_effect = _get
    return session


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
