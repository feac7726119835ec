"""
modules/tool_usage/result.py
-----------------------------
Tagged return type for every outbound call.

A tool never raises on provider failure; it returns fallback data and says so:

    Sourced(source="live",     provider="google_places",  data=[...])
    Sourced(source="fallback", provider="mock",           data=[...], error="timeout")

Callers and tests assert on .source instead of scraping logs.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

LIVE = "live"
FALLBACK = "fallback"


@dataclass
class Sourced(Generic[T]):
    data: T
    source: str = LIVE                # "live" | "fallback"
    provider: str = ""                # google_places | google_distance_matrix | travel_advisor | haversine | mock
    error: str = ""                   # why the live call was abandoned, if it was
    cached: bool = False

    @property
    def is_live(self) -> bool:
        return self.source == LIVE

    @property
    def is_fallback(self) -> bool:
        return self.source == FALLBACK

    @classmethod
    def live(cls, data: T, provider: str) -> "Sourced[T]":
        return cls(data=data, source=LIVE, provider=provider)

    @classmethod
    def fallback(cls, data: T, provider: str, error: str = "") -> "Sourced[T]":
        return cls(data=data, source=FALLBACK, provider=provider, error=error)


def failure_text(exc: BaseException, api_key: str = "") -> str:
    """str(exc) with the API key masked (requests errors quote the full URL)."""
    text = str(exc)
    return text.replace(api_key, "***") if api_key else text
