"""Shared fixtures: a stubbed provider and canned analysis payloads."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from strategy_lab.config import Settings
from strategy_lab.provider import StructuredResponse


def make_payload(volume=1000, competition="Low", trend_value=None, points=7):
    value = volume if trend_value is None else trend_value
    return {
        "volume": volume,
        "competition": competition,
        "analysis": "Steady commercial demand with moderate seasonality.",
        "trend": [{"date": f"Day {i + 1}", "value": value + (i % 3) * 10} for i in range(points)],
    }


@pytest.fixture
def settings():
    return Settings(api_key="test-key")


@pytest.fixture
def provider():
    stub = MagicMock()
    stub.generate_structured = AsyncMock(
        return_value=StructuredResponse(raw_json_text=json.dumps(make_payload()), citations=[])
    )
    stub.generate_text = AsyncMock(return_value="1. Target long-tail phrases")
    stub.edit_image = AsyncMock(return_value=None)
    return stub
