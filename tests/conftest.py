"""Shared fixtures."""
import copy

import pytest

from roamwarrior.models.session import session_store


class FakeCompletion:
    """Completion service that replays scripted answers and records every prompt."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts: list[str] = []
        self.schemas: list[dict] = []

    def script(self, *responses):
        self.responses.extend(responses)

    async def complete(self, prompt: str, output_schema: dict):
        self.prompts.append(prompt)
        self.schemas.append(output_schema)
        if not self.responses:
            raise AssertionError("FakeCompletion called more often than scripted")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def calls(self) -> int:
        return len(self.prompts)


def day_mentions(day, text: str) -> bool:
    """Case-insensitive check for a place name anywhere in a plan day."""
    needle = text.lower()
    haystack = [day.headline, day.description]
    if day.transportation:
        haystack += [day.transportation.departure_location, day.transportation.arrival_location]
    for poi in day.points_of_interest or []:
        haystack += [poi.name, poi.location]
    return any(needle in part.lower() for part in haystack)


TOKYO_OSAKA_PLAN = {
    "plan": [
        {
            "day": "Day 1",
            "headline": "Arrival in Tokyo",
            "description": "Land at Haneda and explore Shibuya.",
            "pointsOfInterest": [
                {"name": "Shibuya Crossing", "location": "Tokyo"}
            ],
            "transportation": {
                "type": "flight",
                "departureLocation": "Home",
                "arrivalLocation": "Tokyo",
                "departureTime": "morning",
                "arrivalTime": "evening",
            },
        },
        {
            "day": "Day 2",
            "headline": "Temples of Tokyo",
            "description": "Senso-ji in the morning, ramen at night.",
        },
        {
            "day": "Day 3",
            "headline": "Shinkansen to Kyoto",
            "description": "Bullet train west, Fushimi Inari in the afternoon.",
            "transportation": {
                "type": "train",
                "departureLocation": "Tokyo",
                "arrivalLocation": "Kyoto",
                "departureStation": "Tokyo Station",
                "arrivalStation": "Kyoto Station",
                "departureTime": "08:00",
                "arrivalTime": "10:15",
                "price": 95.5,
            },
        },
        {
            "day": "Day 4",
            "headline": "Departure from Osaka",
            "description": "Street food in Dotonbori before flying home from Osaka.",
        },
    ]
}


JAPAN_REQUEST = {
    "destination": "Japan",
    "arrivalCity": "Tokyo",
    "departureCity": "Osaka",
    "dates": "4 days",
    "desiredActivities": "temples, food",
}


@pytest.fixture
def fake_llm():
    return FakeCompletion()


@pytest.fixture
def tokyo_plan():
    return copy.deepcopy(TOKYO_OSAKA_PLAN)


@pytest.fixture
def japan_request():
    return dict(JAPAN_REQUEST)


@pytest.fixture(autouse=True)
def clear_sessions():
    yield
    session_store._sessions.clear()
