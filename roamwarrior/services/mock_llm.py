"""
Mock LLM Client - Offline, deterministic stand-in for the completion service.
Reads the fields back out of the prompt and answers with well-formed JSON for
whichever output schema was requested. Used by the 'mock' provider.
"""
import json
import logging
import random
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)


class MockLLMClient:
    """Deterministic mock completion provider."""

    def __init__(self):
        self.model = "mock-deterministic"

    async def chat(
        self,
        messages: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False
    ) -> str:
        """Answer according to the output schema named in the system message."""
        user_msg = next((m["content"] for m in reversed(messages) if m["role"] == "user"), "")
        system_msg = next((m["content"] for m in messages if m["role"] == "system"), "")

        schema_match = re.search(r"Output schema: (\w+)", system_msg)
        schema = schema_match.group(1) if schema_match else ""
        logger.debug(f"Mock completion for schema {schema or 'unknown'}")

        if schema == "ItineraryPlan":
            if "Current Itinerary:" in user_msg:
                return json.dumps(self._refine_itinerary(user_msg))
            return json.dumps(self._generate_itinerary(user_msg))
        if schema == "RecommendedPlaces":
            return json.dumps(self._recommend_places(user_msg))
        if schema == "AccommodationTransportRecommendation":
            return json.dumps(self._pick_candidates(user_msg))

        return json.dumps({"message": "The mock provider only answers travel planning prompts."})

    def _field(self, prompt: str, label: str, default: str = "") -> str:
        match = re.search(rf"^\s*{re.escape(label)}:\s*(.*)$", prompt, re.MULTILINE)
        if not match:
            return default
        value = match.group(1).strip()
        return default if value in ("", "None", "Not specified") else value

    def _generate_itinerary(self, prompt: str) -> dict:
        destination = self._field(prompt, "Destination", "your destination")
        arrival = self._field(prompt, "Arrival City", destination)
        departure = self._field(prompt, "Departure City", arrival)
        activities = [
            a.strip() for a in self._field(prompt, "Desired Activities", "sightseeing").split(",")
            if a.strip()
        ]
        locations = [
            loc.strip() for loc in self._field(prompt, "Specific Locations").split(",")
            if loc.strip()
        ]
        try:
            days = int(self._field(prompt, "Number of Days", "3"))
        except ValueError:
            days = 3
        days = max(1, min(days, 14))

        rng = random.Random(f"{destination}|{arrival}|{departure}|{days}")  # Deterministic per trip
        stops = [arrival, *locations, departure] if days > 2 else [arrival, departure]

        plan = []
        for d in range(1, days + 1):
            if d == 1:
                city = arrival
            elif d == days:
                city = departure
            else:
                city = stops[min(d - 1, len(stops) - 2)] if len(stops) > 2 else arrival
            activity = activities[(d - 1) % len(activities)]
            item = {
                "day": f"Day {d}",
                "headline": f"{activity.title()} in {city}",
                "description": f"Spend the day in {city} focused on {activity}.",
                "pointsOfInterest": [
                    {
                        "name": f"{city} {activity.title()} Spot {rng.randint(1, 9)}",
                        "location": city,
                        "description": f"A local favourite for {activity}."
                    }
                ],
            }
            if d == 1:
                item["transportation"] = {
                    "type": "flight",
                    "departureLocation": "Home",
                    "arrivalLocation": arrival,
                    "departureTime": "Morning",
                    "arrivalTime": "Afternoon",
                }
            elif d == days and departure != arrival:
                item["transportation"] = {
                    "type": "train",
                    "departureLocation": arrival,
                    "arrivalLocation": departure,
                    "departureTime": "09:00",
                    "arrivalTime": "12:00",
                    "price": 120.0,
                }
            plan.append(item)
        return {"plan": plan}

    def _refine_itinerary(self, prompt: str) -> dict:
        """Return the current itinerary with the feedback noted on every day."""
        feedback = self._field(prompt, "User Feedback", "no feedback")
        try:
            current = json.loads(self._field(prompt, "Current Itinerary", "{}"))
        except json.JSONDecodeError:
            current = {}
        plan = current.get("plan", []) if isinstance(current, dict) else []
        for item in plan:
            item["description"] = f"{item.get('description', '')} (Adjusted: {feedback})".strip()
        return {"plan": plan}

    def _recommend_places(self, prompt: str) -> dict:
        destination = self._field(prompt, "Destination", "your destination")
        arrival = self._field(prompt, "Arrival City", destination)
        departure = self._field(prompt, "Departure City", arrival)
        preferences = [
            p.strip() for p in self._field(prompt, "Activity Preferences", "sightseeing").split(",")
            if p.strip()
        ]
        places = []
        for i, preference in enumerate(preferences):
            city = arrival if i % 2 == 0 else departure
            places.append({
                "name": f"{city} {preference.title()} House",
                "location": city,
                "type": "site",
                "description": f"Well known in {city} for {preference}."
            })
        return {"places": places}

    def _pick_candidates(self, prompt: str) -> dict:
        """Choose the cheapest supplied candidate of each kind."""
        def candidates(label: str) -> list[dict]:
            raw = self._field(prompt, label, "[]")
            try:
                value = json.loads(raw)
            except json.JSONDecodeError:
                return []
            return value if isinstance(value, list) else []

        accommodations = sorted(candidates("Available Accommodations"), key=lambda a: a.get("price", 0))
        transport = sorted(candidates("Available Transportation Options"), key=lambda t: t.get("price", 0))
        if not accommodations and not transport:
            destination = self._field(prompt, "Destination", "your destination")
            origin = self._field(prompt, "Departure Location", destination)
            accommodations = [{
                "name": f"{destination} Central Hotel",
                "location": destination,
                "price": 95.0,
                "rating": 4.2,
            }]
            transport = [{
                "type": "train",
                "departureLocation": origin,
                "arrivalLocation": destination,
                "departureTime": self._field(prompt, "Departure Time", "08:00"),
                "arrivalTime": "12:00",
                "price": 60.0,
            }]
        return {
            "accommodations": accommodations[:1],
            "transportationOptions": transport[:1],
        }
