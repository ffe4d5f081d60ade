"""
Itinerary view - Markdown rendering of plans and recommendations.
"""
from typing import Optional

from ..models.itinerary import ItineraryPlan, TransportationLeg
from ..models.recommendation import AccommodationTransportRecommendation, RecommendedPlace


def _format_leg(leg: TransportationLeg) -> str:
    origin = leg.departure_location
    if leg.departure_station:
        origin += f" ({leg.departure_station})"
    destination = leg.arrival_location
    if leg.arrival_station:
        destination += f" ({leg.arrival_station})"

    line = f"🚆 {leg.type.title()}: {origin} → {destination}"
    times = " - ".join(t for t in (leg.departure_time, leg.arrival_time) if t)
    if times:
        line += f", {times}"
    if leg.price is not None:
        line += f" | {leg.price:.2f}"
    if leg.url:
        line += f" | [Book]({leg.url})"
    return line


def render_itinerary(plan: Optional[ItineraryPlan]) -> str:
    """Format an itinerary for display."""
    if plan is None:
        return "No itinerary generated yet"

    lines = [f"📅 **{len(plan.days)} day itinerary**"]
    for day in plan.days:
        lines.append(f"\n**{day.day}** - {day.headline}")
        lines.append(day.description)
        for poi in day.points_of_interest or []:
            entry = f"  • {poi.name} ({poi.location})"
            if poi.description:
                entry += f": {poi.description}"
            lines.append(entry)
        if day.transportation:
            lines.append(f"  {_format_leg(day.transportation)}")

    return "\n".join(lines)


def render_places(places: list[RecommendedPlace]) -> str:
    """Group recommended places by location."""
    if not places:
        return "No places recommended yet"

    by_location: dict[str, list[RecommendedPlace]] = {}
    for place in places:
        by_location.setdefault(place.location, []).append(place)

    lines = []
    for location, group in by_location.items():
        lines.append(f"📍 **{location}**")
        for place in group:
            entry = f"  • {place.name} [{place.type}]"
            if place.description:
                entry += f": {place.description}"
            lines.append(entry)
    return "\n".join(lines)


def render_recommendation(recommendation: AccommodationTransportRecommendation) -> str:
    lines = ["🏨 **Accommodations**"]
    for stay in recommendation.accommodations:
        lines.append(f"  • {stay.name}, {stay.location} | {stay.price:.2f} | ⭐ {stay.rating:g}")
    if not recommendation.accommodations:
        lines.append("  (none)")

    lines.append("🚆 **Transportation**")
    for leg in recommendation.transportation_options:
        lines.append(
            f"  • {leg.type.title()}: {leg.departure_location} → {leg.arrival_location}, "
            f"{leg.departure_time} - {leg.arrival_time} | {leg.price:.2f}"
        )
    if not recommendation.transportation_options:
        lines.append("  (none)")

    if not recommendation.grounded:
        lines.append("\n⚠️ Options were suggested without a verified candidate list.")
    return "\n".join(lines)
