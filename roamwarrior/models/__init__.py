"""Data models for RoamWarrior."""
from .contract import validate_itinerary_plan, validate_travel_request
from .itinerary import ItineraryPlan, PlanDay, PointOfInterest, TransportationLeg
from .recommendation import (
    Accommodation,
    AccommodationTransportRecommendation,
    RecommendedPlace,
    TransportationOption,
    merge_places,
)
from .session import SessionKey, SessionStore, WizardSession, session_store
from .travel_request import TravelRequest
from .wizard import ActivityPreferencesData, ActivitySelection, FinalPlanInput, LocationDateData

__all__ = [
    "validate_itinerary_plan",
    "validate_travel_request",
    "ItineraryPlan",
    "PlanDay",
    "PointOfInterest",
    "TransportationLeg",
    "Accommodation",
    "AccommodationTransportRecommendation",
    "RecommendedPlace",
    "TransportationOption",
    "merge_places",
    "SessionKey",
    "SessionStore",
    "WizardSession",
    "session_store",
    "TravelRequest",
    "ActivityPreferencesData",
    "ActivitySelection",
    "FinalPlanInput",
    "LocationDateData",
]
