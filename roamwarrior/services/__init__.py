"""Services for travel planner."""
from .llm_client import LLMClient
from .planner import ItineraryPlanner
from .recommender import AccommodationTransportRecommender, PlaceRecommender
from .flow_controller import FlowController

__all__ = [
    "LLMClient",
    "ItineraryPlanner",
    "PlaceRecommender",
    "AccommodationTransportRecommender",
    "FlowController",
]
