"""
Session management - Holds wizard step data and the active itinerary.

Each step's data is kept as a whole serialized blob under a well-known key,
tagged with a schema version so stored data can evolve safely.
"""
import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, TypeVar

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .itinerary import ItineraryPlan
from ..config import settings
from ..errors import SessionNotFoundError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class SessionKey(str, Enum):
    """Well-known keys for the blobs kept in a session."""
    LOCATION_DATES = "locationDateData"
    ACTIVITY_PREFERENCES = "activityPreferencesData"
    ACTIVITY_SELECTION = "activitySelection"
    FINAL_PLAN_INPUT = "finalPlanInput"
    GENERATED_PLAN = "generatedPlan"


class StoredBlob(BaseModel):
    """A serialized object plus the schema version it was written with."""
    version: int = Field(default_factory=lambda: settings.session_blob_version)
    saved_at: datetime = Field(default_factory=datetime.now)
    payload: str = Field(..., description="JSON text of the stored object")


class WizardSession(BaseModel):
    """One traveller's pass through the wizard."""
    session_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique session identifier"
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="Session creation time"
    )
    updated_at: datetime = Field(
        default_factory=datetime.now,
        description="Last update time"
    )
    blobs: dict[str, StoredBlob] = Field(
        default_factory=dict,
        description="Serialized step data by key"
    )
    latest_ticket: int = Field(
        default=0,
        description="Ticket of the most recent generation or refinement request"
    )

    # Blob access

    def put(self, key: SessionKey, value: BaseModel):
        """Store a whole object under a key, replacing what was there."""
        payload = value.model_dump_json(by_alias=True, exclude_none=True)
        self.blobs[key.value] = StoredBlob(payload=payload)
        self.updated_at = datetime.now()

    def get_raw(self, key: SessionKey) -> Optional[str]:
        """Return the stored JSON text, or None if absent or from another schema version."""
        blob = self.blobs.get(key.value)
        if blob is None:
            return None
        if blob.version != settings.session_blob_version:
            logger.warning(
                f"Ignoring {key.value} in session {self.session_id}: "
                f"stored version {blob.version}, expected {settings.session_blob_version}"
            )
            return None
        return blob.payload

    def load(self, key: SessionKey, model: type[ModelT]) -> Optional[ModelT]:
        """Read a stored blob back into a model; unreadable data counts as absent."""
        payload = self.get_raw(key)
        if payload is None:
            return None
        try:
            return model.model_validate_json(payload)
        except PydanticValidationError as e:
            logger.error(f"Failed to parse {key.value} from session {self.session_id}: {e}")
            return None

    def remove(self, key: SessionKey):
        if self.blobs.pop(key.value, None) is not None:
            self.updated_at = datetime.now()

    # Itinerary store

    def current_plan(self) -> Optional[ItineraryPlan]:
        """The last committed itinerary, if any."""
        return self.load(SessionKey.GENERATED_PLAN, ItineraryPlan)

    def begin_request(self) -> int:
        """Take a ticket for a new generation or refinement; older tickets go stale."""
        self.latest_ticket += 1
        return self.latest_ticket

    def commit_plan(self, plan: ItineraryPlan, ticket: int) -> bool:
        """
        Replace the stored itinerary wholesale.

        Returns False, storing nothing, when a newer request has started since
        the ticket was taken.
        """
        if ticket != self.latest_ticket:
            logger.info(
                f"Discarding stale itinerary for session {self.session_id} "
                f"(ticket {ticket}, latest {self.latest_ticket})"
            )
            return False
        self.put(SessionKey.GENERATED_PLAN, plan)
        return True

    def reorder_days(self, from_index: int, to_index: int) -> ItineraryPlan:
        """Move one whole day within the stored itinerary."""
        plan = self.current_plan()
        if plan is None:
            raise LookupError("No itinerary to reorder")
        reordered = plan.moved(from_index, to_index)
        self.put(SessionKey.GENERATED_PLAN, reordered)
        return reordered

    def clear_plan(self):
        self.remove(SessionKey.GENERATED_PLAN)

    def get_progress(self) -> dict:
        """Which wizard steps have data."""
        return {
            key.value: self.get_raw(key) is not None
            for key in SessionKey
        }


# In-memory session storage, one entry per browser tab
class SessionStore:
    """Simple in-memory session store."""

    def __init__(self):
        self._sessions: dict[str, WizardSession] = {}

    def create(self) -> WizardSession:
        """Create a new session."""
        session = WizardSession()
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Optional[WizardSession]:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def require(self, session_id: str) -> WizardSession:
        """Get a session by ID or raise SessionNotFoundError."""
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    def update(self, session: WizardSession):
        """Update a session."""
        self._sessions[session.session_id] = session

    def delete(self, session_id: str):
        """Delete a session, dropping everything it holds."""
        self._sessions.pop(session_id, None)


# Global session store
session_store = SessionStore()
