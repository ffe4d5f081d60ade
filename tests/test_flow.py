"""Tests for the wizard flow."""
import pytest

from roamwarrior.errors import GenerationError, MalformedResponseError, ValidationError, WizardStepError
from roamwarrior.models.itinerary import ItineraryPlan
from roamwarrior.models.recommendation import RecommendedPlace
from roamwarrior.models.session import SessionKey, session_store
from roamwarrior.models.wizard import FinalPlanInput, LocationDateData
from roamwarrior.services.flow_controller import FlowController, ResponseType
from roamwarrior.services.planner import ItineraryPlanner
from roamwarrior.services.recommender import AccommodationTransportRecommender, PlaceRecommender


LOCATIONS = {
    "destination": "Japan",
    "arrivalCity": "Tokyo",
    "departureCity": "Osaka",
    "arrivalDate": "2025-04-01T00:00:00.000Z",
    "returnDate": "2025-04-04",
    "specificLocations": ["Kyoto"],
    "otherLocationInput": "Nara, Kyoto, ",
}


@pytest.fixture
def flow(fake_llm):
    return FlowController(
        planner=ItineraryPlanner(llm=fake_llm),
        place_recommender=PlaceRecommender(llm=fake_llm),
        stay_recommender=AccommodationTransportRecommender(llm=fake_llm)
    )


@pytest.fixture
def session():
    return session_store.create()


class TestLocationsAndDates:
    """Test the first wizard step."""

    def test_locations_merged(self, flow, session):
        """Test that typed locations are merged with picked ones without repeats."""
        response_type, message, data = flow.submit_locations_and_dates(session, LOCATIONS)

        assert response_type == ResponseType.STEP_CONFIRMED
        assert message["title"] == "Places and Dates Confirmed"
        assert data["specificLocations"] == ["Kyoto", "Nara"]
        assert data["arrivalDate"] == "2025-04-01"

    def test_all_problems_reported(self, flow, session):
        """Test that every missing field is reported with its message."""
        with pytest.raises(ValidationError) as exc_info:
            flow.submit_locations_and_dates(session, {})

        messages = [v.message for v in exc_info.value.violations]
        assert messages == [
            "Please enter a destination.",
            "Please enter the arrival city.",
            "Please enter the departure city.",
            "Please select an arrival date OR enter a valid number of days (positive whole number).",
        ]
        assert session.load(SessionKey.LOCATION_DATES, LocationDateData) is None

    def test_day_count_instead_of_date(self, flow, session):
        """Test that a day count may replace the arrival date."""
        data = {**LOCATIONS, "arrivalDate": "", "returnDate": "", "numberOfDays": "5"}

        _, _, stored = flow.submit_locations_and_dates(session, data)

        assert stored["numberOfDays"] == 5

    def test_non_positive_day_count(self, flow, session):
        """Test that zero days is refused."""
        with pytest.raises(ValidationError) as exc_info:
            flow.submit_locations_and_dates(session, {**LOCATIONS, "numberOfDays": 0})

        assert exc_info.value.fields == ["numberOfDays"]

    def test_wrongly_typed_fields_reported(self, flow, session):
        """Test that unparseable values are reported like any other problem."""
        data = {**LOCATIONS, "numberOfDays": "five", "arrivalDate": "tomorrow"}

        with pytest.raises(ValidationError) as exc_info:
            flow.submit_locations_and_dates(session, data)

        assert set(exc_info.value.fields) == {"arrivalDate", "numberOfDays"}
        assert session.load(SessionKey.LOCATION_DATES, LocationDateData) is None

    def test_return_before_arrival(self, flow, session):
        """Test that the return date may not precede the arrival date."""
        with pytest.raises(ValidationError) as exc_info:
            flow.submit_locations_and_dates(session, {**LOCATIONS, "returnDate": "2025-03-30"})

        assert exc_info.value.violations[0].message == "Return date cannot be before the arrival date."


class TestActivities:
    """Test the activity steps."""

    def test_requires_previous_step(self, flow, session):
        """Test that activities cannot be chosen before places and dates."""
        with pytest.raises(WizardStepError):
            flow.submit_activities(session, ["food"])

    def test_requires_an_activity(self, flow, session):
        """Test that at least one activity is needed."""
        flow.submit_locations_and_dates(session, LOCATIONS)

        with pytest.raises(ValidationError) as exc_info:
            flow.submit_activities(session, ["  "])

        assert exc_info.value.violations[0].message == "Please select at least one desired activity or interest."

    @pytest.mark.asyncio
    async def test_suggestions_merge_across_calls(self, flow, session, fake_llm):
        """Test that asking twice for places never repeats one."""
        temple = {"name": "Senso-ji", "location": "Tokyo", "type": "site"}
        market = {"name": "Kuromon Market", "location": "Osaka", "type": "shop"}
        fake_llm.script({"places": [temple]}, {"places": [temple, market]})
        flow.submit_locations_and_dates(session, LOCATIONS)
        flow.submit_activities(session, ["temples", "food"])

        _, first, _ = await flow.suggest_places(session)
        _, second, data = await flow.suggest_places(session)

        assert [p["name"] for p in data["suggestedPlaces"]] == ["Senso-ji", "Kuromon Market"]
        assert first["description"].startswith("1 new")
        assert second["description"].startswith("1 new")
        assert "Activity Preferences: temples, food" in fake_llm.prompts[0]

    def test_toggle_activity(self, flow, session):
        """Test adding and removing activities from the selection."""
        flow.submit_locations_and_dates(session, LOCATIONS)
        flow.submit_activities(session, ["temples"])

        flow.toggle_activity(session, "karaoke", True)
        selection = flow.toggle_activity(session, "temples", False)

        assert selection.displayed_activities == ["temples", "karaoke"]
        assert selection.selected_activities == ["karaoke"]

    def test_toggle_place(self, flow, session):
        """Test selecting a suggested place."""
        flow.submit_locations_and_dates(session, LOCATIONS)
        flow.submit_activities(session, ["temples"])
        place = RecommendedPlace(name="Senso-ji", location="Tokyo", type="site")

        selection = flow.toggle_place(session, place, True)

        assert selection.selected_places == [place]


class TestCreateItinerary:
    """Test itinerary creation and changes."""

    def _prepare(self, flow, session):
        flow.submit_locations_and_dates(session, LOCATIONS)
        flow.submit_activities(session, ["temples", "food"])

    @pytest.mark.asyncio
    async def test_requires_selection(self, flow, session, fake_llm):
        """Test that a plan needs at least one selected activity."""
        self._prepare(flow, session)
        flow.toggle_activity(session, "temples", False)
        flow.toggle_activity(session, "food", False)

        with pytest.raises(ValidationError) as exc_info:
            await flow.create_itinerary(session)

        assert "at least one activity" in exc_info.value.message
        assert fake_llm.calls == 0

    @pytest.mark.asyncio
    async def test_plan_created_and_stored(self, flow, session, fake_llm, tokyo_plan):
        """Test building the request and storing the generated plan."""
        self._prepare(flow, session)
        flow.toggle_place(session, RecommendedPlace(name="Senso-ji", location="Tokyo", type="site"), True)
        fake_llm.script(tokyo_plan)

        response_type, message, data = await flow.create_itinerary(session)

        assert response_type == ResponseType.ITINERARY
        assert message["title"] == "Itinerary Ready!"
        assert len(data["itinerary"]["plan"]) == 4
        assert session.current_plan().day_labels()[0] == "Day 1"

        prompt = fake_llm.prompts[0]
        assert "Dates: 2025-04-01 to 2025-04-04" in prompt
        assert "Specific Locations: Kyoto, Nara" in prompt
        assert "Places to include: Senso-ji (site, Tokyo)" in prompt
        final_input = session.load(SessionKey.FINAL_PLAN_INPUT, FinalPlanInput)
        assert final_input.selected_final_activities == ["temples", "food"]

    @pytest.mark.asyncio
    async def test_failed_refinement_keeps_plan(self, flow, session, fake_llm, tokyo_plan):
        """Test that a failed refinement leaves the stored plan untouched."""
        self._prepare(flow, session)
        fake_llm.script(tokyo_plan)
        await flow.create_itinerary(session)
        before = session.get_raw(SessionKey.GENERATED_PLAN)

        fake_llm.script(GenerationError("service unavailable"))
        with pytest.raises(GenerationError):
            await flow.refine_itinerary(session, "more food")

        fake_llm.script({"plan": []})
        with pytest.raises(MalformedResponseError):
            await flow.refine_itinerary(session, "more food")

        assert session.get_raw(SessionKey.GENERATED_PLAN) == before

    @pytest.mark.asyncio
    async def test_refinement_replaces_plan(self, flow, session, fake_llm, tokyo_plan):
        """Test that a successful refinement is committed."""
        self._prepare(flow, session)
        fake_llm.script(tokyo_plan)
        await flow.create_itinerary(session)
        tokyo_plan["plan"] = tokyo_plan["plan"][:2]
        fake_llm.script(tokyo_plan)

        response_type, _, data = await flow.refine_itinerary(session, "shorter trip")

        assert response_type == ResponseType.REFINEMENT
        assert session.current_plan().day_labels() == ["Day 1", "Day 2"]
        assert "**2 day itinerary**" in data["rendered"]

    @pytest.mark.asyncio
    async def test_refine_without_plan(self, flow, session):
        """Test that refinement needs a plan."""
        with pytest.raises(WizardStepError):
            await flow.refine_itinerary(session, "more food")

    @pytest.mark.asyncio
    async def test_superseded_answer_discarded(self, flow, session, fake_llm, tokyo_plan):
        """Test that a plan answering an older request is not stored."""
        self._prepare(flow, session)
        fake_llm.script(tokyo_plan)
        await flow.create_itinerary(session)
        before = session.get_raw(SessionKey.GENERATED_PLAN)

        class Overtaken:
            """Completion that lets a newer request start while it runs."""

            async def complete(self, prompt, output_schema):
                session.begin_request()
                return tokyo_plan

        flow.planner = ItineraryPlanner(llm=Overtaken())
        response_type, _, data = await flow.refine_itinerary(session, "more food")

        assert response_type == ResponseType.SUPERSEDED
        assert data is None
        assert session.get_raw(SessionKey.GENERATED_PLAN) == before

    @pytest.mark.asyncio
    async def test_regenerate_sends_feedback(self, flow, session, fake_llm, tokyo_plan):
        """Test regenerating a plan with feedback."""
        self._prepare(flow, session)
        fake_llm.script(tokyo_plan, tokyo_plan)
        await flow.create_itinerary(session)

        await flow.regenerate_itinerary(session, "fewer museums")

        assert "Feedback: fewer museums" in fake_llm.prompts[1]

    @pytest.mark.asyncio
    async def test_reorder_day(self, flow, session, fake_llm, tokyo_plan):
        """Test moving a day through the controller."""
        self._prepare(flow, session)
        fake_llm.script(tokyo_plan)
        await flow.create_itinerary(session)

        response_type, _, _ = flow.reorder_day(session, 0, 3)

        assert response_type == ResponseType.REORDERED
        assert session.current_plan().day_labels() == ["Day 2", "Day 3", "Day 4", "Day 1"]

        with pytest.raises(ValidationError):
            flow.reorder_day(session, 0, 9)

    @pytest.mark.asyncio
    async def test_accommodation_transport(self, flow, session, fake_llm, tokyo_plan):
        """Test recommending lodging for the stored plan."""
        self._prepare(flow, session)
        fake_llm.script(tokyo_plan, {
            "accommodations": [{"name": "Inn", "location": "Tokyo", "price": 80, "rating": 4}],
            "transportationOptions": []
        })
        await flow.create_itinerary(session)

        response_type, _, data = await flow.recommend_accommodation_transport(session, preferences="quiet")

        assert response_type == ResponseType.RECOMMENDATION
        assert data["grounded"] is False
        assert data["accommodations"][0]["name"] == "Inn"
        plan = ItineraryPlan.model_validate(tokyo_plan)
        assert f"Itinerary: {plan.to_json()}" in fake_llm.prompts[1]
        assert "Departure Location: Osaka" in fake_llm.prompts[1]
