"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from typing import Any

from fastapi import (
    Body,
    Depends,
    FastAPI,
    Header,
    HTTPException,
    Query,
    Request,
    status,
)
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from macro_journal.api.models import (
    DailySummaryResponse,
    EntryResponse,
    FoodCheckResponse,
    MacroGoalPlanResponse,
    MealTextRequest,
    ProfileResponse,
)
from macro_journal.app_logging import configure_logging
from macro_journal.config import parse_bearer_token
from macro_journal.containers import AppContainer
from macro_journal.domain.guard import PipelineOutcome, RejectionStage, UserReason
from macro_journal.domain.profiles import MacroGoalRequest, ProfileUpdate
from macro_journal.errors import (
    EntryNotFoundError,
    InvalidGoalRequestError,
    MacroGoalFormatError,
    ProfileNotFoundError,
    RateLimitExceededError,
    UpstreamUnavailableError,
)

_REJECTION_STATUS = {
    RejectionStage.RATE_LIMIT: status.HTTP_429_TOO_MANY_REQUESTS,
    RejectionStage.UPSTREAM: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _get_container(request: Request) -> AppContainer:
    return request.app.state.container


async def require_user(
    authorization: str | None = Header(default=None),
    container: AppContainer = Depends(_get_container),
) -> str:
    """Resolve the bearer token to a user id or reject the request."""
    token = parse_bearer_token(authorization)
    user_id = container.identity_provider.resolve_user_id(token) if token else None
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return user_id


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/validate-food")
    async def validate_food(
        payload: MealTextRequest,
        user_id: str = Depends(require_user),
        container: AppContainer = Depends(_get_container),
    ) -> FoodCheckResponse:
        """Classify text as food or not food without extracting macros."""
        verdict = await container.pipeline.check_food(payload.text, user_id=user_id)
        return FoodCheckResponse(
            is_food=verdict.is_food,
            confidence=verdict.confidence,
            reason=verdict.reason,
        )

    @app.post("/api/parse")
    async def parse_meal(
        payload: MealTextRequest,
        user_id: str = Depends(require_user),
        container: AppContainer = Depends(_get_container),
    ) -> JSONResponse:
        """Run the full pipeline and return the meal without storing it."""
        outcome = await container.pipeline.run(payload.text, user_id=user_id)
        if not outcome.accepted or outcome.meal is None:
            return _rejection_response(outcome)
        return JSONResponse({"parsed_data": outcome.meal.model_dump()})

    @app.get("/api/entries")
    async def list_entries(  # noqa: PLR0913
        user_id: str = Depends(require_user),
        container: AppContainer = Depends(_get_container),
        entry_date: date | None = Query(default=None, alias="date"),
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict[str, list[EntryResponse]]:
        """List the user's entries for a day or a date range."""
        start = entry_date or start_date
        end = entry_date or end_date
        entries = container.entry_service.list_entries(user_id, start=start, end=end)
        return {"entries": [EntryResponse.from_record(entry) for entry in entries]}

    @app.post("/api/entries")
    async def create_entry(
        payload: MealTextRequest,
        user_id: str = Depends(require_user),
        container: AppContainer = Depends(_get_container),
    ) -> JSONResponse:
        """Validate a meal description and store it."""
        logged = await container.entry_service.log_meal(
            user_id, payload.text, payload.entry_date
        )
        if logged.entry is None:
            return _rejection_response(logged.outcome)
        logger.info("Entry created: id=%s", logged.entry.id)
        body = EntryResponse.from_record(logged.entry).model_dump(mode="json")
        return JSONResponse({"entry": body}, status_code=status.HTTP_201_CREATED)

    @app.put("/api/entries/{entry_id}")
    async def replace_entry(
        entry_id: int,
        payload: MealTextRequest,
        user_id: str = Depends(require_user),
        container: AppContainer = Depends(_get_container),
    ) -> JSONResponse:
        """Replace an entry with a newly validated description."""
        try:
            logged = await container.entry_service.edit_meal(
                user_id, entry_id, payload.text
            )
        except EntryNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
        if logged.entry is None:
            return _rejection_response(logged.outcome)
        body = EntryResponse.from_record(logged.entry).model_dump(mode="json")
        return JSONResponse({"entry": body})

    @app.delete("/api/entries/{entry_id}")
    async def delete_entry(
        entry_id: int,
        user_id: str = Depends(require_user),
        container: AppContainer = Depends(_get_container),
    ) -> dict[str, str]:
        """Delete an entry owned by the user."""
        try:
            container.entry_service.delete_entry(user_id, entry_id)
        except EntryNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
        return {"message": "Entry deleted successfully"}

    @app.get("/api/summary")
    async def daily_summary(
        user_id: str = Depends(require_user),
        container: AppContainer = Depends(_get_container),
        entry_date: date | None = Query(default=None, alias="date"),
    ) -> DailySummaryResponse:
        """Return totals for one day."""
        goals = container.profile_service.goals_for(user_id)
        summary = container.entry_service.daily_summary(user_id, entry_date, goals)
        return DailySummaryResponse.from_summary(summary)

    @app.get("/api/profile")
    async def get_profile(
        user_id: str = Depends(require_user),
        container: AppContainer = Depends(_get_container),
    ) -> dict[str, ProfileResponse]:
        """Return the user's profile, creating it on first access."""
        profile = container.profile_service.get_or_create_profile(user_id)
        return {"profile": ProfileResponse.from_profile(profile)}

    @app.put("/api/profile")
    async def update_profile(
        payload: ProfileUpdate,
        user_id: str = Depends(require_user),
        container: AppContainer = Depends(_get_container),
    ) -> dict[str, ProfileResponse]:
        """Update the name or daily goals present in the payload."""
        try:
            profile = container.profile_service.update_profile(user_id, payload)
        except ProfileNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
        return {"profile": ProfileResponse.from_profile(profile)}

    @app.post("/api/calculate-macros")
    async def calculate_macros(
        payload: dict[str, Any] = Body(...),
        user_id: str = Depends(require_user),
        container: AppContainer = Depends(_get_container),
    ) -> JSONResponse:
        """Suggest daily macro goals for a target weight and date."""
        try:
            request = MacroGoalRequest.model_validate(payload)
        except ValidationError as exc:
            details = [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            ]
            return JSONResponse(
                {"error": "Invalid input data", "details": details},
                status_code=status.HTTP_400_BAD_REQUEST,
            )
        if container.rate_limiter is not None:
            try:
                container.rate_limiter.acquire(user_id)
            except RateLimitExceededError:
                return JSONResponse(
                    {"error": UserReason.RATE_LIMITED},
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                )
        try:
            plan = await container.macro_goal_calculator.calculate(request)
        except InvalidGoalRequestError as exc:
            return JSONResponse(
                {"error": str(exc)}, status_code=status.HTTP_400_BAD_REQUEST
            )
        except MacroGoalFormatError:
            return JSONResponse(
                {"error": "Failed to calculate macros"},
                status_code=status.HTTP_502_BAD_GATEWAY,
            )
        except UpstreamUnavailableError:
            logger.exception("Macro goal calculation unavailable")
            return JSONResponse(
                {"error": "Failed to calculate macros"},
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        if plan.calories_adjusted:
            logger.info("Macro goal calories recalculated for user %s", user_id)
        body = MacroGoalPlanResponse.from_plan(plan).model_dump(
            mode="json", by_alias=True
        )
        return JSONResponse(body)

    return app


def _rejection_response(outcome: PipelineOutcome) -> JSONResponse:
    status_code = _REJECTION_STATUS.get(
        outcome.stage, status.HTTP_422_UNPROCESSABLE_ENTITY
    )
    return JSONResponse({"error": outcome.reason}, status_code=status_code)
