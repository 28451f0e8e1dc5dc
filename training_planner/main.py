"""FastAPI application bootstrap and lifecycle wiring."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from training_planner.controllers.grouping_controller import router as grouping_router
from training_planner.controllers.scheduling_controller import router as scheduling_router
from training_planner.repository.data_repository import DataRepository
from training_planner.services.grouping_service import GroupingService
from training_planner.services.recommendation_service import SchedulingRecommendationService
from training_planner.utils.config import Settings, get_settings
from training_planner.utils.logger import configure_logging, get_logger


logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app with explicit startup lifecycle dependencies."""
    settings = settings or get_settings()
    configure_logging()
    repository = DataRepository(settings)
    recommendation_service = SchedulingRecommendationService(
        repository=repository,
        settings=settings,
    )
    grouping_service = GroupingService(
        repository=repository,
        settings=settings,
        priority_scorer=repository.calculate_employee_priority_score,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.include_router(scheduling_router)
    app.include_router(grouping_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": settings.app_version}

    app.state.repository = repository
    app.state.recommendation_service = recommendation_service
    app.state.grouping_service = grouping_service

    return app


def startup(app: FastAPI) -> None:
    """Initialize schema and seed demo data on an empty database."""
    repository: DataRepository = app.state.repository
    repository.initialize_database()
    repository.seed_demo_data_if_empty()
    logger.info("System startup completed")


app = create_app()
