from typing import Optional

from fastapi import FastAPI, Query
import uvicorn

from src.config.settings import Settings, settings
from src.core.observability.structured_runtime_logger import StructuredRuntimeLogger, configure_logging
from src.coverage.domain.consolidation_config import ConsolidationConfig
from src.coverage.services.coverage_consolidation_service import CoverageConsolidationService
from src.coverage.store.store_factory import build_stores

app = FastAPI()

# Dependencies (Injected in real app)
consolidation_service: CoverageConsolidationService = None  # type: ignore
default_max_age_days: float = 1.0
runtime_logger = StructuredRuntimeLogger()


def setup_dependencies(
    service: CoverageConsolidationService,
    max_age_days: Optional[float] = None,
    logger: Optional[StructuredRuntimeLogger] = None,
):
    global consolidation_service, default_max_age_days, runtime_logger
    consolidation_service = service
    default_max_age_days = float(
        max_age_days if max_age_days is not None else service.config.default_max_age_days
    )
    runtime_logger = logger or StructuredRuntimeLogger()


def setup_from_settings(app_settings: Settings = settings) -> CoverageConsolidationService:
    stores = build_stores(app_settings)
    service = CoverageConsolidationService(
        sample_store=stores.samples,
        coverage_store=stores.coverage,
        archive_store=stores.archive,
        config=ConsolidationConfig.from_settings(app_settings),
    )
    setup_dependencies(service)
    return service


@app.get("/consolidate")
def consolidate(max_age: Optional[float] = Query(None, alias="maxAge", ge=0)):
    days = default_max_age_days if max_age is None else max_age
    runtime_logger.emit(event_type="CONSOLIDATION_TRIGGERED", max_age_days=days)
    report = consolidation_service.run(max_age_days=days)
    return report.to_response()


def run_server(host: Optional[str] = None, port: Optional[int] = None):
    configure_logging(settings.LOG_LEVEL)
    setup_from_settings(settings)
    uvicorn.run(app, host=host or settings.HTTP_HOST, port=port or settings.HTTP_PORT)


if __name__ == "__main__":
    run_server()
