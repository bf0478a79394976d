"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import UTC, datetime

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware

from neonest.api.account import router as account_router
from neonest.api.models import GirRequest, NutritionHistoryRequest, TPNHistoryRequest
from neonest.api.proxy import router as proxy_router
from neonest.app_logging import configure_logging
from neonest.config import parse_allowed_origins
from neonest.containers import AppContainer
from neonest.domain.history import HistoryEntry
from neonest.domain.nutrition import NutritionAuditInputs
from neonest.domain.tpn import TPNInputs
from neonest.services.gir import solve_gir
from neonest.services.history import HistoryService
from neonest.services.nutrition import audit_nutrition
from neonest.services.tpn import calculate_tpn, serialize_tpn_result


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await app.state.container.start_resources()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_allowed_origins(container.settings.cors_allowed_origins),
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(proxy_router)
    app.include_router(account_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/tpn/calculate")
    async def tpn_calculate(inputs: TPNInputs) -> dict[str, object]:
        """Split a TPN prescription into syringes."""
        return serialize_tpn_result(calculate_tpn(inputs))

    @app.post("/gir/solve")
    async def gir_solve(body: GirRequest) -> dict[str, object]:
        """Find the dextrose mix for a target glucose infusion rate."""
        return asdict(
            solve_gir(body.weight_g, body.fluid_per_kg, body.target_gir, body.combo)
        )

    def run_audit(inputs: NutritionAuditInputs, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        table = state_container.nutrient_table_service.load_table()
        audit = audit_nutrition(inputs, table)
        if audit is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current weight must be positive",
            )
        return asdict(audit)

    @app.post("/nutrition/audit")
    async def nutrition_audit(
        inputs: NutritionAuditInputs, request: Request
    ) -> dict[str, object]:
        """Audit enteral intake against recommended ranges."""
        return run_audit(inputs, request)

    @app.get("/tpn/defaults")
    async def tpn_defaults(request: Request) -> dict[str, object]:
        """Return the saved default prescription."""
        state_container: AppContainer = request.app.state.container
        return state_container.defaults_service.load().model_dump(by_alias=True)

    @app.put("/tpn/defaults")
    async def save_tpn_defaults(
        inputs: TPNInputs, request: Request
    ) -> dict[str, object]:
        """Replace the saved default prescription."""
        state_container: AppContainer = request.app.state.container
        state_container.defaults_service.save(inputs)
        return inputs.model_dump(by_alias=True)

    @app.post("/tpn/defaults/reset")
    async def reset_tpn_defaults(request: Request) -> dict[str, object]:
        """Restore the factory prescription."""
        state_container: AppContainer = request.app.state.container
        return state_container.defaults_service.reset().model_dump(by_alias=True)

    def record(
        history: HistoryService,
        body: TPNHistoryRequest | NutritionHistoryRequest,
        results: dict[str, object],
    ) -> dict[str, object]:
        entry = HistoryEntry(
            baby_of=body.baby_of,
            patient_id=body.patient_id,
            date=body.date,
            inputs=body.inputs.model_dump(by_alias=True),
            results=results,
            timestamp=datetime.now(tz=UTC),
        )
        saved = history.record(entry)
        if not saved:
            logger.warning("History entry under key=%s was not saved", history.key)
        return {"saved": saved, "entry": entry.model_dump(mode="json", by_alias=True)}

    def suggest(
        history: HistoryService, name: str, patient_id: str
    ) -> list[dict[str, object]]:
        matches = (
            history.suggest_by_patient_id(patient_id)
            if patient_id
            else history.suggest_by_name(name)
        )
        return [entry.model_dump(mode="json", by_alias=True) for entry in matches]

    @app.post("/tpn/history")
    async def save_tpn_history(
        body: TPNHistoryRequest, request: Request
    ) -> dict[str, object]:
        """Calculate and store a prescription against a baby."""
        state_container: AppContainer = request.app.state.container
        results = serialize_tpn_result(calculate_tpn(body.inputs))
        return record(state_container.tpn_history, body, results)

    @app.get("/tpn/history")
    async def search_tpn_history(
        request: Request, name: str = "", patient_id: str = ""
    ) -> list[dict[str, object]]:
        """Suggest earlier entries by mother's name or patient id."""
        state_container: AppContainer = request.app.state.container
        return suggest(state_container.tpn_history, name, patient_id)

    @app.post("/nutrition/history")
    async def save_nutrition_history(
        body: NutritionHistoryRequest, request: Request
    ) -> dict[str, object]:
        """Audit a feeding plan and store it against a baby."""
        state_container: AppContainer = request.app.state.container
        results = run_audit(body.inputs, request)
        return record(state_container.nutrition_history, body, results)

    @app.get("/nutrition/history")
    async def search_nutrition_history(
        request: Request, name: str = "", patient_id: str = ""
    ) -> list[dict[str, object]]:
        """Suggest earlier audits by mother's name or patient id."""
        state_container: AppContainer = request.app.state.container
        return suggest(state_container.nutrition_history, name, patient_id)

    return app
