from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
import logging
import time
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict

from service_planner.backend.config import Settings
from service_planner.backend.service_details import ServiceDetailsService
from service_planner.backend.service_store import ServiceStore
from service_planner.backend.song_selections import SongSelectionService
from service_planner.logging_utils import (
    clear_log_context,
    configure_logging,
    get_logger,
    set_log_context,
)
from service_planner.planner.errors import NotFoundError, ServiceValidationError, StorageError

RECOVER_ORPHANED = "recover_orphaned"


class ServiceElement(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    content: str = ""
    selection: Optional[Dict[str, Any]] = None
    reference: Optional[str] = None


class ServiceStructureRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: Optional[str] = None
    elements: List[ServiceElement] = []
    version: Optional[str] = None
    # Older clients send the version as lastUpdated.
    lastUpdated: Optional[str] = None
    liturgicalContext: Optional[Dict[str, Any]] = None
    title: Optional[str] = None
    type: Optional[str] = None
    setting: Optional[str] = None
    content: Optional[str] = None


class ServiceActionRequest(BaseModel):
    date: Optional[str] = None
    action: str


class SongSelectionsRequest(BaseModel):
    date: Optional[str] = None
    selections: Dict[str, Any] = {}
    updatedBy: Optional[str] = None
    liturgicalContext: Optional[Dict[str, Any]] = None


def create_app() -> FastAPI:
    configure_logging()
    settings = Settings.from_env()
    store = ServiceStore(
        service_details_collection=settings.service_details_collection,
        service_songs_collection=settings.service_songs_collection,
        orphaned_songs_collection=settings.orphaned_songs_collection,
        project_id=settings.project_id,
    )
    service_details = ServiceDetailsService(store)
    song_selections = SongSelectionService(store)

    app = FastAPI(title="Service Planner Backend", version="0.1.0")
    logger = get_logger("backend.api")
    if settings.backend_debug:
        logger.setLevel(logging.DEBUG)
    app.state.settings = settings
    app.state.store = store
    app.state.service_details = service_details
    app.state.song_selections = song_selections

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.monotonic()
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        set_log_context(request_id=request_id, service_date=request.query_params.get("date"))
        logger.debug("http_request_start method=%s path=%s", request.method, request.url.path)
        status = "error"
        try:
            response = await call_next(request)
            status = response.status_code
            response.headers["X-Request-ID"] = request_id
        finally:
            duration_ms = (time.monotonic() - start) * 1000.0
            logger.debug(
                "http_request method=%s path=%s status=%s duration_ms=%.2f",
                request.method,
                request.url.path,
                status,
                duration_ms,
            )
            clear_log_context()
        return response

    @app.get("/service-details")
    async def get_service_details(
        request: Request, date: Optional[str] = None
    ) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        service: ServiceDetailsService = request.app.state.service_details
        try:
            if date is None:
                return await service.list_services()
            document = await service.get_service(date)
        except (ServiceValidationError, StorageError) as exc:
            raise _http_error(exc) from exc
        if document is None:
            raise HTTPException(status_code=404, detail=f"No service found for {date}")
        return document

    @app.post("/service-details")
    async def save_service_details(
        request: Request, payload: ServiceStructureRequest
    ) -> Dict[str, Any]:
        service: ServiceDetailsService = request.app.state.service_details
        if not payload.date:
            raise HTTPException(status_code=400, detail="Date is required")
        set_log_context(service_date=payload.date)
        fields = {
            key: value
            for key, value in payload.model_dump(include={"title", "type", "setting", "content"}).items()
            if value is not None
        }
        try:
            result = await service.save_service_structure(
                payload.date,
                [element.model_dump(exclude_none=True) for element in payload.elements],
                payload.version or payload.lastUpdated,
                fields=fields,
                liturgical_context=payload.liturgicalContext,
            )
        except (ServiceValidationError, StorageError) as exc:
            raise _http_error(exc) from exc
        return result.to_payload()

    @app.delete("/service-details")
    async def delete_service_details(request: Request, date: str) -> Dict[str, Any]:
        service: ServiceDetailsService = request.app.state.service_details
        try:
            await service.delete_service(date)
        except (ServiceValidationError, NotFoundError, StorageError) as exc:
            raise _http_error(exc) from exc
        return {"success": True, "date": date}

    @app.patch("/service-details")
    async def service_details_action(
        request: Request, payload: ServiceActionRequest
    ) -> Dict[str, Any]:
        service: ServiceDetailsService = request.app.state.service_details
        if payload.action != RECOVER_ORPHANED:
            raise HTTPException(status_code=400, detail="Invalid action")
        if not payload.date:
            raise HTTPException(status_code=400, detail="Date is required")
        try:
            recovery = await service.recover_orphans(payload.date)
        except (ServiceValidationError, NotFoundError, StorageError) as exc:
            raise _http_error(exc) from exc
        return recovery.to_payload()

    @app.get("/service-songs")
    async def get_service_songs(
        request: Request, date: Optional[str] = None
    ) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        selections: SongSelectionService = request.app.state.song_selections
        try:
            if date is None:
                return await selections.list_selections()
            record = await selections.get_selections(date)
        except (ServiceValidationError, StorageError) as exc:
            raise _http_error(exc) from exc
        return record or {}

    @app.post("/service-songs")
    async def save_service_songs(
        request: Request, payload: SongSelectionsRequest
    ) -> Dict[str, Any]:
        selections: SongSelectionService = request.app.state.song_selections
        if not payload.date:
            raise HTTPException(status_code=400, detail="Date is required")
        set_log_context(service_date=payload.date)
        try:
            return await selections.save_selections(
                payload.date,
                payload.selections,
                payload.updatedBy,
                liturgical_context=payload.liturgicalContext,
            )
        except (ServiceValidationError, StorageError) as exc:
            raise _http_error(exc) from exc

    return app


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, ServiceValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


app = create_app()
