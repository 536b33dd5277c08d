"""FastAPI web server for the KC Frequency Omnibus catalog."""
from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from omnibus import __version__
from omnibus.config import get_settings
from omnibus.db.database import CatalogHandle, Database, open_catalog
from omnibus.db.view_repo import ViewRepository
from omnibus.errors import ConstraintError, NotFoundError, StoreError, ValidationError
from omnibus.export.formats import format_names
from omnibus.services import CatalogService, ExportService, ImportService, SettingsService
from omnibus.services.catalog_service import resolve_entity

logger = logging.getLogger(__name__)


# Request/Response Models
class CsvImportRequest(BaseModel):
    text: str
    kind: str = "frequency"


class SettingUpdate(BaseModel):
    value: Any
    type: Optional[str] = None


class SdrPlusRequest(BaseModel):
    filter: Optional[dict[str, Any]] = None


def _parse_filter(raw: Optional[str]) -> Optional[dict[str, Any]]:
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"filter is not valid JSON: {exc}") from None
    if not isinstance(data, dict):
        raise ValidationError("filter must be a JSON object")
    return data


def _download(content: str | bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def create_app(db: Optional[Database] = None) -> FastAPI:
    """
    Build the API.  With ``db`` the given handle is used as-is (tests); without
    it the catalog is opened from settings on startup and closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = False
        if getattr(app.state, "db", None) is None:
            handle = open_catalog()
            app.state.db = handle.db
            app.state.catalog = handle
            owned = True
            if handle.fallback:
                logger.warning(f"Serving an empty catalog: {handle.error}")
        logger.info(f"Server started - DB: {app.state.catalog.source}")
        yield
        if owned:
            app.state.db.close()
            app.state.db = None
        logger.info("Server shutting down")

    settings = get_settings()
    app = FastAPI(
        title=settings.APP_NAME,
        description="Frequencies, trunked systems and scanner / SDR exports for the Kansas City region",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.db = db
    app.state.catalog = CatalogHandle(db=db, source=str(db.path)) if db is not None else None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- error mapping ---------------------------------------------------------

    def _error(status: int, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return _error(422, exc)

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return _error(404, exc)

    @app.exception_handler(ConstraintError)
    async def _constraint_error(request: Request, exc: ConstraintError):
        return _error(409, exc)

    @app.exception_handler(StoreError)
    async def _store_error(request: Request, exc: StoreError):
        logger.error(f"Store error on {request.url.path}: {exc}")
        return _error(500, exc)

    def _db(request: Request) -> Database:
        database = request.app.state.db
        if database is None:
            raise HTTPException(status_code=503, detail="Database not initialized")
        return database

    # -- status ----------------------------------------------------------------

    @app.get("/api/status")
    async def get_status(request: Request):
        handle: Optional[CatalogHandle] = request.app.state.catalog
        return {
            "app": settings.APP_NAME,
            "version": __version__,
            "source": handle.source if handle else None,
            "fallback": handle.fallback if handle else False,
            "error": handle.error if handle else None,
            "counts": CatalogService(_db(request)).dashboard_counts(),
            "formats": list(format_names()),
            "views": ViewRepository.names(),
        }

    # -- settings --------------------------------------------------------------

    @app.get("/api/settings")
    async def list_settings(request: Request):
        return SettingsService(_db(request)).all()

    @app.get("/api/settings/{key}")
    async def get_setting(key: str, request: Request):
        return {"key": key, "value": SettingsService(_db(request)).get(key)}

    @app.put("/api/settings/{key}")
    async def put_setting(key: str, body: SettingUpdate, request: Request):
        setting = SettingsService(_db(request)).set(key, body.value, body.type)
        return setting.to_dict()

    @app.delete("/api/settings/{key}")
    async def delete_setting(key: str, request: Request):
        if not SettingsService(_db(request)).delete(key):
            raise NotFoundError(f"Setting {key!r} not found")
        return {"status": "deleted", "key": key}

    # -- views and exports -----------------------------------------------------

    @app.get("/api/views/{view}")
    async def read_view(view: str, request: Request):
        rows = ViewRepository(_db(request)).rows(view)
        return {"view": view, "count": len(rows), "rows": rows}

    @app.get("/api/export/{format_name}")
    async def export_format(format_name: str, request: Request):
        result = ExportService(_db(request)).export(format_name)
        return _download(result.content, result.media_type, result.filename)

    @app.post("/api/export/sdrplus")
    async def export_sdrplus(body: SdrPlusRequest, request: Request):
        result = ExportService(_db(request)).export_sdrplus(flt=body.filter)
        return _download(result.content, result.media_type, result.filename)

    @app.get("/api/export-profiles/{profile_id}/export")
    async def export_profile(profile_id: int, request: Request, format: Optional[str] = None):
        return ExportService(_db(request)).export_profile(profile_id, format).to_dict()

    @app.get("/api/trunked-systems/{system_id}/export")
    async def export_trunked_system(system_id: int, request: Request):
        result = ExportService(_db(request)).export_trunked_system(system_id)
        return _download(result.content, result.media_type, result.filename)

    @app.get("/api/trunked-systems/{system_id}/complete")
    async def complete_system(system_id: int, request: Request):
        complete = CatalogService(_db(request)).get_complete_system(system_id)
        if complete is None:
            raise NotFoundError(f"Trunked system {system_id} not found")
        return complete.to_dict()

    # -- import ----------------------------------------------------------------

    @app.post("/api/import/csv")
    async def import_csv(body: CsvImportRequest, request: Request):
        return ImportService(_db(request)).import_csv(body.text, body.kind).to_dict()

    @app.post("/api/import/radio-reference")
    async def import_radio_reference(request: Request, payload: Any = Body(...)):
        return ImportService(_db(request)).import_radio_reference(payload).to_dict()

    # -- backup / restore ------------------------------------------------------

    @app.get("/api/backup")
    async def backup(request: Request):
        return _download(_db(request).backup(), "application/vnd.sqlite3", "omnibus-backup.sqlite")

    @app.post("/api/restore")
    async def restore(request: Request):
        data = await request.body()
        _db(request).restore(data)
        return {"status": "restored", "bytes": len(data)}

    # -- frequency flags -------------------------------------------------------

    @app.post("/api/frequencies/{frequency_id}/flags/{flag}")
    async def toggle_flag(frequency_id: int, flag: str, request: Request):
        catalog = CatalogService(_db(request))
        if not catalog.toggle_flag(frequency_id, flag):
            raise NotFoundError(f"frequency {frequency_id} not found")
        return catalog.require("frequency", frequency_id).to_dict()

    # -- generic entity CRUD ---------------------------------------------------

    @app.get("/api/{entity}")
    async def list_records(
        entity: str,
        request: Request,
        filter: Optional[str] = None,
        sort: Optional[str] = None,
    ):
        catalog = CatalogService(_db(request))
        records = catalog.list(entity, _parse_filter(filter), sort)
        return {
            "entity": resolve_entity(entity),
            "count": len(records),
            "items": [r.to_dict() for r in records],
        }

    @app.post("/api/{entity}", status_code=201)
    async def create_record(entity: str, request: Request, fields: dict[str, Any] = Body(...)):
        record_id = CatalogService(_db(request)).create(entity, fields)
        return {"status": "created", "id": record_id}

    @app.get("/api/{entity}/{record_id}")
    async def get_record(entity: str, record_id: int, request: Request):
        return CatalogService(_db(request)).require(entity, record_id).to_dict()

    @app.patch("/api/{entity}/{record_id}")
    async def update_record(
        entity: str,
        record_id: int,
        request: Request,
        fields: dict[str, Any] = Body(...),
    ):
        catalog = CatalogService(_db(request))
        if fields and not catalog.update(entity, record_id, fields):
            raise NotFoundError(f"{resolve_entity(entity)} {record_id} not found")
        return catalog.require(entity, record_id).to_dict()

    @app.delete("/api/{entity}/{record_id}")
    async def delete_record(entity: str, record_id: int, request: Request):
        if not CatalogService(_db(request)).delete(entity, record_id):
            raise NotFoundError(f"{resolve_entity(entity)} {record_id} not found")
        return {"status": "deleted", "id": record_id}

    return app


app = create_app()
