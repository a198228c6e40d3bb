"""FastAPI application exposing every reflected table as a REST resource."""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from common.errors import InternalError, SchemaError
from crud.coercion import dumps_json
from crud.handler import CrudHandler
from dal.database import Database
from dal.schema_registry import load_table_registry
from rest_gateway.config import GatewaySettings
from rest_gateway.middleware import RequestIdMiddleware

logger = logging.getLogger(__name__)

CRUD_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class EnvelopeResponse(JSONResponse):
    """JSON response that renders Decimal and datetime values."""

    def render(self, content: Any) -> bytes:
        """Serialize the envelope."""
        return dumps_json(content, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def _envelope(success: bool, data: Any = None, error: Optional[str] = None) -> dict:
    return {"success": success, "data": data, "error": error}


def create_app(settings: Optional[GatewaySettings] = None) -> FastAPI:
    """Build the gateway application; schema introspection runs in the lifespan."""
    settings = settings or GatewaySettings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Connect, introspect and publish the registry before serving traffic."""
        await Database.init(settings.database_url)
        try:
            registry = await load_table_registry(Database.get_schema_introspector())
        except SchemaError:
            logger.exception("Schema introspection failed; refusing to start")
            await Database.close()
            raise

        app.state.registry = registry
        app.state.handler = CrudHandler(
            registry=registry,
            capabilities=Database.get_query_target_capabilities(),
            connection_factory=Database.get_connection,
            timeout_seconds=settings.query_timeout_seconds,
            max_page_size=settings.max_page_size,
        )
        logger.info(
            "rest_gateway_ready provider=%s tables=%d",
            Database.get_query_target_provider(),
            len(registry),
        )
        yield
        await Database.close()

    app = FastAPI(title="dbrest", lifespan=lifespan)
    app.add_middleware(RequestIdMiddleware)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """Keep the envelope shape for unexpected failures."""
        logger.exception("Unhandled error serving %s %s", request.method, request.url.path)
        error = InternalError()
        return EnvelopeResponse(
            status_code=error.status_code, content=_envelope(False, error=error.message)
        )

    @app.get("/")
    async def describe_schema(request: Request):
        """List every served table with its columns and keys."""
        tables = [table.model_dump(mode="json") for table in request.app.state.registry.all()]
        return EnvelopeResponse(content=_envelope(True, data=tables))

    @app.api_route("/{resource_path:path}", methods=CRUD_METHODS)
    async def crud(request: Request, resource_path: str):
        """Dispatch any table or record request to the generic handler."""
        body = await request.body()
        response = await request.app.state.handler.handle(
            request.method,
            "/" + resource_path,
            request.query_params.multi_items(),
            body or None,
        )
        if response.envelope is None:
            return Response(status_code=response.status_code)
        return EnvelopeResponse(status_code=response.status_code, content=response.body)

    return app
