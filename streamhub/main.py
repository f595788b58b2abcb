import time
import traceback
import uuid
from contextlib import asynccontextmanager
from os import environ

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from streamhub.api.v1.errors import (
    app_error_handler,
    app_validation_exception_handler,
    unhandled_exception_handler,
)
from streamhub.api.v1.routers.stream import router as stream_router
from streamhub.app_config import get_app_environ_config
from streamhub.schemas import init_beanie_odm
from streamhub.shared.api.utils import api_failure, init_logger
from streamhub.shared.storage.mongo import get_mongo_client, get_mongo_manager
from streamhub.utils.app_errors import AppError, AppErrorCode

settings = get_app_environ_config()


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]

        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            failure = api_failure(
                errcode=AppErrorCode.E_INTERNAL_ERROR.value,
                errmesg=f"Internal server error (request_id: {request_id})",
            )
            return ORJSONResponse(
                status_code=500,
                content=failure.model_dump(mode="json"),
            )


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()

    logger.info("Application startup...")

    mongo_client = get_mongo_client(settings.MONGO_LABEL)
    await init_beanie_odm(mongo_client, settings.MONGO_DB_NAME)
    logger.info(f"Beanie initialized on database '{settings.MONGO_DB_NAME}'")

    if settings.LOGFIRE_ENABLE:
        logger.info("Logfire initializing")

        logfire.configure(
            token=settings.LOGFIRE_TOKEN,
            service_name="streamhub",
            service_version=environ.get("BUILD_COMMIT") or "dev",
        )

        logger.info("Logfire instrument fastapi")
        logfire.instrument_fastapi(server, capture_headers=True)

        logger.info("Logfire instrument mongo")
        logfire.instrument_pymongo(capture_statement=settings.DEBUG)

        logger.info("Logfire instrument httpx")
        logfire.instrument_httpx()

        logger.info("Logfire instrument pydantic")
        logfire.instrument_pydantic()

    yield

    logger.info("Application shutdown...")

    get_mongo_manager().close_all()


def create_app() -> FastAPI:
    server = FastAPI(
        version="1.0",
        title="StreamHub API",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    server.add_middleware(HTTPLoggingMiddleware)

    server.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.API_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    server.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore
    server.add_exception_handler(AppError, app_error_handler)  # type: ignore
    server.add_exception_handler(Exception, unhandled_exception_handler)

    server.include_router(stream_router, prefix="/api/v1")
    return server


app = create_app()


def build_granian_kwargs():
    kwargs = {
        "interface": "asgi",
        "address": settings.API_HOST,
        "port": settings.API_PORT,
        "workers": settings.API_WORKERS,
        "reload": settings.DEBUG,
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("streamhub.main:app", **granian_kwargs).serve()
