import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import tubeingest.core.logging  # noqa: F401  (configures handlers)
from tubeingest.core.errors import (
    ConfigurationError,
    ConflictError,
    IngestError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from tubeingest.core.settings import settings
from tubeingest.api.router import router
from tubeingest.db.session import engine
from tubeingest.db.base import Base
import tubeingest.models  # noqa: F401  (registers tables)

logger = logging.getLogger(__name__)

app = FastAPI(title="Tube Ingest Backend", version="0.1.0")

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    NotFoundError: 404,
    ConflictError: 409,
    ValidationError: 400,
    ServiceError: 502,
    ConfigurationError: 500,
}


@app.exception_handler(IngestError)
async def ingest_error_handler(_request: Request, exc: IngestError):
    status_code = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500)
    if status_code >= 500:
        logger.error(f"[api] {type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_code": type(exc).__name__},
    )


Base.metadata.create_all(bind=engine)

app.include_router(router)
