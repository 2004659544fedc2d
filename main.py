import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

import config
from database import check_connection
from routers import (
    auth_router,
    leases_router,
    escalations_router,
    insurance_router,
    payments_router,
    units_router,
    accounting_router,
    documents_router,
)
from services.exceptions import LeaseholdError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# App instance
app = FastAPI(title="Leasehold API")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Domain errors raised by services
@app.exception_handler(LeaseholdError)
async def leasehold_error_handler(request: Request, exc: LeaseholdError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(status_code=404, content={"error": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"error": "Invalid request", "details": errors})


# Catch all unhandled exceptions
@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.include_router(auth_router)
app.include_router(leases_router)
app.include_router(escalations_router)
app.include_router(insurance_router)
app.include_router(payments_router)
app.include_router(units_router)
app.include_router(accounting_router)
app.include_router(documents_router)


@app.get("/api/health")
def health():
    if not check_connection():
        return JSONResponse(status_code=503, content={"status": "error", "database": "unreachable"})
    return {"status": "ok"}


if __name__ == "__main__":
    port = int(os.getenv("PORT", 10000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
