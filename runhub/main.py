"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from runhub.exceptions import (
    AuthError,
    ConflictError,
    DispatchError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    RunHubError,
)
from runhub.routes import callbacks, runs

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Run Hub",
    description="Dispatches workflow deployments to compute machines and tracks their runs",
    version="0.1.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(runs.router)
app.include_router(callbacks.router)


def _error_response(status_code: int, exc: RunHubError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": exc.message or exc.__class__.__name__})


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return _error_response(401, exc)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(404, exc)


@app.exception_handler(ForbiddenError)
async def forbidden_handler(request: Request, exc: ForbiddenError):
    # Indistinguishable from a missing record
    return JSONResponse(status_code=404, content={"error": "Run not found"})


@app.exception_handler(DispatchError)
async def dispatch_error_handler(request: Request, exc: DispatchError):
    return _error_response(502, exc)


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return _error_response(409, exc)


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return _error_response(409, exc)


@app.exception_handler(RunHubError)
async def run_hub_error_handler(request: Request, exc: RunHubError):
    logger.error(f"Unhandled {exc.__class__.__name__} on {request.url.path}: {exc.message}")
    return _error_response(500, exc)


@app.on_event("startup")
async def startup_event():
    """Wait for the database and create any missing tables."""
    from runhub.database import wait_for_database

    logger.info("Starting application...")
    wait_for_database()


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": "Run Hub",
        "version": "0.1.0",
        "status": "running",
    }
