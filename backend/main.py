"""
FastAPI backend for the portfolio P&L tracker
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging
import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from backend.routers import portfolios, trades
from pnltracker.db import db

logging.basicConfig(
    level=os.getenv("PNL_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

CORS_ORIGINS = os.getenv(
    "PNL_CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
).split(",")

app = FastAPI(
    title="Portfolio P&L Tracker API",
    description="API for tracking portfolios, trades and realized P&L",
    version="1.0.0"
)


@app.on_event("startup")
async def startup_event():
    """
    Make sure the schema exists before the first request.

    CREATE TABLE IF NOT EXISTS is idempotent, so this never touches
    existing data.
    """
    try:
        conn = db._get_connection()
        db._create_tables(conn.cursor())
        conn.commit()
        db._release(conn)
        logger.info(f"Database initialized: {db.db_path}")
    except Exception:
        # Let the app start; requests will surface the storage error
        logger.exception("Database initialization failed")


def _validation_errors(exc: RequestValidationError):
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors, reported as 400"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": _validation_errors(exc)},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
        }
    )

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(portfolios.router, prefix="/api/portfolios", tags=["portfolios"])
app.include_router(trades.router, prefix="/api/trades", tags=["trades"])


@app.get("/")
async def root():
    return {"message": "Portfolio P&L Tracker API", "version": "1.0.0"}


@app.get("/api/health")
async def health():
    return {"status": "healthy"}
