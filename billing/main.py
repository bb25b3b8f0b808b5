from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from billing import database
from billing.core.logging import configure_logging
from billing.routers import auth, customers, documents, expenses, invoicing, projects, time_entries

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    database.configure_database()
    logger.info("Billing service started", extra={"version": VERSION})
    yield


app = FastAPI(
    title="Billing",
    version=VERSION,
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception(
            "Unhandled exception",
            extra={"path": request.url.path, "company_id": getattr(request.state, "company_id", None)},
        )
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


for module in (auth, customers, projects, time_entries, expenses, invoicing, documents):
    app.include_router(module.router)


@app.get("/")
def root():
    return {"status": "Billing running"}


@app.get("/health")
def health():
    db = database.SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        db_status = "unavailable"
    finally:
        db.close()

    return JSONResponse(
        status_code=200 if db_status == "ok" else 503,
        content={"status": db_status, "database": db_status, "version": VERSION},
    )
