import logging
import time

from fastapi import FastAPI
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from . import models  # noqa: F401  registers tables on Base.metadata
from .config import LOG_LEVEL
from .database import Base, SessionLocal, engine
from .routes import include_routers

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Roomie Match API")
include_routers(app)


def wait_for_db(max_attempts: int = 20, delay_seconds: float = 1.5) -> None:
    last_err: Exception | None = None
    for _ in range(max_attempts):
        try:
            with SessionLocal() as db:
                db.execute(text("SELECT 1"))
                db.commit()
            return
        except OperationalError as exc:
            last_err = exc
            logger.warning("Database not ready, retrying in %.1fs", delay_seconds)
            time.sleep(delay_seconds)
    if last_err:
        raise last_err


def init_schema() -> None:
    Base.metadata.create_all(bind=engine)


@app.on_event("startup")
def on_startup() -> None:
    wait_for_db()
    init_schema()
    logger.info("Roomie Match API ready")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
