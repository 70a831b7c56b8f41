import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud, database, schemas
from .config import Settings, load_settings
from .errors import ApiError, ErrorKind, INVALID_LIMIT, INVALID_NUMBERS, INVALID_TIMESTAMP, STORE_UNAVAILABLE
from .mqtt_bridge import SensorBridge
from .validation import coerce_reading, normalize_timestamp, parse_leading_int

logger = logging.getLogger(__name__)


# Dependency: one DB session per request, taken from the app's session factory
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    bridge: Optional[SensorBridge] = None
    if settings.mqtt_url:
        bridge = SensorBridge(
            settings.mqtt_url,
            app.state.session_factory,
            topic=settings.mqtt_topic,
            client_id=settings.mqtt_client_id,
        )
        bridge.start()
    else:
        logger.warning("MQTT_URL not set, ingestion bridge disabled")
    app.state.bridge = bridge

    yield

    if bridge is not None:
        bridge.stop()
    app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()

    engine = database.make_engine(settings.database_url)
    # Create the table on startup if it is missing
    database.init_db(engine)

    app = FastAPI(title="Sensor Data Backend", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = database.make_session_factory(engine)
    app.state.bridge = None

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.kind.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=ErrorKind.INVALID_INPUT.status_code, content={"error": "invalid request"})

    # --- API ENDPOINTS ---

    # 1. Manual insert
    @app.post("/api/insert", response_model=schemas.InsertOut)
    def insert_reading(data: schemas.SensorIn, db: Session = Depends(get_db)):
        values = coerce_reading(data.suhu, data.humidity, data.lux)
        if values is None:
            raise ApiError(ErrorKind.INVALID_INPUT, INVALID_NUMBERS)
        try:
            ts = normalize_timestamp(data.timestamp)
        except ValueError:
            raise ApiError(ErrorKind.INVALID_INPUT, INVALID_TIMESTAMP)

        suhu, humidity, lux = values
        try:
            item = crud.create_reading(db, suhu, humidity, lux, ts)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Insert failed")
            raise ApiError(ErrorKind.STORE_FAILURE, STORE_UNAVAILABLE)
        return {"ok": True, "id": item.id}

    # 2. First n readings in id order (the oldest, despite the name)
    @app.get("/api/latest", response_model=list[schemas.SensorOut])
    def latest_readings(n: Optional[str] = None, db: Session = Depends(get_db)):
        # parsed like parseInt: "" -> default, "5.7" -> 5, "12abc" -> 12
        try:
            limit = parse_leading_int(n, crud.LATEST_DEFAULT, crud.LATEST_MAX)
        except ValueError:
            raise ApiError(ErrorKind.INVALID_INPUT, INVALID_LIMIT)
        try:
            return crud.get_latest(db, limit)
        except SQLAlchemyError:
            logger.exception("Latest query failed")
            raise ApiError(ErrorKind.STORE_FAILURE, STORE_UNAVAILABLE)

    # 3. Aggregates over the whole table
    @app.get("/api/summary", response_model=schemas.SummaryOut)
    def summary(db: Session = Depends(get_db)):
        try:
            return crud.get_summary(db)
        except SQLAlchemyError:
            logger.exception("Summary query failed")
            raise ApiError(ErrorKind.STORE_FAILURE, STORE_UNAVAILABLE)

    return app


def run() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(settings)
    logger.info("Server running at http://localhost:%s", settings.http_port)
    uvicorn.run(app, host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    run()
