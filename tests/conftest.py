from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from sensor_backend import models
from sensor_backend.config import Settings
from sensor_backend.main import create_app


@pytest.fixture
def app(tmp_path):
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'sensor.db'}")
    app = create_app(settings)
    yield app
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def session_factory(app):
    return app.state.session_factory


@pytest.fixture
def add_rows(session_factory):
    """Insert (suhu, humidity[, lux[, timestamp]]) tuples directly into the table."""

    def _add(*rows):
        db = session_factory()
        try:
            for row in rows:
                suhu, humidity = row[0], row[1]
                lux = row[2] if len(row) > 2 else 100.0
                ts = row[3] if len(row) > 3 else datetime(2024, 3, 1, 12, 0, 0)
                db.add(models.SensorReading(suhu=suhu, humidity=humidity, lux=lux, timestamp=ts))
            db.commit()
        finally:
            db.close()

    return _add


@pytest.fixture
def count_rows(session_factory):
    def _count():
        db = session_factory()
        try:
            return db.query(models.SensorReading).count()
        finally:
            db.close()

    return _count
