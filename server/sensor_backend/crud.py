from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from . import models

LATEST_DEFAULT = 50
LATEST_MIN = 1
LATEST_MAX = 1000


# Insert one reading and return it with the id assigned by the database
def create_reading(db: Session, suhu: float, humidity: float, lux: float, timestamp: datetime):
    db_item = models.SensorReading(suhu=suhu, humidity=humidity, lux=lux, timestamp=timestamp)
    db.add(db_item)
    db.commit()
    db.refresh(db_item)
    return db_item


def clamp_limit(n: int) -> int:
    return max(LATEST_MIN, min(LATEST_MAX, n))


# First n rows by ascending id, i.e. the oldest ones
def get_latest(db: Session, n: int = LATEST_DEFAULT):
    return (
        db.query(models.SensorReading)
        .order_by(models.SensorReading.id.asc())
        .limit(clamp_limit(n))
        .all()
    )


def month_year(ts: datetime) -> str:
    # "3-2024": month is not zero padded
    return f"{ts.month}-{ts.year}"


def get_summary(db: Session) -> dict:
    Reading = models.SensorReading

    suhumax, suhmin, suhurata = db.execute(
        select(func.max(Reading.suhu), func.min(Reading.suhu), func.round(func.avg(Reading.suhu), 2))
    ).one()

    # Both maxima are taken over the whole table independently, so this can match nothing.
    max_suhu = select(func.max(Reading.suhu)).scalar_subquery()
    max_humidity = select(func.max(Reading.humidity)).scalar_subquery()
    top = (
        db.query(Reading)
        .filter(Reading.suhu == max_suhu, Reading.humidity == max_humidity)
        .order_by(Reading.id.asc())
        .all()
    )

    return {
        "suhumax": suhumax,
        "suhmin": suhmin,
        "suhurata": float(suhurata) if suhurata is not None else None,
        "nilai_suhu_max_humid_max": [
            {
                "idx": r.id,
                "suhun": r.suhu,
                "humid": r.humidity,
                "kecerahan": r.lux,
                "timestamp": r.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            }
            for r in top
        ],
        "month_year_max": [{"month_year": month_year(r.timestamp)} for r in top],
    }
