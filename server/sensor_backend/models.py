# ORM mapping of the data_sensor table.

from sqlalchemy import Column, Integer, Float, DateTime
from .database import Base


# One row per sensor sample (temperature, humidity, light).
class SensorReading(Base):
    __tablename__ = "data_sensor"
    id = Column(Integer, primary_key=True, autoincrement=True)
    suhu = Column(Float, nullable=False)
    humidity = Column(Float, nullable=False)
    lux = Column(Float, nullable=False)
    # naive local time, whole seconds
    timestamp = Column(DateTime(timezone=False), nullable=False)
