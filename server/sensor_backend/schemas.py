from pydantic import BaseModel
from typing import Any, List, Optional, Union
from datetime import datetime


# Body of POST /api/insert. The numeric fields are checked by hand so that
# strings like "25.4" are accepted and "abc" becomes a 400, not a 422.
class SensorIn(BaseModel):
    suhu: Any = None
    humidity: Any = None
    lux: Any = None
    # date-time string or epoch milliseconds; may be left out, the server then uses the current time
    timestamp: Union[str, int, float, None] = None


class InsertOut(BaseModel):
    ok: bool = True
    id: int


# Rows returned by GET /api/latest
class SensorOut(BaseModel):
    id: int
    suhu: float
    humidity: float
    lux: float
    timestamp: datetime

    class Config:
        from_attributes = True


class MaxReading(BaseModel):
    idx: int
    suhun: float
    humid: float
    kecerahan: float
    timestamp: str


class MonthYear(BaseModel):
    month_year: str


class SummaryOut(BaseModel):
    suhumax: Optional[float] = None
    suhmin: Optional[float] = None
    suhurata: Optional[float] = None
    nilai_suhu_max_humid_max: List[MaxReading] = []
    month_year_max: List[MonthYear] = []
