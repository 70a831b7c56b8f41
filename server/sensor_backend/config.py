# Settings are read from environment variables (a .env file is loaded first).
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL

load_dotenv()


@dataclass
class Settings:
    database_url: str
    mqtt_url: Optional[str] = None
    mqtt_topic: str = "esp32/sensor"
    mqtt_client_id: str = ""
    http_host: str = "0.0.0.0"
    http_port: int = 3000
    log_level: str = "INFO"


def database_url_from_env() -> str:
    # MYSQL_URL wins; otherwise build it from the separate MYSQL_* variables.
    url = os.getenv("MYSQL_URL")
    if url:
        return url

    host = os.getenv("MYSQL_HOST")
    database = os.getenv("MYSQL_DATABASE")
    if not host or not database:
        raise ValueError("MYSQL_URL or MYSQL_HOST/MYSQL_DATABASE must be set in the environment or .env")

    return URL.create(
        "mysql+pymysql",
        username=os.getenv("MYSQL_USER"),
        password=os.getenv("MYSQL_PASSWORD"),
        host=host,
        port=int(os.getenv("MYSQL_PORT", "3306")),
        database=database,
    ).render_as_string(hide_password=False)


def load_settings() -> Settings:
    return Settings(
        database_url=database_url_from_env(),
        mqtt_url=os.getenv("MQTT_URL") or None,
        mqtt_topic=os.getenv("MQTT_TOPIC", "esp32/sensor"),
        mqtt_client_id=os.getenv("MQTT_CLIENT_ID", ""),
        http_host=os.getenv("HTTP_HOST", "0.0.0.0"),
        http_port=int(os.getenv("HTTP_PORT", "3000")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
