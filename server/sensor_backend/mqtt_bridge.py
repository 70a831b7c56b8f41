# MQTT -> database bridge: one data_sensor row per valid JSON message on a single topic.
# Best effort: unparseable, non-numeric or failed messages are logged and dropped, never retried.

import json
import logging
import ssl
from typing import Optional
from urllib.parse import urlparse

import paho.mqtt.client as mqtt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from . import crud
from .validation import coerce_reading, now_local

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"mqtt": 1883, "tcp": 1883, "mqtts": 8883, "ssl": 8883}


# mqtt[s]://user:pass@host:port -> connection arguments
def parse_broker_url(url: str) -> dict:
    parsed = urlparse(url if "://" in url else f"mqtt://{url}")
    scheme = parsed.scheme or "mqtt"
    if scheme not in DEFAULT_PORTS:
        raise ValueError(f"Unsupported MQTT scheme: {scheme}")
    if not parsed.hostname:
        raise ValueError(f"MQTT_URL has no host: {url}")
    return {
        "host": parsed.hostname,
        "port": parsed.port or DEFAULT_PORTS[scheme],
        "tls": scheme in ("mqtts", "ssl"),
        "username": parsed.username,
        "password": parsed.password,
    }


class SensorBridge:
    def __init__(self, broker_url: str, session_factory: sessionmaker,
                 topic: str = "esp32/sensor", client_id: str = ""):
        self.broker_url = broker_url
        self.session_factory = session_factory
        self.topic = topic
        self.client_id = client_id
        self._client: Optional[mqtt.Client] = None

    # -------------------------------------------------------------------------
    # Message handling (usable without a broker)
    # -------------------------------------------------------------------------

    # Returns the inserted row, or None when the message was ignored or dropped
    def handle_message(self, topic: str, payload: bytes):
        if topic != self.topic:
            return None

        try:
            data = json.loads(payload.decode("utf-8"))
        except ValueError as e:
            # JSONDecodeError, UnicodeDecodeError and int digit-limit errors are all ValueErrors
            logger.error("MQTT error: cannot parse payload on %s: %s", topic, e)
            return None
        if not isinstance(data, dict):
            logger.error("MQTT error: payload on %s is not a JSON object", topic)
            return None

        values = coerce_reading(data.get("suhu"), data.get("humidity"), data.get("lux"))
        if values is None:
            logger.debug("Dropping non-numeric reading from %s: %s", topic, data)
            return None
        suhu, humidity, lux = values

        db = self.session_factory()
        try:
            item = crud.create_reading(db, suhu, humidity, lux, now_local())
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("MQTT error: insert failed: %s", e)
            return None
        finally:
            db.close()

        logger.info("Inserted from MQTT: id=%s suhu=%s humidity=%s lux=%s", item.id, suhu, humidity, lux)
        return item

    # -------------------------------------------------------------------------
    # paho-mqtt callbacks
    # -------------------------------------------------------------------------

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.error("MQTT connect refused: %s", reason_code)
            return
        logger.info("MQTT connected, subscribing to %s", self.topic)
        client.subscribe(self.topic)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties):
        logger.warning("MQTT disconnected: %s", reason_code)

    def _on_message(self, client, userdata, msg):
        self.handle_message(msg.topic, msg.payload)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        broker = parse_broker_url(self.broker_url)

        client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=self.client_id)
        if broker["username"]:
            client.username_pw_set(broker["username"], broker["password"])
        if broker["tls"]:
            client.tls_set(cert_reqs=ssl.CERT_REQUIRED)
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message

        client.connect_async(broker["host"], broker["port"])
        client.loop_start()
        self._client = client
        logger.info("MQTT bridge started for %s:%s", broker["host"], broker["port"])

    def stop(self) -> None:
        if self._client is None:
            return
        self._client.disconnect()
        self._client.loop_stop()
        self._client = None
        logger.info("MQTT bridge stopped")
