"""Sensor telemetry backend: MQTT ingestion plus a small HTTP API over data_sensor."""
