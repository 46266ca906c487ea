from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container, build_memory_container
from .core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS, DEFAULT_TTL_MINUTES
from .database.bootstrap import DEMO_EMPLOYEES, DEMO_EVENTS, apply_schema, list_tables, seed_demo_data
from .directory.memory_directory import InMemoryEmployeeDirectory, InMemoryEventDirectory
from .leave.controller import register as register_leave
from .tokens.controller import register as register_tokens

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _memory_container(settings) -> Container:
    events = InMemoryEventDirectory()
    employees = InMemoryEmployeeDirectory()
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        for event_id, event_name in DEMO_EVENTS:
            events.add(event_id, event_name)
        for employee_id, full_name in DEMO_EMPLOYEES:
            employees.add(employee_id, full_name)
    return build_memory_container(
        events=events,
        employees=employees,
        lock_timeout=float(getattr(settings, "LOCK_TIMEOUT_SECONDS", DEFAULT_LOCK_TIMEOUT_SECONDS)),
        default_ttl_minutes=int(getattr(settings, "QR_DEFAULT_TTL_MINUTES", DEFAULT_TTL_MINUTES)),
    )


def _mysql_container(settings) -> Container:
    db_config = getattr(settings, "DB_CONFIG")
    logger.info(
        "Using MySQL at %s@%s:%s/%s",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        seed_demo_data(db_config)
        logger.info("Demo seed ready")

    return build_container(
        db_config=db_config,
        lock_timeout=float(getattr(settings, "LOCK_TIMEOUT_SECONDS", DEFAULT_LOCK_TIMEOUT_SECONDS)),
        default_ttl_minutes=int(getattr(settings, "QR_DEFAULT_TTL_MINUTES", DEFAULT_TTL_MINUTES)),
    )


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app.

    ``container`` overrides the settings-driven wiring (used by tests).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    logger.info("Loaded settings from %s", settings_module)

    if container is None:
        backend = str(getattr(settings, "STORE_BACKEND", "mysql")).lower()
        container = _memory_container(settings) if backend == "memory" else _mysql_container(settings)
    app.extensions["qr_attendance"] = container

    register_tokens(app, container)
    register_attendance(app, container)
    register_leave(app, container)

    @app.route("/health", endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    return app
