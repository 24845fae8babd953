"""Academy access package.

Roles and permissions, authorization decisions, approval workflows and
student serial allocation for the academy backend. Organized by feature
modules with a thin Flask JSON controller layer over service/repository
layers.
"""
from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .core.log import configure_logging
from .database.bootstrap import apply_schema, ensure_system_roles, list_tables

from .container import build_container
from .common.http import register_error_handlers
from .roles.controller import register as register_roles
from .approvals.controller import register as register_approvals
from .serials.controller import register as register_serials

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
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
        seeded = ensure_system_roles(db_config)
        logger.info("System roles ready (%s)", ", ".join(seeded))

    container = build_container(db_config=db_config)

    register_error_handlers(app)
    register_roles(app, container)
    register_approvals(app, container)
    register_serials(app, container)

    return app
