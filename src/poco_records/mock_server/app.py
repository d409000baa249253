"""Flask application serving a mock /patients REST resource.

Mirrors the contract of the real service closely enough for local
development: paginated search, 201 on create, 204 on delete, 404 for unknown
ids and 400 VALIDATION_ERROR bodies with a field error map.
"""

import logging
import time
from datetime import date, datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from flask import Blueprint, Flask, current_app, jsonify, request

from poco_records.models.patient import Gender
from poco_records.utils.exceptions import VALIDATION_ERROR_CODE

from .config import MockServerConfig, load_mock_config
from .store import PatientStore

logger = logging.getLogger("poco_records.mock_server")

NOT_FOUND_CODE = "NOT_FOUND"
INTERNAL_ERROR_CODE = "INTERNAL_ERROR"

_REQUIRED_FIELDS = {
    "firstName": "First name is required",
    "lastName": "Last name is required",
    "dateOfBirth": "Date of birth is required",
    "gender": "Gender is required",
    "email": "Email is required",
}


def setup_logging(config: MockServerConfig) -> logging.Logger:
    """Configure logging for mock server with rotation."""
    logger.setLevel(config.log_level)
    logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_path = Path(config.log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


def error_body(code: str, message: str, errors: Optional[dict[str, list[str]]] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"code": code, "message": message}
    if errors:
        body["errors"] = errors
    return body


def validate_patient_body(body: Any) -> dict[str, list[str]]:
    """Return wire field name -> messages for an invalid create/update body."""
    if not isinstance(body, dict):
        return {"body": ["Request body must be a JSON object"]}

    errors: dict[str, list[str]] = {}
    for field, message in _REQUIRED_FIELDS.items():
        value = body.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors[field] = [message]

    dob = body.get("dateOfBirth")
    if "dateOfBirth" not in errors:
        try:
            if date.fromisoformat(str(dob)[:10]) > date.today():
                errors["dateOfBirth"] = ["Date of birth cannot be in the future"]
        except ValueError:
            errors["dateOfBirth"] = ["Invalid date format"]

    if "gender" not in errors and body.get("gender") not in {g.value for g in Gender}:
        errors["gender"] = ["Invalid gender"]

    for field, limit in (("height", 300), ("weight", 500)):
        value = body.get(field)
        if value is None:
            continue
        is_number = isinstance(value, (int, float)) and not isinstance(value, bool)
        if not is_number or not 0 < value <= limit:
            errors[field] = [f"{field.capitalize()} must be greater than 0 and at most {limit}"]

    return errors


def _store() -> PatientStore:
    return current_app.config["PATIENT_STORE"]


def _validation_failed(errors: dict[str, list[str]], message: str = "Validation failed"):
    logger.info("Rejected request with invalid fields: %s", ", ".join(errors))
    return jsonify(error_body(VALIDATION_ERROR_CODE, message, errors)), 400


def _not_found(patient_id: str):
    logger.info("Patient %s not found", patient_id)
    return jsonify(error_body(NOT_FOUND_CODE, "Patient not found")), 404


def _int_arg(name: str, default: int) -> Optional[int]:
    """Integer query argument; None when present but not an integer."""
    if name not in request.args:
        return default
    return request.args.get(name, type=int)


patients_bp = Blueprint("patients", __name__)


@patients_bp.route("/patients", methods=["GET"])
def list_patients():
    max_page_size = current_app.config["MOCK_CONFIG"].max_page_size
    errors: dict[str, list[str]] = {}
    page = _int_arg("page", 1)
    page_size = _int_arg("pageSize", 10)
    if page is None or page < 1:
        errors["page"] = ["Page must be a positive number"]
    if page_size is None or not 1 <= page_size <= max_page_size:
        errors["pageSize"] = [f"Page size must be between 1 and {max_page_size}"]
    if errors:
        return _validation_failed(errors, "Invalid pagination parameters")

    search = request.args.get("search", "")
    return jsonify(_store().list_page(page, page_size, search)), 200


@patients_bp.route("/patients/<patient_id>", methods=["GET"])
def get_patient(patient_id: str):
    record = _store().get(patient_id)
    if record is None:
        return _not_found(patient_id)
    return jsonify(record), 200


@patients_bp.route("/patients", methods=["POST"])
def create_patient():
    body = request.get_json(silent=True)
    errors = validate_patient_body(body)
    if errors:
        return _validation_failed(errors)
    record = _store().create(body)
    logger.info("Created patient %s", record["id"])
    return jsonify(record), 201


@patients_bp.route("/patients/<patient_id>", methods=["PUT"])
def update_patient(patient_id: str):
    if _store().get(patient_id) is None:
        return _not_found(patient_id)
    body = request.get_json(silent=True)
    errors = validate_patient_body(body)
    if errors:
        return _validation_failed(errors)
    record = _store().update(patient_id, body)
    if record is None:
        return _not_found(patient_id)
    logger.info("Updated patient %s", patient_id)
    return jsonify(record), 200


@patients_bp.route("/patients/<patient_id>", methods=["DELETE"])
def delete_patient(patient_id: str):
    if not _store().delete(patient_id):
        return _not_found(patient_id)
    logger.info("Deleted patient %s", patient_id)
    return "", 204


def create_app(
    config: Optional[MockServerConfig] = None,
    store: Optional[PatientStore] = None,
) -> Flask:
    """Build a mock server application.

    Args:
        config: Mock server configuration (defaults when None)
        store: Patient store to serve; a fresh one is created when None

    Returns:
        Flask application with the patients routes under ``config.api_prefix``
    """
    config = config or MockServerConfig()
    app = Flask(__name__)
    app.config["MOCK_CONFIG"] = config
    app.config["PATIENT_STORE"] = store if store is not None else PatientStore(seed=config.seed_data)
    app.config["START_TIME"] = datetime.now(timezone.utc)
    app.config["REQUEST_COUNT"] = 0

    @app.before_request
    def log_request():
        app.config["REQUEST_COUNT"] += 1
        logger.info(
            f"Request #{app.config['REQUEST_COUNT']}: {request.method} {request.full_path} "
            f"(Content-Length: {request.content_length or 0})"
        )
        if config.response_delay_ms:
            time.sleep(config.response_delay_ms / 1000.0)

    @app.route("/health", methods=["GET"])
    def health_check():
        uptime_seconds = int(
            (datetime.now(timezone.utc) - app.config["START_TIME"]).total_seconds()
        )
        return jsonify({
            "status": "healthy",
            "port": config.http_port,
            "endpoints": ["/health", f"{config.api_prefix}/patients"],
            "patient_count": len(app.config["PATIENT_STORE"]),
            "uptime_seconds": uptime_seconds,
            "request_count": app.config["REQUEST_COUNT"],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }), 200

    @app.errorhandler(404)
    def route_not_found(error):
        return jsonify(error_body(NOT_FOUND_CODE, "Resource not found")), 404

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify(error_body(INTERNAL_ERROR_CODE, "Internal server error")), 500

    app.register_blueprint(patients_bp, url_prefix=config.api_prefix)
    return app


def run_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    config: Optional[MockServerConfig] = None,
    debug: bool = False,
) -> None:
    """Run the mock server in the foreground until interrupted.

    Args:
        host: Host address (overrides config)
        port: Port number (overrides config)
        config: Mock server configuration (loads from file if not provided)
        debug: Enable Flask debug mode
    """
    if config is None:
        config = load_mock_config()
    if port is not None:
        config = config.model_copy(update={"http_port": port})
    host = host or config.host

    setup_logging(config)
    app = create_app(config)

    logger.info(f"Starting mock patients service on http://{host}:{config.http_port}")
    logger.info(f"Patients resource: http://{host}:{config.http_port}{config.api_prefix}/patients")

    app.run(host=host, port=config.http_port, debug=debug, use_reloader=False)
