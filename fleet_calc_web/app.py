"""JSON web service over the fleet calculator.

The service generates and stores a vehicle's EMI schedule when the vehicle is
onboarded, reports its status and due installments, records installment
payments one entry at a time and computes profit splits on demand.

Run it with ``flask --app fleet_calc_web.app run``; the database location is
taken from ``FLEET_DATABASE_URL``.
"""

import logging
import os
from datetime import date
from typing import Optional

from flask import Flask, jsonify, request

from fleet_calc.config import load_defaults
from fleet_calc.engine import classify, derive_status, generate_schedule, schedule_warnings
from fleet_calc.exceptions import ValidationError
from fleet_calc.serialization import (
    classification_to_dict,
    entry_to_dict,
    period_from_dict,
    schedule_to_list,
    split_to_dict,
    status_to_dict,
    terms_from_dict,
    terms_to_dict,
)
from fleet_calc.split import compute_split
from fleet_calc.utils import parse_date
from fleet_calc_web.schedule_store import ScheduleStore, VehicleNotFound, create_store_from_env

logger = logging.getLogger(__name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _today_from_query() -> date:
    value = request.args.get("today")
    return parse_date(value) if value else date.today()


def create_app(store: Optional[ScheduleStore] = None) -> Flask:
    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    defaults = load_defaults()
    schedule_store = store or create_store_from_env(os.environ.get("FLEET_DATABASE_URL"))

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        logger.warning("Rejected %s %s: %s", request.method, request.path, exc)
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(VehicleNotFound)
    def handle_missing_vehicle(exc: VehicleNotFound):
        return jsonify({"error": f"No loan stored for vehicle {exc.args[0]}"}), 404

    @app.get("/vehicles")
    def list_vehicles():
        return jsonify({"vehicles": schedule_store.list_vehicles()})

    @app.post("/vehicles/<vehicle_id>/loan")
    def create_loan(vehicle_id: str):
        data = _json_body()
        data.setdefault("annual_rate_percent", str(defaults.default_interest_rate_percent))
        terms = terms_from_dict(data)
        schedule = generate_schedule(terms, synthetic_paid_offset_days=defaults.synthetic_paid_offset_days)
        schedule_store.save(vehicle_id, terms, schedule)
        payload = {
            "vehicle_id": vehicle_id,
            "terms": terms_to_dict(terms),
            "schedule": schedule_to_list(schedule),
            "status": status_to_dict(derive_status(schedule)),
            "warnings": schedule_warnings(schedule),
        }
        return jsonify(payload), 201

    @app.get("/vehicles/<vehicle_id>/loan")
    def get_loan(vehicle_id: str):
        terms, schedule = schedule_store.load(vehicle_id)
        return jsonify(
            {
                "vehicle_id": vehicle_id,
                "terms": terms_to_dict(terms),
                "schedule": schedule_to_list(schedule),
                "status": status_to_dict(derive_status(schedule)),
                "warnings": schedule_warnings(schedule),
            }
        )

    @app.delete("/vehicles/<vehicle_id>/loan")
    def delete_loan(vehicle_id: str):
        if not schedule_store.remove(vehicle_id):
            raise VehicleNotFound(vehicle_id)
        return "", 204

    @app.get("/vehicles/<vehicle_id>/loan/due")
    def loan_due(vehicle_id: str):
        _, schedule = schedule_store.load(vehicle_id)
        raw_grace = request.args.get("grace_days")
        if raw_grace is None:
            grace = defaults.grace_days_before_due
        else:
            try:
                grace = int(raw_grace)
            except ValueError:
                raise ValidationError(f"grace_days must be an integer; got {raw_grace!r}") from None
        result = classify(schedule, _today_from_query(), grace)
        return jsonify(classification_to_dict(result))

    @app.post("/vehicles/<vehicle_id>/loan/entries/<int:index>/pay")
    def pay_entry(vehicle_id: str, index: int):
        data = request.get_json(silent=True) or {}
        paid_value = data.get("paid_date") if isinstance(data, dict) else None
        paid_date = parse_date(paid_value) if paid_value else date.today()
        entry = schedule_store.mark_paid(vehicle_id, index, paid_date)
        _, schedule = schedule_store.load(vehicle_id)
        return jsonify({"entry": entry_to_dict(entry), "status": status_to_dict(derive_status(schedule))})

    @app.post("/split")
    def split():
        rates = {
            "tax_rate_percent": defaults.tax_rate_percent,
            "service_charge_rate_percent": defaults.service_charge_rate_percent,
            "partner_share_percent": defaults.partner_share_percent,
        }
        period = period_from_dict(_json_body(), rates)
        return jsonify(split_to_dict(compute_split(period)))

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Starting fleet calculator service...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
