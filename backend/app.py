"""
=============================================================================
ELECTRICITY USAGE TRACKER - READ-ONLY FLASK API
=============================================================================
Serves what the daily fetch (backend/fetch_usage.py) has stored:
- Daily usage records for a date range
- The billing-cycle total for any date
- A cost estimate for an arbitrary kWh figure under the configured tariff

How to run:
    python -m backend.app

Then visit: http://127.0.0.1:5000/billing-cycle
=============================================================================
"""

# =============================================================================
# IMPORTS
# =============================================================================

# Flask - web framework; jsonify turns dicts into JSON responses
from flask import Flask, request, jsonify

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from backend.lib.config import load_settings
from backend.lib.usage_core.billing_cycle import billing_cycle_for, summarize
from backend.lib.usage_core.estimator import BillingEstimator
from backend.lib.usage_core.window import JST
from backend.lib.usage_store import build_usage_store

# =============================================================================
# SERVICE INITIALIZATION
# =============================================================================
# Settings come from the environment (.env is loaded by load_settings).
# The store is the local JSONL file unless USE_DYNAMODB=true.

settings = load_settings()
usage_store = build_usage_store(settings)
estimator = BillingEstimator(settings.tariff)

app = Flask(__name__)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def today_local() -> date:
    return datetime.now(timezone.utc).astimezone(JST).date()


def parse_date_arg(name: str, default=None):
    """
    Read a YYYY-MM-DD query parameter.

    Raises:
        ValueError: the parameter is present but not a date
    """
    raw = request.args.get(name)
    if not raw:
        return default
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValueError(f"{name} must be a YYYY-MM-DD date")


# =============================================================================
# API ROUTES
# =============================================================================

@app.route("/health")
def health():
    return jsonify({"status": "ok", "storage": "dynamodb" if settings.use_dynamodb else "local"})


@app.route("/usage", methods=["GET"])
def usage():
    """
    Daily records between `from` and `to` (inclusive).
    Without parameters, the current billing cycle.

    Example Response:
        {
            "from": "2024-01-01", "to": "2024-01-02",
            "data": [{"date": "2024-01-01", "kwh": "8.400", "estimated_cost": "202.31"}]
        }
    """
    cycle = billing_cycle_for(today_local(), settings.billing_cycle_day)
    try:
        start = parse_date_arg("from", cycle.start)
        end = parse_date_arg("to", cycle.end)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    if start > end:
        return jsonify({"error": "from must not be after to"}), 400

    records = usage_store.query_range(start, end)
    return jsonify({
        "from": start.isoformat(),
        "to": end.isoformat(),
        "data": [r.to_dict() for r in records],
    })


@app.route("/billing-cycle", methods=["GET"])
def billing_cycle():
    """
    Totals for the billing cycle containing `date` (default: today, JST).
    Days not fetched yet count as zero.
    """
    try:
        day = parse_date_arg("date", today_local())
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    summary = summarize(usage_store, billing_cycle_for(day, settings.billing_cycle_day))
    return jsonify(summary.to_dict())


@app.route("/estimate", methods=["GET"])
def estimate():
    """
    Cost of `kwh` under the configured tariff, with the per-band split.

    Example Request:
        GET /estimate?kwh=0.8
    """
    raw = request.args.get("kwh")
    if raw is None:
        return jsonify({"error": "kwh required"}), 400
    try:
        kwh = Decimal(raw)
        if not kwh.is_finite():
            raise InvalidOperation
    except InvalidOperation:
        return jsonify({"error": "kwh must be a number"}), 400

    parts = estimator.breakdown(kwh)
    return jsonify({
        "kwh": str(kwh),
        "estimated_cost": str(estimator.estimate_cost(kwh)),
        "breakdown": {name: str(amount) for name, amount in parts.items()},
        "currency": "JPY",
    })


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    app.run(debug=True)
