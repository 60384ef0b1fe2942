"""Flask JSON API for the Budget Tracker."""

from __future__ import annotations

import logging
import math
import sqlite3
from functools import wraps
from typing import Any, Dict, List, Mapping, Optional, Tuple

from flask import Flask, g, jsonify, request, session
from werkzeug.security import check_password_hash, generate_password_hash

from .aggregation import enrich_budgets
from .analytics import monthly_totals, spending_by_category, spending_trend, summarize_totals
from .calendar_map import build_calendar_map, parse_month
from .config import AppConfig, Clock, system_clock
from .db import BudgetStore, TransactionStore, close_db, get_db, init_db
from .models import TRANSACTION_TYPES, Budget, Transaction, month_tag
from .timeline import CUSTOM, TimelineResolutionError, as_date, normalize_timeline

logger = logging.getLogger(__name__)

_BUDGET_FIELDS = {
    "limit": "limit_amount",
    "timeline": "timeline",
    "startDate": "start_date",
    "endDate": "end_date",
}


def _error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def _errors(errors: List[str], status: int = 400):
    return jsonify({"error": errors[0], "errors": errors}), status


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _parse_amount(value: Any, label: str, errors: List[str]) -> Optional[float]:
    if value is None or value == "":
        errors.append(f"{label} is required.")
        return None
    if isinstance(value, bool):
        errors.append(f"{label} must be a valid number.")
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        errors.append(f"{label} must be a valid number.")
        return None
    if not math.isfinite(amount):
        errors.append(f"{label} must be a valid number.")
        return None
    if amount < 0:
        errors.append(f"{label} cannot be negative.")
        return None
    return amount


def _parse_transaction(data: Mapping[str, Any], base: Optional[Transaction] = None) -> Tuple[Optional[Transaction], List[str]]:
    """Validate a transaction payload. With ``base`` missing fields keep their value."""
    errors: List[str] = []
    merged: Dict[str, Any] = base.to_dict() if base else {}
    merged.update({k: v for k, v in data.items() if k in {"date", "amount", "category", "description", "type"}})

    date_value = None
    if not merged.get("date"):
        errors.append("Date is required.")
    else:
        try:
            date_value = as_date(merged["date"])
        except TimelineResolutionError:
            errors.append("Date must be in YYYY-MM-DD format.")
    amount = _parse_amount(merged.get("amount"), "Amount", errors)
    category = str(merged.get("category") or "").strip()
    if not category:
        errors.append("Category is required.")
    tx_type = merged.get("type")
    if tx_type not in TRANSACTION_TYPES:
        errors.append("Type must be 'income' or 'expense'.")
    if errors:
        return None, errors
    description = merged.get("description")
    return (
        Transaction(
            id=base.id if base else None,
            date=date_value,
            amount=amount,
            category=category,
            type=tx_type,
            description=str(description).strip() if description else None,
        ),
        [],
    )


def _parse_budget_changes(data: Mapping[str, Any], *, creating: bool) -> Tuple[Dict[str, Any], List[str]]:
    """Normalize budget fields from a payload. Custom ranges are stored as given."""
    errors: List[str] = []
    changes: Dict[str, Any] = {}
    if creating:
        category = str(data.get("category") or "").strip()
        if not category:
            errors.append("Category is required.")
        changes["category"] = category
    if creating or "limit" in data:
        changes["limit"] = _parse_amount(data.get("limit"), "Limit", errors)
    if creating or "timeline" in data:
        changes["timeline"] = normalize_timeline(data.get("timeline"))
    if changes.get("timeline") == CUSTOM or "timeline" not in changes:
        for key, label in (("startDate", "Start date"), ("endDate", "End date")):
            if creating or key in data:
                value = data.get(key) or None
                if value is not None and not isinstance(value, str):
                    errors.append(f"{label} must be a string.")
                    continue
                changes[key] = value
    else:
        changes["startDate"] = None
        changes["endDate"] = None
    return changes, errors


def login_required(view):
    @wraps(view)
    def wrapped_view(**kwargs):
        if g.user is None:
            return _error("Authentication required.", 401)
        return view(**kwargs)

    return wrapped_view


def _load_logged_in_user() -> None:
    user_id = session.get("user_id")
    if user_id is None:
        g.user = None
        return
    db = get_db()
    g.user = db.execute(
        "SELECT id, email, name FROM users WHERE id = ?",
        (user_id,),
    ).fetchone()


def create_app(config: Optional[AppConfig] = None, clock: Optional[Clock] = None) -> Flask:
    cfg = config or AppConfig.load()
    now = clock or system_clock

    app = Flask(__name__)
    app.config["SECRET_KEY"] = cfg.secret_key
    app.config["DATABASE"] = cfg.database

    app.teardown_appcontext(close_db)
    app.before_request(_load_logged_in_user)
    with app.app_context():
        init_db()

    def today():
        return now().date()

    def current_budgets(user_id: int) -> List[Budget]:
        return BudgetStore(get_db()).list(user_id, month=month_tag(today()))

    @app.errorhandler(sqlite3.Error)
    def store_failure(exc):
        logger.exception("Store failure on %s %s", request.method, request.path)
        return _error(f"Storage error: {exc}", 500)

    @app.route("/api/auth/signup", methods=["POST"])
    def signup():
        data = _json_body()
        email = str(data.get("email") or "").strip().lower()
        password = str(data.get("password") or "")
        name = str(data.get("name") or "").strip() or None
        errors: List[str] = []
        if not email:
            errors.append("Email is required.")
        if not password:
            errors.append("Password is required.")
        if errors:
            return _errors(errors)
        db = get_db()
        try:
            cursor = db.execute(
                "INSERT INTO users (email, name, password_hash) VALUES (?, ?, ?)",
                (email, name, generate_password_hash(password)),
            )
            db.commit()
        except sqlite3.IntegrityError:
            return _error("Email already exists.")
        session.clear()
        session["user_id"] = cursor.lastrowid
        return jsonify({"user": {"id": cursor.lastrowid, "email": email, "name": name}}), 201

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        data = _json_body()
        email = str(data.get("email") or "").strip().lower()
        password = str(data.get("password") or "")
        user = get_db().execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        if user is None or not check_password_hash(user["password_hash"], password):
            return _error("Invalid credentials.")
        session.clear()
        session["user_id"] = user["id"]
        return jsonify({"user": {"id": user["id"], "email": user["email"], "name": user["name"]}})

    @app.route("/api/auth/logout", methods=["POST"])
    @login_required
    def logout():
        session.clear()
        return jsonify({"message": "Logged out"})

    @app.route("/api/server-time")
    def server_time():
        moment = now()
        return jsonify({"timestamp": int(moment.timestamp() * 1000), "date": moment.isoformat()})

    @app.route("/api/categories")
    def categories():
        return jsonify(cfg.categories)

    @app.route("/api/transactions", methods=["GET"])
    @login_required
    def list_transactions():
        txns = TransactionStore(get_db()).list(g.user["id"])
        return jsonify([t.to_dict() for t in txns])

    @app.route("/api/transactions", methods=["POST"])
    @login_required
    def create_transaction():
        txn, errors = _parse_transaction(_json_body())
        if errors:
            return _errors(errors)
        TransactionStore(get_db()).add(g.user["id"], txn)
        return jsonify(txn.to_dict()), 201

    @app.route("/api/transactions/<int:txn_id>", methods=["PUT"])
    @login_required
    def update_transaction(txn_id: int):
        store = TransactionStore(get_db())
        existing = store.get(g.user["id"], txn_id)
        if existing is None:
            return _error("Transaction not found", 404)
        txn, errors = _parse_transaction(_json_body(), base=existing)
        if errors:
            return _errors(errors)
        store.update(g.user["id"], txn)
        return jsonify(txn.to_dict())

    @app.route("/api/transactions/<int:txn_id>", methods=["DELETE"])
    @login_required
    def delete_transaction(txn_id: int):
        if not TransactionStore(get_db()).delete(g.user["id"], txn_id):
            return _error("Transaction not found", 404)
        return jsonify({"message": "Transaction deleted"})

    @app.route("/api/budgets", methods=["GET"])
    @login_required
    def list_budgets():
        user_id = g.user["id"]
        result = enrich_budgets(TransactionStore(get_db()), current_budgets(user_id), user_id, today())
        return jsonify([b.to_dict() for b in result.budgets])

    @app.route("/api/budgets", methods=["POST"])
    @login_required
    def create_budget():
        changes, errors = _parse_budget_changes(_json_body(), creating=True)
        if errors:
            return _errors(errors)
        budget = Budget(
            category=changes["category"],
            limit=changes["limit"],
            timeline=changes["timeline"],
            start_date=changes.get("startDate"),
            end_date=changes.get("endDate"),
            month=month_tag(today()),
        )
        BudgetStore(get_db()).add(g.user["id"], budget)
        return jsonify(budget.to_dict()), 201

    @app.route("/api/budgets/<int:budget_id>", methods=["PUT"])
    @login_required
    def update_budget(budget_id: int):
        changes, errors = _parse_budget_changes(_json_body(), creating=False)
        if errors:
            return _errors(errors)
        columns = {_BUDGET_FIELDS[key]: value for key, value in changes.items()}
        budget = BudgetStore(get_db()).update(g.user["id"], budget_id, columns)
        if budget is None:
            return _error("Budget not found", 404)
        return jsonify(budget.to_dict())

    @app.route("/api/budgets/<int:budget_id>", methods=["DELETE"])
    @login_required
    def delete_budget(budget_id: int):
        if not BudgetStore(get_db()).delete(g.user["id"], budget_id):
            return _error("Budget not found", 404)
        return jsonify({"message": "Budget deleted"})

    @app.route("/api/dashboard")
    @login_required
    def dashboard():
        txns = TransactionStore(get_db()).list(g.user["id"])
        totals = summarize_totals(txns)
        return jsonify(
            {
                "balance": totals["balance"],
                "totalIncome": totals["income"],
                "totalExpense": totals["expense"],
                "recentTransactions": [t.to_dict() for t in txns[: cfg.recent_limit]],
                "categoryBreakdown": spending_by_category(txns),
                "monthly": monthly_totals(txns),
                "spendingTrend": spending_trend(txns, today()),
            }
        )

    @app.route("/api/calendar")
    @login_required
    def calendar():
        month_arg = request.args.get("month")
        try:
            month = parse_month(month_arg) if month_arg else today()
        except ValueError:
            return _error("Month must be in YYYY-MM format.")
        calendar_map = build_calendar_map(current_budgets(g.user["id"]), month, today())
        return jsonify(calendar_map.to_dict())

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
