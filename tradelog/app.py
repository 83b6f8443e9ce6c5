"""
app.py
------

Flask entry point exposing the journal as a small JSON API: trade CRUD,
the filtered trade list, dashboard and reports analytics, edge stats,
capital, CSV import/export and chart-screenshot attachments. All logic
lives in the service and analytics modules; the routes only translate
HTTP to service calls.

To run the application:
    1. Install the package (``pip install -e .``).
    2. Execute ``python -m tradelog.app``.
    3. Browse to http://localhost:5004/dashboard.
"""
import asyncio
import io
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from flask import Flask, Response, abort, jsonify, request
from werkzeug.utils import secure_filename

from .attachments import AttachmentStore
from .config import Settings
from .csvio import ExportRange, export_filename
from .database import TradeJournalDB
from .equity import equity_curve, month_heatmap, monthly_pnl
from .filters import FilterState, SortOption
from .fiscal import calendar_year, fy_label
from .forms import preview_pnl
from .logging_config import setup_logging
from .models import Trade, TradeCategory, TradeStatus, parse_decimal
from .service import JournalService
from .store import TradeStore

logger = logging.getLogger(__name__)

ALLOWED_CSV = {"csv"}


def allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_CSV


def _run(coro):
    return asyncio.run(coro)


def _money(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


def trade_to_dict(t: Trade) -> Dict[str, Any]:
    return {
        "id": t.id,
        "symbol": t.symbol,
        "type": t.type.value,
        "category": t.category.value,
        "status": t.status.value,
        "date": t.date.isoformat(),
        "exit_date": t.exit_date.isoformat() if t.exit_date else None,
        "entry_price": float(t.entry_price),
        "target_price": float(t.target_price),
        "stop_loss": float(t.stop_loss),
        "exit_price": _money(t.exit_price),
        "quantity": t.quantity,
        "charges": _money(t.charges),
        "interest_per_day": _money(t.interest_per_day),
        "timeframe": t.timeframe,
        "notes": t.notes,
        "tags": list(t.tags),
        "image_paths": list(t.image_paths),
        "days_held": t.days_held,
        "calculated_interest": float(t.calculated_interest),
        "risk_reward_ratio": float(t.risk_reward_ratio),
        "gross_pnl": _money(t.gross_pnl),
        "net_pnl": _money(t.net_pnl),
    }


def _int_arg(name: str) -> Optional[int]:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        abort(400, description=f"{name} must be an integer")


def _enum_arg(enum_cls, name: str, by_name: bool = False):
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return enum_cls[raw] if by_name else enum_cls(raw)
    except (KeyError, ValueError):
        abort(400, description=f"unknown {name}: {raw}")


def create_app(settings: Optional[Settings] = None):
    settings = settings or Settings.from_env()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.secret_key

    db = TradeJournalDB(settings.db_path)
    service = JournalService(
        TradeStore(db, settings.owner_id),
        AttachmentStore(settings.attachments_dir),
    )
    app.extensions["tradelog"] = service

    def _trade_or_404(trade_id: str) -> Trade:
        _run(service.refresh())
        for t in service.trades:
            if t.id == trade_id:
                return t
        abort(404, description="no such trade")

    # ---------- trades ----------
    @app.route("/trades", methods=["GET"])
    def list_trades():
        _run(service.refresh())
        try:
            state = FilterState(
                category=_enum_arg(TradeCategory, "category"),
                status=_enum_arg(TradeStatus, "status"),
                month=_int_arg("month"),
                year=_int_arg("year"),
                financial_year=_int_arg("fy"),
                search_text=request.args.get("q", ""),
                sort_option=_enum_arg(SortOption, "sort", by_name=True) or SortOption.DATE_DESC,
            )
        except ValueError as e:
            abort(400, description=str(e))
        trades = service.list_trades(state)
        return jsonify({
            "trades": [trade_to_dict(t) for t in trades],
            "available_years": service.available_years,
        })

    @app.route("/trades", methods=["POST"])
    def add_trade():
        if not _run(service.save_trade(request.form)):
            return jsonify({"error": "trade not saved"}), 400
        return jsonify({"ok": True}), 201

    @app.route("/trades/<trade_id>", methods=["GET"])
    def get_trade(trade_id):
        return jsonify(trade_to_dict(_trade_or_404(trade_id)))

    @app.route("/trades/<trade_id>", methods=["POST"])
    def edit_trade(trade_id):
        existing = _trade_or_404(trade_id)
        if not _run(service.save_trade(request.form, editing=existing)):
            return jsonify({"error": "trade not saved"}), 400
        return jsonify({"ok": True})

    @app.route("/trades/<trade_id>", methods=["DELETE"])
    def delete_trade(trade_id):
        existing = _trade_or_404(trade_id)
        if not _run(service.delete_trade(existing)):
            return jsonify({"error": "trade not deleted"}), 503
        return jsonify({"ok": True})

    @app.route("/preview", methods=["POST"])
    def preview():
        p = preview_pnl(request.form)
        return jsonify({k: float(v) for k, v in p.items()})

    # ---------- attachments ----------
    @app.route("/trades/<trade_id>/attachments", methods=["POST"])
    def upload_attachment(trade_id):
        existing = _trade_or_404(trade_id)
        f = request.files.get("file")
        if not f or f.filename == "":
            return jsonify({"error": "no file"}), 400
        reference = _run(service.add_attachment(existing, f.read()))
        if reference is None:
            return jsonify({"error": "attachment not saved"}), 503
        return jsonify({"reference": reference}), 201

    @app.route("/trades/<trade_id>/attachments/<reference>", methods=["DELETE"])
    def delete_attachment(trade_id, reference):
        existing = _trade_or_404(trade_id)
        if not _run(service.remove_attachment(existing, reference)):
            return jsonify({"error": "attachment not removed"}), 404
        return jsonify({"ok": True})

    @app.route("/attachments/<reference>", methods=["GET"])
    def get_attachment(reference):
        data = service.attachments.load(reference)
        if data is None:
            abort(404, description="attachment missing")
        return Response(data, mimetype="image/jpeg")

    # ---------- analytics ----------
    def _apply_period():
        if "fy" in request.args:
            service.set_financial_year(_int_arg("fy"))
        if "month" in request.args:
            service.set_month(_int_arg("month"))

    @app.route("/dashboard")
    def dashboard():
        _run(service.refresh())
        try:
            _apply_period()
        except ValueError as e:
            abort(400, description=str(e))
        snap = service.snapshot
        fy = service.selected_financial_year
        return jsonify({
            "financial_year": fy,
            "financial_year_label": fy_label(fy) if fy is not None else None,
            "month": service.selected_month,
            "available_financial_years": service.available_financial_years,
            "capital": float(service.capital),
            "roi": snap.roi,
            "total_trades": snap.total_trades,
            "open_trades_count": snap.open_trades_count,
            "stats": snap.stats.to_dict(),
            "recent_trades": [trade_to_dict(t) for t in snap.recent_trades],
            "trades_by_category": {
                c.value: [t.id for t in ts] for c, ts in snap.trades_by_category.items()
            },
        })

    @app.route("/reports")
    def reports():
        _run(service.refresh())
        if "fy" in request.args:
            service.set_financial_year(_int_arg("fy"))
        month = _int_arg("month") or service.selected_month
        if month is not None and not 1 <= month <= 12:
            abort(400, description=f"month must be 1-12, got {month}")
        snap = service.snapshot
        fy = service.selected_financial_year
        daily = snap.fy_stats.daily_pnl

        curve = equity_curve(daily, starting_equity=float(service.capital))
        heatmap = None
        if fy is not None and month is not None:
            heatmap = [
                {**cell, "day": cell["day"].isoformat() if cell["day"] else None}
                for cell in month_heatmap(daily, calendar_year(fy, month), month)
            ]
        return jsonify({
            "financial_year": fy,
            "capital": float(service.capital),
            "fy_roi": snap.fy_roi,
            "fy_stats": snap.fy_stats.to_dict(),
            "equity_curve": [
                {"day": day.isoformat(), "pnl": float(pnl), "equity": float(equity)}
                for day, pnl, equity in curve.itertuples(index=False)
            ],
            "monthly_pnl": {k: float(v) for k, v in monthly_pnl(daily).items()},
            "heatmap_month": month,
            "heatmap": heatmap,
        })

    @app.route("/edge/<category>")
    def edge(category):
        try:
            cat = TradeCategory(category)
        except ValueError:
            abort(404, description=f"unknown category: {category}")
        _run(service.refresh())
        return jsonify(service.edge_stats(cat).to_dict())

    @app.route("/capital", methods=["GET", "POST"])
    def capital():
        if request.method == "POST":
            try:
                amount = parse_decimal(request.form.get("capital"))
            except ValueError:
                amount = None
            if amount is None:
                return jsonify({"error": "capital must be a number"}), 400
            saved = _run(service.set_capital(amount))
            return jsonify({"capital": float(service.capital), "saved": saved})
        _run(service.refresh())
        return jsonify({"capital": float(service.capital)})

    # ---------- csv ----------
    @app.route("/export", methods=["GET"], endpoint="export")
    def export_trades():
        _run(service.refresh())
        export_range = _enum_arg(ExportRange, "range", by_name=True) or ExportRange.ALL_TIME
        out = io.StringIO()
        service.export_csv(out, export_range)
        return Response(
            out.getvalue(),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={export_filename()}"},
        )

    @app.route("/import", methods=["POST"])
    def import_trades():
        f = request.files.get("file")
        if not f or f.filename == "":
            return jsonify({"error": "Please choose a CSV file."}), 400
        filename = secure_filename(f.filename)
        if not allowed_file(filename):
            return jsonify({"error": "Only .csv files are supported."}), 400
        content = f.read().decode("utf-8", errors="ignore")
        imported = _run(service.import_csv(io.StringIO(content)))
        logger.info("Imported %d trades from %s", imported, filename)
        return jsonify({"imported": imported})

    return app


# one JournalService is shared by every request, so the dev server stays single-threaded
RUN_OPTIONS = {"host": "0.0.0.0", "port": 5004, "debug": True, "use_reloader": False, "threaded": False}


def main() -> None:
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    app = create_app(settings)
    app.run(**RUN_OPTIONS)


# Run directly
if __name__ == "__main__":
    main()
