from __future__ import annotations

from datetime import date
from functools import wraps

from flask import Flask, jsonify, request

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import parse_iso_date
from ..container import Container
from ..core.exceptions import DomainError, NotFoundError, ValidationError
from ..employees.model import NameValidationReport


def _attendance_row(r: AttendanceRecord) -> dict:
    return {
        "attendance_id": r.attendance_id,
        "emp_code": r.emp_code,
        "work_date": r.work_date.isoformat(),
        "check_in": r.check_in.isoformat() if r.check_in else None,
        "check_out": r.check_out.isoformat() if r.check_out else None,
        "hours_worked": r.hours_worked,
        "arrival_status": r.arrival_status.value if r.arrival_status else None,
        "departure_status": r.departure_status.value if r.departure_status else None,
        "late_minutes": r.late_minutes,
        "grace_minutes": r.grace_minutes,
        "early_minutes": r.early_minutes,
        "late_departure_minutes": r.late_departure_minutes,
        "early_departure_minutes": r.early_departure_minutes,
        "punch_count": r.punch_count,
    }


def _validation_report(report: NameValidationReport) -> dict:
    return {
        "total": report.total,
        "valid": report.valid,
        "corrupted": report.corrupted,
        "findings": [
            {
                "emp_code": f.emp_code,
                "first_name": f.first_name,
                "last_name": f.last_name,
                "nickname": f.nickname,
                "issue": f.issue,
            }
            for f in report.findings
        ],
    }


def register(app: Flask, container: Container) -> None:
    def json_errors(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except NotFoundError as e:
                return jsonify({"error": str(e)}), 404
            except DomainError as e:
                return jsonify({"error": str(e)}), 400

        return wrapper

    def _parse_date(value: str, field: str) -> date:
        try:
            return parse_iso_date(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be YYYY-MM-DD")

    def _int_arg(name: str, default: int) -> int:
        raw = request.args.get(name)
        if raw is None or raw == "":
            return default
        try:
            return int(raw)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance")
    @json_errors
    def api_attendance():
        today = date.today().isoformat()
        start = _parse_date(request.args.get("start") or today, "start")
        end = _parse_date(request.args.get("end") or start.isoformat(), "end")
        emp_code = (request.args.get("emp_code") or "").strip() or None
        rows = container.attendance_processor.list_attendance(start=start, end=end, emp_code=emp_code)
        return jsonify({"items": [_attendance_row(r) for r in rows], "total": len(rows)})

    @app.route("/api/summaries/<day>", methods=["GET"], endpoint="api_summary")
    @json_errors
    def api_summary(day: str):
        summary_date = _parse_date(day, "date")
        summary = container.attendance_processor.get_summary(summary_date)
        if summary is None:
            raise NotFoundError(f"No summary for {summary_date.isoformat()}")
        return jsonify(summary.as_dict())

    @app.route("/api/polling/queue", methods=["GET"], endpoint="api_queue_list")
    @json_errors
    def api_queue_list():
        page = _int_arg("page", 1)
        limit = _int_arg("limit", 50)
        status = (request.args.get("status") or "").strip()
        if status:
            result = container.queue_service.list_by_status(status, page, limit)
        else:
            result = container.queue_service.history(page, limit)
        return jsonify(result.as_dict())

    @app.route("/api/polling/queue", methods=["POST"], endpoint="api_queue_enqueue")
    @json_errors
    def api_queue_enqueue():
        data = request.get_json(silent=True) or {}
        target = _parse_date(data.get("target_date"), "target_date")
        end = _parse_date(data["end_date"], "end_date") if data.get("end_date") else None
        try:
            priority = int(data.get("priority", 1))
        except (TypeError, ValueError):
            raise ValidationError("priority must be an integer")
        item = container.queue_service.enqueue(
            data.get("request_type") or "",
            target,
            end,
            priority,
            data.get("requested_by"),
            data.get("metadata") or {},
        )
        return jsonify(item.as_dict()), 201

    @app.route("/api/polling/queue/<int:item_id>", methods=["GET"], endpoint="api_queue_item")
    @json_errors
    def api_queue_item(item_id: int):
        item = container.queue_service.get(item_id)
        if item is None:
            raise NotFoundError(f"Queue item #{item_id} not found")
        return jsonify(item.as_dict())

    @app.route("/api/polling/queue/<int:item_id>/cancel", methods=["POST"], endpoint="api_queue_cancel")
    @json_errors
    def api_queue_cancel(item_id: int):
        cancelled = container.queue_service.cancel(item_id)
        return jsonify({"id": item_id, "cancelled": cancelled})

    @app.route("/api/polling/queue/<int:item_id>/retry", methods=["POST"], endpoint="api_queue_retry")
    @json_errors
    def api_queue_retry(item_id: int):
        item = container.queue_service.retry(item_id)
        return jsonify(item.as_dict()), 201

    @app.route("/api/polling/stats", methods=["GET"], endpoint="api_queue_stats")
    @json_errors
    def api_queue_stats():
        return jsonify(container.queue_service.stats().as_dict())

    @app.route("/api/polling/status", methods=["GET"], endpoint="api_queue_status")
    def api_queue_status():
        return jsonify(container.queue_orchestrator.status())

    @app.route("/api/gaps", methods=["GET"], endpoint="api_gaps")
    @json_errors
    def api_gaps():
        analysis = container.gap_analyzer.analyze()
        return jsonify({**analysis.as_dict(), "fill_status": container.gap_analyzer.status()})

    @app.route("/api/gaps/backfill", methods=["POST"], endpoint="api_gaps_backfill")
    @json_errors
    def api_gaps_backfill():
        data = request.get_json(silent=True) or {}
        items = container.gap_analyzer.enqueue_backfill(requested_by=data.get("requested_by"))
        return jsonify({"enqueued": len(items), "items": [i.as_dict() for i in items]}), 202

    @app.route("/api/processing/run", methods=["POST"], endpoint="api_processing_run")
    def api_processing_run():
        result = container.attendance_processor.run_cycle()
        return jsonify(result.as_dict()), 409 if result.skipped else 200

    @app.route("/api/processing/status", methods=["GET"], endpoint="api_processing_status")
    def api_processing_status():
        return jsonify(container.attendance_processor.status())

    @app.route("/api/employees/validation", methods=["GET"], endpoint="api_employee_validation")
    def api_employee_validation():
        return jsonify(_validation_report(container.ingestion_service.validate_employee_names()))

    @app.route("/api/employees/sync", methods=["POST"], endpoint="api_employee_sync")
    def api_employee_sync():
        result = container.ingestion_service.sync_employees()
        return jsonify(result.as_dict()), 200 if result.success else 502
