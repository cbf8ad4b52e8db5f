"""Reports blueprint: /reports/* (admin only)

Route Map:
  GET /reports/summary       - Aggregate counts (?startDate, endDate)
  GET /reports/export.csv    - Same data as a CSV download
"""

from flask import Blueprint, Response, jsonify, request

from salestrack.decorators import admin_required
from salestrack.services import report_service

reports_bp = Blueprint("reports", __name__, url_prefix="/reports")


@reports_bp.route("/summary", methods=["GET"])
@admin_required
def summary():
    try:
        data = report_service.build_summary(
            start_date=request.args.get("startDate") or None,
            end_date=request.args.get("endDate") or None,
        )
    except ValueError as e:
        return jsonify(message=str(e)), 400
    return jsonify(data), 200


@reports_bp.route("/export.csv", methods=["GET"])
@admin_required
def export_csv():
    start_date = request.args.get("startDate") or None
    end_date = request.args.get("endDate") or None
    try:
        data = report_service.build_summary(start_date=start_date, end_date=end_date)
    except ValueError as e:
        return jsonify(message=str(e)), 400

    filename = report_service.export_filename(start_date, end_date)
    return Response(
        report_service.export_csv(data),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
