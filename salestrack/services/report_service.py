"""Report service: aggregate counts for the admin reports page + CSV export.

Counts are computed in SQL (COUNT ... GROUP BY) over the requested
created_at range instead of pulling every row into Python.
"""

import csv
import io

from sqlalchemy import func

from salestrack.extensions import db
from salestrack.models.follow_up import FollowUp
from salestrack.models.prospect import Prospect
from salestrack.models.user import Profile
from salestrack.utils import apply_date_bounds, parse_datetime


def _status_counts(model, start_date, end_date):
    query = db.session.query(model.status, func.count(model.id))
    query = apply_date_bounds(query, model.created_at, start_date, end_date)
    return dict(query.group_by(model.status).all())


def build_summary(start_date=None, end_date=None):
    """Aggregate prospect / follow-up counts for a created_at range.

    Returns:
        dict with keys:
            total_prospects, total_follow_ups, completed_follow_ups,
            pending_follow_ups (pending + in_progress),
            prospects_by_status  – [{status, count}] for every status,
            sales_performance    – [{sales, prospects_count,
                                     completed_follow_ups}] per sales user
    """
    prospect_counts = _status_counts(Prospect, start_date, end_date)
    follow_up_counts = _status_counts(FollowUp, start_date, end_date)

    # Per-owner prospect counts
    owned_query = db.session.query(Prospect.sales_id, func.count(Prospect.id))
    owned_query = apply_date_bounds(owned_query, Prospect.created_at, start_date, end_date)
    owned_map = dict(owned_query.group_by(Prospect.sales_id).all())

    # Per-assignee completed follow-ups
    done_query = (
        db.session.query(FollowUp.assigned_to, func.count(FollowUp.id))
        .filter(FollowUp.status == "completed")
    )
    done_query = apply_date_bounds(done_query, FollowUp.created_at, start_date, end_date)
    done_map = dict(done_query.group_by(FollowUp.assigned_to).all())

    sales_profiles = (
        Profile.query
        .filter_by(role="sales")
        .order_by(Profile.full_name.asc())
        .all()
    )

    return {
        "start_date": start_date,
        "end_date": end_date,
        "total_prospects": sum(prospect_counts.values()),
        "total_follow_ups": sum(follow_up_counts.values()),
        "completed_follow_ups": follow_up_counts.get("completed", 0),
        "pending_follow_ups": sum(
            follow_up_counts.get(status, 0) for status in FollowUp.OPEN_STATUSES
        ),
        "prospects_by_status": [
            {"status": status, "count": prospect_counts.get(status, 0)}
            for status in Prospect.STATUSES
        ],
        "sales_performance": [
            {
                "sales": profile.to_summary(),
                "prospects_count": owned_map.get(profile.id, 0),
                "completed_follow_ups": done_map.get(profile.id, 0),
            }
            for profile in sales_profiles
        ],
    }


def _status_label(status):
    return status.replace("_", " ").upper()


def export_csv(summary):
    """Render a summary dict as the downloadable CSV report (string)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    start = summary.get("start_date") or "-"
    end = summary.get("end_date") or "-"

    writer.writerow(["Prospect and Follow-Up Report"])
    writer.writerow(["Period:", f"{start} to {end}"])
    writer.writerow([])
    writer.writerow(["SUMMARY"])
    writer.writerow(["Total Prospects", summary["total_prospects"]])
    writer.writerow(["Total Follow-Ups", summary["total_follow_ups"]])
    writer.writerow(["Completed Follow-Ups", summary["completed_follow_ups"]])
    writer.writerow(["Pending Follow-Ups", summary["pending_follow_ups"]])
    writer.writerow([])
    writer.writerow(["PROSPECTS BY STATUS"])
    writer.writerow(["Status", "Count"])
    for item in summary["prospects_by_status"]:
        writer.writerow([_status_label(item["status"]), item["count"]])
    writer.writerow([])
    writer.writerow(["SALES PERFORMANCE"])
    writer.writerow(["Sales Name", "Total Prospects", "Completed Follow-Ups"])
    for item in summary["sales_performance"]:
        writer.writerow([
            item["sales"]["full_name"],
            item["prospects_count"],
            item["completed_follow_ups"],
        ])

    return buffer.getvalue()


def _filename_part(value, field):
    if not value:
        return "all"
    return parse_datetime(value, field).strftime("%Y-%m-%d")


def export_filename(start_date=None, end_date=None):
    """report_<start>_<end>.csv with each bound as YYYY-MM-DD, or "all"."""
    return (
        f"report_{_filename_part(start_date, 'startDate')}_"
        f"{_filename_part(end_date, 'endDate')}.csv"
    )
