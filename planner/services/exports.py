"""
Guest list exports for the venue staff: a CSV sheet and a printable HTML
report, both built from the same event, guest and occupancy records.
"""
import csv
import io
from datetime import datetime, timezone
from pathlib import Path

import jinja2

from planner.models.events import Event
from planner.models.guests import Guest
from planner.services.guests import guest_label
from planner.services.occupancy import apartment_label

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

UNASSIGNED_LABEL = "UNASSIGNED"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M UTC"

CSV_HEADERS = [
    "event_id",
    "event_name",
    "event_status",
    "structure",
    "floor",
    "apartment_id",
    "apartment_label",
    "first_name",
    "last_name",
    "guest_type",
    "child_age",
    "arrival_mode",
    "checkin_date",
    "checkout_date",
    "extra_nights",
    "allergies",
    "notes",
]

env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(TEMPLATES_DIR),
    autoescape=True,
)


def _utc_stamp(value: datetime) -> str:
    # Naive values are stored UTC (SQLite drops the offset)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def _cell(value) -> str:
    return "" if value is None else str(value)


def csv_filename(event: Event) -> str:
    return f"event_{event.id}_guests.csv"


def report_filename(event: Event) -> str:
    return f"event_{event.id}_report.html"


def guests_csv(event: Event, guests: list[Guest], occupancy: list[dict]) -> str:
    """One quoted row per guest, in the order given."""
    by_apartment = {r["apartment_id"]: r for r in occupancy}

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for g in guests:
        o = by_apartment.get(g.apartment_id) if g.apartment_id else None
        writer.writerow(
            [
                _cell(event.id),
                _cell(event.name),
                _cell(event.status),
                _cell(o["structure"] if o else None),
                _cell(o["floor"] if o else None),
                _cell(g.apartment_id),
                apartment_label(g.apartment_id) if g.apartment_id else UNASSIGNED_LABEL,
                _cell(g.first_name),
                _cell(g.last_name),
                _cell(g.guest_type),
                _cell(g.child_age),
                _cell(g.arrival_mode),
                _cell(g.checkin_date),
                _cell(g.checkout_date),
                _cell(g.extra_nights if g.extra_nights is not None else 0),
                _cell(g.allergies),
                _cell(g.notes),
            ]
        )
    return buf.getvalue()


def _guest_row(g: Guest) -> dict:
    return {
        "label": guest_label(g),
        "arrival_mode": g.arrival_mode,
        "checkin_date": g.checkin_date,
        "checkout_date": g.checkout_date,
        "extra_nights": g.extra_nights if g.extra_nights is not None else 0,
        "allergies": g.allergies,
        "notes": g.notes,
    }


def report_html(
    event: Event,
    guests: list[Guest],
    occupancy: list[dict],
    *,
    exported_at: datetime | None = None,
) -> str:
    grouped: dict[str | None, list[Guest]] = {}
    for g in guests:
        grouped.setdefault(g.apartment_id, []).append(g)
    for group in grouped.values():
        group.sort(key=lambda g: (g.last_name or "").lower())

    sections = []
    for o in occupancy:
        apartment_guests = grouped.get(o["apartment_id"], [])
        sections.append(
            {
                "title": f"{o['structure']} • Floor {o['floor']} • {apartment_label(o['apartment_id'])}",
                "count": o["guests_count"],
                "capacity": o["capacity"],
                "guests": [_guest_row(g) for g in apartment_guests],
            }
        )

    unassigned = [_guest_row(g) for g in grouped.get(None, [])]

    template = env.get_template("report.html")
    return template.render(
        event=event,
        total_guests=len(guests),
        unassigned=unassigned,
        sections=sections,
        created_at=_utc_stamp(event.created_at) if event.created_at else "—",
        exported_at=_utc_stamp(exported_at or datetime.now(timezone.utc)),
    )
