"""HTTP routes for events and connections."""

from flask import jsonify, render_template, request, url_for

from permissions import (
    api_attendance_required,
    api_organizer_required,
    attendance_required,
    organizer_required,
)
from utils import NotFoundError, ValidationError, json_body, parse_int, send_error_message

from . import bp
from .models import (
    EVENT_TYPES,
    clean_event_data,
    delete_event,
    get_event,
    get_event_attendance,
    insert_update_event,
    list_events,
)


# ---------- Pages ----------
@bp.route("/")
@bp.route("/update_event/<int:event_id>")
@attendance_required
def update_event(event_id: int = 0):
    return render_template("event_new.html", page_name="NewEvent",
                           event_id=event_id, event_types=EVENT_TYPES)


@bp.route("/new_connection")
@bp.route("/update_connection/<int:event_id>")
@organizer_required
def update_connection(event_id: int = 0):
    return render_template("connection_new.html", page_name="NewConnection", event_id=event_id)


@bp.route("/list_events")
@attendance_required
def list_events_page():
    return render_template("event_list.html", page_name="EventList", event_types=EVENT_TYPES)


@bp.route("/list_connections")
@organizer_required
def list_connections_page():
    return render_template("connection_list.html", page_name="ConnectionsList")


# ---------- API ----------
@bp.route("/event/get/<int:event_id>")
@api_attendance_required
def event_get(event_id: int):
    try:
        event = get_event(event_id)
    except NotFoundError as err:
        return send_error_message(err)
    return jsonify(status="success", event=event.to_json())


def _save_event(redirect_endpoint: str):
    try:
        data = clean_event_data(json_body())
        is_new_event = data["id"] == 0
        event_id = insert_update_event(data)
        attendees = get_event_attendance(event_id)
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)

    out = {"status": "success", "redirect": "", "attendees": attendees}
    if is_new_event:
        out["redirect"] = url_for(redirect_endpoint, event_id=event_id)
    return jsonify(out)


@bp.route("/event/save", methods=["POST"])
@api_attendance_required
def event_save():
    return _save_event("events.update_event")


@bp.route("/connection/save", methods=["POST"])
@api_organizer_required
def connection_save():
    return _save_event("events.update_connection")


@bp.route("/event/list", methods=["POST"])
@api_attendance_required
def event_list():
    try:
        events = list_events(
            name=request.form.get("event_name", "").strip(),
            activist=request.form.get("event_activist", "").strip(),
            date_from=request.form.get("event_date_start", "").strip(),
            date_to=request.form.get("event_date_end", "").strip(),
            event_type=request.form.get("event_type", "").strip(),
        )
    except ValidationError as err:
        return send_error_message(err)
    return jsonify([e.to_json() for e in events])


@bp.route("/event/delete", methods=["POST"])
@api_attendance_required
def event_delete():
    try:
        delete_event(parse_int(request.form.get("event_id"), "event_id"))
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)
    return jsonify(status="success")
