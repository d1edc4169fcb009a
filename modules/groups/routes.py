"""HTTP routes for working groups and circles."""

from flask import jsonify, render_template

from permissions import api_organizer_required, organizer_required
from utils import NotFoundError, ValidationError, json_body, parse_int, send_error_message

from . import bp
from .models import (
    Circle,
    WorkingGroup,
    clean_group_data,
    delete_group,
    get_group_json,
    list_groups_json,
    save_group,
)


# ---------- Pages ----------
@bp.route("/list_working_groups")
@organizer_required
def list_working_groups_page():
    return render_template("working_group_list.html", page_name="WorkingGroupList")


@bp.route("/list_circles")
@organizer_required
def list_circles_page():
    return render_template("circles_list.html", page_name="CirclesList")


# ---------- Working groups ----------
@bp.route("/working_group/save", methods=["POST"])
@api_organizer_required
def working_group_save():
    try:
        wg_id = save_group(WorkingGroup, clean_group_data(json_body()))
        wg = get_group_json(WorkingGroup, wg_id)
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)
    return jsonify(status="success", working_group=wg)


@bp.route("/working_group/list", methods=["GET", "POST"])
@api_organizer_required
def working_group_list():
    return jsonify(status="success", working_groups=list_groups_json(WorkingGroup))


@bp.route("/working_group/delete", methods=["POST"])
@api_organizer_required
def working_group_delete():
    try:
        delete_group(WorkingGroup, parse_int(json_body().get("working_group_id"), "working_group_id"))
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)
    return jsonify(status="success")


# ---------- Circles ----------
@bp.route("/circle/save", methods=["POST"])
@api_organizer_required
def circle_save():
    try:
        circle_id = save_group(Circle, clean_group_data(json_body()))
        circle = get_group_json(Circle, circle_id)
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)
    return jsonify(status="success", circle=circle)


@bp.route("/circle/list", methods=["GET", "POST"])
@api_organizer_required
def circle_list():
    return jsonify(status="success", circles=list_groups_json(Circle))


@bp.route("/circle/delete", methods=["POST"])
@api_organizer_required
def circle_delete():
    try:
        delete_group(Circle, parse_int(json_body().get("circle_id"), "circle_id"))
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)
    return jsonify(status="success")
