"""Admin-only routes for managing staff users and roles."""

from flask import jsonify, render_template

from models import ALL_ROLES
from permissions import admin_required, api_admin_required
from utils import NotFoundError, ValidationError, clean_str, json_body, parse_int, send_error_message

from . import bp
from .queries import (
    add_user_role,
    clean_user_data,
    create_user,
    get_user_json,
    list_users,
    remove_user,
    remove_user_role,
    update_user,
)


@bp.route("/admin/users")
@admin_required
def list_users_page():
    return render_template("user_list.html", page_name="UserList", roles=ALL_ROLES)


@bp.route("/user/list", methods=["GET", "POST"])
@api_admin_required
def user_list():
    return jsonify(list_users())


@bp.route("/user/save", methods=["POST"])
@api_admin_required
def user_save():
    try:
        data = clean_user_data(json_body())
        user_id = create_user(data) if data["id"] == 0 else update_user(data)
        user = get_user_json(user_id)
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)
    return jsonify(status="success", user=user)


@bp.route("/user/delete", methods=["POST"])
@api_admin_required
def user_delete():
    try:
        user_id = remove_user(parse_int(json_body().get("id"), "id"))
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)
    return jsonify(status="success", userID=user_id)


def _role_request():
    data = json_body()
    return parse_int(data.get("user_id"), "user_id"), clean_str(data.get("role"))


@bp.route("/users-roles/add", methods=["POST"])
@api_admin_required
def users_roles_add():
    try:
        user_id = add_user_role(*_role_request())
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)
    return jsonify(status="success", user_id=user_id)


@bp.route("/users-roles/remove", methods=["POST"])
@api_admin_required
def users_roles_remove():
    try:
        user_id = remove_user_role(*_role_request())
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)
    return jsonify(status="success", user_id=user_id)
