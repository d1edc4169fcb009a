"""HTTP routes for activists: list pages and the JSON API."""

from flask import jsonify, render_template

from permissions import (
    api_attendance_required,
    api_organizer_required,
    current_adb_user,
    organizer_required,
)
from utils import NotFoundError, ValidationError, json_body, parse_int, send_error_message

from . import bp
from .models import clean_activist_data, create_activist, hide_activist, update_activist
from .queries import (
    ACTIVIST_VIEWS,
    autocomplete_names,
    autocomplete_organizer_names,
    clean_list_options,
    list_activist_range,
    list_activists,
    list_basic,
    merge_activist,
)

# url -> (page name, view)
LIST_PAGES = {
    "/list_activists": ("ActivistList", "all_activists"),
    "/community_prospects": ("CommunityProspects", "community_prospects"),
    "/activist_pool": ("ActivistPool", "activist_pool"),
    "/activist_recruitment": ("ActivistRecruitment", "activist_recruitment"),
    "/activist_actionteam": ("ActivistActionTeam", "action_team"),
    "/activist_development": ("OrganizerDevelopment", "development"),
    "/organizer_prospects": ("OrganizerProspects", "organizer_prospects"),
    "/chapter_member_prospects": ("ChapterMemberProspects", "chapter_member_prospects"),
    "/chapter_member_development": ("ChapterMemberDevelopment", "chapter_member_development"),
    "/circle_member_prospects": ("CircleMemberProspects", "circle_member_prospects"),
    "/leaderboard": ("Leaderboard", "leaderboard"),
}


def _list_page(page_name: str, view: str):
    def page():
        title, description = ACTIVIST_VIEWS[view]
        return render_template("activist_list.html", page_name=page_name,
                               title=title, description=description, view=view)
    page.__name__ = f"page_{view}"
    return organizer_required(page)


for _url, (_page_name, _view) in LIST_PAGES.items():
    bp.add_url_rule(_url, endpoint=_page_name, view_func=_list_page(_page_name, _view))


# ---------- Autocomplete ----------
@bp.route("/activist_names/get")
@api_attendance_required
def autocomplete_activists():
    return jsonify(activist_names=autocomplete_names())


@bp.route("/activist_names/get_organizers")
@api_attendance_required
def autocomplete_organizers():
    return jsonify(activist_names=autocomplete_organizer_names())


# ---------- Lists ----------
@bp.route("/activist/list", methods=["POST"])
@api_organizer_required
def activist_list():
    try:
        activists = list_activists(clean_list_options(json_body()))
    except ValidationError as err:
        return send_error_message(err)
    return jsonify(status="success", activist_list=activists)


@bp.route("/activist/list_basic")
@api_attendance_required
def activist_list_basic():
    return jsonify(status="success", activists=list_basic())


@bp.route("/activist/list_range", methods=["POST"])
@api_organizer_required
def activist_list_range():
    try:
        activists = list_activist_range(json_body())
    except ValidationError as err:
        return send_error_message(err)
    return jsonify(status="success", activist_range_list=activists)


# ---------- Writes ----------
@bp.route("/activist/save", methods=["POST"])
@api_organizer_required
def activist_save():
    user = current_adb_user()
    try:
        data = clean_activist_data(json_body())
        if data["id"] == 0:
            activist = create_activist(data)
        else:
            activist = update_activist(data, user.email)
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)
    return jsonify(status="success", activist=activist.to_json())


@bp.route("/activist/hide", methods=["POST"])
@api_organizer_required
def activist_hide():
    try:
        hide_activist(parse_int(json_body().get("id"), "id"))
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)
    return jsonify(status="success")


@bp.route("/activist/merge", methods=["POST"])
@api_organizer_required
def activist_merge():
    try:
        data = json_body()
        merge_activist(
            parse_int(data.get("current_activist_id"), "current_activist_id"),
            data.get("target_activist_name", ""),
        )
    except (ValidationError, NotFoundError) as err:
        return send_error_message(err)
    return jsonify(status="success")
