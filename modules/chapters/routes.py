"""HTTP routes for chapters: admin pages/API and the public Facebook endpoints."""

import re
from datetime import datetime

import requests
from flask import abort, current_app, flash, jsonify, redirect, render_template, request, url_for

from logging_config import get_logger
from permissions import admin_required, api_admin_required
from utils import NotFoundError, ValidationError, parse_int

from . import bp
from .models import (
    all_chapters,
    chapter_from_form,
    chapters_by_region,
    delete_chapter,
    facebook_events_for_page,
    get_chapter,
    insert_chapter,
    nearest_chapters,
    online_facebook_events,
    update_chapter,
)

logger = get_logger(__name__)

TIME_PARAM = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$|^[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}$")
COORDINATE = re.compile(r"^-?[0-9]+(\.[0-9]+)?$")
IPGEOLOCATION_URL = "https://api.ipgeolocation.io/ipgeo"


# ---------- Admin pages ----------
@bp.route("/list_chapters")
@admin_required
def list_chapters_page():
    return render_template("chapters_list.html", page_name="ChaptersList", chapters=all_chapters())


@bp.route("/chapter/edit")
@admin_required
def edit_chapter_page():
    try:
        chapter = get_chapter(parse_int(request.args.get("id"), "id"))
    except (ValidationError, NotFoundError):
        abort(404)
    return render_template("chapter_edit.html", page_name="ChaptersList", chapter=chapter)


@bp.route("/chapter/new")
@admin_required
def new_chapter_page():
    return render_template("chapter_new.html", page_name="ChaptersList")


# ---------- Admin API (form posts, redirect back to the list) ----------
@bp.route("/chapter/update", methods=["POST"])
@api_admin_required
def chapter_update():
    try:
        update_chapter(chapter_from_form(request.form))
    except (ValidationError, NotFoundError) as err:
        flash(str(err), "warning")
        return redirect(url_for("chapters.list_chapters_page"))
    flash("Saved successfully.", "success")
    return redirect(url_for("chapters.list_chapters_page"))


@bp.route("/chapter/insert", methods=["POST"])
@api_admin_required
def chapter_insert():
    try:
        insert_chapter(chapter_from_form(request.form))
    except ValidationError as err:
        flash(str(err), "warning")
        return redirect(url_for("chapters.new_chapter_page"))
    flash("New chapter created.", "success")
    return redirect(url_for("chapters.list_chapters_page"))


@bp.route("/chapter/delete", methods=["GET", "POST"])
@api_admin_required
def chapter_delete():
    try:
        delete_chapter(parse_int(request.values.get("id"), "id"))
    except (ValidationError, NotFoundError) as err:
        flash(str(err), "warning")
        return redirect(url_for("chapters.list_chapters_page"))
    flash("Chapter deleted.", "success")
    return redirect(url_for("chapters.list_chapters_page"))


# ---------- Public API ----------
@bp.route("/chapters")
def list_all_chapters():
    return jsonify([c.to_json() for c in all_chapters()])


@bp.route("/fb_pages")
def list_all_fb_pages():
    return jsonify(chapters_by_region())


def _time_param(name: str) -> datetime | None:
    value = request.args.get(name)
    if value is None:
        return None
    if not TIME_PARAM.match(value):
        raise ValidationError(f"{name} format incorrect")
    layout = "%Y-%m-%dT%H:%M" if "T" in value else "%Y-%m-%d"
    return datetime.strptime(value, layout)


@bp.route("/fb_events/<int:page_id>")
def list_fb_events(page_id: int):
    try:
        start = _time_param("start_time") or datetime.utcnow()
        end = _time_param("end_time")
    except ValidationError as err:
        return jsonify(error=str(err))

    events = facebook_events_for_page(page_id, start, end)
    local_events_found = bool(events)
    if not local_events_found:
        events = online_facebook_events(start, end)

    return jsonify(local_events_found=local_events_found, events=[e.to_json() for e in events])


def client_ip() -> str:
    """Caller address: first X-Forwarded-For hop when proxied, without a port."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    ip = forwarded.split(",")[0].strip() if forwarded else (request.remote_addr or "")
    if ip.count(":") == 1:
        ip = ip.split(":")[0]
    return ip


def geolocate(ip: str, api_key: str) -> tuple[float, float]:
    resp = requests.get(
        IPGEOLOCATION_URL,
        params={"apiKey": api_key, "ip": ip, "fields": "latitude,longitude"},
        timeout=10,
    )
    resp.raise_for_status()
    loc = resp.json()
    return float(loc["latitude"]), float(loc["longitude"])


@bp.route("/fb_page/<lat>,<lng>")
def find_nearest_fb_pages(lat: str, lng: str):
    if not (COORDINATE.match(lat) and COORDINATE.match(lng)):
        abort(404)
    lat_f, lng_f = float(lat), float(lng)

    if lat_f == 0 and lng_f == 0:
        api_key = current_app.config.get("IPGEOLOCATION_KEY")
        if not api_key:
            return jsonify(status="error", message="Geolocation API key not configured")
        ip = client_ip()
        try:
            lat_f, lng_f = geolocate(ip, api_key)
        except (requests.RequestException, KeyError, TypeError, ValueError) as exc:
            logger.warning("ip geolocation failed", extra={"ip": ip, "error": str(exc)})
            return jsonify(status="error", message="Could not determine your location")
        logger.info("geolocated caller", extra={"ip": ip})

    return jsonify(nearest_chapters(lat_f, lng_f))
