"""HTTP routes for supporters."""

from flask import jsonify

from extensions import db
from permissions import api_organizer_required
from utils import ValidationError, json_body, send_error_message

from . import bp
from .models import Supporter, clean_supporter_data, create_supporter


@bp.route("/supporter/save", methods=["POST"])
@api_organizer_required
def supporter_save():
    try:
        supporter_id = create_supporter(clean_supporter_data(json_body()))
    except ValidationError as err:
        return send_error_message(err)
    return jsonify(status="success", supporter=db.session.get(Supporter, supporter_id).to_json())
