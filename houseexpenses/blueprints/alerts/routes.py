import logging

from flask import Blueprint
from flask_login import login_required, current_user
from ...api import ok, paginated
from ...errors import ResourceNotFound
from ...extensions import db
from ...models import Alert

logger = logging.getLogger(__name__)

alerts_bp = Blueprint("alerts", __name__, url_prefix="/alerts")


def _unread_query(user_id):
    return Alert.query.filter_by(user_id=user_id, is_read=False)


@alerts_bp.route("", methods=["GET"])
@login_required
def list_alerts():
    query = Alert.query.filter_by(user_id=current_user.id).order_by(Alert.created_at.desc(), Alert.id.desc())
    return paginated(query, Alert.to_dict)


@alerts_bp.route("/unread", methods=["GET"])
@login_required
def unread_alerts():
    alerts = _unread_query(current_user.id).order_by(Alert.created_at.desc(), Alert.id.desc()).all()
    return ok([a.to_dict() for a in alerts])


@alerts_bp.route("/unread/count", methods=["GET"])
@login_required
def unread_count():
    return ok({"count": _unread_query(current_user.id).count()})


@alerts_bp.route("/<int:alert_id>/read", methods=["POST"])
@login_required
def mark_read(alert_id):
    updated = Alert.query.filter_by(id=alert_id, user_id=current_user.id).update({"is_read": True})
    if updated == 0:
        raise ResourceNotFound("Alert", "id", alert_id)
    db.session.commit()
    logger.info("Marked alert %s as read for user %s", alert_id, current_user.id)
    return ok()


@alerts_bp.route("/read-all", methods=["POST"])
@login_required
def mark_all_read():
    updated = _unread_query(current_user.id).update({"is_read": True})
    db.session.commit()
    logger.info("Marked %s alerts as read for user %s", updated, current_user.id)
    return ok({"updated": updated})
