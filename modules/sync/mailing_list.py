"""Adds working group members to their group's Google Groups mailing list."""

import requests
from flask import current_app

from extensions import db
from logging_config import get_logger
from models import SYNC_STATUS_ERROR, SYNC_STATUS_SYNCED
from modules.activists.models import Activist
from modules.groups.models import WorkingGroup, WorkingGroupMember

from .models import WorkingGroupListSync
from .scheduler import SyncJob, SyncJobConfig

logger = get_logger(__name__)

DIRECTORY_URL = "https://admin.googleapis.com/admin/directory/v1/groups/{group}/members"
# 409: the address is already a member
OK_STATUS_CODES = (200, 409)


def pending_memberships(limit: int = 1000) -> list[tuple[WorkingGroup, Activist]]:
    """(group, activist) pairs not yet Synced to the group's current address."""
    synced = {
        (row.working_group_id, row.activist_id, row.group_email)
        for row in WorkingGroupListSync.query.filter_by(sync_status=SYNC_STATUS_SYNCED).all()
    }
    rows = (db.session.query(WorkingGroup, Activist)
            .join(WorkingGroupMember, WorkingGroupMember.working_group_id == WorkingGroup.id)
            .join(Activist, Activist.id == WorkingGroupMember.activist_id)
            .filter(WorkingGroup.group_email != "", Activist.email != "")
            .order_by(WorkingGroup.id.asc(), Activist.id.asc())
            .all())
    pending = [(g, a) for g, a in rows if (g.id, a.id, g.group_email) not in synced]
    return pending[:limit]


def add_group_member(access_token: str, group_email: str, member_email: str, timeout: int = 30) -> bool:
    try:
        resp = requests.post(
            DIRECTORY_URL.format(group=group_email),
            headers={"Authorization": f"Bearer {access_token}"},
            json={"email": member_email, "role": "MEMBER"},
            timeout=timeout,
        )
    except requests.RequestException as exc:
        logger.warning("directory request failed", extra={"group": group_email, "error": str(exc)})
        return False
    if resp.status_code in OK_STATUS_CODES:
        return True
    logger.warning("directory rejected member",
                   extra={"group": group_email, "status_code": resp.status_code})
    return False


class MailingListSyncJob(SyncJob):
    config = SyncJobConfig(name="mailing-lists", interval_seconds=60 * 60)

    def enabled(self) -> bool:
        return bool(self.app.config.get("MAILING_LIST_ACCESS_TOKEN"))

    def run_once(self) -> None:
        token = current_app.config["MAILING_LIST_ACCESS_TOKEN"]
        for group, activist in pending_memberships(self.config.batch_size):
            ok = add_group_member(token, group.group_email, activist.email)
            db.session.add(WorkingGroupListSync(
                activist_id=activist.id,
                working_group_id=group.id,
                group_email=group.group_email,
                sync_status=SYNC_STATUS_SYNCED if ok else SYNC_STATUS_ERROR,
            ))
            db.session.commit()
