"""
Supporters -> Sendy subscription sync.

Every pass pushes supporters onto the "all ADB" list and then onto one list
per non-empty combination of the issues they care about (public health,
climate, housing/homelessness). Every attempt is logged in
``supporters_sendy_sync``; supporters with a Synced row for the same kind of
list are never submitted again, failed ones are retried on a later pass.
"""

from dataclasses import dataclass

import requests
from flask import current_app
from sqlalchemy import and_, or_

from extensions import db
from logging_config import get_logger
from models import SYNC_STATUS_ERROR, SYNC_STATUS_SYNCED
from modules.supporters.models import Supporter, SupporterSendySync

from .scheduler import SyncJob, SyncJobConfig

logger = get_logger(__name__)

PUBLIC_HEALTH = 1
CLIMATE = 1 << 1
HOUSING_HOMELESSNESS = 1 << 2
ALL_SUBSETS = range(1, 1 << 3)

# issue subset bitmask -> config key holding the Sendy list id
SUBSET_LISTS = {
    PUBLIC_HEALTH: "SENDY_LIST_PUBLIC_HEALTH_ONLY",
    PUBLIC_HEALTH | CLIMATE: "SENDY_LIST_PUBLIC_HEALTH_CLIMATE",
    PUBLIC_HEALTH | HOUSING_HOMELESSNESS: "SENDY_LIST_PUBLIC_HEALTH_HOUSING",
    PUBLIC_HEALTH | CLIMATE | HOUSING_HOMELESSNESS: "SENDY_LIST_PUBLIC_HEALTH_CLIMATE_HOUSING",
    CLIMATE: "SENDY_LIST_CLIMATE_ONLY",
    CLIMATE | HOUSING_HOMELESSNESS: "SENDY_LIST_CLIMATE_HOUSING",
    HOUSING_HOMELESSNESS: "SENDY_LIST_HOUSING_ONLY",
}

SUCCESS_BODIES = (b"1", b"Already subscribed.")


@dataclass
class SyncOptions:
    """Which list a pass targets. ``all_adb`` ignores the issue flags."""

    all_adb: bool = False
    public_health: bool = False
    climate: bool = False
    housing_homelessness: bool = False

    @property
    def is_issue_sublist(self) -> bool:
        return not self.all_adb

    @classmethod
    def for_subset(cls, subset: int) -> "SyncOptions":
        return cls(
            public_health=bool(subset & PUBLIC_HEALTH),
            climate=bool(subset & CLIMATE),
            housing_homelessness=bool(subset & HOUSING_HOMELESSNESS),
        )


def pending_supporters(options: SyncOptions, limit: int = 1000) -> list[Supporter]:
    """Supporters with an email, no Synced row for this list kind, matching the issue subset."""
    already_synced = (
        db.session.query(SupporterSendySync.supporter_id)
        .filter(
            SupporterSendySync.is_issue_sublist == options.is_issue_sublist,
            SupporterSendySync.sync_status == SYNC_STATUS_SYNCED,
        )
    )
    query = Supporter.query.filter(Supporter.email != "", ~Supporter.id.in_(already_synced))

    if not options.all_adb:
        query = query.filter(
            Supporter.issue_public_health == options.public_health,
            Supporter.issue_climate == options.climate,
        )
        if options.housing_homelessness:
            query = query.filter(or_(Supporter.issue_housing.is_(True), Supporter.issue_homelessness.is_(True)))
        else:
            query = query.filter(and_(Supporter.issue_housing.is_(False), Supporter.issue_homelessness.is_(False)))

    return query.order_by(Supporter.id.asc()).limit(limit).all()


def subscribe(sendy_url: str, api_key: str, list_id: str, supporter: Supporter, timeout: int = 30) -> bool:
    """POST one subscription; True only for the two bodies Sendy uses for success."""
    form = {
        "api_key": api_key,
        "name": supporter.display_name,
        "email": supporter.email,
        "list": list_id,
        "boolean": "true",
    }
    try:
        resp = requests.post(f"{sendy_url.rstrip('/')}/subscribe", data=form, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("sendy request failed",
                       extra={"supporter_id": supporter.id, "email": supporter.email, "error": str(exc)})
        return False

    if resp.status_code != 200:
        logger.warning("bad response code from sendy",
                       extra={"supporter_id": supporter.id, "status_code": resp.status_code})
        return False

    if resp.content in SUCCESS_BODIES:
        return True
    logger.warning("sendy rejected subscriber",
                   extra={"supporter_id": supporter.id, "email": supporter.email, "body": resp.text[:200]})
    return False


def record_sync(supporter: Supporter, list_id: str, synced: bool, is_issue_sublist: bool) -> None:
    db.session.add(SupporterSendySync(
        supporter_id=supporter.id,
        sendy_list_id=list_id,
        email=supporter.email,
        is_issue_sublist=is_issue_sublist,
        sync_status=SYNC_STATUS_SYNCED if synced else SYNC_STATUS_ERROR,
    ))
    db.session.commit()


def sync_supporters_to_sendy(list_id: str, options: SyncOptions, batch_size: int = 1000) -> tuple[int, int]:
    """Push one batch to ``list_id``; returns (synced, failed)."""
    cfg = current_app.config
    synced = failed = 0
    for supporter in pending_supporters(options, limit=batch_size):
        ok = subscribe(cfg["SENDY_URL"], cfg["SENDY_API_KEY"], list_id, supporter)
        record_sync(supporter, list_id, ok, options.is_issue_sublist)
        if ok:
            synced += 1
        else:
            failed += 1
    logger.info("sendy list synced", extra={"list_id": list_id, "synced": synced, "failed": failed})
    return synced, failed


class SendySyncJob(SyncJob):
    config = SyncJobConfig(name="sendy", interval_seconds=6 * 60)

    def enabled(self) -> bool:
        return bool(self.app.config.get("SENDY_API_KEY"))

    def run_once(self) -> None:
        cfg = current_app.config
        all_adb = cfg.get("SENDY_LIST_ALL_ADB")
        if all_adb:
            sync_supporters_to_sendy(all_adb, SyncOptions(all_adb=True), self.config.batch_size)
        else:
            logger.info("not syncing supporters to the all ADB list")

        for subset in ALL_SUBSETS:
            list_id = cfg.get(SUBSET_LISTS[subset])
            if not list_id:
                logger.info("sendy list id empty; subset skipped", extra={"subset": subset})
                continue
            sync_supporters_to_sendy(list_id, SyncOptions.for_subset(subset), self.config.batch_size)
