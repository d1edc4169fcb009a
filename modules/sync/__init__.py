"""Background sync jobs: Sendy, Facebook events, survey mailer, mailing lists."""

from logging_config import get_logger

from . import models  # noqa: F401
from .facebook import FacebookSyncJob
from .mailing_list import MailingListSyncJob
from .scheduler import SyncJob, SyncJobConfig
from .sendy import SendySyncJob
from .survey_mailer import SurveyMailerJob

logger = get_logger(__name__)

JOB_CLASSES = (SendySyncJob, FacebookSyncJob, SurveyMailerJob, MailingListSyncJob)


def start_sync_jobs(app) -> list[SyncJob]:
    """Start every job whose credentials are configured."""
    if not app.config.get("RUN_SYNC_JOBS"):
        logger.info("sync jobs disabled")
        return []

    started = []
    for job_cls in JOB_CLASSES:
        job = job_cls(app)
        if not job.enabled():
            logger.info("sync job not configured", extra={"job": job.name})
            continue
        job.start()
        started.append(job)
        logger.info("sync job started", extra={"job": job.name,
                                               "interval_seconds": job.config.interval_seconds})
    return started


__all__ = ["JOB_CLASSES", "SyncJob", "SyncJobConfig", "start_sync_jobs"]
