# app/tasks/scheduler.py
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.tasks.maintenance import cleanup_orphaned_files

logger = logging.getLogger(__name__)


def start_scheduler():
    """Run the orphaned file cleanup daily at midnight inside the API process."""
    logger.info("Starting scheduler for orphaned file cleanup")
    scheduler = BackgroundScheduler()

    scheduler.add_job(
        cleanup_orphaned_files,
        trigger=CronTrigger(hour=0, minute=0),
        id='cleanup_files_job',
        replace_existing=True,
        max_instances=1,
    )

    scheduler.start()
    return scheduler
