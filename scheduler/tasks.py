# src/scheduler/tasks.py
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from database import SessionLocal
from subscription.services import SubscriptionService
from config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def expire_subscriptions(session_factory=SessionLocal) -> int:
    """Expire every active subscription whose end date has passed."""
    logger.info("Starting expire_subscriptions task")
    db: Session = session_factory()
    expired = 0
    try:
        expired = SubscriptionService.expire_due_subscriptions(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error in expire_subscriptions: {str(e)}", exc_info=True)
    finally:
        db.close()
    logger.info(f"Finished expire_subscriptions task, {expired} expired")
    return expired


def start_scheduler() -> BackgroundScheduler:
    """Start the background scheduler."""
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        expire_subscriptions,
        'interval',
        minutes=settings.EXPIRY_SWEEP_INTERVAL_MINUTES,
        id="expire_subscriptions",
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    return scheduler
