import logging
from typing import Optional

from campus_events.core.celery_config import celery_app
from campus_events.core.config import settings
from campus_events.core.exceptions import ConflictError, DispatchError, NotFoundError
from campus_events.database.db import SessionLocal
from campus_events.services.registrations import handle_registration_created, handle_registration_deleted

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, acks_late=True, max_retries=settings.TASK_MAX_RETRIES)
def registration_created_task(self, event_id: str, user_id: str):
    """Allocate a seat for a new registration and email the registrant."""
    db = SessionLocal()
    try:
        outcome = handle_registration_created(db, event_id, user_id)
    except NotFoundError as e:
        # Nothing to compensate; a retry would fail the same way
        logger.error("Abandoning registration %s/%s: %s", event_id, user_id, e)
        return None
    except (ConflictError, DispatchError) as e:
        logger.warning("Registration %s/%s failed, retrying: %s", event_id, user_id, e)
        raise self.retry(exc=e, countdown=2 ** self.request.retries)
    finally:
        db.close()
    if outcome is None:
        return None
    return {"status": outcome.status, "mailed": outcome.mailed}


@celery_app.task(bind=True, acks_late=True, max_retries=settings.TASK_MAX_RETRIES)
def registration_deleted_task(self, event_id: str, user_id: str, previous_status: Optional[str]):
    """Give back the seat held by a deleted registration."""
    db = SessionLocal()
    try:
        seats_left = handle_registration_deleted(db, event_id, previous_status)
    except ConflictError as e:
        logger.warning("Seat release for %s/%s failed, retrying: %s", event_id, user_id, e)
        raise self.retry(exc=e, countdown=2 ** self.request.retries)
    finally:
        db.close()
    return {"seats_left": seats_left}
