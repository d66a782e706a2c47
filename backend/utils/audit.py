import logging
from typing import Optional
from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from models.log import Log, LogStatus

logger = logging.getLogger(__name__)

def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host

# Audit rows are written after the business change is committed; a failed
# audit write is logged and never undoes the action itself.
def write_log(db: Session, *, user_id, action, resource, status=LogStatus.SUCCESS.value, ip=None, meta=None):
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    db.add(entry)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to write audit log {action}/{resource}: {e}")
