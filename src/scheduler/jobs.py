from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from loguru import logger
from sqlalchemy.orm import Session

from src.db.database import get_sync_session
from src.models import Promotion


def reconcile_promotions(session: Session, now: Optional[datetime] = None) -> Dict[str, int]:
    """Bring every promotion's ``is_active`` flag in line with its window.

    Promotions whose window contains ``now`` are switched on, promotions whose
    window has ended are switched off. Only rows whose flag actually changes
    are written, so repeated runs over unchanged data are no-ops.
    """
    now = now or datetime.now()

    to_activate = (
        session.query(Promotion)
        .filter(
            Promotion.start_date <= now,
            Promotion.end_date >= now,
            Promotion.is_active == False,  # noqa: E712
        )
        .all()
    )
    to_deactivate = (
        session.query(Promotion)
        .filter(
            Promotion.end_date < now,
            Promotion.is_active == True,  # noqa: E712
        )
        .all()
    )

    for promo in to_activate:
        promo.is_active = True
        logger.info(f"Activating promotion {promo.id} ({promo.name})")
    for promo in to_deactivate:
        promo.is_active = False
        logger.info(f"Deactivating promotion {promo.id} ({promo.name})")

    if to_activate or to_deactivate:
        session.commit()

    return {"activated": len(to_activate), "deactivated": len(to_deactivate)}


def run_promotion_reconcile():
    """Scheduled tick: reconcile promotions, log and swallow store errors."""
    logger.debug(f"Starting promotion reconcile at {datetime.now()}")

    try:
        with get_sync_session() as session:
            try:
                result = reconcile_promotions(session)
            except Exception:
                session.rollback()
                raise
    except Exception as e:
        logger.error(f"Promotion reconcile failed, retrying next tick: {e}")
        return None

    if result["activated"] or result["deactivated"]:
        logger.info(f"Promotion reconcile completed: {result}")
    return result
