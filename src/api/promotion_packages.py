from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.api.deps import require_user
from src.api.packages import PackageResponse
from src.db.database import get_db
from src.models.package import Package
from src.models.promotion import Promotion
from src.models.promotion_package import PromotionPackage

router = APIRouter(prefix="/api/promotion-packages", tags=["promotion-packages"])


class LinkRequest(BaseModel):
    promotion_id: Optional[int] = None
    package_id: Optional[int] = None


async def _find_link(
    db: AsyncSession, promotion_id: int, package_id: int
) -> Optional[PromotionPackage]:
    result = await db.execute(
        select(PromotionPackage).where(
            PromotionPackage.promotion_id == promotion_id,
            PromotionPackage.package_id == package_id,
        )
    )
    return result.scalar_one_or_none()


@router.get("/promotion/{promotion_id}")
async def get_promotion_packages(promotion_id: int, db: AsyncSession = Depends(get_db)):
    promotion = await db.get(Promotion, promotion_id)
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")

    result = await db.execute(
        select(PromotionPackage)
        .options(selectinload(PromotionPackage.package))
        .where(PromotionPackage.promotion_id == promotion_id)
        .order_by(PromotionPackage.id.asc())
    )
    links = result.scalars().all()
    return {
        "promotion_id": promotion.id,
        "promotion_name": promotion.name,
        "is_active": promotion.is_active,
        "packages": [PackageResponse.model_validate(link.package) for link in links],
    }


@router.post("", status_code=201, dependencies=[Depends(require_user)])
async def add_package_to_promotion(body: LinkRequest, db: AsyncSession = Depends(get_db)):
    if body.promotion_id is None or body.package_id is None:
        raise HTTPException(status_code=400, detail="promotion_id and package_id are required")

    if not await db.get(Promotion, body.promotion_id):
        raise HTTPException(status_code=404, detail="Promotion not found")
    if not await db.get(Package, body.package_id):
        raise HTTPException(status_code=404, detail="Package not found")

    if await _find_link(db, body.promotion_id, body.package_id):
        raise HTTPException(status_code=409, detail="Package already in promotion")

    link = PromotionPackage(promotion_id=body.promotion_id, package_id=body.package_id)
    db.add(link)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Package already in promotion")
    await db.refresh(link)
    logger.info(f"Package {body.package_id} added to promotion {body.promotion_id}")
    return {"id": link.id, "promotion_id": link.promotion_id, "package_id": link.package_id}


@router.delete("/{promotion_id}/{package_id}", dependencies=[Depends(require_user)])
async def remove_package_from_promotion(
    promotion_id: int, package_id: int, db: AsyncSession = Depends(get_db)
):
    link = await _find_link(db, promotion_id, package_id)
    if not link:
        raise HTTPException(status_code=404, detail="Package is not part of this promotion")

    await db.delete(link)
    await db.commit()
    logger.info(f"Package {package_id} removed from promotion {promotion_id}")
    return {"message": "Package removed from promotion"}
