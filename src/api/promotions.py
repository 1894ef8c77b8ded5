from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from loguru import logger
from pydantic import BaseModel, ConfigDict
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.api.deps import get_media, require_user
from src.api.packages import PackageResponse
from src.db.database import get_db
from src.media.cloudinary import CloudinaryClient
from src.media.uploads import store_optional_image
from src.models.promotion import Promotion
from src.models.promotion_package import PromotionPackage

router = APIRouter(prefix="/api/promotions", tags=["promotions"])


class PromotionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    discount_percent: Optional[float]
    image_url: Optional[str]
    start_date: datetime
    end_date: datetime
    is_active: bool


class PromotionDetailResponse(PromotionResponse):
    packages: List[PackageResponse] = []


def to_local_naive(value: datetime) -> datetime:
    """Stored windows are naive local time, the scheduler's clock."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def _detail(promotion: Promotion) -> PromotionDetailResponse:
    response = PromotionDetailResponse.model_validate(promotion)
    response.packages = [
        PackageResponse.model_validate(link.package) for link in promotion.package_links
    ]
    return response


def _with_packages():
    return selectinload(Promotion.package_links).selectinload(PromotionPackage.package)


async def _get_promotion(db: AsyncSession, promotion_id: int) -> Promotion:
    result = await db.execute(
        select(Promotion).options(_with_packages()).where(Promotion.id == promotion_id)
    )
    promotion = result.scalar_one_or_none()
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")
    return promotion


@router.get("", response_model=List[PromotionResponse])
async def list_promotions(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Promotion).order_by(Promotion.start_date.desc()))
    return result.scalars().all()


@router.get("/active", response_model=List[PromotionDetailResponse])
async def list_active_promotions(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Promotion)
        .options(_with_packages())
        .where(Promotion.is_active == True)  # noqa: E712
        .order_by(Promotion.end_date.asc())
    )
    return [_detail(p) for p in result.scalars().all()]


@router.get("/{promotion_id}", response_model=PromotionDetailResponse)
async def get_promotion(promotion_id: int, db: AsyncSession = Depends(get_db)):
    return _detail(await _get_promotion(db, promotion_id))


@router.post(
    "", status_code=201, response_model=PromotionResponse, dependencies=[Depends(require_user)]
)
async def create_promotion(
    name: Optional[str] = Form(None),
    start_date: Optional[datetime] = Form(None),
    end_date: Optional[datetime] = Form(None),
    description: str = Form(""),
    discount_percent: Optional[float] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    if not name or start_date is None or end_date is None:
        raise HTTPException(
            status_code=400, detail="Name, start_date and end_date are required"
        )

    start_date, end_date = to_local_naive(start_date), to_local_naive(end_date)
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not precede start_date")

    image_url = await store_optional_image(image, media)
    promotion = Promotion(
        name=name,
        description=description,
        discount_percent=discount_percent,
        image_url=image_url,
        start_date=start_date,
        end_date=end_date,
    )
    promotion.is_active = promotion.window_contains(datetime.now())
    db.add(promotion)
    await db.commit()
    await db.refresh(promotion)
    logger.info(f"Promotion created: {promotion.id} (active={promotion.is_active})")
    return promotion


@router.put(
    "/{promotion_id}", response_model=PromotionResponse, dependencies=[Depends(require_user)]
)
async def update_promotion(
    promotion_id: int,
    name: Optional[str] = Form(None),
    start_date: Optional[datetime] = Form(None),
    end_date: Optional[datetime] = Form(None),
    description: Optional[str] = Form(None),
    discount_percent: Optional[float] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    promotion = await _get_promotion(db, promotion_id)

    new_start = to_local_naive(start_date) if start_date else promotion.start_date
    new_end = to_local_naive(end_date) if end_date else promotion.end_date
    if new_end < new_start:
        raise HTTPException(status_code=400, detail="end_date must not precede start_date")

    new_image_url = await store_optional_image(image, media)
    old_image_url = promotion.image_url

    if name:
        promotion.name = name
    if description is not None:
        promotion.description = description
    if discount_percent is not None:
        promotion.discount_percent = discount_percent
    if new_image_url:
        promotion.image_url = new_image_url
    promotion.start_date = new_start
    promotion.end_date = new_end
    promotion.is_active = promotion.window_contains(datetime.now())

    await db.commit()
    await db.refresh(promotion)

    if new_image_url and old_image_url:
        await media.delete_image(old_image_url)

    logger.info(f"Promotion updated: {promotion.id} (active={promotion.is_active})")
    return promotion


@router.delete("/{promotion_id}", dependencies=[Depends(require_user)])
async def delete_promotion(
    promotion_id: int,
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    promotion = await db.get(Promotion, promotion_id)
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")
    image_url = promotion.image_url

    await db.execute(
        delete(PromotionPackage).where(PromotionPackage.promotion_id == promotion_id)
    )
    await db.delete(promotion)
    await db.commit()

    if image_url:
        await media.delete_image(image_url)

    logger.info(f"Promotion deleted: {promotion_id}")
    return {"message": "Promotion deleted"}
