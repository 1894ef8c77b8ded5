from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from loguru import logger
from pydantic import BaseModel, ConfigDict, computed_field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_media, require_user
from src.db.database import get_db
from src.media.cloudinary import CloudinaryClient, optimize_url
from src.media.uploads import store_image, store_optional_image
from src.models.slide import Slide

router = APIRouter(prefix="/api/slides", tags=["slides"])


class SlideResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: Optional[str]
    image_url: str
    order: int

    @computed_field
    @property
    def optimized_url(self) -> str:
        return optimize_url(self.image_url, width=1600, height=900)


async def _get_slide(db: AsyncSession, slide_id: int) -> Slide:
    slide = await db.get(Slide, slide_id)
    if not slide:
        raise HTTPException(status_code=404, detail="Slide not found")
    return slide


@router.get("", response_model=List[SlideResponse])
async def list_slides(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Slide).order_by(Slide.order.asc(), Slide.id.asc()))
    return result.scalars().all()


@router.get("/{slide_id}", response_model=SlideResponse)
async def get_slide(slide_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_slide(db, slide_id)


@router.post("", status_code=201, response_model=SlideResponse, dependencies=[Depends(require_user)])
async def create_slide(
    title: Optional[str] = Form(None),
    order: int = Form(0),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    if image is None or not image.filename:
        raise HTTPException(status_code=400, detail="Image is required")

    image_url = await store_image(image, media)
    slide = Slide(title=title, image_url=image_url, order=order)
    db.add(slide)
    await db.commit()
    await db.refresh(slide)
    logger.info(f"Slide created: {slide.id} ({slide.image_url})")
    return slide


@router.put("/{slide_id}", response_model=SlideResponse, dependencies=[Depends(require_user)])
async def update_slide(
    slide_id: int,
    title: Optional[str] = Form(None),
    order: Optional[int] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    slide = await _get_slide(db, slide_id)

    new_image_url = await store_optional_image(image, media)
    old_image_url = slide.image_url

    if title:
        slide.title = title
    if order is not None:
        slide.order = order
    if new_image_url:
        slide.image_url = new_image_url

    await db.commit()
    await db.refresh(slide)

    if new_image_url and old_image_url:
        await media.delete_image(old_image_url)

    logger.info(f"Slide updated: {slide.id}")
    return slide


@router.delete("/{slide_id}", dependencies=[Depends(require_user)])
async def delete_slide(
    slide_id: int,
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    slide = await _get_slide(db, slide_id)
    image_url = slide.image_url

    await db.delete(slide)
    await db.commit()

    if image_url:
        await media.delete_image(image_url)

    logger.info(f"Slide deleted: {slide_id}")
    return {"message": "Slide deleted"}
