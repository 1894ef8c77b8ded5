from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from loguru import logger
from pydantic import BaseModel, ConfigDict
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_media, require_user
from src.db.database import get_db
from src.media.cloudinary import CloudinaryClient
from src.media.uploads import store_optional_image
from src.models.site_setting import SiteSetting

router = APIRouter(prefix="/api/site-settings", tags=["site-settings"])


class SiteSettingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    key: str
    value: Optional[str]
    image_url: Optional[str]


async def _find_by_key(db: AsyncSession, key: str) -> Optional[SiteSetting]:
    result = await db.execute(select(SiteSetting).where(SiteSetting.key == key))
    return result.scalar_one_or_none()


async def _get_setting(db: AsyncSession, setting_id: int) -> SiteSetting:
    setting = await db.get(SiteSetting, setting_id)
    if not setting:
        raise HTTPException(status_code=404, detail="Setting not found")
    return setting


@router.get("", response_model=List[SiteSettingResponse])
async def list_settings(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(SiteSetting).order_by(SiteSetting.key.asc()))
    return result.scalars().all()


@router.get("/{key}", response_model=SiteSettingResponse)
async def get_setting(key: str, db: AsyncSession = Depends(get_db)):
    setting = await _find_by_key(db, key)
    if not setting:
        raise HTTPException(status_code=404, detail="Setting not found")
    return setting


@router.post(
    "", status_code=201, response_model=SiteSettingResponse, dependencies=[Depends(require_user)]
)
async def create_setting(
    key: Optional[str] = Form(None),
    value: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    if not key:
        raise HTTPException(status_code=400, detail="Key is required")
    if await _find_by_key(db, key):
        raise HTTPException(status_code=400, detail=f"Setting '{key}' already exists")

    image_url = await store_optional_image(image, media)
    setting = SiteSetting(key=key, value=value, image_url=image_url)
    db.add(setting)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        if image_url:
            await media.delete_image(image_url)
        raise HTTPException(status_code=400, detail=f"Setting '{key}' already exists")
    await db.refresh(setting)
    logger.info(f"Site setting created: {key}")
    return setting


@router.put(
    "/{setting_id}", response_model=SiteSettingResponse, dependencies=[Depends(require_user)]
)
async def update_setting(
    setting_id: int,
    value: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    setting = await _get_setting(db, setting_id)

    new_image_url = await store_optional_image(image, media)
    old_image_url = setting.image_url

    if value is not None:
        setting.value = value
    if new_image_url:
        setting.image_url = new_image_url

    await db.commit()
    await db.refresh(setting)

    if new_image_url and old_image_url:
        await media.delete_image(old_image_url)

    logger.info(f"Site setting updated: {setting.key}")
    return setting


@router.delete("/{setting_id}", dependencies=[Depends(require_user)])
async def delete_setting(
    setting_id: int,
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    setting = await _get_setting(db, setting_id)
    image_url = setting.image_url

    await db.delete(setting)
    await db.commit()

    if image_url:
        await media.delete_image(image_url)

    logger.info(f"Site setting deleted: {setting_id}")
    return {"message": "Setting deleted"}
