from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from loguru import logger
from pydantic import BaseModel, ConfigDict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_media, require_user
from src.db.database import get_db
from src.media.cloudinary import CloudinaryClient
from src.media.uploads import store_image, store_optional_image
from src.models.menu_item import MenuItem

router = APIRouter(prefix="/api/menu-items", tags=["menu-items"])


class MenuItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    price: float
    image_url: str


async def _get_menu_item(db: AsyncSession, item_id: int) -> MenuItem:
    item = await db.get(MenuItem, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return item


@router.get("", response_model=List[MenuItemResponse])
async def list_menu_items(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(MenuItem).order_by(MenuItem.id.asc()))
    return result.scalars().all()


@router.get("/{item_id}", response_model=MenuItemResponse)
async def get_menu_item(item_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_menu_item(db, item_id)


@router.post(
    "", status_code=201, response_model=MenuItemResponse, dependencies=[Depends(require_user)]
)
async def create_menu_item(
    name: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    description: str = Form(""),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    if not name or price is None:
        raise HTTPException(status_code=400, detail="Name and price are required")
    if image is None or not image.filename:
        raise HTTPException(status_code=400, detail="Image is required")

    image_url = await store_image(image, media)
    item = MenuItem(name=name, description=description, price=price, image_url=image_url)
    db.add(item)
    await db.commit()
    await db.refresh(item)
    logger.info(f"Menu item created: {item.id}")
    return item


@router.put("/{item_id}", response_model=MenuItemResponse, dependencies=[Depends(require_user)])
async def update_menu_item(
    item_id: int,
    name: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    item = await _get_menu_item(db, item_id)

    new_image_url = await store_optional_image(image, media)
    old_image_url = item.image_url

    if name:
        item.name = name
    if price is not None:
        item.price = price
    if description is not None:
        item.description = description
    if new_image_url:
        item.image_url = new_image_url

    await db.commit()
    await db.refresh(item)

    if new_image_url and old_image_url:
        await media.delete_image(old_image_url)

    logger.info(f"Menu item updated: {item.id}")
    return item


@router.delete("/{item_id}", dependencies=[Depends(require_user)])
async def delete_menu_item(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    item = await _get_menu_item(db, item_id)
    image_url = item.image_url

    await db.delete(item)
    await db.commit()

    if image_url:
        await media.delete_image(image_url)

    logger.info(f"Menu item deleted: {item_id}")
    return {"message": "Menu item deleted"}
