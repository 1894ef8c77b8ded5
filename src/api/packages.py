from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from loguru import logger
from pydantic import BaseModel, ConfigDict
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_media, require_user
from src.db.database import get_db
from src.media.cloudinary import CloudinaryClient
from src.media.uploads import store_optional_image
from src.models.package import Package
from src.models.promotion_package import PromotionPackage

router = APIRouter(prefix="/api/packages", tags=["packages"])


class PackageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    price: float
    image_url: Optional[str]


async def _get_package(db: AsyncSession, package_id: int) -> Package:
    package = await db.get(Package, package_id)
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")
    return package


@router.get("", response_model=List[PackageResponse])
async def list_packages(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Package).order_by(Package.id.asc()))
    return result.scalars().all()


@router.get("/{package_id}", response_model=PackageResponse)
async def get_package(package_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_package(db, package_id)


@router.post(
    "", status_code=201, response_model=PackageResponse, dependencies=[Depends(require_user)]
)
async def create_package(
    name: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    description: str = Form(""),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    if not name or price is None:
        raise HTTPException(status_code=400, detail="Name and price are required")

    image_url = await store_optional_image(image, media)
    package = Package(name=name, description=description, price=price, image_url=image_url)
    db.add(package)
    await db.commit()
    await db.refresh(package)
    logger.info(f"Package created: {package.id}")
    return package


@router.put("/{package_id}", response_model=PackageResponse, dependencies=[Depends(require_user)])
async def update_package(
    package_id: int,
    name: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    package = await _get_package(db, package_id)

    new_image_url = await store_optional_image(image, media)
    old_image_url = package.image_url

    if name:
        package.name = name
    if price is not None:
        package.price = price
    if description is not None:
        package.description = description
    if new_image_url:
        package.image_url = new_image_url

    await db.commit()
    await db.refresh(package)

    if new_image_url and old_image_url:
        await media.delete_image(old_image_url)

    logger.info(f"Package updated: {package.id}")
    return package


@router.delete("/{package_id}", dependencies=[Depends(require_user)])
async def delete_package(
    package_id: int,
    db: AsyncSession = Depends(get_db),
    media: CloudinaryClient = Depends(get_media),
):
    package = await _get_package(db, package_id)
    image_url = package.image_url

    await db.execute(delete(PromotionPackage).where(PromotionPackage.package_id == package_id))
    await db.delete(package)
    await db.commit()

    if image_url:
        await media.delete_image(image_url)

    logger.info(f"Package deleted: {package_id}")
    return {"message": "Package deleted"}
