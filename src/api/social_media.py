from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import require_user
from src.db.database import get_db
from src.models.social_media import SocialMedia

router = APIRouter(prefix="/api/social-media", tags=["social-media"])


class SocialMediaRequest(BaseModel):
    platform: str
    url: str
    icon: Optional[str] = None
    order: int = 0


class SocialMediaUpdate(BaseModel):
    platform: Optional[str] = None
    url: Optional[str] = None
    icon: Optional[str] = None
    order: Optional[int] = None


class SocialMediaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    platform: str
    url: str
    icon: Optional[str]
    order: int


async def _get_link(db: AsyncSession, link_id: int) -> SocialMedia:
    link = await db.get(SocialMedia, link_id)
    if not link:
        raise HTTPException(status_code=404, detail="Social media link not found")
    return link


@router.get("", response_model=List[SocialMediaResponse])
async def list_social_media(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(SocialMedia).order_by(SocialMedia.order.asc()))
    return result.scalars().all()


@router.post(
    "", status_code=201, response_model=SocialMediaResponse, dependencies=[Depends(require_user)]
)
async def create_social_media(body: SocialMediaRequest, db: AsyncSession = Depends(get_db)):
    link = SocialMedia(**body.model_dump())
    db.add(link)
    await db.commit()
    await db.refresh(link)
    return link


@router.put(
    "/{link_id}", response_model=SocialMediaResponse, dependencies=[Depends(require_user)]
)
async def update_social_media(
    link_id: int, body: SocialMediaUpdate, db: AsyncSession = Depends(get_db)
):
    link = await _get_link(db, link_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(link, key, value)
    await db.commit()
    await db.refresh(link)
    return link


@router.delete("/{link_id}", dependencies=[Depends(require_user)])
async def delete_social_media(link_id: int, db: AsyncSession = Depends(get_db)):
    link = await _get_link(db, link_id)
    await db.delete(link)
    await db.commit()
    return {"message": "Social media link deleted"}
