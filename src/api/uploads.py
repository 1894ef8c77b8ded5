from fastapi import APIRouter, Depends, File, UploadFile

from src.api.deps import get_media, require_user
from src.media.cloudinary import CloudinaryClient, public_id_from_url
from src.media.uploads import store_image

router = APIRouter(prefix="/api/upload", tags=["upload"])


@router.post("", status_code=201, dependencies=[Depends(require_user)])
async def upload_file(
    file: UploadFile = File(...),
    media: CloudinaryClient = Depends(get_media),
):
    url = await store_image(file, media)
    return {"url": url, "public_id": public_id_from_url(url)}
