from fastapi import APIRouter

from src.api.auth import router as auth_router
from src.api.menu_items import router as menu_items_router
from src.api.packages import router as packages_router
from src.api.promotion_packages import router as promotion_packages_router
from src.api.promotions import router as promotions_router
from src.api.site_settings import router as site_settings_router
from src.api.slides import router as slides_router
from src.api.social_media import router as social_media_router
from src.api.uploads import router as uploads_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(slides_router)
api_router.include_router(menu_items_router)
api_router.include_router(packages_router)
api_router.include_router(promotions_router)
api_router.include_router(promotion_packages_router)
api_router.include_router(social_media_router)
api_router.include_router(uploads_router)
api_router.include_router(site_settings_router)
