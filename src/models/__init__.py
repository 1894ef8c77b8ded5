from src.models.menu_item import MenuItem
from src.models.package import Package
from src.models.promotion import Promotion
from src.models.promotion_package import PromotionPackage
from src.models.site_setting import SiteSetting
from src.models.slide import Slide
from src.models.social_media import SocialMedia
from src.models.user import User

__all__ = [
    "MenuItem",
    "Package",
    "Promotion",
    "PromotionPackage",
    "SiteSetting",
    "Slide",
    "SocialMedia",
    "User",
]
