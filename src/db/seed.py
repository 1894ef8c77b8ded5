from loguru import logger
from sqlalchemy.orm import Session

from src.db.database import Base, ensure_sqlite_dir, get_sync_engine, sync_database_url
from src.models import SiteSetting, SocialMedia

SITE_SETTINGS = [
    {"key": "site_title", "value": "Tanah Merapi"},
    {"key": "tagline", "value": "Wisata, kuliner dan paket liburan di lereng Merapi"},
    {"key": "contact_phone", "value": ""},
    {"key": "contact_email", "value": ""},
    {"key": "address", "value": ""},
    {"key": "logo", "value": ""},
]

SOCIAL_MEDIA = [
    {"platform": "instagram", "url": "https://instagram.com/", "icon": "instagram", "order": 1},
    {"platform": "facebook", "url": "https://facebook.com/", "icon": "facebook", "order": 2},
    {"platform": "whatsapp", "url": "https://wa.me/", "icon": "whatsapp", "order": 3},
]


def seed_site_content():
    """Create the default site settings and social links if missing."""
    ensure_sqlite_dir(sync_database_url)
    engine = get_sync_engine()
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        for setting_data in SITE_SETTINGS:
            existing = session.query(SiteSetting).filter_by(key=setting_data["key"]).first()
            if not existing:
                session.add(SiteSetting(**setting_data))
                logger.info(f"Added site setting: {setting_data['key']}")
            else:
                logger.info(f"Site setting already exists: {setting_data['key']}")

        for link_data in SOCIAL_MEDIA:
            existing = (
                session.query(SocialMedia).filter_by(platform=link_data["platform"]).first()
            )
            if not existing:
                session.add(SocialMedia(**link_data))
                logger.info(f"Added social media link: {link_data['platform']}")

        session.commit()

    logger.info("Seed completed")


if __name__ == "__main__":
    seed_site_content()
