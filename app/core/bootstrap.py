import logging

from app.api.v1.routers import users
from app.core.config import settings

logger = logging.getLogger(__name__)


def bootstrap_app(app):
    prefix = f"/api/{settings.VERSION}"

    app.include_router(users.router, prefix=prefix, tags=["Users"])
    logger.info(f"Routers mounted under {prefix}")
