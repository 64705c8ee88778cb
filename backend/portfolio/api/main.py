from fastapi import APIRouter

from portfolio.api.routes import ai, certifications, experiences, posts, projects, settings, utils

api_router = APIRouter()
api_router.include_router(utils.router, tags=["utils"])
api_router.include_router(posts.router, prefix="/posts", tags=["posts"])
api_router.include_router(experiences.router, prefix="/experiences", tags=["experiences"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(certifications.router, prefix="/certifications", tags=["certifications"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
api_router.include_router(ai.router, prefix="/ai", tags=["ai"])
