from fastapi import APIRouter

from app.api.routers import auth, microposts, relationships, static_pages, users

api_router = APIRouter()

api_router.include_router(static_pages.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(microposts.router)
api_router.include_router(relationships.router)
