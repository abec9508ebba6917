"""Main API router"""

from fastapi import APIRouter

from .routes import admin, auth, oauth, users

api_router = APIRouter()

api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(users.router, tags=["users"])
api_router.include_router(oauth.router, tags=["oauth"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
