from fastapi import APIRouter

from .uploads import router as uploads_router

api_router = APIRouter()

# Include all routers with prefixes
api_router.include_router(uploads_router, prefix="/uploads", tags=["Uploads"])
