from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from constants import SERVICE_NAME

health_router = APIRouter(tags=["health"])


@health_router.get("/health")
async def health():
    return {"ok": True, "service": SERVICE_NAME}


@health_router.get("/", response_class=PlainTextResponse)
async def root():
    # Something friendlier than a 404 for whoever opens the bare URL
    return f"{SERVICE_NAME} up"
