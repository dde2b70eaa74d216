"""Products resource endpoints."""

from app.core.router import Router
from app.models.responses import MessageResponse

router = Router(prefix="/api/products")


@router.get("/")
async def get_products() -> MessageResponse:
    return MessageResponse(msg="Get Products")
