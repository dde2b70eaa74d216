"""Users resource endpoints."""

from typing import Any

from app.core.logger import LogIcon, logger
from app.core.router import Router
from app.models.responses import MessageResponse

router = Router(prefix="/api/users")


@router.get("/")
async def get_users() -> MessageResponse:
    return MessageResponse(msg="All Users")


@router.post("/")
async def post_users(body: Any) -> MessageResponse:
    logger.info("Create users body received", icon=LogIcon.JSON, body=body)
    return MessageResponse(msg="Create Users")


@router.put("/:id")
async def put_users(id: str) -> MessageResponse:
    return MessageResponse(msg=f"Update Users Of {id}")


@router.delete("/:id")
async def delete_users(id: str) -> MessageResponse:
    return MessageResponse(msg=f"Delete Users Of {id}")
