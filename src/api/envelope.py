"""Response envelope shared by all routes: {"success": ..., "message"?: ..., "data"?: ...}."""

from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.mail.service import MailService


def dump(value: Any) -> Any:
    """Pydantic models (and lists of them) to camelCase JSON-ready data."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, list):
        return [dump(v) for v in value]
    return value


def ok(data: Any = None, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    content: dict[str, Any] = {"success": True}
    if message is not None:
        content["message"] = message
    if data is not None:
        content["data"] = dump(data)
    return JSONResponse(status_code=status_code, content=content)


def fail(status_code: int, message: str, data: Any = None) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "message": message}
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=content)


def get_service(request: Request) -> MailService:
    """Dependency: the MailService created by the app factory."""
    return request.app.state.mail_service
