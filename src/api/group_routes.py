"""Group API: list/create groups, add agents, list a group's agents."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from src.api.envelope import get_service, ok
from src.api.models import AddAgentsBody, CreateGroupBody
from src.mail.service import MailService

router = APIRouter(tags=["groups"])


@router.get("/groups")
async def list_groups(service: MailService = Depends(get_service)) -> JSONResponse:
    return ok(service.list_groups())


@router.post("/groups")
async def create_group(body: CreateGroupBody, service: MailService = Depends(get_service)) -> JSONResponse:
    return ok(service.create_group(body.id, body.agents), message="Group created", status_code=201)


@router.post("/groups/{group_id}/agents")
async def add_agents(group_id: str, body: AddAgentsBody, service: MailService = Depends(get_service)) -> JSONResponse:
    return ok(service.add_agents(group_id, body.agent_list()))


@router.get("/agents")
async def list_agents(
    group_id: Optional[str] = Query(None, alias="groupId"),
    service: MailService = Depends(get_service),
) -> JSONResponse:
    """Agents of groupId, or of the only group when groupId is omitted."""
    group = service.list_agents(group_id)
    return ok({"groupId": group.id, "agents": group.agents})
