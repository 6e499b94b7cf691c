"""Agents router: inspect and edit agent memories."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from storygen.agents.models import AgentMessage
from storygen.api.deps import get_runtime_dep, parse_role
from storygen.core.constants import MessageRole
from storygen.runtime import StorygenRuntime

router = APIRouter()


class InjectMessageRequest(BaseModel):
    """A message produced elsewhere (e.g. another console) to add to memory."""
    role: str = MessageRole.MODEL.value
    content: str
    id: Optional[str] = None
    timestamp: Optional[str] = None
    model: Optional[str] = None
    dynamic_prompt: Optional[str] = None
    final_prompt: Optional[str] = None
    data: Any = None


@router.get("")
async def list_agents(runtime: StorygenRuntime = Depends(get_runtime_dep)):
    """List roles with a history, and which have a live session."""
    histories = runtime.agents.get_all_histories()
    return {
        "agents": [
            {
                "role": role.value,
                "messages": len(messages),
                "active": runtime.agents.has_session(role),
            }
            for role, messages in histories.items()
        ]
    }


@router.get("/{role}/history")
async def get_agent_history(role: str, runtime: StorygenRuntime = Depends(get_runtime_dep)):
    agent_role = parse_role(role)
    return {
        "role": agent_role.value,
        "messages": [message.to_dict() for message in runtime.agents.get_history(agent_role)],
    }


@router.post("/{role}/messages")
async def inject_agent_message(
    role: str,
    body: InjectMessageRequest,
    runtime: StorygenRuntime = Depends(get_runtime_dep)
):
    """Append a message to an agent's memory without calling the backend."""
    agent_role = parse_role(role)
    payload = body.model_dump()
    payload["agent_role"] = agent_role.value
    try:
        message = AgentMessage.from_dict(payload)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    message = runtime.agents.inject_message(agent_role, message)
    return {"success": True, "message": message.to_dict()}


@router.delete("/{role}/memory")
async def reset_agent_memory(role: str, runtime: StorygenRuntime = Depends(get_runtime_dep)):
    """Forget an agent's session and history."""
    agent_role = parse_role(role)
    runtime.agents.reset_memory(agent_role)
    return {"success": True, "role": agent_role.value}
