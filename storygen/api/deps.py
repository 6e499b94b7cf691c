"""Shared FastAPI dependencies."""

from fastapi import HTTPException, Request

from storygen.core.constants import AgentRole
from storygen.core.exceptions import UnknownAgentRoleError
from storygen.runtime import StorygenRuntime


def get_runtime_dep(request: Request) -> StorygenRuntime:
    """The runtime installed on the app by create_app."""
    return request.app.state.runtime


def parse_role(role: str) -> AgentRole:
    """Path parameter to AgentRole, 404 for unknown roles."""
    try:
        return AgentRole.parse(role)
    except UnknownAgentRoleError as e:
        raise HTTPException(status_code=404, detail=e.message)
