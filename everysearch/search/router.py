"""FastAPI router for the /v1/tools endpoints."""

import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from everysearch.dependencies import CommandRunner, ToolDependencies, get_runner, logger
from everysearch.search.tools import TOOL_DEFINITIONS, call_tool

router = APIRouter(prefix="/v1", tags=["tools"])


@router.get("/tools")
async def list_tools() -> dict[str, list[dict[str, Any]]]:
    """List the available tools with their input schemas."""
    return {"tools": [tool.model_dump(by_alias=True) for tool in TOOL_DEFINITIONS]}


@router.post("/tools/{name}")
async def invoke_tool(
    name: str,
    req: Request,
    arguments: dict[str, Any] | None = Body(default=None),
    runner: CommandRunner = Depends(get_runner),
) -> JSONResponse:
    """Call a tool with JSON arguments.

    Args:
        name: Tool name from /v1/tools
        req: FastAPI request object
        arguments: Tool arguments (request body)
        runner: CommandRunner dependency

    Returns:
        The tool's success or error envelope with a matching status code
    """
    trace_id = req.headers.get("X-Trace-Id", str(uuid.uuid4()))
    deps = ToolDependencies(runner=runner, trace_id=trace_id)

    logger.info("tool_request_received", extra={"tool": name, "trace_id": trace_id})

    status_code, envelope = await call_tool(deps, name, arguments)
    return JSONResponse(status_code=status_code, content=envelope)
