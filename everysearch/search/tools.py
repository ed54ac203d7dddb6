"""File search tools exposed to calling agents.

This module implements the three tools the front-end publishes:
search_files, get_file_info and check_status. Each tool delegates to the
unified dispatcher and wraps the outcome in a JSON envelope, so agents
get the same response shape on every platform.

Example calls:
    call_tool(deps, "search_files", {"query": "*.pdf", "maxResults": 20})
    call_tool(deps, "get_file_info", {"path": "/Users/me/report.pdf"})
    call_tool(deps, "check_status", {})
"""

from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import Field

from everysearch.dependencies import SearchError, ToolDependencies, ValidationError, logger
from everysearch.search import unified
from everysearch.search.models import SORT_FIELDS, SORT_ORDERS, CamelModel
from everysearch.search.validation import SecurityLimits


class ToolDefinition(CamelModel):
    """Name, description and JSON input schema of one tool."""

    name: str
    description: str
    input_schema: dict[str, Any] = Field(default_factory=dict)


TOOL_DEFINITIONS = [
    ToolDefinition(
        name="search_files",
        description=(
            "Search for files and folders using Everything (Windows) or the platform "
            "search engine (macOS Spotlight, Linux ripgrep/locate)."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": (
                        "Search query. Supports wildcards (*, ?) and Everything syntax on "
                        "Windows, Spotlight queries on macOS, globs or locate patterns on Linux."
                    ),
                    "maxLength": SecurityLimits.MAX_QUERY_LENGTH,
                },
                "maxResults": {
                    "type": "integer",
                    "description": "Maximum number of results to return",
                    "default": SecurityLimits.DEFAULT_MAX_RESULTS,
                    "minimum": 1,
                    "maximum": SecurityLimits.MAX_RESULTS,
                },
                "offset": {
                    "type": "integer",
                    "description": "Number of results to skip (for pagination)",
                    "default": 0,
                    "minimum": 0,
                    "maximum": SecurityLimits.MAX_OFFSET,
                },
                "sortBy": {
                    "type": "string",
                    "description": "Sort results by field (Windows only)",
                    "enum": list(SORT_FIELDS),
                },
                "sortOrder": {
                    "type": "string",
                    "description": "Sort order (Windows only)",
                    "enum": list(SORT_ORDERS),
                    "default": "ascending",
                },
                "matchPath": {
                    "type": "boolean",
                    "description": "Match against the full path instead of just the name",
                    "default": False,
                },
                "matchCase": {
                    "type": "boolean",
                    "description": "Enable case-sensitive matching",
                    "default": False,
                },
                "matchWholeWord": {
                    "type": "boolean",
                    "description": "Match whole words only",
                    "default": False,
                },
                "regex": {
                    "type": "boolean",
                    "description": "Enable regex mode",
                    "default": False,
                },
            },
            "required": ["query"],
        },
    ),
    ToolDefinition(
        name="get_file_info",
        description="Get detailed metadata for a specific file or folder.",
        input_schema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Full path to the file or folder",
                    "maxLength": SecurityLimits.MAX_PATH_LENGTH,
                },
            },
            "required": ["path"],
        },
    ),
    ToolDefinition(
        name="check_status",
        description="Check the status of the search engine and platform.",
        input_schema={"type": "object", "properties": {}},
    ),
]


# =============================================================================
# Tool Functions
# =============================================================================


async def search_files_tool(deps: ToolDependencies, arguments: dict[str, Any]) -> dict[str, Any]:
    """Run a search and return the results envelope."""
    results = await unified.search_files(arguments, runner=deps.runner)

    logger.info(
        "search_files_completed",
        extra={"result_count": len(results), "trace_id": deps.trace_id},
    )

    return {
        "success": True,
        "count": len(results),
        "results": [r.model_dump(mode="json", by_alias=True) for r in results],
    }


async def get_file_info_tool(deps: ToolDependencies, arguments: dict[str, Any]) -> dict[str, Any]:
    """Look up one path and return the info envelope."""
    path = arguments.get("path")
    info = await unified.get_file_info("" if path is None else path, runner=deps.runner)
    return {"success": True, "info": info.model_dump(mode="json", by_alias=True)}


async def check_status_tool(deps: ToolDependencies, arguments: dict[str, Any]) -> dict[str, Any]:
    """Return the status envelope. Never fails."""
    status = await unified.get_status(runner=deps.runner)
    return {"success": True, "status": status.model_dump(mode="json", by_alias=True)}


TOOLS: dict[str, Callable[[ToolDependencies, dict[str, Any]], Awaitable[dict[str, Any]]]] = {
    "search_files": search_files_tool,
    "get_file_info": get_file_info_tool,
    "check_status": check_status_tool,
}


def error_envelope(tool: str, message: str, code: str) -> dict[str, Any]:
    """Build the failure envelope returned for any tool error."""
    return {"success": False, "error": message, "errorCode": code, "tool": tool}


async def call_tool(
    deps: ToolDependencies, name: str, arguments: dict[str, Any] | None = None
) -> tuple[int, dict[str, Any]]:
    """Dispatch a tool call and convert errors into envelopes.

    Args:
        deps: Runner and trace_id for this request
        name: Tool name
        arguments: Tool arguments as sent by the agent

    Returns:
        HTTP status code and response envelope. Errors never escape;
        their code and status come from the error class.
    """
    arguments = arguments or {}

    logger.info(
        "tool_called",
        extra={"tool": name, "arguments": arguments, "trace_id": deps.trace_id},
    )

    handler = TOOLS.get(name)
    if handler is None:
        return 404, error_envelope(name, f"Unknown tool: {name}", "UNKNOWN_TOOL")

    try:
        return 200, await handler(deps, arguments)

    except ValidationError as e:
        logger.info(
            "tool_call_rejected",
            extra={"tool": name, "code": e.code, "error": e.message, "trace_id": deps.trace_id},
        )
        return e.status_code, error_envelope(name, e.message, e.code)

    except SearchError as e:
        logger.error(
            "tool_call_failed",
            extra={"tool": name, "code": e.code, "error": str(e), "trace_id": deps.trace_id},
            exc_info=True,
        )
        return e.status_code, error_envelope(name, str(e), e.code)

    except Exception as e:
        logger.error(
            "tool_call_failed",
            extra={"tool": name, "error": str(e), "trace_id": deps.trace_id},
            exc_info=True,
        )
        return 500, error_envelope(name, str(e) or "An unexpected error occurred", "UNKNOWN_ERROR")
