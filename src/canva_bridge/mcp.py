from typing import Any

import httpx
import structlog

from canva_bridge.errors import UpstreamError, ValidationError
from canva_bridge.schemas import GenerateRequest

logger = structlog.get_logger()

PIXELS_PER_INCH = 300
COMMAND_PATH = "/agent/command"

# Upstream responses are not consistent about where the link lives.
URL_KEYS = ("design_url", "url", "designUrl", "edit_url", "view_url")
ID_KEYS = ("design_id", "designId", "id")
NESTED_KEYS = ("data", "design")


def _first(data: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return None


def _lookup(data: Any, keys: tuple[str, ...]) -> Any:
    if not isinstance(data, dict):
        return None
    found = _first(data, keys)
    if found:
        return found
    for nested in NESTED_KEYS:
        inner = data.get(nested)
        if isinstance(inner, dict):
            found = _first(inner, keys)
            if found:
                return found
    return None


def extract_design_url(data: Any) -> str | None:
    if isinstance(data, str):
        return data if "canva.com/design" in data else None
    url = _lookup(data, URL_KEYS)
    return str(url) if url else None


def extract_design_id(data: Any) -> str | None:
    design_id = _lookup(data, ID_KEYS)
    return str(design_id) if design_id else None


def build_payload(req: GenerateRequest) -> dict:
    """Turn a /generate body into the ``generate_template`` payload.

    Pixel sizes are rounded; physical sizes are converted at 300 px per inch
    when pixel sizes are absent.
    """
    name = (req.name or req.prompt or "").strip()
    width = round(req.width) if req.width is not None else None
    height = round(req.height) if req.height is not None else None
    if width is None and req.width_inches is not None:
        width = round(req.width_inches * PIXELS_PER_INCH)
    if height is None and req.height_inches is not None:
        height = round(req.height_inches * PIXELS_PER_INCH)

    if not name or not width or not height:
        raise ValidationError("Missing required fields (prompt, width, height)")
    if width < 0 or height < 0:
        raise ValidationError("width and height must be positive")

    payload: dict[str, Any] = {"name": name, "width": width, "height": height}
    for key, value in (req.model_extra or {}).items():
        if value is not None and key not in payload:
            payload[key] = value
    return payload


class McpClient:
    """Single-shot client for the MCP automation server."""

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout_sec: float = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout_sec = timeout_sec
        self.transport = transport

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def command(self, action: str, payload: dict) -> Any:
        body = {"action": action, "payload": payload}
        url = f"{self.base_url}{COMMAND_PATH}"
        logger.info("mcp.command", action=action, url=url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout_sec, transport=self.transport) as client:
                r = await client.post(url, headers=self._headers(), json=body)
                r.raise_for_status()
        except httpx.HTTPStatusError as exc:
            details = _response_details(exc.response)
            logger.error("mcp.command_failed", action=action, status=exc.response.status_code, details=details)
            raise UpstreamError("Failed to communicate with Canva MCP server.", details=details) from exc
        except httpx.HTTPError as exc:
            logger.error("mcp.command_failed", action=action, error=str(exc), error_type=type(exc).__name__)
            raise UpstreamError(
                "Failed to communicate with Canva MCP server.",
                details=str(exc) or type(exc).__name__,
            ) from exc

        return _response_details(r)

    async def generate_template(self, payload: dict) -> Any:
        return await self.command("generate_template", payload)


def _response_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
