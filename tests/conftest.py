import httpx
import pytest

from canva_bridge.api.main import app
from canva_bridge.ledger import CreditLedger
from canva_bridge.mcp import McpClient
from canva_bridge.registry import JobRegistry

JOB_DELAY_SEC = 0.2


@pytest.fixture(autouse=True)
def _isolated_state(monkeypatch):
    registry = JobRegistry(CreditLedger(initial=10, bundle_size=10), delay_sec=JOB_DELAY_SEC)
    monkeypatch.setattr(app.state, "registry", registry)
    yield
    registry.shutdown()


@pytest.fixture
def registry() -> JobRegistry:
    return app.state.registry


@pytest.fixture
def mcp_upstream(monkeypatch):
    """Route the MCP client through a handler: ``mcp_upstream(handler)``.

    Returns the list of captured requests.
    """
    captured: list[httpx.Request] = []

    def _install(handler, api_token: str = "") -> list[httpx.Request]:
        def _record(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return handler(request)

        client = McpClient(
            base_url="http://mcp.test",
            api_token=api_token,
            timeout_sec=1,
            transport=httpx.MockTransport(_record),
        )
        monkeypatch.setattr(app.state, "mcp", client)
        return captured

    return _install
