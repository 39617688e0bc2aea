"""FastAPI application — HTTP endpoints for the advisor agent flows.

Endpoints:

  GET  /health               Health check
  GET  /api/flows            Summary of the registered flows
  GET  /api/flows/{flow_id}  Full flow definition
  GET  /api/capabilities     Operations flows may call
  POST /api/agent/flow       Run the flow that handles a message

Run with ``uvicorn advisor_agent.app:app`` or ``python -m advisor_agent serve``.
"""

from __future__ import annotations

from dotenv import load_dotenv
load_dotenv()

import logging
import time

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from advisor_agent.auth import require_api_token, require_caller
from advisor_agent.config import settings
from advisor_agent.models.outcome import FlowRequest
from advisor_agent.service import NO_FLOW_ERROR, FlowService, create_service

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
)

log = logging.getLogger("advisor_agent.app")

_START_TIME = time.time()


def create_app(service: FlowService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: FlowService to serve. Built from settings when omitted;
                 tests pass one wired to fixture flows and backends.
    """
    if service is None:
        for warning in settings.validate_startup():
            log.warning(warning)
        service = create_service(settings)

    app = FastAPI(
        title="Advisor Agent",
        description="Graph-based conversational flows for financial advisors",
        version="0.1.0",
    )
    app.state.service = service

    # ── Health check ───────────────────────────────────────────

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health check — confirms the event loop is responsive."""
        uptime = round(time.time() - _START_TIME, 1)
        return JSONResponse({
            "status": "ok",
            "uptime": uptime,
            "flows": len(app.state.service.registry),
        })

    # ── Flow catalog ───────────────────────────────────────────

    @app.get("/api/flows", dependencies=[Depends(require_api_token)])
    async def list_flows() -> JSONResponse:
        """Return id, name, description and keywords of each flow, in match order."""
        return JSONResponse([
            {
                "id": flow.id,
                "name": flow.name,
                "description": flow.description,
                "trigger": flow.trigger.type,
                "keywords": list(flow.trigger.keywords),
            }
            for flow in app.state.service.registry
        ])

    @app.get("/api/flows/{flow_id}", dependencies=[Depends(require_api_token)])
    async def get_flow(flow_id: str) -> JSONResponse:
        """Return the full flow definition."""
        flow = app.state.service.registry.get(flow_id)
        if flow is None:
            return JSONResponse({"error": "Flow not found"}, status_code=404)
        return JSONResponse(flow.model_dump(mode="json"))

    @app.get("/api/capabilities", dependencies=[Depends(require_api_token)])
    async def list_capabilities() -> JSONResponse:
        return JSONResponse(app.state.service.dispatcher.describe())

    # ── Flow invocation ────────────────────────────────────────

    @app.post("/api/agent/flow")
    async def run_flow(
        body: FlowRequest,
        request: Request,
        caller_id: int = Depends(require_caller),
    ) -> JSONResponse:
        """Resolve and run the flow for a message.

        404 when no flow handles the message; 200 otherwise, with the
        run's own success flag in the body.
        """
        service: FlowService = request.app.state.service
        response = await service.handle(
            body.message,
            caller_id=caller_id,
            conversation_id=body.conversation_id,
            flow_id=body.flow_id,
        )
        status_code = 404 if response.error == NO_FLOW_ERROR else 200
        return JSONResponse(response.model_dump(mode="json"), status_code=status_code)

    return app


app = create_app()
