"""
FastAPI Backend for the NDPA Agent

Exposes the agent over the A2A JSON-RPC task protocol, plus REST endpoints
for the retrieve-and-explain workflow, health, and metrics.

Run with: uvicorn execution.ndpa_rag.api:app --host 0.0.0.0 --port 8000
"""

import json
import time
import logging
from typing import Any, Optional
from contextlib import asynccontextmanager

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from . import __version__
from .agent import AgentRegistry, NdpaAgent
from .api_models import (
    A2AMessage, Artifact, MessagePart, TaskResult, TaskStatus, JsonRpcError,
    HealthResponse, ExplainRequest, ExplainResponse,
    INVALID_REQUEST, INVALID_PARAMS, INTERNAL_ERROR, new_id,
)
from .config import AgentConfig
from .document_index import DocumentIndex
from .errors import LoadError, WorkflowError
from .language_patterns import UNKNOWN_METHOD_MESSAGE
from .metrics import get_metrics_collector
from .scorers import build_default_scorers
from .tools import SearchSectionTool
from .workflow import NdpaWorkflow

# Load environment variables
load_dotenv()
logger = logging.getLogger(__name__)


# =============================================================================
# Service Container - builds the index, LLM client and agents once
# =============================================================================

class ServiceContainer:
    """Lazily constructed, process-wide services shared by all requests."""

    def __init__(self, config: Optional[AgentConfig] = None):
        self._config = config
        self._index: Optional[DocumentIndex] = None
        self._llm_client = None
        self._tool: Optional[SearchSectionTool] = None
        self._registry: Optional[AgentRegistry] = None

    def get_config(self) -> AgentConfig:
        if self._config is None:
            self._config = AgentConfig.from_env()
        return self._config

    def get_index(self) -> DocumentIndex:
        """Load the structured Act; LoadError here means the service cannot run."""
        if self._index is None:
            self._index = DocumentIndex.from_file(self.get_config().document_path)
        return self._index

    def get_llm_client(self):
        """Get or create the cached OpenAI-compatible client."""
        if self._llm_client is None:
            from openai import OpenAI
            config = self.get_config()
            self._llm_client = OpenAI(
                base_url=config.llm_base_url,
                api_key=config.llm_api_key,
                timeout=config.llm_timeout,
            )
        return self._llm_client

    def get_tool(self) -> SearchSectionTool:
        if self._tool is None:
            self._tool = SearchSectionTool(self.get_index(), metrics=get_metrics_collector())
        return self._tool

    def get_agent_registry(self) -> AgentRegistry:
        if self._registry is None:
            config = self.get_config()
            client = self.get_llm_client()
            agent = NdpaAgent(
                client=client,
                tool=self.get_tool(),
                model=config.llm_model,
                max_steps=config.max_steps,
                scorers=build_default_scorers(client, config.llm_model, config.scorer_sampling_rate),
                metrics=get_metrics_collector(),
            )
            self._registry = AgentRegistry([agent])
        return self._registry

    def get_workflow(self) -> NdpaWorkflow:
        return NdpaWorkflow(self.get_tool(), self.get_agent_registry().get("ndpaAgent"))


_container = ServiceContainer()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the Act before serving; a malformed document stops startup."""
    index = _container.get_index()
    logger.info(f"NDPA index ready: {len(index)} sections in {len(index.part_titles)} parts")
    yield


app = FastAPI(
    title="NDPA Agent API",
    description="Plain-English answers about the Nigeria Data Protection Act 2023",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_container.get_config().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# A2A helpers
# =============================================================================

def create_unknown_method_response(request_id: Any = None) -> dict:
    """Failed task returned for empty bodies and unsupported methods."""
    task = TaskResult(
        status=TaskStatus(
            state="failed",
            message=A2AMessage(
                role="agent",
                parts=[MessagePart.text_part(UNKNOWN_METHOD_MESSAGE)],
            ),
        ),
        artifacts=[
            Artifact(
                name="assistantResponse",
                parts=[MessagePart.text_part(UNKNOWN_METHOD_MESSAGE)],
            )
        ],
        history=[],
    )
    return {"jsonrpc": "2.0", "id": request_id or "", "result": task.model_dump()}


def jsonrpc_error(request_id: Any, code: int, message: str,
                  status_code: int, data: Optional[dict] = None) -> JSONResponse:
    error = JsonRpcError(code=code, message=message, data=data).model_dump(exclude_none=True)
    return JSONResponse(
        {"jsonrpc": "2.0", "id": request_id, "error": error},
        status_code=status_code,
    )


def _part_to_text(part: dict) -> str:
    kind = part.get("kind")
    if kind == "text":
        return part.get("text") or ""
    if kind == "data":
        data = part.get("data")
        if isinstance(data, list):
            return "\n".join(
                (item.get("text") or "") if isinstance(item, dict) and item.get("kind") == "text"
                else json.dumps(item)
                for item in data
            )
        return json.dumps(data)
    return ""


def a2a_to_chat_messages(messages: list[dict]) -> list[dict]:
    """Flatten A2A message parts into {role, content, metadata} chat messages."""
    converted = []
    for msg in messages:
        parts = msg.get("parts")
        content = ""
        if isinstance(parts, list):
            content = "\n".join(_part_to_text(p) for p in parts if isinstance(p, dict))
        converted.append({
            "role": msg.get("role") or "user",
            "content": content,
            "metadata": msg.get("metadata"),
        })
    return converted


def build_history(messages: list[dict], agent_text: str, task_id: str) -> list[dict]:
    """Input messages echoed back in wire form, followed by the agent's reply."""
    history = []
    for msg in messages:
        parts = [
            {
                **part,
                "data": None if part.get("kind") == "text" else part.get("data"),
                "file_url": None,
            }
            for part in msg.get("parts") or []
            if isinstance(part, dict)
        ]
        history.append({
            "kind": "message",
            "role": msg.get("role"),
            "parts": parts,
            "messageId": msg.get("messageId") or new_id(),
            "taskId": msg.get("taskId") or task_id,
            "metadata": msg.get("metadata") or None,
        })
    history.append(
        A2AMessage(
            role="agent",
            parts=[MessagePart.text_part(agent_text)],
            taskId=task_id,
        ).model_dump()
    )
    return history


# =============================================================================
# Endpoints
# =============================================================================

@app.post("/a2a/agent/{agent_id}")
async def a2a_agent(agent_id: str, request: Request, background_tasks: BackgroundTasks):
    """A2A JSON-RPC entry point: message/send to the named agent."""
    try:
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(create_unknown_method_response())

        if not body or not isinstance(body, dict):
            return JSONResponse(create_unknown_method_response())

        request_id = body.get("id")
        method = body.get("method")

        if not method or method != "message/send":
            return JSONResponse(create_unknown_method_response(request_id))

        if body.get("jsonrpc") != "2.0" or not request_id:
            return jsonrpc_error(
                request_id or None, INVALID_REQUEST,
                'Invalid Request: jsonrpc must be "2.0" and id is required',
                status_code=400,
            )

        agent = _container.get_agent_registry().get(agent_id)
        if agent is None:
            return jsonrpc_error(
                request_id, INVALID_PARAMS, f"Agent '{agent_id}' not found",
                status_code=404,
            )

        params = body.get("params") or {}
        message = params.get("message")
        messages = params.get("messages")
        context_id = params.get("contextId") or new_id()
        task_id = params.get("taskId") or new_id()

        if message:
            messages_list = [message]
        elif isinstance(messages, list):
            messages_list = messages
        else:
            messages_list = []

        if not messages_list:
            return jsonrpc_error(
                request_id, INVALID_PARAMS,
                "Invalid params: 'message' or 'messages' is required",
                status_code=400,
            )

        chat_messages = a2a_to_chat_messages(messages_list)
        question = chat_messages[-1]["content"] if chat_messages else ""

        collector = get_metrics_collector()
        with collector.track_query(agent_id, question) as tracker:
            response = await run_in_threadpool(agent.generate, chat_messages)
            tracker.set_tool_calls(len(response.tool_results))

        agent_text = response.text or ""

        artifacts = [
            Artifact(name=f"{agent_id}Response", parts=[MessagePart.text_part(agent_text)])
        ]
        if response.tool_results:
            artifacts.append(
                Artifact(
                    name="ToolResults",
                    parts=[MessagePart.data_part(r) for r in response.tool_results],
                )
            )

        task = TaskResult(
            id=task_id,
            contextId=context_id,
            status=TaskStatus(
                state="completed",
                message=A2AMessage(
                    role="agent",
                    parts=[MessagePart.text_part(agent_text)],
                    taskId=task_id,
                ),
            ),
            artifacts=artifacts,
            history=build_history(messages_list, agent_text, task_id),
        )
        # Scorers run after the response is sent
        background_tasks.add_task(agent.run_scorers, chat_messages, response)
        return JSONResponse({"jsonrpc": "2.0", "id": request_id, "result": task.model_dump()})

    except Exception as e:
        logger.error(f"A2A request to {agent_id} failed: {type(e).__name__}: {e}")
        return jsonrpc_error(
            None, INTERNAL_ERROR, "Internal error",
            status_code=500, data={"details": str(e)},
        )


@app.post("/api/v1/explain", response_model=ExplainResponse)
async def explain_question(request: ExplainRequest):
    """Run the retrieve-and-explain workflow for one question."""
    start_time = time.time()
    workflow = _container.get_workflow()
    try:
        run = await run_in_threadpool(workflow.run, {"question": request.question})
    except WorkflowError as e:
        raise HTTPException(status_code=503 if e.step_id == "explain-ndpa-step" else 400, detail=str(e))

    section = run.steps[workflow.search_step.id]
    return ExplainResponse(
        part=section["part"],
        section_number=section["section_number"],
        summary=section["summary"],
        explanation=run.result.explanation,
        latency_ms=(time.time() - start_time) * 1000,
    )


@app.get("/api/v1/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    try:
        index = _container.get_index()
    except LoadError as e:
        logger.warning(f"Health check: document unavailable: {e}")
        return HealthResponse(status="error", version=__version__, document="unavailable")

    return HealthResponse(
        status="ok",
        version=__version__,
        document="loaded",
        sections=len(index),
        agents=_container.get_agent_registry().ids(),
    )


@app.get("/api/v1/metrics")
async def metrics():
    """Aggregated request, search and score metrics, plus the latest requests."""
    collector = get_metrics_collector()
    return {
        **collector.get_metrics_dict(),
        "recent_queries": [q.to_dict() for q in collector.get_recent_queries(10)],
        "uptime_seconds": round(collector.get_uptime().total_seconds(), 1),
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=_container.get_config().log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
