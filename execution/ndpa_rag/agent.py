"""
NDPA Agent - LLM assistant with the search-ndpa tool

The agent sends the conversation to an OpenAI-compatible chat model along
with the search-ndpa function definition. Tool calls requested by the model
are executed locally against the DocumentIndex and fed back until the model
answers in plain text.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .errors import AgentError, ToolInputError
from .language_patterns import AGENT_INSTRUCTIONS
from .scorers import ScorerRun, ScoreResult
from .tools import SearchSectionTool

logger = logging.getLogger(__name__)

# A2A uses "agent" for the assistant side of a conversation
ROLE_ALIASES = {"agent": "assistant"}
CHAT_ROLES = {"system", "user", "assistant"}


@dataclass
class AgentResponse:
    """Final text of an agent run plus everything the tools returned."""
    text: str
    tool_results: list[dict] = field(default_factory=list)
    steps: int = 0

    @property
    def tool_names(self) -> list[str]:
        return [r["toolName"] for r in self.tool_results]


def to_chat_message(message: dict) -> dict:
    """Normalize an incoming {role, content} message to a chat-completions message."""
    role = message.get("role") or "user"
    role = ROLE_ALIASES.get(role, role)
    if role not in CHAT_ROLES:
        role = "user"
    return {"role": role, "content": message.get("content") or ""}


class NdpaAgent:
    """
    Expert assistant for the Nigeria Data Protection Act 2023.

    Args:
        client: OpenAI-compatible client (openai.OpenAI)
        tool: The search-ndpa tool bound to a DocumentIndex
        model: Chat model name
        max_steps: Upper bound on model calls per generate()
        scorers: {key: (scorer, ScorerSampling)} for run_scorers(), which callers
            run once the answer has been delivered
        metrics: Optional MetricsCollector that receives each score
    """

    def __init__(
        self,
        client,
        tool: SearchSectionTool,
        model: str,
        name: str = "NDPA Agent",
        agent_id: str = "ndpaAgent",
        instructions: str = AGENT_INSTRUCTIONS,
        max_steps: int = 5,
        scorers: Optional[dict] = None,
        metrics=None,
    ):
        self.name = name
        self.agent_id = agent_id
        self.instructions = instructions
        self.model = model
        self.tool = tool
        self.max_steps = max_steps
        self.scorers = scorers or {}
        self._metrics = metrics
        self._client = client

    def _conversation(self, messages: list[dict]) -> list[dict]:
        return [{"role": "system", "content": self.instructions}] + [
            to_chat_message(m) for m in messages
        ]

    def _run_tool_call(self, call) -> dict:
        """Execute one requested tool call and return its tool-result record."""
        name = call.function.name
        arguments = call.function.arguments or "{}"

        if name != self.tool.id:
            logger.warning(f"{self.agent_id}: model requested unknown tool '{name}'")
            output = {"error": f"Unknown tool '{name}'"}
        else:
            try:
                output = self.tool.call_from_arguments(arguments)
            except ToolInputError as e:
                logger.warning(f"{self.agent_id}: rejected tool input: {e}")
                output = {"error": str(e)}

        try:
            args = json.loads(arguments)
        except json.JSONDecodeError:
            args = {"raw": arguments}

        return {
            "type": "tool-result",
            "toolCallId": call.id,
            "toolName": name,
            "args": args,
            "result": output,
        }

    def generate(self, messages: list[dict]) -> AgentResponse:
        """
        Run the tool-calling loop and return the final answer.

        Args:
            messages: [{"role": ..., "content": ...}] in conversation order

        Returns:
            AgentResponse with text, tool results and step count

        Raises:
            AgentError: If no messages are given
        """
        if not messages:
            raise AgentError("No messages to respond to")

        conversation = self._conversation(messages)
        tool_results: list[dict] = []
        text = ""
        steps = 0

        for steps in range(1, self.max_steps + 1):
            response = self._client.chat.completions.create(
                model=self.model,
                messages=conversation,
                tools=[self.tool.to_openai_tool()],
                temperature=0.2,
            )
            message = response.choices[0].message
            tool_calls = message.tool_calls or []
            text = message.content or ""

            if not tool_calls:
                break

            conversation.append({
                "role": "assistant",
                "content": text,
                "tool_calls": [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {
                            "name": call.function.name,
                            "arguments": call.function.arguments,
                        },
                    }
                    for call in tool_calls
                ],
            })
            for call in tool_calls:
                record = self._run_tool_call(call)
                tool_results.append(record)
                conversation.append({
                    "role": "tool",
                    "tool_call_id": call.id,
                    "content": json.dumps(record["result"], ensure_ascii=False),
                })
        else:
            logger.warning(f"{self.agent_id}: stopped after {self.max_steps} steps without a final answer")

        return AgentResponse(text=text, tool_results=tool_results, steps=steps)

    def stream(self, messages: list[dict]) -> Iterator[str]:
        """Yield text deltas of a plain (tool-free) completion."""
        stream = self._client.chat.completions.create(
            model=self.model,
            messages=self._conversation(messages),
            temperature=0.2,
            stream=True,
        )
        for chunk in stream:
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content

    def run_scorers(self, messages: list[dict], response: AgentResponse) -> dict[str, ScoreResult]:
        """
        Score a finished run with each sampled scorer.

        Not called by generate(); the A2A route runs it as a background task
        after the response is sent. A failing scorer is logged and skipped.
        """
        results = {}
        if not self.scorers:
            return results

        run = ScorerRun(
            input_messages=[to_chat_message(m) for m in messages],
            output_text=response.text,
            tool_calls=response.tool_names,
        )
        for key, (scorer, sampling) in self.scorers.items():
            if not sampling.should_sample():
                continue
            try:
                results[key] = scorer.run(run)
                logger.info(f"{self.agent_id}: scorer {key}={results[key].score}")
                if self._metrics is not None:
                    self._metrics.record_score(key, results[key].score)
            except Exception as e:
                logger.error(f"{self.agent_id}: scorer {key} failed: {type(e).__name__}: {e}")
        return results


class AgentRegistry:
    """Agents addressable by id, as used by the A2A route."""

    def __init__(self, agents: Optional[list[NdpaAgent]] = None):
        self._agents = {a.agent_id: a for a in agents or []}

    def register(self, agent: NdpaAgent) -> None:
        self._agents[agent.agent_id] = agent

    def get(self, agent_id: str) -> Optional[NdpaAgent]:
        return self._agents.get(agent_id)

    def ids(self) -> list[str]:
        return list(self._agents)
