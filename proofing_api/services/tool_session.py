"""
Bounded conversation loop for tool-augmented generation.

The backend may stop mid-answer to run a capability such as web search. Server
tools execute upstream, so the loop only has to echo the assistant turn back,
acknowledge each server tool invocation and resubmit until the model reports
``end_turn`` or the iteration budget runs out.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

LOGGER = logging.getLogger(__name__)

TERMINAL_STOP_REASON = "end_turn"
TOOL_STOP_REASONS = ("tool_use", "pause_turn")
TOOL_BLOCK_TYPES = ("tool_use", "server_tool_use")

class SessionState(Enum):
    AWAITING_RESPONSE = "awaiting_response"
    TOOL_REQUESTED = "tool_requested"
    DONE = "done"
    EXHAUSTED = "exhausted"

@dataclass
class ToolSession:
    turns: List[dict]
    remaining: int
    state: SessionState = SessionState.AWAITING_RESPONSE
    chunks: List[str] = field(default_factory=list)

    @classmethod
    def start(cls, manuscript: str, max_iterations: int) -> "ToolSession":
        return cls(turns=[{"role": "user", "content": f"原稿:\n{manuscript}"}], remaining=max_iterations)

    @property
    def text(self) -> str:
        return "".join(self.chunks)

    @property
    def finished(self) -> bool:
        return self.state in (SessionState.DONE, SessionState.EXHAUSTED)

    def absorb(self, response: dict) -> None:
        """Apply one backend response to the session and move to the next state."""
        content = response.get("content") or []
        stop_reason = response.get("stop_reason")

        for block in content:
            if block.get("type") == "text":
                self.chunks.append(block.get("text", ""))

        if stop_reason == TERMINAL_STOP_REASON:
            self.state = SessionState.DONE
            return

        tool_blocks = [b for b in content if b.get("type") in TOOL_BLOCK_TYPES]
        if tool_blocks or stop_reason in TOOL_STOP_REASONS:
            self.turns.append({"role": "assistant", "content": content})
            acks = [
                {"type": "server_tool_result", "tool_use_id": b.get("id")}
                for b in tool_blocks
                if b.get("type") == "server_tool_use"
            ]
            if acks:
                self.turns.append({"role": "user", "content": acks})
            self.state = SessionState.TOOL_REQUESTED
            return

        LOGGER.warning("Generation stopped with %r and no tool request; keeping partial text", stop_reason)
        self.state = SessionState.DONE

    def resume(self) -> None:
        if self.state is SessionState.TOOL_REQUESTED:
            self.state = SessionState.AWAITING_RESPONSE

def run_tool_session(
    client,
    system: str,
    manuscript: str,
    tools: Optional[List[dict]] = None,
    max_iterations: int = 10,
) -> ToolSession:
    """Drive the session to DONE or EXHAUSTED; each call waits for the previous response."""
    session = ToolSession.start(manuscript, max_iterations)

    while not session.finished:
        if session.remaining <= 0:
            LOGGER.warning("Tool loop exhausted after %d turns; using accumulated text", max_iterations)
            session.state = SessionState.EXHAUSTED
            break

        session.remaining -= 1
        # turns is mutated by absorb(), so hand the client a snapshot
        response = client.create(system=system, messages=list(session.turns), tools=tools)
        session.absorb(response)
        session.resume()

    return session
