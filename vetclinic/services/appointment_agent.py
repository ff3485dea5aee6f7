import json
import logging
from datetime import datetime
from typing import Any

import httpx

from vetclinic.core.config import Settings, settings
from vetclinic.services.agent_tools import TOOL_DEFINITIONS, execute_tool
from vetclinic.services.business_hours import BusinessHours
from vetclinic.services.store import AppointmentStore

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "The assistant is unavailable right now. Please try again."

SYSTEM_PROMPT = (
    "You are the scheduling assistant of a veterinary clinic. "
    "Use the tools to check available times and to book appointments. "
    "Relay tool results to the user faithfully and answer briefly."
)


class AppointmentAgent:
    """One-exchange tool-calling agent over an OpenAI-compatible chat completions API.

    The model may request a single tool call; it is executed against the store
    and its text result is sent back for the final reply.
    """

    def __init__(
        self,
        store: AppointmentStore,
        client: httpx.AsyncClient | None = None,
        config: Settings = settings,
        hours: BusinessHours | None = None,
    ) -> None:
        self.store = store
        self.config = config
        self.hours = hours or BusinessHours.from_settings(config)
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.llm_base_url,
                timeout=self.config.llm_timeout_seconds,
            )
        return self._client

    async def close(self) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _complete(self, messages: list[dict[str, Any]]) -> dict[str, Any] | None:
        try:
            resp = await self.client.post(
                "/chat/completions",
                json={
                    "model": self.config.llm_model,
                    "messages": messages,
                    "tools": TOOL_DEFINITIONS,
                    "tool_choice": "auto",
                },
                headers={"Authorization": f"Bearer {self.config.llm_api_key}"},
            )
        except httpx.HTTPError as e:
            logger.warning("Chat completion request failed: %s", e)
            return None
        if resp.status_code != 200:
            logger.warning(
                "Chat completion failed: status=%s body=%s", resp.status_code, resp.text[:500]
            )
            return None
        try:
            return resp.json()["choices"][0]["message"]
        except (ValueError, KeyError, IndexError) as e:
            logger.warning("Unexpected chat completion payload: %s", e)
            return None

    async def run(self, prompt: str, now: datetime | None = None) -> str:
        now = now or datetime.now().astimezone()
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"The current date and time is {now.isoformat()}. {prompt}"},
        ]
        reply = await self._complete(messages)
        if reply is None:
            return UNAVAILABLE_MESSAGE

        tool_calls = reply.get("tool_calls") or []
        if not tool_calls:
            return reply.get("content") or ""

        call = tool_calls[0]
        name = call.get("function", {}).get("name", "")
        try:
            arguments = json.loads(call.get("function", {}).get("arguments") or "{}")
        except json.JSONDecodeError:
            arguments = None
        if isinstance(arguments, dict):
            result = await execute_tool(self.store, name, arguments, hours=self.hours)
        else:
            result = f"Invalid arguments for {name}."
        logger.info("Tool %s returned: %s", name, result)

        messages.append({"role": "assistant", "content": reply.get("content"), "tool_calls": [call]})
        messages.append({"role": "tool", "tool_call_id": call.get("id", ""), "content": result})
        final = await self._complete(messages)
        if final is None:
            # The tool already ran; its text is still a usable answer
            return result
        return final.get("content") or result
