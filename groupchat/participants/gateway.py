"""Gateway Responder - Calls models via llm-gateway.

This responder routes agent replies through an llm-gateway service exposing
an OpenAI-compatible ``/v1/chat/completions`` endpoint; the gateway handles
provider routing (OpenAI, OpenRouter, Anthropic, etc.).

Each participant is independent: if one provider fails, that participant's
reply fails and the conversation continues with the others.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence

import httpx

from groupchat.core.config import get_settings
from groupchat.core.exceptions import ResponderError
from groupchat.participants.base import BaseResponder
from groupchat.schemas import ChatContext, LLMConfig, Message, MessageRole, Participant


logger = logging.getLogger(__name__)

_COMPLETIONS_PATH = "/v1/chat/completions"
_HEALTH_PATH = "/health"
_UNKNOWN = "unknown"


class GatewayResponder(BaseResponder):
    """Responder for agent participants backed by a remote model.

    The participant's ``llm_config`` selects the model; ``default_model`` is
    used for participants without one.

    Attributes:
        gateway_url: URL of the llm-gateway service.
        timeout: Request timeout in seconds.
        history_window: Trailing messages sent with each request.
    """

    def __init__(
        self,
        gateway_url: str | None = None,
        timeout: float | None = None,
        history_window: int | None = None,
        default_model: LLMConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the gateway responder.

        Args:
            gateway_url: URL of llm-gateway service (settings by default).
            timeout: Request timeout in seconds (settings by default).
            history_window: Trailing messages to send (settings by default).
            default_model: Model settings for participants without llm_config.
            client: Pre-built HTTP client (e.g. with a mock transport).
        """
        settings = get_settings()
        self.gateway_url = (gateway_url or settings.llm_gateway_url).rstrip("/")
        self.timeout = timeout or settings.llm_timeout_seconds
        self.history_window = history_window or settings.history_window
        self.default_model = default_model
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

    async def respond(
        self,
        participant: Participant,
        messages: Sequence[Message],
        context: ChatContext,
    ) -> str:
        """Generate a reply via llm-gateway.

        Raises:
            ResponderError: If the gateway or provider fails.
        """
        llm = participant.llm_config or self.default_model
        if llm is None:
            raise ResponderError(
                f"Participant '{participant.name}' has no model configured",
                provider=_UNKNOWN,
                model=_UNKNOWN,
            )
        provider = llm.provider or _UNKNOWN

        request_body = {
            "model": llm.model,
            "messages": self._build_messages(participant, messages),
            "temperature": llm.temperature,
            "max_tokens": llm.max_tokens,
        }

        logger.info(
            "Calling LLM: provider=%s, model=%s, participant=%s, round=%d",
            provider, llm.model, participant.name, context.current_round,
        )
        started = time.perf_counter()

        try:
            response = await self._client.post(
                f"{self.gateway_url}{_COMPLETIONS_PATH}",
                json=request_body,
            )
        except httpx.HTTPError as e:
            logger.error(
                "HTTP error calling LLM: provider=%s, model=%s, error=%s",
                provider, llm.model, e,
            )
            raise ResponderError(str(e) or type(e).__name__, provider=provider, model=llm.model) from e

        if response.status_code >= 400:
            error_msg, error_code = _error_details(response)
            logger.error(
                "LLM provider error: provider=%s, model=%s, status=%s, code=%s, message=%s",
                provider, llm.model, response.status_code, error_code, error_msg,
            )
            raise ResponderError(
                error_msg,
                provider=provider,
                model=llm.model,
                status_code=response.status_code,
                error_code=error_code,
            )

        data = response.json()
        content = ""
        if data.get("choices"):
            content = data["choices"][0].get("message", {}).get("content") or ""

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        tokens_used = (data.get("usage") or {}).get("total_tokens")
        logger.info(
            "LLM response received: provider=%s, model=%s, tokens=%s, latency=%dms",
            provider, llm.model, tokens_used, elapsed_ms,
        )

        if not content:
            raise ResponderError(
                "Gateway returned an empty completion",
                provider=provider,
                model=llm.model,
                status_code=response.status_code,
            )
        return content

    def _build_messages(
        self,
        participant: Participant,
        messages: Sequence[Message],
    ) -> list[dict[str, str]]:
        """Build the chat completion message list.

        The participant's own replies are sent as ``assistant``; everyone
        else's messages as ``user``, prefixed with the sender's name.
        """
        payload = [{"role": "system", "content": self._build_system_prompt(participant)}]

        for msg in list(messages)[-self.history_window:]:
            if msg.name == participant.name and msg.role == MessageRole.ASSISTANT:
                payload.append({"role": "assistant", "content": msg.content})
            else:
                payload.append({"role": "user", "content": f"[{msg.name.upper()}]: {msg.content}"})

        return payload

    def _build_system_prompt(self, participant: Participant) -> str:
        prompt_parts = [f"You are {participant.name}, participating in a group conversation."]
        if participant.system_prompt:
            prompt_parts.insert(0, participant.system_prompt)
            prompt_parts.insert(1, "")
        if participant.description:
            prompt_parts.append(f"ROLE: {participant.description}")
        if participant.capabilities:
            prompt_parts.append(f"CAPABILITIES: {', '.join(participant.capabilities)}")
        prompt_parts.extend([
            "",
            "INSTRUCTIONS:",
            "- Build on what the other participants said",
            "- Be concise and constructive",
        ])
        return "\n".join(prompt_parts)

    async def health_check(self) -> bool:
        """Check if llm-gateway is healthy.

        Returns:
            True if healthy, False otherwise.
        """
        try:
            response = await self._client.get(f"{self.gateway_url}{_HEALTH_PATH}")
        except httpx.HTTPError as e:
            logger.warning("llm-gateway health check failed: %s", e)
            return False
        return response.status_code == 200

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def _error_details(response: httpx.Response) -> tuple[str, Any]:
    try:
        error = (response.json() if response.content else {}).get("error") or {}
    except ValueError:
        return response.text or f"HTTP {response.status_code}", None
    if isinstance(error, str):
        return error, None
    return error.get("message") or response.text or f"HTTP {response.status_code}", error.get("code")
