"""Unit tests for FunctionResponder and ParticipantRouter."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from groupchat.schemas import ChatContext, Message, MessageRole, Participant, ParticipantType


# =============================================================================
# Test Constants (S1192 compliance)
# =============================================================================

_CHAT_ID = "chat-router"
_CALCULATOR = "calculator"


def _context() -> ChatContext:
    return ChatContext(chat_id=_CHAT_ID, current_round=1)


def _messages() -> list[Message]:
    return [Message(role=MessageRole.USER, content="2 + 3", name="user")]


def _function_participant(name: str = _CALCULATOR) -> Participant:
    return Participant(name=name, type=ParticipantType.FUNCTION)


def _add_numbers(participant, messages, context):
    left, right = messages[-1].content.split("+")
    return int(left) + int(right)


class TestFunctionResponder:
    @pytest.mark.asyncio
    async def test_sync_function_output_stringified(self) -> None:
        from groupchat.participants import FunctionResponder

        responder = FunctionResponder({_CALCULATOR: _add_numbers})

        reply = await responder.respond(_function_participant(), _messages(), _context())

        assert reply == "5"

    @pytest.mark.asyncio
    async def test_async_function(self) -> None:
        from groupchat.participants import FunctionResponder

        async def echo(participant, messages, context):
            return f"{participant.name} saw round {context.current_round}"

        responder = FunctionResponder()
        responder.register("echo", echo)

        reply = await responder.respond(_function_participant("echo"), _messages(), _context())

        assert reply == "echo saw round 1"
        assert responder.registered == ["echo"]

    @pytest.mark.asyncio
    async def test_unregistered_participant(self) -> None:
        from groupchat.core.exceptions import ResponseGenerationError
        from groupchat.participants import FunctionResponder

        with pytest.raises(ResponseGenerationError) as exc_info:
            await FunctionResponder().respond(_function_participant(), _messages(), _context())

        assert exc_info.value.participant_name == _CALCULATOR

    @pytest.mark.asyncio
    async def test_callable_as_reply_generator(self) -> None:
        from groupchat.participants import FunctionResponder

        responder = FunctionResponder({_CALCULATOR: _add_numbers})

        assert await responder(_function_participant(), _messages(), _context()) == "5"


class TestParticipantRouter:
    @pytest.mark.asyncio
    async def test_routes_by_type(self) -> None:
        from groupchat.participants import FunctionResponder, ParticipantRouter

        agent_responder = AsyncMock()
        agent_responder.respond.return_value = "agent reply"
        router = ParticipantRouter({
            ParticipantType.AGENT: agent_responder,
            "function": FunctionResponder({_CALCULATOR: _add_numbers}),
        })

        agent_reply = await router.respond(Participant(name="alice"), _messages(), _context())
        function_reply = await router.respond(_function_participant(), _messages(), _context())

        assert agent_reply == "agent reply"
        assert function_reply == "5"
        agent_responder.respond.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unrouted_type(self) -> None:
        from groupchat.core.exceptions import ResponseGenerationError
        from groupchat.participants import ParticipantRouter

        router = ParticipantRouter()

        with pytest.raises(ResponseGenerationError):
            await router.respond(Participant(name="operator", type="human"), _messages(), _context())

    @pytest.mark.asyncio
    async def test_health_requires_all(self) -> None:
        from groupchat.participants import ParticipantRouter

        healthy, unhealthy = AsyncMock(), AsyncMock()
        healthy.health_check.return_value = True
        unhealthy.health_check.return_value = False

        router = ParticipantRouter({ParticipantType.AGENT: healthy})
        assert await router.health_check() is True

        router.register(ParticipantType.HUMAN, unhealthy)
        assert await router.health_check() is False

    @pytest.mark.asyncio
    async def test_close_each_responder_once(self) -> None:
        from groupchat.participants import ParticipantRouter

        shared = AsyncMock()
        router = ParticipantRouter({ParticipantType.AGENT: shared, ParticipantType.HUMAN: shared})

        await router.close()

        shared.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failing_responder_is_a_reply_failure(self) -> None:
        from groupchat.chat import GroupChatOrchestrator
        from groupchat.participants import FunctionResponder, ParticipantRouter
        from groupchat.schemas import GroupChatConfig

        router = ParticipantRouter({ParticipantType.FUNCTION: FunctionResponder({_CALCULATOR: _add_numbers})})
        config = GroupChatConfig(
            participants=[_function_participant(), _function_participant("unregistered")],
            max_rounds=2,
        )

        result = await GroupChatOrchestrator(config, response_generator=router).start({
            "initial_message": "2 + 3",
        })

        assert [m.content for m in result.messages] == ["2 + 3", "5"]
        assert result.metrics.failed_responses == 1
