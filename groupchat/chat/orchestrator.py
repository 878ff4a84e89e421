"""GroupChatOrchestrator - turn loop of a multi-agent conversation.

Each round the orchestrator asks the termination evaluator for a verdict,
checks the round and message caps, selects the next speaker, awaits that
participant's reply and appends it. A reply can spawn a nested chat whose
summary is folded back as one system message.

State machine:
    initializing -> active <-> paused -> {completed | terminated | error}

Error handling:
- Misuse at construction or start() raises (ChatConfigurationError,
  ChatStateError)
- A failing reply marks the participant ``error`` and the round continues
- Anything else inside the loop ends the chat with status ``error`` and is
  returned inside the ChatResult instead of propagating
- Cancelling start() finalizes the chat as ``terminated`` and re-raises

Anti-Patterns Avoided:
- S1192: Constants at module level
- S3776: Cognitive complexity < 15 via helper methods
- One turn routine shared by parent and nested rounds
- No event state shared between orchestrator instances
"""

from __future__ import annotations

import asyncio
import inspect
import random
import time
import traceback
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from groupchat.chat.events import ChatEvent, ChatEventType, EventChannel, EventHandler, Unsubscribe
from groupchat.core.config import Settings, get_settings
from groupchat.core.constants import (
    DEFAULT_SENDER,
    NESTED_SUMMARY_PREFIX,
    SYSTEM_SENDER,
    TOP_CONTRIBUTORS_LIMIT,
    ErrorCode,
)
from groupchat.core.exceptions import (
    ChatConfigurationError,
    ChatStateError,
    NestedChatError,
    ResponseGenerationError,
    ResponseTimeoutError,
    SpeakerSelectionError,
    TerminationEvaluationError,
)
from groupchat.core.logging import chat_logger
from groupchat.nested import NestedChatManager
from groupchat.schemas import (
    AddParticipantOptions,
    ChatContext,
    ChatError,
    ChatMetrics,
    ChatResult,
    ChatStatus,
    CreateMessageOptions,
    GroupChatConfig,
    Message,
    MessageRole,
    NestedChatConfig,
    NestedChatResult,
    Participant,
    ParticipantStatus,
    SpeakerSelectionMethod,
    SpeakerSelectionResult,
    StartChatOptions,
    StateKey,
    StateValue,
    TerminationCondition,
)
from groupchat.schemas.chat import estimate_tokens, new_id, utcnow
from groupchat.selection import SpeakerSelectionManager, SpeakerSelectorProtocol
from groupchat.termination import TerminationEvaluator


# =============================================================================
# Module Constants (S1192 compliance)
# =============================================================================

_MANUAL_STOP_REASON = "Manually stopped"
_PARENT_ENDED_REASON = "Parent chat ended"
_CANCELLED_REASON = "Cancelled"
_STATE_KEY_NAMES = frozenset(key.value for key in StateKey)

_PLACEHOLDER_TEMPLATES = (
    "[{name}]: I acknowledge the message and am ready to contribute.",
    "[{name}]: Based on my expertise in {capabilities}, I suggest we proceed.",
    "[{name}]: Let me analyze this from my perspective.",
)

_ERROR_CODES: tuple[tuple[type[Exception], ErrorCode], ...] = (
    (SpeakerSelectionError, ErrorCode.SPEAKER_SELECTION_ERROR),
    (TerminationEvaluationError, ErrorCode.TERMINATION_ERROR),
    (NestedChatError, ErrorCode.NESTED_CHAT_ERROR),
)

ResponseGenerator = Callable[
    [Participant, Sequence[Message], ChatContext],
    Union[str, Awaitable[str]],
]


@dataclass
class _TurnScope:
    """Which log, counter and participants one turn operates on."""

    participants: list[Participant]
    messages: list[Message]
    context: ChatContext
    on_reply: Callable[[Participant, str], Awaitable[Message]]
    method: Optional[SpeakerSelectionMethod] = None
    nested: bool = False


class GroupChatOrchestrator:
    """Drives one conversation between registered participants.

    The message log, participant registry and context belong to this
    instance. Selectors, evaluators and the reply generator only ever see
    copies, so they can be shared between concurrent conversations.

    Example:
        >>> chat = GroupChatOrchestrator(config, response_generator=generate)
        >>> result = await chat.start(StartChatOptions(initial_message="Plan the release"))
        >>> result.status
        <ChatStatus.TERMINATED: 'terminated'>
    """

    def __init__(
        self,
        config: GroupChatConfig | Mapping[str, Any],
        *,
        response_generator: ResponseGenerator | None = None,
        speaker_selector: SpeakerSelectorProtocol | None = None,
        termination_evaluator: TerminationEvaluator | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Chat configuration, or a mapping validated into one.
            response_generator: Produces a participant's reply text.
            speaker_selector: Replaces the built-in selection manager.
            termination_evaluator: Replaces the evaluator built from
                ``config.termination_conditions``.
            settings: Fallback limits (defaults to get_settings()).

        Raises:
            ChatConfigurationError: If the configuration is invalid.
        """
        self._config = _validate_config(config)
        self._settings = settings or get_settings()

        self._chat_id = self._config.id or new_id()
        self._max_rounds = self._config.max_rounds or self._settings.default_max_rounds
        self._max_messages = self._config.max_messages or self._settings.default_max_messages
        self._timeout_ms = self._config.timeout_ms or self._settings.default_timeout_ms

        self._participants: dict[str, Participant] = {
            p.name: p.model_copy(deep=True) for p in self._config.participants
        }
        self._messages: list[Message] = []
        self._context = ChatContext(
            chat_id=self._chat_id,
            active_participants=list(self._participants),
        )
        self._metrics = ChatMetrics()
        self._nested_results: list[NestedChatResult] = []
        self._status = ChatStatus.INITIALIZING
        self._result: ChatResult | None = None
        self._started_at: datetime | None = None
        self._started_clock: float | None = None

        if speaker_selector is not None and not isinstance(speaker_selector, SpeakerSelectorProtocol):
            raise ChatConfigurationError(
                "speaker_selector must implement select_speaker()",
                field="speaker_selector",
                value=type(speaker_selector).__name__,
                chat_id=self._chat_id,
            )
        self._selector = speaker_selector or SpeakerSelectionManager(self._config.speaker_selection_method)
        self._evaluator = termination_evaluator or TerminationEvaluator(self._config.termination_conditions)
        self._nested = NestedChatManager(self._config.nested_chat_configs)
        self._generator = response_generator

        self._events = EventChannel()
        self._running = asyncio.Event()
        self._running.set()

        self._log = chat_logger(__name__, self._chat_id, chat_name=self._config.name)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def chat_id(self) -> str:
        return self._chat_id

    @property
    def name(self) -> str | None:
        return self._config.name

    @property
    def status(self) -> ChatStatus:
        return self._status

    @property
    def messages(self) -> list[Message]:
        """Copy of the message log."""
        return list(self._messages)

    @property
    def participants(self) -> list[Participant]:
        """Copies of the registered participants in registry order."""
        return [p.model_copy(deep=True) for p in self._participants.values()]

    @property
    def context(self) -> ChatContext:
        """Snapshot of the conversation context."""
        return self._context.snapshot()

    @property
    def metrics(self) -> ChatMetrics:
        """Snapshot of the running metrics."""
        return self._metrics.model_copy(deep=True)

    @property
    def events(self) -> EventChannel:
        """This conversation's event channel."""
        return self._events

    @property
    def result(self) -> ChatResult | None:
        """Final result once the chat reached a terminal status."""
        return self._result

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def set_response_generator(self, generator: ResponseGenerator | None) -> None:
        """Replace the reply generator (None restores placeholder replies)."""
        self._generator = generator

    def subscribe(
        self,
        handler: EventHandler,
        event_type: ChatEventType | str | None = None,
    ) -> Unsubscribe:
        """Subscribe to this conversation's events."""
        return self._events.subscribe(handler, event_type)

    def add_termination_condition(self, condition: TerminationCondition) -> None:
        self._evaluator.add_condition(condition)

    def add_nested_chat_config(self, config: NestedChatConfig) -> None:
        self._nested.add_config(config)

    def update_state(self, values: Mapping[str, StateValue]) -> None:
        """Merge values into the context scratch state."""
        self._context.state.update(values)

    def get_state(self, key: StateKey | str) -> Any:
        """Read a known state key or an extension value."""
        if isinstance(key, StateKey) or key in _STATE_KEY_NAMES:
            return self._context.state.get(key)
        return self._context.state.get_extension(key)

    # -------------------------------------------------------------------------
    # Participants and messages
    # -------------------------------------------------------------------------

    def add_participant(self, options: AddParticipantOptions | Mapping[str, Any]) -> Participant:
        """Register a participant; it joins the rotation from the next round.

        Raises:
            ChatConfigurationError: If the name is already registered.
        """
        if isinstance(options, Mapping):
            options = AddParticipantOptions.model_validate(options)
        if options.name in self._participants:
            raise ChatConfigurationError(
                f"Participant '{options.name}' is already registered",
                field="name",
                value=options.name,
                chat_id=self._chat_id,
            )

        participant = Participant.model_validate(options.model_dump())
        self._participants[participant.name] = participant
        self._context.active_participants.append(participant.name)
        self._log.info("participant_added", participant=participant.name)
        return participant.model_copy(deep=True)

    def remove_participant(self, name: str) -> None:
        """Unregister a participant. Unknown names are ignored."""
        if self._participants.pop(name, None) is None:
            return
        self._context.active_participants = [n for n in self._context.active_participants if n != name]
        self._log.info("participant_removed", participant=name)

    def update_participant_status(self, name: str, status: ParticipantStatus | str) -> None:
        """Set a participant's status. Unknown names are ignored."""
        participant = self._participants.get(name)
        if participant is not None:
            participant.status = ParticipantStatus(status)

    async def add_message(self, options: CreateMessageOptions | Mapping[str, Any]) -> Message:
        """Append a message to the log and emit ``message_received``."""
        if isinstance(options, Mapping):
            options = CreateMessageOptions.model_validate(options)

        message = Message(
            role=options.role,
            content=options.content,
            name=options.name,
            content_type=options.content_type,
            function_call=options.function_call,
            metadata=dict(options.metadata),
        )
        self._messages.append(message)
        self._context.message_count = len(self._messages)
        await self._emit(ChatEventType.MESSAGE_RECEIVED, {"message": message})
        return message

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self, options: StartChatOptions | Mapping[str, Any] | None = None) -> ChatResult:
        """Run the conversation until it terminates.

        Loop failures do not raise: the returned result carries status
        ``error`` and a ChatError.

        Raises:
            ChatStateError: If the chat was already started or stopped.
            ChatConfigurationError: If the options are invalid.
        """
        if self._status != ChatStatus.INITIALIZING:
            raise ChatStateError(
                f"Cannot start chat in status: {self._status.value}",
                current_status=self._status.value,
                operation="start",
                chat_id=self._chat_id,
            )

        options = self._validate_start_options(options)
        if options.initial_state:
            try:
                self._context.state.update(options.initial_state)
            except ValueError as e:
                raise ChatConfigurationError(
                    f"Invalid initial state: {e}",
                    field="initial_state",
                    chat_id=self._chat_id,
                ) from e

        self._status = ChatStatus.ACTIVE
        self._started_at = utcnow()
        self._started_clock = time.perf_counter()
        self._context.start_time = self._started_at
        self._log.info(
            "chat_started",
            participants=list(self._participants),
            max_rounds=self._max_rounds,
            max_messages=self._max_messages,
        )

        try:
            await self._emit(ChatEventType.CHAT_STARTED, {
                "name": self._config.name,
                "participants": list(self._participants),
                "speaker_selection_method": self._config.speaker_selection_method.value,
            })
            if options.initial_message:
                await self.add_message(CreateMessageOptions(
                    role=MessageRole.USER,
                    content=options.initial_message,
                    name=options.initial_sender or self._config.admin_name or DEFAULT_SENDER,
                ))
            return await self._run_loop(options)
        except asyncio.CancelledError:
            await self._finalize(ChatStatus.TERMINATED, _CANCELLED_REASON)
            raise
        except Exception as e:
            return await self._handle_error(e)

    def pause(self) -> None:
        """Suspend the loop before its next round. No-op unless active."""
        if self._status == ChatStatus.ACTIVE:
            self._status = ChatStatus.PAUSED
            self._running.clear()
            self._log.info("chat_paused", round=self._context.current_round)

    def resume(self) -> None:
        """Continue a paused loop. No-op unless paused."""
        if self._status == ChatStatus.PAUSED:
            self._status = ChatStatus.ACTIVE
            self._running.set()
            self._log.info("chat_resumed", round=self._context.current_round)

    async def stop(self, reason: str | None = None) -> ChatResult:
        """Terminate the chat and return its result.

        A reply being generated is not interrupted; it is discarded when it
        arrives. Stopping a finished chat returns the existing result.
        """
        if self._result is not None:
            return self._result
        return await self._finalize(ChatStatus.TERMINATED, reason or _MANUAL_STOP_REASON)

    # -------------------------------------------------------------------------
    # Turn loop
    # -------------------------------------------------------------------------

    async def _run_loop(self, options: StartChatOptions) -> ChatResult:
        while True:
            await self._running.wait()
            if self._result is not None:
                return self._result

            verdict = await self._evaluator.evaluate(
                self._messages,
                list(self._participants.values()),
                self._context,
            )
            if self._result is not None:
                return self._result
            if verdict.should_terminate:
                return await self._finalize(ChatStatus.COMPLETED, verdict.reason)

            if self._context.current_round >= self._max_rounds:
                return await self._finalize(
                    ChatStatus.TERMINATED, f"Maximum rounds reached: {self._max_rounds}"
                )
            if len(self._messages) >= self._max_messages:
                return await self._finalize(
                    ChatStatus.TERMINATED, f"Maximum messages reached: {self._max_messages}"
                )

            self._context.current_round += 1
            current_round = self._context.current_round
            await self._emit(ChatEventType.ROUND_STARTED, {"round": current_round})

            if options.skip_initial_selection and current_round == 1:
                self._skip_initial_selection(options)
            else:
                await self._run_turn(self._parent_scope())

            if self._result is not None:
                return self._result
            await self._emit(ChatEventType.ROUND_ENDED, {"round": current_round})

    def _skip_initial_selection(self, options: StartChatOptions) -> None:
        # The opening sender counts as the round-1 speaker so rotation continues after it
        sender = options.initial_sender
        if sender is not None and sender in self._participants:
            self._context.current_speaker = sender
            self._context.state.consecutive_replies = 1
            self._context.state.current_speaker_index = list(self._participants).index(sender)
        self._log.debug("initial_selection_skipped", initial_sender=sender)

    def _parent_scope(self) -> _TurnScope:
        return _TurnScope(
            participants=list(self._participants.values()),
            messages=self._messages,
            context=self._context,
            on_reply=self._append_reply,
        )

    async def _run_turn(self, scope: _TurnScope) -> Optional[Message]:
        """Select a speaker for ``scope``, generate its reply and append it.

        Returns:
            The appended message, or None when nothing was appended.
        """
        selection = await self._select_speaker(scope)
        context = scope.context

        if context.current_speaker == selection.speaker:
            context.state.consecutive_replies += 1
        else:
            context.state.consecutive_replies = 1
        context.previous_speaker = context.current_speaker
        context.current_speaker = selection.speaker
        context.state.last_selection_reason = selection.reason
        context.state.current_speaker_index = _registry_index(scope.participants, selection.speaker)

        if not scope.nested:
            await self._emit(ChatEventType.SPEAKER_SELECTED, {
                "speaker": selection.speaker,
                "reason": selection.reason,
                "round": context.current_round,
            })

        participant = next((p for p in scope.participants if p.name == selection.speaker), None)
        if participant is None:
            return None

        content = await self._generate_reply(participant, scope)
        if content is None:
            return None
        return await scope.on_reply(participant, content)

    async def _select_speaker(self, scope: _TurnScope) -> SpeakerSelectionResult:
        participants = [p.model_copy(deep=True) for p in scope.participants]
        messages = tuple(scope.messages)
        context = scope.context.snapshot()
        config = self._config.speaker_selection_config

        if scope.method is not None and isinstance(self._selector, SpeakerSelectionManager):
            return await self._selector.select_speaker(
                participants, messages, context, config, method=scope.method
            )
        return await self._selector.select_speaker(participants, messages, context, config)

    async def _generate_reply(self, participant: Participant, scope: _TurnScope) -> Optional[str]:
        """Await one reply attempt; failures are recorded, never raised.

        Every attempt leaves the participant idle or in error and is counted
        once, even when the chat ended while it was in flight. Cancellation
        counts as a failure and propagates.
        """
        participant.status = ParticipantStatus.BUSY
        started = time.perf_counter()
        try:
            content = await self._call_generator(participant, scope)
        except asyncio.CancelledError:
            self._record_failure(participant, scope, "cancelled")
            raise
        except Exception as e:
            self._record_failure(participant, scope, str(e))
            return None

        participant.status = ParticipantStatus.IDLE
        if not scope.nested:
            self._record_success(participant.name, (time.perf_counter() - started) * 1000, content)
        if self._discard_late(scope, participant):
            return None
        return content

    def _record_failure(self, participant: Participant, scope: _TurnScope, error: str) -> None:
        participant.status = ParticipantStatus.ERROR
        if not scope.nested:
            self._metrics.failed_responses += 1
        self._log.error(
            "response_failed",
            participant=participant.name,
            error=error,
            nested=scope.nested,
        )

    async def _call_generator(self, participant: Participant, scope: _TurnScope) -> str:
        call = self._invoke_generator(
            participant.model_copy(deep=True),
            tuple(scope.messages),
            scope.context.snapshot(),
        )
        if self._timeout_ms is None:
            content = await call
        else:
            timeout_seconds = self._timeout_ms / 1000
            try:
                content = await asyncio.wait_for(call, timeout=timeout_seconds)
            except asyncio.TimeoutError as e:
                raise ResponseTimeoutError(
                    f"Reply from '{participant.name}' timed out after {timeout_seconds}s",
                    participant_name=participant.name,
                    timeout_seconds=timeout_seconds,
                    chat_id=self._chat_id,
                ) from e

        if not isinstance(content, str) or not content:
            raise ResponseGenerationError(
                f"Reply generator returned no text for '{participant.name}'",
                participant_name=participant.name,
                chat_id=self._chat_id,
            )
        return content

    async def _invoke_generator(
        self,
        participant: Participant,
        messages: Sequence[Message],
        context: ChatContext,
    ) -> str:
        if self._generator is None:
            return _placeholder_reply(participant)
        outcome = self._generator(participant, messages, context)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return outcome

    def _discard_late(self, scope: _TurnScope, participant: Participant) -> bool:
        if scope.nested or self._result is None:
            return False
        self._log.info("late_reply_discarded", participant=participant.name, status=self._status.value)
        return True

    def _record_success(self, name: str, latency_ms: float, content: str) -> None:
        """Fold one successful reply into the running metrics.

        The latency average divides by successes plus failures, so failed
        attempts weigh the average down.
        """
        metrics = self._metrics
        tokens = estimate_tokens(content)
        metrics.successful_responses += 1
        metrics.messages_per_participant[name] = metrics.messages_per_participant.get(name, 0) + 1
        metrics.tokens_per_participant[name] = metrics.tokens_per_participant.get(name, 0) + tokens
        metrics.total_tokens += tokens

        attempts = metrics.total_attempts
        metrics.avg_response_time_ms = (
            metrics.avg_response_time_ms * (attempts - 1) + latency_ms
        ) / attempts

    async def _append_reply(self, participant: Participant, content: str) -> Message:
        message = await self.add_message(CreateMessageOptions(
            role=MessageRole.ASSISTANT,
            content=content,
            name=participant.name,
        ))
        if self._config.allow_nested_chats:
            await self._check_nested_triggers(message)
        return message

    # -------------------------------------------------------------------------
    # Nested chats
    # -------------------------------------------------------------------------

    async def _check_nested_triggers(self, message: Message) -> None:
        config = self._nested.check_trigger(
            message,
            [p.model_copy(deep=True) for p in self._participants.values()],
            self._context.snapshot(),
        )
        if config is not None:
            await self._run_nested_chat(config, message)

    async def _run_nested_chat(self, config: NestedChatConfig, trigger: Message) -> None:
        nested_chat_id = self._nested.start_nested_chat(
            config,
            self._chat_id,
            trigger.id,
            list(self._participants.values()),
            self._context,
        )
        self._nested.add_message(nested_chat_id, trigger)
        self._log.info("nested_chat_started", nested_chat_id=nested_chat_id, config=config.name)
        await self._emit(ChatEventType.NESTED_STARTED, {
            "nested_chat_id": nested_chat_id,
            "config_id": config.id,
            "trigger_message_id": trigger.id,
        })

        max_rounds = config.max_rounds or self._settings.default_nested_max_rounds
        rounds = 0
        status, reason = ChatStatus.COMPLETED, None
        try:
            while rounds < max_rounds and self._nested.has_active_chats():
                if self._result is not None:
                    status, reason = ChatStatus.TERMINATED, _PARENT_ENDED_REASON
                    break
                if self._nested.get_active_chat(nested_chat_id) is None:
                    break
                self._nested.increment_round(nested_chat_id)
                await self._run_turn(self._nested_scope(nested_chat_id, config))
                rounds += 1
        except asyncio.CancelledError:
            self._nested_results.append(
                self._nested.end_nested_chat(nested_chat_id, ChatStatus.TERMINATED, _CANCELLED_REASON)
            )
            raise
        except Exception as e:
            result = self._nested.end_nested_chat(nested_chat_id, ChatStatus.ERROR, str(e))
            self._log.error("nested_chat_failed", nested_chat_id=nested_chat_id, error=str(e))
            self._nested_results.append(result)
            await self._emit(ChatEventType.NESTED_ENDED, {"nested_chat_id": nested_chat_id, "result": result})
            raise NestedChatError(
                f"Nested chat '{config.name}' failed: {e}",
                nested_chat_id=nested_chat_id,
                chat_id=self._chat_id,
            ) from e

        result = self._nested.end_nested_chat(
            nested_chat_id, status, reason or f"Completed after {rounds} rounds"
        )
        self._log.info(
            "nested_chat_ended",
            nested_chat_id=nested_chat_id,
            status=status.value,
            rounds=result.total_rounds,
        )
        self._nested_results.append(result)
        await self._emit(ChatEventType.NESTED_ENDED, {"nested_chat_id": nested_chat_id, "result": result})

        if result.summary and self._result is None:
            await self.add_message(CreateMessageOptions(
                role=MessageRole.SYSTEM,
                content=f"{NESTED_SUMMARY_PREFIX}{result.summary}",
                name=SYSTEM_SENDER,
            ))

    def _nested_scope(self, nested_chat_id: str, config: NestedChatConfig) -> _TurnScope:
        state = self._nested.get_active_chat(nested_chat_id)

        async def append(participant: Participant, content: str) -> Message:
            message = Message(role=MessageRole.ASSISTANT, content=content, name=participant.name)
            self._nested.add_message(nested_chat_id, message)
            return message

        return _TurnScope(
            participants=state.participants,
            messages=state.messages,
            context=state.context,
            on_reply=append,
            method=config.speaker_selection_method,
            nested=True,
        )

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    async def _finalize(
        self,
        status: ChatStatus,
        reason: str | None,
        error: ChatError | None = None,
    ) -> ChatResult:
        """Build the result once; later calls return the same result."""
        if self._result is not None:
            return self._result

        self._status = status
        ended_at = utcnow()
        if self._started_clock is None:
            duration_ms = 0.0
        else:
            duration_ms = (time.perf_counter() - self._started_clock) * 1000

        self._result = ChatResult(
            chat_id=self._chat_id,
            status=status,
            messages=list(self._messages),
            summary=self._build_summary(duration_ms),
            termination_reason=reason,
            total_rounds=self._context.current_round,
            total_messages=len(self._messages),
            participants=list(self._participants),
            duration_ms=duration_ms,
            metrics=self._metrics.model_copy(deep=True),
            nested_results=list(self._nested_results),
            started_at=self._started_at or ended_at,
            ended_at=ended_at,
            error=error,
        )
        # Wakes a paused loop so it can return
        self._running.set()

        self._log.info(
            "chat_ended",
            status=status.value,
            reason=reason,
            rounds=self._result.total_rounds,
            messages=self._result.total_messages,
        )
        if reason:
            await self._emit(ChatEventType.TERMINATION_TRIGGERED, {"reason": reason, "status": status.value})
        await self._emit(ChatEventType.CHAT_ENDED, {"result": self._result})
        return self._result

    async def _handle_error(self, error: Exception) -> ChatResult:
        if self._result is not None:
            self._log.warning("error_after_end_ignored", error=str(error))
            return self._result

        code = next((c for kind, c in _ERROR_CODES if isinstance(error, kind)), ErrorCode.CHAT_ERROR)
        chat_error = ChatError(
            code=code.value,
            message=str(error),
            stack="".join(traceback.format_exception(type(error), error, error.__traceback__)),
            context={
                "round": self._context.current_round,
                "message_count": len(self._messages),
            },
            recoverable=False,
        )
        self._log.error("chat_failed", code=chat_error.code, error=chat_error.message)
        await self._emit(ChatEventType.CHAT_ERROR, {"error": chat_error})
        return await self._finalize(ChatStatus.ERROR, chat_error.message, error=chat_error)

    def _build_summary(self, duration_ms: float) -> str:
        order = {name: i for i, name in enumerate(self._participants)}
        counts = self._metrics.messages_per_participant
        # Removed participants sort after registered ones, in first-reply order
        ranked = sorted(
            enumerate(counts.items()),
            key=lambda item: (-item[1][1], order.get(item[1][0], len(order) + item[0])),
        )
        top = ", ".join(f"{name} ({count})" for _, (name, count) in ranked[:TOP_CONTRIBUTORS_LIMIT])
        return (
            f"Chat completed with {len(self._messages)} messages over "
            f"{self._context.current_round} rounds. "
            f"Top contributors: {top or 'none'}. "
            f"Duration: {round(duration_ms) / 1000}s."
        )

    async def _emit(self, event_type: ChatEventType, data: dict[str, Any] | None = None) -> None:
        self._context.state.last_event = event_type.value
        await self._events.publish(ChatEvent(type=event_type, chat_id=self._chat_id, data=data or {}))

    def _validate_start_options(
        self,
        options: StartChatOptions | Mapping[str, Any] | None,
    ) -> StartChatOptions:
        if options is None:
            return StartChatOptions()
        if isinstance(options, StartChatOptions):
            return options
        try:
            return StartChatOptions.model_validate(options)
        except ValidationError as e:
            raise ChatConfigurationError(
                "Invalid start options",
                field="options",
                errors=e.errors(),
                chat_id=self._chat_id,
            ) from e


# =============================================================================
# Helpers
# =============================================================================

def _validate_config(config: GroupChatConfig | Mapping[str, Any]) -> GroupChatConfig:
    if isinstance(config, GroupChatConfig):
        return config
    try:
        return GroupChatConfig.model_validate(config)
    except ValidationError as e:
        errors = e.errors()
        field = ".".join(str(part) for part in errors[0]["loc"]) if errors else "config"
        raise ChatConfigurationError(
            f"Invalid group chat configuration: {errors[0]['msg'] if errors else e}",
            field=field,
            errors=errors,
        ) from e


def _placeholder_reply(participant: Participant) -> str:
    template = random.choice(_PLACEHOLDER_TEMPLATES)
    return template.format(
        name=participant.name,
        capabilities=", ".join(participant.capabilities) or "general topics",
    )


def _registry_index(participants: Sequence[Participant], name: str) -> Optional[int]:
    return next((i for i, p in enumerate(participants) if p.name == name), None)
