"""Participant responders - concrete reply generators.

All responder communication goes through the orchestrator: responders never
talk to each other.

Exports:
    - BaseResponder: abstract interface (callable as a reply generator)
    - GatewayResponder: remote models via llm-gateway
    - FunctionResponder: local Python callables
    - ParticipantRouter: route by participant type
"""

from groupchat.participants.base import BaseResponder
from groupchat.participants.function import FunctionResponder, ParticipantFunction
from groupchat.participants.gateway import GatewayResponder
from groupchat.participants.router import ParticipantRouter


__all__ = [
    "BaseResponder",
    "FunctionResponder",
    "GatewayResponder",
    "ParticipantFunction",
    "ParticipantRouter",
]
