"""Shared router dependencies."""
from fastapi import Request

from ..context import RelayContext
from ..events import EventBus


def get_context(request: Request) -> RelayContext:
    return request.app.state.context


def get_events(request: Request) -> EventBus:
    return request.app.state.events
