"""Core data types for the tournabot application."""

from typing import List, TypedDict  # noqa: UP035


class Button(TypedDict):
    """An inline button shown beneath a bot message."""

    text: str
    data: str


class DisplayPayload(TypedDict):
    """A single outbound bot message."""

    text: str
    buttons: List[List[Button]]  # noqa: UP006
