"""Tagged Outcomes — explicit results for route loading and handler invocation.

Invariants:
    - A registration attempt yields exactly one of RouteLoaded | RouteLoadFailed
    - A handler invocation yields exactly one of HandlerSucceeded | HandlerFailed
    - Raised exceptions are captured into the failure variant at the boundary,
      so consumers never branch on "returned vs thrown"
"""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class RouteLoaded:
    prefix: str
    handler: Any


@dataclass(frozen=True)
class RouteLoadFailed:
    prefix: str
    reason: str
    error: BaseException | None = None


RouteLoadResult = Union[RouteLoaded, RouteLoadFailed]


@dataclass(frozen=True)
class HandlerSucceeded:
    response: Any


@dataclass(frozen=True)
class HandlerFailed:
    error: BaseException


HandlerOutcome = Union[HandlerSucceeded, HandlerFailed]
