"""Correlation ID propagation.

One ID per HTTP request, set by the factory middleware. Background sync
runs on pool threads, which do not inherit context variables, so work
handed to the pool is wrapped with bind_current_context() first.
"""

import contextvars
import uuid
from contextvars import ContextVar, Token
from typing import Any, Callable

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    correlation_id_var.reset(token)


def bind_current_context(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Snapshot the caller's context; the returned callable runs fn inside it.

    Log lines emitted by fn on another thread keep the request's
    correlationId.
    """
    ctx = contextvars.copy_context()

    def run(*args: Any) -> Any:
        return ctx.run(fn, *args)

    return run
