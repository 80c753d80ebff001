"""Run id context variable for logging"""

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

# Create a context variable to store the run_id
run_id_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)


@contextmanager
def bound_run_id(run_id: str | None = None) -> Iterator[str]:
    """Bind a run id to every log line emitted inside the block."""
    value = run_id or uuid.uuid4().hex[:12]
    token = run_id_context.set(value)
    try:
        yield value
    finally:
        run_id_context.reset(token)
