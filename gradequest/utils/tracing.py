import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

# Context variable for current trace context
trace_context: ContextVar[Optional['TraceSpan']] = ContextVar(
    'trace_context', default=None
)

logger = logging.getLogger(__name__)


@dataclass
class TraceSpan:
    '''A trace span with timing, metadata and an optional failure marker.'''

    name: str
    start_time: float = field(default_factory=time.perf_counter)
    end_time: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    parent: Optional['TraceSpan'] = None
    children: list['TraceSpan'] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def duration(self) -> Optional[float]:
        '''Duration in seconds, None while the span is open.'''
        return self.end_time - self.start_time if self.end_time else None

    def finish(self) -> None:
        self.end_time = time.perf_counter()

        duration_ms = (self.duration or 0) * 1000
        metadata_str = ', '.join(f'{k}={v}' for k, v in self.metadata.items())
        status = f' FAILED({self.error})' if self.error else ''

        # Nested spans are only interesting when debugging a slow request
        if self.parent:
            logger.debug(
                f'⏱️  {self.name}: {duration_ms:.2f}ms{status} '
                f'(parent: {self.parent.name}) [{metadata_str}]'
            )
        else:
            logger.info(f'⏱️  {self.name}: {duration_ms:.2f}ms{status} [{metadata_str}]')


@contextmanager
def trace_span(
    name: str, metadata: Optional[Dict[str, Any]] = None
) -> Iterator[TraceSpan]:
    '''Create a trace span with automatic timing and context management.

    Args:
        name: Name of the span
        metadata: Optional metadata to attach to the span

    Example:
        with trace_span('weekly.selection', {'user_id': user_id}):
            selection = selector.resolve_week_selection(user_id)
    '''
    parent = trace_context.get()
    span = TraceSpan(name=name, metadata=dict(metadata or {}), parent=parent)
    if parent:
        parent.children.append(span)

    token = trace_context.set(span)
    try:
        yield span
    except Exception as e:
        span.error = type(e).__name__
        raise
    finally:
        span.finish()
        trace_context.reset(token)
