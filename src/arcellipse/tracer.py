"""
Search tracing for arcellipse.

Nested spans and one-off events, written to stderr (and optionally a file) as
text or JSON lines. Search records are rendered by what they mean: an attempt
shows its semi-axes and error, a skipped cell shows why it was skipped.
"""

import functools
import json
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from arcellipse.models import (
    ArcSpec, Attempt, CanonicalEllipse, Rejected, RigLengths, SearchRequest, SearchResult,
)


LEVELS = {"ERROR": 0, "WARN": 1, "INFO": 2, "DEBUG": 3}


class Span:
    """An open span. Notes added while it runs are reported on its end line."""

    def __init__(self, name, module):
        self.name = name
        self.module = module
        self.notes = {}
        self._started = time.perf_counter()

    def note(self, **meta):
        self.notes.update(meta)

    @property
    def elapsed_ms(self):
        return (time.perf_counter() - self._started) * 1000


class Tracer:
    """
    Stack of open spans plus the output settings.

    Output is off until configure() enables it; spans still yield a Span
    then, so callers can note results unconditionally.
    """

    def __init__(self):
        self.enabled = False
        self.level = "INFO"
        self.json_output = False
        self._sink = None
        self._stack = []

    def configure(self, enabled=False, level="INFO", file_path=None, json_output=False):
        if self._sink:
            self._sink.close()
            self._sink = None

        self.enabled = enabled
        self.level = level.upper()
        self.json_output = json_output

        if enabled and file_path:
            self._sink = open(file_path, "w", encoding="utf-8")

    def is_enabled_for(self, level):
        """Check whether a message at this level would be written."""
        return self.enabled and LEVELS.get(level, 2) <= LEVELS.get(self.level, 2)

    @property
    def path(self):
        """Names of the open spans, outermost first, e.g. run_pipeline/search/run_search."""
        return "/".join(span.name for span in self._stack)

    def _log(self, level, module, func, message, meta):
        if not self.is_enabled_for(level):
            return

        meta = meta or {}
        rendered = {k: summarize(v) for k, v in meta.items()}
        if rendered:
            message = message + " " + " ".join(f"{k}={v}" for k, v in rendered.items())

        now = datetime.now()
        timestamp = now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"
        location = f"{module}:{func}" if func else module
        depth = len(self._stack)

        lines = [f"{timestamp} {level:<5} {'  ' * depth}{location}  {message}"]
        if self.json_output:
            lines.append(json.dumps({
                "timestamp": timestamp,
                "level": level,
                "depth": depth,
                "path": self.path,
                "module": module,
                "function": func,
                "message": message,
                "meta": rendered,
            }))

        for line in lines:
            print(line, file=sys.stderr)
            if self._sink:
                self._sink.write(line + "\n")
        if self._sink:
            self._sink.flush()

    @contextmanager
    def span(self, name, module="", **meta):
        """
        Trace a block: a start line with meta, then an end line with the
        elapsed time and whatever the block noted on the yielded Span.
        """
        span = Span(name, module)
        if not self.enabled:
            yield span
            return

        self._log("INFO", module, name, "start", meta)
        self._stack.append(span)

        try:
            yield span
        except Exception as e:
            self._stack.pop()
            self._log("ERROR", module, name,
                      f"failed dt={span.elapsed_ms:.0f}ms error={type(e).__name__}: {str(e)[:100]}",
                      span.notes)
            raise
        else:
            self._stack.pop()
            self._log("INFO", module, name, f"end ok dt={span.elapsed_ms:.0f}ms", span.notes)

    def event(self, message, level="INFO", **meta):
        """Log a one-off event, attributed to the innermost open span."""
        if not self.is_enabled_for(level):
            return

        module = func = ""
        if self._stack:
            func, module = self._stack[-1].name, self._stack[-1].module

        self._log(level, module, func, message, meta)


def summarize(obj, max_len=200):
    """
    Compact one-line rendering of a value for trace output.

    Never longer than max_len characters.
    """
    text = _describe(obj)
    if len(text) > max_len:
        return text[:max_len - 3] + "..."
    return text


def _describe(obj):
    if obj is None:
        return "None"

    if isinstance(obj, Rejected):
        return f"rejected({obj.reason.value}: {obj.detail})" if obj.detail else f"rejected({obj.reason.value})"

    if isinstance(obj, Attempt):
        status = "pass" if obj.accepted else "fail"
        return (f"{obj.id}(a={obj.a:.6g} b={obj.b:.6g} h={obj.h:.6g} "
                f"err={obj.max_error:.4g} {status})")

    if isinstance(obj, CanonicalEllipse):
        kind = "ellipse" if obj.is_ellipse else "hyperbola"
        return f"{kind}(a={obj.a:.6g} b={obj.b:.6g} h={obj.h:.6g})"

    if isinstance(obj, ArcSpec):
        return f"ArcSpec(R={obj.radius:g} theta={obj.central_angle_deg:g})"

    if isinstance(obj, SearchRequest):
        return (f"request(R={obj.radius:g} theta={obj.central_angle_deg:g} tol={obj.tolerance:g} "
                f"grid={obj.steps_d}x{obj.steps_d1}x{obj.steps_d2} {obj.objective.value})")

    if isinstance(obj, SearchResult):
        best = obj.best_attempt.id if obj.best_attempt else None
        return f"result(attempts={len(obj.attempts)} accepted={len(obj.accepted_attempts)} best={best})"

    if isinstance(obj, RigLengths):
        return f"rig(l1={obj.l1:.4g} l2={obj.l2:.4g} l3={obj.l3:.4g})"

    if isinstance(obj, BaseModel):
        return f"{type(obj).__name__}({len(type(obj).model_fields)} fields)"

    # Objective, RejectReason, Orientation
    if isinstance(obj, Enum):
        return str(obj.value)

    if isinstance(obj, bool):
        return str(obj)

    if isinstance(obj, float):
        return f"{obj:.6g}"

    if isinstance(obj, int):
        return str(obj)

    if isinstance(obj, str):
        return repr(obj)

    # skip counts
    if isinstance(obj, dict):
        return "{" + ",".join(f"{k}={_describe(v)}" for k, v in obj.items()) + "}"

    if isinstance(obj, (list, tuple)):
        return f"{type(obj).__name__}(len={len(obj)})"

    return f"<{type(obj).__name__}>"


def trace(label=None):
    """
    Decorator that wraps a function in a span.

    A SearchRequest argument, if any, is shown on the start line.
    """
    def decorator(func):
        module = func.__module__.rsplit(".", 1)[-1] if func.__module__ else ""
        name = label or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not _tracer.enabled:
                return func(*args, **kwargs)

            meta = {}
            for value in list(args) + list(kwargs.values()):
                if isinstance(value, SearchRequest):
                    meta["request"] = value
                    break

            with _tracer.span(name, module=module, **meta):
                return func(*args, **kwargs)

        return wrapper
    return decorator


_tracer = Tracer()


def get_tracer():
    """Get the global tracer instance."""
    return _tracer


def configure_tracer(enabled=False, level="INFO", file_path=None, json_output=False):
    """Configure the global tracer."""
    _tracer.configure(
        enabled=enabled,
        level=level,
        file_path=file_path,
        json_output=json_output,
    )
