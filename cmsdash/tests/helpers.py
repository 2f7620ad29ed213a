from __future__ import annotations

import json
from concurrent.futures import Executor, Future
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple


class InlineExecutor(Executor):
    """Runs every submitted call immediately on the calling thread."""

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        future.set_running_or_notify_cancel()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


class ManualExecutor(Executor):
    """Holds submitted calls until ``run_all``; queued futures count as already running."""

    def __init__(self) -> None:
        self.queue: List[Tuple[Future, Callable[..., Any], tuple, dict]] = []

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        future.set_running_or_notify_cancel()
        self.queue.append((future, fn, args, kwargs))
        return future

    def run_all(self) -> int:
        ran = 0
        while self.queue:
            future, fn, args, kwargs = self.queue.pop(0)
            try:
                future.set_result(fn(*args, **kwargs))
            except BaseException as exc:
                future.set_exception(exc)
            ran += 1
        return ran


class ManualScheduler:
    """``SchedulerPort`` double that records delays and fires on demand."""

    def __init__(self) -> None:
        self.pending: Dict[str, Tuple[int, Callable[[], None]]] = {}
        self.delays: List[int] = []
        self.cancelled: List[str] = []

    def schedule(self, key: str, delay_ms: int, callback: Callable[[], None]) -> None:
        self.pending[key] = (delay_ms, callback)
        self.delays.append(delay_ms)

    def cancel(self, key: str) -> None:
        if self.pending.pop(key, None) is not None:
            self.cancelled.append(key)

    def fire(self, key: str) -> None:
        _, callback = self.pending.pop(key)
        callback()


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ResponseStub:
    def __init__(self, payload: Any = None, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = "" if payload is None else json.dumps(payload)

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class SessionStub:
    """Stands in for ``requests.Session``; answers from a scripted list."""

    def __init__(self, responses: Sequence[Any]) -> None:
        self._responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ResponseStub:
        self.calls.append(
            {
                "method": method,
                "url": url,
                "params": dict(params or {}),
                "json": json.loads(data) if data else None,
                "headers": dict(headers or {}),
                "timeout": timeout,
            }
        )
        if not self._responses:
            raise RuntimeError("No stub response configured")
        item = self._responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


def firestore_doc(collection: str, doc_id: str, **fields: Any) -> Dict[str, Any]:
    """REST document resource with string-valued fields."""
    return {
        "name": f"projects/demo/databases/(default)/documents/{collection}/{doc_id}",
        "fields": {key: {"stringValue": value} for key, value in fields.items()},
    }


__all__ = [
    "FakeClock",
    "InlineExecutor",
    "ManualExecutor",
    "ManualScheduler",
    "ResponseStub",
    "SessionStub",
    "firestore_doc",
]
