"""Message-driven host for the projection engine.

A ``ProjectionWorker`` receives one ``CALCULATE`` message at a time and replies
with one ``RESULT`` or ``ERROR`` message. It keeps a single cache slot (last
request fingerprint -> last result) so a UI that re-sends an identical request
on every render gets the previous answer back without recomputing.
"""

from __future__ import annotations

import copy
import json
import sys
from typing import Any, Dict, IO, List, Mapping, Optional

from .engine import project_timeline
from .fingerprint import request_fingerprint
from .policy import DEFAULT_POLICY, LendingPolicy

MSG_CALCULATE = "CALCULATE"
MSG_RESULT = "RESULT"
MSG_ERROR = "ERROR"


def _error_message(exc: BaseException) -> str:
    text = str(exc).strip()
    return text or type(exc).__name__


def error_response(message: str) -> Dict[str, Any]:
    return {"type": MSG_ERROR, "error": message}


class ProjectionWorker:
    def __init__(self, policy: LendingPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy
        self._last_fingerprint: Optional[str] = None
        self._last_result: Optional[List[Dict[str, Any]]] = None

    @property
    def has_cached_result(self) -> bool:
        return self._last_result is not None

    def clear_cache(self) -> None:
        self._last_fingerprint = None
        self._last_result = None

    def calculate(self, payload: Any) -> List[Dict[str, Any]]:
        """Run a projection and return the timeline as wire payloads. May raise."""
        timeline = project_timeline(payload, self.policy)
        return [entry.to_payload() for entry in timeline]

    def handle(self, message: Mapping[str, Any]) -> Dict[str, Any]:
        """Process one request message and build the reply.

        A failed calculation is reported as an ERROR reply and leaves the cache
        slot from the last successful run untouched.
        """
        msg_type = message.get("type") if isinstance(message, Mapping) else None
        if msg_type != MSG_CALCULATE:
            return error_response(f"Unsupported message type: {msg_type!r}")

        payload = message.get("payload")
        try:
            fingerprint = request_fingerprint(payload)
            if fingerprint == self._last_fingerprint and self._last_result is not None:
                return {"type": MSG_RESULT, "payload": copy.deepcopy(self._last_result), "cached": True}
            result = self.calculate(payload)
        except Exception as exc:
            return error_response(_error_message(exc))

        self._last_fingerprint = fingerprint
        self._last_result = result
        return {"type": MSG_RESULT, "payload": copy.deepcopy(result), "cached": False}


def serve_jsonl(
    in_stream: IO[str] | None = None,
    out_stream: IO[str] | None = None,
    worker: ProjectionWorker | None = None,
) -> int:
    """Answer one JSON message per input line with one JSON reply per output line.

    Returns the number of messages handled. Blank lines are skipped; a line that
    is not valid JSON gets an ERROR reply.
    """
    src = in_stream if in_stream is not None else sys.stdin
    dst = out_stream if out_stream is not None else sys.stdout
    w = worker if worker is not None else ProjectionWorker()

    handled = 0
    for line in src:
        line = line.strip()
        if not line:
            continue
        try:
            message = json.loads(line)
        except json.JSONDecodeError as exc:
            reply = error_response(f"Invalid JSON message: {exc.msg}")
        else:
            reply = w.handle(message)
        dst.write(json.dumps(reply) + "\n")
        dst.flush()
        handled += 1
    return handled
