# -*- coding: utf-8 -*-
########################
# activation_gate.py
########################
# Purpose:
# - Funnels activate requests from asynchronous input sources into at most one
#   logical activate per frame.
#
# Design notes:
# - No Qt usage. InputRouter requests, SessionController.frame consumes.
# - Any number of requests between two consumes collapse into one, so a single tap
#   cannot both start a round and flap in the same frame.
#
########################
# Interfaces:
# Public classes:
# - class ActivationGate
#   - request() -> None
#   - consume() -> bool
#   - clear() -> None
#   - is_pending() -> bool
#   - total_requests -> int
#   - coalesced_requests -> int
#
########################

from __future__ import annotations


class ActivationGate:
    def __init__(self) -> None:
        self._pending = False

        # Simple stats for debugging overlays.
        self._total_requests = 0
        self._coalesced_requests = 0

    def request(self) -> None:
        self._total_requests += 1
        if self._pending:
            self._coalesced_requests += 1
            return
        self._pending = True

    def consume(self) -> bool:
        pending = self._pending
        self._pending = False
        return pending

    def clear(self) -> None:
        self._pending = False

    def is_pending(self) -> bool:
        return bool(self._pending)

    @property
    def total_requests(self) -> int:
        return self._total_requests

    @property
    def coalesced_requests(self) -> int:
        return self._coalesced_requests


def _run_unit_tests() -> None:
    gate = ActivationGate()
    assert not gate.consume()

    gate.request()
    gate.request()
    gate.request()
    assert gate.is_pending()
    assert gate.consume()
    assert not gate.consume()
    assert gate.total_requests == 3
    assert gate.coalesced_requests == 2

    gate.request()
    gate.clear()
    assert not gate.consume()


if __name__ == "__main__":
    _run_unit_tests()
    print("activation_gate.py: ok")
