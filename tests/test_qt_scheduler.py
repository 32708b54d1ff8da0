"""Tests for tinkerbench.ui.qt_scheduler – QTimer-backed session timers."""

from __future__ import annotations

import pytest
from PySide6.QtCore import QCoreApplication

from tinkerbench.ui.qt_scheduler import QtScheduler


@pytest.fixture(scope="module")
def qapp():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


class TestQtScheduler:
    def test_starts_active_timer(self, qapp):
        handle = QtScheduler().schedule_repeating(0.1, lambda: None)
        assert handle.active
        assert handle.interval_ms == 100
        handle.cancel()

    def test_cancel(self, qapp):
        handle = QtScheduler().schedule_repeating(0.1, lambda: None)
        handle.cancel()
        handle.cancel()
        assert not handle.active

    def test_fire_reaches_callback(self, qapp):
        ticks = []
        handle = QtScheduler().schedule_repeating(0.1, lambda: ticks.append(1))
        handle._fire()
        assert ticks == [1]
        handle.cancel()

    def test_late_tick_after_cancel_dropped(self, qapp):
        ticks = []
        handle = QtScheduler().schedule_repeating(0.1, lambda: ticks.append(1))
        handle.cancel()
        handle._fire()
        assert ticks == []
