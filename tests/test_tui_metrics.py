#!/usr/bin/env python3

"""
Unit tests for narrato_tui helpers.
"""

# Standard Library
import os
import sys
import types

import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

from narrato_tui import DebugLogFile
from narrato_tui import NarratoTuiApp
from narrato_tui import TextualFrameScheduler
from narrato_tui import caption_text
from narrato_tui import next_speed

#============================================

class FakeTimer():
	def __init__(self, delay: float, callback):
		self.delay = delay
		self.callback = callback
		self.stopped = False

	def stop(self) -> None:
		self.stopped = True

#============================================

class FakeApp():
	def __init__(self):
		self.timers = []

	def set_timer(self, delay: float, callback) -> FakeTimer:
		timer = FakeTimer(delay, callback)
		self.timers.append(timer)
		return timer

#============================================

def test_debug_log_file_writes_header_and_elapsed_lines(tmp_path) -> None:
	log_path = tmp_path / "narrato_tui.log"
	log_path.write_text("stale\n", encoding="utf-8")
	debug_log = DebugLogFile(str(log_path))
	debug_log.write("loaded: demo.yaml")
	debug_log.write("speed: 1.5x")
	lines = log_path.read_text(encoding="utf-8").splitlines()
	assert lines[0].startswith("# narrato debug log opened ")
	assert "stale" not in lines
	assert len(lines) == 3
	(elapsed, message) = lines[2].split(None, 1)
	assert float(elapsed) >= 0.0
	assert message == "speed: 1.5x"

#============================================

def test_write_log_without_debug_file_is_silent() -> None:
	stub = types.SimpleNamespace(debug_log=None)
	NarratoTuiApp._write_log(stub, "ignored")

#============================================

def test_format_percent() -> None:
	stub = types.SimpleNamespace()
	assert NarratoTuiApp._format_percent(stub, 0.256) == "26%"
	assert NarratoTuiApp._format_percent(stub, None) == ""

#============================================

def test_caption_text_marks_emphasis() -> None:
	caption = caption_text("Queries meet Keys.", ("keys",))
	assert caption.plain == "Queries meet Keys."
	assert len(caption.spans) == 1
	span = caption.spans[0]
	assert (span.start, span.end) == (13, 17)
	assert "bold" in str(span.style)
	assert caption_text("", None).plain == ""

#============================================

def test_next_speed_steps() -> None:
	assert next_speed(1.0, 1) == 1.25
	assert next_speed(1.0, -1) == 0.75
	assert next_speed(2.0, 1) == 2.0
	assert next_speed(0.5, -1) == 0.5
	assert next_speed(1.1, -1) == 1.0

#============================================

def test_textual_scheduler_fires_and_cancels() -> None:
	app = FakeApp()
	scheduler = TextualFrameScheduler(app, 25.0)
	fired = []
	scheduler.request_frame(fired.append)
	assert app.timers[0].delay == pytest.approx(0.04)
	app.timers[0].callback()
	assert len(fired) == 1
	assert isinstance(fired[0], float)
	handle = scheduler.request_frame(fired.append)
	scheduler.cancel_frame(handle)
	assert app.timers[1].stopped
	app.timers[1].callback()
	assert len(fired) == 1
	assert scheduler.timers == {}
