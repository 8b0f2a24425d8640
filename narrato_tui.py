#!/usr/bin/env python3

"""
Textual TUI player for narrato presentation scripts.
"""

# Standard Library
import argparse
import itertools
import os
import re
import sys
import time

script_dir = os.path.dirname(os.path.abspath(__file__))
if script_dir not in sys.path:
	sys.path.insert(0, script_dir)

# PIP3 modules
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import RichLog, Static
from rich.text import Text

# local repo modules
from narratolib.core.presentation import NarratoPresentation
from narratolib.core import utils

#============================================

NORD_COLORS = {
	'background': "#2E3440",
	'foreground': "#D8DEE9",
	'dim': "#4C566A",
	'header': "#88C0D0",
	'emphasis': "#EBCB8B",
	'numbers': "#B48EAD",
	'active': "#A3BE8C",
	'transition': "#81A1C1",
	'error': "#BF616A",
}

SEEK_STEP_SECONDS = 5.0
SPEED_STEPS = (0.5, 0.75, 1.0, 1.25, 1.5, 2.0)

#============================================

def parse_args():
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(description="narrato TUI player")
	parser.add_argument('-y', '--yaml', dest='yamlfile', required=True,
		help='presentation script yaml')
	parser.add_argument('-s', '--speed', dest='speed', type=float,
		help='initial playback speed multiplier')
	parser.add_argument('-f', '--fps', dest='fps',
		help='frame rate for the playback loop')
	parser.add_argument('-d', '--debug', dest='debug_log', action='store_true',
		help='write debug log to narrato_tui.log in the current directory')
	args = parser.parse_args()
	return args

#============================================

class TextualFrameScheduler():
	"""
	Frame scheduler backed by Textual timers on the app's event loop.
	"""
	def __init__(self, app: App, fps: float):
		self.app = app
		self.interval = 1.0 / fps
		self.timers = {}
		self._ids = itertools.count(1)

	#============================
	def request_frame(self, callback) -> int:
		handle = next(self._ids)

		def fire() -> None:
			if self.timers.pop(handle, None) is None:
				return
			callback(time.monotonic())
		self.timers[handle] = self.app.set_timer(self.interval, fire)
		return handle

	#============================
	def cancel_frame(self, handle) -> None:
		timer = self.timers.pop(handle, None)
		if timer is not None:
			timer.stop()

#============================================

def caption_text(text: str, emphasis) -> Text:
	"""
	Build caption text with emphasis words highlighted.
	"""
	caption = Text(text or "", style=NORD_COLORS['foreground'])
	words = set(word.lower() for word in emphasis or ())
	if len(words) == 0:
		return caption
	for match in re.finditer(r"[A-Za-z0-9-]+", caption.plain):
		if match.group(0).lower() in words:
			caption.stylize(f"bold {NORD_COLORS['emphasis']}", match.start(), match.end())
	return caption

#============================================

def next_speed(current: float, direction: int) -> float:
	if direction > 0:
		for speed in SPEED_STEPS:
			if speed > current + 1e-9:
				return speed
		return SPEED_STEPS[-1]
	for speed in reversed(SPEED_STEPS):
		if speed < current - 1e-9:
			return speed
	return SPEED_STEPS[0]

#============================================

class DebugLogFile():
	"""
	Append-only debug trace; each line carries seconds since the app started.
	"""
	def __init__(self, path: str):
		self.path = path
		self.started = time.monotonic()
		with open(self.path, "w", encoding="utf-8") as handle:
			handle.write(f"# narrato debug log opened {time.strftime('%Y-%m-%dT%H:%M:%S')}\n")

	#============================
	def write(self, message: str) -> None:
		elapsed = time.monotonic() - self.started
		with open(self.path, "a", encoding="utf-8") as handle:
			handle.write(f"{elapsed:9.3f}  {message}\n")

#============================================

class NarratoTuiApp(App):
	BINDINGS = [
		("space", "toggle_play", "Play/Pause"),
		("left", "seek_back", "Back"),
		("right", "seek_forward", "Forward"),
		("n", "next_section", "Next section"),
		("p", "previous_section", "Previous section"),
		("plus", "speed_up", "Faster"),
		("minus", "speed_down", "Slower"),
		("q", "quit", "Quit"),
	]

	CSS = """
	#root {
		height: 1fr;
	}

	#top_row {
		height: 40%;
		min-height: 8;
	}

	.panel {
		height: 1fr;
		border: solid gray;
	}

	#playback_panel {
		width: 2fr;
	}

	#sections_panel {
		width: 3fr;
	}

	.panel_title {
		height: 1;
		color: #88C0D0;
		text-style: bold;
	}

	.panel_body {
		height: 1fr;
	}

	#key_help {
		height: 1;
		color: #4C566A;
	}

	#caption {
		height: 5;
		border: round #81A1C1;
		padding: 0 1;
	}

	#log {
		height: 1fr;
		border: solid gray;
	}
	"""

	def __init__(self, yaml_file: str, speed: float = None, fps=None,
		debug_log: bool = False):
		super().__init__()
		self.yaml_file = yaml_file
		self.speed_override = speed
		self.fps_override = fps
		self.presentation = None
		self.state = None
		self.last_segment_key = None
		self.metrics_widget = None
		self.sections_widget = None
		self.caption_widget = None
		self.log_widget = None
		self.unsubscribe = None
		self.debug_log = None
		if debug_log:
			self.debug_log = DebugLogFile(os.path.join(os.getcwd(), "narrato_tui.log"))

	#============================
	def compose(self) -> ComposeResult:
		yield Static("NARRATO", id="header")
		with Vertical(id="root"):
			with Horizontal(id="top_row"):
				with Vertical(id="playback_panel", classes="panel"):
					yield Static("Playback", classes="panel_title")
					yield Static("", id="metrics", classes="panel_body")
					yield Static("space play/pause  <- -> seek  n/p section  +/- speed  q quit",
						id="key_help")
				with Vertical(id="sections_panel", classes="panel"):
					yield Static("Sections", classes="panel_title")
					yield Static("", id="sections", classes="panel_body")
			yield Static("", id="caption")
			yield RichLog(id="log", wrap=True, highlight=False)

	#============================
	def on_mount(self) -> None:
		self.metrics_widget = self.query_one("#metrics", Static)
		self.sections_widget = self.query_one("#sections", Static)
		self.caption_widget = self.query_one("#caption", Static)
		self.log_widget = self.query_one(RichLog)
		utils.set_event_reporter(self._report_event)
		try:
			self.presentation = NarratoPresentation(self.yaml_file,
				speed_override=self.speed_override, fps_override=self.fps_override)
		except RuntimeError as exc:
			self._set_error(str(exc))
			return
		fps = self.presentation.playback['fps_float']
		self.presentation.attach_scheduler(TextualFrameScheduler(self, fps))
		self.unsubscribe = self.presentation.subscribe(self._on_state)
		self.log_widget.write(f"loaded: {self.yaml_file}")
		self._write_log(f"loaded: {self.yaml_file}")
		self._on_state(self.presentation.timeline.get_state())

	#============================
	def on_unmount(self) -> None:
		utils.clear_event_reporter()
		if self.presentation is not None:
			self.presentation.destroy()

	#============================
	def _report_event(self, event: dict) -> None:
		message = event.get('message', str(event))
		if self.log_widget is not None:
			self.log_widget.write(message)
		self._write_log(message)

	#============================
	def _on_state(self, state) -> None:
		self.state = state
		segment_key = (state.phase, state.section_index, state.segment_index)
		if segment_key != self.last_segment_key:
			self.last_segment_key = segment_key
			self._log_segment_change(state)
		self._update_caption()
		self._update_metrics()
		self._update_sections()

	#============================
	def _log_segment_change(self, state) -> None:
		if self.log_widget is None:
			return
		clock = utils.format_clock(state.global_time)
		if state.phase == 'transition':
			line = Text(f"[{clock}] transition {state.from_section + 1} -> "
				f"{state.to_section + 1}", style=NORD_COLORS['transition'])
		elif state.phase == 'complete':
			line = Text(f"[{clock}] complete", style=f"bold {NORD_COLORS['active']}")
		else:
			line = Text(f"[{clock}] step {state.active_step_id}",
				style=NORD_COLORS['dim'])
		self.log_widget.write(line)
		self._write_log(line.plain)

	#============================
	def _set_error(self, text: str) -> None:
		self._write_log(f"error: {text}")
		if self.log_widget is not None:
			self.log_widget.write(
				Text(f"error: {text}", style=f"bold {NORD_COLORS['error']}")
			)

	#============================
	def _update_caption(self) -> None:
		if self.caption_widget is None or self.state is None:
			return
		if self.state.phase == 'section':
			self.caption_widget.update(
				caption_text(self.state.current_text, self.state.emphasis)
			)
		else:
			self.caption_widget.update("")

	#============================
	def _update_metrics(self) -> None:
		if self.metrics_widget is None or self.presentation is None or self.state is None:
			return
		timeline = self.presentation.timeline
		state = self.state
		metrics = Text()
		status = "playing" if timeline.is_playing() else "paused"
		if state.phase == 'complete':
			status = "complete"
		metrics.append("Status: ", style=NORD_COLORS['dim'])
		metrics.append(status, style=NORD_COLORS['active'])
		metrics.append("\n")
		metrics.append("Time: ", style=NORD_COLORS['dim'])
		metrics.append(utils.format_clock(state.global_time), style=NORD_COLORS['numbers'])
		metrics.append(" / ", style=NORD_COLORS['dim'])
		metrics.append(utils.format_clock(timeline.total_duration),
			style=NORD_COLORS['numbers'])
		metrics.append("\n")
		metrics.append("Speed: ", style=NORD_COLORS['dim'])
		metrics.append(f"{timeline.speed:g}x", style=NORD_COLORS['numbers'])
		metrics.append("\n")
		metrics.append("Phase: ", style=NORD_COLORS['dim'])
		metrics.append(state.phase, style=NORD_COLORS['foreground'])
		if state.phase == 'transition':
			metrics.append(f" {self._format_percent(state.transition_progress)}",
				style=NORD_COLORS['numbers'])
		metrics.append("\n")
		metrics.append("Section: ", style=NORD_COLORS['dim'])
		metrics.append(f"{state.section_index + 1}/{len(timeline.sections)}",
			style=NORD_COLORS['numbers'])
		metrics.append(f" {self._format_percent(state.section_progress)}",
			style=NORD_COLORS['numbers'])
		metrics.append("\n")
		metrics.append("Segment: ", style=NORD_COLORS['dim'])
		metrics.append(f"{state.segment_index + 1}", style=NORD_COLORS['numbers'])
		metrics.append(f" {self._format_percent(state.segment_progress)}",
			style=NORD_COLORS['numbers'])
		self.metrics_widget.update(metrics)

	#============================
	def _update_sections(self) -> None:
		if self.sections_widget is None or self.presentation is None or self.state is None:
			return
		timeline = self.presentation.timeline
		listing = Text()
		for index, section in enumerate(timeline.sections):
			active = self.state.phase == 'section' and self.state.section_index == index
			marker = ">" if active else " "
			style = f"bold {NORD_COLORS['active']}" if active else NORD_COLORS['foreground']
			start = utils.format_clock(timeline.section_start_time(index))
			listing.append(f"{marker} {index + 1}. ", style=style)
			listing.append(section.section_id or f"section-{index + 1}", style=style)
			listing.append(f"  {start}\n", style=NORD_COLORS['dim'])
		self.sections_widget.update(listing)

	#============================
	def action_toggle_play(self) -> None:
		if self.presentation is None:
			return
		timeline = self.presentation.timeline
		if timeline.total_duration <= 0:
			return
		if timeline.is_playing():
			timeline.pause()
		else:
			timeline.play()
		self._update_metrics()

	#============================
	def action_seek_back(self) -> None:
		if self.presentation is None:
			return
		timeline = self.presentation.timeline
		timeline.seek(timeline.current_time - SEEK_STEP_SECONDS)

	#============================
	def action_seek_forward(self) -> None:
		if self.presentation is None:
			return
		timeline = self.presentation.timeline
		timeline.seek(timeline.current_time + SEEK_STEP_SECONDS)

	#============================
	def action_next_section(self) -> None:
		if self.presentation is None or self.state is None:
			return
		timeline = self.presentation.timeline
		timeline.pause()
		timeline.seek_to_section(self.state.section_index + 1)
		self._update_metrics()

	#============================
	def action_previous_section(self) -> None:
		if self.presentation is None or self.state is None:
			return
		timeline = self.presentation.timeline
		timeline.pause()
		timeline.seek_to_section(max(self.state.section_index - 1, 0))
		self._update_metrics()

	#============================
	def action_speed_up(self) -> None:
		self._change_speed(1)

	#============================
	def action_speed_down(self) -> None:
		self._change_speed(-1)

	#============================
	def _change_speed(self, direction: int) -> None:
		if self.presentation is None:
			return
		timeline = self.presentation.timeline
		timeline.set_speed(next_speed(timeline.speed, direction))
		self._write_log(f"speed: {timeline.speed:g}x")
		self._update_metrics()

	#============================
	def _write_log(self, message: str) -> None:
		if self.debug_log is not None:
			self.debug_log.write(message)

	#============================
	def _format_percent(self, value) -> str:
		if value is None:
			return ""
		return f"{value * 100:.0f}%"

#============================================

def main():
	args = parse_args()
	app = NarratoTuiApp(args.yamlfile,
		speed=args.speed,
		fps=args.fps,
		debug_log=args.debug_log)
	app.run()

#============================================

if __name__ == '__main__':
	main()
