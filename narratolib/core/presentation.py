#!/usr/bin/env python3

import numpy
from tqdm import tqdm
from narratolib.core import utils
from narratolib.core.loader import ScriptLoader
from narratolib.core.loader import validate_script
from narratolib.core.script import PresentationScript
from narratolib.core.timeline import Timeline

#============================================

class NarratoPresentation():
	def __init__(self, yaml_file: str, scheduler=None, speed_override: float = None,
		fps_override=None):
		loader = ScriptLoader(yaml_file, speed_override=speed_override,
			fps_override=fps_override)
		self._loaded = loader.load()
		self.scheduler = scheduler
		self.yaml_file = self._loaded.yaml_file
		self.playback = self._loaded.playback
		self.script = self._loaded.script
		self._listeners = {}
		self._listener_count = 0
		self.timeline = self._build_timeline(self.script, self.playback['speed'])

	#============================
	def _build_timeline(self, script, speed: float) -> Timeline:
		timeline = Timeline(script, scheduler=self.scheduler, speed=speed)
		for token, (listener, _) in list(self._listeners.items()):
			self._listeners[token] = (listener, timeline.subscribe(listener))
		return timeline

	#============================
	def subscribe(self, listener):
		"""
		Subscribe to the current timeline and to any replacement built by
		replace_script(). Returns an unsubscribe callable.
		"""
		self._listener_count += 1
		token = self._listener_count
		self._listeners[token] = (listener, self.timeline.subscribe(listener))

		def unsubscribe() -> None:
			entry = self._listeners.pop(token, None)
			if entry is not None:
				entry[1]()
		return unsubscribe

	#============================
	def attach_scheduler(self, scheduler) -> None:
		self.scheduler = scheduler
		self.timeline.pause()
		self.timeline.scheduler = scheduler

	#============================
	def state_at(self, time_value: float) -> dict:
		return self.timeline.get_state_at_time(time_value).to_dict()

	#============================
	def replace_script(self, script) -> None:
		"""
		Swap in a new script, keeping position, speed and play state.
		"""
		if isinstance(script, dict):
			script = PresentationScript.from_dict(script)
		validate_script(script)
		was_playing = self.timeline.is_playing()
		current_time = self.timeline.current_time
		speed = self.timeline.speed
		self.timeline.destroy()
		self.script = script
		self.timeline = self._build_timeline(script, speed)
		self.timeline.seek(current_time)
		if was_playing:
			self.timeline.play()

	#============================
	def frame_plan(self, fps=None) -> list:
		"""
		Sample the timeline once per output frame.
		"""
		if fps is None:
			fps = self.playback['fps']
		else:
			fps = utils.parse_fps(fps)
		total = self.timeline.total_duration
		frame_count = utils.frames_from_seconds(total, fps)
		frame_times = numpy.arange(frame_count, dtype=numpy.float64) / float(fps)
		if utils.is_quiet_mode():
			iterator = frame_times
		else:
			iterator = tqdm(frame_times, desc="frames", unit="frame")
		plan = []
		for index, frame_time in enumerate(iterator):
			state = self.timeline.get_state_at_time(float(frame_time)).to_dict()
			state['frame'] = index
			plan.append(state)
		return plan

	#============================
	def destroy(self) -> None:
		self._listeners.clear()
		self.timeline.destroy()
