#!/usr/bin/env python3

import itertools
from narratolib.core.script import PHASE_COMPLETE
from narratolib.core.script import PHASE_SECTION
from narratolib.core.script import PHASE_TRANSITION
from narratolib.core.script import PresentationScript
from narratolib.core.script import TimelineState

#============================================

class Timeline():
	"""
	Map playback time onto sections, segments, and transitions.

	Playback is driven by a frame scheduler (see scheduler.py). All
	mutation and listener notification happen inside the tick callback
	or inside a control method, on the caller's thread.
	"""
	def __init__(self, script: PresentationScript, scheduler=None, speed: float = 1.0):
		self.script = script
		self.scheduler = scheduler
		self.sections = list(script.sections)
		self.transitions = list(script.transitions)
		self.total_duration = float(script.total_duration)
		self.current_time = 0.0
		self.speed = float(speed)
		self.playing = False
		self.frame_handle = None
		self.last_timestamp = None
		self.listeners = {}
		self._listener_ids = itertools.count(1)
		self.section_start_times = []
		self.transition_start_times = []
		self._compute_start_times()

	#============================
	def _compute_start_times(self) -> None:
		offset = 0.0
		for index, section in enumerate(self.sections):
			self.section_start_times.append(offset)
			offset += section.total_duration
			if index < len(self.transitions):
				self.transition_start_times.append(offset)
				offset += self.transitions[index].duration

	#============================
	def section_start_time(self, section_index: int) -> float:
		if 0 <= section_index < len(self.section_start_times):
			return self.section_start_times[section_index]
		return 0.0

	#============================
	def transition_start_time(self, transition_index: int) -> float:
		if 0 <= transition_index < len(self.transition_start_times):
			return self.transition_start_times[transition_index]
		return 0.0

	#============================
	def _complete_state(self, global_time: float) -> TimelineState:
		return TimelineState(
			phase=PHASE_COMPLETE,
			section_index=max(len(self.sections) - 1, 0),
			segment_index=0,
			section_progress=1.0,
			segment_progress=1.0,
			global_time=global_time,
		)

	#============================
	def _section_state(self, section_index: int, section_time: float,
		global_time: float) -> TimelineState:
		section = self.sections[section_index]
		section_progress = 0.0
		if section.total_duration > 0:
			section_progress = section_time / section.total_duration
		if len(section.segments) == 0:
			return TimelineState(
				phase=PHASE_SECTION,
				section_index=section_index,
				section_progress=section_progress,
				global_time=global_time,
			)
		# exact upper boundary falls through to the last segment
		segment_index = len(section.segments) - 1
		for index, segment in enumerate(section.segments):
			if segment.start_time <= section_time < segment.end_time:
				segment_index = index
				break
		segment = section.segments[segment_index]
		segment_progress = 0.0
		if segment.duration > 0:
			segment_progress = (section_time - segment.start_time) / segment.duration
			segment_progress = max(0.0, min(1.0, segment_progress))
		return TimelineState(
			phase=PHASE_SECTION,
			section_index=section_index,
			segment_index=segment_index,
			section_progress=section_progress,
			segment_progress=segment_progress,
			active_step_id=segment.step_id,
			current_text=segment.text,
			emphasis=tuple(segment.emphasis or ()),
			global_time=global_time,
		)

	#============================
	def _transition_state(self, transition_index: int, global_time: float) -> TimelineState:
		transition = self.transitions[transition_index]
		transition_progress = 0.0
		if transition.duration > 0:
			start = self.transition_start_times[transition_index]
			transition_progress = (global_time - start) / transition.duration
		return TimelineState(
			phase=PHASE_TRANSITION,
			section_index=transition_index,
			segment_index=0,
			section_progress=1.0,
			segment_progress=1.0,
			global_time=global_time,
			from_section=transition_index,
			to_section=transition_index + 1,
			transition_progress=transition_progress,
		)

	#============================
	def get_state_at_time(self, time_value: float) -> TimelineState:
		if time_value >= self.total_duration:
			return self._complete_state(self.total_duration)
		clamped = max(0.0, float(time_value))
		for index, section in enumerate(self.sections):
			section_start = self.section_start_times[index]
			section_end = section_start + section.total_duration
			if section_start <= clamped < section_end:
				return self._section_state(index, clamped - section_start, clamped)
			if index < len(self.transitions):
				transition_start = self.transition_start_times[index]
				transition_end = transition_start + self.transitions[index].duration
				if transition_start <= clamped < transition_end:
					return self._transition_state(index, clamped)
		# script total larger than its parts
		return self._complete_state(clamped)

	#============================
	def get_state(self) -> TimelineState:
		return self.get_state_at_time(self.current_time)

	#============================
	def _request_tick(self) -> None:
		self.frame_handle = self.scheduler.request_frame(self._tick)

	#============================
	def _cancel_tick(self) -> None:
		if self.frame_handle is not None and self.scheduler is not None:
			self.scheduler.cancel_frame(self.frame_handle)
		self.frame_handle = None

	#============================
	def _tick(self, timestamp: float) -> None:
		self.frame_handle = None
		if not self.playing:
			return
		if self.last_timestamp is None:
			self.last_timestamp = timestamp
		delta = timestamp - self.last_timestamp
		self.last_timestamp = timestamp
		self.current_time += delta * self.speed
		if self.current_time >= self.total_duration:
			self.current_time = self.total_duration
			self.playing = False
			self._notify()
			return
		self._notify()
		if self.playing and self.frame_handle is None:
			self._request_tick()

	#============================
	def _notify(self) -> None:
		state = self.get_state()
		for listener in list(self.listeners.values()):
			listener(state)

	#============================
	def play(self) -> None:
		if self.playing:
			return
		if self.scheduler is None:
			raise RuntimeError("timeline playback requires a frame scheduler")
		if self.current_time >= self.total_duration:
			self.current_time = 0.0
		self.playing = True
		self.last_timestamp = None
		self._request_tick()

	#============================
	def pause(self) -> None:
		self.playing = False
		self._cancel_tick()
		self.last_timestamp = None

	#============================
	def is_playing(self) -> bool:
		return self.playing

	#============================
	def seek(self, time_value: float) -> None:
		self.current_time = max(0.0, min(float(time_value), self.total_duration))
		self.last_timestamp = None
		self._notify()

	#============================
	def seek_to_section(self, section_index: int) -> None:
		if 0 <= section_index < len(self.section_start_times):
			self.seek(self.section_start_times[section_index])

	#============================
	def set_speed(self, speed: float) -> None:
		self.speed = float(speed)

	#============================
	def subscribe(self, listener):
		"""
		Register a listener for state updates; returns an unsubscribe callable.
		"""
		token = next(self._listener_ids)
		self.listeners[token] = listener

		def unsubscribe() -> None:
			self.listeners.pop(token, None)
		return unsubscribe

	#============================
	def destroy(self) -> None:
		self.pause()
		self.listeners.clear()
