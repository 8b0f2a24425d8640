#!/usr/bin/env python3

"""
Frame schedulers drive the timeline's tick callback.

A scheduler exposes request_frame(callback) -> handle and
cancel_frame(handle). Callbacks receive a monotonic timestamp in
seconds and run one at a time on the caller's thread.
"""

import itertools
import time

#============================================

class ManualFrameScheduler():
	"""
	Frame scheduler with an explicit clock, for tests and offline sampling.
	"""
	def __init__(self, start_time: float = 0.0):
		self.now = float(start_time)
		self.pending = {}
		self._ids = itertools.count(1)

	#============================
	def request_frame(self, callback) -> int:
		handle = next(self._ids)
		self.pending[handle] = callback
		return handle

	#============================
	def cancel_frame(self, handle) -> None:
		self.pending.pop(handle, None)

	#============================
	def has_pending(self) -> bool:
		return len(self.pending) > 0

	#============================
	def step(self, timestamp: float = None) -> int:
		"""
		Fire every callback requested before this call. Callbacks that
		request a new frame are queued for the next step.
		"""
		if timestamp is not None:
			self.now = float(timestamp)
		due = list(self.pending.keys())
		fired = 0
		for handle in due:
			callback = self.pending.pop(handle, None)
			if callback is None:
				continue
			callback(self.now)
			fired += 1
		return fired

	#============================
	def advance(self, seconds: float) -> int:
		self.now += seconds
		return self.step()

	#============================
	def run_frames(self, count: int, interval: float) -> None:
		for _ in range(count):
			if not self.has_pending():
				return
			self.advance(interval)

#============================================

class BlockingFrameScheduler():
	"""
	Single-threaded frame loop paced to a target frame rate.

	run() blocks until no frame is pending, so playback that stops on
	its own (end of timeline, pause from a listener) ends the loop.
	"""
	def __init__(self, fps: float = 30.0, clock=time.monotonic, sleep=time.sleep):
		if fps <= 0:
			raise RuntimeError("fps must be positive")
		self.interval = 1.0 / float(fps)
		self.clock = clock
		self.sleep = sleep
		self.pending = {}
		self._ids = itertools.count(1)

	#============================
	def request_frame(self, callback) -> int:
		handle = next(self._ids)
		self.pending[handle] = callback
		return handle

	#============================
	def cancel_frame(self, handle) -> None:
		self.pending.pop(handle, None)

	#============================
	def run(self, max_seconds: float = None) -> None:
		started = self.clock()
		next_frame = started
		while len(self.pending) > 0:
			now = self.clock()
			if max_seconds is not None and now - started >= max_seconds:
				self.pending = {}
				return
			if now < next_frame:
				self.sleep(next_frame - now)
				now = self.clock()
			next_frame = now + self.interval
			for handle in list(self.pending.keys()):
				callback = self.pending.pop(handle, None)
				if callback is not None:
					callback(now)
