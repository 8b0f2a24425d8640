#!/usr/bin/env python3

import os
import re
import math
from decimal import Decimal
from decimal import InvalidOperation
from fractions import Fraction

#============================================

_QUIET_MODE = False
_EVENT_REPORTER = None

#============================================

def set_quiet_mode(enabled: bool) -> None:
	global _QUIET_MODE
	_QUIET_MODE = bool(enabled)

#============================================

def is_quiet_mode() -> bool:
	return _QUIET_MODE

#============================================

def set_event_reporter(reporter) -> None:
	"""
	Route report_event() calls to a callable taking one dict.
	"""
	global _EVENT_REPORTER
	_EVENT_REPORTER = reporter

#============================================

def clear_event_reporter() -> None:
	global _EVENT_REPORTER
	_EVENT_REPORTER = None

#============================================

def report_event(event: dict) -> None:
	if _EVENT_REPORTER is not None:
		_EVENT_REPORTER(event)
		return
	if is_quiet_mode():
		return
	message = event.get('message')
	if message is None:
		message = str(event)
	print(message)
	return

#============================================

def parse_fps(raw_fps) -> Fraction:
	if raw_fps is None:
		raise RuntimeError("playback.fps is required")
	if isinstance(raw_fps, bool):
		raise RuntimeError("playback.fps must be int, float, or fraction string")
	if isinstance(raw_fps, int):
		fps = Fraction(raw_fps, 1)
	elif isinstance(raw_fps, float):
		fps = Fraction(str(raw_fps))
	elif isinstance(raw_fps, str):
		if '/' in raw_fps:
			parts = raw_fps.split('/')
			fps = Fraction(int(parts[0]), int(parts[1]))
		else:
			fps = Fraction(raw_fps)
	else:
		raise RuntimeError("playback.fps must be int, float, or fraction string")
	if fps <= 0:
		raise RuntimeError("playback.fps must be positive")
	return fps

#============================================

def parse_timecode(raw_time) -> Decimal:
	"""
	Read a playback time as seconds, e.g. 42, "12.5", "1:05.3" or "1:02:03".
	"""
	if raw_time is None or isinstance(raw_time, bool):
		raise RuntimeError("time value is required")
	if isinstance(raw_time, (int, float)):
		return Decimal(str(raw_time))
	if not isinstance(raw_time, str):
		raise RuntimeError("time values must be int, float, or timecode string")
	fields = raw_time.strip().split(':')
	if len(fields) > 3:
		raise RuntimeError(f"invalid time value: {raw_time}")
	total = Decimal(0)
	try:
		for field in fields:
			total = total * 60 + Decimal(field)
	except InvalidOperation:
		raise RuntimeError(f"invalid time value: {raw_time}")
	if not total.is_finite() or total < 0:
		raise RuntimeError(f"invalid time value: {raw_time}")
	return total

#============================================

def round_half_up_fraction(value: Fraction) -> int:
	return math.floor(value + Fraction(1, 2))

#============================================

def frames_from_seconds(seconds, fps: Fraction) -> int:
	seconds_fraction = Fraction(str(seconds))
	frame_fraction = seconds_fraction * fps
	return round_half_up_fraction(frame_fraction)

#============================================

def parse_speed(speed_value, default_speed: float) -> float:
	if speed_value is None:
		return default_speed
	try:
		speed = float(speed_value)
	except (TypeError, ValueError):
		raise RuntimeError(f"invalid speed value: {speed_value}")
	if speed <= 0:
		raise RuntimeError("speed must be positive")
	return speed

#============================================

def count_words(text: str) -> int:
	if not text:
		return 0
	return len(text.split())

#============================================

def collapse_whitespace(text: str) -> str:
	return re.sub(r"\s+", " ", text).strip()

#============================================

def format_clock(seconds: float) -> str:
	"""
	Format seconds as m:ss.s for captions and status lines.
	"""
	tenths = int(round(max(seconds, 0.0) * 10))
	minutes = tenths // 600
	remaining = (tenths - minutes * 600) / 10.0
	return f"{minutes}:{remaining:04.1f}"

#============================================

def ensure_file_exists(filepath: str) -> None:
	if not os.path.exists(filepath):
		raise RuntimeError(f"file not found: {filepath}")
	return
