#!/usr/bin/env python3

import os
import yaml
from narratolib.core import utils
from narratolib.core.script import PresentationScript

#============================================

SCRIPT_VERSION = 1
MAX_FILE_BYTES = 10 ** 7
DURATION_TOLERANCE = 1e-6

#============================================

class ScriptData():
	def __init__(self):
		self.yaml_file = None
		self.data = {}
		self.playback = {}
		self.script = None

#============================================

def load_document(path: str) -> dict:
	"""
	Read a YAML (or JSON) document that must be a mapping.
	"""
	utils.ensure_file_exists(path)
	file_size = os.path.getsize(path)
	if file_size > MAX_FILE_BYTES:
		raise RuntimeError("script file is larger than 10MB")
	with open(path, 'r', encoding='utf-8') as data_file:
		data = yaml.safe_load(data_file)
	if not isinstance(data, dict):
		raise RuntimeError(f"{path} must be a mapping at the top level")
	return data

#============================================

class ScriptLoader():
	def __init__(self, yaml_file: str, speed_override: float = None,
		fps_override=None):
		self.yaml_file = yaml_file
		self.speed_override = speed_override
		self.fps_override = fps_override

	#============================
	def load(self) -> ScriptData:
		loaded = ScriptData()
		loaded.yaml_file = self.yaml_file
		loaded.data = load_document(self.yaml_file)
		self._validate_required_keys(loaded.data)
		loaded.playback = self._parse_playback(loaded.data.get('playback') or {})
		loaded.script = PresentationScript.from_dict(loaded.data)
		validate_script(loaded.script)
		return loaded

	#============================
	def _validate_required_keys(self, data: dict) -> None:
		if data.get('narrato') != SCRIPT_VERSION:
			raise RuntimeError(f"narrato must be set to {SCRIPT_VERSION}")
		required_keys = ('sections', 'totalDuration')
		for key in required_keys:
			if key not in data:
				raise RuntimeError(f"missing required key: {key}")
		if not isinstance(data.get('sections'), list):
			raise RuntimeError("sections must be a list")
		transitions = data.get('transitions')
		if transitions is not None and not isinstance(transitions, list):
			raise RuntimeError("transitions must be a list")

	#============================
	def _parse_playback(self, playback: dict) -> dict:
		if not isinstance(playback, dict):
			raise RuntimeError("playback must be a mapping")
		speed = utils.parse_speed(playback.get('speed'), 1.0)
		if self.speed_override is not None:
			speed = utils.parse_speed(self.speed_override, speed)
		raw_fps = playback.get('fps', 30)
		if self.fps_override is not None:
			raw_fps = self.fps_override
		fps = utils.parse_fps(raw_fps)
		return {
			'speed': speed,
			'fps': fps,
			'fps_float': float(fps),
		}

#============================================

def validate_script(script: PresentationScript) -> None:
	"""
	Check the invariants the timeline relies on but does not re-check.
	"""
	expected_transitions = max(0, len(script.sections) - 1)
	if len(script.transitions) != expected_transitions:
		raise RuntimeError(
			f"expected {expected_transitions} transitions for "
			f"{len(script.sections)} sections, found {len(script.transitions)}"
		)
	total = sum(section.total_duration for section in script.sections)
	total += sum(transition.duration for transition in script.transitions)
	if abs(total - script.total_duration) > DURATION_TOLERANCE:
		raise RuntimeError(
			f"totalDuration {script.total_duration} does not match "
			f"section and transition sum {total}"
		)
	for section in script.sections:
		_validate_section(section)

#============================================

def _validate_section(section) -> None:
	if section.total_duration < 0:
		raise RuntimeError(f"section {section.section_id} has negative duration")
	expected_start = 0.0
	for segment in section.segments:
		if not segment.text.strip():
			raise RuntimeError(f"segment {segment.id} in {section.section_id} has no text")
		if abs(segment.start_time - expected_start) > DURATION_TOLERANCE:
			raise RuntimeError(
				f"segment {segment.id} in {section.section_id} is not contiguous"
			)
		if segment.end_time < segment.start_time:
			raise RuntimeError(f"segment {segment.id} ends before it starts")
		expected_start = segment.end_time
	if len(section.segments) > 0:
		if abs(expected_start - section.total_duration) > DURATION_TOLERANCE:
			raise RuntimeError(
				f"segments of {section.section_id} do not cover its totalDuration"
			)
