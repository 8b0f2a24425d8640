#!/usr/bin/env python3

"""
Data contracts shared by the repairer, the timeline, and the renderers.

Wire form (dicts read from YAML/JSON) keeps the generator's camelCase
keys; the Python objects use snake_case attributes.
"""

from dataclasses import dataclass, field
from typing import Optional

#============================================

PHASE_SECTION = 'section'
PHASE_TRANSITION = 'transition'
PHASE_COMPLETE = 'complete'

#============================================

def _as_float(value, default: float = 0.0) -> float:
	if value is None or isinstance(value, bool):
		return default
	try:
		return float(value)
	except (TypeError, ValueError):
		return default

#============================================

def _as_text(value) -> str:
	if value is None:
		return ""
	return str(value)

#============================================

@dataclass
class NarrationSegment:
	id: str
	text: str
	step_id: str
	estimated_duration: float = 0.0
	start_time: float = 0.0
	end_time: float = 0.0
	emphasis: Optional[list] = None
	pacing: str = 'normal'

	@property
	def duration(self) -> float:
		return self.end_time - self.start_time

	@classmethod
	def from_dict(cls, data: dict) -> "NarrationSegment":
		emphasis = data.get('emphasis')
		if isinstance(emphasis, list):
			emphasis = [str(word) for word in emphasis][:2]
		else:
			emphasis = None
		return cls(
			id=_as_text(data.get('id')),
			text=_as_text(data.get('text')),
			step_id=_as_text(data.get('stepId')),
			estimated_duration=_as_float(data.get('estimatedDuration')),
			start_time=_as_float(data.get('startTime')),
			end_time=_as_float(data.get('endTime')),
			emphasis=emphasis,
			pacing=data.get('pacing') or 'normal',
		)

	def to_dict(self) -> dict:
		data = {
			'id': self.id,
			'text': self.text,
			'stepId': self.step_id,
			'estimatedDuration': self.estimated_duration,
			'startTime': self.start_time,
			'endTime': self.end_time,
			'pacing': self.pacing,
		}
		if self.emphasis:
			data['emphasis'] = list(self.emphasis)
		return data

#============================================

@dataclass
class SectionScript:
	section_id: str
	full_text: str
	segments: list = field(default_factory=list)
	total_duration: float = 0.0

	@classmethod
	def from_dict(cls, data: dict) -> "SectionScript":
		segments = []
		for raw_segment in data.get('segments') or []:
			if isinstance(raw_segment, NarrationSegment):
				segments.append(raw_segment)
			elif isinstance(raw_segment, dict):
				segments.append(NarrationSegment.from_dict(raw_segment))
		return cls(
			section_id=_as_text(data.get('sectionId')),
			full_text=_as_text(data.get('fullText')),
			segments=segments,
			total_duration=_as_float(data.get('totalDuration')),
		)

	def to_dict(self) -> dict:
		return {
			'sectionId': self.section_id,
			'fullText': self.full_text,
			'segments': [segment.to_dict() for segment in self.segments],
			'totalDuration': self.total_duration,
		}

#============================================

@dataclass
class SectionTransition:
	from_section_id: str
	to_section_id: str
	type: str = 'crossfade'
	duration: float = 0.0

	@classmethod
	def from_dict(cls, data: dict) -> "SectionTransition":
		return cls(
			from_section_id=_as_text(data.get('fromSectionId')),
			to_section_id=_as_text(data.get('toSectionId')),
			type=data.get('type') or 'crossfade',
			duration=_as_float(data.get('duration')),
		)

	def to_dict(self) -> dict:
		return {
			'fromSectionId': self.from_section_id,
			'toSectionId': self.to_section_id,
			'type': self.type,
			'duration': self.duration,
		}

#============================================

@dataclass
class PresentationScript:
	paper_title: str = ""
	sections: list = field(default_factory=list)
	transitions: list = field(default_factory=list)
	total_duration: float = 0.0

	@classmethod
	def from_dict(cls, data: dict) -> "PresentationScript":
		sections = [
			SectionScript.from_dict(item) for item in data.get('sections') or []
			if isinstance(item, dict)
		]
		transitions = [
			SectionTransition.from_dict(item) for item in data.get('transitions') or []
			if isinstance(item, dict)
		]
		return cls(
			paper_title=_as_text(data.get('paperTitle')),
			sections=sections,
			transitions=transitions,
			total_duration=_as_float(data.get('totalDuration')),
		)

	def to_dict(self) -> dict:
		return {
			'paperTitle': self.paper_title,
			'sections': [section.to_dict() for section in self.sections],
			'transitions': [transition.to_dict() for transition in self.transitions],
			'totalDuration': self.total_duration,
		}

#============================================

@dataclass
class AnimationElement:
	type: str
	props: dict = field(default_factory=dict)
	animation: dict = field(default_factory=dict)

	@classmethod
	def from_dict(cls, data: dict) -> "AnimationElement":
		props = data.get('props')
		animation = data.get('animation')
		return cls(
			type=_as_text(data.get('type')),
			props=props if isinstance(props, dict) else {},
			animation=animation if isinstance(animation, dict) else {},
		)

#============================================

@dataclass
class AnimationStep:
	id: str
	description: str = ""
	duration: float = 0.0
	elements: list = field(default_factory=list)

	@classmethod
	def from_dict(cls, data: dict) -> "AnimationStep":
		elements = []
		for raw_element in data.get('elements') or []:
			if isinstance(raw_element, AnimationElement):
				elements.append(raw_element)
			elif isinstance(raw_element, dict):
				elements.append(AnimationElement.from_dict(raw_element))
		return cls(
			id=_as_text(data.get('id')),
			description=_as_text(data.get('description')),
			duration=_as_float(data.get('duration')),
			elements=elements,
		)

#============================================

@dataclass(frozen=True)
class TimelineState:
	phase: str
	section_index: int = 0
	segment_index: int = 0
	section_progress: float = 0.0
	segment_progress: float = 0.0
	active_step_id: str = ""
	current_text: str = ""
	emphasis: tuple = ()
	global_time: float = 0.0
	from_section: Optional[int] = None
	to_section: Optional[int] = None
	transition_progress: Optional[float] = None

	def to_dict(self) -> dict:
		data = {
			'phase': self.phase,
			'sectionIndex': self.section_index,
			'segmentIndex': self.segment_index,
			'sectionProgress': self.section_progress,
			'segmentProgress': self.segment_progress,
			'activeStepId': self.active_step_id,
			'currentText': self.current_text,
			'emphasis': list(self.emphasis),
			'globalTime': self.global_time,
		}
		if self.phase == PHASE_TRANSITION:
			data['fromSection'] = self.from_section
			data['toSection'] = self.to_section
			data['transitionProgress'] = self.transition_progress
		return data
