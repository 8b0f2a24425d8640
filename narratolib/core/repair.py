#!/usr/bin/env python3

"""
Keep narration segments and animation steps in 1:1 correspondence.

Generated sections sometimes come back with fewer or more segments than
steps, or with every segment carrying the same text. The repairer
rebuilds the segment list from the section narration and the step
content so that the timeline always has one distinct sentence per step.
"""

import re
from narratolib.core import utils
from narratolib.core.script import AnimationStep
from narratolib.core.script import NarrationSegment
from narratolib.core.script import SectionScript

#============================================

WORDS_PER_MINUTE = 150
MIN_SEGMENT_SECONDS = 2.5
FOCUS_ELEMENT_TYPES = ('highlight', 'shape', 'node', 'text')
MAX_HIGHLIGHTS = 3
MAX_EMPHASIS = 2

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_TERMINAL_PUNCT = re.compile(r"[.!?]$")
_WORD_CLEAN = re.compile(r"[^a-zA-Z0-9-]")

#============================================

def split_into_sentences(text: str) -> list:
	if not text:
		return []
	sentences = []
	for sentence in _SENTENCE_SPLIT.split(text):
		cleaned = utils.collapse_whitespace(sentence)
		if cleaned:
			sentences.append(cleaned)
	return sentences

#============================================

def ensure_sentence(text: str) -> str:
	trimmed = utils.collapse_whitespace(text or "")
	if not trimmed:
		return ""
	capitalized = trimmed[0].upper() + trimmed[1:]
	if _TERMINAL_PUNCT.search(capitalized):
		return capitalized
	return f"{capitalized}."

#============================================

def estimate_duration(text: str) -> float:
	"""
	Spoken length of text at WORDS_PER_MINUTE, floored at MIN_SEGMENT_SECONDS.
	"""
	words = utils.count_words(text)
	seconds = max(MIN_SEGMENT_SECONDS, words / WORDS_PER_MINUTE * 60.0)
	return round(seconds, 2)

#============================================

def extract_step_highlights(step: AnimationStep) -> list:
	phrases = []
	for element in step.elements:
		if element.type not in FOCUS_ELEMENT_TYPES:
			continue
		raw_content = element.props.get('content')
		if raw_content is None:
			raw_content = element.props.get('label')
		if not isinstance(raw_content, str):
			continue
		cleaned = utils.collapse_whitespace(raw_content)
		if cleaned and cleaned not in phrases:
			phrases.append(cleaned)
		if len(phrases) >= MAX_HIGHLIGHTS:
			break
	return phrases

#============================================

def build_segment_narration(step: AnimationStep, fallback_sentence: str,
	section_concept: str, section_title: str, step_index: int) -> str:
	if fallback_sentence:
		return ensure_sentence(fallback_sentence)
	focus_subject = section_concept or section_title or "this concept"
	highlights = extract_step_highlights(step)
	if len(highlights) > 0:
		joined = highlights[0]
		if len(highlights) > 1:
			joined = f"{highlights[0]} and {highlights[1]}"
		return ensure_sentence(
			f"We spotlight {joined} to show how it connects to {focus_subject}."
		)
	if step.description.strip():
		return ensure_sentence(step.description)
	return ensure_sentence(
		f"Step {step_index + 1} deepens the understanding of {focus_subject}."
	)

#============================================

def _unique_words(words: list, emphasis: list) -> list:
	for word in words:
		normalized = word.lower()
		if not normalized:
			continue
		if any(existing.lower() == normalized for existing in emphasis):
			continue
		emphasis.append(word)
		if len(emphasis) >= MAX_EMPHASIS:
			break
	return emphasis

#============================================

def build_emphasis(step: AnimationStep, segment_text: str) -> list:
	highlight_words = []
	for phrase in extract_step_highlights(step):
		for word in phrase.split():
			cleaned = _WORD_CLEAN.sub("", word)
			if len(cleaned) > 3:
				highlight_words.append(cleaned)
	emphasis = _unique_words(highlight_words, [])
	if len(emphasis) >= MAX_EMPHASIS:
		return emphasis[:MAX_EMPHASIS]
	fallback_words = []
	for word in (segment_text or "").split():
		cleaned = _WORD_CLEAN.sub("", word)
		if len(cleaned) > 4:
			fallback_words.append(cleaned)
	emphasis = _unique_words(fallback_words, emphasis)
	return emphasis[:MAX_EMPHASIS]

#============================================

def _coerce_segment(raw_segment) -> NarrationSegment:
	if isinstance(raw_segment, NarrationSegment):
		return raw_segment
	if isinstance(raw_segment, dict):
		return NarrationSegment.from_dict(raw_segment)
	return NarrationSegment(id="", text="", step_id="")

#============================================

def _coerce_step(raw_step) -> AnimationStep:
	if isinstance(raw_step, AnimationStep):
		return raw_step
	if isinstance(raw_step, dict):
		return AnimationStep.from_dict(raw_step)
	return AnimationStep(id="")

#============================================

def _distinct_texts(segments: list) -> set:
	texts = set()
	for segment in segments:
		texts.add(segment.text.strip().lower())
	return texts

#============================================

class ScriptRepairer():
	def __init__(self, section_id: str, full_text: str = "", concept: str = "",
		title: str = ""):
		self.section_id = section_id
		self.full_text = full_text or ""
		self.concept = concept or ""
		self.title = title or ""

	#============================
	def needs_repair(self, segments: list, steps: list) -> bool:
		if len(segments) != len(steps):
			return True
		return len(_distinct_texts(segments)) <= 1

	#============================
	def repair_segments(self, raw_segments: list, raw_steps: list) -> list:
		"""
		Return one NarrationSegment per step.

		With no steps the input list is returned untouched.
		"""
		if not raw_steps:
			return raw_segments
		segments = [_coerce_segment(item) for item in raw_segments or []]
		steps = [_coerce_step(item) for item in raw_steps]
		if self.needs_repair(segments, steps):
			utils.report_event({
				'event': 'repair',
				'section': self.section_id,
				'segments': len(segments),
				'steps': len(steps),
				'message': (f"repair: section {self.section_id} has {len(segments)} "
					f"segments for {len(steps)} steps, regenerating narration"),
			})
			return self._regenerate(segments, steps)
		return self._resync(segments, steps)

	#============================
	def _step_id(self, step: AnimationStep, index: int) -> str:
		if step.id:
			return step.id
		return f"{self.section_id}-step-{index + 1}"

	#============================
	def _resync(self, segments: list, steps: list) -> list:
		synced = []
		for index, (segment, step) in enumerate(zip(segments, steps)):
			text = segment.text
			emphasis = segment.emphasis
			if not text.strip():
				text = build_segment_narration(step, None, self.concept, self.title, index)
				emphasis = build_emphasis(step, text) or None
			duration = step.duration if step.duration > 0 else estimate_duration(text)
			synced.append(NarrationSegment(
				id=segment.id or f"seg-{self.section_id}-{index + 1}",
				text=text,
				step_id=self._step_id(step, index),
				estimated_duration=duration,
				start_time=segment.start_time,
				end_time=segment.end_time,
				emphasis=emphasis,
				pacing=segment.pacing,
			))
		return synced

	#============================
	def _regenerate(self, segments: list, steps: list) -> list:
		narration = self.full_text
		if not narration.strip():
			narration = " ".join(segment.text for segment in segments)
		sentences = split_into_sentences(narration)
		regenerated = []
		for index, step in enumerate(steps):
			fallback_sentence = None
			if index < len(sentences):
				fallback_sentence = sentences[index]
			text = build_segment_narration(step, fallback_sentence, self.concept,
				self.title, index)
			emphasis = build_emphasis(step, text)
			duration = step.duration if step.duration > 0 else estimate_duration(text)
			regenerated.append(NarrationSegment(
				id=f"seg-{self.section_id}-{index + 1}",
				text=text,
				step_id=self._step_id(step, index),
				estimated_duration=duration,
				start_time=0.0,
				end_time=0.0,
				emphasis=emphasis if len(emphasis) > 0 else None,
				pacing='normal',
			))
		return regenerated

	#============================
	def repair_section(self, raw_segments: list, raw_steps: list) -> SectionScript:
		segments = self.repair_segments(raw_segments, raw_steps)
		if not raw_steps:
			segments = [_coerce_segment(item) for item in segments or []]
			return SectionScript(section_id=self.section_id, full_text=self.full_text,
				segments=segments, total_duration=0.0)
		full_text = " ".join(segment.text for segment in segments)
		return SectionScript(section_id=self.section_id, full_text=full_text,
			segments=segments, total_duration=0.0)

#============================================

def repair_analysis(analysis: dict) -> dict:
	"""
	Repair every section of a generated analysis document in place.

	Sections are dicts with id, title, concept, narration, script and
	animationData. The repaired script is stored back in wire form.
	"""
	sections = analysis.get('sections')
	if not isinstance(sections, list):
		return analysis
	repaired_count = 0
	for index, section in enumerate(sections):
		if not isinstance(section, dict):
			continue
		section_id = section.get('id') or f"section-{index + 1}"
		section['id'] = section_id
		script = section.get('script')
		if isinstance(script, dict) and not section.get('narration'):
			section['narration'] = script.get('fullText') or ""
		animation_data = section.get('animationData')
		if isinstance(script, dict) and isinstance(animation_data, dict):
			repairer = ScriptRepairer(section_id,
				full_text=section.get('narration') or "",
				concept=section.get('concept') or "",
				title=section.get('title') or "")
			steps = animation_data.get('steps') or []
			section_script = repairer.repair_section(script.get('segments') or [], steps)
			script = section_script.to_dict()
			section['script'] = script
			repaired_count += 1
		if isinstance(script, dict):
			script['sectionId'] = section_id
			section['narration'] = script.get('fullText') or section.get('narration') or ""
	utils.report_event({
		'event': 'repair_done',
		'sections': repaired_count,
		'message': f"repair: checked {repaired_count} section scripts",
	})
	return analysis
