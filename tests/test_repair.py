#!/usr/bin/env python3

"""
Tests for keeping narration segments aligned with animation steps.
"""

# Standard Library
import os
import sys
import unittest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from narratolib.core import repair
from narratolib.core import utils
from narratolib.core.script import AnimationStep
from narratolib.core.script import NarrationSegment

#============================================

def _steps(count: int) -> list:
	return [{'id': f"step-{index + 1}"} for index in range(count)]

#============================================

class ScriptRepairerTest(unittest.TestCase):
	#============================================
	def setUp(self) -> None:
		self.events = []
		utils.set_event_reporter(self.events.append)

	#============================================
	def tearDown(self) -> None:
		utils.clear_event_reporter()

	#============================================
	def test_single_segment_expands_to_every_step(self) -> None:
		repairer = repair.ScriptRepairer('intro')
		segments = repairer.repair_segments([{'text': 'Intro'}], _steps(3))
		self.assertEqual(len(segments), 3)
		self.assertEqual(segments[0].text, 'Intro.')
		texts = [segment.text for segment in segments]
		for text in texts:
			self.assertTrue(text.strip())
		self.assertEqual(len(set(texts)), 3)
		self.assertEqual([segment.step_id for segment in segments],
			['step-1', 'step-2', 'step-3'])
		self.assertEqual(segments[1].id, 'seg-intro-2')
		self.assertEqual(self.events[0]['event'], 'repair')
		self.assertEqual(self.events[0]['steps'], 3)

	#============================================
	def test_valid_segments_are_resynced(self) -> None:
		raw_segments = [
			{'id': 'a', 'text': 'First idea here.', 'stepId': 'wrong', 'pacing': 'slow'},
			{'id': 'b', 'text': 'Second idea.', 'stepId': 'wrong'},
		]
		raw_steps = [{'id': 's1', 'duration': 4}, {'id': 's2'}]
		segments = repair.ScriptRepairer('body').repair_segments(raw_segments, raw_steps)
		self.assertEqual([segment.text for segment in segments],
			['First idea here.', 'Second idea.'])
		self.assertEqual([segment.step_id for segment in segments], ['s1', 's2'])
		self.assertEqual(segments[0].estimated_duration, 4)
		self.assertEqual(segments[1].estimated_duration, repair.MIN_SEGMENT_SECONDS)
		self.assertEqual(segments[0].pacing, 'slow')
		self.assertEqual(self.events, [])

	#============================================
	def test_identical_texts_are_regenerated(self) -> None:
		repairer = repair.ScriptRepairer('dup', full_text='Alpha one. Beta two.')
		raw_segments = [{'text': 'Same.'}, {'text': 'same.'}]
		segments = repairer.repair_segments(raw_segments, _steps(2))
		self.assertEqual([segment.text for segment in segments], ['Alpha one.', 'Beta two.'])
		self.assertEqual(len(self.events), 1)

	#============================================
	def test_more_segments_than_steps(self) -> None:
		raw_segments = [{'text': 'One.'}, {'text': 'Two.'}, {'text': 'Three.'}]
		segments = repair.ScriptRepairer('extra').repair_segments(raw_segments, _steps(2))
		self.assertEqual(len(segments), 2)
		self.assertEqual([segment.text for segment in segments], ['One.', 'Two.'])

	#============================================
	def test_zero_steps_returns_input_unchanged(self) -> None:
		raw_segments = [{'text': 'Kept as is'}]
		result = repair.ScriptRepairer('none').repair_segments(raw_segments, [])
		self.assertIs(result, raw_segments)
		self.assertEqual(self.events, [])

	#============================================
	def test_blank_segment_text_is_synthesized(self) -> None:
		raw_segments = [
			{'text': 'Opening line.'},
			{'text': 'Middle line.'},
			{'text': '   '},
		]
		raw_steps = _steps(2) + [{'id': 'step-3', 'description': 'compare the two curves'}]
		segments = repair.ScriptRepairer('blank').repair_segments(raw_segments, raw_steps)
		self.assertEqual(segments[2].text, 'Compare the two curves.')
		self.assertEqual(segments[0].text, 'Opening line.')

	#============================================
	def test_one_blank_segment_keeps_authored_text(self) -> None:
		"""A blank segment next to a real one is filled in, not regenerated."""
		repairer = repair.ScriptRepairer('sec',
			full_text='Completely different narration. Another sentence.')
		raw_segments = [
			{'id': 'first', 'text': ''},
			{'id': 'second', 'text': 'Gradients flow backward.'},
		]
		raw_steps = [{'id': 's1', 'description': 'plot the loss curve'}, {'id': 's2'}]
		segments = repairer.repair_segments(raw_segments, raw_steps)
		self.assertEqual([segment.text for segment in segments],
			['Plot the loss curve.', 'Gradients flow backward.'])
		self.assertEqual([segment.id for segment in segments], ['first', 'second'])
		self.assertEqual(self.events, [])

	#============================================
	def test_all_blank_segments_are_regenerated(self) -> None:
		repairer = repair.ScriptRepairer('sec', full_text='One idea. Two ideas.')
		segments = repairer.repair_segments([{'text': ' '}, {'text': ''}], _steps(2))
		self.assertEqual([segment.text for segment in segments], ['One idea.', 'Two ideas.'])
		self.assertEqual(len(self.events), 1)

	#============================================
	def test_highlight_narration(self) -> None:
		step = AnimationStep.from_dict({
			'id': 'focus',
			'elements': [
				{'type': 'highlight', 'props': {'content': 'attention weights'}},
				{'type': 'text', 'props': {'label': 'softmax'}},
				{'type': 'arrow', 'props': {'content': 'ignored'}},
			],
		})
		text = repair.build_segment_narration(step, None, 'transformers', 'Title', 0)
		self.assertEqual(text,
			'We spotlight attention weights and softmax to show how it connects to transformers.')
		self.assertEqual(repair.build_emphasis(step, text), ['attention', 'weights'])

	#============================================
	def test_narration_fallbacks(self) -> None:
		described = AnimationStep(id='d', description='show the encoder stack')
		self.assertEqual(repair.build_segment_narration(described, None, '', '', 0),
			'Show the encoder stack.')
		bare = AnimationStep(id='b')
		self.assertEqual(repair.build_segment_narration(bare, None, '', 'Methods', 1),
			'Step 2 deepens the understanding of Methods.')
		self.assertEqual(repair.build_segment_narration(bare, None, '', '', 2),
			'Step 3 deepens the understanding of this concept.')
		self.assertEqual(repair.build_segment_narration(bare, 'given line', '', '', 0),
			'Given line.')

	#============================================
	def test_emphasis_falls_back_to_long_words(self) -> None:
		step = AnimationStep(id='plain')
		emphasis = repair.build_emphasis(step, 'The gradient flows through layers quickly.')
		self.assertEqual(emphasis, ['gradient', 'flows'])

	#============================================
	def test_sentence_helpers(self) -> None:
		self.assertEqual(repair.ensure_sentence('hello   world'), 'Hello world.')
		self.assertEqual(repair.ensure_sentence('Done!'), 'Done!')
		self.assertEqual(repair.ensure_sentence('  '), '')
		self.assertEqual(repair.split_into_sentences('One. Two?  Three!'),
			['One.', 'Two?', 'Three!'])
		self.assertEqual(repair.split_into_sentences(''), [])

	#============================================
	def test_estimate_duration(self) -> None:
		self.assertEqual(repair.estimate_duration('short'), 2.5)
		words = ' '.join(['word'] * 30)
		self.assertEqual(repair.estimate_duration(words), 12.0)

	#============================================
	def test_needs_repair(self) -> None:
		repairer = repair.ScriptRepairer('check')
		distinct = [NarrationSegment(id='1', text='A.', step_id=''),
			NarrationSegment(id='2', text='B.', step_id='')]
		steps = [AnimationStep(id='x'), AnimationStep(id='y')]
		self.assertFalse(repairer.needs_repair(distinct, steps))
		self.assertTrue(repairer.needs_repair(distinct[:1], steps))

	#============================================
	def test_repair_section_joins_text(self) -> None:
		repairer = repair.ScriptRepairer('sec', full_text='First. Second.')
		section = repairer.repair_section([{'text': 'First. Second.'}], _steps(2))
		self.assertEqual(section.section_id, 'sec')
		self.assertEqual(section.full_text, 'First. Second.')
		self.assertEqual(len(section.segments), 2)

	#============================================
	def test_repair_analysis(self) -> None:
		analysis = {
			'sections': [
				{
					'title': 'Intro',
					'script': {
						'fullText': 'One. Two.',
						'segments': [{'text': 'One. Two.'}],
					},
					'animationData': {'steps': _steps(2)},
				},
				{'id': 'notes', 'narration': 'No script here.'},
			],
		}
		result = repair.repair_analysis(analysis)
		self.assertIs(result, analysis)
		first = analysis['sections'][0]
		self.assertEqual(first['id'], 'section-1')
		self.assertEqual(first['script']['sectionId'], 'section-1')
		texts = [segment['text'] for segment in first['script']['segments']]
		self.assertEqual(texts, ['One.', 'Two.'])
		self.assertEqual(first['narration'], 'One. Two.')
		self.assertEqual(analysis['sections'][1]['narration'], 'No script here.')
		self.assertEqual(self.events[-1]['event'], 'repair_done')
		self.assertEqual(self.events[-1]['sections'], 1)

#============================================

def main() -> None:
	"""Run the unit tests."""
	unittest.main()

#============================================

if __name__ == "__main__":
	main()
