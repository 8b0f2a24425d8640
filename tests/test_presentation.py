#!/usr/bin/env python3

"""
Pytest coverage for the presentation wrapper: frame plans, script
replacement, and scheduler attachment.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest
import yaml

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from narratolib.core import utils
from narratolib.core.presentation import NarratoPresentation
from narratolib.core.scheduler import ManualFrameScheduler

SAMPLE_PATH = os.path.join(REPO_ROOT, "samples", "two_sections.narrato.yaml")

#============================================

@pytest.fixture
def quiet_mode():
	utils.set_quiet_mode(True)
	yield
	utils.set_quiet_mode(False)

#============================================

def _sample_document() -> dict:
	with open(SAMPLE_PATH, "r", encoding="utf-8") as handle:
		return yaml.safe_load(handle)

#============================================

def test_state_at_returns_wire_dict() -> None:
	presentation = NarratoPresentation(SAMPLE_PATH)
	state = presentation.state_at(10.5)
	assert state['phase'] == 'transition'
	assert state['transitionProgress'] == pytest.approx(0.25)
	state = presentation.state_at(6)
	assert state['currentText'] == 'Scores become weights.'
	assert state['emphasis'] == ['weights']

#============================================

def test_frame_plan_samples_every_frame(quiet_mode) -> None:
	presentation = NarratoPresentation(SAMPLE_PATH)
	plan = presentation.frame_plan(fps=2)
	assert len(plan) == 40
	assert plan[0]['frame'] == 0
	assert plan[0]['globalTime'] == 0.0
	assert plan[21]['phase'] == 'transition'
	assert plan[-1]['globalTime'] == pytest.approx(19.5)
	assert len(presentation.frame_plan()) == 600

#============================================

def test_replace_script_keeps_position_and_listeners() -> None:
	scheduler = ManualFrameScheduler()
	presentation = NarratoPresentation(SAMPLE_PATH, scheduler=scheduler)
	seen = []
	presentation.subscribe(seen.append)
	presentation.timeline.seek(6)
	document = _sample_document()
	document['sections'][0]['segments'][1]['text'] = 'Scores turn into weights.'
	presentation.replace_script(document)
	assert presentation.timeline.current_time == 6
	assert seen[-1].current_text == 'Scores turn into weights.'
	assert not presentation.timeline.is_playing()

#============================================

def test_replace_script_resumes_playback() -> None:
	scheduler = ManualFrameScheduler()
	presentation = NarratoPresentation(SAMPLE_PATH, scheduler=scheduler)
	presentation.timeline.play()
	scheduler.step()
	scheduler.advance(2.0)
	old_timeline = presentation.timeline
	presentation.replace_script(_sample_document())
	assert presentation.timeline is not old_timeline
	assert not old_timeline.is_playing()
	assert presentation.timeline.is_playing()
	scheduler.step()
	scheduler.advance(1.0)
	assert presentation.timeline.current_time == pytest.approx(3.0)

#============================================

def test_replace_script_rejects_invalid_script() -> None:
	presentation = NarratoPresentation(SAMPLE_PATH)
	document = _sample_document()
	document['totalDuration'] = 99
	with pytest.raises(RuntimeError):
		presentation.replace_script(document)
	assert presentation.timeline.total_duration == 20

#============================================

def test_attach_scheduler_and_unsubscribe() -> None:
	presentation = NarratoPresentation(SAMPLE_PATH, speed_override=2.0)
	scheduler = ManualFrameScheduler(start_time=5.0)
	presentation.attach_scheduler(scheduler)
	seen = []
	unsubscribe = presentation.subscribe(seen.append)
	presentation.timeline.play()
	scheduler.step()
	scheduler.advance(1.0)
	assert presentation.timeline.current_time == pytest.approx(2.0)
	unsubscribe()
	count = len(seen)
	scheduler.advance(1.0)
	assert len(seen) == count
	presentation.destroy()
	assert not scheduler.has_pending()
