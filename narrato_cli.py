#!/usr/bin/env python3

import argparse
import yaml
from narratolib.core import utils
from narratolib.core.loader import load_document
from narratolib.core.presentation import NarratoPresentation
from narratolib.core.repair import repair_analysis
from narratolib.core.scheduler import BlockingFrameScheduler

#============================================

def parse_args():
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(description="Narrated presentation timeline tool")
	parser.add_argument('-y', '--yaml', dest='yamlfile', required=True,
		help='presentation script yaml (or analysis file with --repair)')
	parser.add_argument('-t', '--time', dest='time_value',
		help='print the timeline state at this time (seconds or mm:ss.s)')
	parser.add_argument('-r', '--repair', dest='repair', action='store_true',
		help='treat the input as a generated analysis and repair its scripts')
	parser.add_argument('-p', '--frame-plan', dest='frame_plan', action='store_true',
		help='sample the timeline once per frame and print the states')
	parser.add_argument('-P', '--play', dest='play', action='store_true',
		help='play the timeline headless, printing captions as they change')
	parser.add_argument('-s', '--speed', dest='speed', type=float,
		help='override playback speed multiplier')
	parser.add_argument('-f', '--fps', dest='fps',
		help='override frame rate for playback and frame plans')
	parser.add_argument('-o', '--output', dest='output_file',
		help='write yaml output to this file instead of stdout')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='suppress progress output')
	args = parser.parse_args()
	return args

#============================================

def write_output(data, output_file: str = None) -> None:
	text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
	if output_file is None:
		print(text)
		return
	with open(output_file, 'w', encoding='utf-8') as handle:
		handle.write(text)
	if not utils.is_quiet_mode():
		print(f"wrote {output_file}")

#============================================

class CaptionPrinter():
	def __init__(self):
		self.last_key = None

	#============================
	def __call__(self, state) -> None:
		key = (state.phase, state.section_index, state.segment_index)
		if key == self.last_key:
			return
		self.last_key = key
		clock = utils.format_clock(state.global_time)
		if state.phase == 'transition':
			print(f"[{clock}] transition {state.from_section} -> {state.to_section}")
		elif state.phase == 'complete':
			print(f"[{clock}] complete")
		else:
			print(f"[{clock}] {state.section_index + 1}.{state.segment_index + 1} "
				f"{state.current_text}")

#============================================

def play_headless(presentation: NarratoPresentation, scheduler: BlockingFrameScheduler) -> None:
	if presentation.timeline.total_duration <= 0:
		print("nothing to play: timeline has zero duration")
		return
	unsubscribe = presentation.subscribe(CaptionPrinter())
	presentation.timeline.play()
	try:
		scheduler.run()
	finally:
		unsubscribe()
		presentation.destroy()

#============================================

def main():
	args = parse_args()
	utils.set_quiet_mode(args.quiet)
	if args.repair:
		analysis = load_document(args.yamlfile)
		write_output(repair_analysis(analysis), args.output_file)
		return
	presentation = NarratoPresentation(args.yamlfile,
		speed_override=args.speed, fps_override=args.fps)
	if args.time_value is not None:
		time_value = float(utils.parse_timecode(args.time_value))
		write_output(presentation.state_at(time_value), args.output_file)
		return
	if args.frame_plan:
		write_output(presentation.frame_plan(), args.output_file)
		return
	if args.play:
		scheduler = BlockingFrameScheduler(fps=presentation.playback['fps_float'])
		presentation.attach_scheduler(scheduler)
		play_headless(presentation, scheduler)
		return
	if not utils.is_quiet_mode():
		timeline = presentation.timeline
		print(f"sections: {len(timeline.sections)}")
		print(f"duration: {utils.format_clock(timeline.total_duration)}")
		print("validation complete")


if __name__ == '__main__':
	main()
