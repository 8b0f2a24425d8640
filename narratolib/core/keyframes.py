#!/usr/bin/env python3

"""
Keyframe interpolation for 2D elements, 3D objects, and camera tracks.

Keyframes are plain dicts in wire form. Each carries a local time in
[0, 1] and optional property values; a value missing on the later
keyframe of a bracket holds the earlier keyframe's value.
"""

import PIL.ImageColor
from narratolib.core import easing

#============================================

NUMERIC_2D_FIELDS = ('x', 'y', 'z', 'rotateX', 'rotateY', 'rotateZ', 'opacity')
FIELD_DEFAULTS_2D = {
	'x': 0.0,
	'y': 0.0,
	'z': 0.0,
	'rotateX': 0.0,
	'rotateY': 0.0,
	'rotateZ': 0.0,
	'opacity': 1.0,
}

CAMERA_POSITION = (0.0, 0.0, 6.0)
CAMERA_LOOK_AT = (0.0, 0.0, 0.0)
CAMERA_FOV = 50.0

# legacy enter/exit lowering
LEGACY_OFFSET = 40
LEGACY_HOLD_TIME = 0.75
LEGACY_ENTER_BASE = 0.15
LEGACY_ENTER_STAGGER = 0.05
LEGACY_ENTER_MAX = 0.4

#============================================

def lerp(start: float, end: float, t: float) -> float:
	return start + (end - start) * t

#============================================

def lerp_tuple3(start, end, t: float) -> tuple:
	return (
		lerp(start[0], end[0], t),
		lerp(start[1], end[1], t),
		lerp(start[2], end[2], t),
	)

#============================================

def _number(value):
	if value is None or isinstance(value, bool):
		return None
	if isinstance(value, (int, float)):
		return float(value)
	try:
		return float(value)
	except (TypeError, ValueError):
		return None

#============================================

def _vector3(value):
	if not isinstance(value, (list, tuple)) or len(value) != 3:
		return None
	numbers = [_number(item) for item in value]
	if any(item is None for item in numbers):
		return None
	return tuple(numbers)

#============================================

def normalize_scale(scale, fallback: float = 1.0):
	"""
	Expand a uniform or per-axis scale into a 3-tuple; None when absent.
	"""
	number = _number(scale)
	if number is not None:
		return (number, number, number)
	vector = _vector3(scale)
	if vector is not None:
		return vector
	if fallback is None:
		return None
	return (fallback, fallback, fallback)

#============================================

def _easing_name(keyframe: dict, default_easing: str) -> str:
	name = keyframe.get('easing')
	if isinstance(name, str) and name.strip() != "":
		return name
	return default_easing

#============================================

def _keyframe_time(keyframe: dict) -> float:
	value = _number(keyframe.get('time'))
	if value is None:
		return 0.0
	return value

#============================================

def _sorted_keyframes(keyframes) -> list:
	if not keyframes:
		return []
	valid = [item for item in keyframes if isinstance(item, dict)]
	return sorted(valid, key=_keyframe_time)

#============================================

def _clamp_progress(progress) -> float:
	value = _number(progress)
	if value is None:
		return 0.0
	return max(0.0, min(1.0, value))

#============================================

def _bracket_index(keyframes: list, progress: float) -> tuple:
	from_index = 0
	for index in range(len(keyframes) - 1):
		start = _keyframe_time(keyframes[index])
		end = _keyframe_time(keyframes[index + 1])
		if start <= progress < end:
			from_index = index
			break
	span = _keyframe_time(keyframes[from_index + 1]) - _keyframe_time(keyframes[from_index])
	local = 0.0
	if span > 0:
		local = (progress - _keyframe_time(keyframes[from_index])) / span
	return (from_index, local)

#============================================

def find_bracket(keyframes: list, progress: float) -> tuple:
	"""
	Locate the pair of keyframes around progress and the uneased
	local progress inside that pair.

	Callers have already handled progress at or outside the first and
	last keyframe times.
	"""
	(from_index, local) = _bracket_index(keyframes, progress)
	return (keyframes[from_index], keyframes[from_index + 1], local)

#============================================

def _resolve_states(frames: list, readers: dict, defaults: dict) -> list:
	"""
	Walk a sorted track once, carrying each field's last defined value
	forward. Fields never defined so far keep their default.
	"""
	states = []
	current = dict(defaults)
	for frame in frames:
		current = dict(current)
		for name, reader in readers.items():
			value = reader(frame.get(name))
			if value is not None:
				current[name] = value
		states.append(current)
	return states

#============================================

def _sample_track(keyframes, progress, readers: dict, defaults: dict,
	default_easing: str) -> tuple:
	"""
	Return (start, end, eased, local) for a track at progress.

	Outside the keyframe range, or for a single keyframe, start and end
	are the same resolved state.
	"""
	frames = _sorted_keyframes(keyframes)
	if len(frames) == 0:
		return (dict(defaults), dict(defaults), 0.0, 0.0)
	states = _resolve_states(frames, readers, defaults)
	p = _clamp_progress(progress)
	if len(frames) == 1 or p <= _keyframe_time(frames[0]):
		return (states[0], states[0], 0.0, 0.0)
	if p >= _keyframe_time(frames[-1]):
		return (states[-1], states[-1], 0.0, 0.0)
	(from_index, local) = _bracket_index(frames, p)
	eased = easing.ease_progress(local, _easing_name(frames[from_index], default_easing))
	return (states[from_index], states[from_index + 1], eased, local)

#============================================
# color
#============================================

def _parse_color(value):
	if not isinstance(value, str):
		return None
	try:
		rgb = PIL.ImageColor.getrgb(value.strip())
	except ValueError:
		return None
	if len(rgb) == 3:
		return (rgb[0], rgb[1], rgb[2], 255)
	return tuple(rgb)

#============================================

def _srgb_to_linear(channel: int) -> float:
	value = channel / 255.0
	if value <= 0.04045:
		return value / 12.92
	return ((value + 0.055) / 1.055) ** 2.4

#============================================

def _linear_to_srgb(value: float) -> int:
	value = max(0.0, min(1.0, value))
	if value <= 0.0031308:
		encoded = value * 12.92
	else:
		encoded = 1.055 * (value ** (1.0 / 2.4)) - 0.055
	return int(round(encoded * 255.0))

#============================================

def lerp_color(start_color: str, end_color: str, t: float, local: float = None) -> str:
	"""
	Blend two CSS colors in linear light and return an rgba() string.

	If either color cannot be parsed the result cuts over at the middle
	of the bracket, measured by local (uneased) progress when given.
	"""
	start_rgba = _parse_color(start_color)
	end_rgba = _parse_color(end_color)
	if start_rgba is None or end_rgba is None:
		cut = t if local is None else local
		return start_color if cut < 0.5 else end_color
	# overshoot curves may push t outside [0, 1]
	weight = max(0.0, min(1.0, t))
	channels = []
	for index in range(3):
		start = _srgb_to_linear(start_rgba[index])
		end = _srgb_to_linear(end_rgba[index])
		channels.append(_linear_to_srgb(lerp(start, end, weight)))
	alpha = lerp(start_rgba[3], end_rgba[3], weight) / 255.0
	return f"rgba({channels[0]},{channels[1]},{channels[2]},{round(alpha, 3):g})"

#============================================
# 2D property tracks
#============================================

def _color_value(value):
	return value if isinstance(value, str) else None

#============================================

def _scale_value(value):
	return normalize_scale(value, fallback=None)

#============================================

READERS_2D = {name: _number for name in NUMERIC_2D_FIELDS}
READERS_2D['scale'] = _scale_value
READERS_2D['color'] = _color_value

DEFAULTS_2D = dict(FIELD_DEFAULTS_2D)
DEFAULTS_2D['scale'] = (1.0, 1.0, 1.0)
DEFAULTS_2D['color'] = None

#============================================

def default_state() -> dict:
	return {
		'x': 0.0, 'y': 0.0, 'z': 0.0,
		'rotateX': 0.0, 'rotateY': 0.0, 'rotateZ': 0.0,
		'scaleX': 1.0, 'scaleY': 1.0, 'scaleZ': 1.0,
		'opacity': 1.0,
		'color': None,
	}

#============================================

def interpolate_keyframes(keyframes, progress, default_easing: str = easing.DEFAULT_EASING) -> dict:
	"""
	Evaluate a 2D keyframe track at progress in [0, 1].

	Returns a dict with x, y, z, rotateX/Y/Z, scaleX/Y/Z, opacity, color.
	"""
	(start, end, eased, local) = _sample_track(keyframes, progress,
		READERS_2D, DEFAULTS_2D, default_easing)
	result = {}
	for name in NUMERIC_2D_FIELDS:
		result[name] = lerp(start[name], end[name], eased)
	(result['scaleX'], result['scaleY'], result['scaleZ']) = lerp_tuple3(
		start['scale'], end['scale'], eased)
	start_color = start['color']
	end_color = end['color']
	if start_color and end_color and start_color != end_color:
		result['color'] = lerp_color(start_color, end_color, eased, local)
	else:
		result['color'] = end_color or start_color
	return result

#============================================
# 3D object tracks
#============================================

READERS_3D = {
	'position': _vector3,
	'rotation': _vector3,
	'scale': _scale_value,
	'opacity': _number,
}
DEFAULTS_3D = {
	'position': (0.0, 0.0, 0.0),
	'rotation': (0.0, 0.0, 0.0),
	'scale': (1.0, 1.0, 1.0),
	'opacity': 1.0,
}

#============================================

def interpolate_3d_keyframes(keyframes, progress, default_easing: str = easing.DEFAULT_EASING) -> dict:
	(start, end, eased, _) = _sample_track(keyframes, progress,
		READERS_3D, DEFAULTS_3D, default_easing)
	return {
		'position': lerp_tuple3(start['position'], end['position'], eased),
		'rotation': lerp_tuple3(start['rotation'], end['rotation'], eased),
		'scale': lerp_tuple3(start['scale'], end['scale'], eased),
		'opacity': lerp(start['opacity'], end['opacity'], eased),
	}

#============================================
# camera tracks
#============================================

READERS_CAMERA = {
	'position': _vector3,
	'lookAt': _vector3,
	'fov': _number,
}
DEFAULTS_CAMERA = {
	'position': CAMERA_POSITION,
	'lookAt': CAMERA_LOOK_AT,
	'fov': CAMERA_FOV,
}

#============================================

def interpolate_camera_track(keyframes, progress, default_easing: str = easing.DEFAULT_EASING) -> dict:
	(start, end, eased, _) = _sample_track(keyframes, progress,
		READERS_CAMERA, DEFAULTS_CAMERA, default_easing)
	return {
		'position': lerp_tuple3(start['position'], end['position'], eased),
		'lookAt': lerp_tuple3(start['lookAt'], end['lookAt'], eased),
		'fov': lerp(start['fov'], end['fov'], eased),
	}

#============================================
# legacy enter/exit descriptors
#============================================

def legacy_enter_end(index: int) -> float:
	return min(LEGACY_ENTER_BASE + index * LEGACY_ENTER_STAGGER, LEGACY_ENTER_MAX)

#============================================

def keyframes_from_legacy_animation(animation: dict, element_props: dict = None,
	index: int = 0) -> list:
	"""
	Lower an {enter, exit, continuous, duration, delay} descriptor into
	an explicit keyframe track for one element.

	Enter motion ends at a per-element staggered time, the element holds
	until LEGACY_HOLD_TIME, and the exit shape lands at time 1.0.
	"""
	animation = animation if isinstance(animation, dict) else {}
	element_props = element_props if isinstance(element_props, dict) else {}
	base_x = _number(element_props.get('x')) or 0.0
	base_y = _number(element_props.get('y')) or 0.0
	enter_end = legacy_enter_end(max(0, int(index)))

	enter = animation.get('enter')
	if enter == 'slideUp':
		keyframes = [
			{'time': 0.0, 'x': base_x, 'y': base_y + LEGACY_OFFSET, 'opacity': 0.0,
				'easing': 'cubicOut'},
			{'time': enter_end, 'x': base_x, 'y': base_y, 'opacity': 1.0},
		]
	elif enter == 'slideRight':
		keyframes = [
			{'time': 0.0, 'x': base_x - LEGACY_OFFSET, 'y': base_y, 'opacity': 0.0,
				'easing': 'cubicOut'},
			{'time': enter_end, 'x': base_x, 'y': base_y, 'opacity': 1.0},
		]
	elif enter == 'scale':
		keyframes = [
			{'time': 0.0, 'x': base_x, 'y': base_y, 'opacity': 0.0, 'scale': 0.0,
				'easing': 'backOut'},
			{'time': enter_end, 'x': base_x, 'y': base_y, 'opacity': 1.0, 'scale': 1.0},
		]
	else:
		keyframes = [
			{'time': 0.0, 'x': base_x, 'y': base_y, 'opacity': 0.0, 'easing': 'easeOut'},
			{'time': enter_end, 'x': base_x, 'y': base_y, 'opacity': 1.0},
		]

	keyframes.append(
		{'time': LEGACY_HOLD_TIME, 'x': base_x, 'y': base_y, 'opacity': 1.0,
			'easing': 'easeInOut'}
	)

	exit_name = animation.get('exit') or 'fadeOut'
	if exit_name == 'slideDown':
		exit_frame = {'time': 1.0, 'x': base_x, 'y': base_y + LEGACY_OFFSET, 'opacity': 0.0}
	elif exit_name == 'scaleDown':
		exit_frame = {'time': 1.0, 'x': base_x, 'y': base_y, 'opacity': 0.0, 'scale': 0.5}
	elif exit_name == 'slideLeft':
		exit_frame = {'time': 1.0, 'x': base_x - LEGACY_OFFSET, 'y': base_y, 'opacity': 0.0}
	else:
		exit_frame = {'time': 1.0, 'x': base_x, 'y': base_y, 'opacity': 0.0}
	keyframes.append(exit_frame)
	return keyframes

#============================================

def resolve_element_keyframes(element, index: int = 0) -> list:
	"""
	Return the element's own keyframe track, or one lowered from its
	legacy descriptor. The element is never modified.
	"""
	if isinstance(element, dict):
		props = element.get('props') or {}
		animation = element.get('animation') or {}
	else:
		props = element.props
		animation = element.animation
	track = animation.get('keyframes') if isinstance(animation, dict) else None
	if isinstance(track, list) and len(track) > 0:
		return track
	return keyframes_from_legacy_animation(animation, props, index)

#============================================

def element_state_at(element, index: int, progress: float) -> dict:
	return interpolate_keyframes(resolve_element_keyframes(element, index), progress)
