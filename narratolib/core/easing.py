#!/usr/bin/env python3

"""
Easing curves addressed by name.

Names follow the family.type(params) form, e.g. "power2.inOut",
"back.out(1.7)", "elastic.out(1, 0.3)". Older content uses camelCase
aliases such as "easeInOut", which resolve to a canonical name first.
"""

import functools
import math
import re

#============================================

DEFAULT_EASING = 'easeInOut'

EASING_ALIASES = {
	'linear': 'none',
	'easeIn': 'power1.in',
	'easeOut': 'power1.out',
	'easeInOut': 'power2.inOut',
	'backOut': 'back.out(1.7)',
	'cubicOut': 'power3.out',
	'cubicInOut': 'power3.inOut',
	'bounceOut': 'bounce.out',
	'elasticOut': 'elastic.out(1, 0.3)',
	'quadOut': 'power1.out',
	'spring': 'back.out(2.5)',
}

# named power families
POWER_SYNONYMS = {
	'power0': 0,
	'power1': 1,
	'power2': 2,
	'power3': 3,
	'power4': 4,
	'quad': 1,
	'cubic': 2,
	'quart': 3,
	'quint': 4,
	'strong': 4,
}

_EASE_PATTERN = re.compile(
	r"^\s*([A-Za-z]+[0-9]?)\s*(?:\.\s*(in|out|inOut|inout)\s*)?(?:\(([^)]*)\))?\s*$"
)

#============================================

def _identity(t: float) -> float:
	return t

#============================================

def _power_in(power: int):
	exponent = power + 1
	def curve(t: float) -> float:
		return t ** exponent
	return curve

#============================================

def _sine_in(t: float) -> float:
	return 1.0 - math.cos(t * math.pi / 2.0)

#============================================

def _expo_in(t: float) -> float:
	if t <= 0.0:
		return 0.0
	return 2.0 ** (10.0 * (t - 1.0))

#============================================

def _circ_in(t: float) -> float:
	return 1.0 - math.sqrt(max(0.0, 1.0 - t * t))

#============================================

def _back_in(overshoot: float):
	def curve(t: float) -> float:
		return t * t * ((overshoot + 1.0) * t - overshoot)
	return curve

#============================================

def _bounce_out(t: float) -> float:
	n1 = 7.5625
	d1 = 2.75
	if t < 1.0 / d1:
		return n1 * t * t
	if t < 2.0 / d1:
		t -= 1.5 / d1
		return n1 * t * t + 0.75
	if t < 2.5 / d1:
		t -= 2.25 / d1
		return n1 * t * t + 0.9375
	t -= 2.625 / d1
	return n1 * t * t + 0.984375

#============================================

def _bounce_in(t: float) -> float:
	return 1.0 - _bounce_out(1.0 - t)

#============================================

def _elastic_in(amplitude: float, period: float):
	amplitude = max(1.0, amplitude)
	if period <= 0:
		period = 0.3
	two_pi = 2.0 * math.pi
	shift = period / two_pi * math.asin(1.0 / amplitude)

	def out_curve(t: float) -> float:
		if t <= 0.0:
			return 0.0
		return amplitude * 2.0 ** (-10.0 * t) * math.sin((t - shift) * two_pi / period) + 1.0

	def curve(t: float) -> float:
		return 1.0 - out_curve(1.0 - t)
	return curve

#============================================

def _as_out(in_curve):
	def curve(t: float) -> float:
		return 1.0 - in_curve(1.0 - t)
	return curve

#============================================

def _as_in_out(in_curve):
	def curve(t: float) -> float:
		if t < 0.5:
			return in_curve(t * 2.0) / 2.0
		return 1.0 - in_curve((1.0 - t) * 2.0) / 2.0
	return curve

#============================================

def _pin_endpoints(curve):
	def pinned(t: float) -> float:
		if t <= 0.0:
			return 0.0
		if t >= 1.0:
			return 1.0
		return curve(t)
	return pinned

#============================================

def _parse_params(raw_params: str) -> list:
	if raw_params is None or raw_params.strip() == "":
		return []
	return [float(part) for part in raw_params.split(',')]

#============================================

def _build_in_curve(family: str, params: list):
	if family in POWER_SYNONYMS:
		power = POWER_SYNONYMS[family]
		if power == 0:
			return None
		return _power_in(power)
	if family == 'sine':
		return _sine_in
	if family == 'expo':
		return _expo_in
	if family == 'circ':
		return _circ_in
	if family == 'back':
		overshoot = params[0] if len(params) > 0 else 1.70158
		return _back_in(overshoot)
	if family == 'elastic':
		amplitude = params[0] if len(params) > 0 else 1.0
		period = params[1] if len(params) > 1 else 0.3
		return _elastic_in(amplitude, period)
	if family == 'bounce':
		return _bounce_in
	return None

#============================================

def canonical_name(name: str) -> str:
	if name is None:
		return EASING_ALIASES[DEFAULT_EASING]
	return EASING_ALIASES.get(name, name)

#============================================

@functools.lru_cache(maxsize=256)
def resolve_easing(name: str):
	"""
	Return the curve for an easing name, or identity when it is unknown.
	"""
	canonical = canonical_name(name)
	if not isinstance(canonical, str):
		return _identity
	match = _EASE_PATTERN.match(canonical)
	if match is None:
		return _identity
	family = match.group(1).lower()
	ease_type = (match.group(2) or 'out').lower()
	if family in ('none', 'linear'):
		return _identity
	try:
		params = _parse_params(match.group(3))
	except ValueError:
		return _identity
	in_curve = _build_in_curve(family, params)
	if in_curve is None:
		return _identity
	if ease_type == 'in':
		return _pin_endpoints(in_curve)
	if ease_type == 'inout':
		return _pin_endpoints(_as_in_out(in_curve))
	return _pin_endpoints(_as_out(in_curve))

#============================================

def ease_progress(progress: float, easing: str = DEFAULT_EASING) -> float:
	try:
		clamped = max(0.0, min(1.0, float(progress)))
	except (TypeError, ValueError):
		clamped = 0.0
	if easing is None:
		easing = DEFAULT_EASING
	if not isinstance(easing, str):
		return clamped
	curve = resolve_easing(easing)
	return curve(clamped)
