#!/usr/bin/env python3

import math
from tlapselib.core.errors import InvalidDuration

# extra seconds kept past the requested length when trimming
TRIM_MARGIN = 1.0

#============================================

def _check_seconds(value: float, name: str) -> float:
	try:
		seconds = float(value)
	except (TypeError, ValueError) as exc:
		raise InvalidDuration(f"{name} must be a number, got {value!r}") from exc
	if not math.isfinite(seconds):
		raise InvalidDuration(f"{name} must be finite, got {seconds}")
	if seconds <= 0:
		raise InvalidDuration(f"{name} must be positive, got {seconds}")
	return seconds

#============================================

def compute_pts_factor(duration: float, length: float) -> float:
	"""
	Return the PTS multiplier that plays `duration` seconds in `length` seconds.

	Values below 1.0 speed playback up.
	"""
	duration = _check_seconds(duration, "input duration")
	length = _check_seconds(length, "timelapse length")
	factor = duration / length
	factor = 1.0 / factor
	return factor

#============================================

def build_setpts_filter(factor: float) -> str:
	return f"setpts={factor}*PTS"

#============================================

def trim_duration(length: float) -> float:
	return float(length) + TRIM_MARGIN
