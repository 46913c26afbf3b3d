#!/usr/bin/env python3

import shlex
import subprocess
import sys
import time
from decimal import Decimal
from decimal import InvalidOperation

_QUIET_MODE = False

#============================================

def set_quiet_mode(quiet: bool) -> None:
	global _QUIET_MODE
	_QUIET_MODE = bool(quiet)

#============================================

def is_quiet_mode() -> bool:
	return _QUIET_MODE

#============================================

def show(message: str) -> None:
	if not is_quiet_mode():
		print(message)

#============================================

def warn(message: str) -> None:
	print(f"WARNING: {message}", file=sys.stderr)

#============================================

def format_cmd(args: list) -> str:
	return shlex.join([str(arg) for arg in args])

#============================================

def runCmd(args: list) -> subprocess.CompletedProcess:
	"""
	Echo and run an external command, waiting for it to finish.

	The return code is not checked here; callers decide what a failure
	means. OSError from a missing binary propagates.
	"""
	showcmd = format_cmd(args)
	show(f"CMD: '{showcmd}'")
	proc = subprocess.run([str(arg) for arg in args],
		stdout=subprocess.PIPE, stderr=subprocess.PIPE, stdin=subprocess.DEVNULL)
	return proc

#============================================

def parse_timecode(raw_time) -> Decimal:
	if raw_time is None:
		raise RuntimeError("time value is required")
	if isinstance(raw_time, bool):
		raise RuntimeError("time values must be int, float, or timecode string")
	if isinstance(raw_time, int):
		return Decimal(raw_time)
	if isinstance(raw_time, float):
		return Decimal(str(raw_time))
	if isinstance(raw_time, str):
		value = raw_time.strip()
		try:
			if ':' not in value:
				return Decimal(value)
			parts = value.split(':')
			if len(parts) > 3:
				raise RuntimeError(f"invalid timecode {raw_time}")
			seconds = Decimal(parts.pop())
			minutes = Decimal(parts.pop())
			hours = Decimal(0)
			if len(parts) > 0:
				hours = Decimal(parts.pop())
		except InvalidOperation as exc:
			raise RuntimeError(f"invalid timecode {raw_time}") from exc
		return hours * Decimal(3600) + minutes * Decimal(60) + seconds
	raise RuntimeError("time values must be int, float, or timecode string")

#============================================

def make_timestamp() -> str:
	datestamp = time.strftime("%y%b%d").lower()
	uppercase = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
	hourstamp = uppercase[(time.localtime()[3]) % 26]
	minstamp = f"{time.localtime()[4]:02d}"
	secstamp = uppercase[(time.localtime()[5]) % 26]
	timestamp = datestamp + hourstamp + minstamp + secstamp
	return timestamp
