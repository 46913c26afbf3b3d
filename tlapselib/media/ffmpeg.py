#!/usr/bin/env python3

import subprocess
from tlapselib.core import utils
from tlapselib.core.errors import MissingToolError
from tlapselib.core.errors import ProbeError

#============================================

def parse_duration_output(stdout: str) -> float:
	"""
	Parse the first line of `ffprobe ... -print_format csv=p=0` output.
	"""
	lines = stdout.splitlines()
	if len(lines) == 0 or lines[0].strip() == '':
		raise ProbeError("ffprobe returned no duration")
	first_line = lines[0].strip()
	try:
		return float(first_line)
	except ValueError as exc:
		raise ProbeError(f"ffprobe returned a non-numeric duration: {first_line!r}") from exc

#============================================

def speedup_args(input_file: str, setpts_filter: str, out_file: str) -> list:
	args = ['-y']
	args += ['-i', input_file]
	args += ['-filter:v', setpts_filter]
	args += [out_file]
	return args

#============================================

def trim_args(input_file: str, seconds: float, out_file: str) -> list:
	args = ['-i', input_file]
	args += ['-ss', '0.0']
	args += ['-t', str(seconds)]
	# overwrite output files
	args += ['-y', out_file]
	return args

#============================================

class MediaTool():
	"""
	Thin wrapper around the ffmpeg and ffprobe binaries.

	The timelapse pipeline only calls check_available, probe_duration
	and run_filter, so tests can hand it any object with those methods.
	"""
	def __init__(self, ffmpeg_bin: str = 'ffmpeg', ffprobe_bin: str = 'ffprobe'):
		self.ffmpeg_bin = ffmpeg_bin
		self.ffprobe_bin = ffprobe_bin
		self.last_stderr = ''

	#============================
	def check_available(self) -> None:
		for tool in (self.ffmpeg_bin, self.ffprobe_bin):
			try:
				subprocess.run([tool, '-h'], stdout=subprocess.DEVNULL,
					stderr=subprocess.DEVNULL, stdin=subprocess.DEVNULL)
			except OSError as exc:
				raise MissingToolError(tool) from exc

	#============================
	def probe_duration(self, media_file: str) -> float:
		args = [self.ffprobe_bin]
		args += ['-i', media_file]
		args += ['-show_entries', 'format=duration']
		args += ['-v', 'quiet']
		args += ['-print_format', 'csv=p=0']
		try:
			proc = utils.runCmd(args)
		except OSError as exc:
			raise ProbeError(f"could not run {self.ffprobe_bin}: {exc}") from exc
		if proc.returncode != 0:
			raise ProbeError(f"{self.ffprobe_bin} failed on {media_file} "
				f"with exit status {proc.returncode}")
		stdout = proc.stdout.decode('utf-8', errors='replace')
		return parse_duration_output(stdout)

	#============================
	def run_filter(self, args: list) -> bool:
		"""
		Run ffmpeg with `args` (without the binary name).

		Returns True on a zero exit status. The error stream of the
		last call is kept in last_stderr for diagnostics.
		"""
		try:
			proc = utils.runCmd([self.ffmpeg_bin] + list(args))
		except OSError as exc:
			self.last_stderr = str(exc)
			return False
		self.last_stderr = proc.stderr.decode('utf-8', errors='replace')
		return proc.returncode == 0
