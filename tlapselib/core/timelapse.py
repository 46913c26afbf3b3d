#!/usr/bin/env python3

import os
import shutil
import tempfile
import time
from tlapselib.core import speed
from tlapselib.core import utils
from tlapselib.core.config import TimelapseConfig
from tlapselib.core.errors import ProcessingError
from tlapselib.media import ffmpeg

# ffmpeg picks the container from the extension
INTERMEDIATE_EXT = ".mp4"

#============================================

class TimelapseJob():
	def __init__(self, config: TimelapseConfig, tool=None):
		self.config = config
		if tool is None:
			tool = ffmpeg.MediaTool(config.ffmpeg_bin, config.ffprobe_bin)
		self.tool = tool
		self.duration = None
		self.factor = None
		self.cache_dir = None
		self.cache_dir_created = False
		self.intermediate_file = None

	#============================
	def run(self) -> dict:
		"""
		Preflight, probe, speed up and trim. Returns the plan that was run.
		"""
		t0 = time.time()
		plan = self.plan()
		if self.config.dry_run:
			return plan
		self._open_cache_dir()
		try:
			self.intermediate_file = self._make_temp_path("speedup" + INTERMEDIATE_EXT)
			self._speed_up(plan['filter'], self.intermediate_file)
			self._trim(self.intermediate_file, plan['trim_seconds'])
		finally:
			self._cleanup()
		utils.show(f"Complete in {int(time.time() - t0)} seconds")
		utils.show(f"mpv {self.config.output_file}")
		return plan

	#============================
	def plan(self) -> dict:
		self.tool.check_available()
		self.duration = self.tool.probe_duration(self.config.input_file)
		self.factor = speed.compute_pts_factor(self.duration, self.config.length)
		setpts_filter = speed.build_setpts_filter(self.factor)
		trim_seconds = speed.trim_duration(self.config.length)
		intermediate = os.path.join("<cache_dir>", "speedup" + INTERMEDIATE_EXT)
		plan = {
			'input': self.config.input_file,
			'output': self.config.output_file,
			'duration': self.duration,
			'length': self.config.length,
			'factor': self.factor,
			'filter': setpts_filter,
			'trim_seconds': trim_seconds,
			'commands': {
				'speedup': [self.config.ffmpeg_bin] + ffmpeg.speedup_args(
					self.config.input_file, setpts_filter, intermediate),
				'trim': [self.config.ffmpeg_bin] + ffmpeg.trim_args(
					intermediate, trim_seconds, self.config.output_file),
			},
		}
		return plan

	#============================
	def _speed_up(self, setpts_filter: str, out_file: str) -> None:
		utils.show("Creating the timelapse")
		args = ffmpeg.speedup_args(self.config.input_file, setpts_filter, out_file)
		success = self.tool.run_filter(args)
		if success and os.path.isfile(out_file):
			return
		message = f"speed-up of {self.config.input_file} failed"
		detail = self._last_stderr()
		if detail:
			message += f": {detail}"
		if self.config.lenient:
			utils.warn(message + ", trimming anyway")
			return
		raise ProcessingError(message)

	#============================
	def _trim(self, in_file: str, seconds: float) -> None:
		utils.show("Trimming the timelapse")
		args = ffmpeg.trim_args(in_file, seconds, self.config.output_file)
		success = self.tool.run_filter(args)
		if success and os.path.isfile(self.config.output_file):
			return
		message = f"trim to {self.config.output_file} failed"
		detail = self._last_stderr()
		if detail:
			message += f": {detail}"
		raise ProcessingError(message)

	#============================
	def _last_stderr(self) -> str:
		stderr = getattr(self.tool, 'last_stderr', '') or ''
		lines = stderr.strip().splitlines()
		if len(lines) == 0:
			return ''
		return lines[-1]

	#============================
	def _open_cache_dir(self) -> None:
		cache_dir = self.config.cache_dir
		if cache_dir is None:
			try:
				cache_dir = tempfile.mkdtemp(prefix="tlapse-run-")
			except OSError as exc:
				raise ProcessingError(f"could not create cache dir: {exc}") from exc
			self.cache_dir_created = True
		elif not os.path.exists(cache_dir):
			try:
				os.makedirs(cache_dir)
			except OSError as exc:
				raise ProcessingError(f"could not create cache dir: {exc}") from exc
			self.cache_dir_created = True
		self.cache_dir = cache_dir

	#============================
	def _make_temp_path(self, filename: str) -> str:
		tag = f"{utils.make_timestamp()}-{os.getpid()}"
		return os.path.join(self.cache_dir, f"{tag}-{filename}")

	#============================
	def _cleanup(self) -> None:
		if self.config.keep_temp:
			if self.intermediate_file and os.path.exists(self.intermediate_file):
				utils.show(f"keeping {self.intermediate_file}")
			return
		if self.intermediate_file and os.path.exists(self.intermediate_file):
			os.remove(self.intermediate_file)
		if self.cache_dir_created:
			shutil.rmtree(self.cache_dir, ignore_errors=True)
