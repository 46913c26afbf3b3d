#!/usr/bin/env python3

"""
Pipeline tests for TimelapseJob using a fake media tool.
"""

# Standard Library
import os
import sys
import tempfile
import unittest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# tests helpers
TESTS_DIR = os.path.abspath(os.path.dirname(__file__))
if TESTS_DIR not in sys.path:
	sys.path.insert(0, TESTS_DIR)
from fake_tool import FakeMediaTool

# local repo modules
from tlapselib.core import utils
from tlapselib.core.config import TimelapseConfig
from tlapselib.core.errors import InvalidDuration
from tlapselib.core.errors import MissingToolError
from tlapselib.core.errors import ProcessingError
from tlapselib.core.timelapse import TimelapseJob

#============================================

class TimelapseJobTest(unittest.TestCase):
	#============================================
	def setUp(self) -> None:
		utils.set_quiet_mode(True)
		self._temp_dir = tempfile.TemporaryDirectory()
		self.temp_dir = self._temp_dir.name
		self.input_file = os.path.join(self.temp_dir, "input.mov")
		self.output_file = os.path.join(self.temp_dir, "output.mp4")
		self.cache_dir = os.path.join(self.temp_dir, "cache")

	#============================================
	def tearDown(self) -> None:
		utils.set_quiet_mode(False)
		self._temp_dir.cleanup()

	#============================================
	def _config(self, **kwargs) -> TimelapseConfig:
		values = {
			'input_file': self.input_file,
			'output_file': self.output_file,
			'length': 10.0,
			'cache_dir': self.cache_dir,
		}
		values.update(kwargs)
		return TimelapseConfig(**values)

	#============================================
	def test_end_to_end_plan(self) -> None:
		"""Ensure a 30s input squeezed to 10s gives the expected commands."""
		tool = FakeMediaTool(duration=30.0)
		job = TimelapseJob(self._config(), tool=tool)
		plan = job.run()
		self.assertEqual(tool.calls,
			['check_available', 'probe_duration', 'speedup', 'trim'])
		self.assertAlmostEqual(plan['factor'], 1.0 / 3.0)
		self.assertEqual(plan['filter'], "setpts=0.3333333333333333*PTS")
		self.assertEqual(plan['trim_seconds'], 11.0)
		self.assertTrue(os.path.isfile(self.output_file))

	#============================================
	def test_speedup_and_trim_arguments(self) -> None:
		tool = FakeMediaTool(duration=30.0)
		job = TimelapseJob(self._config(), tool=tool)
		recorded = []
		real_run_filter = tool.run_filter

		def _record(args):
			recorded.append(list(args))
			return real_run_filter(args)
		tool.run_filter = _record
		job.run()
		speedup, trim = recorded
		self.assertIn('setpts=0.3333333333333333*PTS', speedup)
		self.assertEqual(speedup[speedup.index('-i') + 1], self.input_file)
		intermediate = speedup[-1]
		self.assertTrue(intermediate.endswith(".mp4"))
		self.assertEqual(os.path.dirname(intermediate), self.cache_dir)
		self.assertEqual(trim, ['-i', intermediate, '-ss', '0.0', '-t', '11.0',
			'-y', self.output_file])

	#============================================
	def test_intermediate_removed_on_success(self) -> None:
		tool = FakeMediaTool()
		job = TimelapseJob(self._config(), tool=tool)
		job.run()
		self.assertFalse(os.path.exists(job.intermediate_file))
		# the run created the cache dir, so the run removes it
		self.assertTrue(job.cache_dir_created)
		self.assertFalse(os.path.exists(self.cache_dir))

	#============================================
	def test_existing_cache_dir_kept_empty(self) -> None:
		"""Ensure a cache dir the user made is kept but left empty."""
		os.makedirs(self.cache_dir)
		tool = FakeMediaTool()
		job = TimelapseJob(self._config(), tool=tool)
		job.run()
		self.assertFalse(job.cache_dir_created)
		self.assertEqual(os.listdir(self.cache_dir), [])

	#============================================
	def test_intermediate_removed_on_interrupt(self) -> None:
		"""Ensure Ctrl-C during a step still removes the intermediate."""
		for step in ('speedup', 'trim'):
			os.makedirs(self.cache_dir, exist_ok=True)
			tool = FakeMediaTool(interrupt=step)
			job = TimelapseJob(self._config(), tool=tool)
			with self.assertRaises(KeyboardInterrupt):
				job.run()
			self.assertIsNotNone(job.intermediate_file)
			self.assertEqual(tool.calls[-1], step)
			# the intermediate was on disk when the interrupt arrived
			self.assertIn((job.intermediate_file, True), tool.seen_files)
			self.assertEqual(os.listdir(self.cache_dir), [])

	#============================================
	def test_created_cache_dir_removed_on_interrupt(self) -> None:
		tool = FakeMediaTool(interrupt='speedup')
		job = TimelapseJob(self._config(), tool=tool)
		with self.assertRaises(KeyboardInterrupt):
			job.run()
		self.assertFalse(os.path.exists(self.cache_dir))

	#============================================
	def test_intermediate_removed_when_trim_fails(self) -> None:
		"""Ensure the cleanup runs on the error path too."""
		tool = FakeMediaTool(trim_ok=False)
		job = TimelapseJob(self._config(), tool=tool)
		with self.assertRaises(ProcessingError):
			job.run()
		self.assertIsNotNone(job.intermediate_file)
		self.assertFalse(os.path.exists(job.intermediate_file))

	#============================================
	def test_default_cache_dir_removed(self) -> None:
		"""Ensure the per-run cache dir is gone after success and failure."""
		for trim_ok in (True, False):
			tool = FakeMediaTool(trim_ok=trim_ok)
			job = TimelapseJob(self._config(cache_dir=None), tool=tool)
			try:
				job.run()
			except ProcessingError:
				pass
			self.assertTrue(job.cache_dir_created)
			self.assertFalse(os.path.exists(job.cache_dir))

	#============================================
	def test_intermediate_exists_during_trim(self) -> None:
		tool = FakeMediaTool()
		job = TimelapseJob(self._config(), tool=tool)
		job.run()
		self.assertIn((job.intermediate_file, True), tool.seen_files)

	#============================================
	def test_keep_temp(self) -> None:
		tool = FakeMediaTool()
		job = TimelapseJob(self._config(keep_temp=True), tool=tool)
		job.run()
		self.assertTrue(os.path.isfile(job.intermediate_file))

	#============================================
	def test_missing_tool_stops_before_processing(self) -> None:
		"""Ensure nothing is probed or written when a binary is missing."""
		tool = FakeMediaTool(missing='ffprobe')
		job = TimelapseJob(self._config(), tool=tool)
		with self.assertRaises(MissingToolError):
			job.run()
		self.assertEqual(tool.calls, ['check_available'])
		self.assertFalse(os.path.exists(self.cache_dir))
		self.assertFalse(os.path.exists(self.output_file))

	#============================================
	def test_zero_duration_stops_before_processing(self) -> None:
		tool = FakeMediaTool(duration=0.0)
		job = TimelapseJob(self._config(), tool=tool)
		with self.assertRaises(InvalidDuration):
			job.run()
		self.assertNotIn('speedup', tool.calls)
		self.assertFalse(os.path.exists(self.cache_dir))

	#============================================
	def test_speedup_failure_aborts_by_default(self) -> None:
		"""Ensure a failed speed-up never reaches the trim step."""
		tool = FakeMediaTool(speedup_ok=False)
		job = TimelapseJob(self._config(), tool=tool)
		with self.assertRaises(ProcessingError) as context:
			job.run()
		self.assertIn("Conversion failed", str(context.exception))
		self.assertNotIn('trim', tool.calls)
		self.assertFalse(os.path.exists(self.output_file))

	#============================================
	def test_speedup_without_output_aborts(self) -> None:
		tool = FakeMediaTool(write_outputs=False)
		job = TimelapseJob(self._config(), tool=tool)
		with self.assertRaises(ProcessingError):
			job.run()
		self.assertNotIn('trim', tool.calls)

	#============================================
	def test_lenient_trims_after_failed_speedup(self) -> None:
		tool = FakeMediaTool(speedup_ok=False)
		job = TimelapseJob(self._config(lenient=True), tool=tool)
		job.run()
		self.assertEqual(tool.calls[-1], 'trim')
		self.assertTrue(os.path.isfile(self.output_file))

	#============================================
	def test_dry_run_does_not_render(self) -> None:
		tool = FakeMediaTool(duration=120.0)
		job = TimelapseJob(self._config(dry_run=True), tool=tool)
		plan = job.run()
		self.assertEqual(tool.calls, ['check_available', 'probe_duration'])
		self.assertEqual(plan['filter'], "setpts=0.08333333333333333*PTS")
		self.assertEqual(plan['commands']['trim'][0], 'ffmpeg')
		self.assertFalse(os.path.exists(self.cache_dir))

#============================================

def main() -> None:
	"""Run the unit tests."""
	unittest.main()

#============================================

if __name__ == "__main__":
	main()
