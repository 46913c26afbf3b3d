#!/usr/bin/env python3

#============================================

class TimelapseError(RuntimeError):
	"""Base class for failures that stop a timelapse run."""

#============================================

class ConfigError(TimelapseError):
	pass

#============================================

class MissingToolError(TimelapseError):
	def __init__(self, tool: str):
		self.tool = tool
		super().__init__(f"'{tool}' binary not found. Please install.")

#============================================

class ProbeError(TimelapseError):
	pass

#============================================

class InvalidDuration(TimelapseError):
	pass

#============================================

class ProcessingError(TimelapseError):
	pass
