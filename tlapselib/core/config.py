#!/usr/bin/env python3

import math
import os
import yaml
from tlapselib.core import utils
from tlapselib.core.errors import ConfigError

CONFIG_VERSION = 1
CONFIG_KEYS = ('tlapse', 'input', 'output', 'length', 'cache_dir',
	'keep_temp', 'lenient', 'tools')
TOOL_KEYS = ('ffmpeg', 'ffprobe')
PATH_KEYS = ('input', 'output', 'cache_dir')

#============================================

class TimelapseConfig():
	"""
	Settings for one timelapse run. Attributes are fixed once loaded.
	"""
	_FIELDS = ('input_file', 'output_file', 'length', 'cache_dir', 'keep_temp',
		'lenient', 'dry_run', 'quiet', 'ffmpeg_bin', 'ffprobe_bin', 'config_file')

	def __init__(self, input_file: str, output_file: str, length: float,
		cache_dir: str = None, keep_temp: bool = False, lenient: bool = False,
		dry_run: bool = False, quiet: bool = False, ffmpeg_bin: str = 'ffmpeg',
		ffprobe_bin: str = 'ffprobe', config_file: str = None):
		values = {
			'input_file': input_file,
			'output_file': output_file,
			'length': float(length),
			'cache_dir': cache_dir,
			'keep_temp': keep_temp,
			'lenient': lenient,
			'dry_run': dry_run,
			'quiet': quiet,
			'ffmpeg_bin': ffmpeg_bin,
			'ffprobe_bin': ffprobe_bin,
			'config_file': config_file,
		}
		for key, value in values.items():
			object.__setattr__(self, key, value)

	#============================
	def __setattr__(self, key, value):
		raise AttributeError(f"TimelapseConfig is read-only, cannot set {key}")

	#============================
	def as_dict(self) -> dict:
		return {key: getattr(self, key) for key in self._FIELDS}

	#============================
	def __repr__(self) -> str:
		return f"TimelapseConfig({self.as_dict()!r})"

#============================================

def parse_length(raw_length) -> float:
	"""
	Convert seconds or an mm:ss / hh:mm:ss timecode into positive seconds.
	"""
	try:
		seconds = float(utils.parse_timecode(raw_length))
	except (RuntimeError, ValueError, ArithmeticError) as exc:
		raise ConfigError(f"invalid length {raw_length!r}: {exc}") from exc
	if not math.isfinite(seconds) or seconds <= 0:
		raise ConfigError(f"length must be positive, got {raw_length}")
	return seconds

#============================================

class ConfigLoader():
	def __init__(self, config_file: str = None, input_file: str = None,
		output_file: str = None, length=None, cache_dir: str = None,
		keep_temp: bool = None, lenient: bool = None, dry_run: bool = False,
		quiet: bool = False):
		self.config_file = config_file
		self.input_file = input_file
		self.output_file = output_file
		self.length = length
		self.cache_dir = cache_dir
		self.keep_temp = keep_temp
		self.lenient = lenient
		self.dry_run = dry_run
		self.quiet = quiet

	#============================
	def load(self) -> TimelapseConfig:
		data = {}
		if self.config_file is not None:
			data = self._load_yaml()
			self._validate_keys(data)
		tools = data.get('tools') or {}
		input_file = self._pick(self.input_file, data.get('input'), 'input')
		output_file = self._pick(self.output_file, data.get('output'), 'output')
		raw_length = self._pick(self.length, data.get('length'), 'length')
		config = TimelapseConfig(
			input_file=str(input_file),
			output_file=str(output_file),
			length=parse_length(raw_length),
			cache_dir=self._optional(self.cache_dir, data.get('cache_dir')),
			keep_temp=self._flag(self.keep_temp, data.get('keep_temp'), 'keep_temp'),
			lenient=self._flag(self.lenient, data.get('lenient'), 'lenient'),
			dry_run=bool(self.dry_run),
			quiet=bool(self.quiet),
			ffmpeg_bin=str(tools.get('ffmpeg', 'ffmpeg')),
			ffprobe_bin=str(tools.get('ffprobe', 'ffprobe')),
			config_file=self.config_file,
		)
		return config

	#============================
	def _load_yaml(self) -> dict:
		if not os.path.isfile(self.config_file):
			raise ConfigError(f"config file not found: {self.config_file}")
		file_size = os.path.getsize(self.config_file)
		if file_size > 10 ** 7:
			raise ConfigError("yaml file is larger than 10MB")
		with open(self.config_file, 'r') as data_file:
			try:
				data = yaml.safe_load(data_file)
			except yaml.YAMLError as exc:
				raise ConfigError(f"could not parse {self.config_file}: {exc}") from exc
		if data is None:
			return {}
		if not isinstance(data, dict):
			raise ConfigError("config file must contain a mapping")
		return data

	#============================
	def _validate_keys(self, data: dict) -> None:
		for key in data:
			if key not in CONFIG_KEYS:
				raise ConfigError(f"unknown config key: {key}")
		version = data.get('tlapse', CONFIG_VERSION)
		if version != CONFIG_VERSION:
			raise ConfigError(f"unsupported config version {version}")
		for key in PATH_KEYS:
			self._check_string(data.get(key), key)
		length = data.get('length')
		if length is not None:
			if isinstance(length, bool) or not isinstance(length, (str, int, float)):
				raise ConfigError("length must be seconds or a timecode string")
		tools = data.get('tools')
		if tools is None:
			return
		if not isinstance(tools, dict):
			raise ConfigError("tools must be a mapping")
		for key, value in tools.items():
			if key not in TOOL_KEYS:
				raise ConfigError(f"unknown tool: {key}")
			if value is None:
				raise ConfigError(f"tools.{key} must name a binary")
			self._check_string(value, f"tools.{key}")

	#============================
	def _check_string(self, value, name: str) -> None:
		if value is None:
			return
		if not isinstance(value, str) or value.strip() == '':
			raise ConfigError(f"{name} must be a non-empty string")

	#============================
	def _pick(self, cli_value, config_value, name: str):
		if cli_value is not None:
			return cli_value
		if config_value is not None:
			return config_value
		raise ConfigError(f"{name} is required")

	#============================
	def _optional(self, cli_value, config_value):
		if cli_value is not None:
			return cli_value
		return config_value

	#============================
	def _flag(self, cli_value, config_value, name: str) -> bool:
		if cli_value is not None:
			return bool(cli_value)
		if config_value is None:
			return False
		if not isinstance(config_value, bool):
			raise ConfigError(f"{name} must be true or false")
		return config_value
