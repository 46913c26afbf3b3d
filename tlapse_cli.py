#!/usr/bin/env python3

import argparse
import sys
import yaml
from tlapselib.core import utils
from tlapselib.core.config import ConfigLoader
from tlapselib.core.config import parse_length
from tlapselib.core.errors import ConfigError
from tlapselib.core.errors import TimelapseError
from tlapselib.core.timelapse import TimelapseJob

#============================================

def length_arg(value: str) -> str:
	"""
	argparse type check for -l; accepts seconds or a timecode.
	"""
	try:
		parse_length(value)
	except ConfigError as exc:
		raise argparse.ArgumentTypeError(str(exc)) from exc
	return value

#============================================

def parse_args(argv: list = None):
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Turn a video into a timelapse of a fixed length")
	parser.add_argument('-l', '--length', dest='length', type=length_arg,
		help='length of the final timelapse in seconds (or mm:ss)')
	parser.add_argument('-i', '--input', dest='input_file',
		help='path to the input video')
	parser.add_argument('-o', '--output', dest='output_file',
		help='path to write the output video, overwritten if present')
	parser.add_argument('-c', '--config', dest='config_file',
		help='yaml file with default settings')
	parser.add_argument('-C', '--cache-dir', dest='cache_dir',
		help='directory for the intermediate file')
	parser.add_argument('-k', '--keep-temp', dest='keep_temp',
		help='keep the intermediate file', action='store_true')
	parser.add_argument('-K', '--no-keep-temp', dest='keep_temp',
		help='remove the intermediate file', action='store_false')
	parser.add_argument('-L', '--lenient', dest='lenient', action='store_true',
		help='trim even when the speed-up step fails')
	parser.add_argument('-n', '--dry-run', dest='dry_run', action='store_true',
		help='print the ffmpeg plan as yaml, do not render')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='only print errors')
	parser.set_defaults(keep_temp=None, lenient=None)
	args = parser.parse_args(argv)
	return args

#============================================

def main(argv: list = None) -> int:
	args = parse_args(argv)
	utils.set_quiet_mode(args.quiet)
	try:
		loader = ConfigLoader(args.config_file, input_file=args.input_file,
			output_file=args.output_file, length=args.length,
			cache_dir=args.cache_dir, keep_temp=args.keep_temp,
			lenient=args.lenient, dry_run=args.dry_run, quiet=args.quiet)
		config = loader.load()
		job = TimelapseJob(config)
		plan = job.run()
	except TimelapseError as exc:
		print(f"ERROR: {exc}", file=sys.stderr)
		return 1
	if config.dry_run:
		print(yaml.safe_dump(plan, sort_keys=False))
	return 0


if __name__ == '__main__':
	sys.exit(main())
