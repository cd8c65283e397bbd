import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from nav_types import ConfigurationError, NavigationEntry, join_link
from site_settings import LocaleSettings


DOC_EXTENSION = ".md"
VERSION_PATTERN = re.compile(r"^v(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True)
class ReleaseVersion:
	major: int
	minor: int
	patch: int
	display_name: str
	document_path: str

	@property
	def key(self) -> Tuple[int, int, int]:
		return (self.major, self.minor, self.patch)


def _segment_to_int(segment: str) -> Tuple[int, bool]:
	try:
		return int(segment), True
	except ValueError:
		return 0, False


def parse_version(stem: str, link_prefix: str = "/release-notes") -> ReleaseVersion:
	"""Parse a 'v<major>.<minor>.<patch>' stem.

	Malformed stems are not rejected: missing or non-numeric segments count
	as 0 and a warning is printed, so the document still shows up in the menu.
	"""
	raw = stem[1:] if stem[:1] in ("v", "V") else stem
	parts = raw.split(".")
	numbers = []
	clean = VERSION_PATTERN.match(stem) is not None
	for segment in (parts + ["", "", ""])[:3]:
		value, ok = _segment_to_int(segment)
		numbers.append(value)
		clean = clean and ok
	if not clean:
		print(f"[WARN] Release note '{stem}' is not of the form v<major>.<minor>.<patch>; ordering it as v{numbers[0]}.{numbers[1]}.{numbers[2]}")
	return ReleaseVersion(
		major=numbers[0],
		minor=numbers[1],
		patch=numbers[2],
		display_name=stem,
		document_path=join_link(link_prefix, stem),
	)


def is_release_note(filename: str) -> bool:
	return filename.endswith(DOC_EXTENSION) and len(filename) > len(DOC_EXTENSION)


def discover(directory: Path) -> List[str]:
	"""Return the stems of all release-note documents in directory.

	The listing is sorted by filename first so that equal versions keep a
	deterministic relative order.
	"""
	directory = Path(directory)
	if not directory.is_dir():
		raise ConfigurationError(f"Release notes directory not found: {directory}")
	try:
		names = sorted(os.listdir(directory))
	except OSError as e:
		raise ConfigurationError(f"Release notes directory unreadable: {directory}: {e}") from e

	stems: List[str] = []
	for name in names:
		if not is_release_note(name):
			continue
		if not (directory / name).is_file():
			continue
		stems.append(name[: -len(DOC_EXTENSION)])
	return stems


def order(stems: List[str], link_prefix: str = "/release-notes") -> List[ReleaseVersion]:
	versions = [parse_version(stem, link_prefix) for stem in stems]
	# Stable: ties keep discovery order
	versions.sort(key=lambda v: v.key, reverse=True)
	return versions


def project(versions: List[ReleaseVersion]) -> List[NavigationEntry]:
	return [NavigationEntry(text=v.display_name, link=v.document_path) for v in versions]


def get_release_notes(locale: LocaleSettings) -> List[NavigationEntry]:
	stems = discover(locale.release_notes_dir)
	return project(order(stems, locale.release_notes_link))


def latest_release_link(entries: List[NavigationEntry], index_route: str) -> str:
	if entries:
		return entries[0].link
	return index_route
