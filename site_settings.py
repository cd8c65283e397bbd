from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from nav_types import ConfigurationError, NavigationGroup, items_from_yaml, join_link


ROOT_LOCALE = "root"
DEFAULT_STORAGE_KEY = "lang-redirected"
DEFAULT_ROOT_PATHS = ["/", "/index.html"]


@dataclass(frozen=True)
class LocaleSettings:
	"""One supported locale: where its release notes live and how it is labelled.

	For every non-root locale the key doubles as the language code matched
	against the visitor's preferred language.
	"""

	key: str
	label: str
	lang: str
	path_prefix: str
	release_notes_dir: Path
	release_notes_link: str
	labels: Dict[str, str]
	guide: List[NavigationGroup]

	@property
	def is_root(self) -> bool:
		return self.key == ROOT_LOCALE

	@property
	def root_path(self) -> str:
		return join_link(self.path_prefix, "")

	@property
	def release_notes_index(self) -> str:
		return join_link(self.release_notes_link, "")


@dataclass(frozen=True)
class SiteSettings:
	title: str
	description: str
	locales: Dict[str, LocaleSettings]
	last_updated: bool = True
	ignore_dead_links: bool = False
	search_provider: Optional[str] = None
	social_links: List[Dict[str, Any]] = field(default_factory=list)
	storage_key: str = DEFAULT_STORAGE_KEY
	root_paths: List[str] = field(default_factory=lambda: list(DEFAULT_ROOT_PATHS))

	def locale(self, key: str) -> LocaleSettings:
		try:
			return self.locales[key]
		except KeyError:
			known = ", ".join(self.locales)
			raise ConfigurationError(f"Unknown locale '{key}' (configured: {known})") from None

	@property
	def root_locale(self) -> LocaleSettings:
		return self.locale(ROOT_LOCALE)

	def secondary_locales(self) -> List[LocaleSettings]:
		return [loc for loc in self.locales.values() if not loc.is_root]


def _require_str(data: Dict[str, Any], key: str, where: str) -> str:
	value = data.get(key)
	if not isinstance(value, str) or not value:
		raise ConfigurationError(f"{where}: missing '{key}'")
	return value


def _optional_mapping(data: Dict[str, Any], key: str) -> Dict[str, Any]:
	value = data.get(key) or {}
	if not isinstance(value, dict):
		raise ConfigurationError(f"{key}: expected a mapping")
	return value


def parse_locale(key: str, data: Any, base_dir: Path) -> LocaleSettings:
	where = f"locales.{key}"
	if not isinstance(data, dict):
		raise ConfigurationError(f"{where}: expected a mapping")

	notes_dir = Path(_require_str(data, "releaseNotesDir", where))
	if not notes_dir.is_absolute():
		notes_dir = base_dir / notes_dir

	prefix = data.get("pathPrefix") or ""
	if not isinstance(prefix, str):
		raise ConfigurationError(f"{where}.pathPrefix: expected a string")
	if key == ROOT_LOCALE and prefix.strip("/"):
		raise ConfigurationError(f"{where}: the root locale cannot have a path prefix")
	if key != ROOT_LOCALE and not prefix.strip("/"):
		prefix = key
	# "zh", "/zh/" and "/zh" all become "/zh"
	prefix = join_link(prefix, "").rstrip("/")

	labels = data.get("labels") or {}
	if not isinstance(labels, dict):
		raise ConfigurationError(f"{where}.labels: expected a mapping")

	guide = items_from_yaml(data.get("guide") or [], f"{where}.guide")
	for item in guide:
		if not isinstance(item, NavigationGroup):
			raise ConfigurationError(f"{where}.guide: top-level items must be groups")

	return LocaleSettings(
		key=key,
		label=_require_str(data, "label", where),
		lang=_require_str(data, "lang", where),
		path_prefix=prefix,
		release_notes_dir=notes_dir,
		release_notes_link=_require_str(data, "releaseNotesLink", where),
		labels={str(k): str(v) for k, v in labels.items()},
		guide=guide,
	)


def parse_settings(doc: Any, base_dir: Path) -> SiteSettings:
	if not isinstance(doc, dict):
		raise ConfigurationError("Site definition must be a mapping")

	raw_locales = doc.get("locales")
	if not isinstance(raw_locales, dict) or not raw_locales:
		raise ConfigurationError("Site definition has no 'locales'")
	locales = {str(k): parse_locale(str(k), v, base_dir) for k, v in raw_locales.items()}
	if ROOT_LOCALE not in locales:
		raise ConfigurationError(f"Site definition needs a '{ROOT_LOCALE}' locale")

	redirect = _optional_mapping(doc, "redirect")
	search = _optional_mapping(doc, "search")

	return SiteSettings(
		title=_require_str(doc, "title", "site"),
		description=doc.get("description", ""),
		locales=locales,
		last_updated=bool(doc.get("lastUpdated", True)),
		ignore_dead_links=bool(doc.get("ignoreDeadLinks", False)),
		search_provider=search.get("provider"),
		# Passed through untouched
		social_links=list(doc.get("socialLinks") or []),
		storage_key=redirect.get("storageKey", DEFAULT_STORAGE_KEY),
		root_paths=list(redirect.get("rootPaths") or DEFAULT_ROOT_PATHS),
	)


def load_settings(path: Path) -> SiteSettings:
	try:
		with open(path, "r", encoding="utf-8") as f:
			doc = yaml.safe_load(f)
	except OSError as e:
		raise ConfigurationError(f"Cannot read site definition {path}: {e}") from e
	except yaml.YAMLError as e:
		raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
	return parse_settings(doc, Path(path).resolve().parent)
