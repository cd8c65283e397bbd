import argparse
import json
from pathlib import Path
from typing import Any, Dict, List

from locale_redirect import LocaleRedirector, RedirectState, SessionFlag, StaticLanguageProbe
from nav_types import ConfigurationError, NavigationEntry, NavigationGroup, join_link, sidebar_to_dict
from release_notes_index import get_release_notes, latest_release_link
from site_settings import LocaleSettings, SiteSettings, load_settings


DEFAULT_SCRIPT_NAME = "locale-redirect.js"


def build_locale_theme(
	locale: LocaleSettings,
	release_notes: List[NavigationEntry],
) -> Dict[str, Any]:
	"""Top navigation and sidebar map for one locale."""
	guide_label = locale.labels.get("guide", "Guide")
	notes_label = locale.labels.get("releaseNotes", "Release Notes")

	guide_route = join_link(locale.path_prefix, "guide") + "/"
	guide_link = None
	for group in locale.guide:
		guide_link = group.first_link()
		if guide_link:
			break
	if guide_link is None:
		guide_link = guide_route

	nav = [
		NavigationEntry(guide_label, guide_link),
		NavigationEntry(notes_label, latest_release_link(release_notes, locale.release_notes_index)),
	]
	sidebar = {
		guide_route: list(locale.guide),
		locale.release_notes_index: [NavigationGroup(notes_label, list(release_notes))],
	}

	theme: Dict[str, Any] = {
		"nav": [entry.to_dict() for entry in nav],
		"sidebar": sidebar_to_dict(sidebar),
	}
	if "lastUpdated" in locale.labels:
		theme["lastUpdated"] = {"text": locale.labels["lastUpdated"]}
	return theme


def locale_redirects(settings: SiteSettings) -> Dict[str, str]:
	return {loc.key: loc.root_path for loc in settings.secondary_locales()}


def make_redirector(settings: SiteSettings, language=None, storage=None, navigate=None) -> LocaleRedirector:
	return LocaleRedirector(
		flag=SessionFlag({} if storage is None else storage, settings.storage_key),
		probe=StaticLanguageProbe(language),
		navigate=navigate or (lambda path: None),
		redirects=locale_redirects(settings),
		root_paths=settings.root_paths,
	)


def check_redirects(settings: SiteSettings) -> None:
	"""Replay a fresh root visit for every locale's own language tag.

	A secondary locale must land on its own root; the root locale must stay put.
	"""
	landing = settings.root_paths[0]
	for locale in settings.locales.values():
		visited: List[str] = []
		state = make_redirector(settings, locale.lang, navigate=visited.append).run(landing)
		if locale.is_root:
			if state is not RedirectState.SKIPPED:
				raise ConfigurationError(f"Root locale language '{locale.lang}' would be redirected to {visited}")
		elif visited != [locale.root_path]:
			raise ConfigurationError(
				f"Locale '{locale.key}' (lang '{locale.lang}') would be redirected to {visited or 'nowhere'}, expected {locale.root_path}"
			)


def build_site_config(settings: SiteSettings, script_name: str = DEFAULT_SCRIPT_NAME) -> Dict[str, Any]:
	locales: Dict[str, Any] = {}
	root_theme: Dict[str, Any] = {}

	for locale in settings.locales.values():
		release_notes = get_release_notes(locale)
		print(f"  ✓ {locale.key}: {len(release_notes)} release note(s) in {locale.release_notes_dir}")
		theme = build_locale_theme(locale, release_notes)
		entry: Dict[str, Any] = {"label": locale.label, "lang": locale.lang}
		if locale.is_root:
			root_theme = theme
		else:
			entry["themeConfig"] = theme
		locales[locale.key] = entry

	root_theme["socialLinks"] = settings.social_links
	if settings.search_provider:
		root_theme["search"] = {"provider": settings.search_provider}

	return {
		"title": settings.title,
		"description": settings.description,
		"lastUpdated": settings.last_updated,
		"ignoreDeadLinks": settings.ignore_dead_links,
		"locales": locales,
		"themeConfig": root_theme,
		"startupHooks": [script_name],
	}


def run(config_path: Path, output: Path, script_output: Path, write: bool) -> Dict[str, Any]:
	settings = load_settings(config_path)
	config = build_site_config(settings, script_output.name)
	check_redirects(settings)
	script = make_redirector(settings).render_script()

	if not write:
		print(f"Dry run: would write {output} and {script_output}")
		return config

	output.parent.mkdir(parents=True, exist_ok=True)
	with open(output, "w", encoding="utf-8") as f:
		json.dump(config, f, indent=2, ensure_ascii=False)
	script_output.parent.mkdir(parents=True, exist_ok=True)
	script_output.write_text(script, encoding="utf-8")
	print(f"  ✓ Generated {output} with {len(config['locales'])} locale(s)")
	print(f"  ✓ Generated {script_output}")
	return config


def main() -> None:
	parser = argparse.ArgumentParser(description="Build the documentation site configuration")
	parser.add_argument("--config", default="site.yaml", help="Site definition (default: site.yaml)")
	parser.add_argument("--output", default="docs.json", help="Generated configuration (default: docs.json)")
	parser.add_argument(
		"--script-output",
		default=DEFAULT_SCRIPT_NAME,
		help="Generated locale redirect script",
	)
	parser.add_argument("--write", action="store_true", help="Write files (default is dry-run)")
	args = parser.parse_args()

	config_path = Path(args.config).expanduser().resolve()
	if not config_path.exists():
		raise SystemExit(f"Site definition not found: {config_path}")

	try:
		run(
			config_path=config_path,
			output=Path(args.output).expanduser().resolve(),
			script_output=Path(args.script_output).expanduser().resolve(),
			write=args.write,
		)
	except ConfigurationError as e:
		raise SystemExit(f"[ERROR] {e}") from e


if __name__ == "__main__":
	main()
