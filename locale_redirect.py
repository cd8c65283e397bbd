import json
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, Iterable, MutableMapping, Optional


class RedirectState(Enum):
	IDLE = "idle"
	NOT_APPLICABLE = "not_applicable"
	CHECKED = "checked"
	REDIRECTED = "redirected"
	SKIPPED = "skipped"


class SessionFlag:
	"""The 'already redirected this session' flag.

	Backed by any session-scoped string mapping. Written at most once and
	never cleared here.
	"""

	def __init__(self, storage: MutableMapping[str, str], key: str = "lang-redirected"):
		self.storage = storage
		self.key = key

	def is_set(self) -> bool:
		return bool(self.storage.get(self.key))

	def set(self) -> None:
		self.storage[self.key] = "true"


class LanguageProbe(ABC):
	@abstractmethod
	def get_preferred_language(self) -> Optional[str]:
		"""One best-effort language tag, or None when the host reports none."""


class StaticLanguageProbe(LanguageProbe):
	def __init__(self, language: Optional[str]):
		self.language = language

	def get_preferred_language(self) -> Optional[str]:
		return self.language


def normalize_language(language: Optional[str]) -> str:
	# Mirrors String(lang).trim().toLowerCase() in the startup script
	if not language:
		return ""
	return language.strip().lower()


class LocaleRedirector:
	"""Send a first-time visitor of the root landing page to their locale.

	redirects maps a non-default locale code (e.g. 'zh') to that locale's
	root path (e.g. '/zh/'). Codes are tried in insertion order.
	"""

	def __init__(
		self,
		flag: SessionFlag,
		probe: LanguageProbe,
		navigate: Callable[[str], None],
		redirects: Dict[str, str],
		root_paths: Iterable[str] = ("/", "/index.html"),
	):
		self.flag = flag
		self.probe = probe
		self.navigate = navigate
		self.redirects = {code.lower(): path for code, path in redirects.items()}
		self.root_paths = list(root_paths)
		self.state = RedirectState.IDLE

	def is_root(self, path: str) -> bool:
		return path in self.root_paths

	def match_locale(self, language: Optional[str]) -> Optional[str]:
		lowered = normalize_language(language)
		if not lowered:
			return None
		for code in self.redirects:
			if lowered.startswith(code):
				return code
		return None

	def run(self, path: str) -> RedirectState:
		self.state = RedirectState.IDLE
		if not self.is_root(path):
			self.state = RedirectState.NOT_APPLICABLE
			return self.state

		self.state = RedirectState.CHECKED
		if self.flag.is_set():
			self.state = RedirectState.SKIPPED
			return self.state

		code = self.match_locale(self.probe.get_preferred_language())
		if code is None:
			self.state = RedirectState.SKIPPED
			return self.state

		self.flag.set()
		self.navigate(self.redirects[code])
		self.state = RedirectState.REDIRECTED
		return self.state

	def render_script(self) -> str:
		"""The browser-side rendition of run(), driven by this redirector's tables."""
		return STARTUP_SCRIPT_TEMPLATE.format(
			root_paths=json.dumps(self.root_paths),
			redirects=json.dumps(self.redirects, ensure_ascii=False),
			storage_key=json.dumps(self.flag.key),
		)


# The generated config is static and has no handle on the framework's router,
# so navigation is a full location.assign() rather than an in-app route change.
STARTUP_SCRIPT_TEMPLATE = """(function () {{
  var ROOT_PATHS = {root_paths};
  var REDIRECTS = {redirects};
  var STORAGE_KEY = {storage_key};

  function run() {{
    if (ROOT_PATHS.indexOf(window.location.pathname) === -1) return;
    if (window.sessionStorage.getItem(STORAGE_KEY)) return;
    var lang = navigator.language || navigator.userLanguage;
    if (!lang) return;
    lang = String(lang).trim().toLowerCase();
    if (!lang) return;
    for (var code in REDIRECTS) {{
      if (lang.indexOf(code) === 0) {{
        window.sessionStorage.setItem(STORAGE_KEY, 'true');
        window.location.assign(REDIRECTS[code]);
        return;
      }}
    }}
  }}

  if (document.readyState === 'loading') {{
    document.addEventListener('DOMContentLoaded', run);
  }} else {{
    run();
  }}
}})();
"""


def render_startup_script(redirects: Dict[str, str], storage_key: str, root_paths: Iterable[str]) -> str:
	redirector = LocaleRedirector(
		flag=SessionFlag({}, storage_key),
		probe=StaticLanguageProbe(None),
		navigate=lambda path: None,
		redirects=redirects,
		root_paths=root_paths,
	)
	return redirector.render_script()
