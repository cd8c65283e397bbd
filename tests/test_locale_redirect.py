import json
import re
from typing import Dict, List

import pytest

from locale_redirect import (
    LanguageProbe,
    LocaleRedirector,
    RedirectState,
    SessionFlag,
    StaticLanguageProbe,
    normalize_language,
    render_startup_script,
)


def make_redirector(language, storage: Dict[str, str], calls: List[str]) -> LocaleRedirector:
    return LocaleRedirector(
        flag=SessionFlag(storage, "lang-redirected"),
        probe=StaticLanguageProbe(language),
        navigate=calls.append,
        redirects={"zh": "/zh/"},
    )


def test_fresh_session_chinese_browser_redirects_once() -> None:
    storage: Dict[str, str] = {}
    calls: List[str] = []
    redirector = make_redirector("zh-CN", storage, calls)
    assert redirector.run("/") is RedirectState.REDIRECTED
    assert calls == ["/zh/"]
    assert SessionFlag(storage, "lang-redirected").is_set()

    # Landing on / again in the same session does nothing
    assert redirector.run("/") is RedirectState.SKIPPED
    assert calls == ["/zh/"]


def test_fresh_session_english_browser_stays() -> None:
    storage: Dict[str, str] = {}
    calls: List[str] = []
    assert make_redirector("en-US", storage, calls).run("/") is RedirectState.SKIPPED
    assert calls == []
    assert storage == {}


def test_flag_already_set_prevents_loop() -> None:
    storage = {"lang-redirected": "true"}
    calls: List[str] = []
    assert make_redirector("zh-CN", storage, calls).run("/") is RedirectState.SKIPPED
    assert calls == []


@pytest.mark.parametrize("preset", [{}, {"lang-redirected": "true"}])
def test_non_root_path_never_activates(preset) -> None:
    storage = dict(preset)
    calls: List[str] = []
    redirector = make_redirector("zh-CN", storage, calls)
    assert redirector.run("/guide/installation") is RedirectState.NOT_APPLICABLE
    assert calls == []
    assert storage == preset


def test_default_document_counts_as_root() -> None:
    calls: List[str] = []
    assert make_redirector("ZH-tw", {}, calls).run("/index.html") is RedirectState.REDIRECTED
    assert calls == ["/zh/"]


@pytest.mark.parametrize("language", [None, "", "   "])
def test_missing_language_is_silently_skipped(language) -> None:
    storage: Dict[str, str] = {}
    calls: List[str] = []
    assert make_redirector(language, storage, calls).run("/") is RedirectState.SKIPPED
    assert calls == []
    assert storage == {}


def test_flag_is_set_before_navigation() -> None:
    storage: Dict[str, str] = {}
    seen: List[bool] = []
    flag = SessionFlag(storage)
    redirector = LocaleRedirector(
        flag=flag,
        probe=StaticLanguageProbe("zh"),
        navigate=lambda path: seen.append(flag.is_set()),
        redirects={"zh": "/zh/"},
    )
    redirector.run("/")
    assert seen == [True]
    assert redirector.state is RedirectState.REDIRECTED


def test_startup_script_embeds_redirect_table() -> None:
    script = render_startup_script({"zh": "/zh/"}, "lang-redirected", ["/", "/index.html"])
    assert '{"zh": "/zh/"}' in script
    assert '"lang-redirected"' in script
    assert '["/", "/index.html"]' in script
    assert "sessionStorage.setItem(STORAGE_KEY" in script
    assert "DOMContentLoaded" in script


def script_table(script: str, name: str):
    match = re.search(rf"var {name} = (.*);", script)
    assert match, name
    return json.loads(match.group(1))


def test_surrounding_whitespace_is_ignored_on_both_sides() -> None:
    calls: List[str] = []
    assert make_redirector(" zh-CN ", {}, calls).run("/") is RedirectState.REDIRECTED
    assert calls == ["/zh/"]
    assert normalize_language(" ZH-cn\t") == "zh-cn"
    script = render_startup_script({"zh": "/zh/"}, "lang-redirected", ["/"])
    assert "String(lang).trim().toLowerCase()" in script


def test_script_tables_match_redirector() -> None:
    redirector = LocaleRedirector(
        flag=SessionFlag({}, "seen-locale"),
        probe=StaticLanguageProbe(None),
        navigate=lambda path: None,
        redirects={"ZH": "/zh/", "ja": "/ja/"},
        root_paths=["/", "/index.html"],
    )
    script = redirector.render_script()
    assert script_table(script, "ROOT_PATHS") == redirector.root_paths
    assert script_table(script, "REDIRECTS") == redirector.redirects == {"zh": "/zh/", "ja": "/ja/"}
    assert script_table(script, "STORAGE_KEY") == "seen-locale"


def test_script_guards_run_in_state_machine_order() -> None:
    script = render_startup_script({"zh": "/zh/"}, "lang-redirected", ["/"])
    steps = [
        "ROOT_PATHS.indexOf(window.location.pathname) === -1) return",
        "sessionStorage.getItem(STORAGE_KEY)) return",
        "if (!lang) return",
        "trim().toLowerCase()",
        "lang.indexOf(code) === 0",
        "sessionStorage.setItem(STORAGE_KEY, 'true')",
        "window.location.assign(REDIRECTS[code])",
    ]
    positions = [script.index(step) for step in steps]
    assert positions == sorted(positions)


def test_language_probe_is_abstract() -> None:
    with pytest.raises(TypeError):
        LanguageProbe()
