"""Tests for template persistence and substitution."""

import json

from fb_rescue.models.templates import DEFAULT_CHECK, TemplateSet
from fb_rescue.services.template_store import CommandTemplateStore, render, render_argv


def test_load_missing_file_gives_defaults(store):
    templates = store.load()

    assert templates == TemplateSet()
    assert not templates.use_custom


def test_partial_file_is_merged_over_defaults(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps({"useCustom": True, "check": "{GFIX} -v {DB_PATH}"}))

    templates = store.load()

    assert templates.use_custom
    assert templates.check == "{GFIX} -v {DB_PATH}"
    assert templates.mend == TemplateSet().mend
    assert templates.error_heuristics == TemplateSet().error_heuristics


def test_invalid_json_gives_defaults(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json")

    assert store.load() == TemplateSet()


def test_save_then_load(store):
    custom = TemplateSet(use_custom=True, backup="{GBAK} -b {OLD_DB} {FBK}")

    assert store.save(custom)
    assert store.load() == custom
    saved = json.loads(store.path.read_text())
    assert saved["useCustom"] is True
    assert list(store.path.parent.glob(".settings-*")) == []


def test_failed_save_leaves_previous_file(tmp_path):
    target = tmp_path / "settings.json"
    target.mkdir()
    store = CommandTemplateStore(target)

    assert store.save(TemplateSet(use_custom=True)) is False
    assert target.is_dir()
    assert list(tmp_path.glob(".settings-*")) == []


def test_reset_to_default_persists(store):
    store.save(TemplateSet(use_custom=True, check="x"))

    templates = store.reset_to_default()

    assert templates == TemplateSet()
    assert store.load() == TemplateSet()


def test_active_uses_builtins_unless_opted_in():
    templates = TemplateSet(check="custom {DB_PATH}")
    assert CommandTemplateStore.active(templates)["check"] == DEFAULT_CHECK

    templates.use_custom = True
    assert CommandTemplateStore.active(templates)["check"] == "custom {DB_PATH}"


def test_render_unknown_placeholder_is_empty():
    line = render('{GFIX} -v "{DB_PATH}" {NOPE}', {"GFIX": "gfix", "DB_PATH": "C:\\data\\APP.FDB"})

    assert line == 'gfix -v "C:\\data\\APP.FDB" '


def test_render_leaves_lowercase_braces_alone():
    assert render("{user} {USER}", {"USER": "SYSDBA"}) == "{user} SYSDBA"


def test_render_argv_keeps_spaces_in_one_argument():
    argv = render_argv(
        '{GBAK} -backup "{OLD_DB}" "{FBK}" {EMPTY}',
        {
            "GBAK": "C:\\Program Files\\Firebird\\bin\\gbak.exe",
            "OLD_DB": "C:\\my data\\APP_OLD.FDB",
            "FBK": "C:\\my data\\APP.FBK",
        },
    )

    assert argv == [
        "C:\\Program Files\\Firebird\\bin\\gbak.exe",
        "-backup",
        "C:\\my data\\APP_OLD.FDB",
        "C:\\my data\\APP.FBK",
    ]


def test_invalid_key_falls_back_alone(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps({
        "useCustom": True,
        "check": "X {DB_PATH}",
        "mend": None,
        "errorHeuristics": "error",
    }))

    templates = store.load()

    assert templates.use_custom
    assert templates.check == "X {DB_PATH}"
    assert templates.mend == TemplateSet().mend
    assert templates.error_heuristics == TemplateSet().error_heuristics


def test_snake_case_keys_still_load(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps({
        "use_custom": True,
        "error_heuristics": ["boom"],
        "success_markers": ["all good"],
    }))

    templates = store.load()

    assert templates.use_custom
    assert templates.error_heuristics == ["boom"]
    assert templates.success_markers == ["all good"]


def test_saved_keys_are_camel_case(store):
    store.save(TemplateSet())

    saved = json.loads(store.path.read_text())

    assert {"useCustom", "errorHeuristics", "successMarkers"} <= set(saved)
    assert "error_heuristics" not in saved
