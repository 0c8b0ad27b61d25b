"""Tests for scripts/generate_manifest.py."""

import importlib.util
import os

import pytest

from quickmarks._manifest import MODULES

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
MODULES_DIR = os.path.join(PROJECT_ROOT, "quickmarks", "modules")


@pytest.fixture(scope="module")
def gen():
    path = os.path.join(PROJECT_ROOT, "scripts", "generate_manifest.py")
    spec = importlib.util.spec_from_file_location("generate_manifest", path)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


@pytest.fixture(scope="module")
def modules(gen):
    return gen._topo_sort(gen.find_modules(MODULES_DIR))


class TestFindModules:
    def test_finds_core_and_bookmarks(self, modules):
        assert [m["name"] for m in modules] == ["core", "bookmarks"]

    def test_filter(self, gen):
        found = gen.find_modules(MODULES_DIR, ["bookmarks"])
        assert [m["name"] for m in found] == ["bookmarks"]


class TestManifestPy:
    def test_json_keywords_become_python(self, gen):
        assert gen._json_to_python('{"a": true, "b": null, "c": false}') == \
            '{"a": True, "b": None, "c": False}'

    def test_keywords_inside_strings_untouched(self, gen):
        text = '{"label": "true or false", "x": "say \\"null\\""}'
        assert gen._json_to_python(text) == text

    def test_checked_in_manifest_is_current(self, gen, modules):
        namespace = {}
        exec(gen.render_manifest_py(modules), namespace)
        assert namespace["MODULES"] == MODULES

    def test_entry_lists_actions(self, gen, modules):
        entry = gen.manifest_entry(modules[1])
        assert entry["actions"][:2] == ["toggle_1", "toggle_2"]
        assert len(entry["actions"]) == 18


class TestAccelerators:
    def test_command_url(self, gen):
        assert gen.command_url("bookmarks", "toggle_3") == \
            "service:org.extension.quickmarks.Main?bookmarks.toggle_3"

    def test_shortcuts_for_writer(self, gen, modules):
        xcu = gen.render_accelerators_xcu(modules)
        assert 'oor:name="com.sun.star.text.TextDocument"' in xcu
        assert 'oor:name="1_SHIFT_MOD1"' in xcu
        assert 'oor:name="9_MOD1"' in xcu
        assert "service:org.extension.quickmarks.Main?bookmarks.toggle_1<" in xcu
        assert "service:org.extension.quickmarks.Main?bookmarks.goto_9<" in xcu

    def test_shortcut_without_context_goes_everywhere(self, gen):
        xcu = gen.render_accelerators_xcu([
            {"name": "demo", "shortcuts": {"run": {"key": "F5_MOD1"}}},
        ])
        for lo_svc in gen.CONTEXT_MAP.values():
            assert 'oor:name="%s"' % lo_svc in xcu


class TestMain:
    def test_writes_outputs(self, gen, tmp_path, monkeypatch):
        monkeypatch.setattr(gen, "PROJECT_ROOT", str(tmp_path))
        modules_dir = tmp_path / "quickmarks" / "modules" / "demo"
        modules_dir.mkdir(parents=True)
        (modules_dir / "module.yaml").write_text(
            "name: demo\n"
            "config:\n"
            "  enabled: {type: boolean, default: true}\n"
            "shortcuts:\n"
            "  run: {key: F5_MOD1, context: [writer]}\n",
            encoding="utf-8")

        assert gen.main([]) == 0
        generated = tmp_path / "build" / "generated"
        assert (tmp_path / "quickmarks" / "_manifest.py").is_file()
        assert (generated / "registry" / "demo.xcs").is_file()
        assert (generated / "registry" / "demo.xcu").is_file()
        assert "F5_MOD1" in (generated / "Accelerators.xcu").read_text(encoding="utf-8")

    def test_missing_modules_dir(self, gen, tmp_path, monkeypatch):
        monkeypatch.setattr(gen, "PROJECT_ROOT", str(tmp_path))
        assert gen.main([]) == 1
