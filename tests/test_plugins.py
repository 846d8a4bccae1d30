import json
from fnmatch import fnmatch
from importlib import resources
from pathlib import Path

import pytest

import caesar_cipher
from caesar_cipher import CIPHER_REGISTRY, load_plugins


@pytest.fixture
def verbose(monkeypatch):
    monkeypatch.setattr(caesar_cipher, "VERBOSE", True)


def write_manifest(directory, entries):
    (directory / "manifest.json").write_text(json.dumps({"plugins": entries}), encoding="utf-8")


def test_default_plugins_include_rot13():
    assert "rot13" in load_plugins()
    rot13 = CIPHER_REGISTRY["rot13"]
    assert rot13.fixed_shift == 13
    assert rot13.encode("Hello, World!", 0) == "Uryyb, Jbeyq!"
    assert rot13.decode(rot13.encode("Hello", 0), 0) == "Hello"


def test_missing_directory(tmp_path):
    assert load_plugins(tmp_path / "nope") == []


def test_missing_manifest_warns(tmp_path, verbose, capsys):
    assert load_plugins(tmp_path) == []
    assert "No manifest.json" in capsys.readouterr().err


def test_malformed_manifest(tmp_path, verbose, capsys):
    (tmp_path / "manifest.json").write_text("{not json", encoding="utf-8")
    assert load_plugins(str(tmp_path)) == []
    assert "Failed to read manifest.json" in capsys.readouterr().err


def test_loads_custom_plugin(tmp_path):
    (tmp_path / "shift_one.py").write_text(
        "@register_cipher\n"
        "class ShiftOne(CipherStrategy):\n"
        "    name = 'shift1'\n"
        "    description = 'test plugin'\n"
        "    fixed_shift = 1\n"
        "    def encode(self, text, shift):\n"
        "        return shift_text(text, 1)\n"
        "    def decode(self, text, shift):\n"
        "        return shift_text(text, -1)\n",
        encoding="utf-8",
    )
    write_manifest(tmp_path, [{"file": "shift_one.py", "cipher": "shift1"}])
    try:
        assert load_plugins(tmp_path) == ["shift1"]
        assert CIPHER_REGISTRY["shift1"].encode("az", 0) == "ba"
    finally:
        CIPHER_REGISTRY.pop("shift1", None)


def test_bad_entries_are_skipped(tmp_path, verbose, capsys):
    (tmp_path / "broken.py").write_text("raise RuntimeError('boom')\n", encoding="utf-8")
    (tmp_path / "silent.py").write_text("x = 1\n", encoding="utf-8")
    write_manifest(tmp_path, [
        {"cipher": "nofile"},
        {"file": "missing.py", "cipher": "missing"},
        {"file": "broken.py", "cipher": "broken"},
        {"file": "silent.py", "cipher": "silent"},
    ])

    assert load_plugins(tmp_path) == []

    err = capsys.readouterr().err
    assert "Plugin file not found" in err
    assert "Failed to load plugin broken.py: boom" in err
    assert "did not register cipher 'silent'" in err


def test_warnings_hidden_when_quiet(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(caesar_cipher, "VERBOSE", False)
    load_plugins(tmp_path)
    assert capsys.readouterr().err == ""


def test_default_plugin_dir_is_package_data():
    # Installed copies resolve plugins through the package, not the source tree
    plugins = resources.files("caesar_cipher") / "plugins"
    manifest = json.loads((plugins / "manifest.json").read_text(encoding="utf-8"))
    assert caesar_cipher.DEFAULT_PLUGIN_DIR == Path(caesar_cipher.__file__).parent / "plugins"
    for entry in manifest["plugins"]:
        assert (plugins / entry["file"]).is_file()


def test_plugins_declared_for_installation():
    tomllib = pytest.importorskip("tomllib")
    pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
    config = tomllib.loads(pyproject.read_text(encoding="utf-8"))["tool"]["setuptools"]

    assert "caesar_cipher" in config["packages"]
    patterns = config["package-data"]["caesar_cipher"]
    shipped = [p.relative_to(caesar_cipher.DEFAULT_PLUGIN_DIR.parent).as_posix()
               for p in caesar_cipher.DEFAULT_PLUGIN_DIR.iterdir() if p.is_file()]
    assert "plugins/manifest.json" in shipped
    for name in shipped:
        assert any(fnmatch(name, pattern) for pattern in patterns), name
