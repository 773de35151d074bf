"""
Tests for library/previews.py and LibraryState.activate — locating a
preset's audio preview on disk.
"""
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import library.loader as loader_mod
from library.loader import LibraryState
from library.models import Preset, Product
from library.previews import read_preview_content_dir, resolve_preview_path


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


def _preset(file_name: Path) -> Preset:
    return Preset(id=1, name="Pad", comment="", vendor="Acme", product_id=1,
                  product_name="Alpha", file_name=str(file_name))


class TestResolvePreviewPath:
    def test_wav_preset_plays_itself(self, tmp_path):
        wav = _touch(tmp_path / "Kick.WAV")
        assert resolve_preview_path(_preset(wav), None) == wav

    def test_missing_wav_falls_through(self, tmp_path):
        assert resolve_preview_path(_preset(tmp_path / "Kick.wav"), None) is None

    def test_local_previews_folder(self, tmp_path):
        preset_file = tmp_path / "Presets" / "Pad.nksf"
        ogg = _touch(tmp_path / "Presets" / ".previews" / "Pad.nksf.ogg")
        assert resolve_preview_path(_preset(preset_file), None) == ogg

    def test_shared_preview_library(self, tmp_path):
        content = tmp_path / "products" / "Alpha"
        preset_file = content / "Presets" / "Warm" / "Pad.nksf"
        previews = tmp_path / "previews"
        ogg = _touch(previews / "Samples" / "up-alpha" / "Presets" / "Warm"
                     / ".previews" / "Pad.nksf.ogg")
        manifest = tmp_path / "Native Browser Preview Library.json"
        manifest.write_text(json.dumps({"ContentDir": str(previews)}))
        product = Product(id=1, name="Alpha", vendor="Acme",
                          content_dir=str(content), upid="up-alpha")

        assert resolve_preview_path(_preset(preset_file), product, manifest) == ogg

    def test_shared_library_needs_upid(self, tmp_path):
        manifest = tmp_path / "lib.json"
        manifest.write_text(json.dumps({"ContentDir": str(tmp_path)}))
        product = Product(id=1, name="Alpha", vendor="Acme",
                          content_dir=str(tmp_path), upid="")
        assert resolve_preview_path(_preset(tmp_path / "Pad.nksf"), product, manifest) is None

    def test_preset_outside_content_dir(self, tmp_path):
        manifest = tmp_path / "lib.json"
        manifest.write_text(json.dumps({"ContentDir": str(tmp_path)}))
        product = Product(id=1, name="Alpha", vendor="Acme",
                          content_dir=str(tmp_path / "other"), upid="u")
        assert resolve_preview_path(_preset(tmp_path / "Pad.nksf"), product, manifest) is None

    def test_empty_file_name(self):
        preset = Preset(id=1, name="Pad", comment="", vendor="Acme", product_id=1,
                        product_name="Alpha", file_name="")
        assert resolve_preview_path(preset, None) is None


class TestReadPreviewContentDir:
    def test_missing_manifest(self, tmp_path):
        assert read_preview_content_dir(tmp_path / "nope.json") is None

    def test_invalid_json(self, tmp_path):
        manifest = tmp_path / "lib.json"
        manifest.write_text("{not json")
        assert read_preview_content_dir(manifest) is None

    def test_missing_content_dir_key(self, tmp_path):
        manifest = tmp_path / "lib.json"
        manifest.write_text(json.dumps({"Other": 1}))
        assert read_preview_content_dir(manifest) is None


class TestActivate:
    def test_activate_without_preview(self, library):
        played = []
        state = LibraryState.from_library(library, preview_sink=played.append)
        # preset 4 is a .wav whose file does not exist in the fixture
        assert state.activate(4) is None
        assert played == []

    def test_activate_with_existing_preview(self, library_state, tmp_path, monkeypatch):
        wav = _touch(tmp_path / "Kick Hard.wav")
        monkeypatch.setattr(loader_mod, "resolve_preview_path", lambda *a: wav)
        assert library_state.activate(4) == wav
        assert library_state.played == [wav]
