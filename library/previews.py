"""
Locate the audio preview for a preset.

Komplete Kontrol keeps previews in three places, tried in order:

  1. the preset file itself, when it is a .wav sample;
  2. a ``.previews`` folder next to the preset (``<name>.ogg``);
  3. the shared Native Browser Preview Library, whose manifest JSON names a
     ``ContentDir``; previews there live under
     ``<ContentDir>/Samples/<product upid>/<path inside the product>``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path, PureWindowsPath
from typing import Callable, Optional

from library.models import Preset, Product
from utils.patterns import WAV_EXTENSION

logger = logging.getLogger(__name__)

PreviewSink = Callable[[Path], None]


def _as_path(raw: str) -> Path:
    # Database paths are written by the host OS; accept Windows separators
    # on any platform.
    if "\\" in raw:
        return Path(*PureWindowsPath(raw).parts)
    return Path(raw)


def _preview_name(file_name: Path) -> str:
    return f"{file_name.name}.ogg"


def read_preview_content_dir(manifest_path: Path) -> Optional[Path]:
    """Return ``ContentDir`` from the preview library manifest, or None."""
    if not manifest_path.is_file():
        return None
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Cannot read preview library %s: %s", manifest_path, exc)
        return None
    content_dir = data.get("ContentDir") if isinstance(data, dict) else None
    if not isinstance(content_dir, str) or not content_dir:
        logger.warning("Preview library %s has no ContentDir", manifest_path)
        return None
    return _as_path(content_dir)


def resolve_preview_path(
    preset: Preset,
    product: Optional[Product],
    preview_library_path: Optional[Path] = None,
) -> Optional[Path]:
    """Return an existing preview file for *preset*, or None."""
    if not preset.file_name:
        return None
    file_name = _as_path(preset.file_name)

    if WAV_EXTENSION.search(file_name.name) and file_name.is_file():
        return file_name

    local = file_name.parent / ".previews" / _preview_name(file_name)
    if local.is_file():
        return local

    if preview_library_path is None or product is None or not product.upid:
        return None
    content_dir = read_preview_content_dir(preview_library_path)
    if content_dir is None:
        return None
    try:
        relative = file_name.relative_to(_as_path(product.content_dir))
    except ValueError:
        logger.debug("%s is outside product dir %s", file_name, product.content_dir)
        return None
    shared = (
        content_dir / "Samples" / product.upid / relative.parent
        / ".previews" / _preview_name(file_name)
    )
    return shared if shared.is_file() else None


def log_preview(path: Path) -> None:
    """Default preview sink: no audio output, just record what would play."""
    logger.info("Preview: %s", path)
