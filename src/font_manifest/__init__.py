"""Per-route font manifest generation for build output trees."""

from font_manifest.config import Config, load_config
from font_manifest.manifest import (
    FontManifestError,
    NextFontManifest,
    create_font_manifest,
    load_font_manifest,
)
from font_manifest.paths import FileSystem, FileSystemPath

__all__ = [
    "__version__",
    "Config",
    "FileSystem",
    "FileSystemPath",
    "FontManifestError",
    "NextFontManifest",
    "create_font_manifest",
    "load_config",
    "load_font_manifest",
]

__version__ = "0.1.0"
