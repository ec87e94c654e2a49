"""Image assets loaded from disk under a security policy, with an LRU cache."""

from __future__ import annotations

import copy
import hashlib
import io
import json
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path, PurePath
from typing import Any, Optional, Union

from PIL import Image

PathLike = Union[str, PurePath]

_ALLOWED_EXTENSIONS = frozenset({"png", "jpg", "jpeg"})
_U16_MAX = 0xFFFF
_U64_MAX = 2**64 - 1


class SecurityMode(Enum):
    """How far assets on disk are trusted."""

    TRUSTED = "trusted"
    UNTRUSTED = "untrusted"


@dataclass(frozen=True)
class AssetLimits:
    """Upper bounds on the size of a single image asset."""

    max_bytes: int = 15 * 1024 * 1024
    max_width: int = 4096
    max_height: int = 4096


@dataclass(frozen=True)
class AssetEntry:
    """Expected hash and size of one asset."""

    sha256: str
    size: int


def _is_uint(value: Any, maximum: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= maximum


@dataclass
class AssetManifest:
    """A list of assets with their expected hashes and sizes."""

    manifest_version: int
    assets: dict[str, AssetEntry] = field(default_factory=dict)

    @classmethod
    def from_json(cls, raw: str) -> "AssetManifest":
        """Parse a manifest document; raises ValueError when it is malformed."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as err:
            raise ValueError(f"invalid manifest: {err}") from err
        if not isinstance(data, dict):
            raise ValueError("invalid manifest: expected an object")
        version = data.get("manifest_version")
        if not _is_uint(version, _U16_MAX):
            raise ValueError("invalid manifest: bad or missing manifest_version")
        assets = data.get("assets")
        if not isinstance(assets, dict):
            raise ValueError("invalid manifest: bad or missing assets")
        entries: dict[str, AssetEntry] = {}
        for name, entry in assets.items():
            if (
                not isinstance(entry, dict)
                or not isinstance(entry.get("sha256"), str)
                or not _is_uint(entry.get("size"), _U64_MAX)
            ):
                raise ValueError(f"invalid manifest: bad entry for '{name}'")
            entries[name] = AssetEntry(sha256=entry["sha256"], size=entry["size"])
        return cls(manifest_version=version, assets=dict(sorted(entries.items())))

    def to_json(self) -> str:
        """Serialise as indented JSON with assets sorted by path."""
        document = {
            "manifest_version": self.manifest_version,
            "assets": {
                name: {"sha256": entry.sha256, "size": entry.size}
                for name, entry in sorted(self.assets.items())
            },
        }
        return json.dumps(document, indent=2, ensure_ascii=False)


class AssetError(Exception):
    """An asset could not be loaded; ``kind`` names the reason."""

    def __init__(self, kind: str, message: str, **details: Any) -> None:
        super().__init__(message)
        self.kind = kind
        self.details = details


def _io_error(err: BaseException) -> AssetError:
    return AssetError("io", f"io error: {err}")


@dataclass(frozen=True)
class LoadedImage:
    """A decoded image as RGBA pixels."""

    name: str
    size: tuple[int, int]
    pixels: bytes


def sanitize_rel_path(rel: PathLike) -> Path:
    """Return a relative path with ``.`` parts dropped; reject anything that escapes."""
    path = PurePath(rel)
    if path.anchor:
        raise AssetError("traversal", "asset path traversal blocked")
    if any(part == ".." for part in path.parts):
        raise AssetError("traversal", "asset path traversal blocked")
    return Path(*path.parts) if path.parts else Path()


def _extension(name: str) -> Optional[str]:
    if name in ("", ".."):
        return None
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return None
    return ext


def sha256_hex(data: bytes) -> str:
    """Lower-case hexadecimal SHA-256 digest."""
    return hashlib.sha256(data).hexdigest()


class AssetStore:
    """Loads images from a root directory, enforcing limits and an optional manifest."""

    def __init__(
        self,
        root: PathLike,
        mode: SecurityMode = SecurityMode.TRUSTED,
        manifest_path: Optional[PathLike] = None,
        require_manifest: bool = False,
    ) -> None:
        manifest: Optional[AssetManifest] = None
        if manifest_path is not None:
            try:
                raw = Path(manifest_path).read_text(encoding="utf-8")
                manifest = AssetManifest.from_json(raw)
            except (OSError, ValueError) as err:
                raise _io_error(err) from err
            if manifest.manifest_version != 1:
                raise AssetError(
                    "manifest_version",
                    f"unsupported manifest version {manifest.manifest_version}",
                    version=manifest.manifest_version,
                )
        self.root = Path(root)
        self.mode = mode
        self.manifest = manifest
        self.require_manifest = require_manifest
        self.limits = AssetLimits()

    def with_limits(self, limits: AssetLimits) -> "AssetStore":
        """Return a copy of this store using other limits."""
        clone = copy.copy(self)
        clone.limits = limits
        return clone

    def load_image(self, asset_path: str) -> LoadedImage:
        """Read, verify and decode an image asset."""
        rel = sanitize_rel_path(asset_path)
        extension = _extension(rel.name)
        if extension is None:
            raise AssetError("unsupported_extension", f"unsupported asset extension: {asset_path}")
        extension = extension.lower()
        if extension not in _ALLOWED_EXTENSIONS:
            raise AssetError("unsupported_extension", f"unsupported asset extension: {extension}")
        try:
            data = (self.root / rel).read_bytes()
        except OSError as err:
            raise _io_error(err) from err
        size = len(data)
        if size > self.limits.max_bytes:
            raise AssetError(
                "too_large",
                f"asset too large: {size} bytes (max {self.limits.max_bytes})",
                size=size,
                max=self.limits.max_bytes,
            )
        self._verify_manifest(asset_path, size, data)
        try:
            with Image.open(io.BytesIO(data), formats=("PNG", "JPEG")) as image:
                rgba = image.convert("RGBA")
        except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as err:
            raise AssetError("decode", f"image decode error: {err}") from err
        width, height = rgba.size
        if width > self.limits.max_width or height > self.limits.max_height:
            raise AssetError(
                "invalid_dimensions",
                f"asset dimensions {width}x{height} exceed limit "
                f"{self.limits.max_width}x{self.limits.max_height}",
                width=width,
                height=height,
            )
        return LoadedImage(name=asset_path, size=(width, height), pixels=rgba.tobytes())

    def _verify_manifest(self, asset_path: str, size: int, data: bytes) -> None:
        if (
            self.mode is SecurityMode.UNTRUSTED
            and self.require_manifest
            and self.manifest is None
        ):
            raise AssetError("manifest_missing", "manifest required for untrusted assets")
        if self.manifest is None:
            return
        entry = self.manifest.assets.get(asset_path)
        if entry is None:
            raise AssetError(
                "manifest_entry_missing", f"manifest entry missing for asset '{asset_path}'"
            )
        if entry.size != size:
            raise AssetError(
                "manifest_size_mismatch", f"manifest size mismatch for asset '{asset_path}'"
            )
        if entry.sha256.lower() != sha256_hex(data):
            raise AssetError(
                "manifest_hash_mismatch", f"manifest hash mismatch for asset '{asset_path}'"
            )


@dataclass
class CacheStats:
    """Counters describing the image cache."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    entries: int = 0
    bytes: int = 0
    budget_bytes: int = 0


@dataclass
class _CachedImage:
    image: LoadedImage
    size: int
    last_used: int


class AssetManager:
    """Caches decoded images within a byte budget, evicting the least recently used."""

    def __init__(self, store: AssetStore, budget_bytes: int) -> None:
        self.store = store
        self._budget = budget_bytes
        self._cache: dict[str, _CachedImage] = {}
        self._current = 0
        self._counter = 0
        self._stats = CacheStats(budget_bytes=budget_bytes)

    def stats(self) -> CacheStats:
        """Snapshot of the cache counters."""
        return replace(self._stats, entries=len(self._cache), bytes=self._current)

    def image_for_asset(self, asset_path: str) -> LoadedImage:
        """Return the decoded image, loading and caching it when needed."""
        self._counter += 1
        cached = self._cache.get(asset_path)
        if cached is not None:
            cached.last_used = self._counter
            self._stats.hits += 1
            return cached.image
        loaded = self.store.load_image(asset_path)
        size = len(loaded.pixels)
        if size > self._budget:
            raise AssetError(
                "budget_exceeded",
                f"asset exceeds cache budget: {size} bytes (budget {self._budget})",
                bytes=size,
                budget=self._budget,
            )
        self._stats.misses += 1
        while self._current + size > self._budget and self._evict_lru():
            pass
        self._current += size
        self._cache[loaded.name] = _CachedImage(loaded, size, self._counter)
        return loaded

    def _evict_lru(self) -> bool:
        if not self._cache:
            return False
        key = min(self._cache, key=lambda name: self._cache[name].last_used)
        entry = self._cache.pop(key)
        self._current = max(0, self._current - entry.size)
        self._stats.evictions += 1
        return True