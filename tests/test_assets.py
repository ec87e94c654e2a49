from pathlib import Path

import pytest
from PIL import Image

from vnengine.assets import (
    AssetError,
    AssetLimits,
    AssetManager,
    AssetManifest,
    AssetEntry,
    AssetStore,
    SecurityMode,
    sanitize_rel_path,
    sha256_hex,
)


def _png(path: Path, size=(2, 2), color=(255, 0, 0, 255)) -> bytes:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path, format="PNG")
    return path.read_bytes()


def _manifest(tmp_path: Path, assets: dict, version: int = 1) -> Path:
    manifest = AssetManifest(manifest_version=version, assets=assets)
    path = tmp_path / "manifest.json"
    path.write_text(manifest.to_json(), encoding="utf-8")
    return path


def test_sanitize_rel_path_blocks_traversal():
    with pytest.raises(AssetError) as excinfo:
        sanitize_rel_path("../secrets.txt")
    assert excinfo.value.kind == "traversal"
    with pytest.raises(AssetError) as excinfo:
        sanitize_rel_path("/etc/passwd")
    assert excinfo.value.kind == "traversal"


def test_sanitize_rel_path_allows_normal_paths():
    assert sanitize_rel_path("characters/ava.png") == Path("characters/ava.png")


def test_sanitize_rel_path_drops_current_dir():
    assert sanitize_rel_path("./bg/room.png") == Path("bg/room.png")


def test_sha256_hex_of_empty_input():
    assert sha256_hex(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_load_png(tmp_path):
    _png(tmp_path / "bg" / "room.png", size=(3, 2))
    loaded = AssetStore(tmp_path).load_image("bg/room.png")
    assert loaded.name == "bg/room.png"
    assert loaded.size == (3, 2)
    assert len(loaded.pixels) == 3 * 2 * 4
    assert loaded.pixels[:4] == bytes([255, 0, 0, 255])


def test_load_jpeg_with_uppercase_extension(tmp_path):
    Image.new("RGB", (4, 5), (0, 0, 255)).save(tmp_path / "pic.JPG", format="JPEG")
    loaded = AssetStore(tmp_path).load_image("pic.JPG")
    assert loaded.size == (4, 5)


def test_unsupported_extension(tmp_path):
    (tmp_path / "notes.txt").write_text("hi")
    with pytest.raises(AssetError) as excinfo:
        AssetStore(tmp_path).load_image("notes.txt")
    assert excinfo.value.kind == "unsupported_extension"
    assert str(excinfo.value) == "unsupported asset extension: txt"


def test_missing_extension_names_the_path(tmp_path):
    with pytest.raises(AssetError) as excinfo:
        AssetStore(tmp_path).load_image("README")
    assert str(excinfo.value) == "unsupported asset extension: README"


def test_traversal_in_load_image(tmp_path):
    with pytest.raises(AssetError) as excinfo:
        AssetStore(tmp_path).load_image("../outside.png")
    assert excinfo.value.kind == "traversal"


def test_missing_file_is_io_error(tmp_path):
    with pytest.raises(AssetError) as excinfo:
        AssetStore(tmp_path).load_image("absent.png")
    assert excinfo.value.kind == "io"


def test_too_large(tmp_path):
    data = _png(tmp_path / "a.png")
    store = AssetStore(tmp_path).with_limits(AssetLimits(max_bytes=10))
    with pytest.raises(AssetError) as excinfo:
        store.load_image("a.png")
    assert excinfo.value.kind == "too_large"
    assert excinfo.value.details["size"] == len(data)


def test_with_limits_leaves_original_unchanged(tmp_path):
    store = AssetStore(tmp_path)
    limited = store.with_limits(AssetLimits(max_bytes=10))
    assert store.limits == AssetLimits()
    assert limited.limits.max_bytes == 10


def test_invalid_dimensions(tmp_path):
    _png(tmp_path / "wide.png", size=(3, 1))
    store = AssetStore(tmp_path).with_limits(AssetLimits(max_width=2, max_height=2))
    with pytest.raises(AssetError) as excinfo:
        store.load_image("wide.png")
    assert excinfo.value.kind == "invalid_dimensions"
    assert str(excinfo.value) == "asset dimensions 3x1 exceed limit 2x2"


def test_decode_error(tmp_path):
    (tmp_path / "bad.png").write_bytes(b"not an image")
    with pytest.raises(AssetError) as excinfo:
        AssetStore(tmp_path).load_image("bad.png")
    assert excinfo.value.kind == "decode"


def test_untrusted_requires_manifest(tmp_path):
    _png(tmp_path / "a.png")
    store = AssetStore(tmp_path, SecurityMode.UNTRUSTED, None, True)
    with pytest.raises(AssetError) as excinfo:
        store.load_image("a.png")
    assert excinfo.value.kind == "manifest_missing"


def test_trusted_without_manifest_loads(tmp_path):
    _png(tmp_path / "a.png")
    store = AssetStore(tmp_path, SecurityMode.TRUSTED, None, True)
    assert store.load_image("a.png").size == (2, 2)


def test_manifest_version_rejected(tmp_path):
    path = _manifest(tmp_path, {}, version=2)
    with pytest.raises(AssetError) as excinfo:
        AssetStore(tmp_path, SecurityMode.UNTRUSTED, path, True)
    assert excinfo.value.kind == "manifest_version"
    assert str(excinfo.value) == "unsupported manifest version 2"


def test_malformed_manifest_is_io_error(tmp_path):
    path = tmp_path / "manifest.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(AssetError) as excinfo:
        AssetStore(tmp_path, SecurityMode.UNTRUSTED, path, True)
    assert excinfo.value.kind == "io"


def test_manifest_verified_load(tmp_path):
    data = _png(tmp_path / "a.png")
    entry = AssetEntry(sha256=sha256_hex(data).upper(), size=len(data))
    path = _manifest(tmp_path, {"a.png": entry})
    store = AssetStore(tmp_path, SecurityMode.UNTRUSTED, path, True)
    assert store.load_image("a.png").size == (2, 2)


def test_manifest_entry_missing(tmp_path):
    _png(tmp_path / "a.png")
    path = _manifest(tmp_path, {})
    store = AssetStore(tmp_path, SecurityMode.UNTRUSTED, path, True)
    with pytest.raises(AssetError) as excinfo:
        store.load_image("a.png")
    assert excinfo.value.kind == "manifest_entry_missing"
    assert str(excinfo.value) == "manifest entry missing for asset 'a.png'"


def test_manifest_size_mismatch(tmp_path):
    data = _png(tmp_path / "a.png")
    path = _manifest(tmp_path, {"a.png": AssetEntry(sha256_hex(data), len(data) + 1)})
    store = AssetStore(tmp_path, SecurityMode.TRUSTED, path, False)
    with pytest.raises(AssetError) as excinfo:
        store.load_image("a.png")
    assert excinfo.value.kind == "manifest_size_mismatch"


def test_manifest_hash_mismatch(tmp_path):
    data = _png(tmp_path / "a.png")
    path = _manifest(tmp_path, {"a.png": AssetEntry(sha256_hex(b"other"), len(data))})
    store = AssetStore(tmp_path, SecurityMode.TRUSTED, path, False)
    with pytest.raises(AssetError) as excinfo:
        store.load_image("a.png")
    assert excinfo.value.kind == "manifest_hash_mismatch"


def test_manifest_json_round_trip():
    manifest = AssetManifest(1, {"b.png": AssetEntry("ab", 2), "a.png": AssetEntry("cd", 3)})
    text = manifest.to_json()
    assert '"manifest_version": 1' in text
    assert text.index("a.png") < text.index("b.png")
    assert AssetManifest.from_json(text) == AssetManifest(
        1, {"a.png": AssetEntry("cd", 3), "b.png": AssetEntry("ab", 2)}
    )


@pytest.mark.parametrize(
    "raw",
    [
        "[]",
        '{"assets": {}}',
        '{"manifest_version": 1}',
        '{"manifest_version": 1, "assets": {"a": {"sha256": "x"}}}',
        '{"manifest_version": 1, "assets": {"a": {"sha256": "x", "size": -1}}}',
        '{"manifest_version": 70000, "assets": {}}',
    ],
)
def test_manifest_from_json_rejects_malformed(raw):
    with pytest.raises(ValueError):
        AssetManifest.from_json(raw)


def _manager_store(tmp_path):
    for name in ("a", "b", "c"):
        _png(tmp_path / f"{name}.png")
    return AssetStore(tmp_path)


def test_manager_counts_hits_and_misses(tmp_path):
    manager = AssetManager(_manager_store(tmp_path), 1024)
    first = manager.image_for_asset("a.png")
    second = manager.image_for_asset("a.png")
    assert first == second
    stats = manager.stats()
    assert (stats.hits, stats.misses, stats.evictions) == (1, 1, 0)
    assert stats.entries == 1
    assert stats.bytes == 16
    assert stats.budget_bytes == 1024


def test_manager_evicts_least_recently_used(tmp_path):
    manager = AssetManager(_manager_store(tmp_path), 40)
    manager.image_for_asset("a.png")
    manager.image_for_asset("b.png")
    manager.image_for_asset("a.png")
    manager.image_for_asset("c.png")
    stats = manager.stats()
    assert stats.evictions == 1
    assert stats.entries == 2
    assert stats.bytes <= 40
    manager.image_for_asset("a.png")
    assert manager.stats().hits == 2
    manager.image_for_asset("b.png")
    assert manager.stats().misses == 4


def test_manager_rejects_asset_over_budget(tmp_path):
    manager = AssetManager(_manager_store(tmp_path), 8)
    with pytest.raises(AssetError) as excinfo:
        manager.image_for_asset("a.png")
    assert excinfo.value.kind == "budget_exceeded"
    assert str(excinfo.value) == "asset exceeds cache budget: 16 bytes (budget 8)"
    assert manager.stats().misses == 0