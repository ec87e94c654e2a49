# vnengine

Building blocks for visual novels: compiled script events and helpers to
inspect them, image assets loaded under a security policy with an LRU cache,
asset manifests built from the command line, and window configuration
resolved against the display.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Script events

`vnengine.events` defines the events of a compiled script as frozen
dataclasses: `Dialogue`, `Choice` (with `ChoiceOption` entries resolved to an
instruction pointer `target_ip`), `SceneUpdate` (with `CharacterPlacement`
entries), `ScenePatch` (adding `CharacterPlacement`s, updating with
`CharacterPatch`es, removing by name), `Jump`, `SetFlag`, `SetVar` and
`JumpIf`. A `JumpIf` carries its condition in `cond` without interpreting it.

Helpers:

- `event_to_dict(event)` describes an event as a plain dictionary with a
  `"type"` key (`dialogue`, `choice`, `scene`, `patch`, `jump`, `set_flag`,
  `set_var`, `jump_if`).
- `event_kind(event)` gives a short name such as `"Dialogue"`, `"Scene"` or
  `"Patch"`.
- `history_bytes(history)` sums the UTF-8 length of speaker and text over a
  sequence of `Dialogue` entries.

Both `event_to_dict` and `event_kind` raise `TypeError` for anything that is
not an event. The module also holds the format constants
`SCRIPT_SCHEMA_VERSION`, `COMPILED_FORMAT_VERSION`, `SAVE_FORMAT_VERSION`,
`SCRIPT_BINARY_MAGIC` and `SAVE_BINARY_MAGIC`.

```python
from vnengine.events import Choice, ChoiceOption, event_kind, event_to_dict

choice = Choice("Where to?", [ChoiceOption("Stay", 0), ChoiceOption("Leave", 4)])
event_kind(choice)        # "Choice"
event_to_dict(choice)["options"][1]   # {"text": "Leave", "target": 4, "target_ip": 4}
```

## Assets

`vnengine.assets.AssetStore(root, mode, manifest_path, require_manifest)`
loads PNG and JPEG images from an assets root and decodes them to RGBA
(`LoadedImage` with `name`, `size` and `pixels`).

- Paths go through `sanitize_rel_path`, which drops `.` parts and rejects
  `..` and absolute paths.
- Only the extensions `png`, `jpg` and `jpeg` are accepted.
- File size and image dimensions are bounded by `AssetLimits` (15 MiB,
  4096×4096 by default); `with_limits` returns a copy of the store with other
  limits.
- When a manifest is given, each asset must have an entry whose size and
  SHA-256 digest match. Only manifest version 1 is accepted. In
  `SecurityMode.UNTRUSTED` with `require_manifest` set and no manifest, every
  load fails.

Every failure raises `AssetError`; its `kind` attribute names the reason
(`traversal`, `unsupported_extension`, `io`, `too_large`,
`invalid_dimensions`, `manifest_missing`, `manifest_version`,
`manifest_entry_missing`, `manifest_size_mismatch`, `manifest_hash_mismatch`,
`decode`, `budget_exceeded`).

`AssetManager(store, budget_bytes)` caches decoded images. `image_for_asset`
returns the cached image or loads it, evicting the least recently used
entries until the new one fits; an image larger than the whole budget raises
`AssetError`. `stats()` returns `CacheStats` with hits, misses, evictions,
entry count, bytes in use and the budget.

`AssetManifest` reads and writes manifest JSON with `from_json` and
`to_json`; `sha256_hex` gives the lower-case hex digest used in it.

## Building an asset manifest

```
vnengine manifest assets/ --output assets/manifest.json
```

Every file below the directory is recorded under its path relative to that
directory (with `/` separators), with its size and SHA-256 digest. A
directory that does not exist gives an empty manifest. The command exits
with status 1 and a message on standard error when a file cannot be read or
written. The same is available from Python as `build_manifest(root)` and
`write_manifest(root, output)` in `vnengine.cli`.

## Configuration

`vnengine.config.VnConfig` holds the settings a game asks for: title, window
size, fullscreen, scale factor, assets root, cache budget in MiB (128 by
default), security mode, manifest path and whether a manifest is required.
`resolve(display)` returns a `ResolvedConfig` with every value filled in:

- the window defaults to 1280×720 and the scale factor to 1.0;
- given a `DisplayInfo`, an unset scale factor becomes the display's (at
  least 1.0), and if width or height is unset and the display is less than
  720 pixels high, the window goes fullscreen at the display's size with a UI
  scale of 1.1;
- the assets root defaults to `assets`, the budget is converted to bytes, and
  a manifest is required by default only in untrusted mode.

`preferences_path()` gives the per-user location of `prefs.json`, and
`parse_security_mode` maps `"untrusted"` to `SecurityMode.UNTRUSTED` and any
other name to `SecurityMode.TRUSTED`.

## What this package does not do

It has no script engine: it does not parse or compile JSON scripts, step
through events or apply choices, and it offers no way to author scripts.
It keeps no scene state and produces no UI views or text summaries of the
current event. It does not read or write user preferences or save files;
`preferences_path` only names where preferences would live. It opens no
window and draws nothing: there is no renderer, input handling or audio
playback, and the only command is `vnengine manifest`.