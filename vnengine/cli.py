"""Command-line tools for preparing game assets."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Optional, Union

from vnengine.assets import AssetEntry, AssetManifest, sha256_hex

PathLike = Union[str, Path]


def _walk_files(root: Path) -> Iterator[tuple[Path, str]]:
    if root.is_file():
        yield root, ""
        return
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            path = Path(dirpath) / name
            if path.is_dir():
                continue
            yield path, str(path.relative_to(root)).replace("\\", "/")


def build_manifest(root: PathLike) -> AssetManifest:
    """Hash every file below ``root``; a missing root gives an empty manifest."""
    root = Path(root)
    assets: dict[str, AssetEntry] = {}
    for path, rel in _walk_files(root):
        data = path.read_bytes()
        assets[rel] = AssetEntry(sha256=sha256_hex(data), size=len(data))
    return AssetManifest(manifest_version=1, assets=dict(sorted(assets.items())))


def write_manifest(root: PathLike, output: PathLike) -> AssetManifest:
    """Build the manifest for ``root`` and write it to ``output`` as JSON."""
    manifest = build_manifest(root)
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(manifest.to_json(), encoding="utf-8")
    return manifest


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vnengine", description="Visual Novel Engine CLI")
    commands = parser.add_subparsers(dest="command", required=True)
    manifest = commands.add_parser(
        "manifest", help="Build an asset manifest with sha256 hashes."
    )
    manifest.add_argument("assets", type=Path)
    manifest.add_argument("-o", "--output", type=Path, required=True)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line; returns the process exit status."""
    args = _parser().parse_args(argv)
    try:
        if args.command == "manifest":
            write_manifest(args.assets, args.output)
    except OSError as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())