"""Window and asset configuration, resolved against the display in use."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from platformdirs import user_config_dir

from vnengine.assets import SecurityMode

_DEFAULT_WIDTH = 1280.0
_DEFAULT_HEIGHT = 720.0
_DEFAULT_BUDGET_MB = 128
_SMALL_DISPLAY_HEIGHT = 720.0
_SMALL_DISPLAY_UI_SCALE = 1.1


def parse_security_mode(mode: str) -> SecurityMode:
    """Map ``"untrusted"`` to untrusted mode; any other name means trusted."""
    return SecurityMode.UNTRUSTED if mode == "untrusted" else SecurityMode.TRUSTED


@dataclass(frozen=True)
class DisplayInfo:
    """Size and scale of the display the window will open on."""

    width: float = 0.0
    height: float = 0.0
    scale_factor: float = 0.0


@dataclass(frozen=True)
class ResolvedConfig:
    """Configuration with every optional setting filled in."""

    title: str
    width: float
    height: float
    fullscreen: bool
    scale_factor: float
    ui_scale: float
    assets_root: Path
    asset_cache_budget_bytes: int
    security_mode: SecurityMode
    manifest_path: Optional[Path]
    require_manifest: bool


@dataclass
class VnConfig:
    """Settings a game asks for; unset values are chosen when resolved."""

    title: str = "Visual Novel"
    width: Optional[float] = None
    height: Optional[float] = None
    fullscreen: bool = False
    scale_factor: Optional[float] = None
    assets_root: Optional[Path] = None
    asset_cache_budget_mb: Optional[int] = _DEFAULT_BUDGET_MB
    security_mode: SecurityMode = SecurityMode.TRUSTED
    manifest_path: Optional[Path] = None
    require_manifest: Optional[bool] = None

    def resolve(self, display: Optional[DisplayInfo] = None) -> ResolvedConfig:
        """Fill in defaults, going fullscreen on small displays when no size is set."""
        width = self.width if self.width is not None else _DEFAULT_WIDTH
        height = self.height if self.height is not None else _DEFAULT_HEIGHT
        fullscreen = self.fullscreen
        ui_scale = 1.0
        scale_factor = self.scale_factor if self.scale_factor is not None else 1.0

        if display is not None:
            if self.scale_factor is None:
                scale_factor = max(display.scale_factor, 1.0)
            if (self.width is None or self.height is None) and (
                display.height < _SMALL_DISPLAY_HEIGHT
            ):
                fullscreen = True
                width = display.width
                height = display.height
                ui_scale = _SMALL_DISPLAY_UI_SCALE

        budget_mb = (
            self.asset_cache_budget_mb
            if self.asset_cache_budget_mb is not None
            else _DEFAULT_BUDGET_MB
        )
        require_manifest = (
            self.require_manifest
            if self.require_manifest is not None
            else self.security_mode is SecurityMode.UNTRUSTED
        )
        return ResolvedConfig(
            title=self.title,
            width=width,
            height=height,
            fullscreen=fullscreen,
            scale_factor=scale_factor,
            ui_scale=ui_scale,
            assets_root=Path(self.assets_root) if self.assets_root is not None else Path("assets"),
            asset_cache_budget_bytes=budget_mb * 1024 * 1024,
            security_mode=self.security_mode,
            manifest_path=Path(self.manifest_path) if self.manifest_path is not None else None,
            require_manifest=require_manifest,
        )

    def preferences_path(self) -> Path:
        """Where the player's preferences are kept."""
        try:
            directory = user_config_dir("visual_novel", "vnengine")
        except (OSError, KeyError, RuntimeError):
            return Path("prefs.json")
        if not directory:
            return Path("prefs.json")
        return Path(directory) / "prefs.json"