"""YAML configuration for lso, loaded with OmegaConf.

``config/default.yaml`` holds every key under a single ``lso`` root.  Files
in the ``detection/``, ``tracking/``, ``recording/`` and ``telemetry/``
directories next to it are merged on top, in name order, so a deployment can
tighten one concern without copying the whole file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

from omegaconf import DictConfig, OmegaConf

OVERLAY_DIRS = ("detection", "tracking", "recording", "telemetry")


def to_plain_dict(cfg: Any) -> dict[str, Any]:
    """Copy a config section into a plain dict; ``None`` gives ``{}``.

    The ``from_omegaconf`` constructors all go through this, so they accept
    OmegaConf nodes and plain dicts alike.
    """
    if cfg is None:
        return {}
    if not isinstance(cfg, DictConfig):
        return dict(cfg)
    plain = OmegaConf.to_container(cfg, resolve=True)
    assert isinstance(plain, dict)
    return plain


def _overlays(config_dir: Path) -> Iterator[Path]:
    for name in OVERLAY_DIRS:
        overlay_dir = config_dir / name
        if overlay_dir.is_dir():
            yield from sorted(overlay_dir.glob("*.yaml"))


class LsoConfig:
    """The loaded ``lso`` configuration tree plus command line overrides."""

    def __init__(self, config_path: str | Path = "config/default.yaml"):
        self.path = Path(config_path)
        self._tree: DictConfig | None = None

    def load(self, validate: bool = False) -> DictConfig:
        """Read the base file and its overlays.

        With *validate*, or ``lso.system.validate_config`` set in the files,
        the merged tree is checked against the pydantic schema and
        ``pydantic.ValidationError`` propagates.
        """
        if not self.path.is_file():
            raise FileNotFoundError(f"Config not found: {self.path}")

        tree = OmegaConf.load(self.path)
        for overlay in _overlays(self.path.parent):
            tree = OmegaConf.merge(tree, OmegaConf.load(overlay))
        assert isinstance(tree, DictConfig)

        if validate or OmegaConf.select(tree, "lso.system.validate_config", default=False):
            from lso.core.config_schema import validate_config

            validate_config(OmegaConf.to_container(tree, resolve=True))

        self._tree = tree
        return tree

    @property
    def cfg(self) -> DictConfig:
        if self._tree is None:
            raise RuntimeError(f"{self.path} has not been loaded")
        return self._tree

    def override(self, dotpath: str, value: Any) -> None:
        """Set one key, e.g. ``override("lso.telemetry.include_ki", True)``."""
        OmegaConf.update(self.cfg, dotpath, value)

    def section(self, name: str) -> Any:
        """``lso.<name>``, or ``None`` when the files leave it out."""
        return OmegaConf.select(self.cfg, f"lso.{name}", default=None)
