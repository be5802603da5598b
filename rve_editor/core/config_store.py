"""QObject-based singleton store for configuration management."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from PyQt5 import QtCore

from rve_editor.core.config_backend import ConfigBackend, EDITOR_SECTION, LIMITS_SECTION


# Vehicles refuse more than 32 guests, leaving them stuck just before entering.
DEFAULT_MAX_SEATS = 32
# Mass is stored as an unsigned 16-bit value.
DEFAULT_MAX_MASS = 65_535
# Powered acceleration and maximum speed are stored as unsigned bytes.
DEFAULT_MAX_POWERED = 255


@dataclass
class ConfigModel:
    # Editor behaviour
    poll_ms: int = 250
    show_ids: bool = False
    restore_selection: bool = True

    # Attribute limits
    max_seats: int = DEFAULT_MAX_SEATS
    max_mass: int = DEFAULT_MAX_MASS
    max_powered: int = DEFAULT_MAX_POWERED

    # Validation
    min_poll_ms: int = 20


class ConfigStore(QtCore.QObject):
    config_changed = QtCore.pyqtSignal(object)

    def __init__(self, backend: Optional[ConfigBackend] = None) -> None:
        super().__init__()
        self._backend = backend or ConfigBackend()
        self._config = ConfigModel()
        self.reload()

    @property
    def config(self) -> ConfigModel:
        return self._config

    @property
    def backend(self) -> ConfigBackend:
        return self._backend

    def reload(self) -> ConfigModel:
        data = self._backend.load()
        cfg = ConfigModel()

        self._apply_editor_settings(cfg, data)
        self._apply_limits(cfg, data)

        self._config = cfg
        self.config_changed.emit(cfg)
        return cfg

    def _apply_editor_settings(self, cfg: ConfigModel, data: Mapping[str, Mapping[str, str]]) -> None:
        backend = self._backend
        cfg.poll_ms = max(
            cfg.min_poll_ms, backend.get_int(data, EDITOR_SECTION, "poll_ms", cfg.poll_ms)
        )
        cfg.show_ids = backend.get_bool(data, EDITOR_SECTION, "show_ids", cfg.show_ids)
        cfg.restore_selection = backend.get_bool(
            data, EDITOR_SECTION, "restore_selection", cfg.restore_selection
        )

    def _apply_limits(self, cfg: ConfigModel, data: Mapping[str, Mapping[str, str]]) -> None:
        backend = self._backend
        cfg.max_seats = backend.get_int(data, LIMITS_SECTION, "max_seats", cfg.max_seats)
        cfg.max_mass = backend.get_int(data, LIMITS_SECTION, "max_mass", cfg.max_mass)
        cfg.max_powered = backend.get_int(data, LIMITS_SECTION, "max_powered", cfg.max_powered)

        for name, upper in (
            ("max_seats", 0xFF),
            ("max_mass", 0xFFFF),
            ("max_powered", 0xFF),
        ):
            value = getattr(cfg, name)
            if value < 0 or value > upper:
                raise ValueError(
                    f"[{LIMITS_SECTION}] {name} must be between 0 and {upper}, got {value}"
                )


_CONFIG_STORE: Optional[ConfigStore] = None


def get_config_store() -> ConfigStore:
    global _CONFIG_STORE
    if _CONFIG_STORE is None:
        _CONFIG_STORE = ConfigStore()
    return _CONFIG_STORE


def set_config_store(store: Optional[ConfigStore]) -> None:
    """Replace the shared store (e.g. after ``--config`` on the command line)."""
    global _CONFIG_STORE
    _CONFIG_STORE = store


__all__ = [
    "ConfigModel",
    "ConfigStore",
    "DEFAULT_MAX_MASS",
    "DEFAULT_MAX_POWERED",
    "DEFAULT_MAX_SEATS",
    "get_config_store",
    "set_config_store",
]
