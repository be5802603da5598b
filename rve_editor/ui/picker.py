"""Eyedropper tool: click a vehicle in the park to select it."""
from __future__ import annotations

import logging

from rve_core.world import ToolHost
from rve_editor.core.observable import Observable
from rve_editor.core.selector import VehicleSelector

log = logging.getLogger(__name__)

PICKER_TOOL_ID = "rve-pick-vehicle"


class VehiclePicker:
    """
    Wraps the host's modal tool. The tool stays active until the user toggles
    it off or a click lands on a vehicle that could be selected.
    """

    def __init__(self, selector: VehicleSelector, tool_host: ToolHost) -> None:
        self._selector = selector
        self._tool_host = tool_host
        self.picking: Observable[bool] = Observable(False)

    @property
    def is_active(self) -> bool:
        return self._tool_host.active_tool_id == PICKER_TOOL_ID

    def toggle(self, pressed: bool) -> None:
        if pressed:
            self.activate()
        else:
            self.cancel()

    def activate(self) -> None:
        log.debug("Picker activated")
        self._tool_host.activate(PICKER_TOOL_ID, self._on_entity_clicked, self._on_finish)
        self.picking.set(True)

    def cancel(self) -> None:
        if self.is_active:
            self._tool_host.cancel()

    def _on_entity_clicked(self, entity_id: int) -> None:
        if self._selector.select_entity(entity_id):
            log.debug(f"Picked entity {entity_id}")
            self.cancel()
        else:
            log.debug(f"Picked entity {entity_id} is not a ride vehicle")

    def _on_finish(self) -> None:
        self.picking.set(False)
