"""Load and save park scenarios as JSON.

Layout::

    {
      "ride_types": [{"id": 10, "name": "Steel Coaster", "variant_count": 3,
                      "powered_variants": [2]}],
      "rides": [{"id": 1, "name": "Coaster",
                 "trains": [[{"entity_id": 100, "ride_type_id": 10, "seats": 4}]]}]
    }

Car entries accept every stored car field plus ``entity_id`` and ``position``.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from rve_core.model import RideType
from rve_core.park import DEFAULT_CAR_FIELDS, Park

log = logging.getLogger(__name__)


class ScenarioError(ValueError):
    """Raised when a scenario file cannot be turned into a park."""
    pass


def build_park(data: Mapping[str, Any]) -> Park:
    """Return a ``Park`` populated from the scenario mapping ``data``."""
    park = Park()
    try:
        for entry in data.get("ride_types", []):
            park.add_ride_type(
                RideType(
                    type_id=int(entry["id"]),
                    name=str(entry.get("name", f"Ride type {entry['id']}")),
                    variant_count=int(entry.get("variant_count", 1)),
                    powered_variants=frozenset(int(v) for v in entry.get("powered_variants", [])),
                )
            )
        for entry in data.get("rides", []):
            ride_id = int(entry["id"])
            park.add_ride(ride_id, str(entry.get("name", f"Ride {ride_id}")))
            for train in entry.get("trains", []):
                park.add_train(ride_id, [_car_fields(car) for car in train])
    except (KeyError, TypeError, ValueError) as exc:
        raise ScenarioError(f"Invalid scenario: {exc}") from exc
    return park


def _car_fields(car: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in car.items():
        if key == "position":
            out[key] = tuple(int(v) for v in value)
        else:
            out[key] = int(value)
    return out


def load_scenario(path: Union[str, Path]) -> Park:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ScenarioError(f"Cannot read scenario '{path}': {exc.strerror or exc}") from exc
    except json.JSONDecodeError as exc:
        raise ScenarioError(f"Scenario '{path}' is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ScenarioError(f"Scenario '{path}' must contain a JSON object")
    park = build_park(data)
    log.info(f"Loaded scenario {path.name}: {len(park.list_rides_in_park())} ride(s)")
    return park


def dump_park(park: Park) -> Dict[str, Any]:
    """Serialise ``park`` into the scenario layout."""
    ride_types = [
        {
            "id": t.type_id,
            "name": t.name,
            "variant_count": t.variant_count,
            "powered_variants": sorted(t.powered_variants),
        }
        for t in park.list_ride_types()
    ]
    rides: List[Dict[str, Any]] = []
    for ride in park.list_rides_in_park():
        trains = []
        for entity_ids in park.list_trains_raw(ride.ride_id):
            cars = []
            for entity_id in entity_ids:
                car = park.get_car(entity_id)
                if car is None:
                    continue
                entry: Dict[str, Any] = {"entity_id": car.entity_id}
                for name in DEFAULT_CAR_FIELDS:
                    entry[name] = getattr(car, name)
                entry["position"] = list(car.position)
                cars.append(entry)
            trains.append(cars)
        rides.append({"id": ride.ride_id, "name": ride.name, "trains": trains})
    return {"ride_types": ride_types, "rides": rides}
