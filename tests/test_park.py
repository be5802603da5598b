import pytest

from rve_core.model import EntityLocation, RideType, TrainHandle
from rve_core.park import Park, SimulatedToolHost, clamp_to_type, wrap_i32
from rve_core.vehicle import EntityNotFoundError, RideVehicle


def test_wrap_i32():
    assert wrap_i32(0x7FFFFFFF + 1) == -0x80000000
    assert wrap_i32(-0x80000000 - 1) == 0x7FFFFFFF
    assert wrap_i32(42) == 42


@pytest.mark.parametrize(
    "value, type_name, expected",
    [(300, "u8", 255), (-1, "u8", 0), (70_000, "u16", 65_535), (12, "u16", 12)],
)
def test_clamp_to_type(value, type_name, expected):
    assert clamp_to_type(value, type_name) == expected


def test_world_queries(park):
    assert [r.ride_id for r in park.list_rides_in_park()] == [1, 2, 3]
    assert park.list_trains(1) == [TrainHandle(1, 0), TrainHandle(1, 1)]
    assert park.list_trains(99) == []
    assert [v.entity_id for v in park.list_vehicles(1, 1)] == [103, 104]
    assert park.list_vehicles(1, 5) == []
    assert park.find_entity(102) == EntityLocation(1, 0, 2)
    assert park.find_entity(999) is None


def test_write_car_field_clamps_to_storage_width(park):
    assert park.write_car_field(100, "seats", 300) == 255
    assert park.write_car_field(100, "mass", -5) == 0
    assert park.get_car(100).seats == 255


def test_write_unknown_field_or_entity(park):
    with pytest.raises(KeyError):
        park.write_car_field(100, "colour", 1)
    with pytest.raises(EntityNotFoundError) as excinfo:
        park.write_car_field(999, "seats", 1)
    assert excinfo.value.entity_id == 999


def test_travel_by_wraps(park):
    park.travel_by(100, 0x7FFFFFFF)
    assert park.travel_by(100, 2) == -0x7FFFFFFF


def test_add_train_validation():
    park = Park()
    park.add_ride(1, "Ride")

    with pytest.raises(ValueError):
        park.add_train(1, [{"wheels": 4}])
    park.add_train(1, [{"entity_id": 5}])
    with pytest.raises(ValueError):
        park.add_train(1, [{"entity_id": 5}])
    with pytest.raises(KeyError):
        park.add_train(2, [{}])
    with pytest.raises(ValueError):
        park.add_ride(1, "Again")
    with pytest.raises(ValueError):
        park.add_ride_type(RideType(1, "Broken", variant_count=0))


def test_entity_ids_are_assigned_after_highest():
    park = Park()
    park.add_ride(1, "Ride")
    park.add_train(1, [{"entity_id": 7}, {}, {}])

    assert park.list_trains_raw(1) == [[7, 8, 9]]


def test_remove_entity_drops_empty_trains(park):
    park.remove_entity(103)
    park.remove_entity(104)

    assert park.list_trains(1) == [TrainHandle(1, 0)]
    assert not park.has_entity(103)


def test_remove_train_and_ride(park):
    park.remove_train(1, 0)
    assert [v.entity_id for v in park.list_vehicles(1, 0)] == [103, 104]
    assert park.get_car(100) is None

    park.remove_ride(1)
    assert park.find_entity(103) is None
    assert [r.ride_id for r in park.list_rides_in_park()] == [2, 3]


def test_step_moves_powered_cars_faster(park):
    park.step(2)

    assert park.get_car(100).track_progress == 2
    assert park.get_car(200).track_progress == 120


def test_vehicle_handle_tracks_entity(park):
    vehicle = RideVehicle(100, park)
    assert vehicle == RideVehicle(100, Park())
    assert vehicle.ride_type().name == "Steel Coaster"
    assert vehicle.set_seats(500) == 255

    park.remove_entity(100)

    assert not vehicle.exists()
    assert vehicle.try_get_car() is None
    with pytest.raises(EntityNotFoundError):
        vehicle.get_car()
    with pytest.raises(EntityNotFoundError):
        vehicle.set_mass(1)
    with pytest.raises(EntityNotFoundError):
        vehicle.travel_by(1)


def test_tool_host_replaces_active_tool():
    host = SimulatedToolHost()
    events = []
    host.activate("a", lambda e: events.append(("a", e)), lambda: events.append("a done"))
    host.click(1)
    host.activate("b", lambda e: events.append(("b", e)), lambda: events.append("b done"))
    host.click(2)
    host.cancel()
    host.click(3)

    assert events == [("a", 1), "a done", ("b", 2), "b done"]
    assert host.active_tool_id is None
