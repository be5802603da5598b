import pytest

from rve_core.park import MainViewport
from rve_core.scenario import dump_park
from rve_editor.core.config_store import ConfigModel
from rve_editor.core.editor import VehicleEditor, clamp
from rve_editor.core.selector import VehicleSelector
from rve_editor.core.settings import VehicleSettings, capture_settings


def _editor(park, config=None, viewport=None, ride_index=0, train_index=0, vehicle_index=0):
    selector = VehicleSelector(park)
    editor = VehicleEditor(selector, park, config=config, viewport=viewport)
    selector.reload_ride_list()
    selector.select_ride(ride_index, train_index, vehicle_index)
    return selector, editor


def _seats(park, *entity_ids):
    return [park.get_car(entity_id).seats for entity_id in entity_ids]


def test_clamp():
    assert clamp(40, 0, 32) == 32
    assert clamp(-1, 0, 32) == 0
    assert clamp(7, 0, 32) == 7


def test_publishes_selected_vehicle(park):
    _, editor = _editor(park)

    assert [t.type_id for t in editor.ride_type_list.get()] == [10, 20]
    assert editor.ride_type_index.get() == 0
    assert editor.ride_type.name == "Steel Coaster"
    assert editor.variant.get() == 0
    assert editor.seats.get() == 4
    assert editor.mass.get() == 800
    assert editor.sound_range.get() == 255
    assert editor.is_powered.get() is False


def test_powered_vehicle_is_flagged(park):
    _, editor = _editor(park, ride_index=1)

    assert editor.is_powered.get() is True
    assert editor.powered_acceleration.get() == 40
    assert editor.powered_max_speed.get() == 60


def test_follows_selection_changes(park):
    selector, editor = _editor(park)

    selector.select_vehicle(2)
    assert editor.track_progress.get() == 24

    selector.select_ride(2)
    assert editor.is_powered.get() is False
    assert editor.get_settings() is None


def test_seat_count_is_clamped(park):
    _, editor = _editor(park)

    editor.set_seat_count(40)
    assert editor.seats.get() == 32
    assert park.get_car(100).seats == 32

    editor.set_seat_count(-3)
    assert editor.seats.get() == 0


def test_limits_follow_config(park):
    _, editor = _editor(park, config=ConfigModel(max_seats=8))

    editor.set_seat_count(20)
    assert editor.seats.get() == 8

    editor.update_config(ConfigModel(max_seats=16))
    editor.set_seat_count(20)
    assert editor.seats.get() == 16


def test_mass_and_powered_values_are_clamped(park):
    _, editor = _editor(park, ride_index=1)

    editor.set_mass(70_000)
    editor.set_powered_acceleration(300)
    editor.set_powered_maximum_speed(-5)

    car = park.get_car(200)
    assert (car.mass, car.powered_acceleration, car.powered_max_speed) == (65_535, 255, 0)
    assert editor.mass.get() == 65_535


def test_variant_is_clamped_to_ride_type(park):
    _, editor = _editor(park)

    editor.set_variant(5)

    assert editor.variant.get() == 1


def test_ride_type_change_clamps_variant(park):
    _, editor = _editor(park)

    editor.set_ride_type(1)
    editor.set_variant(2)
    assert editor.ride_type.name == "Monorail"
    assert editor.is_powered.get() is True

    editor.set_ride_type(0)
    car = park.get_car(100)
    assert car.ride_type_id == 10
    assert car.variant == 1
    assert editor.is_powered.get() is False


def test_move_wraps_track_progress(park):
    _, editor = _editor(park)

    editor.move(10)
    assert editor.track_progress.get() == 10

    editor.move(0x7FFFFFFF - 10)
    editor.move(1)
    assert editor.track_progress.get() == -0x80000000


def test_sound_range_rejects_unsupported_ids(park):
    _, editor = _editor(park)

    editor.set_sound_range(7)
    assert park.get_car(100).sound_range == 255

    editor.set_sound_range(3)
    assert editor.sound_range.get() == 3


def test_refresh_picks_up_external_changes(park):
    _, editor = _editor(park)

    park.write_car_field(100, "seats", 7)
    park.step()
    editor.refresh()

    assert editor.seats.get() == 7
    assert editor.track_progress.get() == 1


def test_refresh_revalidates_when_vehicle_vanishes(park):
    selector, editor = _editor(park)

    park.remove_entity(100)
    editor.refresh()

    assert selector.vehicle.get().entity_id == 101
    assert editor.track_progress.get() == 12


def test_setters_ignore_vanished_vehicle(park):
    selector, editor = _editor(park)
    park.remove_entity(100)

    editor.set_mass(5)
    editor.move(3)

    assert editor.mass.get() == 800
    assert editor.get_settings() is None


def test_get_settings_captures_every_attribute(park):
    _, editor = _editor(park, ride_index=1)

    assert editor.get_settings() == VehicleSettings(
        ride_type_id=20,
        variant=1,
        track_progress=0,
        seats=12,
        mass=2000,
        powered_acceleration=40,
        powered_max_speed=60,
        sound_range=4,
    )


def test_apply_settings_round_trip(park):
    selector, editor = _editor(park)
    settings = VehicleSettings(20, 2, 500, 10, 1500, 30, 90, 1)

    assert editor.apply_settings(settings)

    assert capture_settings(selector.vehicle.get()) == settings
    assert editor.seats.get() == 10
    assert editor.is_powered.get() is True


def test_apply_settings_clamps_values(park):
    selector, editor = _editor(park)
    settings = VehicleSettings(10, 9, 0, 40, 800, 0, 0, 42)

    editor.apply_settings(settings)

    car = park.get_car(100)
    assert car.seats == 32
    assert car.variant == 1
    assert car.sound_range == 255


def test_apply_settings_without_vehicle(park):
    _, editor = _editor(park, ride_index=2)

    assert editor.apply_settings(VehicleSettings(10, 0, 0, 4, 800, 0, 0, 255)) is False


@pytest.mark.parametrize("k", [0, 1, 2])
def test_apply_to_following_vehicles(park, k):
    selector, editor = _editor(park, vehicle_index=k)
    editor.set_seat_count(8)

    applied = editor.apply_settings_to_current_train(editor.get_settings(), k + 1)

    assert applied == 2 - k
    assert _seats(park, 100, 101, 102) == [4] * k + [8] * (3 - k)
    assert _seats(park, 103, 104) == [4, 4]


@pytest.mark.parametrize("k", [0, 1, 2])
def test_apply_to_preceding_vehicles(park, k):
    selector, editor = _editor(park, vehicle_index=k)
    editor.set_seat_count(8)

    applied = editor.apply_settings_to_current_train(editor.get_settings(), 0, k)

    assert applied == k
    assert _seats(park, 100, 101, 102) == [8] * (k + 1) + [4] * (2 - k)


def test_apply_copies_track_progress(park):
    _, editor = _editor(park, vehicle_index=2)

    editor.apply_settings_to_current_train(editor.get_settings(), 0)

    assert [park.get_car(e).track_progress for e in (100, 101, 102)] == [24, 24, 24]


def test_apply_range_bounds_are_clamped(park):
    _, editor = _editor(park)
    settings = editor.get_settings()

    assert editor.apply_settings_to_current_train(settings, 10) == 0
    assert editor.apply_settings_to_current_train(settings, 0, -1) == 0
    assert editor.apply_settings_to_current_train(settings, -4, 99) == 3


def test_apply_is_idempotent(park):
    _, editor = _editor(park, vehicle_index=1)
    editor.set_mass(1234)
    settings = editor.get_settings()

    editor.apply_settings_to_current_train(settings, 0)
    first = dump_park(park)
    editor.apply_settings_to_current_train(settings, 0)

    assert dump_park(park) == first


def test_apply_to_all_trains(park):
    _, editor = _editor(park)
    editor.set_seat_count(6)

    assert editor.apply_settings_to_all_trains(editor.get_settings()) == 5
    assert _seats(park, 100, 101, 102, 103, 104) == [6] * 5
    assert park.get_car(200).seats == 12


def test_apply_skips_vanished_vehicles(park):
    _, editor = _editor(park)
    editor.set_seat_count(9)
    park.remove_entity(101)

    applied = editor.apply_settings_to_current_train(editor.get_settings(), 0)

    assert applied == 2
    assert _seats(park, 100, 102) == [9, 9]


def test_locate_scrolls_viewport(park):
    viewport = MainViewport()
    _, editor = _editor(park, viewport=viewport)

    assert editor.locate()
    assert viewport.position == (320, 640, 48)


def test_locate_without_viewport_or_vehicle(park):
    _, editor = _editor(park)
    assert editor.locate() is False

    viewport = MainViewport()
    _, editor = _editor(park, viewport=viewport, ride_index=2)
    assert editor.locate() is False
    assert viewport.position is None


def test_refresh_repairs_train_index_after_train_removed(park):
    selector, editor = _editor(park, train_index=1)

    park.remove_train(1, 0)
    editor.refresh()

    assert selector.train_index == 0
    assert len(selector.trains_on_ride.get()) == 1
    assert selector.vehicle.get().entity_id == 103

    assert selector.select_vehicle(1)
    assert selector.vehicle.get().entity_id == 104


def test_refresh_keeps_vehicle_when_one_in_front_is_removed(park):
    selector, editor = _editor(park, vehicle_index=2)

    park.remove_entity(100)
    editor.refresh()

    vehicles = selector.vehicles_on_train.get()
    assert [v.entity_id for v in vehicles] == [101, 102]
    assert selector.vehicle_index < len(vehicles)
    assert selector.vehicle.get().entity_id == 102
    assert editor.track_progress.get() == 24


def test_apply_to_all_trains_after_train_removed(park):
    _, editor = _editor(park, train_index=1)
    editor.set_seat_count(6)

    park.remove_train(1, 0)
    editor.refresh()

    assert editor.apply_settings_to_all_trains(editor.get_settings()) == 2
    assert _seats(park, 103, 104) == [6, 6]
