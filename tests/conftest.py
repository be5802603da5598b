import pytest

from rve_core.model import RideType
from rve_core.park import Park
from rve_editor.core.session_state import reset_session_state


def build_sample_park() -> Park:
    """Two-train coaster, a powered monorail and a ride without trains."""
    park = Park()
    park.add_ride_type(RideType(10, "Steel Coaster", variant_count=2))
    park.add_ride_type(RideType(20, "Monorail", variant_count=3, powered_variants=frozenset({1, 2})))

    park.add_ride(1, "Coaster")
    coaster_car = {"ride_type_id": 10, "seats": 4, "mass": 800}
    park.add_train(
        1,
        [
            dict(coaster_car, entity_id=100, position=(320, 640, 48)),
            dict(coaster_car, entity_id=101, track_progress=12),
            dict(coaster_car, entity_id=102, track_progress=24),
        ],
    )
    park.add_train(1, [dict(coaster_car, entity_id=103), dict(coaster_car, entity_id=104)])

    park.add_ride(2, "Monorail")
    park.add_train(
        2,
        [
            {
                "entity_id": 200,
                "ride_type_id": 20,
                "variant": 1,
                "seats": 12,
                "mass": 2000,
                "powered_acceleration": 40,
                "powered_max_speed": 60,
                "sound_range": 4,
            }
        ],
    )

    park.add_ride(3, "Empty")
    return park


@pytest.fixture
def park() -> Park:
    return build_sample_park()


@pytest.fixture(autouse=True)
def _clean_session_state():
    reset_session_state()
    yield
    reset_session_state()
