"""
main.py

Entry point: loads a park scenario, selects a vehicle, edits it and prints the
resulting park as JSON.

    python -m rve_editor.main park.json --ride 1 --train 0 --vehicle 2 \
        --set seats=8 --set mass=1200 --apply following
"""
import argparse
import json
import logging
import os
import sys
from collections import deque
from typing import Callable, Dict, Optional, Sequence, Tuple

from PyQt5 import QtCore

from rve_core.park import MainViewport, Park
from rve_core.scenario import ScenarioError, dump_park, load_scenario
from rve_editor.core.config import Config
from rve_editor.core.config_backend import ConfigBackend
from rve_editor.core.config_store import ConfigStore, set_config_store
from rve_editor.core.editor import VehicleEditor
from rve_editor.core.selector import VehicleSelector
from rve_editor.core.session_state import SessionState
from rve_editor.ui.editor_presenter import VehicleEditorPresenter
from rve_editor.updater.updater import EditorUpdater

__version__ = "0.3.0"

log = logging.getLogger(__name__)


class CappedFileHandler(logging.FileHandler):
    """A FileHandler that keeps only the last N lines of logs."""
    def __init__(self, filename, max_lines=200, mode="a", encoding="utf-8"):
        super().__init__(filename, mode=mode, encoding=encoding, delay=True)
        self.max_lines = max_lines
        self._buffer = deque(maxlen=max_lines)

    def emit(self, record):
        msg = self.format(record)
        self._buffer.append(msg + "\n")
        # Flush buffer to file every 10 lines or on error
        if len(self._buffer) % 10 == 0 or record.levelno >= logging.ERROR:
            self._write_buffer()

    def _write_buffer(self):
        with open(self.baseFilename, "w", encoding=self.encoding) as f:
            f.writelines(self._buffer)

    def close(self):
        # Lines since the last periodic flush
        if self._buffer:
            self._write_buffer()
        super().close()


def configure_logging(verbose: bool = False, log_path: Optional[str] = None) -> None:
    if log_path is None:
        log_path = os.path.join(os.path.dirname(sys.argv[0]), "editor_log.txt")
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[CappedFileHandler(log_path, max_lines=200), logging.StreamHandler(sys.stderr)],
    )


# ----------------------------------------------------------------------
# --set attr=value
# ----------------------------------------------------------------------
def _set_ride_type(editor: VehicleEditor, type_id: int) -> None:
    for index, ride_type in enumerate(editor.ride_type_list.get() or []):
        if ride_type.type_id == type_id:
            editor.set_ride_type(index)
            return
    raise ValueError(f"unknown ride type {type_id}")


def _set_track_progress(editor: VehicleEditor, value: int) -> None:
    current = editor.track_progress.get() or 0
    editor.move(value - current)


SETTERS: Dict[str, Callable[[VehicleEditor, int], None]] = {
    "ride_type": _set_ride_type,
    "variant": lambda editor, v: editor.set_variant(v),
    "track_progress": _set_track_progress,
    "seats": lambda editor, v: editor.set_seat_count(v),
    "mass": lambda editor, v: editor.set_mass(v),
    "powered_acceleration": lambda editor, v: editor.set_powered_acceleration(v),
    "powered_max_speed": lambda editor, v: editor.set_powered_maximum_speed(v),
    "sound_range": lambda editor, v: editor.set_sound_range(v),
}

APPLY_ACTIONS = ("all", "preceding", "following", "trains")


def parse_assignment(text: str) -> Tuple[str, int]:
    """Parse ``attr=value`` (value may be hex, e.g. ``0xff``)."""
    name, sep, raw = text.partition("=")
    name = name.strip()
    if not sep or name not in SETTERS:
        raise argparse.ArgumentTypeError(
            f"expected one of {', '.join(SETTERS)} as attr=value, got '{text}'"
        )
    try:
        return name, int(raw.strip(), 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{raw}' is not an integer") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rve-editor", description="Edit ride vehicles in a park scenario."
    )
    parser.add_argument("scenario", help="park scenario (JSON)")
    parser.add_argument("--ride", type=int, help="ride id to select (default: first ride)")
    parser.add_argument("--train", type=int, default=0, help="train index")
    parser.add_argument("--vehicle", type=int, default=0, help="vehicle index")
    parser.add_argument("--entity", type=int, help="select the vehicle with this entity id")
    parser.add_argument(
        "--set", dest="assignments", action="append", default=[], type=parse_assignment,
        metavar="ATTR=VALUE", help=f"edit the selected vehicle ({', '.join(SETTERS)})",
    )
    parser.add_argument(
        "--apply", choices=APPLY_ACTIONS,
        help="copy the selected vehicle's settings to other vehicles",
    )
    parser.add_argument("--watch", type=int, metavar="MS", help="run the park for MS milliseconds")
    parser.add_argument("--output", help="write the park JSON here instead of stdout")
    parser.add_argument("--config", help="path to settings.ini")
    parser.add_argument("--log-file", help="log file (default: editor_log.txt next to the script)")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _select(args: argparse.Namespace, selector: VehicleSelector) -> bool:
    if args.entity is not None:
        return selector.select_entity(args.entity)
    if args.ride is None:
        return selector.select_ride(0, args.train, args.vehicle)
    for index, ride in enumerate(selector.rides_in_park.get() or []):
        if ride.ride_id == args.ride:
            return selector.select_ride(index, args.train, args.vehicle)
    return False


def _apply(action: str, presenter: VehicleEditorPresenter) -> int:
    if action == "all":
        return presenter.apply_to_all_vehicles()
    if action == "preceding":
        return presenter.apply_to_preceding_vehicles()
    if action == "following":
        return presenter.apply_to_following_vehicles()
    return presenter.apply_to_all_trains()


def _watch(park: Park, editor: VehicleEditor, duration_ms: int, poll_ms: int) -> None:
    app = QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])
    updater = EditorUpdater(editor, poll_ms=poll_ms, advance=park.step)
    updater.error.connect(lambda msg: log.error(f"Updater: {msg}"))
    QtCore.QTimer.singleShot(max(0, duration_ms), app.quit)
    updater.start()
    app.exec_()
    updater.stop()


def run(args: argparse.Namespace) -> int:
    if args.config:
        try:
            set_config_store(ConfigStore(ConfigBackend(args.config)))
        except ValueError as e:
            log.error(str(e))
            return 1
    cfg = Config.current()

    try:
        park = load_scenario(args.scenario)
    except ScenarioError as e:
        log.error(str(e))
        return 1

    selector = VehicleSelector(park)
    editor = VehicleEditor(selector, park, config=cfg, viewport=MainViewport())
    Config.subscribe(editor.update_config)
    presenter = VehicleEditorPresenter(selector, editor, session=SessionState(), config=cfg)
    presenter.show()

    requested = args.ride is not None or args.entity is not None
    if not _select(args, selector) and requested:
        log.error("Requested vehicle not found in the park")
        return 1

    vehicle = selector.vehicle.get()
    if vehicle is None and (args.assignments or args.apply):
        log.error("No vehicle selected; nothing to edit")
        return 1

    for name, value in args.assignments:
        try:
            SETTERS[name](editor, value)
        except ValueError as e:
            log.error(f"--set {name}={value}: {e}")
            return 1

    if args.apply:
        count = _apply(args.apply, presenter)
        log.info(f"Applied settings of vehicle {vehicle.entity_id} to {count} vehicle(s)")

    if args.watch:
        _watch(park, editor, args.watch, cfg.poll_ms)

    presenter.close()

    payload = json.dumps(dump_park(park), indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(payload + "\n")
        log.info(f"Wrote {args.output}")
    else:
        print(payload)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose, args.log_file)
    log.info(f"Starting ride vehicle editor {__version__}")
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
