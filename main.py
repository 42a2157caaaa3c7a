from kivymd.app import MDApp
from kivy.uix.screenmanager import ScreenManager, NoTransition
from pathlib import Path
import json
import logging

from guided_session import settings
from guided_session.controller import SessionController, SessionListener
from guided_session.platform import build_capabilities
from guided_session.progress import DayProgress, apply_outcome, apply_pause, day_key
from guided_session.snapshot import SnapshotStore
from guided_session.steps import steps_from_api_blocks
from ui.screens import GuidedSessionScreen

DATA_DIR = Path(__file__).resolve().parent / "data"
SAMPLE_DAY_PATH = DATA_DIR / "sample_day.json"
PROGRESS_PATH = DATA_DIR / "progress.json"


def load_day(path: Path = SAMPLE_DAY_PATH) -> dict:
    """Return the training day stored at ``path``."""
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def load_progress(key: str, path: Path = PROGRESS_PATH) -> DayProgress:
    if path.exists():
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
            if key in data:
                return DayProgress.from_dict(data[key])
        except (OSError, ValueError, KeyError):
            logging.warning("Progress file %s unreadable, starting fresh", path)
    return DayProgress(day_key=key)


def save_progress(progress: DayProgress, path: Path = PROGRESS_PATH) -> None:
    data = {}
    if path.exists():
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            logging.warning("Overwriting unreadable progress file %s", path)
    data[progress.day_key] = progress.to_dict()
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(data, fh)


class GuidedSessionApp(MDApp, SessionListener):
    controller: SessionController | None = None
    snapshot_store: SnapshotStore | None = None

    def build(self):
        day = load_day()
        self.week_number = day.get("weekNumber", 1)
        self.day_name = day.get("dayName", "")
        steps = steps_from_api_blocks(day.get("bloques"))
        self.total_exercises = len(steps)
        clock, announcer, trace = build_capabilities()
        self.controller = SessionController(
            steps,
            self,
            clock,
            announcer=announcer,
            trace=trace,
            trackable_exercises=settings.trackable_exercises(),
            week_number=self.week_number,
            day_name=self.day_name,
        )
        self.snapshot_store = SnapshotStore()

        manager = ScreenManager(transition=NoTransition())
        self.session_screen = GuidedSessionScreen(name="session", controller=self.controller)
        manager.add_widget(self.session_screen)
        return manager

    def on_start(self):
        snapshot = self.snapshot_store.load()
        if snapshot and (snapshot.week_number, snapshot.day_name) == (
            self.week_number,
            self.day_name,
        ):
            try:
                self.controller.resume(snapshot)
                logging.info("Resumed guided session at step %s", snapshot.index)
            except ValueError:
                logging.exception("Saved session does not fit this day, starting over")
                self.snapshot_store.clear()
        if self.controller.state == "idle":
            self.controller.start()
        self.session_screen.refresh()

    @property
    def progress_key(self) -> str:
        return day_key(self.week_number, self.day_name)

    def on_close(self, outcome):
        self.snapshot_store.clear()
        progress = apply_outcome(
            load_progress(self.progress_key), outcome, self.total_exercises
        )
        save_progress(progress)
        logging.info(
            "Session %s, %d of %d exercises done",
            outcome.reason.value,
            len(progress.completed_indices),
            self.total_exercises,
        )
        self.stop()

    def on_pause_and_exit(self, snapshot, visited_indices):
        self.snapshot_store.save(snapshot)
        progress = apply_pause(
            load_progress(self.progress_key), snapshot, visited_indices, self.total_exercises
        )
        save_progress(progress)
        self.stop()

    def on_stop(self):
        if self.controller is not None:
            self.controller.announcer.shutdown()


if __name__ == "__main__":
    GuidedSessionApp().run()
