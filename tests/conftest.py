import pytest

from lozsheet.database.db_manager import DBManager
from lozsheet.services.persistence_service import PersistenceController
from lozsheet.services.status_notifier import StatusNotifier
from lozsheet.sheet.derived_stats import DerivedStatsEngine
from lozsheet.sheet.field_store import FieldStore
from lozsheet.sheet.layout import build_field_specs


class ManualTimer:
    """Stand-in for threading.Timer that only fires when told to."""

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.callback()


class ManualTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, callback):
        timer = ManualTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def live(self):
        return [t for t in self.timers if t.started and not t.cancelled]

    def fire_all(self):
        """Let the quiet interval elapse for every timer still running."""
        fired = 0
        for timer in self.live:
            timer.fire()
            fired += 1
        return fired


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class MockIngestor:
    def __init__(self, result="data:image/png;base64,AAAA", error=None):
        self.result = result
        self.error = error
        self.calls = []

    def ingest(self, source):
        self.calls.append(source)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def timers():
    return ManualTimerFactory()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db():
    manager = DBManager(":memory:")
    manager.open()
    manager.create_tables()
    yield manager
    manager.close()


@pytest.fixture
def store():
    return FieldStore(build_field_specs())


@pytest.fixture
def engine(store):
    engine = DerivedStatsEngine(store)
    engine.recompute_all()
    return engine


@pytest.fixture
def notifier(clock):
    return StatusNotifier(notice_interval=2.5, clock=clock)


@pytest.fixture
def ingestor():
    return MockIngestor()


@pytest.fixture
def confirm_answers():
    """Append False to make the next confirmation decline."""
    return []


@pytest.fixture
def confirm(confirm_answers):
    prompts = []

    def _confirm(message):
        prompts.append(message)
        return confirm_answers.pop(0) if confirm_answers else True

    _confirm.prompts = prompts
    return _confirm


@pytest.fixture
def controller(store, engine, db, notifier, confirm, ingestor, timers):
    return PersistenceController(
        store,
        engine,
        db.storage,
        notifier,
        confirm=confirm,
        ingestor=ingestor,
        timer_factory=timers,
    )
