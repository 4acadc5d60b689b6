import pytest

from common.config import SpeakingSettings
from speaking.tracker import ParticipantEventKind, SpeakingTracker


class TestSpeakingTracker:
    @pytest.fixture
    def tracker(self):
        return SpeakingTracker("p1", now=0, name="Ada", settings=SpeakingSettings())

    def test_strike_accounting(self, tracker):
        tracker.on_signal(True, 1000)
        tracker.on_signal(False, 4000)
        assert tracker.total_time == 3000
        assert tracker.strike_time == 3000
        assert tracker.strike_start is None
        assert tracker.last_speaking_end == 4000

    def test_repeated_true_is_noop(self, tracker):
        tracker.on_signal(True, 1000)
        tracker.on_signal(True, 2500)
        assert tracker.strike_start == 1000
        tracker.on_signal(False, 3000)
        assert tracker.total_time == 2000

    def test_false_while_idle_is_noop(self, tracker):
        tracker.on_signal(False, 1000)
        assert tracker.last_speaking_end is None
        assert tracker.total_time == 0

    def test_live_time(self, tracker):
        assert tracker.live_time(500) == 0
        tracker.on_signal(True, 1000)
        assert tracker.is_speaking
        assert tracker.live_time(1750) == 750
        assert tracker.strike_time_at(1750) == 750
        assert tracker.total_time_at(1750) == 750

    def test_committed_plus_live(self, tracker):
        tracker.on_signal(True, 0)
        tracker.on_signal(False, 1000)
        tracker.on_signal(True, 2000)
        assert tracker.strike_time_at(2500) == 1500
        assert tracker.total_time_at(2500) == 1500

    def test_interrupt_keeps_total(self, tracker):
        tracker.on_signal(True, 0)
        tracker.on_signal(False, 1000)
        tracker.interrupt()
        assert tracker.strike_time == 0
        assert tracker.last_speaking_end is None
        assert tracker.strike_start is None
        assert tracker.total_time == 1000

    def test_total_time_is_monotonic(self, tracker):
        signals = [(True, 100), (True, 300), (False, 900), (False, 1000), (True, 1200), (False, 2000)]
        previous = 0
        for is_speaking, now in signals:
            tracker.on_signal(is_speaking, now)
            if now == 1000:
                tracker.interrupt()
            current = tracker.total_time_at(now)
            assert current >= previous
            previous = current
        assert tracker.total_time == 1600

    def test_close_commits_open_run(self, tracker):
        tracker.on_signal(True, 1000)
        tracker.close(1500)
        assert tracker.total_time == 500
        assert not tracker.is_speaking


class TestSpokeRecently:
    @pytest.fixture
    def tracker(self):
        t = SpeakingTracker("p1", now=0)
        t.on_signal(True, 5000)
        t.on_signal(False, 10000)
        return t

    def test_never_spoke(self):
        assert not SpeakingTracker("p2", now=0).spoke_recently(10000)

    @pytest.mark.parametrize(
        "reference, expected",
        [(10000, True), (11000, True), (12000, True), (12001, False), (30000, False)],
    )
    def test_within_threshold(self, tracker, reference, expected):
        assert tracker.spoke_recently(reference, threshold_ms=2000) is expected

    def test_default_threshold_from_settings(self):
        t = SpeakingTracker("p1", now=0, settings=SpeakingSettings(recency_threshold_ms=500))
        t.on_signal(True, 0)
        t.on_signal(False, 1000)
        assert t.spoke_recently(1500)
        assert not t.spoke_recently(1501)


class TestParticipantEvents:
    def test_events_not_recorded_by_default(self):
        t = SpeakingTracker("p1", now=0)
        t.on_signal(True, 100)
        assert t.events == []

    def test_events_recorded_when_enabled(self):
        t = SpeakingTracker("p1", now=0, settings=SpeakingSettings(persist_events=True))
        t.on_signal(True, 100)
        t.on_signal(True, 200)
        t.on_signal(False, 300)
        assert [e.kind for e in t.events] == [
            ParticipantEventKind.joined,
            ParticipantEventKind.start_speaking,
            ParticipantEventKind.stop_speaking,
        ]
        assert [e.at for e in t.events] == [0, 100, 300]
