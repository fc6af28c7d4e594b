"""Tests for busylight.core.indicator — the indicator state machine."""

from unittest.mock import patch

import pytest

from conftest import appt, at
from busylight.core.indicator import (
    Action,
    Indication,
    future_meetings,
    next_meeting,
    resolve,
    update_indicator,
)
from busylight.data.models import GREEN, OFF, RED, ManualMode, SessionState


def _state(*appointments, **kwargs) -> SessionState:
    return SessionState(appointments=tuple(appointments), calendar_synced=True, **kwargs)


# ---------------------------------------------------------------------------
# resolve — display rules
# ---------------------------------------------------------------------------


class TestResolveDisplay:
    def test_no_meetings(self):
        result = resolve(_state(), now=at(9, 0))
        assert result == Indication(OFF, "no meetings")

    def test_in_meeting_is_red(self):
        result = resolve(_state(appt("09:00", "10:00", "Standup")), now=at(9, 30))
        assert result.color == RED
        assert result.message == "In meeting: Standup"

    def test_next_meeting_named_when_free(self):
        result = resolve(_state(appt("11:00", "11:30", "Review")), now=at(9, 45))
        assert result.color == OFF
        assert result.message == "Next meeting in 1:15: Review at 11:00"

    def test_past_meetings_are_not_next(self):
        result = resolve(_state(appt("07:00", "08:00")), now=at(9, 0))
        assert result == Indication(OFF, "no meetings")

    def test_prefers_strictly_current_meeting(self):
        # 09:59 — "Standup" only matches with fuzz, "Planning" has started
        state = _state(
            appt("09:00", "09:58", "Standup"),
            appt("09:59", "10:30", "Planning"),
        )
        result = resolve(state, now=at(9, 59, 30))
        assert result.message == "In meeting: Planning"

    def test_first_fuzzy_match_when_none_strict(self):
        state = _state(appt("10:01", "10:30", "Planning"))
        result = resolve(state, now=at(10, 0))
        assert result.message == "In meeting: Planning"

    def test_long_meeting_does_not_make_busy(self):
        state = _state(appt("08:00", "17:00", "Offsite"))
        result = resolve(state, now=at(9, 0))
        assert result == Indication(OFF, "no meetings")

    def test_camera_on_is_video_call(self):
        state = _state(camera_on=True)
        result = resolve(state, now=at(9, 0))
        assert result == Indication(RED, "In meeting: In video call")

    def test_camera_pseudo_appointment_not_stored(self):
        state = _state(camera_on=True)
        resolve(state, now=at(9, 0))
        assert state.appointments == ()

    def test_camera_off_clears_busy(self):
        state = _state(camera_on=True)
        resolve(state, now=at(9, 0))
        state.camera_on = False
        assert resolve(state, now=at(9, 1)).color == OFF


# ---------------------------------------------------------------------------
# resolve — manual overrides
# ---------------------------------------------------------------------------


class TestManualOverrides:
    def test_busy_always_red(self):
        state = _state()
        assert resolve(state, Action.BUSY, now=at(9, 0)) == Indication(RED, "manually busy")
        assert state.manual_mode is ManualMode.BUSY

    def test_busy_persists_without_action(self):
        state = _state()
        resolve(state, Action.BUSY, now=at(9, 0))
        assert resolve(state, now=at(12, 0)).color == RED

    def test_green_always_green(self):
        state = _state(appt("09:00", "10:00"), camera_on=True)
        assert resolve(state, Action.GREEN, now=at(9, 30)) == Indication(GREEN, "manually free")
        assert resolve(state, now=at(9, 31)).color == GREEN

    def test_overrides_replace_each_other(self):
        state = _state()
        resolve(state, Action.BUSY, now=at(9, 0))
        resolve(state, Action.GREEN, now=at(9, 0))
        assert state.manual_mode is ManualMode.FREE
        resolve(state, Action.BUSY, now=at(9, 0))
        assert state.manual_mode is ManualMode.BUSY

    def test_off_clears_override(self):
        state = _state()
        resolve(state, Action.BUSY, now=at(9, 0))
        result = resolve(state, Action.OFF, now=at(9, 1))
        assert state.manual_mode is ManualMode.NONE
        assert result == Indication(OFF, "no meetings")


# ---------------------------------------------------------------------------
# resolve — ignore set
# ---------------------------------------------------------------------------


class TestIgnoreSet:
    def test_off_during_meeting_stays_off(self):
        meeting = appt("09:00", "10:00")
        state = _state(meeting)

        result = resolve(state, Action.OFF, now=at(9, 5))
        assert result == Indication(OFF, "not in a meeting (manual override)")
        assert state.ignore_set == {meeting.canonical}

        assert resolve(state, now=at(9, 30)).color == OFF

    def test_ignore_set_cleared_when_no_meetings(self):
        state = _state(appt("09:00", "10:00"))
        resolve(state, Action.OFF, now=at(9, 5))
        resolve(state, now=at(10, 5))
        assert state.ignore_set == set()

    def test_new_meeting_after_ignored_one_is_red(self):
        state = _state(appt("09:00", "10:00"), appt("10:30", "11:00", "Retro"))
        resolve(state, Action.OFF, now=at(9, 5))
        resolve(state, now=at(10, 10))
        result = resolve(state, now=at(10, 30))
        assert result == Indication(RED, "In meeting: Retro")

    def test_overlapping_new_meeting_not_ignored(self):
        state = _state(appt("09:00", "10:00"), appt("09:30", "10:30", "Sync"))
        resolve(state, Action.OFF, now=at(9, 5))
        result = resolve(state, now=at(9, 30))
        assert result == Indication(RED, "In meeting: Sync")

    def test_off_during_video_call(self):
        state = _state(camera_on=True)
        assert resolve(state, Action.OFF, now=at(9, 0)).color == OFF
        assert resolve(state, now=at(9, 10)).color == OFF
        state.camera_on = False
        resolve(state, now=at(9, 11))
        assert state.ignore_set == set()


# ---------------------------------------------------------------------------
# End-to-end scenario: one meeting 09:00-10:00 today
# ---------------------------------------------------------------------------


class TestMorningScenario:
    def test_scenario(self):
        state = _state(appt("09:00", "10:00", "Standup"))

        assert resolve(state, now=at(8, 56)).color == OFF
        assert resolve(state, now=at(8, 59)) == Indication(RED, "In meeting: Standup")

        assert resolve(state, Action.OFF, now=at(9, 5)).color == OFF
        for minute in (10, 30, 59):
            assert resolve(state, now=at(9, minute)).color == OFF
        assert resolve(state, now=at(10, 0)).color == OFF
        assert state.ignore_set

        # Past the 2-minute fuzz the meeting has ended
        assert resolve(state, now=at(10, 3)) == Indication(OFF, "no meetings")
        assert state.ignore_set == set()


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


class TestMeetingQueries:
    def test_next_meeting_is_earliest_upcoming(self):
        meetings = (appt("13:00", "14:00", "B"), appt("11:00", "12:00", "A"))
        assert next_meeting(meetings, at(10, 0)).description == "A"

    def test_next_meeting_none(self):
        assert next_meeting((appt("08:00", "09:00"),), at(10, 0)) is None

    def test_future_meetings_sorted(self):
        meetings = (appt("13:00", "14:00", "B"), appt("11:00", "12:00", "A"),
                    appt("08:00", "09:00", "past"))
        assert [a.description for a in future_meetings(meetings, at(10, 0))] == ["A", "B"]


# ---------------------------------------------------------------------------
# update_indicator
# ---------------------------------------------------------------------------


class TestUpdateIndicator:
    @pytest.mark.asyncio
    async def test_drives_light(self, light_controller, fake_light):
        state = _state(appt("09:00", "10:00"))
        result = await update_indicator(state, light_controller, now=at(9, 30))
        assert result.color == RED
        assert fake_light.sent == [RED]

    @pytest.mark.asyncio
    async def test_prints_status_line(self, light_controller, capsys):
        await update_indicator(_state(), light_controller, now=at(9, 30))
        out = capsys.readouterr().out
        assert "09:30:00" in out
        assert "no meetings" in out

    @pytest.mark.asyncio
    async def test_action_passed_through(self, light_controller, fake_light):
        state = _state()
        await update_indicator(state, light_controller, Action.GREEN, now=at(9, 0))
        assert fake_light.sent == [GREEN]
        assert state.manual_mode is ManualMode.FREE

    @pytest.mark.asyncio
    async def test_errors_are_swallowed(self, light_controller, fake_light, caplog):
        with patch("busylight.core.indicator.resolve", side_effect=TypeError("bad state")):
            result = await update_indicator(_state(), light_controller, now=at(9, 0))
        assert result is None
        assert fake_light.sent == []
        assert "Indicator evaluation failed" in caplog.text
