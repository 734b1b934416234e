from conftest import BrokenSink

from backend.stepchef.core.alarm import Alarm
from backend.stepchef.core.alarm_sound import ALARM, CHIME, SoundBank


def test_alarm_rings_until_dismissed(sink, scheduler):
    alarm = Alarm(sink, scheduler, repeat_interval=0.9)
    alarm.on_expiry(7, "Simmer for 10 minutes.")

    assert alarm.active
    assert sink.count("sound", ALARM) == 1
    assert sink.count("notify", "Timer Complete!", "Simmer for 10 minutes.") == 1
    assert scheduler.live[0].interval == 0.9

    scheduler.fire(times=5)
    assert sink.count("sound", ALARM) == 6
    assert sink.count("vibrate") == 6
    # the system notification is sent once per expiry, not per ring
    assert sink.count("notify") == 1

    assert alarm.dismiss(7)
    assert not alarm.active
    assert scheduler.live == []
    assert sink.count("silence") == 1


def test_dismiss_is_idempotent(sink, scheduler):
    alarm = Alarm(sink, scheduler)
    alarm.on_expiry(1)
    assert alarm.dismiss(1)
    assert not alarm.dismiss(1)
    assert sink.count("silence") == 1


def test_dismiss_for_other_step_keeps_ringing(sink, scheduler):
    alarm = Alarm(sink, scheduler)
    alarm.on_expiry(1)
    assert not alarm.dismiss(2)
    assert alarm.active
    assert len(scheduler.live) == 1


def test_rearming_replaces_previous_repeat(sink, scheduler):
    alarm = Alarm(sink, scheduler)
    alarm.on_expiry(1)
    alarm.on_expiry(2)
    assert len(scheduler.live) == 1
    assert alarm.step_id == 2


def test_failing_outputs_never_raise(scheduler):
    alarm = Alarm(BrokenSink(), scheduler)
    alarm.on_expiry(3)
    scheduler.fire(times=3)
    alarm.chime()
    assert alarm.dismiss(3)
    assert not alarm.active


def test_notifications_and_chime_respect_settings(sink, scheduler):
    alarm = Alarm(sink, scheduler, notifications_enabled=False, sound_enabled=False)
    alarm.chime()
    alarm.on_expiry(1)
    assert sink.count("notify") == 0
    assert sink.count("sound", CHIME) == 0
    # the alarm itself still sounds
    assert sink.count("sound", ALARM) == 1


def test_sounds_render_as_wav():
    bank = SoundBank(sample_rate=8000)
    sounds = bank.render()
    assert set(sounds) == {ALARM, CHIME}
    for wav in sounds.values():
        assert wav[:4] == b"RIFF"
        assert wav[8:12] == b"WAVE"

    burst = bank.alarm_burst()
    assert len(burst) == int(round(0.45 * 8000))
    assert abs(burst).max() <= 0.25 + 1e-6
