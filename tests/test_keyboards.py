from datetime import date

from keyboards.keyboards import (
    IGNORE, get_calendar_keyboard, get_main_menu_keyboard, get_sessions_keyboard,
)
from scheduling.availability import compute_month
from scheduling.slots import generate_session_timetable
from database.models import DayOverride, OVERRIDE_CLOSED


def all_buttons(markup):
    return [button for row in markup.inline_keyboard for button in row]


def test_calendar_callbacks(operating, tanks):
    overrides = [DayOverride(date=date(2030, 6, 20), status=OVERRIDE_CLOSED)]
    days = compute_month(2030, 6, operating, tanks, overrides, {})
    markup = get_calendar_keyboard(2030, 6, days, today=date(2030, 6, 10))

    nav = markup.inline_keyboard[0]
    assert nav[0].callback_data == "cal:2030-05"
    assert nav[2].callback_data == "cal:2030-07"

    by_callback = {button.callback_data: button for button in all_buttons(markup)}
    assert "day:2030-06-10" in by_callback
    assert "day:2030-06-09" not in by_callback
    assert by_callback["day:2030-06-20"].text == "🔒20"
    assert any(b.text == "·" and b.callback_data == IGNORE for b in all_buttons(markup))
    assert markup.inline_keyboard[-1][0].callback_data == "cancel"


def test_admin_calendar_shows_past_days(operating, tanks):
    days = compute_month(2030, 6, operating, tanks, [], {date(2030, 6, 1): 18})
    markup = get_calendar_keyboard(2030, 6, days, today=date(2030, 6, 10),
                                   prefix="adm_", allow_past=True, can_go_back=False)

    by_callback = {button.callback_data: button for button in all_buttons(markup)}
    assert by_callback["adm_day:2030-06-01"].text == "❌1"
    assert "adm_cal:2030-07" in by_callback
    assert markup.inline_keyboard[0][0].callback_data == IGNORE


def test_calendar_weeks_have_seven_days(operating, tanks):
    days = compute_month(2030, 2, operating, tanks, [], {})
    markup = get_calendar_keyboard(2030, 2, days, today=date(2030, 1, 1))
    for row in markup.inline_keyboard[1:-1]:
        assert len(row) == 7


def test_sessions_keyboard(operating, tanks):
    timetable = generate_session_timetable(
        date(2030, 6, 1), "09:00", "11:00", 60, 15, 20, tanks,
    )
    sessions = [session for tank in timetable for session in tank.sessions]
    markup = get_sessions_keyboard(sessions)

    callbacks = [button.callback_data for button in all_buttons(markup)]
    assert callbacks[:3] == ["session:1:1", "session:2:1", "session:3:1"]
    assert callbacks[-2:] == ["back_to_calendar", "cancel"]


def test_main_menu_admin_button():
    assert len(get_main_menu_keyboard().keyboard) == 2
    assert len(get_main_menu_keyboard(is_admin=True).keyboard) == 3
