from datetime import date
from shiftcompass.models import CycleBlock, RotationPattern, Anchor, LeaveBlock, WORK_DAY, WORK_NIGHT, OFF
from shiftcompass.calendar_logic import project_range
from shiftcompass.statistics import summarize_days, summarize_range, monthly_breakdown, block_transitions


def make_pattern():
    return RotationPattern([CycleBlock(WORK_DAY, 5), CycleBlock(WORK_NIGHT, 5), CycleBlock(OFF, 5)])


def test_summarize_one_full_cycle():
    # Anker: 1. Januar ist Tag 1 -> 1.-15. Januar ist genau ein Zyklus
    stats = summarize_range(make_pattern(), Anchor(date(2025, 1, 1), 1), date(2025, 1, 1), date(2025, 1, 15))
    assert stats['total'] == 15
    assert stats['work_days'] == 5
    assert stats['work_nights'] == 5
    assert stats['off_days'] == 5
    assert stats['work_pct'] == 66.7


def test_summarize_empty_range():
    stats = summarize_range(make_pattern(), Anchor(date(2025, 1, 1), 1), date(2025, 2, 1), date(2025, 1, 1))
    assert stats == {'total': 0, 'work_days': 0, 'work_nights': 0, 'off_days': 0, 'leave_days': 0, 'work_pct': 0.0}
    assert summarize_days([])['work_pct'] == 0.0


def test_monthly_breakdown_covers_year():
    months = monthly_breakdown(make_pattern(), Anchor(date(2025, 1, 1), 1), 2025)
    assert [m['month'] for m in months] == list(range(1, 13))
    assert sum(m['total'] for m in months) == 365
    assert months[1]['total'] == 28
    for m in months:
        assert m['work_days'] + m['work_nights'] + m['off_days'] + m['leave_days'] == m['total']
    # Januar: Tage 1-15 ein Zyklus, 16-30 ein Zyklus, 31. = Tag 1 (Tagschicht)
    assert months[0] == {'month': 1, 'work_days': 11, 'work_nights': 10, 'off_days': 10, 'leave_days': 0, 'total': 31}


def test_block_transitions():
    days = project_range(make_pattern(), Anchor(date(2025, 1, 1), 1), date(2025, 1, 1), 15)
    assert block_transitions(days) == 2
    assert block_transitions(days[:3]) == 0
    assert block_transitions([]) == 0


def test_leave_days_are_counted_separately():
    # 3.-7. Januar: Tage 3-5 Tagschicht, 6-7 Nachtschicht -> alles Urlaub
    leave = [LeaveBlock(date(2025, 1, 3), date(2025, 1, 7))]
    stats = summarize_range(make_pattern(), Anchor(date(2025, 1, 1), 1), date(2025, 1, 1), date(2025, 1, 15), leave)
    assert stats['total'] == 15
    assert stats['leave_days'] == 5
    assert stats['work_days'] == 2
    assert stats['work_nights'] == 3
    assert stats['off_days'] == 5
    assert stats['work_pct'] == 33.3


def test_monthly_breakdown_with_leave_across_months():
    leave = [LeaveBlock(date(2025, 1, 30), date(2025, 2, 2))]
    months = monthly_breakdown(make_pattern(), Anchor(date(2025, 1, 1), 1), 2025, leave)
    assert months[0]['leave_days'] == 2
    assert months[1]['leave_days'] == 2
    assert sum(m['leave_days'] for m in months) == 4
    for m in months:
        assert m['work_days'] + m['work_nights'] + m['off_days'] + m['leave_days'] == m['total']
