# tests/test_calendar_logic.py

import logging
from datetime import date, datetime, timedelta
import pytest

from shiftcompass.models import CycleBlock, RotationPattern, Anchor, LeaveBlock, WORK_DAY, WORK_NIGHT, OFF
from shiftcompass.calendar_logic import (
    cycle_day_of, block_label_of, project_range, project_month, project_year,
    block_ranges, next_change, apply_leave, is_leave_day,
    validate_pattern, validate_anchor, validate_leave,
)


def five_five_five():
    return RotationPattern([CycleBlock(WORK_DAY, 5), CycleBlock(WORK_NIGHT, 5), CycleBlock(OFF, 5)])


ANCHOR = Anchor(date(2025, 1, 1), 4)


@pytest.mark.parametrize("day,expected_cd,expected_label", [
    (date(2025, 1, 1), 4, WORK_DAY),     # Ankertag
    (date(2025, 1, 2), 5, WORK_DAY),     # letzter Tag des ersten Blocks
    (date(2025, 1, 3), 6, WORK_NIGHT),
    (date(2024, 12, 31), 3, WORK_DAY),   # ein Tag vor dem Anker
])
def test_scenario_five_five_five(day, expected_cd, expected_label):
    pat = five_five_five()
    cd = cycle_day_of(pat, ANCHOR, day)
    assert cd == expected_cd
    assert block_label_of(pat, cd) == expected_label


# ±700000 Tage bleiben innerhalb von date.min..date.max
@pytest.mark.parametrize("offset", [-700_000, -4000, -16, -15, -1, 0, 1, 14, 15, 9999, 700_000])
def test_cycle_day_always_in_range(offset):
    pat = five_five_five()
    cd = cycle_day_of(pat, ANCHOR, ANCHOR.anchor_date + timedelta(days=offset))
    assert 1 <= cd <= pat.total_days


def test_cycle_day_across_whole_date_range():
    pat = five_five_five()
    # Anker am Anfang bzw. Ende des darstellbaren Bereichs
    for anchor, target in (
        (Anchor(date.min, 1), date.max),
        (Anchor(date.max, 15), date.min),
    ):
        cd = cycle_day_of(pat, anchor, target)
        assert 1 <= cd <= pat.total_days
        diff = (target - anchor.anchor_date).days
        assert cd == (anchor.anchor_cycle_day - 1 + diff) % 15 + 1


@pytest.mark.parametrize("k", [-50, -3, -1, 1, 2, 40])
def test_periodicity(k):
    pat = five_five_five()
    for d in (date(2025, 3, 7), date(2019, 2, 28), date(2031, 12, 31)):
        shifted = d + timedelta(days=k * pat.total_days)
        assert cycle_day_of(pat, ANCHOR, d) == cycle_day_of(pat, ANCHOR, shifted)


@pytest.mark.parametrize("anchor_day", [1, 7, 15])
def test_anchor_date_maps_to_anchor_day(anchor_day):
    pat = five_five_five()
    anchor = Anchor(date(2026, 7, 14), anchor_day)
    assert cycle_day_of(pat, anchor, anchor.anchor_date) == anchor_day


def test_block_label_partitions_cycle():
    pat = RotationPattern([CycleBlock(WORK_DAY, 10), CycleBlock(WORK_NIGHT, 5), CycleBlock(OFF, 10)])
    ranges = block_ranges(pat)
    assert ranges == [(1, 10, WORK_DAY), (11, 15, WORK_NIGHT), (16, 25, OFF)]
    for cd in range(1, pat.total_days + 1):
        containing = [lbl for first, last, lbl in ranges if first <= cd <= last]
        # jeder Zyklustag liegt in genau einem Block
        assert len(containing) == 1
        assert block_label_of(pat, cd) == containing[0]


def test_block_label_falls_back_to_last_block(caplog):
    # total_days passt nicht zur Blocksumme (10)
    pat = RotationPattern([CycleBlock(WORK_DAY, 5), CycleBlock(OFF, 5)], total_days=12)
    with caplog.at_level(logging.WARNING):
        assert block_label_of(pat, 11) == OFF
        assert block_label_of(pat, 12) == OFF
    assert "letzten Block" in caplog.text
    # Projektion stürzt mit inkonsistentem total_days nicht ab
    days = project_range(pat, Anchor(date(2025, 1, 1), 1), date(2025, 1, 1), 24)
    assert [d.cycle_day for d in days[10:12]] == [11, 12]
    assert days[12].cycle_day == 1


def test_datetime_is_reduced_to_calendar_date():
    pat = five_five_five()
    assert cycle_day_of(pat, ANCHOR, datetime(2025, 1, 3, 23, 59)) == 6
    assert cycle_day_of(pat, Anchor(datetime(2025, 1, 1, 22, 0), 4), date(2025, 1, 3)) == 6


def test_project_range_is_idempotent():
    pat = five_five_five()
    first = project_range(pat, ANCHOR, date(2025, 2, 1), 35)
    second = project_range(pat, ANCHOR, date(2025, 2, 1), 35)
    assert first == second
    assert len(first) == 35
    assert first[0].day == date(2025, 2, 1)
    assert first[-1].day == date(2025, 3, 7)
    # aufeinanderfolgende Tage, Zyklustag läuft um
    for prev, cur in zip(first, first[1:]):
        assert (cur.day - prev.day).days == 1
        assert cur.cycle_day == prev.cycle_day % pat.total_days + 1


def test_project_range_non_positive_count():
    assert project_range(five_five_five(), ANCHOR, date(2025, 1, 1), 0) == []
    assert project_range(five_five_five(), ANCHOR, date(2025, 1, 1), -3) == []


def test_project_month_and_year():
    pat = five_five_five()
    feb = project_month(pat, ANCHOR, 2025, 2)
    assert len(feb) == 28
    assert feb[0].day == date(2025, 2, 1)
    assert len(project_year(pat, ANCHOR, 2024)) == 366
    assert len(project_year(pat, ANCHOR, 2025)) == 365


def test_next_change():
    pat = five_five_five()
    change = next_change(pat, ANCHOR, date(2025, 1, 1))
    assert change.day == date(2025, 1, 3)
    assert change.label == WORK_NIGHT
    assert change.cycle_day == 6


def test_next_change_single_label_pattern():
    pat = RotationPattern([CycleBlock(OFF, 3)])
    assert next_change(pat, Anchor(date(2025, 1, 1), 1), date(2025, 1, 1)) is None


@pytest.mark.parametrize("pat", [
    RotationPattern([]),
    RotationPattern([CycleBlock(WORK_DAY, 0)]),
    RotationPattern([CycleBlock(WORK_DAY, -2), CycleBlock(OFF, 5)]),
    RotationPattern([CycleBlock('late_shift', 3)]),
    RotationPattern([CycleBlock(WORK_DAY, 5)], total_days=0),
])
def test_validate_pattern_rejects_malformed(pat):
    with pytest.raises(ValueError):
        validate_pattern(pat)


def test_validate_anchor_bounds():
    pat = five_five_five()
    validate_pattern(pat)
    validate_anchor(pat, Anchor(date(2025, 1, 1), 1))
    validate_anchor(pat, Anchor(date(2025, 1, 1), 15))
    for bad in (0, 16, -1):
        with pytest.raises(ValueError):
            validate_anchor(pat, Anchor(date(2025, 1, 1), bad))


def test_apply_leave_marks_days_without_shifting_cycle():
    pat = five_five_five()
    days = project_range(pat, ANCHOR, date(2025, 1, 1), 10)
    leave = [LeaveBlock(date(2025, 1, 3), date(2025, 1, 5))]
    marked = apply_leave(days, leave)
    assert [d.day for d in marked if d.is_leave] == [date(2025, 1, 3), date(2025, 1, 4), date(2025, 1, 5)]
    # Zyklustag und Schichtart bleiben erhalten
    assert [(d.cycle_day, d.label) for d in marked] == [(d.cycle_day, d.label) for d in days]
    assert not any(d.is_leave for d in days)
    assert is_leave_day(datetime(2025, 1, 5, 18, 0), leave)
    assert not is_leave_day(date(2025, 1, 6), leave)


def test_apply_leave_without_blocks():
    days = project_range(five_five_five(), ANCHOR, date(2025, 1, 1), 3)
    assert apply_leave(days, []) == days
    assert apply_leave(days, None) == days


def test_validate_leave():
    validate_leave(LeaveBlock(date(2025, 1, 1), date(2025, 1, 1)))
    with pytest.raises(ValueError):
        validate_leave(LeaveBlock(date(2025, 1, 5), date(2025, 1, 1)))
    with pytest.raises(ValueError):
        validate_leave(LeaveBlock("2025-01-01", date(2025, 1, 1)))
