import calendar
import datetime
import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from .models import RotationPattern, Anchor, ProjectedDay, LeaveBlock, WORK_TYPES


def _as_date(d) -> date:
    # nur Kalenderdatum, Uhrzeit/Zeitzone spielen keine Rolle
    if isinstance(d, datetime.datetime):
        return d.date()
    return d


def cycle_day_of(pattern: RotationPattern, anchor: Anchor, target_date: date) -> int:
    """
    Liefert den 1-basierten Zyklustag für `target_date`.

    diff ist die Anzahl ganzer Kalendertage zwischen Anker und Ziel (negativ
    für Tage vor dem Anker). Pythons % ist für positiven Modulus nie negativ,
    das Ergebnis liegt also immer in [1, total_days].
    """
    total = pattern.total_days
    diff = (_as_date(target_date) - _as_date(anchor.anchor_date)).days
    return (anchor.anchor_cycle_day - 1 + diff) % total + 1


def block_label_of(pattern: RotationPattern, cycle_day: int) -> str:
    """Label des Blocks, der `cycle_day` enthält (lineare Suche über die Blöcke)."""
    offset = 0
    for block in pattern.blocks:
        if cycle_day <= offset + block.duration:
            return block.label
        offset += block.duration

    # total_days passt nicht zu den Blocklängen -> letzter Block
    logging.warning(
        f"[ShiftCompass] Zyklustag {cycle_day} liegt hinter der Blocksumme {offset} "
        f"(total_days={pattern.total_days}), verwende letzten Block."
    )
    return pattern.blocks[-1].label


def project_day(pattern: RotationPattern, anchor: Anchor, day: date) -> ProjectedDay:
    d = _as_date(day)
    cd = cycle_day_of(pattern, anchor, d)
    return ProjectedDay(d, cd, block_label_of(pattern, cd))


def project_range(pattern: RotationPattern, anchor: Anchor, start_date: date, count: int) -> List[ProjectedDay]:
    """`count` aufeinanderfolgende Tage ab `start_date`, jeweils klassifiziert."""
    start = _as_date(start_date)
    return [project_day(pattern, anchor, start + timedelta(days=i)) for i in range(max(count, 0))]


def project_between(pattern: RotationPattern, anchor: Anchor, start: date, end: date) -> List[ProjectedDay]:
    """Wie project_range, aber über den geschlossenen Zeitraum start..end."""
    start, end = _as_date(start), _as_date(end)
    return project_range(pattern, anchor, start, (end - start).days + 1)


def project_month(pattern: RotationPattern, anchor: Anchor, year: int, month: int) -> List[ProjectedDay]:
    ndays = calendar.monthrange(year, month)[1]
    return project_range(pattern, anchor, date(year, month, 1), ndays)


def project_year(pattern: RotationPattern, anchor: Anchor, year: int) -> List[ProjectedDay]:
    return project_between(pattern, anchor, date(year, 1, 1), date(year, 12, 31))


def block_ranges(pattern: RotationPattern) -> List[Tuple[int, int, str]]:
    """(erster Zyklustag, letzter Zyklustag, Label) je Block."""
    out = []
    offset = 0
    for block in pattern.blocks:
        out.append((offset + 1, offset + block.duration, block.label))
        offset += block.duration
    return out


def next_change(pattern: RotationPattern, anchor: Anchor, from_date: date) -> Optional[ProjectedDay]:
    """
    Erster Tag nach `from_date`, an dem sich die Schichtart ändert.
    None, wenn der Rhythmus nur eine Schichtart kennt.
    """
    current = project_day(pattern, anchor, from_date)
    for i in range(1, pattern.total_days + 1):
        pd = project_day(pattern, anchor, current.day + timedelta(days=i))
        if pd.label != current.label:
            return pd
    return None


def is_leave_day(day: date, leave_blocks: Iterable[LeaveBlock]) -> bool:
    d = _as_date(day)
    return any(block.contains(d) for block in leave_blocks)


def apply_leave(days: List[ProjectedDay], leave_blocks: Optional[List[LeaveBlock]]) -> List[ProjectedDay]:
    """
    Markiert Tage in Urlaubszeiträumen mit is_leave=True.
      - Zyklustag und Schichtart bleiben unverändert (der Rhythmus läuft weiter).
      - Ohne Urlaubsblöcke kommt eine unveränderte Kopie zurück.
    """
    if not leave_blocks:
        return list(days)
    return [
        ProjectedDay(pd.day, pd.cycle_day, pd.label, is_leave=is_leave_day(pd.day, leave_blocks))
        for pd in days
    ]


# --- Validierung für Aufrufer (Formulare, Wizard, Config) ---

def validate_pattern(pattern: RotationPattern) -> None:
    if not pattern.blocks:
        raise ValueError("Rhythmus braucht mindestens einen Block.")
    for i, block in enumerate(pattern.blocks, start=1):
        if block.label not in WORK_TYPES:
            raise ValueError(f"Block {i}: unbekannte Schichtart '{block.label}'.")
        if isinstance(block.duration, bool) or not isinstance(block.duration, int) or block.duration < 1:
            raise ValueError(f"Block {i}: Dauer muss eine positive ganze Zahl sein, nicht {block.duration!r}.")
    if not isinstance(pattern.total_days, int) or pattern.total_days < 1:
        raise ValueError(f"Zykluslänge muss mindestens 1 Tag sein, nicht {pattern.total_days!r}.")


def validate_anchor(pattern: RotationPattern, anchor: Anchor) -> None:
    if not isinstance(anchor.anchor_date, date):
        raise ValueError(f"Ankerdatum fehlt oder ist ungültig: {anchor.anchor_date!r}.")
    if not 1 <= anchor.anchor_cycle_day <= pattern.total_days:
        raise ValueError(
            f"Zyklustag {anchor.anchor_cycle_day} liegt nicht in 1..{pattern.total_days}."
        )


def validate_leave(block: LeaveBlock) -> None:
    if not isinstance(block.from_date, date) or not isinstance(block.to_date, date):
        raise ValueError("Urlaub braucht ein Start- und ein Enddatum.")
    if block.to_date < block.from_date:
        raise ValueError(
            f"Urlaubsende {block.to_date.isoformat()} liegt vor dem Beginn {block.from_date.isoformat()}."
        )
