from datetime import date
from typing import Dict, List, Optional

from shiftcompass.calendar_logic import project_between, project_month, apply_leave
from shiftcompass.models import RotationPattern, Anchor, ProjectedDay, LeaveBlock, WORK_DAY, WORK_NIGHT, OFF


def summarize_days(days: List[ProjectedDay]) -> Dict[str, float]:
    """
    Zusammenfassung für eine Liste klassifizierter Tage:
      total        : Anzahl Tage
      work_days    : Tagschichten
      work_nights  : Nachtschichten
      off_days     : freie Tage
      leave_days   : Urlaubstage (zählen in keiner der drei Schichtarten)
      work_pct     : Anteil Arbeitstage (Tag + Nacht) in Prozent
    """
    total = len(days)
    leave_days = sum(1 for d in days if d.is_leave)
    work_days = sum(1 for d in days if d.label == WORK_DAY and not d.is_leave)
    work_nights = sum(1 for d in days if d.label == WORK_NIGHT and not d.is_leave)
    off_days = sum(1 for d in days if d.label == OFF and not d.is_leave)
    work_pct = round((work_days + work_nights) / total * 100, 1) if total else 0.0
    return {
        'total': total,
        'work_days': work_days,
        'work_nights': work_nights,
        'off_days': off_days,
        'leave_days': leave_days,
        'work_pct': work_pct,
    }


def summarize_range(pattern: RotationPattern, anchor: Anchor, start: date, end: date,
                    leave_blocks: Optional[List[LeaveBlock]] = None) -> Dict[str, float]:
    """Zusammenfassung für den geschlossenen Zeitraum start..end (leer wenn end < start)."""
    return summarize_days(apply_leave(project_between(pattern, anchor, start, end), leave_blocks))


def monthly_breakdown(pattern: RotationPattern, anchor: Anchor, year: int,
                      leave_blocks: Optional[List[LeaveBlock]] = None) -> List[Dict[str, int]]:
    """Pro Monat des Jahres: Tag-/Nachtschichten, freie Tage, Urlaub."""
    out = []
    for month in range(1, 13):
        s = summarize_days(apply_leave(project_month(pattern, anchor, year, month), leave_blocks))
        out.append({
            'month': month,
            'work_days': s['work_days'],
            'work_nights': s['work_nights'],
            'off_days': s['off_days'],
            'leave_days': s['leave_days'],
            'total': s['total'],
        })
    return out


def block_transitions(days: List[ProjectedDay]) -> int:
    """Wie oft wechselt die Schichtart innerhalb der Liste?"""
    return sum(1 for prev, cur in zip(days, days[1:]) if prev.label != cur.label)
