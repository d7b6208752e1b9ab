# src/shiftcompass/models.py
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

# Schicht-Labels, so wie sie das Backend speichert
WORK_DAY = 'work_day'
WORK_NIGHT = 'work_night'
OFF = 'off'
WORK_TYPES = (WORK_DAY, WORK_NIGHT, OFF)
# Urlaub ist kein Block-Label, sondern liegt über dem Rhythmus
LEAVE = 'leave'


@dataclass
class CycleBlock:
    """Zusammenhängender Abschnitt gleicher Schichtart (z. B. 5 Tagschichten)."""
    label: str
    duration: int                 # Tage, >= 1


@dataclass
class RotationPattern:
    """Ein sich endlos wiederholender Schicht-Rhythmus."""
    blocks: List[CycleBlock]
    name: str = 'My Rotation'
    total_days: Optional[int] = None   # None = Summe der Blocklängen

    def __post_init__(self):
        if self.total_days is None:
            self.total_days = sum(b.duration for b in self.blocks)


@dataclass
class Anchor:
    """Bekannte Zuordnung Datum -> Zyklustag (1-basiert)."""
    anchor_date: date
    anchor_cycle_day: int = 1


@dataclass
class ProjectedDay:
    """Ein klassifizierter Kalendertag."""
    day: date
    cycle_day: int
    label: str
    is_leave: bool = False


@dataclass
class LeaveBlock:
    """Urlaubszeitraum (inkl. Start- und Endtag). Verschiebt den Rhythmus nicht."""
    from_date: date
    to_date: date
    name: str = 'Urlaub'

    def contains(self, d: date) -> bool:
        return self.from_date <= d <= self.to_date


PRESET_CYCLES = {
    'Mining Standard': [CycleBlock(WORK_DAY, 10), CycleBlock(WORK_NIGHT, 5), CycleBlock(OFF, 10)],
    '2 Week Rotation': [CycleBlock(WORK_DAY, 7), CycleBlock(OFF, 7)],
    '4x4 Shift':       [CycleBlock(WORK_DAY, 4), CycleBlock(OFF, 4)],
}


def preset_pattern(name: str) -> RotationPattern:
    """Frische Kopie eines Presets (Blöcke werden nicht geteilt)."""
    blocks = [CycleBlock(b.label, b.duration) for b in PRESET_CYCLES[name]]
    return RotationPattern(blocks, name=name)


# --- (De-)Serialisierung im Format des Backends ---

def pattern_to_dict(pattern: RotationPattern) -> dict:
    return {
        'name': pattern.name,
        'pattern': [{'label': b.label, 'duration': b.duration} for b in pattern.blocks],
        'total_days': pattern.total_days,
    }


def pattern_from_dict(data: dict) -> RotationPattern:
    blocks = [CycleBlock(b['label'], int(b['duration'])) for b in data.get('pattern', [])]
    return RotationPattern(
        blocks,
        name=data.get('name') or 'My Rotation',
        total_days=data.get('total_days'),
    )


def anchor_to_dict(anchor: Anchor) -> dict:
    return {
        'anchor_date': anchor.anchor_date.isoformat(),
        'anchor_cycle_day': anchor.anchor_cycle_day,
    }


def anchor_from_dict(data: dict) -> Anchor:
    return Anchor(date.fromisoformat(data['anchor_date']), int(data['anchor_cycle_day']))


def leave_to_dict(block: LeaveBlock) -> dict:
    return {
        'name': block.name,
        'start_date': block.from_date.isoformat(),
        'end_date': block.to_date.isoformat(),
    }


def leave_from_dict(data: dict) -> LeaveBlock:
    return LeaveBlock(
        date.fromisoformat(data['start_date']),
        date.fromisoformat(data['end_date']),
        name=data.get('name') or 'Urlaub',
    )
