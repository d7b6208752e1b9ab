"""
Heuristische Erkennung von Schicht-Rhythmen in Freitext.

Jeder Matcher ist eine reine Funktion str -> RotationPattern | None; sie
werden der Reihe nach probiert, der erste Treffer gewinnt. Nicht erkannter
Text liefert None, es wird nie eine Exception geworfen.
"""
import re
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple

from dateutil import parser as date_parser

from .models import CycleBlock, RotationPattern, Anchor, WORK_DAY, WORK_NIGHT, OFF

# Schlüsselwort -> Label (englisch + deutsch)
_KIND_WORDS = {
    'day': WORK_DAY, 'days': WORK_DAY, 'on': WORK_DAY,
    'tag': WORK_DAY, 'tage': WORK_DAY,
    'night': WORK_NIGHT, 'nights': WORK_NIGHT,
    'nacht': WORK_NIGHT, 'nächte': WORK_NIGHT, 'naechte': WORK_NIGHT,
    'off': OFF, 'rest': OFF, 'frei': OFF,
}

_SLASH_RE = re.compile(r'^\s*(\d+)\s*/\s*(\d+)(?:\s*/\s*(\d+))?\s*$')
_TIMES_RE = re.compile(r'^\s*(\d+)\s*[x×]\s*(\d+)(?:\s*(?:shifts?|schicht))?\s*$', re.IGNORECASE)
_ON_OFF_RE = re.compile(r'^\s*(\d+)\s*(?:days?\s+)?on\W+(\d+)\s*(?:days?\s+)?off\s*$', re.IGNORECASE)
_PAIR_RE = re.compile(
    r'(\d+)\s*(days?\s+on|days?\s+off|tage?\s+frei|days?|nights?|on|off|rest|tage?|nacht|nächte|naechte|frei)\b',
    re.IGNORECASE,
)

# "day 4", "Tag 4", "Day 4 of the cycle"
_CYCLE_DAY_RE = re.compile(r'\b(?:day|tag)\s*(\d+)\b', re.IGNORECASE)
_ISO_DATE_RE = re.compile(r'\b(\d{4})-(\d{2})-(\d{2})\b')
_DOTTED_DATE_RE = re.compile(r'\b(\d{1,2})\.(\d{1,2})\.(\d{4})\b')
# Fuzzy-Parsing nur bei englischem Monatsnamen (dateutil kennt keine deutschen)
_MONTH_RE = re.compile(
    r'(?:\b\d{1,2}(?:st|nd|rd|th)?\.?\s+)?'
    r'\b(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s*\d',
    re.IGNORECASE,
)
# Füllwörter eines Ankersatzes ("is my", "ist", "=")
_FILLER_RE = re.compile(r'(?:\b(?:is|ist|my|mein)\b|=)', re.IGNORECASE)
# Satzende: Punkt/Semikolon/Zeilenumbruch gefolgt von Leerraum (nicht in 1.1.2026)
_SENTENCE_RE = re.compile(r'(?:[.;!]\s+|[.;!]$|\n+)')


def _positive(*groups) -> Optional[List[int]]:
    values = [int(g) for g in groups if g is not None]
    if not values or any(v < 1 for v in values):
        return None
    return values


def _match_slash(text: str) -> Optional[RotationPattern]:
    """'5/5/5' -> Tage/Nächte/frei, '7/7' -> an/frei."""
    m = _SLASH_RE.match(text)
    if not m:
        return None
    values = _positive(*m.groups())
    if values is None:
        return None
    labels = (WORK_DAY, WORK_NIGHT, OFF) if len(values) == 3 else (WORK_DAY, OFF)
    return RotationPattern([CycleBlock(lbl, n) for lbl, n in zip(labels, values)])


def _match_times(text: str) -> Optional[RotationPattern]:
    """'4x4' -> 4 Tage, 4 frei."""
    m = _TIMES_RE.match(text)
    if not m:
        return None
    values = _positive(*m.groups())
    if values is None:
        return None
    return RotationPattern([CycleBlock(WORK_DAY, values[0]), CycleBlock(OFF, values[1])])


def _match_on_off(text: str) -> Optional[RotationPattern]:
    """'10 on 5 off', '7 days on, 7 days off'."""
    m = _ON_OFF_RE.match(text)
    if not m:
        return None
    values = _positive(*m.groups())
    if values is None:
        return None
    return RotationPattern([CycleBlock(WORK_DAY, values[0]), CycleBlock(OFF, values[1])])


def _match_sequence(text: str) -> Optional[RotationPattern]:
    """'5 days, 5 nights, 5 off' / '5 days then 5 nights then 5 off'."""
    blocks = []
    for m in _PAIR_RE.finditer(text):
        n = int(m.group(1))
        if n < 1:
            return None
        # "days on" -> on, "days off" -> off, "Tage frei" -> frei
        word = m.group(2).lower().split()[-1]
        blocks.append(CycleBlock(_KIND_WORDS[word], n))
    if not blocks:
        return None
    return RotationPattern(blocks)


MATCHERS: List[Callable[[str], Optional[RotationPattern]]] = [
    _match_slash,
    _match_times,
    _match_on_off,
    _match_sequence,
]


def parse_rotation(text: str) -> Optional[RotationPattern]:
    """Erster passender Matcher gewinnt; None wenn nichts passt."""
    if not text or not text.strip():
        return None
    cleaned = text.strip()
    for matcher in MATCHERS:
        pattern = matcher(cleaned)
        if pattern is not None:
            return pattern
    return None


def _find_date(text: str, today: date) -> Optional[date]:
    try:
        m = _ISO_DATE_RE.search(text)
        if m:
            return date(*(int(g) for g in m.groups()))
        m = _DOTTED_DATE_RE.search(text)
        if m:
            d, mo, y = (int(g) for g in m.groups())
            return date(y, mo, d)
        m = _MONTH_RE.search(text)
        if not m:
            return None
        # erst ab dem Datum parsen, davor stehende Zahlen ("5 days, ...") stören
        parsed = date_parser.parse(text[m.start():], fuzzy=True, default=datetime(today.year, 1, 1))
        return parsed.date()
    except (ValueError, OverflowError):
        return None


def _cycle_day_match(text: str):
    # bei mehreren Treffern ("5 Tag 5 Nacht ... ist Tag 4") gilt der letzte
    matches = list(_CYCLE_DAY_RE.finditer(text))
    return matches[-1] if matches else None


def parse_anchor(text: str, today: Optional[date] = None) -> Optional[Anchor]:
    """
    Erkennt Ankersätze wie 'Jan 1 2026 is my Day 4', '2026-01-01 = day 4'
    oder '1.1.2026 ist Tag 4'. Ohne Jahresangabe gilt das Jahr von `today`.
    """
    if not text:
        return None
    m = _cycle_day_match(text)
    if not m:
        return None
    cycle_day = int(m.group(1))
    if cycle_day < 1:
        return None
    # Zyklustag-Phrase entfernen, sonst hält der Fuzzy-Parser die Zahl für ein Datum
    rest = (text[:m.start()] + ' ' + text[m.end():]).strip()
    anchor_date = _find_date(rest, today or date.today())
    if anchor_date is None:
        return None
    return Anchor(anchor_date, cycle_day)


def parse_description(text: str, today: Optional[date] = None) -> Tuple[Optional[RotationPattern], Optional[Anchor]]:
    """
    Zerlegt eine Freitext-Beschreibung in Sätze: Rhythmus + Anker.
    Ein Satz darf beides enthalten ('5/5/5, 2025-01-01 is day 4'); der Rhythmus
    wird dann im Rest des Satzes ohne die Anker-Angaben gesucht.
    """
    pattern = None
    anchor = None
    for sentence in _SENTENCE_RE.split(text or ''):
        sentence = sentence.strip()
        if not sentence:
            continue
        if anchor is None and _cycle_day_match(sentence):
            anchor = parse_anchor(sentence, today)
            if anchor is not None:
                sentence = _strip_anchor(sentence)
        if pattern is None:
            pattern = parse_rotation(sentence)
    return pattern, anchor


def _strip_anchor(sentence: str) -> str:
    m = _cycle_day_match(sentence)
    rest = sentence[:m.start()] + ' ' + sentence[m.end():]
    for regex in (_ISO_DATE_RE, _DOTTED_DATE_RE, _MONTH_RE):
        d = regex.search(rest)
        if d:
            # Monatsname: alles ab dem Datum gehört zum Anker
            end = len(rest) if regex is _MONTH_RE else d.end()
            rest = rest[:d.start()] + ' ' + rest[end:]
            break
    return _FILLER_RE.sub(' ', rest).strip(' ,;:=-')
