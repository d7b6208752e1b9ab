import csv
import logging
from typing import Dict, List, Optional

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from shiftcompass.models import RotationPattern, ProjectedDay, WORK_DAY, WORK_NIGHT, OFF, LEAVE
from shiftcompass.statistics import summarize_days

WEEKDAY_NAMES = ["Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"]

_PATTERN_WORDS = {
    WORK_DAY: ('day', 'days'),
    WORK_NIGHT: ('night', 'nights'),
    OFF: ('off', 'off'),
}

_FALLBACK_NAMES = {WORK_DAY: 'Tagschicht', WORK_NIGHT: 'Nachtschicht', OFF: 'Frei', LEAVE: 'Urlaub'}


def describe_pattern(pattern: RotationPattern) -> str:
    """'5 days, 5 nights, 5 off' - gleiche Wortwahl wie der Freitext-Parser."""
    parts = []
    for b in pattern.blocks:
        singular, plural = _PATTERN_WORDS.get(b.label, (b.label, b.label))
        parts.append(f"{b.duration} {singular if b.duration == 1 else plural}")
    return ', '.join(parts)


def label_name(label: str, config: Optional[Dict] = None) -> str:
    names = (config or {}).get('label_names') or {}
    return names.get(label) or _FALLBACK_NAMES.get(label, label)


def format_projected_day(pd: ProjectedDay, total_days: int, config: Optional[Dict] = None) -> str:
    """Kurzbeschreibung für einen Tag, z.B. 'Tag 4/15 · Tagschicht' (bei Urlaub '... · Urlaub')."""
    text = f"Tag {pd.cycle_day}/{total_days} · {label_name(pd.label, config)}"
    if pd.is_leave:
        text += f" · {label_name(LEAVE, config)}"
    return text


def export_csv(days: List[ProjectedDay], filename: str, config: Optional[Dict] = None):
    with open(filename, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(["Datum", "Wochentag", "Zyklustag", "Schicht", "Urlaub"])
        for pd in days:
            writer.writerow([
                pd.day.isoformat(),
                WEEKDAY_NAMES[pd.day.weekday()],
                pd.cycle_day,
                label_name(pd.label, config),
                'ja' if pd.is_leave else '',
            ])
    logging.info(f"[ShiftCompass] CSV exportiert: {filename} ({len(days)} Tage)")


def export_pdf(days: List[ProjectedDay], filename: str, title: str = 'ShiftCompass Report',
               config: Optional[Dict] = None, chart_png: Optional[str] = None):
    """Report mit Zeitraum, Zusammenfassung, Tagesliste und optionalem Diagramm."""
    stats = summarize_days(days)
    c = canvas.Canvas(filename, pagesize=letter)
    w, h = letter
    y = h - 50
    c.setFont('Helvetica-Bold', 14)
    c.drawString(50, y, title)
    y -= 30
    c.setFont('Helvetica', 10)
    if days:
        c.drawString(50, y, f"Zeitraum: {days[0].day.isoformat()} bis {days[-1].day.isoformat()}")
        y -= 20
    c.drawString(50, y, f"Tage gesamt: {stats['total']}")
    y -= 15
    for lbl, key in ((WORK_DAY, 'work_days'), (WORK_NIGHT, 'work_nights'), (OFF, 'off_days'), (LEAVE, 'leave_days')):
        c.drawString(50, y, f"{label_name(lbl, config)}: {stats[key]}")
        y -= 15
    c.drawString(50, y, f"Arbeitsanteil: {stats['work_pct']}%")
    y -= 30

    header = "Datum      | Wochentag | Zyklustag | Schicht"
    c.setFont('Helvetica-Bold', 12)
    c.drawString(50, y, header)
    y -= 20
    c.setFont('Helvetica', 10)
    for pd in days:
        if y < 60:
            c.showPage()
            y = h - 50
            c.setFont('Helvetica-Bold', 12)
            c.drawString(50, y, header)
            y -= 20
            c.setFont('Helvetica', 10)
        wd = WEEKDAY_NAMES[pd.day.weekday()]
        line = f"{pd.day.isoformat()} | {wd}        | {pd.cycle_day:>3}       | {label_name(pd.label, config)}"
        if pd.is_leave:
            line += f" ({label_name(LEAVE, config)})"
        c.drawString(50, y, line)
        y -= 15

    if chart_png:
        c.showPage()
        size = 300
        c.setFont('Helvetica-Bold', 12)
        c.drawCentredString(w / 2, h - 50, 'Verteilung')
        c.drawImage(chart_png, (w - size) / 2, h - 80 - size, width=size, height=size)
    c.save()
    logging.info(f"[ShiftCompass] PDF exportiert: {filename}")
