# src/shiftcompass/main.py

import logging
from datetime import date

from .models import CycleBlock, RotationPattern, Anchor, PRESET_CYCLES, WORK_TYPES, preset_pattern
from .calendar_logic import project_range, apply_leave, validate_pattern, validate_anchor, next_change
from .pattern_parser import parse_description
from .statistics import summarize_days
from .export_utils import describe_pattern, format_projected_day
from .config import load_config, save_config, store_cycle, load_leave


def input_manual_pattern() -> RotationPattern:
    print("\n✏️  Blöcke eingeben (leer = fertig):")
    print("   Schichtart: " + ", ".join(f"[{i}] {lbl}" for i, lbl in enumerate(WORK_TYPES, start=1)))
    blocks = []
    while True:
        kind = input("  Schichtart: ").strip()
        if not kind:
            break
        if kind not in ('1', '2', '3'):
            print("  Bitte 1, 2 oder 3 eingeben.")
            continue
        dur = input("  Dauer in Tagen: ").strip()
        if not dur.isdigit() or int(dur) < 1:
            print("  Dauer muss eine positive ganze Zahl sein.")
            continue
        blocks.append(CycleBlock(WORK_TYPES[int(kind) - 1], int(dur)))
    return RotationPattern(blocks)


def input_pattern():
    """Liefert (pattern, anchor|None); der Anker kann schon im Freitext stehen."""
    print("\n🔁 Rhythmus festlegen:")
    names = list(PRESET_CYCLES)
    for i, name in enumerate(names, start=1):
        print(f"  [{i}] {name}: {describe_pattern(preset_pattern(name))}")
    print(f"  [{len(names) + 1}] Freitext (z.B. '5 days, 5 nights, 5 off. Jan 1 2026 is my Day 4.')")
    print(f"  [{len(names) + 2}] Blöcke einzeln eingeben")
    while True:
        choice = input("Auswahl: ").strip()
        if choice.isdigit() and 1 <= int(choice) <= len(names):
            return preset_pattern(names[int(choice) - 1]), None
        if choice == str(len(names) + 1):
            text = input("  Beschreibung: ")
            pattern, anchor = parse_description(text)
            if pattern is None:
                print("  ⚠️  Rhythmus nicht erkannt, bitte anders formulieren oder Blöcke einzeln eingeben.")
                continue
            return pattern, anchor
        if choice == str(len(names) + 2):
            pattern = input_manual_pattern()
            try:
                validate_pattern(pattern)
            except ValueError as e:
                print(f"  ⚠️  {e}")
                continue
            return pattern, None
        print("  Ungültige Auswahl.")


def input_anchor(pattern: RotationPattern) -> Anchor:
    print(f"\n📌 Anker setzen (Zyklus hat {pattern.total_days} Tage):")
    while True:
        date_str = input("  Datum (YYYY-MM-DD) [leer=heute]: ").strip()
        day_str = input(f"  Welcher Zyklustag ist das? (1-{pattern.total_days}): ").strip()
        try:
            anchor_date = date.today() if not date_str else date.fromisoformat(date_str)
            anchor = Anchor(anchor_date, int(day_str))
            validate_anchor(pattern, anchor)
        except ValueError as e:
            print(f"  ⚠️  {e}")
            continue
        return anchor


def run_wizard():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    print("🎯 Willkommen zum ShiftCompass Setup Wizard 🎯")
    cfg = load_config()

    # 1) Rhythmus
    pattern, anchor = input_pattern()
    validate_pattern(pattern)
    print(f"Rhythmus: {describe_pattern(pattern)} ({pattern.total_days} Tage)")

    # 2) Anker
    if anchor is not None:
        try:
            validate_anchor(pattern, anchor)
            print(f"Anker aus Beschreibung: {anchor.anchor_date.isoformat()} = Tag {anchor.anchor_cycle_day}")
        except ValueError as e:
            print(f"  ⚠️  {e}")
            anchor = None
    if anchor is None:
        anchor = input_anchor(pattern)

    # 3) Vorschau
    days = apply_leave(project_range(pattern, anchor, date.today(), cfg['preview_days']), load_leave(cfg))
    print(f"\n📅 Vorschau ab heute ({len(days)} Tage):")
    for pd in days:
        print(f"  {pd.day.isoformat()}  {format_projected_day(pd, pattern.total_days, cfg)}")
    stats = summarize_days(days)
    print(f"\nTagschichten: {stats['work_days']}, Nachtschichten: {stats['work_nights']}, "
          f"frei: {stats['off_days']} ({stats['work_pct']}% Arbeit)")
    if stats['leave_days']:
        print(f"Urlaubstage: {stats['leave_days']}")
    change = next_change(pattern, anchor, date.today())
    if change is not None:
        print(f"Nächster Wechsel: {change.day.isoformat()} -> {format_projected_day(change, pattern.total_days, cfg)}")

    # 4) Speichern
    if input("\nRhythmus speichern? (j/n) ").lower() == "j":
        save_config(store_cycle(cfg, pattern, anchor))
        print("Rhythmus gespeichert.")


if __name__ == "__main__":
    run_wizard()
