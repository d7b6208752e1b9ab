import copy
import json
import logging
import os

from shiftcompass.calendar_logic import validate_pattern, validate_anchor, validate_leave
from shiftcompass.models import (
    WORK_DAY, WORK_NIGHT, OFF, LEAVE,
    pattern_to_dict, pattern_from_dict, anchor_to_dict, anchor_from_dict,
    leave_to_dict, leave_from_dict,
)

DEFAULT_CONFIG = {
    'preview_days': 35,
    'label_names': {
        WORK_DAY: 'Tagschicht',
        WORK_NIGHT: 'Nachtschicht',
        OFF: 'Frei',
        LEAVE: 'Urlaub',
    },
    'colors': {
        WORK_DAY: '#F4B942',
        WORK_NIGHT: '#5B6BBF',
        OFF: '#7BC47F',
        LEAVE: '#1DE9B6',
    },
    'cycle': None,
    'leave': [],
}


def _config_path():
    base = os.environ.get('SHIFTCOMPASS_HOME') or os.path.join(os.path.expanduser('~'), '.shiftcompass')
    os.makedirs(base, exist_ok=True)
    return os.path.join(base, 'shiftcompass_config.json')


def load_config():
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    path = _config_path()
    if not os.path.exists(path):
        return cfg
    try:
        with open(path, 'r', encoding='utf-8') as f:
            stored = json.load(f)
    except (OSError, ValueError) as e:
        logging.error(f"Konfiguration {path} nicht lesbar, verwende Standardwerte: {e}")
        return cfg
    if not isinstance(stored, dict):
        logging.error(f"Konfiguration {path} hat ein unerwartetes Format, verwende Standardwerte.")
        return cfg
    for key, value in stored.items():
        # verschachtelte Mappings ergänzen statt ersetzen
        if isinstance(cfg.get(key), dict) and isinstance(value, dict):
            cfg[key].update(value)
        else:
            cfg[key] = value
    return cfg


def save_config(cfg: dict):
    path = _config_path()
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(cfg, f, ensure_ascii=False, indent=2)


def load_cycle(cfg: dict):
    """(pattern, anchor) aus der Konfiguration oder None."""
    record = cfg.get('cycle')
    if not record:
        return None
    if not isinstance(record, dict):
        logging.error(f"Gespeicherter Rhythmus ist ungültig und wird ignoriert: {record!r}")
        return None
    try:
        pattern = pattern_from_dict(record)
        anchor = anchor_from_dict(record)
        validate_pattern(pattern)
        validate_anchor(pattern, anchor)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logging.error(f"Gespeicherter Rhythmus ist ungültig und wird ignoriert: {e}")
        return None
    return pattern, anchor


def store_cycle(cfg: dict, pattern, anchor) -> dict:
    record = pattern_to_dict(pattern)
    record.update(anchor_to_dict(anchor))
    cfg['cycle'] = record
    return cfg


def load_leave(cfg: dict):
    """Urlaubsblöcke aus der Konfiguration, nach Beginn sortiert; ungültige Einträge werden übersprungen."""
    records = cfg.get('leave') or []
    if not isinstance(records, list):
        logging.error(f"Gespeicherte Urlaubsliste ist ungültig und wird ignoriert: {records!r}")
        return []
    blocks = []
    for record in records:
        try:
            block = leave_from_dict(record)
            validate_leave(block)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logging.error(f"Urlaubseintrag {record!r} ist ungültig und wird ignoriert: {e}")
            continue
        blocks.append(block)
    return sorted(blocks, key=lambda b: b.from_date)


def store_leave(cfg: dict, blocks) -> dict:
    cfg['leave'] = [leave_to_dict(b) for b in sorted(blocks, key=lambda b: b.from_date)]
    return cfg
