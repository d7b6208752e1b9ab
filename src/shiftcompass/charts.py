# src/shiftcompass/charts.py

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from shiftcompass.models import WORK_TYPES, LEAVE

# Reihenfolge der Segmente und zugehöriger Schlüssel aus summarize_days()
_SEGMENTS = [
    (WORK_TYPES[0], 'work_days'),
    (WORK_TYPES[1], 'work_nights'),
    (WORK_TYPES[2], 'off_days'),
    (LEAVE, 'leave_days'),
]


def create_pie_chart(values: list[int], labels: list[str], filename: str, colors: list[str] = None, subtitle: str = None):
    """
    Speichert ein Tortendiagramm als PNG und gibt die Segmente (wedges) zurück.
    Segmente mit Wert 0 werden weggelassen; ohne Daten entsteht ein
    Platzhalterbild "Keine Daten" und die Rückgabe ist eine leere Liste.
    """
    shown = [i for i, v in enumerate(values) if v > 0]
    fig, ax = plt.subplots()
    wedges = []
    if shown:
        wedges, _, _ = ax.pie(
            [values[i] for i in shown],
            labels=[labels[i] for i in shown],
            autopct="%1.1f%%",
            colors=[colors[i] for i in shown] if colors else None,
        )
        ax.axis("equal")
    else:
        ax.text(0.5, 0.5, "Keine Daten", ha="center", va="center", fontsize=14)
        ax.axis("off")
    if subtitle:
        fig.text(0.5, 0.02, subtitle, ha="center", va="bottom", fontsize=22, fontweight='bold')
    fig.savefig(filename, bbox_inches="tight")
    plt.close(fig)
    return list(wedges)


def create_distribution_chart(summary: dict, filename: str, config: dict, subtitle: str = None):
    """Verteilung Tagschicht / Nachtschicht / Frei / Urlaub aus einer summarize_days()-Zusammenfassung."""
    values = [summary.get(key, 0) for _, key in _SEGMENTS]
    labels = [config['label_names'][lbl] for lbl, _ in _SEGMENTS]
    colors = [config['colors'][lbl] for lbl, _ in _SEGMENTS]
    return create_pie_chart(values, labels, filename, colors=colors, subtitle=subtitle)
