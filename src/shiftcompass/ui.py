import sys
import os
import datetime
import logging
import tempfile
from datetime import timedelta

from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QTabWidget, QCalendarWidget, QPushButton, QLabel, QLineEdit,
    QSpinBox, QListWidget, QMessageBox, QDateEdit, QComboBox,
    QTableWidget, QTableWidgetItem, QFileDialog,
)
from PySide6.QtGui import QTextCharFormat, QBrush, QColor, QPixmap
from PySide6.QtCore import QDate, QThread, Signal, QObject

from shiftcompass.models import (
    CycleBlock, RotationPattern, Anchor, LeaveBlock, PRESET_CYCLES, WORK_TYPES, LEAVE, preset_pattern,
)
from shiftcompass.calendar_logic import (
    project_day, project_between, next_change, apply_leave,
    validate_pattern, validate_anchor, validate_leave,
)
from shiftcompass.pattern_parser import parse_description
from shiftcompass.statistics import summarize_days, summarize_range, monthly_breakdown
from shiftcompass.charts import create_distribution_chart
from shiftcompass.export_utils import (
    describe_pattern, format_projected_day, label_name, export_csv, export_pdf,
)
from shiftcompass.config import load_config, save_config, load_cycle, store_cycle, load_leave, store_leave


# === UI Text Constants ===
WINDOW_TITLE = "ShiftCompass"
PARSE_BTN_TEXT = "Erkennen"
ADD_BLOCK_BTN_TEXT = "Block hinzufügen"
REMOVE_BLOCK_BTN_TEXT = "Block entfernen"
SAVE_BTN_TEXT = "Rhythmus speichern"
CSV_BTN_TEXT = "CSV exportieren"
EXPORT_BTN_TEXT = "PDF-Report erstellen"
ADD_LEAVE_BTN_TEXT = "Urlaub eintragen"
REMOVE_LEAVE_BTN_TEXT = "Urlaub entfernen"
TEXT_PLACEHOLDER = "z.B. 5 days, 5 nights, 5 off. Jan 1 2026 is my Day 4."
FROM_LABEL = "Von:"
TO_LABEL = "Bis:"
PARSE_FAILED_TEXT = "Rhythmus nicht erkannt. Bitte anders formulieren oder Blöcke einzeln anlegen."
NO_PRESET_TEXT = "—"
CSV_FILE_FILTER = "CSV-Datei (*.csv)"
PDF_FILE_FILTER = "PDF-Datei (*.pdf)"
MONTH_NAMES = ["Jan", "Feb", "Mär", "Apr", "Mai", "Jun", "Jul", "Aug", "Sep", "Okt", "Nov", "Dez"]


def qdate_to_date(qdate):
    """Hilfsfunktion: QDate -> datetime.date"""
    return qdate.toPython() if hasattr(qdate, 'toPython') else datetime.date(qdate.year(), qdate.month(), qdate.day())


def date_to_qdate(d):
    return QDate(d.year, d.month, d.day)


def set_date_format(calendar, date_obj, color_hex):
    fmt = QTextCharFormat()
    fmt.setBackground(QBrush(QColor(color_hex)))
    calendar.setDateTextFormat(date_to_qdate(date_obj), fmt)


class RotationTab(QWidget):
    def __init__(self, parent):
        super().__init__()
        self.parent = parent
        layout = QVBoxLayout(self)

        # Freitext
        layout.addWidget(QLabel("💬 Rhythmus beschreiben:"))
        hl = QHBoxLayout()
        self.text_input = QLineEdit(); self.text_input.setPlaceholderText(TEXT_PLACEHOLDER)
        hl.addWidget(self.text_input)
        self.btn_parse = QPushButton(PARSE_BTN_TEXT)
        hl.addWidget(self.btn_parse)
        layout.addLayout(hl)

        # Presets
        hl = QHBoxLayout(); hl.addWidget(QLabel("Vorlage:"))
        self.preset = QComboBox(); self.preset.addItem(NO_PRESET_TEXT); self.preset.addItems(list(PRESET_CYCLES))
        hl.addWidget(self.preset); layout.addLayout(hl)

        # Blöcke
        layout.addWidget(QLabel("🔁 Blöcke:"))
        self.block_list = QListWidget()
        layout.addWidget(self.block_list)
        hl = QHBoxLayout()
        self.block_label = QComboBox()
        for lbl in WORK_TYPES:
            self.block_label.addItem(label_name(lbl, parent.config), lbl)
        hl.addWidget(self.block_label)
        self.block_duration = QSpinBox(); self.block_duration.setRange(1, 365); self.block_duration.setValue(5)
        hl.addWidget(self.block_duration)
        self.btn_add_block = QPushButton(ADD_BLOCK_BTN_TEXT); hl.addWidget(self.btn_add_block)
        self.btn_remove_block = QPushButton(REMOVE_BLOCK_BTN_TEXT); hl.addWidget(self.btn_remove_block)
        layout.addLayout(hl)
        self.total_label = QLabel("")
        layout.addWidget(self.total_label)

        # Anker
        layout.addWidget(QLabel("📌 Anker:"))
        hl = QHBoxLayout()
        hl.addWidget(QLabel("Datum:"))
        self.anchor_date = QDateEdit(QDate.currentDate()); self.anchor_date.setCalendarPopup(True)
        hl.addWidget(self.anchor_date)
        hl.addWidget(QLabel("Zyklustag:"))
        self.anchor_day = QSpinBox(); self.anchor_day.setRange(1, 1)
        hl.addWidget(self.anchor_day)
        self.btn_save = QPushButton(SAVE_BTN_TEXT); hl.addWidget(self.btn_save)
        layout.addLayout(hl)

        self.btn_parse.clicked.connect(self.parent.on_parse_text)
        self.preset.currentTextChanged.connect(self.parent.on_preset_selected)
        self.btn_add_block.clicked.connect(self.parent.on_add_block)
        self.btn_remove_block.clicked.connect(self.parent.on_remove_block)
        self.btn_save.clicked.connect(self.parent.on_save_cycle)


class CalendarTab(QWidget):
    def __init__(self, parent):
        super().__init__()
        self.parent = parent
        layout = QVBoxLayout(self)
        self.calendar = QCalendarWidget(); self.calendar.setGridVisible(True)
        layout.addWidget(self.calendar)
        self.detail = QLabel("")
        layout.addWidget(self.detail)
        self.next_change = QLabel("")
        layout.addWidget(self.next_change)

        # Urlaub ab dem gewählten Tag bis einschließlich leave_until
        hl = QHBoxLayout()
        hl.addWidget(QLabel("Urlaub bis:"))
        self.leave_until = QDateEdit(QDate.currentDate()); self.leave_until.setCalendarPopup(True)
        hl.addWidget(self.leave_until)
        self.btn_add_leave = QPushButton(ADD_LEAVE_BTN_TEXT); hl.addWidget(self.btn_add_leave)
        self.btn_remove_leave = QPushButton(REMOVE_LEAVE_BTN_TEXT); hl.addWidget(self.btn_remove_leave)
        layout.addLayout(hl)
        self.leave_list = QListWidget()
        layout.addWidget(self.leave_list)

        self.btn_add_leave.clicked.connect(self.parent.on_add_leave)
        self.btn_remove_leave.clicked.connect(self.parent.on_remove_leave)
        self.calendar.selectionChanged.connect(self.parent.on_calendar_click)
        self.calendar.currentPageChanged.connect(lambda *_: self.parent.refresh_calendar())


class StatisticsTab(QWidget):
    def __init__(self, parent):
        super().__init__()
        self.parent = parent
        layout = QVBoxLayout(self)
        hl = QHBoxLayout(); hl.addWidget(QLabel("Jahr:"))
        self.year = QSpinBox(); self.year.setRange(1900, 2200); self.year.setValue(datetime.date.today().year)
        hl.addWidget(self.year); layout.addLayout(hl)
        self.summary = QLabel("")
        layout.addWidget(self.summary)
        self.table = QTableWidget(12, len(WORK_TYPES) + 2)
        self.table.setHorizontalHeaderLabels(
            ["Monat"] + [label_name(lbl, parent.config) for lbl in WORK_TYPES + (LEAVE,)]
        )
        layout.addWidget(self.table)
        self.chart = QLabel()
        layout.addWidget(self.chart)

        self.year.valueChanged.connect(lambda *_: self.parent.refresh_statistics())


class ExportTab(QWidget):
    def __init__(self, parent):
        super().__init__()
        self.parent = parent
        layout = QVBoxLayout(self)

        hl = QHBoxLayout()
        hl.addWidget(QLabel(FROM_LABEL))
        self.date_from = QDateEdit(QDate.currentDate()); self.date_from.setCalendarPopup(True)
        hl.addWidget(self.date_from)
        hl.addWidget(QLabel(TO_LABEL))
        self.date_to = QDateEdit(QDate.currentDate().addDays(34)); self.date_to.setCalendarPopup(True)
        hl.addWidget(self.date_to)
        layout.addLayout(hl)

        self.btn_csv = QPushButton(CSV_BTN_TEXT)
        layout.addWidget(self.btn_csv)
        self.btn_export = QPushButton(EXPORT_BTN_TEXT)
        layout.addWidget(self.btn_export)

        self.btn_csv.clicked.connect(self.parent.on_export_csv)
        self.btn_export.clicked.connect(self.parent.on_export)


class ExportWorker(QObject):
    finished = Signal(str)
    error = Signal(str)

    def __init__(self, pattern, anchor, df, dt, filename, config, leave=None):
        super().__init__()
        self.pattern = pattern
        self.anchor = anchor
        self.df = df
        self.dt = dt
        self.filename = filename
        self.config = config
        self.leave = list(leave or [])

    def run(self):
        logging.info("[ShiftCompass] ExportWorker.run gestartet.")
        try:
            if self.df is None or self.dt is None or self.dt < self.df:
                self.error.emit("Fehler: Zeitraum ist ungültig.")
                logging.error("[ShiftCompass] Fehler: ungültiger Zeitraum im ExportWorker.")
                return
            days = apply_leave(project_between(self.pattern, self.anchor, self.df, self.dt), self.leave)
            with tempfile.TemporaryDirectory() as tmp:
                png = os.path.join(tmp, 'verteilung.png')
                create_distribution_chart(summarize_days(days), png, self.config)
                export_pdf(days, self.filename,
                           title=f"ShiftCompass Report – {self.pattern.name}",
                           config=self.config, chart_png=png)
            self.finished.emit(f"PDF erstellt: {self.filename}")
        except Exception as e:
            logging.error(f"ExportWorker error: {e}")
            self.error.emit(str(e))


class MainWindow(QMainWindow):
    def __init__(self, config=None):
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)
        self.resize(900, 650)
        self.config = config if config is not None else load_config()

        loaded = load_cycle(self.config)
        if loaded:
            self.pattern, self.anchor = loaded
        else:
            self.pattern = preset_pattern('Mining Standard')
            self.anchor = Anchor(datetime.date.today(), 1)
        self.leave = load_leave(self.config)
        self.edit_blocks = [CycleBlock(b.label, b.duration) for b in self.pattern.blocks]
        self.edit_name = self.pattern.name

        app = QApplication.instance()
        app.aboutToQuit.connect(self.cleanup)

        tabs = QTabWidget(); self.setCentralWidget(tabs)
        self.tab1 = RotationTab(self); self.tab2 = CalendarTab(self)
        self.tab3 = StatisticsTab(self); self.tab4 = ExportTab(self)
        tabs.addTab(self.tab1, "Rotation")
        tabs.addTab(self.tab2, "Kalender")
        tabs.addTab(self.tab3, "Statistiken")
        tabs.addTab(self.tab4, "Export")

        self.export_thread = None
        self.export_worker = None

        self.refresh_blocks()
        self.tab1.anchor_date.setDate(date_to_qdate(self.anchor.anchor_date))
        self.tab1.anchor_day.setValue(self.anchor.anchor_cycle_day)
        self.refresh_all()

    # --- Rotation-Tab ---
    def refresh_blocks(self):
        tab = self.tab1
        tab.block_list.clear()
        for b in self.edit_blocks:
            tab.block_list.addItem(f"{b.duration} × {label_name(b.label, self.config)}")
        total = sum(b.duration for b in self.edit_blocks)
        tab.total_label.setText(f"Zykluslänge: {total} Tage")
        tab.anchor_day.setRange(1, max(total, 1))

    def set_blocks(self, blocks, name='My Rotation'):
        self.edit_blocks = [CycleBlock(b.label, b.duration) for b in blocks]
        self.edit_name = name
        self.refresh_blocks()

    def on_parse_text(self):
        text = self.tab1.text_input.text()
        pattern, anchor = parse_description(text)
        if pattern is None:
            logging.info(f"[ShiftCompass] Freitext nicht erkannt: {text!r}")
            QMessageBox.warning(self, "Rhythmus", PARSE_FAILED_TEXT)
            return
        self.tab1.preset.setCurrentText(NO_PRESET_TEXT)
        self.set_blocks(pattern.blocks, pattern.name)
        if anchor is None:
            return
        try:
            validate_anchor(pattern, anchor)
        except ValueError as e:
            # Spinbox würde den Wert sonst stillschweigend auf total_days kappen
            logging.error(f"Ungültiger Anker im Freitext: {e}")
            QMessageBox.warning(self, "Anker", str(e))
            return
        self.tab1.anchor_date.setDate(date_to_qdate(anchor.anchor_date))
        self.tab1.anchor_day.setValue(anchor.anchor_cycle_day)

    def on_preset_selected(self, name):
        if name in PRESET_CYCLES:
            self.set_blocks(preset_pattern(name).blocks, name)

    def _blocks_edited(self):
        # eigene Blöcke sind kein Preset mehr
        self.tab1.preset.setCurrentText(NO_PRESET_TEXT)
        self.edit_name = 'My Rotation'
        self.refresh_blocks()

    def on_add_block(self):
        lbl = self.tab1.block_label.currentData()
        self.edit_blocks.append(CycleBlock(lbl, self.tab1.block_duration.value()))
        self._blocks_edited()

    def on_remove_block(self):
        row = self.tab1.block_list.currentRow()
        if row < 0 or row >= len(self.edit_blocks):
            return
        del self.edit_blocks[row]
        self._blocks_edited()

    def on_save_cycle(self):
        try:
            pattern = RotationPattern([CycleBlock(b.label, b.duration) for b in self.edit_blocks], name=self.edit_name)
            validate_pattern(pattern)
            anchor = Anchor(qdate_to_date(self.tab1.anchor_date.date()), self.tab1.anchor_day.value())
            validate_anchor(pattern, anchor)
        except ValueError as e:
            logging.error(f"Ungültiger Rhythmus: {e}")
            QMessageBox.critical(self, "Fehler", str(e))
            return
        self.pattern, self.anchor = pattern, anchor
        store_cycle(self.config, pattern, anchor)
        self._save_config()
        logging.info(f"[ShiftCompass] Rhythmus übernommen: {describe_pattern(pattern)}")
        self.refresh_all()

    def _save_config(self):
        try:
            save_config(self.config)
        except OSError as e:
            logging.error(f"Fehler beim Speichern der Konfiguration: {e}")
            QMessageBox.critical(self, "Fehler", f"Fehler beim Speichern: {e}")
            return False
        return True

    # --- Kalender-Tab ---
    def refresh_all(self):
        self.refresh_calendar()
        self.refresh_leave_list()
        self.on_calendar_click()
        self.refresh_statistics()

    def refresh_calendar(self):
        cal = self.tab2.calendar
        cal.setDateTextFormat(QDate(), QTextCharFormat())
        first = datetime.date(cal.yearShown(), cal.monthShown(), 1)
        # sichtbares Raster inkl. Randtage der Nachbarmonate
        days = project_between(self.pattern, self.anchor, first - timedelta(days=7), first + timedelta(days=45))
        for pd in apply_leave(days, self.leave):
            color = self.config['colors'][LEAVE] if pd.is_leave else self.config['colors'][pd.label]
            set_date_format(cal, pd.day, color)

    def refresh_leave_list(self):
        self.tab2.leave_list.clear()
        for b in self.leave:
            self.tab2.leave_list.addItem(f"{b.name}: {b.from_date.isoformat()} – {b.to_date.isoformat()}")

    def selected_day(self):
        return qdate_to_date(self.tab2.calendar.selectedDate())

    def on_calendar_click(self):
        selected = self.selected_day()
        pd = apply_leave([project_day(self.pattern, self.anchor, selected)], self.leave)[0]
        self.tab2.detail.setText(
            f"{selected.isoformat()}: {format_projected_day(pd, self.pattern.total_days, self.config)}"
        )
        self.tab2.leave_until.setDate(date_to_qdate(selected))
        change = next_change(self.pattern, self.anchor, selected)
        if change is None:
            self.tab2.next_change.setText("")
        else:
            self.tab2.next_change.setText(
                f"Nächster Wechsel: {change.day.isoformat()} ({label_name(change.label, self.config)})"
            )

    def on_add_leave(self):
        block = LeaveBlock(self.selected_day(), qdate_to_date(self.tab2.leave_until.date()))
        try:
            validate_leave(block)
        except ValueError as e:
            logging.error(f"Ungültiger Urlaub: {e}")
            QMessageBox.warning(self, "Urlaub", str(e))
            return
        self.leave = sorted(self.leave + [block], key=lambda b: b.from_date)
        self._save_config_leave()
        logging.info(f"[ShiftCompass] Urlaub eingetragen: {block.from_date} bis {block.to_date}")
        self.refresh_all()

    def on_remove_leave(self):
        selected = self.selected_day()
        remaining = [b for b in self.leave if not b.contains(selected)]
        if len(remaining) == len(self.leave):
            return
        self.leave = remaining
        self._save_config_leave()
        logging.info(f"[ShiftCompass] Urlaub am {selected} entfernt.")
        self.refresh_all()

    def _save_config_leave(self):
        store_leave(self.config, self.leave)
        self._save_config()

    # --- Statistik-Tab ---
    def refresh_statistics(self):
        year = self.tab3.year.value()
        s = summarize_range(self.pattern, self.anchor, datetime.date(year, 1, 1), datetime.date(year, 12, 31), self.leave)
        self.tab3.summary.setText(
            f"{label_name('work_day', self.config)}: {s['work_days']} | "
            f"{label_name('work_night', self.config)}: {s['work_nights']} | "
            f"{label_name('off', self.config)}: {s['off_days']} | "
            f"{label_name(LEAVE, self.config)}: {s['leave_days']} | Arbeit: {s['work_pct']}%"
        )
        for row, m in enumerate(monthly_breakdown(self.pattern, self.anchor, year, self.leave)):
            self.tab3.table.setItem(row, 0, QTableWidgetItem(MONTH_NAMES[m['month'] - 1]))
            for col, key in enumerate(('work_days', 'work_nights', 'off_days', 'leave_days'), start=1):
                self.tab3.table.setItem(row, col, QTableWidgetItem(str(m[key])))
        with tempfile.TemporaryDirectory() as tmp:
            png = os.path.join(tmp, 'verteilung.png')
            try:
                create_distribution_chart(s, png, self.config)
                self.tab3.chart.setPixmap(QPixmap(png).scaledToWidth(300))
            except Exception as e:
                logging.error(f"Fehler bei create_distribution_chart: {e}")

    # --- Export-Tab ---
    def export_range(self):
        return qdate_to_date(self.tab4.date_from.date()), qdate_to_date(self.tab4.date_to.date())

    def on_export_csv(self):
        df, dt = self.export_range()
        if dt < df:
            QMessageBox.warning(self, "Export", "Enddatum liegt vor dem Startdatum.")
            return
        fn, _ = QFileDialog.getSaveFileName(self, "CSV Export speichern", filter=CSV_FILE_FILTER)
        if not fn:
            return
        try:
            export_csv(apply_leave(project_between(self.pattern, self.anchor, df, dt), self.leave), fn, self.config)
        except OSError as e:
            logging.error(f"CSV export error: {e}")
            QMessageBox.critical(self, 'Export-Fehler', str(e))
            return
        QMessageBox.information(self, "Export", f"CSV erfolgreich gespeichert: {fn}")

    def export_running(self):
        thread = self.export_thread
        if thread is None:
            return False
        try:
            return thread.isRunning()
        except RuntimeError:
            # Thread-Objekt wurde bereits gelöscht
            self.export_thread = None
            return False

    def on_export(self):
        logging.info("[ShiftCompass] Export-Button wurde geklickt.")
        if self.export_running():
            logging.info("[ShiftCompass] Export-Thread läuft bereits.")
            return
        fn, _ = QFileDialog.getSaveFileName(self, "PDF Export speichern", filter=PDF_FILE_FILTER)
        if not fn:
            return
        df, dt = self.export_range()
        self.export_thread = QThread()
        self.export_worker = ExportWorker(self.pattern, self.anchor, df, dt, fn, self.config, self.leave)
        self.export_worker.moveToThread(self.export_thread)
        self.export_thread.started.connect(self.export_worker.run)
        self.export_worker.finished.connect(self.on_export_finished)
        self.export_worker.error.connect(self.on_export_error)
        self.export_worker.finished.connect(self.export_thread.quit)
        self.export_worker.error.connect(self.export_thread.quit)
        self.export_worker.finished.connect(self.export_worker.deleteLater)
        self.export_worker.error.connect(self.export_worker.deleteLater)
        self.export_thread.finished.connect(self.on_export_thread_done)
        self.export_thread.finished.connect(self.export_thread.deleteLater)
        self.export_thread.start()

    def on_export_thread_done(self):
        # Referenzen freigeben, die C++-Objekte werden per deleteLater gelöscht
        self.export_thread = None
        self.export_worker = None

    def on_export_finished(self, msg):
        QMessageBox.information(self, 'Export', msg)

    def on_export_error(self, msg):
        logging.error(f"Export error: {msg}")
        QMessageBox.critical(self, 'Export-Fehler', msg)

    def cleanup(self):
        thread = self.export_thread
        if thread is not None:
            try:
                if thread.isRunning():
                    thread.quit()
                    thread.wait()
            except RuntimeError:
                pass  # Thread-Objekt wurde bereits gelöscht
            self.export_thread = None


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    app = QApplication(sys.argv)
    win = MainWindow()
    win.show()
    sys.exit(app.exec())


if __name__ == '__main__':
    main()
