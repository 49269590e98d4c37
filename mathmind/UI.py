# UI.py
"""PySide6 user interface for the MathMind calculator.

Structure
---------
- Calculator UI: history list, display with keypad, AI assistant panel
- Settings UI: modal dialog for user preferences

Responsibilities (Calculator)
-----------------------------
- Build window, display, layout and buttons
- Forward every button press / key to CalculatorState and redraw from it
- Dispatch AI requests to AIService in a worker thread
- Copy the result to the clipboard


Responsibilities (Settings)
---------------------------

- Load Current Settings and Settings Descriptions via Config_Manager
- Validate user input (e.g. history size, start mode)
- Save and apply theme changes immediately


Threading Note
--------------
Calculations are instant and run on the UI thread. AI requests are executed off the UI thread in
Worker(QObject); the answer is emitted via a Qt signal and applied back on the UI thread, exactly once.
While a request is in flight both AI buttons are disabled.
"""

import logging
import sys
import threading

import pyperclip
from PySide6 import QtWidgets
from PySide6.QtCore import Qt, QObject, Signal

from . import AIService
from . import MathEngine
from . import config_manager as config_manager
from . import error as E
from .history import HISTORY_LIMIT
from .state import CalculatorState, SOLVE, EXPLAIN

logger = logging.getLogger(__name__)

# (label, text appended to the input or action name)
KEYPAD = [
    ('C', 'clear'), ('(', '('), (')', ')'), ('÷', '÷'),
    ('7', '7'), ('8', '8'), ('9', '9'), ('×', '×'),
    ('4', '4'), ('5', '5'), ('6', '6'), ('-', '-'),
    ('1', '1'), ('2', '2'), ('3', '3'), ('+', '+'),
    ('0', '0'), ('.', '.'), ('DEL', 'backspace'), ('=', 'calculate'),
]

SCIENTIFIC_KEYPAD = [
    ('sin', 'sin('), ('cos', 'cos('), ('tan', 'tan('), ('log', 'log('),
    ('π', 'π'), ('e', 'e'), ('^', '^'), ('√', '√('),
]

# Characters accepted from the keyboard as they are
TYPEABLE = set("0123456789.+-*/^()×÷πe") | set("abcdefghijklmnopqrstuvwxyz")

DARK_STYLESHEET = """
    QWidget {background-color: #121212; color: white;}
    QPushButton {background-color: #1e1e1e; color: white; font-weight: bold; border: 1px solid #2e2e2e;}
    QPushButton:disabled {color: #666666;}
    QListWidget, QTextBrowser {background-color: #1a1a1a; color: white; border: 1px solid #2e2e2e;}
"""


class Worker(QObject):
    """""

    Runs one AI request on a separate thread and emits a Signal with the answer (or the error)
    back to the Calculator UI for processing.

    """""

    job_finished = Signal(str, object)

    def __init__(self, kind, text):
        super().__init__()
        self.kind = kind
        self.text = text

    def run(self):
        if self.kind == EXPLAIN:
            # explain_concept never raises, it falls back to a fixed sentence
            self.job_finished.emit(self.kind, AIService.explain_concept(self.text))
            return

        try:
            response = AIService.solve_problem(self.text)
            self.job_finished.emit(self.kind, response)

        except E.AIServiceError as e:
            self.job_finished.emit(self.kind, e)

        except Exception as e:
            # Found an unexpected crash we didn't plan for (e.g., a bug in the code)
            logger.exception("AI worker crashed")
            critical_error = E.AIServiceError(
                message=f"Unexpected crash: {e}",
                code="9999",
                equation=self.text
            )
            self.job_finished.emit(self.kind, critical_error)


class SettingsDialog(QtWidgets.QDialog):
    """""

    Settings window. Booleans become checkboxes, everything else an input field.
    Saves through config_manager when OK is pressed, ignores the changes on Cancel.

    """""

    settings_saved = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.widgets = {}

        self.setWindowTitle("Calculator Settings")
        self.setMinimumSize(360, 260)

        main_layout = QtWidgets.QVBoxLayout(self)

        self.setting_value_list = config_manager.load_setting_value("all")
        self.setting_description_list = config_manager.load_setting_description("all")

        for key_value, value in self.setting_value_list.items():
            description = self.setting_description_list.get(key_value, key_value)

            # --- Checkbox Builder (for Boolean settings) ---
            if isinstance(value, bool):
                checkbox = QtWidgets.QCheckBox(description)
                checkbox.setChecked(value)
                main_layout.addWidget(checkbox)
                self.widgets[key_value] = checkbox

            # --- Input Field Builder (for Integer / Text settings) ---
            else:
                row_h_layout = QtWidgets.QHBoxLayout()
                main_layout.addLayout(row_h_layout)
                label = QtWidgets.QLabel(description + ":")
                input_field = QtWidgets.QLineEdit()
                input_field.setPlaceholderText(str(value))  # Show current value as placeholder
                row_h_layout.addWidget(label)
                row_h_layout.addWidget(input_field)
                row_h_layout.setStretch(1, 1)
                self.widgets[key_value] = input_field

        button_box = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.StandardButton.Ok | QtWidgets.QDialogButtonBox.StandardButton.Cancel)
        main_layout.addWidget(button_box)
        main_layout.addStretch(1)

        button_box.accepted.connect(lambda: self.save_settings(self.setting_value_list))
        button_box.rejected.connect(self.reject)

        self.update_darkmode()

    def validate(self, key_value, old_value, new_value_str):
        """Convert the text of an input field to the type of the stored setting."""
        if isinstance(old_value, int):
            new_value = int(new_value_str)
            if key_value == "history_limit" and new_value < 1:
                raise ValueError(f"'{new_value}' is too small. Minimum is 1.")
            if key_value == "history_limit" and new_value > HISTORY_LIMIT:
                raise ValueError(f"'{new_value}' is too big. Maximum is {HISTORY_LIMIT}.")
            return new_value

        if key_value == "default_mode":
            return MathEngine.resolve_mode(new_value_str).value
        return new_value_str

    def save_settings(self, setting_value_list):
        for key_value, widget in self.widgets.items():

            if isinstance(widget, QtWidgets.QCheckBox):
                setting_value_list[key_value] = widget.isChecked()

            elif isinstance(widget, QtWidgets.QLineEdit):
                new_value_str = widget.text().strip()
                # If user left it blank, keep the old value
                if new_value_str == "":
                    continue
                try:
                    setting_value_list[key_value] = self.validate(
                        key_value, setting_value_list[key_value], new_value_str)
                except ValueError as e:
                    logger.warning("Invalid input for %s: %s", key_value, e)
                    QtWidgets.QMessageBox.critical(self, "Invalid Input:",
                                                   f"Error in input for '{key_value}':\n\n{e}\n\nPlease correct your input.")
                    return  # Stop saving!

        saved_settings = config_manager.save_setting(setting_value_list)

        if saved_settings != {}:
            self.settings_saved.emit()
            self.accept()
        else:
            QtWidgets.QMessageBox.critical(self, "Error", E.ERROR_MESSAGES["5001"])

    def update_darkmode(self):
        if self.setting_value_list.get("darkmode") == True:
            self.setStyleSheet("""
                        QDialog {background-color: #121212;}
                        QLabel {color: white;}
                        QCheckBox {color: white;}
                        QLineEdit {background-color: #444444;color: white;border: 1px solid #666666;}
                        QDialogButtonBox QPushButton {background-color: #666666;color: white;}""")
        else:
            self.setStyleSheet("")


class CalculatorWindow(QtWidgets.QWidget):

    def __init__(self, state=None):
        super().__init__()

        self.setting_value_list = config_manager.load_setting_value("all")
        self.state = state or CalculatorState(self.setting_value_list)
        self.worker_instance = None  # Keeps the running Worker alive until it reports back
        self.ai_failure = None  # Text shown in the AI panel after a failed solve
        self.button_objects = {}

        self.setWindowTitle("MathMind Calculator")
        self.resize(1100, 640)
        main_h_layout = QtWidgets.QHBoxLayout(self)

        expanding_policy = QtWidgets.QSizePolicy(
            QtWidgets.QSizePolicy.Policy.Expanding,
            QtWidgets.QSizePolicy.Policy.Expanding
        )

        # --- 1. History (left) ---
        history_layout = QtWidgets.QVBoxLayout()
        history_header = QtWidgets.QHBoxLayout()
        history_header.addWidget(QtWidgets.QLabel("History"))
        clear_history_button = QtWidgets.QPushButton("Clear")
        clear_history_button.clicked.connect(self.handle_clear_history)
        history_header.addWidget(clear_history_button)
        history_layout.addLayout(history_header)
        self.history_list = QtWidgets.QListWidget()
        self.history_list.itemClicked.connect(self.handle_history_clicked)
        history_layout.addWidget(self.history_list)
        main_h_layout.addLayout(history_layout, 3)

        # --- 2. Calculator (center) ---
        calc_layout = QtWidgets.QVBoxLayout()

        mode_row = QtWidgets.QHBoxLayout()
        for mode in MathEngine.CalcMode:
            mode_button = QtWidgets.QPushButton(mode.value.capitalize())
            mode_button.setCheckable(True)
            mode_button.clicked.connect(lambda checked=False, m=mode: self.handle_mode(m))
            mode_row.addWidget(mode_button)
            self.button_objects[mode] = mode_button
        mode_row.addStretch(1)
        settings_button = QtWidgets.QPushButton("⚙")
        settings_button.clicked.connect(self.open_settings)
        mode_row.addWidget(settings_button)
        copy_button = QtWidgets.QPushButton("Copy")
        copy_button.clicked.connect(self.copy_result)
        mode_row.addWidget(copy_button)
        calc_layout.addLayout(mode_row)

        self.input_display = QtWidgets.QLabel("0")
        self.input_display.setAlignment(Qt.AlignmentFlag.AlignRight)
        font = self.input_display.font()
        font.setPointSize(18)
        self.input_display.setFont(font)
        calc_layout.addWidget(self.input_display)

        self.result_display = QtWidgets.QLabel("")
        self.result_display.setAlignment(Qt.AlignmentFlag.AlignRight)
        font = self.result_display.font()
        font.setPointSize(36)
        font.setBold(True)
        self.result_display.setFont(font)
        calc_layout.addWidget(self.result_display)

        self.scientific_container = QtWidgets.QWidget()
        scientific_grid = QtWidgets.QGridLayout(self.scientific_container)
        scientific_grid.setContentsMargins(0, 0, 0, 0)
        for position, (label, value) in enumerate(SCIENTIFIC_KEYPAD):
            button = QtWidgets.QPushButton(label)
            button.clicked.connect(lambda checked=False, val=value: self.handle_button_press(val))
            scientific_grid.addWidget(button, position // 4, position % 4)
        calc_layout.addWidget(self.scientific_container)

        button_container = QtWidgets.QWidget()
        button_grid = QtWidgets.QGridLayout(button_container)
        button_grid.setSpacing(4)
        button_grid.setContentsMargins(0, 0, 0, 0)
        for position, (label, value) in enumerate(KEYPAD):
            button = QtWidgets.QPushButton(label)
            button.setSizePolicy(expanding_policy)
            if label == '=':
                button.setStyleSheet("background-color: #007bff; color: white; font-weight: bold;")
            button.clicked.connect(lambda checked=False, val=value: self.handle_button_press(val))
            button_grid.addWidget(button, position // 4, position % 4)
        calc_layout.addWidget(button_container, 3)

        ai_row = QtWidgets.QHBoxLayout()
        self.solve_button = QtWidgets.QPushButton("AI Solve")
        self.solve_button.clicked.connect(lambda: self.start_ai_request(SOLVE))
        self.explain_button = QtWidgets.QPushButton("Explain")
        self.explain_button.clicked.connect(lambda: self.start_ai_request(EXPLAIN))
        ai_row.addWidget(self.solve_button, 3)
        ai_row.addWidget(self.explain_button, 1)
        calc_layout.addLayout(ai_row)

        main_h_layout.addLayout(calc_layout, 5)

        # --- 3. AI Assistant (right) ---
        ai_layout = QtWidgets.QVBoxLayout()
        ai_layout.addWidget(QtWidgets.QLabel("AI Assistant"))
        self.ai_panel = QtWidgets.QTextBrowser()
        ai_layout.addWidget(self.ai_panel)
        main_h_layout.addLayout(ai_layout, 4)

        self.update_darkmode()
        self.refresh()

    # --- Input handling ---
    def handle_button_press(self, value):
        if value == 'clear':
            self.state.clear()
        elif value == 'backspace':
            self.state.backspace()
        elif value == 'calculate':
            outcome = self.state.calculate()
            if outcome is not None and outcome.ok and self.setting_value_list.get("copy_on_result"):
                self.copy_result()
        else:
            self.state.handle_input(value)
        self.refresh()

    def keyPressEvent(self, event):
        key = event.key()
        if key in (Qt.Key.Key_Return, Qt.Key.Key_Enter, Qt.Key.Key_Equal):
            self.handle_button_press('calculate')
        elif key == Qt.Key.Key_Backspace:
            self.handle_button_press('backspace')
        elif key == Qt.Key.Key_Escape:
            self.handle_button_press('clear')
        elif event.text() and event.text() in TYPEABLE:
            self.handle_button_press(event.text())
        else:
            super().keyPressEvent(event)

    def handle_mode(self, mode):
        self.state.set_mode(mode)
        self.refresh()

    def handle_history_clicked(self, item):
        entry = item.data(Qt.ItemDataRole.UserRole)
        self.state.select_history(entry)
        self.refresh()

    def handle_clear_history(self):
        self.state.clear_history()
        self.refresh()

    def copy_result(self):
        if self.state.result and self.state.result != "Error":
            pyperclip.copy(self.state.result)

    # --- AI requests ---
    def start_ai_request(self, kind):
        if not self.state.begin_ai_request(kind):
            return
        self.ai_failure = None
        self.refresh()

        # --- Start Thread ---
        # Connect before starting so a fast answer cannot be missed
        self.worker_instance = Worker(kind, self.state.ai_request_text(kind))
        self.worker_instance.job_finished.connect(self.ai_result)
        my_thread = threading.Thread(target=self.worker_instance.run, daemon=True)
        my_thread.start()

    def ai_result(self, kind, payload):
        if kind == SOLVE:
            if isinstance(payload, E.MathError):
                self.state.finish_ai_solve(error=payload)
                self.ai_failure = f"AI request failed. {payload.describe()}"
            else:
                self.state.finish_ai_solve(response=payload)
        else:
            self.state.finish_ai_explain(payload)
        self.worker_instance = None
        self.refresh()

    # --- Rendering ---
    def refresh(self):
        state = self.state
        self.input_display.setText(state.input_text or "0")
        self.result_display.setText(f"= {state.result}" if state.result else "")
        self.result_display.setToolTip(state.last_error.describe() if state.last_error else "")

        for mode in MathEngine.CalcMode:
            self.button_objects[mode].setChecked(mode == state.mode)
        self.scientific_container.setVisible(state.mode == MathEngine.CalcMode.SCIENTIFIC)

        self.solve_button.setEnabled(state.can_solve)
        self.explain_button.setEnabled(state.can_explain)
        self.solve_button.setText("Analyzing..." if state.is_ai_loading else "AI Solve")

        self.history_list.clear()
        for entry in state.history:
            item = QtWidgets.QListWidgetItem(f"{entry.expression}\n= {entry.result}")
            item.setData(Qt.ItemDataRole.UserRole, entry)
            self.history_list.addItem(item)

        self.render_ai_panel()

    def render_ai_panel(self):
        state = self.state
        if state.is_ai_loading:
            self.ai_panel.setPlainText("Analyzing problem...")
        elif state.ai_analysis is not None:
            steps = "\n".join(f"{number}. {step}" for number, step in enumerate(state.ai_analysis.steps, start=1))
            self.ai_panel.setPlainText(
                f"Conceptual Summary\n{state.ai_analysis.explanation}\n\nStep-by-Step Solution\n{steps}")
        elif state.ai_explanation is not None:
            self.ai_panel.setPlainText(f"Deep Explanation\n{state.ai_explanation}")
        elif self.ai_failure:
            self.ai_panel.setPlainText(self.ai_failure)
        else:
            self.ai_panel.setPlainText("Enter a formula and click AI Solve for detailed breakdown.")

    def update_darkmode(self):
        if self.setting_value_list.get("darkmode") == True:
            self.setStyleSheet(DARK_STYLESHEET)
        else:
            self.setStyleSheet("")

    def open_settings(self):
        settings_dialog = SettingsDialog(self)
        settings_dialog.settings_saved.connect(self.apply_settings)
        settings_dialog.exec()  # "exec" makes the dialog modal (blocks main window)

    def apply_settings(self):
        self.setting_value_list = config_manager.load_setting_value("all")
        self.state.apply_settings(self.setting_value_list)
        self.update_darkmode()
        self.refresh()


def main():
    app = QtWidgets.QApplication(sys.argv)
    window = CalculatorWindow()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
