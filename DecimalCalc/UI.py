# UI.py
""""PySide6 user interface for the Decimal Calculator.

Structure
---------
- Calculator UI: main window with an editable display and a button grid
- Settings UI: modal dialog for user preferences

Responsibilities (Calculator)
-----------------------------
- Own one MathEngine.Calculator session, so `Ans` and variables carry over
- Dispatch the expression to MathEngine in a worker thread
- Render results and show MathEngine errors as dialogs
- Clipboard integration (click copies, Shift+click pastes)

Threading Note
--------------
Evaluation runs off the UI thread in Worker(QObject). Results (or errors)
are emitted via a Qt signal and handled back in the UI. Only one
calculation runs at a time because a session is not thread-safe.
"""""

import logging
import threading

import pyperclip
from pynput import keyboard
from PySide6 import QtWidgets
from PySide6.QtCore import Qt, QObject, Signal

from . import error as E
from . import config_manager as config_manager
from . import MathEngine as MathEngine

logger = logging.getLogger(__name__)


class ShiftWatcher:
    """Tracks the Shift key system-wide, so a mouse click can tell copy from paste."""

    def __init__(self):
        self.shift_is_held = False
        self.listener = keyboard.Listener(on_press=self.on_press, on_release=self.on_release)
        self.listener.daemon = True

    def start(self):
        self.listener.start()

    def stop(self):
        self.listener.stop()

    def on_press(self, key):
        if key in (keyboard.Key.shift, keyboard.Key.shift_l, keyboard.Key.shift_r):
            self.shift_is_held = True

    def on_release(self, key):
        if key in (keyboard.Key.shift, keyboard.Key.shift_l, keyboard.Key.shift_r):
            self.shift_is_held = False


class Worker(QObject):
    """""

    Runs one calculation on a separate thread and emits job_finished with
    either the result string or the MathError.

    """""

    job_finished = Signal(object, str)

    def __init__(self, calculator, problem):
        super().__init__()
        self.calculator = calculator
        self.data = problem

    def run_Calc(self):
        try:
            result = MathEngine.calculate(self.data, self.calculator)
            self.job_finished.emit(result, self.data)

        except E.MathError as e:
            # Known, handled error (e.g. "Division by zero")
            self.job_finished.emit(e, self.data)


class SettingsDialog(QtWidgets.QDialog):
    """""

    Settings window. Boolean settings become checkboxes, integer settings
    input fields; descriptions come from ui_strings.json.

    """""

    settings_saved = Signal()

    # Lower bounds for the integer settings
    MINIMUMS = {"precision": 2, "max_exponent": 1}

    def __init__(self, parent=None):
        super().__init__(parent)
        self.widgets = {}

        self.setWindowTitle("Calculator Settings")
        self.setMinimumSize(340, 240)

        main_layout = QtWidgets.QVBoxLayout(self)

        self.setting_value_list = config_manager.load_setting_value("all")
        self.setting_description_list = config_manager.load_setting_description("all")

        for key_value, value in self.setting_value_list.items():
            description = self.setting_description_list.get(key_value, key_value)

            if isinstance(value, bool):
                checkbox = QtWidgets.QCheckBox(description)
                checkbox.setChecked(value)
                main_layout.addWidget(checkbox)
                self.widgets[key_value] = checkbox

            elif isinstance(value, int):
                row_h_layout = QtWidgets.QHBoxLayout()
                main_layout.addLayout(row_h_layout)
                minimum = self.MINIMUMS.get(key_value, 0)
                label = QtWidgets.QLabel(f"{description} (min. {minimum}):")
                input_field = QtWidgets.QLineEdit()
                input_field.setPlaceholderText(str(value))
                row_h_layout.addWidget(label)
                row_h_layout.addWidget(input_field)
                row_h_layout.setStretch(1, 1)
                self.widgets[key_value] = input_field

        button_box = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.Ok | QtWidgets.QDialogButtonBox.Cancel)
        main_layout.addWidget(button_box)
        main_layout.addStretch(1)

        button_box.accepted.connect(self.save_settings)
        button_box.rejected.connect(self.reject)

        self.update_darkmode()

    def save_settings(self):
        settings = dict(self.setting_value_list)
        for key_value, widget in self.widgets.items():
            if isinstance(widget, QtWidgets.QCheckBox):
                settings[key_value] = widget.isChecked()

            elif isinstance(widget, QtWidgets.QLineEdit):
                new_value_str = widget.text().strip()
                if new_value_str == "":
                    continue
                try:
                    new_value_int = int(new_value_str)
                    minimum = self.MINIMUMS.get(key_value, 0)
                    if new_value_int < minimum:
                        raise ValueError(f"'{new_value_int}' is too small. Minimum is {minimum}.")
                except ValueError as e:
                    QtWidgets.QMessageBox.critical(
                        self, "Invalid Input:",
                        f"Error in input for '{key_value}':\n\n{e}\n\nPlease correct your input.")
                    return
                settings[key_value] = new_value_int

        if config_manager.save_setting(settings) != {}:
            self.setting_value_list = settings
            self.settings_saved.emit()
            self.accept()
        else:
            QtWidgets.QMessageBox.critical(
                self, "Error", f"Error 5001: {E.ERROR_MESSAGES['5001']}{config_manager.config_json}")

    def update_darkmode(self):
        if self.setting_value_list["darkmode"]:
            self.setStyleSheet("""
                        QDialog {background-color: #121212;}
                        QLabel {color: white;}
                        QCheckBox {color: white;}
                        QLineEdit {background-color: #444444;color: white;border: 1px solid #666666;}
                        QDialogButtonBox QPushButton {background-color: #666666;color: white;}""")
        else:
            self.setStyleSheet("")


class CalculatorWindow(QtWidgets.QWidget):

    # (text, row, column)
    BUTTONS = [
        ('⚙', 0, 0), ('📋', 0, 1), ('Ans', 0, 2), ('C', 0, 3), ('<', 0, 4),
        ('π', 1, 0), ('e', 1, 1), ('√', 1, 2), ('^', 1, 3), ('/', 1, 4),
        ('sin(', 2, 0), ('(', 2, 1), (')', 2, 2), ('!', 2, 3), ('*', 2, 4),
        ('cos(', 3, 0), ('7', 3, 1), ('8', 3, 2), ('9', 3, 3), ('-', 3, 4),
        ('tan(', 4, 0), ('4', 4, 1), ('5', 4, 2), ('6', 4, 3), ('+', 4, 4),
        ('log(', 5, 0), ('1', 5, 1), ('2', 5, 2), ('3', 5, 3), ('=', 5, 4),
        ('x', 6, 0), (',', 6, 1), ('0', 6, 2), ('.', 6, 3), ('⏎', 6, 4),
    ]

    def __init__(self, settings=None):
        super().__init__()

        self.setting_value_list = settings or config_manager.load_setting_value("all")
        self.calculator = MathEngine.Calculator(self.setting_value_list)
        self.thread_active = False
        self.equation = ""
        self.shift_watcher = ShiftWatcher()
        self.shift_watcher.start()

        self.setWindowTitle("Calculator")
        self.resize(400, 540)
        main_v_layout = QtWidgets.QVBoxLayout(self)

        expanding_policy = QtWidgets.QSizePolicy(
            QtWidgets.QSizePolicy.Policy.Expanding,
            QtWidgets.QSizePolicy.Policy.Expanding
        )

        self.history = QtWidgets.QLabel("")
        self.history.setAlignment(Qt.AlignmentFlag.AlignRight)
        main_v_layout.addWidget(self.history)

        self.display = QtWidgets.QLineEdit("")
        self.display.setAlignment(Qt.AlignmentFlag.AlignRight)
        font = self.display.font()
        font.setPointSize(28)
        self.display.setFont(font)
        self.display.returnPressed.connect(self.start_calculation)
        main_v_layout.addWidget(self.display, 1)

        button_container = QtWidgets.QWidget()
        main_v_layout.addWidget(button_container, 3)
        button_grid = QtWidgets.QGridLayout(button_container)
        button_grid.setSpacing(0)
        button_grid.setContentsMargins(0, 0, 0, 0)

        self.button_objects = {}
        for text, row, col in self.BUTTONS:
            button = QtWidgets.QPushButton(text)
            button.setSizePolicy(expanding_policy)
            button.clicked.connect(lambda checked=False, val=text: self.handle_button_press(val))
            button_grid.addWidget(button, row, col)
            self.button_objects[text] = button

        self.update_darkmode()

    def handle_button_press(self, value):
        if value == '⚙':
            self.open_settings()
        elif value == '📋':
            self.handle_clipboard()
        elif value == '⏎':
            self.start_calculation()
        elif value == 'C':
            self.display.clear()
        elif value == '<':
            self.display.backspace()
        else:
            self.display.insert(value)
        self.display.setFocus()

    def handle_clipboard(self):
        if self.shift_watcher.shift_is_held:
            clipboard_text = pyperclip.paste()
            if clipboard_text:
                self.display.insert(clipboard_text.strip())
                if self.setting_value_list["after_paste_enter"]:
                    self.start_calculation()
        else:
            pyperclip.copy(self.display.text())

    def start_calculation(self):
        if self.thread_active:
            logger.warning("Error 4002: %s", E.ERROR_MESSAGES["4002"])
            return
        problem = self.display.text().strip()
        if not problem:
            return

        self.thread_active = True
        self.update_return_button()
        self.equation = problem
        self.display.setText("...")
        QtWidgets.QApplication.processEvents()

        worker_instance = Worker(self.calculator, problem)
        worker_instance.job_finished.connect(self.Calc_result)
        self.worker_instance = worker_instance  # keep alive until the signal arrives
        threading.Thread(target=worker_instance.run_Calc, daemon=True).start()

    def Calc_result(self, result, equation):
        self.thread_active = False
        self.update_return_button()

        if isinstance(result, E.MathError):
            error_box = QtWidgets.QMessageBox(self)
            error_box.setIcon(QtWidgets.QMessageBox.Critical)
            error_box.setWindowTitle(E.error_category(result.code))
            error_box.setText(f"Error {result.code}: {E.ERROR_MESSAGES.get(result.code, 'Unknown error')}")
            error_box.setInformativeText(f"Details: {result.message}\nEquation: {result.equation}")
            error_box.setStandardButtons(QtWidgets.QMessageBox.Ok)
            error_box.setStyleSheet(self.get_message_box_stylesheet())
            error_box.exec()
            self.display.setText(equation)
            return

        if self.setting_value_list["show_equation"]:
            self.history.setText(f"{equation} =")
        else:
            self.history.setText("")
        self.display.setText(result)

    def update_return_button(self):
        return_button = self.button_objects['⏎']
        if self.thread_active:
            return_button.setStyleSheet("background-color: #FF0000; color: white; font-weight: bold;")
            return_button.setText("X")
        else:
            return_button.setStyleSheet("background-color: #007bff; color: white; font-weight: bold;")
            return_button.setText("⏎")

    def update_darkmode(self):
        if self.setting_value_list["darkmode"]:
            for text, button in self.button_objects.items():
                if text != '⏎':
                    button.setStyleSheet("background-color: #121212; color: white; font-weight: bold;")
            self.setStyleSheet("background-color: #121212; color: white;")
            self.display.setStyleSheet("background-color: #121212; color: white; font-weight: bold;")
        else:
            for text, button in self.button_objects.items():
                if text != '⏎':
                    button.setStyleSheet("font-weight: normal;")
            self.setStyleSheet("")
            self.display.setStyleSheet("font-weight: bold;")
        self.update_return_button()

    def open_settings(self):
        settings_dialog = SettingsDialog(self)
        settings_dialog.exec()

        # Precision and angle mode only apply to a new session; Ans and variables are kept
        self.setting_value_list = config_manager.load_setting_value("all")
        variables = self.calculator.context.variables
        self.calculator = MathEngine.Calculator(self.setting_value_list)
        self.calculator.context.variables.update(variables)
        self.update_darkmode()

    def get_message_box_stylesheet(self):
        if self.setting_value_list["darkmode"]:
            return """
                QMessageBox { background-color: #121212; color: white; }
                QLabel { color: white; }
                QPushButton {
                    background-color: #2e2e2e;
                    color: white;
                    border: 1px solid #444444;
                    padding: 5px 15px;
                }
            """
        return ""

    def closeEvent(self, event):
        self.shift_watcher.stop()
        super().closeEvent(event)


def main():
    app = QtWidgets.QApplication()
    window = CalculatorWindow()
    window.show()
    return app.exec()
