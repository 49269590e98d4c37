# Main.py
""""" Entry point for the MathMind calculator.

   Responsibilities:
   - Detect run mode (script vs PyInstaller.exe)
   - Verify required files exist in development mode
   - Load configuration, set up logging and start the Qt GUI

"""""
import logging
import sys
from pathlib import Path

from mathmind import config_manager as config_manager

logger = logging.getLogger("mathmind")


# Resolve project root depending on run mode (Script or .exe)

if getattr(sys, 'frozen', False):
    PROJECT_ROOT = Path(sys._MEIPASS)
else:
    PROJECT_ROOT = Path(__file__).resolve().parent


def check_files_exist():

    """
      Fail fast in development if required files are missing / moved / renamed.
      In production (.exe) files are embedded by the bundler, so the check is skipped.
    """

    package_dir = PROJECT_ROOT / "mathmind"

    REQUIRED = [
        package_dir / "UI.py",
        package_dir / "MathEngine.py",
        package_dir / "ScientificEngine.py",
        package_dir / "AIService.py",
        package_dir / "config_manager.py",
        PROJECT_ROOT / "config.json",
        PROJECT_ROOT / "ui_strings.json",
    ]

    missing_files = [file_path.name for file_path in REQUIRED if not file_path.exists()]

    if missing_files:
        print("Error: The following files are missing or in the wrong location:")
        for file_name in missing_files:
            print(f"- {file_name}")
        sys.exit(1)


def setup_logging(settings):
    level = logging.DEBUG if settings.get("debug") else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main():

    """
    Load configuration and start the GUI.
    - Keep this thin: no business logic here.
    """

    all_settings = config_manager.load_setting_value("all")
    setup_logging(all_settings)
    logger.debug("Config loaded: %s", all_settings)

    # Imported late so a missing Qt installation shows up after the file check
    from mathmind import UI

    # Delegate control to the UI layer; the UI owns the event loop.
    UI.main()


if __name__ == "__main__":
    # Two explicit modes aid debugging & packaging clarity.
    is_running_as_exe = getattr(sys, 'frozen', False)

    if not is_running_as_exe:
        print("Developer Mode: Checking file paths...")
        check_files_exist()
    else:
        print("Production mode (.exe) is starting...")
    main()
