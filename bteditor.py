"""
Behavior Tree Editor
Main entry point for the application.
"""

import logging
import sys

from PyQt5.QtWidgets import QApplication

from config import EditorConfig, configure_logging
from window import BehaviorTreeEditorWindow

log = logging.getLogger(__name__)


def _log_uncaught(exc_type, exc_value, exc_traceback):
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    log.error("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))


def main():
    config = EditorConfig.from_env()
    log_file = configure_logging(config)
    # PyQt aborts on exceptions escaping a slot unless an excepthook is installed
    sys.excepthook = _log_uncaught
    log.info("Starting, logging to %s", log_file)

    app = QApplication(sys.argv)

    # Set application style
    app.setStyle("Fusion")

    # Create and show the main window
    window = BehaviorTreeEditorWindow(config)

    # Run the application
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
