import sys
import os
import time
import logging
import argparse
import traceback  # For global exception handler

from PyQt6.QtWidgets import QApplication, QMessageBox

LOG_FORMAT = "%(asctime)s - %(levelname)-8s - [%(name)s] - [%(filename)s:%(lineno)d] - %(message)s"
FILE_LOGGING_ENV = "IMGSORT_ENABLE_FILE_LOGGING"
LOG_FILE_PATH = os.path.join(os.path.expanduser("~"), ".imgsort_logs", "imgsort_app.log")


# --- Global Exception Handler ---
def global_exception_handler(exc_type, exc_value, exc_traceback):
    """Handles any unhandled exception, logs it, and shows an error dialog."""
    # Don't show a dialog for KeyboardInterrupt (Ctrl+C)
    if issubclass(exc_type, KeyboardInterrupt):
        logging.info("Application terminated by user.")
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    error_message_details = "".join(
        traceback.format_exception(exc_type, exc_value, exc_traceback)
    )
    logging.critical(f"Unhandled exception occurred:\n{error_message_details}")

    app_instance = QApplication.instance()
    main_error_text = (
        f"A critical error occurred: {str(exc_value)}\n\n"
        "The application may become unstable or need to close.\n"
        "Please report this error with the details provided."
    )

    if app_instance:
        try:
            error_box = QMessageBox()
            error_box.setIcon(QMessageBox.Icon.Critical)
            error_box.setWindowTitle("Application Error")
            error_box.setText(main_error_text)
            error_box.setDetailedText(error_message_details)  # Full traceback
            error_box.setStandardButtons(QMessageBox.StandardButton.Ok)
            error_box.exec()
        except Exception as e_msgbox:
            logging.error(
                f"Failed to display error dialog: {str(e_msgbox)}\nOriginal error:\n{error_message_details}"
            )
    else:
        logging.critical(
            f"Unhandled exception caught (QApplication not available):\n{error_message_details}"
        )


def setup_logging() -> None:
    """Replaces root handlers with console (and optionally file) handlers."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:  # Iterate over a copy
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if sys.stderr is not None:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(console_handler)

    root_logger.setLevel(logging.DEBUG)
    want_file_logging = (
        os.environ.get(FILE_LOGGING_ENV, "false").lower() == "true"
        or sys.stderr is None
    )
    if want_file_logging:
        try:
            os.makedirs(os.path.dirname(LOG_FILE_PATH), exist_ok=True)
            file_handler = logging.FileHandler(LOG_FILE_PATH, mode="a")
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)
            root_logger.addHandler(file_handler)
            logging.info(f"File logging enabled: {LOG_FILE_PATH}")
        except Exception as e_file_log:
            logging.error(
                f"Failed to initialize file logging: {e_file_log}", exc_info=True
            )
            root_logger.setLevel(logging.INFO)
    else:
        logging.info(f"File logging disabled. To enable, set {FILE_LOGGING_ENV}=true.")

    # --- Suppress verbose third-party loggers ---
    logging.getLogger("PIL").setLevel(logging.INFO)
    logging.getLogger("PIL.PngImagePlugin").setLevel(logging.INFO)
    logging.getLogger("PIL.TiffImagePlugin").setLevel(logging.INFO)
    logging.getLogger("PIL.Image").setLevel(logging.INFO)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="imgsort image viewer")
    parser.add_argument("--folder", type=str, help="Open specified folder at startup")
    parser.add_argument(
        "--clear-cache", action="store_true", help="Clear the image disk cache before starting"
    )
    parser.add_argument(
        "--radius", type=int, help="Images to preload on each side of the current one"
    )
    parser.add_argument("--workers", type=int, help="Number of concurrent decode workers")
    return parser


def build_config(args):
    """Persisted settings, overridden by command-line values when given."""
    from dataclasses import replace
    from imgsort.core.app_settings import get_thumbnail_strip_radius, load_prefetch_config

    config = load_prefetch_config()
    overrides = {}
    if args.radius is not None:
        overrides["window_radius"] = args.radius
        # Re-apply the stored strip radius; it is capped against the new window
        overrides["thumbnail_strip_radius"] = max(0, get_thumbnail_strip_radius())
    if args.workers is not None:
        overrides["worker_count"] = args.workers
    return replace(config, **overrides) if overrides else config


def main():
    """Main application entry point."""
    app = QApplication(sys.argv)
    parser = build_arg_parser()
    args = parser.parse_args()

    setup_logging()
    sys.excepthook = global_exception_handler
    logging.debug("Global exception hook set.")

    from pillow_heif import register_heif_opener

    register_heif_opener()

    main_start_time = time.perf_counter()
    logging.info("Application starting...")

    from imgsort.core.app_settings import get_thumbnail_disk_cache_size_bytes
    from imgsort.core.caching.disk_image_cache import DiskImageCache
    from imgsort.core.session import SessionContext
    from imgsort.ui.viewer_window import ViewerWindow

    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    disk_cache = DiskImageCache(size_limit=get_thumbnail_disk_cache_size_bytes())
    logging.debug(
        f"Disk image cache holds {len(disk_cache)} items ({disk_cache.volume() / (1024 * 1024):.2f} MB)"
    )
    if args.clear_cache:
        clear_start_time = time.perf_counter()
        disk_cache.clear()
        logging.info(
            f"Caches cleared via command line in {time.perf_counter() - clear_start_time:.4f}s"
        )

    session = SessionContext(config=config, disk_cache=disk_cache)
    window = ViewerWindow(session, initial_folder=args.folder)
    window.show()

    logging.info(
        f"Application setup complete in {time.perf_counter() - main_start_time:.4f}s. Entering event loop."
    )
    exit_code = app.exec()
    # closeEvent normally does this; it is idempotent
    session.close()
    logging.info(
        f"Application exited with code {exit_code}. Total runtime: {time.perf_counter() - main_start_time:.4f}s"
    )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
