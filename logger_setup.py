import os
import logging
import sys
import traceback
from datetime import datetime

LOG_FORMAT = '%(asctime)s [%(levelname)s] [%(name)s:%(lineno)d] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name, log_prefix='dropbox_pattern_cleaner', log_dir='logs', console_level=logging.WARNING):
    """
    Set up the application logger with file and console handlers.
    File: {log_dir}/{prefix}_{timestamp}.log (DEBUG level)
    Console: stderr (WARNING level by default, so the interactive
    output on stdout stays readable)

    Module loggers named "{name}.<something>" propagate here.
    """
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_filename = os.path.join(log_dir, f"{log_prefix}_{timestamp}.log")

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers if already setup
    if not logger.handlers:
        try:
            file_handler = logging.FileHandler(log_filename, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
            logger.addHandler(file_handler)
        except OSError as e:
            print(f"Warning: Could not create log file {log_filename}: {e}")
            log_filename = None

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        logger.addHandler(console_handler)

    return logger, log_filename


def format_api_error(e):
    """
    Format a Dropbox ApiError (or a transport error) for logging.
    Pulls out the structured error, user-facing message and request id
    where the exception carries them.
    """
    if not hasattr(e, 'error') and not hasattr(e, 'request_id'):
        return f"{type(e).__name__}: {e}"

    error_msg = f"API Error: {str(e)}"

    try:
        if getattr(e, 'error', None) is not None:
            error_msg += f"\n  - Error Detail: {e.error}"

        if getattr(e, 'user_message_text', None):
            error_msg += f"\n  - User Message: {e.user_message_text}"

        if getattr(e, 'request_id', None):
            error_msg += f"\n  - Request ID: {e.request_id}"

        # ListFolderError / LookupError expose is_path(); the batch
        # endpoints report rate limiting separately.
        err = getattr(e, 'error', None)
        if hasattr(err, 'is_path') and err.is_path():
            path_error = err.get_path()
            if hasattr(path_error, 'is_not_found') and path_error.is_not_found():
                error_msg += "\n  - Path Error: not_found (folder does not exist)"
            else:
                error_msg += f"\n  - Path Error: {path_error}"
        elif hasattr(err, 'is_too_many_write_operations') and err.is_too_many_write_operations():
            error_msg += "\n  - Type: Rate Limit (Too many write operations)"
    except Exception as formatting_err:
        error_msg += f" (Note: Error while formatting detailed error: {formatting_err})"

    return error_msg


def log_exception(logger, message, exc=None):
    """Log an error line and keep the full traceback at DEBUG."""
    if exc:
        logger.error(f"{message}: {format_api_error(exc)}")
        logger.debug(''.join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    else:
        logger.exception(message)
