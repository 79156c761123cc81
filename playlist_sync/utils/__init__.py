"""
Utilities package
Logging, file naming helpers and file validation
"""

from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    OperationLogger,
    get_current_log_file
)
from .helpers import (
    sanitize_filename,
    build_track_filename,
    remove_quietly,
    format_duration,
    format_file_size
)

__all__ = [
    # Logger exports
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'OperationLogger',
    'get_current_log_file',

    # Helper exports
    'sanitize_filename',
    'build_track_filename',
    'remove_quietly',
    'format_duration',
    'format_file_size',
]
