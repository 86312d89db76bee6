import logging
import pathlib

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

class FileLoggingContext:
    """
    Context manager mirroring everything logged during a conversion to a log file.

    The file is rewritten on every run so repeated conversions of one scene leave a single
    log of the latest run.
    """

    def __init__(self, log_file_path: pathlib.Path, level: int = logging.INFO) -> None:
        """
        Args:
            log_file_path: the log file to write
            level: the minimum level of mirrored records
        """

        self.log_file_path = log_file_path
        self.level = level
        self.file_handler: logging.FileHandler | None = None
        self.original_level: int | None = None

    def __enter__(self) -> "FileLoggingContext":
        self.file_handler = logging.FileHandler(self.log_file_path, mode="w")
        self.file_handler.setLevel(self.level)
        self.file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

        # The root logger sees every module logger
        root_logger = logging.getLogger()
        root_logger.addHandler(self.file_handler)
        if root_logger.getEffectiveLevel() > self.level:
            self.original_level = root_logger.level
            root_logger.setLevel(self.level)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        root_logger = logging.getLogger()
        if self.file_handler in root_logger.handlers:
            root_logger.removeHandler(self.file_handler)
        if self.original_level is not None:
            root_logger.setLevel(self.original_level)
            self.original_level = None
        if self.file_handler:
            self.file_handler.close()
            self.file_handler = None
