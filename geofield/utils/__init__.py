from .logging import ROOT_LOGGER_NAME, get_logger, log_metrics, csv_logger

__all__ = ["ROOT_LOGGER_NAME", "get_logger", "log_metrics", "csv_logger"]
