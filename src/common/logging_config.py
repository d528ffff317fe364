"""
Centralized Logging Configuration for the Infrasound Mode Solver

Structured logging for long azimuth sweeps: every record can carry the
azimuth and frequency it belongs to, and the JSON formatter forwards
them so a sweep log can be filtered per azimuth.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

# Handlers are installed on the service logger and on the library hierarchy
LIBRARY_LOGGER = 'src'

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging
    """

    # LogRecord attributes forwarded when present
    CONTEXT_FIELDS = ('service', 'component', 'azimuth', 'frequency')

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON

        Args:
            record: Log record

        Returns:
            One JSON object per line
        """
        log_data = {
            'timestamp': _utc_timestamp(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        for name in self.CONTEXT_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def _build_handlers(level: int, formatter: logging.Formatter,
                    log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = True
) -> logging.Logger:
    """
    Set up logging for a service

    Library modules log under the ``src`` hierarchy, so the handlers are
    attached both to the service logger and to ``src``. Calling this
    again replaces the handlers installed by the previous call.

    Args:
        service_name: Name of the service (e.g., 'inframodes')
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path (None for stdout only)
        json_format: Use JSON formatting (True) or simple text (False)

    Returns:
        Configured service logger
    """
    level = getattr(logging, log_level.upper())
    formatter = JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT)
    handlers = _build_handlers(level, formatter, log_file)

    for name in (service_name, LIBRARY_LOGGER):
        target = logging.getLogger(name)
        target.setLevel(level)
        target.handlers.clear()
        for handler in handlers:
            target.addHandler(handler)
        target.propagate = False

    return logging.getLogger(service_name)


class ServiceLogger:
    """
    Wrapper for service-specific logging with extra context

    Context given at construction (or through bind()) is attached to
    every record; per-call ``extra`` entries override it.
    """

    def __init__(self, service_name: str, component: Optional[str] = None,
                 **context: Any):
        """
        Initialize service logger

        Args:
            service_name: Name of the service
            component: Optional component name within service
            **context: Fixed record fields such as azimuth or frequency
        """
        self.logger = logging.getLogger(service_name)
        self.service_name = service_name
        self.component = component
        self.context = context

    def bind(self, **context: Any) -> 'ServiceLogger':
        """Logger for the same component with additional fixed fields"""
        merged = dict(self.context)
        merged.update(context)
        return ServiceLogger(self.service_name, self.component, **merged)

    def _add_context(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        context: Dict[str, Any] = {'service': self.service_name}
        if self.component:
            context['component'] = self.component
        context.update(self.context)
        if extra:
            context.update(extra)
        return context

    def log(self, level: int, message: str, extra: Optional[Dict[str, Any]] = None,
            exc_info: bool = False) -> None:
        self.logger.log(level, message, extra=self._add_context(extra), exc_info=exc_info)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.log(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.log(logging.WARNING, message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        self.log(logging.ERROR, message, extra, exc_info)


class MetricsLogger:
    """
    Log run metrics (mode counts, solve durations) as JSON lines

    Metric names get a suffix by kind: ``_total`` for counters and
    ``_seconds`` for durations; gauges are logged unchanged.
    """

    def __init__(self, service_name: str, **labels: str):
        """
        Initialize metrics logger

        Args:
            service_name: Name of the service
            **labels: Labels attached to every metric (e.g. frequency)
        """
        self.logger = logging.getLogger(f"{service_name}.metrics")
        self.labels = labels

    def log_metric(self, metric_name: str, value: float, labels: Optional[Dict[str, str]] = None):
        """
        Log a metric value

        Args:
            metric_name: Name of the metric
            value: Metric value
            labels: Labels for this observation, merged over the fixed ones
        """
        metric_data: Dict[str, Any] = {
            'metric': metric_name,
            'value': value,
            'timestamp': _utc_timestamp()
        }

        merged = dict(self.labels)
        if labels:
            merged.update(labels)
        if merged:
            metric_data['labels'] = merged

        self.logger.info(json.dumps(metric_data))

    def log_counter(self, name: str, increment: int = 1, labels: Optional[Dict[str, str]] = None):
        self.log_metric(f"{name}_total", increment, labels)

    def log_gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None):
        self.log_metric(name, value, labels)

    def log_duration(self, name: str, seconds: float, labels: Optional[Dict[str, str]] = None):
        self.log_metric(f"{name}_seconds", seconds, labels)
