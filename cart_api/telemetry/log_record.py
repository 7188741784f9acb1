import json
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class Severity(str, Enum):
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"


def severity_for_status(status_code: int) -> Severity:
    if status_code >= 500:
        return Severity.ERROR
    if status_code >= 400:
        return Severity.WARNING
    return Severity.INFO


@dataclass(frozen=True, slots=True)
class LogRecord:
    timestamp: str
    correlation_id: str
    url: str
    message: str
    service: str
    severity: Severity

    @staticmethod
    def for_response(
        *,
        correlation_id: str,
        url: str,
        method: str,
        path: str,
        status_code: int,
        service: str,
    ) -> "LogRecord":
        now = datetime.now(timezone.utc)
        return LogRecord(
            timestamp=now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            correlation_id=correlation_id,
            url=url,
            message=f"{method} - {path}",
            service=service,
            severity=severity_for_status(status_code),
        )

    def to_json(self) -> bytes:
        return json.dumps(
            {
                "timestamp": self.timestamp,
                "correlationId": self.correlation_id,
                "url": self.url,
                "message": self.message,
                "service": self.service,
                "type": self.severity.value,
            }
        ).encode("utf-8")
