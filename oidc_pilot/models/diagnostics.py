"""
Models for the identity provider diagnostics report.

Serialized with camelCase keys (``model_dump(by_alias=True)``).
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Priority(str, Enum):
    """Recommendation priority."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    INFO = "INFO"


class OverallStatus(str, Enum):
    PASS = "PASS"
    PARTIAL_PASS = "PARTIAL_PASS"


class ProbeResult(_CamelModel):
    """Outcome of one diagnostic probe."""

    success: bool
    url: Optional[str] = None
    status: Optional[int] = Field(None, description="HTTP status code")
    status_text: Optional[str] = None
    error: Optional[str] = None
    note: Optional[str] = None
    data: Optional[Any] = Field(None, description="Parsed response body, when captured")
    key_count: Optional[int] = None
    generated_url: Optional[str] = None


class DiagnosticSummary(_CamelModel):
    total_tests: int
    successful_tests: int
    failed_tests: int
    overall_status: OverallStatus

    @classmethod
    def from_results(cls, results: Dict[str, ProbeResult]) -> "DiagnosticSummary":
        total = len(results)
        successful = sum(1 for result in results.values() if result.success)
        failed = total - successful
        return cls(
            total_tests=total,
            successful_tests=successful,
            failed_tests=failed,
            overall_status=OverallStatus.PASS if failed == 0 else OverallStatus.PARTIAL_PASS,
        )


class Recommendation(_CamelModel):
    priority: Priority
    message: str
    action: str


class ConfigurationEcho(_CamelModel):
    """Effective configuration, with credentials reduced to SET / NOT SET."""

    client_id: str
    client_secret: str
    issuer: str
    scopes: List[str]


class DiagnosticReport(_CamelModel):
    """Aggregate of all probe results, built fresh for every request."""

    timestamp: str
    configuration: ConfigurationEcho
    tests: Dict[str, ProbeResult] = Field(default_factory=dict)
    summary: DiagnosticSummary
    recommendations: List[Recommendation] = Field(default_factory=list)
