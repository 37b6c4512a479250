"""Report models serialized to the JSON artifact."""

from datetime import datetime, timezone
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChangeRecord(_ReportModel):
    """One applied fix as it appears in the report."""

    type: str  # rule id
    kind: str
    line: int
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    action: Optional[str] = None


class FindingRecord(_ReportModel):
    rule: str
    severity: str
    category: str
    message: str
    line: int
    column: int
    hint: Optional[str] = None
    detail: Optional[str] = None


class ErrorRecord(_ReportModel):
    """A parse, detection, fix or write failure."""

    stage: str  # "parse", "analyze", "detect", "fix", "write"
    message: str
    rule: Optional[str] = None
    line: Optional[int] = None


class FileReport(_ReportModel):
    file: str
    changes: List[ChangeRecord] = Field(default_factory=list)
    findings: List[FindingRecord] = Field(default_factory=list)
    parse_failed: bool = False
    written: bool = False
    errors: List[ErrorRecord] = Field(default_factory=list)


class IssueSummary(_ReportModel):
    rule: str
    name: str
    category: str
    severity: str
    message: str
    hint: Optional[str] = None
    count: int = 0
    files: List[str] = Field(default_factory=list)


class FileRank(_ReportModel):
    file: str
    issues: int


class Summary(_ReportModel):
    by_severity: Dict[str, int] = Field(default_factory=dict)
    by_category: Dict[str, int] = Field(default_factory=dict)
    by_rule: Dict[str, int] = Field(default_factory=dict)
    total_issues: int = 0
    total_good: int = 0
    unresolved_errors: int = 0
    top_issues: List[IssueSummary] = Field(default_factory=list)
    top_files: List[FileRank] = Field(default_factory=list)


class Report(_ReportModel):
    """Project-wide result of one run."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    files_checked: int = 0
    files_fixed: int = 0
    total_changes: int = 0
    changes_by_type: Dict[str, int] = Field(default_factory=dict)
    files: List[FileReport] = Field(default_factory=list)
    summary: Summary = Field(default_factory=Summary)
    interrupted: bool = False

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
