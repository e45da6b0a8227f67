"""JSON report bodies printed by the CLI commands."""

from typing import Any, List, Optional

from pydantic import BaseModel


class RunReport(BaseModel):
    """Output of `vmbridge run --json-output`."""
    success: bool
    module_id: Optional[str] = None
    export: str
    result: Any = None
    execution_time_ms: float
    error: Optional[str] = None


class ValidateReport(BaseModel):
    """Output of `vmbridge validate`."""
    valid: bool
    module_id: Optional[str] = None
    import_count: int = 0
    export_count: int = 0
    errors: List[str] = []


class ImportEntry(BaseModel):
    module: str
    name: str
    type: str


class ExportEntry(BaseModel):
    name: str
    kind: str
    type: Optional[str] = None


class ModuleReport(BaseModel):
    """Output of `vmbridge inspect --json-output`."""
    module_id: str
    imports: List[ImportEntry] = []
    exports: List[ExportEntry] = []
