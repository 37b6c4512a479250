"""jsx-doctor - static analysis and auto-fix for JSX/TSX component files."""

__version__ = "0.1.0"

from .config import Config
from .engine import Engine, FileResult, FileState, run_project
from .errors import JsxDoctorError, ParseError, ScanRootError
from .models import Report

__all__ = [
    "Config",
    "Engine",
    "FileResult",
    "FileState",
    "JsxDoctorError",
    "ParseError",
    "Report",
    "ScanRootError",
    "run_project",
]
