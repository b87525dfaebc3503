"""Services for intake, grading, disputes and progress tracking."""

from .intake import FileIntakeService
from .exams import ExamService
from .oracle import GeminiOracle, parse_oracle_response
from .grading import GradingService
from .disputes import DisputeService
from .regrade import RegradeService
from .results import ResultService
from .progress import ProgressService
from .identity import IdentityService

__all__ = [
    "FileIntakeService",
    "ExamService",
    "GeminiOracle",
    "parse_oracle_response",
    "GradingService",
    "DisputeService",
    "RegradeService",
    "ResultService",
    "ProgressService",
    "IdentityService",
]
