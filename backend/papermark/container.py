"""Wires repositories and services around one database handle."""

from .config.settings import Settings
from .db import Database
from .db.repositories import (
    ExamRepository,
    ExamResultRepository,
    QuestionResultRepository,
    UserRepository,
)
from .services import (
    DisputeService,
    ExamService,
    FileIntakeService,
    GradingService,
    IdentityService,
    ProgressService,
    RegradeService,
    ResultService,
)


class Services:
    """Everything a request handler needs, built once per process."""

    def __init__(self, settings: Settings, database: Database, storage, oracle):
        self.settings = settings
        self.database = database
        self.storage = storage
        self.oracle = oracle

        users = UserRepository(database)
        exams = ExamRepository(database)
        results = ExamResultRepository(database)
        questions = QuestionResultRepository(database)

        self.identity = IdentityService(
            users,
            owner_open_id=settings.OWNER_OPEN_ID,
            session_ttl_days=settings.SESSION_TTL_DAYS,
            auth_service_url=settings.AUTH_SERVICE_URL,
            auth_timeout=settings.AUTH_SERVICE_TIMEOUT
        )
        self.intake = FileIntakeService(storage)
        self.exams = ExamService(exams, self.intake)
        self.grading = GradingService(exams, results, questions, oracle)
        self.disputes = DisputeService(
            exams, results, questions, oracle,
            max_reason_length=settings.MAX_DISPUTE_REASON_LENGTH
        )
        self.regrade = RegradeService(exams, results, questions)
        self.results = ResultService(exams, results, questions)
        self.progress = ProgressService(exams, results, questions)
