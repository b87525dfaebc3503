"""
Repositories over the MongoDB collections.

Every read and write of exams and results is filtered by the owning user's
id. A row owned by someone else is returned as None, exactly like a row
that does not exist.
"""

import functools
import logging
import secrets
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional

from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from ..errors import InternalError
from ..models import Exam, ExamResult, QuestionResult, User
from ..utils import utcnow
from . import Database

logger = logging.getLogger(__name__)

NO_ID = {"_id": 0}


def persistence(fn):
    """Surface driver failures as InternalError."""
    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except PyMongoError as e:
            logger.error(f"Database error in {fn.__qualname__}: {e}")
            raise InternalError("Database operation failed") from e
    return wrapper


class UserRepository:
    """Users and their login sessions."""

    def __init__(self, database: Database):
        self.database = database
        self.users = database["users"]
        self.sessions = database["user_sessions"]

    @persistence
    async def get(self, user_id: int) -> Optional[User]:
        doc = await self.users.find_one({"id": user_id}, NO_ID)
        return User(**doc) if doc else None

    @persistence
    async def get_by_open_id(self, open_id: str) -> Optional[User]:
        doc = await self.users.find_one({"open_id": open_id}, NO_ID)
        return User(**doc) if doc else None

    @persistence
    async def upsert(
        self,
        open_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        login_method: Optional[str] = None,
        role: Optional[str] = None,
        owner_open_id: Optional[str] = None
    ) -> User:
        """
        Insert or update a user keyed by open_id.

        Only the fields that are given are written. When no role is given
        and open_id matches owner_open_id the user becomes an admin.
        """
        if not open_id:
            raise ValueError("open_id is required for upsert")

        now = utcnow()
        update: Dict[str, Any] = {"updated_at": now, "last_signed_in": now}
        for field, value in (("name", name), ("email", email), ("login_method", login_method)):
            if value is not None:
                update[field] = value

        if role is not None:
            update["role"] = role
        elif owner_open_id and open_id == owner_open_id:
            update["role"] = "admin"

        existing = await self.users.find_one({"open_id": open_id}, {"id": 1})
        on_insert: Dict[str, Any] = {"created_at": now}
        if not existing:
            on_insert["id"] = await self.database.next_id("users")
            if "role" not in update:
                on_insert["role"] = "user"

        doc = await self.users.find_one_and_update(
            {"open_id": open_id},
            {"$set": update, "$setOnInsert": on_insert},
            upsert=True,
            projection=NO_ID,
            return_document=ReturnDocument.AFTER
        )
        return User(**doc)

    @persistence
    async def touch(self, user_id: int):
        await self.users.update_one({"id": user_id}, {"$set": {"last_signed_in": utcnow()}})

    # ============ SESSIONS ============

    @persistence
    async def create_session(self, user_id: int, ttl_days: int) -> str:
        token = secrets.token_urlsafe(32)
        now = utcnow()
        await self.sessions.insert_one({
            "session_token": token,
            "user_id": user_id,
            "expires_at": now + timedelta(days=ttl_days),
            "created_at": now
        })
        return token

    @persistence
    async def get_session(self, token: str) -> Optional[Dict[str, Any]]:
        return await self.sessions.find_one({"session_token": token}, NO_ID)

    @persistence
    async def delete_session(self, token: str) -> bool:
        result = await self.sessions.delete_one({"session_token": token})
        return result.deleted_count > 0


class ExamRepository:
    """Exam rows and their status transitions."""

    def __init__(self, database: Database):
        self.database = database
        self.col = database["exams"]

    @persistence
    async def create(self, user_id: int, **fields) -> int:
        exam_id = await self.database.next_id("exams")
        now = utcnow()
        await self.col.insert_one({
            "id": exam_id,
            "user_id": user_id,
            **fields,
            "status": "pending",
            "created_at": now,
            "updated_at": now
        })
        return exam_id

    @persistence
    async def get(self, exam_id: int, user_id: int) -> Optional[Exam]:
        doc = await self.col.find_one({"id": exam_id, "user_id": user_id}, NO_ID)
        return Exam(**doc) if doc else None

    @persistence
    async def list(self, user_id: int, limit: int = 50, offset: int = 0) -> List[Exam]:
        cursor = (
            self.col.find({"user_id": user_id}, NO_ID)
            .sort([("created_at", -1), ("id", -1)])
            .skip(offset)
            .limit(limit)
        )
        return [Exam(**doc) for doc in await cursor.to_list(length=limit)]

    @persistence
    async def get_many(self, user_id: int, exam_ids: Iterable[int]) -> Dict[int, Exam]:
        cursor = self.col.find({"user_id": user_id, "id": {"$in": list(exam_ids)}}, NO_ID)
        return {doc["id"]: Exam(**doc) for doc in await cursor.to_list(length=None)}

    @persistence
    async def set_status(self, exam_id: int, status: str):
        await self.col.update_one(
            {"id": exam_id},
            {"$set": {"status": status, "updated_at": utcnow()}}
        )

    @persistence
    async def claim_for_grading(self, exam_id: int, user_id: int, expected_status: str) -> bool:
        """
        Atomically move an exam from the status the caller read into "grading".

        Returns False when another attempt holds the exam or the status has
        moved on since it was read.
        """
        if expected_status == "grading":
            return False
        doc = await self.col.find_one_and_update(
            {"id": exam_id, "user_id": user_id, "status": expected_status},
            {"$set": {"status": "grading", "updated_at": utcnow()}},
            projection={"id": 1}
        )
        return doc is not None


class ExamResultRepository:
    """Aggregate results, one per exam."""

    def __init__(self, database: Database):
        self.database = database
        self.col = database["exam_results"]

    @persistence
    async def create(self, exam_id: int, user_id: int, **fields) -> int:
        result_id = await self.database.next_id("exam_results")
        await self.col.insert_one({
            "id": result_id,
            "exam_id": exam_id,
            "user_id": user_id,
            **fields,
            "created_at": utcnow()
        })
        return result_id

    @persistence
    async def get_by_exam(self, exam_id: int, user_id: int) -> Optional[ExamResult]:
        doc = await self.col.find_one({"exam_id": exam_id, "user_id": user_id}, NO_ID)
        return ExamResult(**doc) if doc else None

    @persistence
    async def list(self, user_id: int, newest_first: bool = True) -> List[ExamResult]:
        direction = -1 if newest_first else 1
        cursor = self.col.find({"user_id": user_id}, NO_ID).sort(
            [("created_at", direction), ("id", direction)]
        )
        return [ExamResult(**doc) for doc in await cursor.to_list(length=None)]

    @persistence
    async def update_scores(
        self,
        result_id: int,
        total_score: int,
        max_score: int,
        percentage: int,
        grade: str
    ):
        await self.col.update_one(
            {"id": result_id},
            {"$set": {
                "total_score": total_score,
                "max_score": max_score,
                "percentage": percentage,
                "grade": grade,
                "updated_at": utcnow()
            }}
        )

    @persistence
    async def delete(self, result_id: int):
        await self.col.delete_one({"id": result_id})

    @persistence
    async def delete_by_exam(self, exam_id: int, user_id: int) -> int:
        result = await self.col.delete_many({"exam_id": exam_id, "user_id": user_id})
        return result.deleted_count


class QuestionResultRepository:
    """Per-question rows belonging to an exam result."""

    def __init__(self, database: Database):
        self.database = database
        self.col = database["question_results"]

    @persistence
    async def create_many(
        self,
        exam_result_id: int,
        exam_id: int,
        user_id: int,
        rows: List[Dict[str, Any]]
    ) -> List[int]:
        ids = await self.database.next_ids("question_results", len(rows))
        if not ids:
            return []
        now = utcnow()
        docs = [
            {
                "id": qid,
                "exam_result_id": exam_result_id,
                "exam_id": exam_id,
                "user_id": user_id,
                **row,
                "created_at": now
            }
            for qid, row in zip(ids, rows)
        ]
        await self.col.insert_many(docs)
        return list(ids)

    @persistence
    async def get(self, question_result_id: int, user_id: int) -> Optional[QuestionResult]:
        doc = await self.col.find_one({"id": question_result_id, "user_id": user_id}, NO_ID)
        return QuestionResult(**doc) if doc else None

    @persistence
    async def list_by_result(self, exam_result_id: int, user_id: int) -> List[QuestionResult]:
        cursor = self.col.find(
            {"exam_result_id": exam_result_id, "user_id": user_id}, NO_ID
        ).sort("id", 1)
        return [QuestionResult(**doc) for doc in await cursor.to_list(length=None)]

    @persistence
    async def list_for_user(
        self,
        user_id: int,
        exam_ids: Optional[Iterable[int]] = None
    ) -> List[QuestionResult]:
        query: Dict[str, Any] = {"user_id": user_id}
        if exam_ids is not None:
            query["exam_id"] = {"$in": list(exam_ids)}
        cursor = self.col.find(query, NO_ID).sort("id", 1)
        return [QuestionResult(**doc) for doc in await cursor.to_list(length=None)]

    @persistence
    async def update(self, question_result_id: int, score: int, is_correct: bool, feedback: str):
        await self.col.update_one(
            {"id": question_result_id},
            {"$set": {"score": score, "is_correct": is_correct, "feedback": feedback}}
        )

    @persistence
    async def delete_by_result(self, exam_result_id: int) -> int:
        result = await self.col.delete_many({"exam_result_id": exam_result_id})
        return result.deleted_count

    @persistence
    async def delete_by_exam(self, exam_id: int, user_id: int) -> int:
        result = await self.col.delete_many({"exam_id": exam_id, "user_id": user_id})
        return result.deleted_count
