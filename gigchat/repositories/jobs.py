import logging
from typing import Any, Dict

from sqlalchemy.engine import Engine
from sqlmodel import select

from gigchat.core.database import get_engine, store_session
from gigchat.core.errors import ConversationNotFound, NotFound, PermissionDenied, ValidationError
from gigchat.models.marketplace import Job, JobApplication
from gigchat.repositories.conversations import ConversationRepository

logger = logging.getLogger(__name__)


class JobRepository:
    """Jobs and applications; accepting an application opens the conversation."""

    def __init__(self, db: Engine | None = None) -> None:
        self._db = db if db is not None else get_engine()

    def create_job(self, client_id: int, title: str, description: str = "") -> Dict[str, Any]:
        if not title.strip():
            raise ValidationError("Job title cannot be empty")
        with store_session(self._db, "post job") as session:
            job = Job(client_id=client_id, title=title.strip(), description=description)
            session.add(job)
            session.commit()
            session.refresh(job)
            return job.model_dump()

    def apply(self, job_id: int, freelancer_id: int, cover_letter: str = "") -> Dict[str, Any]:
        with store_session(self._db, "submit application") as session:
            job = session.get(Job, job_id)
            if job is None:
                raise NotFound(f"Job {job_id} not found")
            if job.status != "open":
                raise ValidationError("Job is not accepting applications")
            if job.client_id == freelancer_id:
                raise ValidationError("Cannot apply to your own job")
            existing = session.exec(
                select(JobApplication).where(
                    JobApplication.job_id == job_id,
                    JobApplication.freelancer_id == freelancer_id,
                )
            ).first()
            if existing:
                raise ValidationError("Already applied to this job")
            application = JobApplication(job_id=job_id, freelancer_id=freelancer_id, cover_letter=cover_letter)
            session.add(application)
            session.commit()
            session.refresh(application)
            return application.model_dump()

    def accept(self, application_id: int, client_id: int) -> int:
        """Accept an application and return the id of its conversation."""
        with store_session(self._db, "accept application") as session:
            application = session.get(JobApplication, application_id)
            if application is None:
                raise NotFound(f"Application {application_id} not found")
            job = session.get(Job, application.job_id)
            if job is None or job.client_id != client_id:
                raise PermissionDenied("Only the job owner can accept applications")
            application.status = "accepted"
            if job.status == "open":
                job.status = "in_progress"
            session.add(application)
            session.add(job)
            session.commit()
            job_id, freelancer_id = job.id, application.freelancer_id

        conversation_id = ConversationRepository(self._db).get_or_create(
            job_id=job_id,  # type: ignore
            client_id=client_id,
            freelancer_id=freelancer_id,
            application_id=application_id,
        )
        logger.info(f"Application {application_id} accepted, conversation {conversation_id}")
        return conversation_id

    def reject(self, application_id: int, client_id: int) -> Dict[str, Any]:
        with store_session(self._db, "reject application") as session:
            application = session.get(JobApplication, application_id)
            if application is None:
                raise NotFound(f"Application {application_id} not found")
            job = session.get(Job, application.job_id)
            if job is None or job.client_id != client_id:
                raise PermissionDenied("Only the job owner can reject applications")
            if application.status == "accepted":
                raise ValidationError("Accepted applications cannot be rejected")
            application.status = "rejected"
            session.add(application)
            session.commit()
            session.refresh(application)
            logger.info(f"Application {application_id} rejected")
            return application.model_dump()

    def conversation_for_application(self, application_id: int, profile_id: int) -> int:
        """Conversation backing an application's thread, opened on first use.

        Applicant and job owner can talk before the application is decided;
        accepting it later reuses the same conversation.
        """
        with store_session(self._db, "load application") as session:
            application = session.get(JobApplication, application_id)
            job = session.get(Job, application.job_id) if application else None
            if application is None or job is None or profile_id not in (job.client_id, application.freelancer_id):
                raise ConversationNotFound(f"No conversation for application {application_id}")
            job_id, client_id, freelancer_id = job.id, job.client_id, application.freelancer_id

        return ConversationRepository(self._db).get_or_create(
            job_id=job_id,  # type: ignore
            client_id=client_id,
            freelancer_id=freelancer_id,
            application_id=application_id,
        )
