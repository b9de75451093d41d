"""REST API for jobs and applications. Accepting an application opens its conversation."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session, select

from gigchat.api.deps import http_error
from gigchat.core.auth import get_current_profile
from gigchat.core.database import get_session
from gigchat.core.errors import MessagingError
from gigchat.models.marketplace import Job, JobApplication, Profile
from gigchat.repositories.conversations import ConversationRepository
from gigchat.repositories.jobs import JobRepository
from gigchat.repositories.messages import MessageRepository
from gigchat.services.messaging.composer import Composer
from gigchat.services.messaging.records import conversation_from_row
from gigchat.services.messaging.stream import MessageStream
from gigchat.services.messaging.uploader import AttachmentUploader
from gigchat.services.storage import get_object_store

router = APIRouter()


class JobCreate(BaseModel):
    title: str
    description: str = ""


class ApplicationCreate(BaseModel):
    cover_letter: str = ""


class ApplicationMessage(BaseModel):
    content: str


@router.get("/jobs")
async def list_open_jobs(session: Session = Depends(get_session)):
    jobs = session.exec(
        select(Job).where(Job.status == "open").order_by(Job.created_at.desc())  # type: ignore
    ).all()
    return [
        {
            "id": j.id,
            "client_id": j.client_id,
            "title": j.title,
            "description": j.description,
            "created_at": j.created_at.isoformat(),
        }
        for j in jobs
    ]


@router.post("/jobs", status_code=201)
async def create_job(body: JobCreate, profile: Profile = Depends(get_current_profile)):
    try:
        job = JobRepository().create_job(profile.id, body.title, body.description)  # type: ignore
    except MessagingError as e:
        raise http_error(e)
    return {"id": job["id"], "status": job["status"]}


@router.get("/jobs/{job_id}/applications")
async def list_applications(
    job_id: int,
    profile: Profile = Depends(get_current_profile),
    session: Session = Depends(get_session),
):
    job = session.get(Job, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    if job.client_id != profile.id:
        raise HTTPException(status_code=403, detail="Only the job owner can see applications")
    applications = session.exec(
        select(JobApplication)
        .where(JobApplication.job_id == job_id)
        .order_by(JobApplication.created_at)  # type: ignore
    ).all()
    return [
        {
            "id": a.id,
            "freelancer_id": a.freelancer_id,
            "cover_letter": a.cover_letter,
            "status": a.status,
            "created_at": a.created_at.isoformat(),
        }
        for a in applications
    ]


@router.post("/jobs/{job_id}/applications", status_code=201)
async def apply_to_job(
    job_id: int,
    body: ApplicationCreate,
    profile: Profile = Depends(get_current_profile),
):
    try:
        application = JobRepository().apply(job_id, profile.id, body.cover_letter)  # type: ignore
    except MessagingError as e:
        raise http_error(e)
    return {"id": application["id"], "status": application["status"]}


@router.post("/applications/{application_id}/accept")
async def accept_application(application_id: int, profile: Profile = Depends(get_current_profile)):
    try:
        conversation_id = JobRepository().accept(application_id, profile.id)  # type: ignore
        row = ConversationRepository().get_for_viewer(conversation_id, profile.id)  # type: ignore
        conversation = conversation_from_row(row)
    except MessagingError as e:
        raise http_error(e)
    return {"conversation_id": conversation_id, "conversation": conversation.model_dump(mode="json")}


@router.post("/applications/{application_id}/reject")
async def reject_application(application_id: int, profile: Profile = Depends(get_current_profile)):
    try:
        application = JobRepository().reject(application_id, profile.id)  # type: ignore
    except MessagingError as e:
        raise http_error(e)
    return {"id": application["id"], "status": application["status"]}


@router.get("/applications/{application_id}/messages")
async def get_application_messages(application_id: int, profile: Profile = Depends(get_current_profile)):
    try:
        conversation_id = JobRepository().conversation_for_application(application_id, profile.id)  # type: ignore
        messages = MessageStream(profile.id, MessageRepository()).load(conversation_id)  # type: ignore
    except MessagingError as e:
        raise http_error(e)
    return [m.model_dump(mode="json") for m in messages]


@router.post("/applications/{application_id}/messages", status_code=201)
async def send_application_message(
    application_id: int,
    body: ApplicationMessage,
    profile: Profile = Depends(get_current_profile),
):
    """Application chat shares the job's conversation, opened on the first message."""
    try:
        conversation_id = JobRepository().conversation_for_application(application_id, profile.id)  # type: ignore
        composer = Composer(profile.id, MessageRepository(), AttachmentUploader(get_object_store()))  # type: ignore
        message = composer.send(conversation_id, body.content)
    except MessagingError as e:
        raise http_error(e)
    return message.model_dump(mode="json")
