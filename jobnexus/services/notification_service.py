"""
Notification builders and delivery.

Each builder returns a NotificationCreate with the title, message and
action links for one kind of event. ``notify`` stores it and, when email
notifications are enabled, schedules an email copy.
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ..config import get_settings
from ..models import Notification, NotificationType, User
from ..schemas.notification import NotificationCreate, NotificationAction
from .email import send_notification_email

logger = logging.getLogger(__name__)
settings = get_settings()

VIEW_MILESTONES = (100, 500, 1000)
APPLICATION_MILESTONES = (10, 25, 50, 100)


def format_interview_date(when: datetime) -> str:
    """'Monday, January 6, 2025 at 02:30 PM'"""
    return f"{when:%A}, {when:%B} {when.day}, {when.year} at {when:%I:%M %p}"


# ============================================================================
# Applicant notifications
# ============================================================================

def application_viewed_notification(
    *, user_id: str, application_id: int, job_title: str, company_name: str, recruiter_name: str
) -> NotificationCreate:
    return NotificationCreate(
        user_id=user_id,
        title="Application Viewed",
        message=f"{recruiter_name} from {company_name} has viewed your application.",
        type=NotificationType.APPLICATION_VIEWED,
        related_id=str(application_id),
        job_title=job_title,
        company_name=company_name,
        actions=[
            NotificationAction(label="View Application", url=f"/applicant/applications/{application_id}"),
        ],
    )


def status_change_notification(
    *, user_id: str, application_id: int, job_title: str, company_name: str, status: str
) -> NotificationCreate:
    title = "Application Status Updated"
    message = f'Your application for {job_title} at {company_name} has been updated to "{status}".'

    if status == "shortlisted":
        title = "Application Shortlisted"
        message = f"Congratulations! Your application for {job_title} at {company_name} has been shortlisted."
    elif status == "rejected":
        title = "Application Not Selected"
        message = f"We're sorry, your application for {job_title} at {company_name} was not selected at this time."
    elif status == "hired":
        title = "Offer Extended"
        message = f"Congratulations! {company_name} would like to extend an offer for the {job_title} position."

    return NotificationCreate(
        user_id=user_id,
        title=title,
        message=message,
        type=NotificationType.STATUS_CHANGE,
        related_id=str(application_id),
        job_title=job_title,
        company_name=company_name,
        actions=[
            NotificationAction(label="View Application", url=f"/applicant/applications/{application_id}"),
        ],
    )


def interview_notification(
    *, user_id: str, application_id: int, job_title: str, company_name: str, interview_at: datetime
) -> NotificationCreate:
    return NotificationCreate(
        user_id=user_id,
        title="Interview Invitation",
        message=(
            f"You've been invited to interview for {job_title} at {company_name} "
            f"on {format_interview_date(interview_at)}."
        ),
        type=NotificationType.INTERVIEW,
        related_id=str(application_id),
        job_title=job_title,
        company_name=company_name,
        actions=[
            NotificationAction(label="View Details", url=f"/applicant/interviews/{application_id}"),
            NotificationAction(label="Accept", url=f"/applicant/interviews/{application_id}/accept"),
        ],
    )


def recruiter_message_notification(
    *, user_id: str, conversation_id: int, job_title: str, company_name: str, recruiter_name: str
) -> NotificationCreate:
    return NotificationCreate(
        user_id=user_id,
        title="New Message",
        message=(
            f"{recruiter_name} from {company_name} has sent you a message "
            f"regarding your application for {job_title}."
        ),
        type=NotificationType.MESSAGE,
        related_id=str(conversation_id),
        job_title=job_title,
        company_name=company_name,
        actions=[
            NotificationAction(label="View Message", url=f"/applicant/messages/{conversation_id}"),
        ],
    )


def job_update_notification(
    *, user_id: str, job_id: int, job_title: str, company_name: str, update_type: str
) -> NotificationCreate:
    title = "Job Posting Updated"
    message = f"The job posting for {job_title} at {company_name} has been updated."

    if update_type == "closed":
        title = "Job Posting Closed"
        message = f"The job posting for {job_title} at {company_name} has been closed."
    elif update_type == "filled":
        title = "Job Position Filled"
        message = f"The {job_title} position at {company_name} has been filled."

    return NotificationCreate(
        user_id=user_id,
        title=title,
        message=message,
        type=NotificationType.JOB_UPDATE,
        related_id=str(job_id),
        job_title=job_title,
        company_name=company_name,
        actions=[NotificationAction(label="View Job", url=f"/applicant/jobs/{job_id}")],
    )


# ============================================================================
# Recruiter notifications
# ============================================================================

def new_application_notification(
    *, user_id: str, application_id: int, job_id: int, job_title: str, candidate_name: str
) -> NotificationCreate:
    return NotificationCreate(
        user_id=user_id,
        title="New Application",
        message=f"{candidate_name} has applied for the {job_title} position.",
        type=NotificationType.NEW_APPLICATION,
        related_id=str(application_id),
        job_title=job_title,
        candidate_name=candidate_name,
        actions=[
            NotificationAction(label="View Application", url=f"/recruiter/applications/{application_id}"),
            NotificationAction(label="View Job", url=f"/recruiter/jobs/{job_id}"),
        ],
    )


def application_update_notification(
    *, user_id: str, application_id: int, job_title: str, candidate_name: str, update_type: str
) -> NotificationCreate:
    title = "Application Updated"
    message = f"{candidate_name}'s application for {job_title} has been updated."

    if update_type == "withdrawn":
        title = "Application Withdrawn"
        message = f"{candidate_name} has withdrawn their application for {job_title}."
    elif update_type == "accepted_interview":
        title = "Interview Accepted"
        message = f"{candidate_name} has accepted the interview invitation for {job_title}."
    elif update_type == "declined_interview":
        title = "Interview Declined"
        message = f"{candidate_name} has declined the interview invitation for {job_title}."

    return NotificationCreate(
        user_id=user_id,
        title=title,
        message=message,
        type=NotificationType.APPLICATION_UPDATE,
        related_id=str(application_id),
        job_title=job_title,
        candidate_name=candidate_name,
        actions=[
            NotificationAction(label="View Application", url=f"/recruiter/applications/{application_id}"),
        ],
    )


def candidate_message_notification(
    *, user_id: str, conversation_id: int, job_title: str, candidate_name: str
) -> NotificationCreate:
    return NotificationCreate(
        user_id=user_id,
        title="New Message",
        message=(
            f"{candidate_name} has sent you a message regarding their application for {job_title}."
        ),
        type=NotificationType.CANDIDATE_MESSAGE,
        related_id=str(conversation_id),
        job_title=job_title,
        candidate_name=candidate_name,
        actions=[
            NotificationAction(label="View Message", url=f"/recruiter/messages/{conversation_id}"),
        ],
    )


def job_stats_notification(
    *, user_id: str, job_id: int, job_title: str, stat_type: str, value: float
) -> NotificationCreate:
    title = "Job Statistics Update"
    message = f"Your job posting for {job_title} has new statistics."

    if stat_type == "views" and value >= 100:
        title = "Job Posting Milestone"
        message = f"Your job posting for {job_title} has reached {value} views."
    elif stat_type == "applications" and value >= 10:
        title = "Application Milestone"
        message = f"Your job posting for {job_title} has received {value} applications."
    elif stat_type == "conversion" and value >= 5:
        title = "High Conversion Rate"
        message = f"Your job posting for {job_title} has a high conversion rate of {value}%."

    return NotificationCreate(
        user_id=user_id,
        title=title,
        message=message,
        type=NotificationType.JOB_STATS,
        related_id=str(job_id),
        job_title=job_title,
        actions=[NotificationAction(label="View Job", url=f"/recruiter/jobs/{job_id}")],
    )


# ============================================================================
# Delivery
# ============================================================================

async def notify(
    db: AsyncSession,
    payload: NotificationCreate,
    background_tasks: Optional[BackgroundTasks] = None
) -> Notification:
    """
    Store a notification in the caller's transaction. The email copy, if
    any, is sent after the response and its failures are only logged.
    """
    notification = Notification(
        user_id=payload.user_id,
        title=payload.title,
        message=payload.message,
        type=payload.type,
        is_read=False,
        related_id=payload.related_id,
        job_title=payload.job_title,
        company_name=payload.company_name,
        candidate_name=payload.candidate_name,
        actions=[action.model_dump() for action in payload.actions],
    )
    db.add(notification)
    await db.flush()

    if background_tasks is not None and settings.email_notifications and settings.mail_configured:
        result = await db.execute(select(User).where(User.id == payload.user_id))
        user = result.scalar_one_or_none()
        if user and user.email:
            background_tasks.add_task(
                send_notification_email,
                user.email,
                user.name,
                payload.title,
                payload.message,
                notification.actions,
            )

    logger.info(f"Notification {notification.id} ({payload.type.value}) created")
    return notification
