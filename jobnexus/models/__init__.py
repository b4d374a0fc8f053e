from .user import User, UserRole
from .profile import CandidateProfile, SavedResume
from .job import Job, JobApplication, JobStatus, ApplicationStatus, InterviewStatus
from .message import Conversation, ConversationParticipant, Message, MessageTemplate
from .notification import Notification, NotificationType
from .resume_job import ResumeParsingJob, ResumeParsingStatus

__all__ = [
    "User", "UserRole",
    # Profile models
    "CandidateProfile", "SavedResume",
    # Jobs and applications
    "Job", "JobApplication", "JobStatus", "ApplicationStatus", "InterviewStatus",
    # Messaging
    "Conversation", "ConversationParticipant", "Message", "MessageTemplate",
    # Notifications
    "Notification", "NotificationType",
    # Resume parsing job
    "ResumeParsingJob", "ResumeParsingStatus"
]
