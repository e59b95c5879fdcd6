import uuid
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True, default=_uuid)
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=True)
    department = Column(String, default="")
    avatar_url = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("profiles.id"), nullable=False)
    role = Column(String, default="user")  # admin/user
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("Profile", back_populates="roles")

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_role"),
    )


class FeatureFlag(Base):
    __tablename__ = "feature_flags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String, unique=True, nullable=False)
    enabled = Column(Boolean, default=False)
    description = Column(Text, nullable=True)
    category = Column(String, default="production")  # production/experimental/roadmap
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Archetype(Base):
    __tablename__ = "archetypes"

    id = Column(String, primary_key=True)  # slug, e.g. expert_deep_dive
    title = Column(String, nullable=False)
    description = Column(Text, default="")
    icon = Column(String, default="")
    use_case = Column(Text, default="")
    examples = Column(Text, default="[]")  # JSON array
    created_at = Column(DateTime, default=datetime.utcnow)


class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    case_code = Column(String, default="")
    project_type = Column(String, default="other")  # consumer/b2b/internal/other
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    memberships = relationship("ProjectMembership", back_populates="project", cascade="all, delete-orphan")
    interviewers = relationship("Interviewer", back_populates="project", cascade="all, delete-orphan")


class ProjectMembership(Base):
    __tablename__ = "project_memberships"

    id = Column(String, primary_key=True, default=_uuid)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False)
    user_id = Column(String, ForeignKey("profiles.id"), nullable=False)
    role = Column(String, default="viewer")  # owner/editor/viewer
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="memberships")
    user = relationship("Profile")

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_user"),
        Index("idx_memberships_user", "user_id"),
    )


class Interviewer(Base):
    __tablename__ = "interviewers"

    id = Column(String, primary_key=True, default=_uuid)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    archetype = Column(String, default="rapid_survey")
    status = Column(String, default="ready_to_test")  # draft/ready_to_test/live/paused/archived/deleted
    previous_status = Column(String, nullable=True)  # status to return to on restore from trash
    channel = Column(String, default="inbound_call")  # chat/web_link/inbound_call/outbound_call
    language = Column(String, default="en")
    voice_id = Column(String, nullable=True)
    persona_name = Column(String, default="Alex")  # name the interviewer introduces itself with
    target_duration_min = Column(Integer, nullable=True)
    phone_number = Column(String, nullable=True)
    link_id = Column(String, unique=True, nullable=True)
    credentials_ready = Column(Boolean, default=False)
    has_active_call = Column(Boolean, default=False)
    created_by = Column(String, ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    archived_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)

    project = relationship("Project", back_populates="interviewers")
    guide = relationship("InterviewGuide", back_populates="interviewer", uselist=False, cascade="all, delete-orphan")
    knowledge_assets = relationship("KnowledgeAsset", back_populates="interviewer", cascade="all, delete-orphan")
    collaborators = relationship("InterviewerCollaborator", back_populates="interviewer", cascade="all, delete-orphan")
    sessions = relationship("InterviewSession", back_populates="interviewer", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_interviewers_project", "project_id"),
        Index("idx_interviewers_status", "status"),
    )


class InterviewerCollaborator(Base):
    __tablename__ = "interviewer_collaborators"

    id = Column(String, primary_key=True, default=_uuid)
    interviewer_id = Column(String, ForeignKey("interviewers.id"), nullable=False)
    user_id = Column(String, ForeignKey("profiles.id"), nullable=False)
    role = Column(String, default="viewer")  # owner/editor/viewer/none
    invited_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    interviewer = relationship("Interviewer", back_populates="collaborators")
    user = relationship("Profile")

    __table_args__ = (
        UniqueConstraint("interviewer_id", "user_id", name="uq_interviewer_user"),
    )


class InterviewGuide(Base):
    __tablename__ = "interview_guides"

    id = Column(String, primary_key=True, default=_uuid)
    interviewer_id = Column(String, ForeignKey("interviewers.id"), unique=True, nullable=False)
    raw_text = Column(Text, default="")
    structured = Column(Text, nullable=True)  # JSON guide schema
    introduction = Column(Text, default="")
    closing_context = Column(Text, default="")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    interviewer = relationship("Interviewer", back_populates="guide")


class KnowledgeAsset(Base):
    __tablename__ = "knowledge_assets"

    id = Column(String, primary_key=True, default=_uuid)
    interviewer_id = Column(String, ForeignKey("interviewers.id"), nullable=False)
    title = Column(String, nullable=False)
    type = Column(String, default="text")  # text/file
    content_text = Column(Text, default="")
    file_name = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    interviewer = relationship("Interviewer", back_populates="knowledge_assets")


class InterviewSession(Base):
    __tablename__ = "sessions"

    id = Column(String, primary_key=True, default=_uuid)
    interviewer_id = Column(String, ForeignKey("interviewers.id"), nullable=False)
    conversation_type = Column(String, default="live")  # test/live
    respondent_name = Column(String, nullable=True)
    respondent_email = Column(String, nullable=True)
    status = Column(String, default="in_progress")  # in_progress/completed/abandoned
    started_at = Column(DateTime, default=datetime.utcnow)
    ended_at = Column(DateTime, nullable=True)
    duration_sec = Column(Integer, nullable=True)
    completed = Column(Boolean, default=False)
    transcript = Column(Text, nullable=True)  # JSON {"sections": [...]}
    qa_messages = Column(Text, default="[]")  # JSON array
    feedback = Column(Text, nullable=True)  # JSON {"rating", "negative_reason", "submitted_at"}
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    interviewer = relationship("Interviewer", back_populates="sessions")

    __table_args__ = (
        Index("idx_sessions_interviewer", "interviewer_id"),
    )


class GuidedDraft(Base):
    __tablename__ = "guided_drafts"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, ForeignKey("profiles.id"), nullable=False)
    state = Column(Text, nullable=False)  # JSON GuidedConfigState
    interviewer_id = Column(String, nullable=True)  # set once published
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
