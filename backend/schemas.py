from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Literal

# ═══════════════════════════════════════
# COMMON
# ═══════════════════════════════════════

ProjectRole = Literal["owner", "editor", "viewer"]
InterviewerRole = Literal["owner", "editor", "viewer", "none"]
ProjectType = Literal["consumer", "b2b", "internal", "other"]
Channel = Literal["chat", "web_link", "inbound_call", "outbound_call"]
InterviewerStatus = Literal["draft", "ready_to_test", "live", "paused", "archived", "deleted"]
FeatureFlagCategory = Literal["production", "experimental", "roadmap"]


# ═══════════════════════════════════════
# PROFILES
# ═══════════════════════════════════════

class ProfileCreate(BaseModel):
    email: str
    name: Optional[str] = None
    department: str = ""


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    department: Optional[str] = None
    avatar_url: Optional[str] = None


# ═══════════════════════════════════════
# PROJECTS
# ═══════════════════════════════════════

class ProjectCreate(BaseModel):
    name: str
    case_code: str = ""
    project_type: ProjectType = "other"
    description: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    case_code: Optional[str] = None
    project_type: Optional[ProjectType] = None
    description: Optional[str] = None


class MemberAdd(BaseModel):
    user_id: str
    role: ProjectRole = "viewer"


class MemberRoleUpdate(BaseModel):
    role: ProjectRole


# ═══════════════════════════════════════
# INTERVIEW GUIDE
# ═══════════════════════════════════════

class GuideScale(BaseModel):
    min: int = 1
    max: int = 5
    labels: Dict[int, str] = {}


class GuideQuestion(BaseModel):
    id: str
    type: Literal["open", "scale", "multi", "single"] = "open"
    prompt: str
    required: bool = False
    options: List[str] = []
    scale: Optional[GuideScale] = None
    follow_ups: List[str] = []


class GuideSection(BaseModel):
    title: str
    questions: List[GuideQuestion] = []


class GuideSchema(BaseModel):
    intro: Optional[str] = None
    objectives: List[str] = []
    sections: List[GuideSection] = []
    closing: Optional[str] = None


class GuideUpdate(BaseModel):
    raw_text: str = ""
    structured: Optional[GuideSchema] = None
    introduction: Optional[str] = None
    closing_context: Optional[str] = None


# ═══════════════════════════════════════
# INTERVIEWERS
# ═══════════════════════════════════════

class InterviewerCreate(BaseModel):
    project_id: str
    name: str = "Untitled Interviewer"
    description: Optional[str] = None
    archetype: str = "rapid_survey"
    channel: Channel = "inbound_call"
    language: str = "en"
    voice_id: Optional[str] = None
    persona_name: str = "Alex"
    target_duration_min: Optional[int] = None


class InterviewerUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    archetype: Optional[str] = None
    channel: Optional[Channel] = None
    language: Optional[str] = None
    voice_id: Optional[str] = None
    persona_name: Optional[str] = None
    target_duration_min: Optional[int] = None
    has_active_call: Optional[bool] = None


class DeployRequest(BaseModel):
    case_code: Optional[str] = None


class KnowledgeAssetCreate(BaseModel):
    title: str
    type: Literal["text", "file"] = "text"
    content_text: str = ""
    file_name: Optional[str] = None
    file_size: Optional[int] = None


class CollaboratorInvite(BaseModel):
    user_id: str
    role: InterviewerRole = "viewer"


class CollaboratorRoleUpdate(BaseModel):
    role: InterviewerRole


class OwnershipTransfer(BaseModel):
    new_owner_id: str


# ═══════════════════════════════════════
# SESSIONS
# ═══════════════════════════════════════

class AnswerContent(BaseModel):
    summary: Optional[str] = None
    bullet_points: List[str] = []
    raw_text: Optional[str] = None


class TranscriptSection(BaseModel):
    id: str
    question: str
    answer: AnswerContent = Field(default_factory=AnswerContent)
    timestamp: Optional[str] = None


class CleanedTranscript(BaseModel):
    sections: List[TranscriptSection] = []


class SessionStart(BaseModel):
    respondent_name: Optional[str] = None
    respondent_email: Optional[str] = None


class SessionComplete(BaseModel):
    transcript: CleanedTranscript
    completed: bool = True


class SessionFeedbackRequest(BaseModel):
    rating: Literal["positive", "negative"]
    negative_reason: Optional[str] = Field(None, max_length=500)


class QuestionRequest(BaseModel):
    question: str


# ═══════════════════════════════════════
# GUIDED CONFIGURATION
# ═══════════════════════════════════════

class UploadedDocument(BaseModel):
    file_name: str
    file_size: int = 0
    text: str = ""


class GuidedSettings(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    project_id: Optional[str] = None
    title: str = ""
    description: str = ""
    archetype: str = "expert_deep_dive"
    archetype_confidence: float = 0
    target_duration: int = 30
    name: str = "Alex"
    language: str = "en-US"
    voice_id: str = ""
    channel: Channel = "web_link"


class GuidedConfigState(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    active_tab: Literal["content", "settings"] = "content"
    current_step: int = 0
    completed_steps: List[int] = []
    needs_clarification: bool = False

    context_dump: str = ""
    uploaded_documents: List[UploadedDocument] = []
    clarification_questions: List[str] = []
    follow_up_answers: Dict[str, str] = {}
    interview_context: str = ""
    introduction: str = ""
    interview_guide: Optional[GuideSchema] = None
    closing_context: str = ""

    settings: GuidedSettings = Field(default_factory=GuidedSettings)
    settings_reviewed: bool = False


class GuidedDraftCreate(BaseModel):
    project_id: Optional[str] = None


class GuidedContentUpdate(BaseModel):
    context_dump: Optional[str] = None
    follow_up_answers: Optional[Dict[str, str]] = None
    interview_context: Optional[str] = None
    introduction: Optional[str] = None
    interview_guide: Optional[GuideSchema] = None
    closing_context: Optional[str] = None


class GuidedSettingsUpdate(BaseModel):
    project_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    archetype: Optional[str] = None
    target_duration: Optional[int] = None
    name: Optional[str] = None
    language: Optional[str] = None
    voice_id: Optional[str] = None
    channel: Optional[Channel] = None


class GuidedTabUpdate(BaseModel):
    tab: Literal["content", "settings"]


class GuidedPublishRequest(BaseModel):
    deploy: bool = False


# ═══════════════════════════════════════
# ADMIN
# ═══════════════════════════════════════

class ArchetypeCreate(BaseModel):
    id: str
    title: str
    description: str = ""
    icon: str = ""
    use_case: str = ""
    examples: List[str] = []


class ArchetypeUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    use_case: Optional[str] = None
    examples: Optional[List[str]] = None


class FeatureFlagUpdate(BaseModel):
    enabled: bool


class UserRoleUpdate(BaseModel):
    role: Literal["admin", "user"]
