"""
Domain records for the job portal: users, jobs and applications.

Records are plain dataclasses. Repositories convert them to and from
MongoDB documents with ``to_document`` / ``from_document``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from bson import ObjectId

DEFAULT_AVATAR = "/static/images/default-avatar.svg"

SOCIAL_PLATFORMS = ("linkedin", "twitter", "github", "website")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(ObjectId())


class Role(str, Enum):
    JOBSEEKER = "jobseeker"
    EMPLOYER = "employer"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        """Parse a submitted role, falling back to job seeker."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.JOBSEEKER


@dataclass
class ExperienceEntry:
    title: str = ""
    company: str = ""
    location: str = ""
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    current: bool = False
    description: str = ""


@dataclass
class EducationEntry:
    school: str = ""
    degree: str = ""
    field_of_study: str = ""
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    current: bool = False
    description: str = ""


def _entry_to_document(entry) -> Dict[str, Any]:
    doc = dict(entry.__dict__)
    doc["from"] = doc.pop("from_date")
    doc["to"] = doc.pop("to_date")
    return doc


def _entry_from_document(cls, doc: Dict[str, Any]):
    data = dict(doc)
    data["from_date"] = data.pop("from", None)
    data["to_date"] = data.pop("to", None)
    data.pop("_id", None)
    known = cls.__dataclass_fields__
    return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class User:
    """
    A registered account.

    ``password`` holds the bcrypt hash (salt included), never plaintext.
    """
    name: str
    email: str
    password: str
    role: Role = Role.JOBSEEKER
    id: str = field(default_factory=new_id)
    avatar: Optional[str] = None
    bio: str = ""
    skills: List[str] = field(default_factory=list)
    experience: List[ExperienceEntry] = field(default_factory=list)
    education: List[EducationEntry] = field(default_factory=list)
    social_media: Dict[str, Optional[str]] = field(default_factory=dict)
    reset_password_token: Optional[str] = None
    reset_password_expires: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.email = normalize_email(self.email)
        if not isinstance(self.role, Role):
            self.role = Role.parse(self.role)

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": ObjectId(self.id),
            "name": self.name,
            "email": self.email,
            "password": self.password,
            "role": self.role.value,
            "avatar": self.avatar,
            "bio": self.bio,
            "skills": list(self.skills),
            "experience": [_entry_to_document(e) for e in self.experience],
            "education": [_entry_to_document(e) for e in self.education],
            "socialMedia": {
                k: v for k, v in self.social_media.items() if k in SOCIAL_PLATFORMS
            },
            "resetPasswordToken": self.reset_password_token,
            "resetPasswordExpires": self.reset_password_expires,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "User":
        return cls(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            email=doc["email"],
            password=doc["password"],
            role=Role.parse(doc.get("role")),
            avatar=doc.get("avatar"),
            bio=doc.get("bio", ""),
            skills=list(doc.get("skills") or []),
            experience=[
                _entry_from_document(ExperienceEntry, e) for e in doc.get("experience") or []
            ],
            education=[
                _entry_from_document(EducationEntry, e) for e in doc.get("education") or []
            ],
            social_media=dict(doc.get("socialMedia") or {}),
            reset_password_token=doc.get("resetPasswordToken"),
            reset_password_expires=doc.get("resetPasswordExpires"),
            created_at=doc.get("createdAt") or utcnow(),
        )

    def to_public_dict(self) -> Dict[str, Any]:
        """View model for templates. Excludes the password hash and reset token."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "avatar": self.avatar or DEFAULT_AVATAR,
            "bio": self.bio,
            "skills": list(self.skills),
            "experience": [_entry_to_document(e) for e in self.experience],
            "education": [_entry_to_document(e) for e in self.education],
            "social_media": dict(self.social_media),
            "created_at": self.created_at,
        }


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


@dataclass
class Job:
    user_id: str
    title: str
    company: str
    description: str
    requirements: str = ""
    location: str = ""
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": ObjectId(self.id),
            "userId": self.user_id,
            "title": self.title,
            "company": self.company,
            "description": self.description,
            "requirements": self.requirements,
            "location": self.location,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Job":
        return cls(
            id=str(doc["_id"]),
            user_id=doc.get("userId", ""),
            title=doc.get("title", ""),
            company=doc.get("company", ""),
            description=doc.get("description", ""),
            requirements=doc.get("requirements", ""),
            location=doc.get("location", ""),
            created_at=doc.get("createdAt") or utcnow(),
        )


@dataclass
class Application:
    """Links a user to a job. Counted on the about page, not created by any route."""
    user_id: str
    job_id: str
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": ObjectId(self.id),
            "userId": self.user_id,
            "jobId": self.job_id,
            "createdAt": self.created_at,
        }
