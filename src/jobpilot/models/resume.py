"""Structured resume data models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class PersonalInfo(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    website_url: Optional[str] = None


class Experience(BaseModel):
    company: str
    position: str
    location: Optional[str] = None
    start_date: str = ""
    end_date: Optional[str] = None
    is_current: bool = False
    description: Optional[str] = None
    achievements: list[str] = []
    technologies: list[str] = []


class Education(BaseModel):
    institution: str
    degree: str
    field_of_study: str = ""
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_current: bool = False
    gpa: Optional[float] = None
    honors: list[str] = []
    coursework: list[str] = []


class Skill(BaseModel):
    name: str
    category: Optional[str] = None
    level: Optional[str] = None


class Certification(BaseModel):
    name: str
    issuing_organization: str = ""
    issue_date: Optional[str] = None
    expiry_date: Optional[str] = None
    credential_id: Optional[str] = None


class ParsedResumeData(BaseModel):
    personal_info: PersonalInfo = PersonalInfo()
    summary: Optional[str] = None
    experiences: list[Experience] = []
    educations: list[Education] = []
    skills: list[Skill] = []
    certifications: list[Certification] = []
