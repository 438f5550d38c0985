"""
content/models.py -- Domain dataclasses for the portfolio content collections.

These are pure data containers with zero logic. Validation lives in
core/validation.py and persistence in content/store.py.

The three collections are independent: no foreign keys, no cross-references.

id is None before the record is written to the database; created_at and
updated_at are set by the store.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Contact:
    """A message submitted through the public contact form. Anonymous."""

    firstname: str
    lastname: str
    email: str
    message: str
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Project:
    """A portfolio entry. completion is an ISO calendar date (YYYY-MM-DD)."""

    title: str
    firstname: str
    lastname: str
    email: str
    completion: str
    description: str
    technologies: list[str] = field(default_factory=list)
    image_url: Optional[str] = None
    github_url: Optional[str] = None
    live_url: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Qualification:
    """An education or certification entry."""

    title: str
    firstname: str
    lastname: str
    email: str
    completion: str
    description: str
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
