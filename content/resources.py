"""
content/resources.py -- Schema and ResourceSpec for each content collection.

Adding a collection means adding a Table, a dataclass in content/models.py,
a request model in core/validation.py and one ResourceSpec here. The store and
the HTTP router are shared.
"""

from sqlalchemy import Column, Index, String, Table, Text

from content.models import Contact, Project, Qualification
from content.store import ResourceSpec
from core.database import metadata
from core.validation import ContactIn, ProjectIn, QualificationIn

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_contacts = Table(
    "contacts",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("firstname", String(50), nullable=False),
    Column("lastname", String(50), nullable=False),
    Column("email", String(254), nullable=False),
    Column("message", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_contacts_created_at", "created_at"),
)

_projects = Table(
    "projects",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("title", String(100), nullable=False),
    Column("firstname", String(50), nullable=False),
    Column("lastname", String(50), nullable=False),
    Column("email", String(254), nullable=False),
    Column("completion", String(10), nullable=False),  # YYYY-MM-DD
    Column("description", Text, nullable=False),
    Column("technologies", Text),  # JSON array serialized as text
    Column("image_url", String(500)),
    Column("github_url", String(500)),
    Column("live_url", String(500)),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_projects_completion", "completion"),
)

_qualifications = Table(
    "qualifications",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("title", String(100), nullable=False),
    Column("firstname", String(50), nullable=False),
    Column("lastname", String(50), nullable=False),
    Column("email", String(254), nullable=False),
    Column("completion", String(10), nullable=False),  # YYYY-MM-DD
    Column("description", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_qualifications_completion", "completion"),
)

# ---------------------------------------------------------------------------
# Specs
# ---------------------------------------------------------------------------

CONTACTS = ResourceSpec(
    name="contacts",
    label="Contact",
    table=_contacts,
    model=Contact,
    schema=ContactIn,
    sort_by=("created_at",),
)

PROJECTS = ResourceSpec(
    name="projects",
    label="Project",
    table=_projects,
    model=Project,
    schema=ProjectIn,
    sort_by=("completion", "created_at"),
    json_fields=("technologies",),
)

QUALIFICATIONS = ResourceSpec(
    name="qualifications",
    label="Qualification",
    table=_qualifications,
    model=Qualification,
    schema=QualificationIn,
    sort_by=("completion", "created_at"),
)

ALL_RESOURCES: tuple[ResourceSpec, ...] = (CONTACTS, PROJECTS, QUALIFICATIONS)
