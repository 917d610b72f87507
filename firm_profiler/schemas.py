"""
Pydantic schemas for structured firm profile extraction.

This module defines the canonical record shape returned by the pipeline
(ExtractionRecord and its nested entities), the partial profile produced by
the response validator, and the instruction template sent to the extraction
service.
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Number = Union[int, float]
DataQuality = Literal["high", "medium", "low"]
ProjectStatus = Literal["completed", "in-progress", "planned"]
PublicationType = Literal["article", "book", "magazine", "online"]
ExhibitionType = Literal["solo", "group", "competition"]


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Project(CamelModel):
    """A single project from the firm's portfolio."""

    name: str = Field(..., description="Project name")
    type: Optional[str] = Field(None, description="residential, commercial, institutional, ...")
    status: Optional[ProjectStatus] = Field(None, description="completed, in-progress or planned")
    year: Optional[Number] = Field(None, description="Project year")
    location: Optional[str] = Field(None, description="Project location")
    size: Optional[str] = Field(None, description="Project size or scale")
    client: Optional[str] = Field(None, description="Client name")
    budget: Optional[str] = Field(None, description="Budget range")
    awards: Optional[List[str]] = Field(None, description="Awards received by the project")
    sustainability: Optional[List[str]] = Field(None, description="Sustainability features")
    materials: Optional[List[str]] = Field(None, description="Materials used")
    design_features: Optional[List[str]] = Field(None, description="Key design features")


class Award(CamelModel):
    """An award received by the firm."""

    name: str
    year: Optional[Number] = None
    category: Optional[str] = None
    organization: Optional[str] = None
    description: Optional[str] = None


class Publication(CamelModel):
    """A publication by or about the firm."""

    title: str
    year: Optional[Number] = None
    publisher: Optional[str] = None
    type: Optional[PublicationType] = None
    url: Optional[str] = None
    description: Optional[str] = None


class Exhibition(CamelModel):
    """An exhibition the firm took part in."""

    name: str
    year: Optional[Number] = None
    location: Optional[str] = None
    type: Optional[ExhibitionType] = None
    description: Optional[str] = None


class PressMention(CamelModel):
    """A press mention of the firm."""

    title: str
    year: Optional[Number] = None
    source: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None


class ExtractedProfile(CamelModel):
    """
    Partial firm profile as returned by the extraction service after cleaning.

    Every field is optional: absent facts are omitted, never invented.
    """

    # Basic information
    name: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None

    # Contact information
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    # Company details
    founded_year: Optional[Number] = None
    company_size: Optional[str] = None
    headquarters: Optional[str] = None
    key_architects: Optional[List[str]] = None
    specialties: Optional[List[str]] = None

    # Portfolio
    projects: Optional[List[Project]] = None
    project_types: Optional[List[str]] = None
    project_scales: Optional[List[str]] = None
    geographic_focus: Optional[List[str]] = None

    # Recognition
    certifications: Optional[List[str]] = None
    awards: Optional[List[Award]] = None
    publications: Optional[List[Publication]] = None
    exhibitions: Optional[List[Exhibition]] = None
    press: Optional[List[PressMention]] = None

    design_approach: Optional[List[str]] = None


class ExtractionRecord(CamelModel):
    """The canonical, fully assembled firm record."""

    name: str
    website: str
    description: str = ""

    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    founded_year: Optional[Number] = None
    company_size: Optional[str] = None
    headquarters: Optional[str] = None
    key_architects: List[str] = Field(default_factory=list)
    specialties: List[str] = Field(default_factory=list)

    projects: List[Project] = Field(default_factory=list)
    project_types: List[str] = Field(default_factory=list)
    project_scales: List[str] = Field(default_factory=list)
    geographic_focus: List[str] = Field(default_factory=list)

    certifications: List[str] = Field(default_factory=list)
    awards: List[Award] = Field(default_factory=list)
    publications: List[Publication] = Field(default_factory=list)
    exhibitions: List[Exhibition] = Field(default_factory=list)
    press: List[PressMention] = Field(default_factory=list)

    design_approach: List[str] = Field(default_factory=list)

    # Metadata
    scraped_at: str
    data_quality: DataQuality
    extraction_method: str
    source_url: str


class AnalysisOutcome(CamelModel):
    """Validated extraction result with its machine-assessed quality."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    extracted_data: ExtractedProfile
    confidence: int = Field(..., ge=0, le=100)
    data_quality: DataQuality
    missing_fields: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


# Marker replaced by the aggregated corpus when the prompt is built
CORPUS_PLACEHOLDER = "{{WEBSITE_CONTENT}}"

TARGET_JSON_SHAPE = """{
  "name": "Company name",
  "website": "Main website URL",
  "description": "Brief company description",
  "address": "Physical address",
  "phone": "Phone number",
  "email": "Email address",
  "foundedYear": 1990,
  "companySize": "Company size (e.g. 'Small', 'Medium', 'Large', 'Boutique')",
  "headquarters": "Headquarters location",
  "keyArchitects": ["Names of key architects"],
  "specialties": ["Company specialties and focus areas"],
  "projects": [
    {
      "name": "Project name",
      "type": "Project type (residential, commercial, institutional, etc.)",
      "status": "completed, in-progress, or planned",
      "year": 2020,
      "location": "Project location",
      "size": "Project size or scale",
      "awards": ["Awards received by the project"],
      "client": "Client name",
      "budget": "Budget range",
      "sustainability": ["Sustainability features"],
      "materials": ["Materials used"],
      "designFeatures": ["Key design features"]
    }
  ],
  "projectTypes": ["Types of projects they work on"],
  "projectScales": ["Scales of projects (small, medium, large)"],
  "geographicFocus": ["Geographic areas they work in"],
  "certifications": ["Professional certifications"],
  "awards": [
    {"name": "Award name", "year": 2021, "category": "Award category",
     "organization": "Awarding organization", "description": "Award description"}
  ],
  "publications": [
    {"title": "Publication title", "year": 2019, "publisher": "Publisher",
     "type": "article, book, magazine, or online", "url": "URL", "description": "Description"}
  ],
  "exhibitions": [
    {"name": "Exhibition name", "year": 2018, "location": "Location",
     "type": "solo, group, or competition", "description": "Description"}
  ],
  "press": [
    {"title": "Press mention title", "year": 2022, "source": "Source publication",
     "url": "URL", "description": "Description"}
  ],
  "designApproach": ["Design approaches and methodologies"]
}"""


def get_extraction_prompt(
    include_projects: bool = True,
    include_team: bool = True,
    include_awards: bool = True,
    include_publications: bool = True,
) -> str:
    """Build the instruction template sent with the corpus.

    The JSON shape is fixed; the include flags only add or withdraw focus
    instructions. The template contains CORPUS_PLACEHOLDER where the
    website content goes.

    Args:
        include_projects: Ask for comprehensive project details.
        include_team: Allow key architect names to be collected.
        include_awards: Ask for awards and recognition.
        include_publications: Ask for publications, exhibitions and press.

    Returns:
        The instruction template string.
    """
    focus = [
        "Only extract information that is explicitly mentioned in the content",
        "If information is not available, omit the field. Never invent values",
        "Be accurate and don't make assumptions",
        "For arrays, include all relevant items found",
        "Numbers (years) must be JSON numbers, not strings",
        "Identify their geographic focus and project types",
    ]
    if include_projects:
        focus.append(
            "Extract project details comprehensively. Avoid generic marketing language "
            "like 'clean, modern, timeless, innovative' and focus on specific technical "
            "details, materials, or unique features"
        )
    else:
        focus.append("Do not list individual projects; leave \"projects\" empty")
    if include_team:
        focus.append("List key architects by name only; collect no other personal details")
    else:
        focus.append("Do NOT collect any team member information; leave \"keyArchitects\" empty")
    if include_awards:
        focus.append("Look for awards, certifications and other recognition")
    if include_publications:
        focus.append("Look for publications, exhibitions and press mentions")

    instructions = "\n".join(f"{i}. {line}" for i, line in enumerate(focus, start=1))

    return f"""You are an expert architecture industry analyst. Analyze the following website content from an architecture firm and extract comprehensive information about the company.

WEBSITE CONTENT:
{CORPUS_PLACEHOLDER}

Extract the following information in JSON format, using exactly this shape:

{TARGET_JSON_SHAPE}

IMPORTANT INSTRUCTIONS:
{instructions}

IMPORTANT: You MUST respond with ONLY valid JSON. Do not include any text before or after the JSON. Start your response with {{ and end with }}."""
