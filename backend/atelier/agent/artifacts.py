import re

from pydantic import BaseModel, Field, field_validator

DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>[A-Za-z0-9+/=\s]+)$")


# Inputs

class CollectionBrief(BaseModel):
    """Short brief a creator types before asking for suggestions."""
    name: str = Field(description="Working name of the collection")
    price: float = Field(ge=0, description="Sale price of the collection")
    description: str = Field(description="Creator-provided description")
    target_audience: str = Field(description="Who the collection is for")


class ImageAnalysisRequest(BaseModel):
    image_data_uri: str = Field(
        description="Tattoo image as a data URI: 'data:<mimetype>;base64,<encoded_data>'"
    )

    @field_validator("image_data_uri")
    @classmethod
    def _must_be_image_data_uri(cls, value: str) -> str:
        match = DATA_URI_RE.match(value or "")
        if not match:
            raise ValueError("image must be a base64 data URI")
        if not match.group("mime").startswith("image/"):
            raise ValueError(f"unsupported media type {match.group('mime')}")
        return value


class ModuleCompilationInput(BaseModel):
    name: str = Field(description="Name of the module")
    sub_description: str = Field(description="Short description of the module")
    images: list[str] = Field(default_factory=list, description="Image references (URLs or data URIs)")


class CompilationRequest(BaseModel):
    name: str = Field(description="Name of the collection")
    description: str = Field(description="Detailed description of the collection")
    target_audience: str = Field(description="Target audience of the collection")
    modules: list[ModuleCompilationInput] = Field(default_factory=list)


# Outputs

class CollectionSuggestions(BaseModel):
    """Artifact produced by the suggestion agent."""
    suggested_title: str = Field(description="A better title for the collection")
    improved_description: str = Field(description="An improved, sales-ready description")
    suggested_structure: str = Field(description="Suggested structure including several module ideas")
    sales_pitch: str = Field(description="A short persuasive sales pitch")


class ImageAnalysis(BaseModel):
    """Artifact produced by the image analysis agent."""
    theme: str = Field(description="Main theme of the tattoo (e.g. floral, geometric, portrait)")
    style: str = Field(description="Tattoo style (e.g. realism, minimalist, traditional)")
    suggested_name: str = Field(description="Catchy and relevant name for the tattoo")
    description: str = Field(description="Detailed description highlighting key features")
    seo_tags: list[str] = Field(default_factory=list, description="SEO tags improving searchability")
    instagram_caption: str = Field(default="", description="Engaging Instagram caption")
    literal_meaning: str = Field(default="", description="What the tattoo literally depicts")
    subjective_meaning: str = Field(default="", description="What the tattoo could subjectively represent")
    colors_used: list[str] = Field(default_factory=list, description="Main colors present")
    elements_present: list[str] = Field(default_factory=list, description="Key visual elements")
    emotional_tone: str = Field(default="", description="Emotional tone (e.g. melancholic, powerful, joyful)")
    suggested_placement: str = Field(default="", description="Good placement on the body")
    symbolism: str = Field(default="", description="Symbolism associated with the elements")
    cultural_reference: str = Field(default="", description="Cultural references present")

    @field_validator("seo_tags", "colors_used", "elements_present", mode="before")
    @classmethod
    def _split_comma_lists(cls, value):
        # Models occasionally answer with one comma separated string.
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


class CompiledCollection(BaseModel):
    """Artifact produced by the compilation agent."""
    pdf_data_uri: str = Field(description="Data URI of the generated PDF")
    web_version_url: str = Field(description="URL of the responsive web version")
    mini_site_html: str = Field(description="HTML of a mini-site promoting and selling the collection")
    promotional_files: list[str] = Field(default_factory=list, description="Links to promotional files")
    marketing_copies: str = Field(description="Marketing copy for ads, emails and product pages")
    cover_art_data_uri: str = Field(default="", description="Data URI of the generated cover art")
    mockups_3d: list[str] = Field(default_factory=list, description="Links to 3D mockups")
