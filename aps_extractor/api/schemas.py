from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import List, Optional
from aps_extractor.services.grading import level_of, aps_points_of, calculate_aps

class SubjectResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Canonical subject label", examples=["Mathematics"])
    mark: int = Field(..., ge=0, le=100, description="Mark out of 100")

    @computed_field
    @property
    def level(self) -> str:
        return level_of(self.mark)

    @computed_field
    @property
    def aps_points(self) -> int:
        return aps_points_of(self.mark)

class ExtractionResult(BaseModel):
    subjects: List[SubjectResult] = Field(default_factory=list)
    overall_average: int = Field(0, description="Mean mark rounded half-up, 0 when no subjects")
    errors: List[str] = Field(default_factory=list, description="Advisory diagnostics for unparsed lines")
    confidence: float = Field(0.0, ge=0, le=100, description="OCR engine confidence (0-100)")

class ApsBreakdown(BaseModel):
    aps_score: int = Field(..., description="Sum of APS points over all subjects")
    total_subjects: int
    average_points: float = Field(..., description="APS points per subject, 2 decimals")

    @classmethod
    def from_subjects(cls, subjects: List[SubjectResult]) -> "ApsBreakdown":
        aps_score, total_subjects, average_points = calculate_aps(subject.mark for subject in subjects)
        return cls(aps_score=aps_score, total_subjects=total_subjects, average_points=average_points)

class ParseTextRequest(BaseModel):
    text: str = Field(..., description="Raw text recognised from a results document")
    confidence: float = Field(0.0, ge=0, le=100)

class ParseTextResponse(ExtractionResult):
    aps: ApsBreakdown

class SubjectEntry(BaseModel):
    name: str = Field(..., min_length=1, examples=["Wiskunde"])
    mark: int = Field(..., ge=0, le=100, examples=[91])

class ManualResultsRequest(BaseModel):
    subjects: List[SubjectEntry] = Field(..., min_length=1)

class ManualResultsResponse(BaseModel):
    subjects: List[SubjectResult]
    overall_average: int
    aps: ApsBreakdown

class ResultsUploadResponse(BaseModel):
    success: bool
    error: Optional[str] = None
    text: Optional[str] = None
    confidence: Optional[float] = None
    subjects: List[SubjectResult] = Field(default_factory=list)
    overall_average: int = 0
    errors: List[str] = Field(default_factory=list)
    aps: Optional[ApsBreakdown] = None
    processing_time: Optional[float] = Field(None, description="Processing time in seconds")
    file_type: Optional[str] = Field(None, description="Type of input file")
    file_size: Optional[int] = Field(None, description="Size of input file in bytes")

class HealthResponse(BaseModel):
    status: str
    version: str
