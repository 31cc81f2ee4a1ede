"""
Pydantic Data Transfer Objects (DTOs) for the Submission Analyzer service.

These models describe judge submissions, the payloads produced by the
analysis service and the revision entries kept per user. Wire names used by
the judge (``status_display``) and by the analysis service (camelCase) are
accepted on input; Python code uses the snake_case attribute names.
"""

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


ACCEPTED_STATUS = "Accepted"

ANNOTATION_FIELDS = (
    "is_best_solution",
    "best_time_complexity",
    "current_time_complexity",
    "best_space_complexity",
    "current_space_complexity",
)


class ComplexityAnnotation(BaseModel):
    """
    One result of a batched complexity annotation call.

    Complexities are single-token Big-O strings such as ``O(N)``; their format
    is a contract with the analysis service and is not validated here.
    """
    is_best_solution: bool = Field(False, alias="isBestSolution")
    best_time_complexity: str = Field(..., alias="bestTimeComplexity")
    current_time_complexity: str = Field(..., alias="currentTimeComplexity")
    best_space_complexity: str = Field(..., alias="bestSpaceComplexity")
    current_space_complexity: str = Field(..., alias="currentSpaceComplexity")

    model_config = ConfigDict(populate_by_name=True)


class Submission(BaseModel):
    """
    A judge submission as returned by the paginated submissions endpoint.

    The five annotation fields stay at their defaults until the merger
    copies an annotation onto the submission.
    """
    id: int
    title: str = ""
    code: str = ""
    lang: str = ""
    lang_name: str = ""
    timestamp: int = 0
    status: str = Field("", validation_alias=AliasChoices("status_display", "status"))
    runtime: str = ""
    memory: str = ""
    url: str = ""
    is_pending: str = ""

    is_best_solution: bool = Field(False, validation_alias=AliasChoices("isBestSolution", "is_best_solution"))
    best_time_complexity: str = Field("", validation_alias=AliasChoices("bestTimeComplexity", "best_time_complexity"))
    current_time_complexity: str = Field("", validation_alias=AliasChoices("currentTimeComplexity", "current_time_complexity"))
    best_space_complexity: str = Field("", validation_alias=AliasChoices("bestSpaceComplexity", "best_space_complexity"))
    current_space_complexity: str = Field("", validation_alias=AliasChoices("currentSpaceComplexity", "current_space_complexity"))

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def is_accepted(self) -> bool:
        return self.status == ACCEPTED_STATUS

    def with_annotation(self, annotation: ComplexityAnnotation) -> "Submission":
        """Returns an annotated copy; the receiver is left untouched."""
        return self.model_copy(update=annotation.model_dump(include=set(ANNOTATION_FIELDS)))


# Annotated submissions share the submission shape; the alias documents intent.
AnnotatedSubmission = Submission


class SubmissionsPage(BaseModel):
    """One page of the judge's submissions endpoint."""
    submissions: List[Submission] = Field(default_factory=list, validation_alias=AliasChoices("submissions_dump", "submissions"))

    model_config = ConfigDict(extra="ignore")


class ProblemToCheck(BaseModel):
    """A single problem/code pair sent for feedback or deep analysis."""
    problem_id: int
    problem_statement: str = Field(..., min_length=1)
    candidate_code: str = Field(..., min_length=1)

    @property
    def cache_key(self) -> str:
        return str(self.problem_id)


class ComplexitySummary(BaseModel):
    is_best_solution: bool = Field(False, alias="isBestSolution")
    best_time_complexity: str = Field("", alias="bestTimeComplexity")
    current_time_complexity: str = Field("", alias="currentTimeComplexity")
    best_space_complexity: str = Field("", alias="bestSpaceComplexity")
    current_space_complexity: str = Field("", alias="currentSpaceComplexity")

    model_config = ConfigDict(populate_by_name=True)


class SubmissionFeedback(BaseModel):
    """Detailed review of one candidate solution."""
    correctness_and_logic: str = Field("", alias="correctnessAndLogic")
    time_complexity_analysis: str = Field("", alias="timeComplexityAnalysis")
    space_complexity_analysis: str = Field("", alias="spaceComplexityAnalysis")
    code_style_and_readability: str = Field("", alias="codeStyleAndReadability")
    alternative_approaches: str = Field("", alias="alternativeApproaches")
    summary: ComplexitySummary = Field(default_factory=ComplexitySummary)

    model_config = ConfigDict(populate_by_name=True)


class Insights(BaseModel):
    algorithmic: str = ""
    complexity: str = ""
    patterns: str = ""


class ImprovementStep(BaseModel):
    title: str = ""
    description: str = ""
    code: str = ""


class DeepAnalysis(BaseModel):
    """Optimal solution, diff view and step-by-step improvement plan."""
    optimal_code: str = Field("", alias="optimalCode")
    diff_view: str = Field("", alias="diffView")
    insights: Insights = Field(default_factory=Insights)
    steps: List[ImprovementStep] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class PatternQuestion(BaseModel):
    id: str = ""
    title: str = ""
    difficulty: str = ""
    url: str = ""


class PatternInfo(BaseModel):
    """Encyclopedia entry for one algorithmic pattern in one language."""
    name: str
    description: str
    category: str
    priority: str
    why_priority: str = Field(..., alias="whyPriority")
    key_points: List[str] = Field(..., alias="keyPoints")
    questions: List[PatternQuestion]
    common_mistakes: List[str] = Field(..., alias="commonMistakes")
    template: str

    model_config = ConfigDict(populate_by_name=True)


class AggregateAnalysis(BaseModel):
    """Strengths and weaknesses across a user's recent submissions."""
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    learning_recommendations: List[str] = Field(default_factory=list, alias="learningRecommendations")
    common_mistakes_summary: Optional[str] = Field(None, alias="commonMistakesSummary")

    model_config = ConfigDict(populate_by_name=True)


class RevisionEntry(Submission):
    """
    A saved problem plus its spaced-repetition metadata.

    ``tags`` has set semantics; duplicates are dropped while keeping the first
    occurrence so the stored document stays stable.
    """
    notes: str = ""
    last_revised: str = ""
    next_revision: str = ""
    difficulty: str = ""
    confidence_level: int = 0
    revision_count: int = 0
    tags: List[str] = Field(default_factory=list)

    # Revision entries are created by clients that may not know the judge id.
    id: int = 0

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))


class RevisionSet(BaseModel):
    """The whole revision document of one user."""
    user_id: str
    revisions: List[RevisionEntry] = Field(default_factory=list)
    version: int = 0
