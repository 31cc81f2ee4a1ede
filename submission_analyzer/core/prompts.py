"""
System instructions, user-prompt builders and response schemas for the
analysis service.

The instruction wording is not interpreted anywhere else in the service;
only the response shapes matter to the components that decode them.
"""
from typing import Dict, Sequence

from submission_analyzer.models.dtos import ProblemToCheck, Submission

SUBMISSION_FEEDBACK = "SubmissionFeedback"
HIGH_LEVEL_ANALYSIS = "HighLevelAnalysis"
ANALYSE_SUBMISSION = "AnalyseSubmission"
PATTERN_INFO = "GivePatternInfo"
OVERALL_ANALYSIS = "OverallAnalysis"

_INSTRUCTIONS: Dict[str, str] = {
    SUBMISSION_FEEDBACK: (
        "You are an expert software engineer and a highly experienced technical interviewer. "
        "Review the candidate's solution for the given problem statement: correctness and logic, "
        "edge cases, time and space complexity with justification, code style and readability, and "
        "high-level alternative approaches with their trade-offs. Finish with a summary stating whether "
        "the solution is optimal for an interview and its current and best possible complexities. "
        "Your output must strictly adhere to the provided JSON schema."
    ),
    HIGH_LEVEL_ANALYSIS: (
        "You are a concise code evaluator for technical interviews. You receive a batch of independent "
        "submissions. For each one determine whether it is the best possible solution, its current time "
        "and space complexity and the best achievable time and space complexity. All complexities are "
        "single-token Big O notations such as O(N), O(logN), O(1), O(N^2). Respond with a single JSON array "
        "holding exactly one object per submission, in the same order as the input."
    ),
    ANALYSE_SUBMISSION: (
        "You are an expert coding mentor and refactoring assistant. Provide an optimal solution for the "
        "problem, a diff view between the candidate's code and the optimal solution, algorithmic, complexity "
        "and pattern insights, and a list of actionable improvement steps with titles, descriptions and code. "
        "Your output must strictly adhere to the provided JSON schema."
    ),
    PATTERN_INFO: (
        "You are an authoritative reference on algorithmic patterns and data structures. Describe the given "
        "pattern in the context of the given programming language: name, description, category, interview "
        "priority and why, key points, representative practice questions, common mistakes and an idiomatic "
        "code template. Your output must strictly adhere to the provided JSON schema."
    ),
    OVERALL_ANALYSIS: (
        "You are an expert coding tutor. From a collection of a user's past submissions identify the data "
        "structure and algorithm patterns they apply well and those they miss or misuse, infer strengths "
        "and weaknesses, and recommend what to practice next. Do not review individual submissions line by "
        "line. Your output must strictly adhere to the provided JSON schema."
    ),
}

_DEFAULT_INSTRUCTION = (
    "You are a versatile assistant specialized in code analysis and algorithmic problem solving. "
    "Provide a general but insightful analysis of the given problem statement and code."
)


def system_instruction(task: str) -> str:
    return _INSTRUCTIONS.get(task, _DEFAULT_INSTRUCTION)


def problem_prompt(problem: ProblemToCheck) -> str:
    return f"Problem Statement: {problem.problem_statement}\nCandidate Code: {problem.candidate_code}"


def submissions_prompt(submissions: Sequence[Submission]) -> str:
    parts = ["Analyze the following code submissions:\n\n"]
    for i, sub in enumerate(submissions, start=1):
        parts.append(f"--- Submission {i} ---\n")
        parts.append(f"Problem Statement: {sub.title}\n")
        parts.append(f"Candidate Code:\n{sub.code}\n\n")
    parts.append("--- End of Submissions ---\n")
    return "".join(parts)


def pattern_prompt(pattern: str, language: str) -> str:
    return f"Pattern: {pattern}\nLanguage: {language}"


def _string(description: str) -> dict:
    return {"type": "STRING", "description": description}


def _string_list(description: str) -> dict:
    return {"type": "ARRAY", "items": {"type": "STRING"}, "description": description}


_COMPLEXITY_PROPERTIES = {
    "isBestSolution": {
        "type": "BOOLEAN",
        "description": "Whether the solution is the best possible one for the problem in interviews.",
    },
    "bestTimeComplexity": _string("Best possible time complexity as a single token like O(N)."),
    "currentTimeComplexity": _string("Current time complexity as a single token like O(N)."),
    "bestSpaceComplexity": _string("Best possible space complexity as a single token like O(N)."),
    "currentSpaceComplexity": _string("Current space complexity as a single token like O(N)."),
}

COMPLEXITY_BATCH_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": _COMPLEXITY_PROPERTIES,
        "required": list(_COMPLEXITY_PROPERTIES),
    },
}

SUBMISSION_FEEDBACK_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "correctnessAndLogic": _string("Correctness, logical errors, edge cases and proposed fixes."),
        "timeComplexityAnalysis": _string("Big O time complexity, justification and optimizations."),
        "spaceComplexityAnalysis": _string("Big O space complexity, justification and optimizations."),
        "codeStyleAndReadability": _string("Code style, naming, readability, comments and best practices."),
        "alternativeApproaches": _string("Alternative algorithms or data structures and their trade-offs."),
        "summary": {"type": "OBJECT", "properties": _COMPLEXITY_PROPERTIES},
    },
    "property_ordering": [
        "correctnessAndLogic",
        "timeComplexityAnalysis",
        "spaceComplexityAnalysis",
        "codeStyleAndReadability",
        "alternativeApproaches",
        "summary",
    ],
}

DEEP_ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "optimalCode": _string("The optimal code for the problem."),
        "diffView": _string("Diff between the optimal code and the candidate code."),
        "insights": {
            "type": "OBJECT",
            "properties": {
                "algorithmic": _string("Algorithmic insights and suggestions."),
                "complexity": _string("Complexity analysis and suggestions."),
                "patterns": _string("Patterns used in the code and suggestions."),
            },
        },
        "steps": {
            "type": "ARRAY",
            "description": "Steps to improve the code.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": _string("Title of the step."),
                    "description": _string("Description of the step."),
                    "code": _string("Code for the step."),
                },
            },
        },
    },
}

PATTERN_INFO_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "name": _string("Name of the pattern."),
        "description": _string("Thorough description of the pattern."),
        "category": _string("Category such as Two Pointers or Dynamic Programming."),
        "priority": _string("Interview preparation priority: High, Medium or Low."),
        "whyPriority": _string("Why the pattern has this priority."),
        "keyPoints": _string_list("Key conceptual points of the pattern."),
        "questions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": _string("Question identifier."),
                    "title": _string("Question title."),
                    "difficulty": _string("Easy, Medium or Hard."),
                    "url": _string("Question URL."),
                },
            },
        },
        "commonMistakes": _string_list("Common mistakes when applying the pattern."),
        "template": _string("Idiomatic code template in the requested language."),
    },
    "required": [
        "name", "description", "category", "priority", "whyPriority",
        "keyPoints", "questions", "commonMistakes", "template",
    ],
}

AGGREGATE_ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "strengths": _string_list("Patterns the user applies well."),
        "weaknesses": _string_list("Patterns the user misses or misapplies."),
        "learningRecommendations": _string_list("Topics to practice next."),
        "commonMistakesSummary": _string("Recurring conceptual mistakes, if any."),
    },
    "required": ["strengths", "weaknesses", "learningRecommendations", "commonMistakesSummary"],
}
