# AIService.py
"""
Thin client for the Gemini text-completion service.

Two one-shot calls, no retries, no streaming:
- solve_problem(): structured answer (solution, explanation, steps); raises AIServiceError
- explain_concept(): free text; never raises, falls back to a fixed sentence

Both accept an already built client so the UI (and the tests) decide where it comes from.
"""
import json
import logging
import os
import re

from google import genai
from google.genai import types

from . import config_manager as config_manager
from . import error as E

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-flash-preview"
API_KEY_VARIABLES = ["GEMINI_API_KEY", "API_KEY"]
EXPLANATION_FALLBACK = "Could not generate explanation at this time."

SOLVE_PROMPT = ('Solve this math problem: "{problem}". Provide a structured response with the final answer, '
                'a brief explanation, and clear numbered steps.')
EXPLAIN_PROMPT = "Explain the mathematical concept behind this expression: {expression}. How would you solve it?"

SOLUTION_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "solution": types.Schema(type=types.Type.STRING, description="The final answer only"),
        "explanation": types.Schema(type=types.Type.STRING, description="Brief conceptual explanation"),
        "steps": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
            description="Step-by-step list of instructions",
        ),
    },
    required=["solution", "explanation", "steps"],
)


class AIResponse:
    def __init__(self, solution, explanation, steps):
        self.solution = solution
        self.explanation = explanation
        self.steps = list(steps)

    def __eq__(self, other):
        return (isinstance(other, AIResponse) and self.solution == other.solution
                and self.explanation == other.explanation and self.steps == other.steps)

    def __repr__(self):
        return f"AIResponse(solution={self.solution!r}, steps={len(self.steps)})"


def get_api_key():
    for variable in API_KEY_VARIABLES:
        value = (os.getenv(variable) or "").strip()
        if value:
            return value
    return ""


def get_client():
    """Build a Gemini client from the API key in the environment."""
    api_key = get_api_key()
    if not api_key:
        raise E.AIServiceError(f"No API key set ({' / '.join(API_KEY_VARIABLES)}).", code="6000")
    return genai.Client(api_key=api_key)


def get_model():
    return config_manager.load_setting_value("ai_model") or DEFAULT_MODEL


def _strip_code_fence(text):
    t = (text or "").strip()
    if t.startswith("```"):
        t = re.sub(r"^```[a-zA-Z0-9_-]*\n", "", t)
        t = re.sub(r"\n?```\s*$", "", t)
    return t.strip()


def parse_solution(text, problem=None):
    """Turn the JSON text of a solve response into an AIResponse."""
    raw = _strip_code_fence(text)
    if not raw:
        raise E.AIServiceError("Empty response.", code="6001", equation=problem)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise E.AIServiceError(f"Invalid JSON: {e}", code="6001", equation=problem) from e

    if not isinstance(data, dict):
        raise E.AIServiceError("Response is not an object.", code="6001", equation=problem)

    missing = [key for key in ("solution", "explanation", "steps") if key not in data]
    if missing:
        raise E.AIServiceError(f"Missing fields: {', '.join(missing)}", code="6001", equation=problem)

    steps = data["steps"]
    if not isinstance(steps, list):
        raise E.AIServiceError("'steps' is not a list.", code="6001", equation=problem)

    return AIResponse(str(data["solution"]), str(data["explanation"]), [str(step) for step in steps])


def solve_problem(problem, client=None, model=None):
    """Ask for a structured step-by-step solution of an expression or word problem."""
    try:
        client = client or get_client()
        response = client.models.generate_content(
            model=model or get_model(),
            contents=SOLVE_PROMPT.format(problem=problem),
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=SOLUTION_SCHEMA,
            ),
        )
        text = response.text
    except E.AIServiceError as e:
        logger.error("AI Math Solver Error: %s", e.message)
        e.equation = problem
        raise
    except Exception as e:
        logger.error("AI Math Solver Error: %s", e)
        raise E.AIServiceError(f"{e}", code="6000", equation=problem) from e

    try:
        return parse_solution(text, problem)
    except E.AIServiceError as e:
        logger.error("AI Math Solver Error: %s", e.message)
        raise


def explain_concept(expression, client=None, model=None):
    """Free-text explanation; returns EXPLANATION_FALLBACK instead of raising."""
    try:
        client = client or get_client()
        response = client.models.generate_content(
            model=model or get_model(),
            contents=EXPLAIN_PROMPT.format(expression=expression),
        )
        text = (response.text or "").strip()
    except E.AIServiceError as e:
        logger.error("AI Explanation Error: %s", e.message)
        return EXPLANATION_FALLBACK
    except Exception as e:
        logger.error("AI Explanation Error: %s", e)
        return EXPLANATION_FALLBACK

    if not text:
        logger.error("AI Explanation Error: empty response")
        return EXPLANATION_FALLBACK
    return text
