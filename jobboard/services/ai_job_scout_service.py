"""
AI Job Scout Service

Two LLM-backed helpers for the admin area:

- generate_description(title): description, requirements, qualifications,
  category and experience level for a single posting (admin form)
- generate_job_batch(query): five candidate postings for a free-text
  query (AI scout page)

Output is parsed strictly. A response that cannot be parsed, or that is
missing a required field, is rejected as a whole; nothing is partially
applied. Calls are never retried automatically.
"""

from typing import Any, List, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import ValidationError

from jobboard.common.config import Config
from jobboard.common.job_types import DescriptionDraft, JobDraft
from jobboard.common.json_utils import parse_json_array, parse_json_object
from jobboard.common.llm_factory import create_llm
from jobboard.common.logger import get_logger

logger = get_logger(__name__, operation="ai_scout")


# =============================================================================
# ERRORS
# =============================================================================

class AIGenerationError(Exception):
    """The generator call failed."""


class AICredentialError(AIGenerationError):
    """The LLM credential is missing or was rejected."""


class AIOutputError(AIGenerationError):
    """The LLM answered, but not in the expected shape."""


CREDENTIAL_MESSAGE = (
    "AI features are disabled. The AI API key is missing or invalid "
    "in the application's environment."
)

GENERIC_MESSAGES = {
    "description": "Failed to generate description. The AI might be busy. Please try again.",
    "scout": (
        "Failed to generate jobs. The AI might be busy or the query is too complex. "
        "Please try again with a more specific query."
    ),
}

EMPTY_TITLE_MESSAGE = "Please enter a job title first."
EMPTY_QUERY_MESSAGE = "Please enter a query to find jobs."

_CREDENTIAL_MARKERS = ("api key", "api_key", "apikey", "authentication")


def is_credential_failure(exc: BaseException) -> bool:
    """True if the failure looks like a missing/invalid API key."""
    if isinstance(exc, AICredentialError):
        return True
    text = f"{type(exc).__name__} {exc}".lower()
    return any(marker in text for marker in _CREDENTIAL_MARKERS)


def describe_failure(exc: BaseException, action: str) -> str:
    """
    User-facing message for a failed generation.

    Args:
        exc: The exception raised by the generator
        action: "description" or "scout"
    """
    if is_credential_failure(exc):
        return CREDENTIAL_MESSAGE
    return GENERIC_MESSAGES.get(action, GENERIC_MESSAGES["scout"])


# =============================================================================
# PROMPTS
# =============================================================================

EXAMPLE_QUERIES = [
    "Latest marketing jobs in Bangalore for experienced professionals",
    "Entry-level data analyst roles in India (remote)",
    "Part-time content writing internships",
]

DESCRIPTION_SYSTEM_PROMPT = """You write job descriptions for an online job board.
Respond with a single JSON object and nothing else."""

DESCRIPTION_USER_TEMPLATE = """Write a compelling job description for a "{title}" position.
Include a main description, a list of key requirements, and a list of desired qualifications.
Also, classify the job category as either "Tech" or "Non-Tech", and the experience level as "Fresher" or "Experienced".

Format the output as a JSON object with five keys:
- "description" (a string)
- "requirements" (an array of strings)
- "qualifications" (an array of strings)
- "category" (a string: "Tech" or "Non-Tech")
- "experienceLevel" (a string: "Fresher" or "Experienced")"""

SCOUT_SYSTEM_PROMPT = """You are a professional job recruiter for an Indian job board called "{board_name}".
Your task is to generate a list of 5 realistic, recent job postings suitable for Indian job seekers based on the user's query.
The location for each job should be relevant to India if not specified in the query."""

SCOUT_USER_TEMPLATE = """User Query: "{query}"

Your response MUST be a single JSON array of objects, enclosed in a markdown code block (```json ... ```).
Do NOT include any text, explanation, or conversation before or after the JSON code block.
Each object in the JSON array must have the following keys: "title", "company", "location", "type", "category", "experienceLevel", "description", "url", "requirements", and "qualifications".
- "type" must be one of: 'Full-time', 'Part-time', 'Contract', 'Internship'
- "category" must be one of: 'Tech', 'Non-Tech'
- "experienceLevel" must be one of: 'Fresher', 'Experienced'
- "requirements" and "qualifications" must be an array of strings.
- "url" should be a placeholder "#"."""

REQUIRED_JOB_KEYS = (
    "title",
    "company",
    "location",
    "type",
    "category",
    "experienceLevel",
    "description",
    "requirements",
    "qualifications",
)


# =============================================================================
# SERVICE
# =============================================================================

class AIJobScoutService:
    """
    Generate posting content with the configured chat model.

    Args:
        llm: Chat model to use (created lazily from Config when omitted)
    """

    def __init__(self, llm: Optional[Any] = None):
        self.llm = llm

    def _get_llm(self):
        if self.llm is None:
            if not Config.ai_enabled():
                raise AICredentialError("OPENAI_API_KEY is not configured (missing API key)")
            self.llm = create_llm(operation="ai_scout")
        return self.llm

    def _invoke(self, system_prompt: str, user_prompt: str) -> str:
        """Single model call; failures are classified, never retried."""
        try:
            llm = self._get_llm()
            response = llm.invoke([
                SystemMessage(content=system_prompt),
                HumanMessage(content=user_prompt),
            ])
        except AIGenerationError:
            raise
        except Exception as e:
            logger.error(f"LLM call failed: {e}")
            if is_credential_failure(e):
                raise AICredentialError(str(e)) from e
            raise AIGenerationError(str(e)) from e

        content = response.content if hasattr(response, "content") else response
        if not isinstance(content, str):
            raise AIOutputError("AI response was not text")
        return content

    def generate_description(self, job_title: str) -> DescriptionDraft:
        """
        Generate the body of a posting from its title.

        Raises:
            ValueError: If the title is empty (no call is made)
            AICredentialError: If the API key is missing or rejected
            AIOutputError: If the response is not a complete JSON object
            AIGenerationError: For any other call failure
        """
        title = (job_title or "").strip()
        if not title:
            raise ValueError(EMPTY_TITLE_MESSAGE)

        logger.info(f"Generating description for {title!r}")
        text = self._invoke(
            DESCRIPTION_SYSTEM_PROMPT,
            DESCRIPTION_USER_TEMPLATE.format(title=title),
        )

        try:
            payload = parse_json_object(text)
            draft = DescriptionDraft.model_validate(payload)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Rejected description output: {e}")
            raise AIOutputError("AI generated content was in an unexpected format.") from e

        logger.info(
            f"Generated description: {len(draft.requirements)} requirements, "
            f"{len(draft.qualifications)} qualifications"
        )
        return draft

    def generate_job_batch(self, query: str) -> List[JobDraft]:
        """
        Generate candidate postings for a free-text query.

        Raises:
            ValueError: If the query is empty (no call is made)
            AICredentialError: If the API key is missing or rejected
            AIOutputError: If no JSON array is found or any item is malformed
            AIGenerationError: For any other call failure
        """
        query = (query or "").strip()
        if not query:
            raise ValueError(EMPTY_QUERY_MESSAGE)

        logger.info(f"Scouting jobs for query {query!r}")
        text = self._invoke(
            SCOUT_SYSTEM_PROMPT.format(board_name=Config.BOARD_NAME),
            SCOUT_USER_TEMPLATE.format(query=query),
        )

        try:
            items = parse_json_array(text)
        except ValueError as e:
            logger.warning(f"Rejected scout output: {e}")
            raise AIOutputError(str(e)) from e

        drafts = [self._parse_job(index, item) for index, item in enumerate(items)]
        logger.info(f"Scout returned {len(drafts)} drafts")
        return drafts

    @staticmethod
    def _parse_job(index: int, item: Any) -> JobDraft:
        if not isinstance(item, dict):
            raise AIOutputError(f"Job #{index + 1} is not a JSON object")

        missing = [key for key in REQUIRED_JOB_KEYS if key not in item]
        if missing:
            raise AIOutputError(f"Job #{index + 1} is missing {', '.join(missing)}")

        try:
            return JobDraft.model_validate(item)
        except ValidationError as e:
            raise AIOutputError(f"Job #{index + 1} is malformed: {e}") from e


# Singleton instance
_scout_instance: Optional[AIJobScoutService] = None


def get_ai_job_scout() -> AIJobScoutService:
    global _scout_instance
    if _scout_instance is None:
        _scout_instance = AIJobScoutService()
    return _scout_instance


def reset_ai_job_scout() -> None:
    global _scout_instance
    _scout_instance = None

