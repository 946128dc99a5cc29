import logging
from pathlib import Path
from typing import List, Optional, Union

from openai import APIError, AsyncOpenAI

from services.prompts import RESUME_GUIDELINES
from services.resume_parser import ResumeParser
from utils.errors import UpstreamError

logger = logging.getLogger(__name__)


def build_draft_prompt(job_description: str, work_experiences: List[tuple]) -> str:
    """
    Combine the resume guidelines with the user's documents into one prompt

    Args:
        job_description: Text of the job description
        work_experiences: (filename, text) pairs for each work experience document

    Returns:
        The prompt text
    """
    project_files = "\n".join(f"## {name}\n\n{text}\n" for name, text in work_experiences)
    return (
        f"{RESUME_GUIDELINES}\n"
        "---\n"
        "# Project Files\n\n"
        "## /job_description.txt\n"
        f"{job_description}\n\n"
        f"{project_files}"
    )


async def draft_resume(
        client: AsyncOpenAI,
        job_description_path: Union[str, Path],
        work_experience_paths: List[Union[str, Path]],
        model: str = "gpt-4o",
        parser: Optional[ResumeParser] = None,
) -> str:
    """
    Generate a resume draft with a single chat completion, without the assistant

    Useful for comparing the assistant's output with a plain completion over the same documents.
    """
    parser = parser or ResumeParser()
    logger.info("Reading job description %s and %d work experience files", job_description_path, len(work_experience_paths))

    job_description = parser.read_document(job_description_path)
    work_experiences = [(Path(p).name, parser.read_document(p)) for p in work_experience_paths]

    try:
        completion = await client.chat.completions.create(
            messages=[{"role": "user", "content": build_draft_prompt(job_description, work_experiences)}],
            model=model,
        )
    except APIError as e:
        logger.error("Direct completion failed: %s", e)
        raise UpstreamError(f"Direct completion failed: {e}")

    return completion.choices[0].message.content or ""
