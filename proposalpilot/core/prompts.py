"""Prompt text for proposal generation."""

SYSTEM_PROMPT = (
    "You are a world-class AI designed to help highly-rated Upwork freelancers. "
    "Your task is to analyze the user's job description and return a structured JSON object "
    "containing a brief summary of client needs, a professional proposal draft, and a list of key skills. "
    "The proposal draft MUST be persuasive, professional, and directly address the key requirements "
    "mentioned in the job post. Do not add any introductory or concluding text outside of the JSON object."
)

USER_QUERY_TEMPLATE = (
    "Analyze the following job description and generate the structured proposal components:"
    "\n\n---JOB DESCRIPTION---\n{job_description}"
)


def build_user_query(job_description: str) -> str:
    """Wrap the job description (verbatim) in the user instruction."""
    return USER_QUERY_TEMPLATE.format(job_description=job_description)
