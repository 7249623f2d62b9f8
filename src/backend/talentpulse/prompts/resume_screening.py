"""Prompt templates for resume scoring and resume insights.

Versioned so cached scores can be tied to the prompt that produced them.
"""

PROMPT_VERSION = "v2.0"

SYSTEM_PROMPT = """\
You are an expert HR analyst. You assess resumes objectively and provide \
specific, actionable insights.

Rules:
- Percentages are integers from 0 to 100
- Focus on technical skills, experience relevance, and cultural fit indicators
- Never include protected characteristics (age, gender, race, religion, etc.) in your assessment
- Output ONLY valid JSON matching the specified structure. No markdown, no extra text."""

SCORING_PROMPT_TEMPLATE = """\
Analyze the following resume against the job requirements and provide a detailed assessment.

## Job Requirements
{job_text}

## Resume
{resume_text}

## Instructions
Return your analysis as JSON with this exact structure:

{{
  "score": <overall match percentage 0-100>,
  "skillsMatch": <skills match percentage 0-100>,
  "experienceMatch": <experience match percentage 0-100>,
  "strengths": ["<candidate strength>", ...],
  "weaknesses": ["<area for improvement>", ...],
  "recommendations": ["<hiring recommendation>", ...],
  "keySkills": ["<relevant skill found in the resume>", ...],
  "missingSkills": ["<required skill not found>", ...]
}}

List at most 5 strengths, 5 weaknesses, 3 recommendations, 10 key skills and 5 missing skills."""

INSIGHTS_PROMPT_TEMPLATE = """\
Analyze this resume and provide insights.

## Resume
{resume_text}

## Instructions
Return your analysis as JSON with this exact structure:

{{
  "overallScore": <score 0-100>,
  "keyStrengths": ["<strength>", ...],
  "improvementAreas": ["<area to improve>", ...],
  "skillsIdentified": ["<technical skill>", ...],
  "experienceLevel": "<junior|mid|senior>",
  "industryFit": ["<suitable industry>", ...]
}}"""


def build_scoring_prompt(resume_text: str, job_text: str) -> tuple[str, str]:
    """Build system + user prompts for a resume/job scoring call.

    Returns (system_prompt, user_prompt).
    """
    user_prompt = SCORING_PROMPT_TEMPLATE.format(job_text=job_text, resume_text=resume_text)
    return SYSTEM_PROMPT, user_prompt


def build_insights_prompt(resume_text: str) -> tuple[str, str]:
    user_prompt = INSIGHTS_PROMPT_TEMPLATE.format(resume_text=resume_text)
    return SYSTEM_PROMPT, user_prompt
