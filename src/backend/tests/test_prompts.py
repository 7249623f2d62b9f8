"""Tests for prompt construction -- ensures prompts are well-formed and versioned."""

from talentpulse.prompts.resume_screening import (
    PROMPT_VERSION,
    SYSTEM_PROMPT,
    build_insights_prompt,
    build_scoring_prompt,
)


def test_prompt_version_format():
    assert PROMPT_VERSION.startswith("v")
    assert "." in PROMPT_VERSION


def test_system_prompt_has_bias_guardrails():
    assert "protected characteristics" in SYSTEM_PROMPT.lower()
    assert "JSON" in SYSTEM_PROMPT


def test_system_prompt_requires_json_only():
    assert "ONLY" in SYSTEM_PROMPT
    assert "No markdown" in SYSTEM_PROMPT


def test_build_scoring_prompt_substitutes_values():
    system, user = build_scoring_prompt(
        resume_text="Jane Doe, 7 years Python experience",
        job_text="Senior Engineer, 5 years Python required",
    )
    assert "Senior Engineer" in user
    assert "5 years Python required" in user
    assert "Jane Doe" in user
    assert system == SYSTEM_PROMPT


def test_build_scoring_prompt_preserves_json_template():
    """The output format instructions must survive .format() without breaking."""
    _, user = build_scoring_prompt(resume_text="Test resume", job_text="Test job")
    for key in ("score", "skillsMatch", "experienceMatch", "strengths", "weaknesses",
                "recommendations", "keySkills", "missingSkills"):
        assert f'"{key}"' in user


def test_braces_in_resume_text_survive_formatting():
    _, user = build_scoring_prompt(resume_text="Wrote {templates} in Jinja", job_text="Any {job}")
    assert "{templates}" in user
    assert "{job}" in user


def test_build_insights_prompt():
    system, user = build_insights_prompt("Staff engineer, Kubernetes and Go")
    assert system == SYSTEM_PROMPT
    assert "Kubernetes and Go" in user
    assert '"experienceLevel"' in user
    assert "junior|mid|senior" in user
