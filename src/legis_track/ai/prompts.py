# ABOUTME: Prompt templates for bill impact analysis.
# ABOUTME: General effect, economic effect and industry sector tagging prompts.

NO_SUMMARY = "(no summary)"

GENERAL_EFFECT_PROMPT = (
    "Provide a concise general effect analysis (max 120 words) of the bill titled "
    "'{title}'. Summary: {summary}"
)

ECONOMIC_EFFECT_PROMPT = (
    "Analyze potential economic impacts (max 120 words) for the bill titled "
    "'{title}'. Summary: {summary}"
)

INDUSTRY_TAGS_PROMPT = (
    "List up to {max_tags} comma-separated industry sectors impacted by '{title}'. "
    "Summary: {summary}. Only list the sectors, no explanations."
)


def general_effect_prompt(title: str, summary: str | None) -> str:
    return GENERAL_EFFECT_PROMPT.format(title=title, summary=summary or NO_SUMMARY)


def economic_effect_prompt(title: str, summary: str | None) -> str:
    return ECONOMIC_EFFECT_PROMPT.format(title=title, summary=summary or NO_SUMMARY)


def industry_tags_prompt(title: str, summary: str | None, max_tags: int) -> str:
    return INDUSTRY_TAGS_PROMPT.format(
        title=title, summary=summary or NO_SUMMARY, max_tags=max_tags
    )


def parse_industry_tags(raw: str | None, max_tags: int) -> list[str]:
    """Split a comma-separated model answer into at most ``max_tags`` tags."""
    if not raw:
        return []
    tags = [tag.strip() for tag in raw.split(",")]
    return [tag for tag in tags if tag][:max_tags]
