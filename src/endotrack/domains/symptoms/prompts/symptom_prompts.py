"""MCP Prompts — pre-built interaction templates for symptom logging."""

from __future__ import annotations

from fastmcp import FastMCP


def register_symptom_prompts(mcp: FastMCP) -> None:
    """Register symptom tracking MCP prompts."""

    @mcp.prompt()
    def daily_check_in_prompt() -> str:
        """Prompt template for logging today's symptoms."""
        return """I'd like to log how I'm feeling today. Please ask me, one group at a time:

1. Pain (leg, lower back, chest, shoulder, headache, pelvic, bowel/urination, intercourse)
2. Other symptoms (bloating, nausea, diarrhea, constipation, fatigue, inflammation, mood)
3. Lifestyle (stress, inactivity, overexertion, coffee, alcohol, smoking, diet, sleep)
4. My cycle phase, if I know it
5. Anything else worth noting

Use a 0-10 scale where 0 means none. Then save it with log_symptoms."""

    @mcp.prompt()
    def monthly_review_prompt(month: str = "this month") -> str:
        """Prompt template for reviewing a month of symptom history."""
        return f"""Let's review my symptom history for {month}. I'd like to:

1. See the month's history chart and which days were worst
2. Check my logging streak and average severity
3. See which symptoms are getting worse or better than the previous 30 days
4. Export a PDF I can bring to my next appointment

Please keep it factual; this is not a diagnosis."""
