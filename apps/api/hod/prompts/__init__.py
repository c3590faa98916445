"""
LLM prompt templates for the ingestion pipeline.

Pipeline order:
  1. BRAIN_DUMP         - messy text -> tasks, wellbeing, insights, events, strategy notes
  2. BRAIN_DUMP_STRICT  - same output, stricter wording; used when pass 1 under-extracts
  3. MEETING_MINUTES    - pasted minutes -> date, attendees, agenda, actions
  4. CONTEXT_*          - pasted calendar / goals text -> events / goals
"""

from .ingestion import (
    PROMPT_BRAIN_DUMP,
    PROMPT_BRAIN_DUMP_STRICT,
    PROMPT_MEETING_MINUTES,
    PROMPT_CONTEXT_CALENDAR,
    PROMPT_CONTEXT_GOALS,
    fill_prompt,
)

__all__ = [
    "PROMPT_BRAIN_DUMP",
    "PROMPT_BRAIN_DUMP_STRICT",
    "PROMPT_MEETING_MINUTES",
    "PROMPT_CONTEXT_CALENDAR",
    "PROMPT_CONTEXT_GOALS",
    "fill_prompt",
]
