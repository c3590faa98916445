"""
Ingestion prompts.

Designed to take a messy "brain dump" (emails, minutes, notes) from a school
Head of Department and produce tasks, wellbeing, staff insights, calendar
events and strategy notes as one JSON object.

Placeholders (double-brace, replace before sending to LLM):
  - {{CURRENT_DATE}}       - ISO timestamp used as the due-date reference
  - {{CALENDAR_CONTEXT}}   - today's/tomorrow's events or the calendar
  - {{GOAL_CONTEXT}}       - goal titles
  - {{STAFF_CONTEXT}}      - staff directory for assignment
  - {{EXISTING_TASKS}}     - existing task titles for de-duplication
  - {{USER_TEXT}}          - the raw input
"""

from hod.domain import EVENT_TYPES, PRIORITIES, TASK_CATEGORIES, TIME_OPTIONS, ENERGY_OPTIONS


def _enum(values: tuple[str, ...]) -> str:
    return " | ".join(f'"{v}"' for v in values)


# -----------------------------------------------------------------------------
# 1. Brain dump (primary pass)
# -----------------------------------------------------------------------------

OUTPUT_SHAPE = """{
  "tasks": [
    {
      "title": "Short actionable title",
      "priority": {{PRIORITY_ENUM}},
      "category": {{CATEGORY_ENUM}},
      "estimatedMinutes": 0,
      "estimatedTime": {{TIME_ENUM}},
      "energyLevel": {{ENERGY_ENUM}},
      "isWeeklyWin": true | false,
      "dueDate": "YYYY-MM-DD" | null,
      "assignee": "Name or empty string",
      "summary": "One or two sentences",
      "themeTag": "optional strategy tag if applicable"
    }
  ],
  "wellbeing": {
    "mood": "Tough" | "Okay" | "Great",
    "energy": "Low" | "Medium" | "High",
    "summary": "Short wellbeing snapshot"
  } | null,
  "staffInsights": [
    {
      "staffName": "Name or empty",
      "date": "YYYY-MM-DD" | null,
      "type": "praise" | "concern" | "neutral",
      "summary": "Single-sentence note"
    }
  ],
  "calendarEvents": [
    {
      "title": "Event title",
      "startDateTime": "YYYY-MM-DDTHH:MM" | "YYYY-MM-DD",
      "endDateTime": "YYYY-MM-DDTHH:MM" | null,
      "description": "Optional description",
      "type": {{EVENT_ENUM}}
    }
  ],
  "strategyNotes": [
    {
      "theme": "KS3 Mastery / Exam Outcomes / CPD / Reports / Curriculum / Other",
      "note": "Short description",
      "linkedTo": "optional DIP/SDP reference"
    }
  ]
}"""

PROMPT_BRAIN_DUMP = """You are an executive assistant for a British School Head of Department.

TASK: Parse the input into MULTIPLE distinct items and return STRICT JSON. NEVER merge multiple actions into one task. Do not omit items. Infer missing details yourself; do not ask follow-up questions.

CONTEXT:
- Current date: {{CURRENT_DATE}}
- {{CALENDAR_CONTEXT}}
- Goals: {{GOAL_CONTEXT}}
- {{STAFF_CONTEXT}}
- {{EXISTING_TASKS}}

INPUT (messy, multiline):
\"\"\"
{{USER_TEXT}}
\"\"\"

OUTPUT JSON SHAPE:
{{OUTPUT_SHAPE}}

RULES:
- Staff insight type: "concern" for deadlines, standards, corrections or holding to account; "praise" for thanks, care and wellbeing checks; "neutral" for logistics. Ambiguity defaults to "concern".
- Split EVERY distinct action into its own task.
- Always return estimatedTime using only the allowed options and set energyLevel to "High Focus" or "Low Energy/Admin" (admin/email = Low, deep work/analysis/strategy = High Focus). Set isWeeklyWin = true only for strategic/high-impact work.
- Smart due date rules (use current date as reference):
  A) If the task involves a request from a Stakeholder or VIP -> dueDate today or tomorrow.
  B) If estimatedTime is under 30 mins -> dueDate today or within the next 2 days.
  C) Otherwise default to 7 days from today.
- Extract date/time lines into calendarEvents.
- Make a best inference for dueDate/assignee/staff.
- Use British English. Keep JSON valid."""


# -----------------------------------------------------------------------------
# 2. Brain dump (stricter fallback pass)
# -----------------------------------------------------------------------------

PROMPT_BRAIN_DUMP_STRICT = """You must output STRICT JSON only. Do not include prose.
Extract EVERY dated line as a calendarEvents item and EVERY instruction sentence as a separate task.
Do NOT merge multiple actions into one task. Make a best-effort guess instead of asking clarifying questions.
Current date: {{CURRENT_DATE}}. Apply the same smart due date rules (Stakeholder/VIP = today/tomorrow, quick admin under 30 mins = today or within 2 days, everything else = 7 days out).

INPUT:
\"\"\"
{{USER_TEXT}}
\"\"\"

OUTPUT JSON SHAPE:
{{OUTPUT_SHAPE}}"""


# -----------------------------------------------------------------------------
# 3. Meeting minutes
# -----------------------------------------------------------------------------

PROMPT_MEETING_MINUTES = """Extract: Date, Attendees, Agenda Items, and Action Points. For Action Points, identify the Owner and Deadline.

Return STRICT JSON only in this shape:
{
  "meetingDate": "YYYY-MM-DD or blank",
  "attendees": ["Name", "..."],
  "agenda": [{"title": "Agenda item", "notes": "Key discussion or notes", "owner": "optional"}],
  "actions": [{"title": "Action point", "owner": "Owner name", "deadline": "YYYY-MM-DD or blank", "notes": "optional"}],
  "minutesSummary": "Short headline summary"
}

Input minutes:
\"\"\"{{USER_TEXT}}\"\"\""""


# -----------------------------------------------------------------------------
# 4. Context import (calendar dates / strategic goals)
# -----------------------------------------------------------------------------

PROMPT_CONTEXT_CALENDAR = """Extract key school dates from this text. Return JSON: { "events": [{ "date": "YYYY-MM-DD", "event": "Event Name", "type": "Term/Exam/Report" }] }. Text: "{{USER_TEXT}}\""""

PROMPT_CONTEXT_GOALS = """Extract strategic goals from this text. Return JSON: { "goals": [{ "title": "Goal Title", "focus": "Brief description" }] }. Text: "{{USER_TEXT}}\""""


def fill_prompt(
    template: str,
    *,
    user_text: str | None = None,
    current_date: str | None = None,
    calendar_context: str | None = None,
    goal_context: str | None = None,
    staff_context: str | None = None,
    existing_tasks: str | None = None,
) -> str:
    out = template.replace("{{OUTPUT_SHAPE}}", OUTPUT_SHAPE)
    out = out.replace("{{PRIORITY_ENUM}}", _enum(PRIORITIES))
    out = out.replace("{{CATEGORY_ENUM}}", _enum(TASK_CATEGORIES))
    out = out.replace("{{TIME_ENUM}}", _enum(TIME_OPTIONS))
    out = out.replace("{{ENERGY_ENUM}}", _enum(ENERGY_OPTIONS))
    out = out.replace("{{EVENT_ENUM}}", _enum(EVENT_TYPES))

    if current_date is not None:
        out = out.replace("{{CURRENT_DATE}}", current_date)
    if calendar_context is not None:
        out = out.replace("{{CALENDAR_CONTEXT}}", calendar_context)
    if goal_context is not None:
        out = out.replace("{{GOAL_CONTEXT}}", goal_context)
    if staff_context is not None:
        out = out.replace("{{STAFF_CONTEXT}}", staff_context)
    if existing_tasks is not None:
        out = out.replace("{{EXISTING_TASKS}}", existing_tasks)
    # User text last so braces inside it are never treated as placeholders
    if user_text is not None:
        out = out.replace("{{USER_TEXT}}", user_text)
    return out
