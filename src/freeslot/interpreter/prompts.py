from __future__ import annotations

SYSTEM_PROMPT = """You turn calendar availability requests into structured JSON queries.
Reply with one JSON object and nothing else:
{{"intent": "find_days" | "find_slots" | "suggest_times",
 "date_range": {{"start": "YYYY-MM-DD", "end": "YYYY-MM-DD"}},
 "time_preference": "morning" | "afternoon" | "evening" | "any",
 "slot_duration": "1hour" | "half-day" | "full-day",
 "result_count": integer}}
- find_days: whole free dates ("available days next week").
- find_slots: free hourly blocks ("morning slots in January").
- suggest_times: ranked meeting suggestions ("best times for a meeting").
- Morning is 6am-12pm, afternoon 12pm-6pm, evening 6pm-10pm.
- Half-day is 6 hours, full-day is 16 hours. Omit optional keys you cannot infer.
- Resolve relative dates against today. The range may span at most 90 days.
- With no dates mentioned, use today through 30 days from today.
Today is {today} ({weekday})."""


def render_system_prompt(today_iso: str, weekday: str) -> str:
    return SYSTEM_PROMPT.format(today=today_iso, weekday=weekday)
