"""Pydantic models for schedules, rules, counters and completions."""
