"""
Backend JSON -> human-readable text, one formatter per tool.

The backend's replies are loosely typed. Every formatter is total: it checks
each field it reads and never raises on a partial or oddly-shaped payload.
"""

from __future__ import annotations

import json
from typing import Any

NO_MESSAGES = "No messages found matching the search query."
NO_LABELS = "No labels found."
NO_EVENTS = "No events found."
NO_COURSES = "No courses found."


def _field(obj: Any, key: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(key, default)
    return default


def _items(obj: Any, key: str) -> list:
    value = _field(obj, key)
    return value if isinstance(value, list) else []


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _when(slot: Any) -> str:
    # Timed events carry dateTime, all-day events only a date
    return _text(_field(slot, "dateTime") or _field(slot, "date"))


def format_search_results(result: Any) -> str:
    messages = _items(result, "messages")
    if not messages:
        return NO_MESSAGES

    blocks = []
    for msg in messages:
        block = f"ID: {_text(_field(msg, 'id'))}\nThread ID: {_text(_field(msg, 'threadId'))}\n"
        snippet = _field(msg, "snippet")
        if snippet:
            block += f"Snippet: {snippet}\n"
        blocks.append(block + "---")

    return f"Found {len(messages)} messages:\n\n" + "\n".join(blocks)


def format_message(message: Any) -> str:
    content = f"Message ID: {_text(_field(message, 'id'))}\n"
    if _field(message, "threadId"):
        content += f"Thread ID: {message['threadId']}\n"
    if _field(message, "snippet"):
        content += f"Snippet: {message['snippet']}\n\n"

    headers = _field(_field(message, "payload"), "headers")
    if isinstance(headers, list):
        content += "Headers:\n"
        for header in headers:
            content += f"{_text(_field(header, 'name'))}: {_text(_field(header, 'value'))}\n"

    return content


def format_labels(result: Any) -> str:
    labels = _items(result, "labels")
    if not labels:
        return NO_LABELS

    lines = [
        f"{_text(_field(label, 'name'))} ({_text(_field(label, 'id'))}) - {_text(_field(label, 'type'))}"
        for label in labels
    ]
    return "Gmail Labels:\n\n" + "\n".join(lines)


def format_profile(profile: Any) -> str:
    # Echoes the backend shape on purpose
    return "Gmail Profile:\n" + json.dumps(profile, indent=2, ensure_ascii=False)


def format_events(result: Any) -> str:
    events = _items(result, "items")
    if not events:
        return NO_EVENTS

    blocks = []
    for event in events:
        details = f"Title: {_text(_field(event, 'summary'))}\n"
        if _field(event, "description"):
            details += f"Description: {event['description']}\n"
        details += f"Start: {_when(_field(event, 'start'))}\n"
        details += f"End: {_when(_field(event, 'end'))}\n"
        attendees = _items(event, "attendees")
        if attendees:
            details += "Attendees:\n"
            for attendee in attendees:
                details += f"  - {_text(_field(attendee, 'email'))}\n"
        details += "---\n"
        blocks.append(details)

    return f"Found {len(events)} events:\n\n" + "\n".join(blocks)


def format_created_event(event: Any) -> str:
    return (
        "Event created successfully!\n"
        f"ID: {_text(_field(event, 'id'))}\n"
        f"Title: {_text(_field(event, 'summary'))}\n"
        f"Start: {_when(_field(event, 'start'))}\n"
        f"End: {_when(_field(event, 'end'))}"
    )


def format_courses(result: Any) -> str:
    courses = _items(result, "courses")
    if not courses:
        return NO_COURSES

    blocks = []
    for course in courses:
        details = f"Name: {_text(_field(course, 'name'))}\n"
        details += f"ID: {_text(_field(course, 'id'))}\n"
        if _field(course, "section"):
            details += f"Section: {course['section']}\n"
        if _field(course, "description"):
            details += f"Description: {course['description']}\n"
        details += "---\n"
        blocks.append(details)

    return f"Found {len(courses)} courses:\n\n" + "\n".join(blocks)
