from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ToolArgs(BaseModel):
    """Base for tool argument models. Wire names are camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @classmethod
    def wire_names(cls) -> set[str]:
        names = set()
        for name, field in cls.model_fields.items():
            names.add(name)
            if field.alias:
                names.add(field.alias)
        return names


class NoArgs(ToolArgs):
    pass


class AuthenticateArgs(ToolArgs):
    token: Optional[str] = Field(
        default=None,
        description="The authentication token received from the auth process",
    )


class SearchEmailsArgs(ToolArgs):
    query: str = Field(
        description='Gmail search query (e.g., "from:example@gmail.com", "subject:important", "is:unread")',
    )


class GetEmailArgs(ToolArgs):
    message_id: str = Field(alias="messageId", description="The Gmail message ID")


class ListEventsArgs(ToolArgs):
    time_min: Optional[str] = Field(
        default=None, alias="timeMin", description="Start time for listing events (RFC3339 timestamp)"
    )
    time_max: Optional[str] = Field(
        default=None, alias="timeMax", description="End time for listing events (RFC3339 timestamp)"
    )
    max_results: Optional[int] = Field(
        default=None, alias="maxResults", description="Maximum number of events to return"
    )


class EventTime(ToolArgs):
    date_time: str = Field(alias="dateTime", description="Time of the event boundary (RFC3339 timestamp)")
    time_zone: Optional[str] = Field(default=None, alias="timeZone", description="Timezone for the time")


class Attendee(ToolArgs):
    email: str = Field(description="Email address of the attendee")


class CreateEventArgs(ToolArgs):
    summary: str = Field(description="Title of the event")
    description: Optional[str] = Field(default=None, description="Description of the event")
    start: EventTime = Field(description="Start of the event")
    end: EventTime = Field(description="End of the event")
    attendees: Optional[List[Attendee]] = Field(default=None, description="List of attendees")
