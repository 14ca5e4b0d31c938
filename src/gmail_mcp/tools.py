from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote, urlencode

from gmail_common.tooling import text_result
from gmail_mcp import formatters
from gmail_mcp.registry import ToolRegistry
from gmail_mcp.schemas import (
    AuthenticateArgs,
    CreateEventArgs,
    GetEmailArgs,
    ListEventsArgs,
    NoArgs,
    SearchEmailsArgs,
)

if TYPE_CHECKING:
    from gmail_mcp.session import GmailSession


AUTH_PATH = "/google/auth/gmail"
TOKEN_HELPER_PATH = "/token-helper"


def build_auth_url(base_url: str) -> str:
    """Authorization URL the user must visit. The redirect target is percent-encoded."""
    base = base_url.rstrip("/")
    redirect = quote(f"{base}{TOKEN_HELPER_PATH}", safe="")
    return f"{base}{AUTH_PATH}?redirect_url={redirect}"


def build_events_query(time_min: str | None = None, time_max: str | None = None, max_results: int | None = None) -> str:
    """Query string holding only the parameters that were provided."""
    params = []
    if time_min:
        params.append(("timeMin", time_min))
    if time_max:
        params.append(("timeMax", time_max))
    if max_results is not None:
        params.append(("maxResults", str(max_results)))
    return urlencode(params)


def register_tools(registry: ToolRegistry, session: "GmailSession") -> ToolRegistry:
    """Register the fixed Gmail / Calendar / Classroom tool set on `registry`."""
    proxy = session.proxy

    @registry.tool(
        "authenticate",
        "Authenticate with Google to access Gmail, Calendar, and Classroom services",
        AuthenticateArgs,
    )
    async def authenticate(args: AuthenticateArgs) -> dict:
        if not args.token:
            auth_url = build_auth_url(session.base_url)
            return text_result(
                f"Please visit this URL to authorize the application:\n{auth_url}\n\n"
                "After authorization, you'll receive a token. "
                "Please provide that token to complete authentication."
            )
        return text_result(session.credentials.set(args.token))

    @registry.tool(
        "search_emails",
        "Search for emails in Gmail using Gmail search syntax",
        SearchEmailsArgs,
    )
    async def search_emails(args: SearchEmailsArgs) -> dict:
        result = await proxy.call(f"/gmail/search?{urlencode({'q': args.query})}")
        return text_result(formatters.format_search_results(result))

    @registry.tool(
        "get_email",
        "Retrieve a specific email by its message ID",
        GetEmailArgs,
    )
    async def get_email(args: GetEmailArgs) -> dict:
        query = urlencode({"messageId": args.message_id, "decode": "true"})
        message = await proxy.call(f"/gmail/message?{query}")
        return text_result(formatters.format_message(message))

    @registry.tool(
        "list_labels",
        "List all Gmail labels in the user's account",
        NoArgs,
    )
    async def list_labels(args: NoArgs) -> dict:
        result = await proxy.call("/gmail/labels")
        return text_result(formatters.format_labels(result))

    @registry.tool(
        "get_profile",
        "Get information about the user's Gmail profile",
        NoArgs,
    )
    async def get_profile(args: NoArgs) -> dict:
        profile = await proxy.call("/gmail/list")
        return text_result(formatters.format_profile(profile))

    @registry.tool(
        "list_events",
        "List calendar events within a specified time range",
        ListEventsArgs,
    )
    async def list_events(args: ListEventsArgs) -> dict:
        query = build_events_query(args.time_min, args.time_max, args.max_results)
        endpoint = f"/calendar/events?{query}" if query else "/calendar/events"
        events = await proxy.call(endpoint)
        return text_result(formatters.format_events(events))

    @registry.tool(
        "create_event",
        "Create a new event in Google Calendar",
        CreateEventArgs,
    )
    async def create_event(args: CreateEventArgs) -> dict:
        response = await proxy.call(
            "/calendar/events",
            method="POST",
            headers={"Content-Type": "application/json"},
            json=args.model_dump(by_alias=True, exclude_none=True),
        )
        return text_result(formatters.format_created_event(response))

    @registry.tool(
        "list_courses",
        "List all Google Classroom courses available to the user",
        NoArgs,
    )
    async def list_courses(args: NoArgs) -> dict:
        courses = await proxy.call("/classroom/courses")
        return text_result(formatters.format_courses(courses))

    return registry
