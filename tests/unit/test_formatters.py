from gmail_mcp import formatters as f


def test_search_results_empty_and_missing():
    assert f.format_search_results({"messages": []}) == "No messages found matching the search query."
    assert f.format_search_results({}) == "No messages found matching the search query."
    assert f.format_search_results(None) == "No messages found matching the search query."
    assert f.format_search_results({"messages": "nope"}) == "No messages found matching the search query."


def test_search_results_lists_each_message():
    out = f.format_search_results({
        "messages": [
            {"id": "m1", "threadId": "t1", "snippet": "hello"},
            {"id": "m2", "threadId": "t2"},
        ]
    })
    assert out == (
        "Found 2 messages:\n\n"
        "ID: m1\nThread ID: t1\nSnippet: hello\n---\n"
        "ID: m2\nThread ID: t2\n---"
    )


def test_message_with_headers_and_optional_fields():
    out = f.format_message({
        "id": "m1",
        "threadId": "t1",
        "snippet": "hi",
        "payload": {"headers": [{"name": "From", "value": "a@b.c"}, {"name": "Subject", "value": "Yo"}]},
    })
    assert out == "Message ID: m1\nThread ID: t1\nSnippet: hi\n\nHeaders:\nFrom: a@b.c\nSubject: Yo\n"


def test_message_minimal():
    assert f.format_message({"id": "m1"}) == "Message ID: m1\n"


def test_labels():
    assert f.format_labels({"labels": []}) == "No labels found."
    out = f.format_labels({"labels": [
        {"name": "INBOX", "id": "INBOX", "type": "system"},
        {"name": "Work", "id": "Label_1", "type": "user"},
    ]})
    assert out == "Gmail Labels:\n\nINBOX (INBOX) - system\nWork (Label_1) - user"


def test_profile_echoes_json():
    out = f.format_profile({"emailAddress": "me@x.test", "messagesTotal": 3})
    assert out == 'Gmail Profile:\n{\n  "emailAddress": "me@x.test",\n  "messagesTotal": 3\n}'


def test_events_fall_back_to_all_day_date_and_list_attendees():
    out = f.format_events({"items": [
        {
            "summary": "Standup",
            "description": "daily",
            "start": {"dateTime": "2025-01-01T09:00:00Z"},
            "end": {"dateTime": "2025-01-01T09:15:00Z"},
            "attendees": [{"email": "a@x.test"}, {"email": "b@x.test"}],
        },
        {"summary": "Holiday", "start": {"date": "2025-01-02"}, "end": {"date": "2025-01-03"}},
    ]})
    assert out == (
        "Found 2 events:\n\n"
        "Title: Standup\nDescription: daily\n"
        "Start: 2025-01-01T09:00:00Z\nEnd: 2025-01-01T09:15:00Z\n"
        "Attendees:\n  - a@x.test\n  - b@x.test\n---\n"
        "\n"
        "Title: Holiday\nStart: 2025-01-02\nEnd: 2025-01-03\n---\n"
    )


def test_events_tolerate_missing_start_end():
    out = f.format_events({"items": [{"summary": "Odd"}]})
    assert "Title: Odd\nStart: \nEnd: \n---\n" in out
    assert f.format_events({"items": []}) == "No events found."


def test_created_event():
    out = f.format_created_event({
        "id": "e1",
        "summary": "Lunch",
        "start": {"dateTime": "2025-01-01T12:00:00Z"},
        "end": {"dateTime": "2025-01-01T13:00:00Z"},
    })
    assert out == (
        "Event created successfully!\nID: e1\nTitle: Lunch\n"
        "Start: 2025-01-01T12:00:00Z\nEnd: 2025-01-01T13:00:00Z"
    )


def test_courses():
    assert f.format_courses({"courses": []}) == "No courses found."
    out = f.format_courses({"courses": [
        {"name": "Algebra", "id": "c1", "section": "A", "description": "Intro"},
        {"name": "Art", "id": "c2"},
    ]})
    assert out == (
        "Found 2 courses:\n\n"
        "Name: Algebra\nID: c1\nSection: A\nDescription: Intro\n---\n"
        "\n"
        "Name: Art\nID: c2\n---\n"
    )
