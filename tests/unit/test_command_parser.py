from __future__ import annotations

import pytest

from agentdesk.core.commands.parser import COMMAND_RULES, StructuredCommand, detect, extract_free_form


def test_rule_table_declared_order():
    assert [name for name, _, _ in COMMAND_RULES] == ["create", "list", "analyze", "search", "schedule", "read", "delete"]


@pytest.mark.parametrize("text", ["help", "  HELP ", "Commands", "help with commands", "SHOW COMMANDS\n"])
def test_help_synonyms(text):
    cmd = detect(text)
    assert cmd == StructuredCommand(command_type="help", params={})


@pytest.mark.parametrize(
    "text,type_name,name,content,filename",
    [
        ("create script foo with content: console.log(1)", "script", "foo", "console.log(1)", "foo.js"),
        ("please make a document report with content: Quarterly numbers", "document", "report", "Quarterly numbers", "report.md"),
        ("write python tool with content print('x')", "python", "tool", "print('x')", "tool.py"),
        ("create file notes.txt with content: hello", "file", "notes.txt", "hello", "notes.txt"),
        ("create json data", "json", "data", "", "data.json"),
        ("create html page named index", "html", "page", "named index", "page.html"),
    ],
)
def test_create_extracts_type_name_and_content(text, type_name, name, content, filename):
    cmd = detect(text)
    assert cmd is not None
    assert cmd.command_type == "create"
    assert cmd.params["type"] == type_name
    assert cmd.params["name"] == name
    assert cmd.params["content"] == content
    assert cmd.params["filename"] == filename


def test_create_unknown_type_defaults_to_txt_extension():
    from agentdesk.core.commands.parser import filename_for

    assert filename_for("spreadsheet", "budget") == "budget.txt"
    assert filename_for("script", "run.sh") == "run.sh"


def test_create_verb_with_event_type_falls_through_to_schedule():
    cmd = detect("create meeting standup for tomorrow 9am")
    assert cmd is not None
    assert cmd.command_type == "schedule"
    assert cmd.params == {"type": "meeting", "description": "standup", "time": "tomorrow 9am"}


def test_list_and_read_disambiguation():
    listed = detect("show all files in projects")
    assert listed is not None
    assert listed.command_type == "list"
    assert listed.params == {"type": "files", "location": "projects"}

    read = detect("show the contents of notes.txt")
    assert read is not None
    assert read.command_type == "read"
    assert read.params == {"filename": "notes.txt"}


def test_analyze_second_group_is_content_or_file():
    inline = detect('analyze json: {"a":1,"b":2}')
    assert inline is not None
    assert inline.command_type == "analyze"
    assert inline.params == {"type": "json", "content": '{"a":1,"b":2}', "file": ""}

    from_file = detect("analyze file metrics.json")
    assert from_file is not None
    assert from_file.params == {"type": "file", "content": "", "file": "metrics.json"}

    bare = detect("analyze the data")
    assert bare is not None
    assert bare.params == {"type": "data", "content": "", "file": ""}


def test_search_rule_wins_over_free_form_extraction():
    cmd = detect("search for python decorators in docs")
    assert cmd is not None
    assert cmd.command_type == "search"
    assert cmd.params == {"query": "python decorators", "source": "docs"}
    assert extract_free_form("search for python decorators in docs").params == {}


def test_search_strips_information_prefix():
    cmd = detect("find information about solar panels")
    assert cmd is not None
    assert cmd.params == {"query": "solar panels", "source": ""}


def test_delete_rule():
    cmd = detect("remove the file ghost.txt")
    assert cmd == StructuredCommand(command_type="delete", params={"filename": "ghost.txt"})


def test_free_form_collects_key_values_and_quotes():
    cmd = detect("schedule something important priority=high owner: 'Bob Smith'")
    assert cmd is not None
    assert cmd.command_type == "schedule"
    assert cmd.params == {"priority": "high", "owner": "Bob Smith"}


def test_free_form_filename_token_and_precedence():
    cmd = detect("can you analyze report.csv for me")
    assert cmd is not None
    assert cmd.command_type == "analyze"
    assert cmd.params == {"filename": "report.csv"}

    quoted = detect('read filename="my notes.txt" now')
    assert quoted is not None
    assert quoted.command_type == "read"
    assert quoted.params == {"filename": "my notes.txt"}


def test_free_form_keys_are_lower_case():
    cmd = detect("Delete Target=old.log")
    assert cmd is not None
    assert cmd.command_type == "delete"
    assert cmd.params["target"] == "old.log"
    assert "filename" in cmd.params


@pytest.mark.parametrize("text", ["what is the weather like", "", "   ", "deleted everything yesterday"])
def test_no_leading_verb_returns_none(text):
    assert detect(text) is None


def test_detect_is_pure():
    text = "create script foo with content: console.log(1)"
    assert detect(text) == detect(text)
    assert detect(text) is not detect(text)


def test_structured_command_dict_round_trip():
    cmd = detect("schedule reminder call mom on sunday")
    assert cmd is not None
    restored = StructuredCommand.from_dict(cmd.to_dict())
    assert restored == cmd
    assert StructuredCommand.from_dict({"command": "explode", "params": {}}) is None
