from __future__ import annotations

COMMAND_HELP = """
## Available Commands

### File Operations
- `create file [name] with content: [content]` - Create a new file with the specified content
- `create [type] [name] with content: [content]` - Create a document, script, etc.
- `list files` - Show all your saved files
- `read [filename]` - Display the contents of a file
- `delete [filename]` - Remove a file

### Data Processing
- `analyze json: [json-content]` - Parse and analyze JSON data
- `analyze file [filename]` - Analyze the contents of a file
- `analyze [type]: [content]` - Examine data of different types

### Information Retrieval
- `search for [query]` - Search for information about a topic
- `search [query] in [source]` - Search in a specific source

### Task Management
- `schedule meeting [description] for [time]` - Create a calendar event
- `schedule [type] [description] for [time]` - Plan different types of activities

### Help
- `help with commands` - Show this help message
- `show commands` - Show available commands

You can also use natural language to execute these commands, and I'll do my best to understand your intent.
""".strip()


def command_help() -> str:
    return f"Here are the commands you can use with our agents:\n\n{COMMAND_HELP}"
