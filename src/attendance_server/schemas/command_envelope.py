# Every device request is a JSON object carrying a non-blank "cmd" string.
# Command-specific fields are checked by the handlers themselves.
schema = {
    "type": "object",
    "properties": {
        "cmd": {"type": "string", "pattern": "\\S"},
    },
    "required": ["cmd"],
}
