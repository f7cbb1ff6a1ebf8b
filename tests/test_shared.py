"""Tests for shared models, schema helpers, logging and configuration."""

import pytest

from shared.errors import RpcError, SubstitutionError
from shared.models import (
    EmbeddedResource,
    ImageContent,
    PromptMessage,
    TextContent,
    TextResourceContents,
    ToolCallResult,
    ToolDescriptor,
)
from shared.schema import (
    InputField,
    coerce_inputs,
    coerce_value,
    derive_input_fields,
    validate_schema,
)


class TestModels:
    """Tests for the wire models."""

    def test_tool_descriptor_aliases(self):
        """Test that camelCase and snake_case names are both accepted."""
        wire = ToolDescriptor.model_validate({"name": "t", "inputSchema": {"type": "object"}})
        local = ToolDescriptor(name="t", input_schema={"type": "object"})

        assert wire == local
        assert wire.model_dump(by_alias=True)["inputSchema"] == {"type": "object"}

    def test_tool_descriptor_defaults(self):
        tool = ToolDescriptor(name="bare")
        assert tool.description is None
        assert tool.input_schema == {}

    def test_tool_call_result_content_types(self):
        """Test that content items are decoded by their type tag."""
        result = ToolCallResult.model_validate({
            "content": [
                {"type": "image", "data": "AAAA", "mimeType": "image/png"},
                {"type": "text", "text": "a"},
                {"type": "resource", "resource": {"uri": "u", "text": "t"}},
            ],
            "isError": True,
        })

        assert isinstance(result.content[0], ImageContent)
        assert isinstance(result.content[1], TextContent)
        assert isinstance(result.content[2], EmbeddedResource)
        assert isinstance(result.content[2].resource, TextResourceContents)
        assert result.is_error
        assert result.text == "a"

    def test_tool_call_result_unknown_content_type(self):
        with pytest.raises(ValueError):
            ToolCallResult.model_validate({"content": [{"type": "video", "url": "x"}]})

    def test_from_text(self):
        result = ToolCallResult.from_text("hello", is_error=True)
        assert result.is_error
        assert result.content == [TextContent(text="hello")]

    def test_prompt_message_single_or_list(self):
        """Test that prompt message content may be one item or a list."""
        single = PromptMessage.model_validate({"role": "user", "content": {"type": "text", "text": "x"}})
        many = PromptMessage.model_validate({
            "role": "assistant",
            "content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}],
        })

        assert [c.text for c in single.items] == ["x"]
        assert [c.text for c in many.items] == ["a", "b"]


class TestErrors:
    """Tests for error messages."""

    def test_rpc_error_message(self):
        error = RpcError(-32601, "Method not found", {"method": "x"})
        assert str(error) == "RPC error: Method not found (code: -32601)"
        assert error.data == {"method": "x"}

    def test_substitution_error_message(self):
        assert str(SubstitutionError("API_KEY")) == "Variable ${API_KEY} not found"


class TestSchemaValidation:
    """Tests for JSON Schema validation."""

    def test_validate_valid_data(self):
        schema = {
            "type": "object",
            "properties": {"name": {"type": "string"}},
            "required": ["name"]
        }
        is_valid, errors = validate_schema({"name": "x"}, schema)

        assert is_valid
        assert errors == []

    def test_validate_invalid_data(self):
        """Test that nested errors carry their path."""
        schema = {
            "type": "object",
            "properties": {"count": {"type": "integer"}}
        }
        is_valid, errors = validate_schema({"count": "many"}, schema)

        assert not is_valid
        assert errors[0].startswith("count:")

    def test_empty_schema_accepts_anything(self):
        assert validate_schema({"any": 1}, {}) == (True, [])


class TestInputFields:
    """Tests for deriving and coercing tool input fields."""

    def test_required_first_order_kept(self):
        """Test that required fields sort first and order is otherwise preserved."""
        schema = {
            "type": "object",
            "properties": {
                "a": {"type": "string"},
                "b": {"type": "integer", "description": "B value"},
                "c": {"type": "boolean"},
                "d": {},
            },
            "required": ["c", "b"]
        }

        fields = derive_input_fields(schema)

        assert [f.name for f in fields] == ["b", "c", "a", "d"]
        assert fields[0].required and fields[0].description == "B value"
        assert fields[3].field_type == "string"
        assert not fields[3].required

    def test_no_properties(self):
        assert derive_input_fields({"type": "object"}) == []
        assert derive_input_fields({}) == []

    @pytest.mark.parametrize("field_type,raw,expected", [
        ("integer", "42", 42),
        ("number", "2.5", 2.5),
        ("number", "7", 7),
        ("boolean", "yes", True),
        ("boolean", "False", False),
        ("array", "[1, 2]", [1, 2]),
        ("object", '{"k": "v"}', {"k": "v"}),
        ("string", "42", "42"),
    ])
    def test_coerce_value(self, field_type, raw, expected):
        field = InputField(name="f", field_type=field_type)
        assert coerce_value(field, raw) == expected

    @pytest.mark.parametrize("field_type,raw", [
        ("integer", "abc"),
        ("boolean", "maybe"),
        ("object", "{broken"),
    ])
    def test_coerce_value_rejects(self, field_type, raw):
        field = InputField(name="f", field_type=field_type)
        with pytest.raises(ValueError, match="'f'"):
            coerce_value(field, raw)

    def test_coerce_inputs(self):
        """Test required checks, skipped optionals and pass-through extras."""
        fields = [
            InputField(name="city", required=True),
            InputField(name="days", field_type="integer"),
            InputField(name="units"),
        ]

        arguments = coerce_inputs(fields, {"city": "Oslo", "days": "3", "units": "  ", "extra": "x"})

        assert arguments == {"city": "Oslo", "days": 3, "extra": "x"}

    def test_coerce_inputs_missing_required(self):
        fields = [InputField(name="city", required=True)]

        with pytest.raises(ValueError, match="Required field 'city' is empty"):
            coerce_inputs(fields, {})


class TestLogBuffer:
    """Tests for the in-memory log sinks."""

    def test_push_and_get_all(self):
        from shared.logging import LogBuffer, LogEntry

        buffer = LogBuffer()
        buffer.push(LogEntry.create("info", "tests", "hello"))

        entries = buffer.get_all()
        assert len(buffer) == 1
        assert entries[0].level == "INFO"
        assert entries[0].timestamp.endswith("Z")

        buffer.clear()
        assert len(buffer) == 0

    def test_trims_oldest_chunk(self):
        """Test that exceeding the cap drops the oldest entries."""
        from shared.logging import TRIM_CHUNK, LogBuffer, LogEntry

        buffer = LogBuffer(max_entries=TRIM_CHUNK + 10)
        for i in range(TRIM_CHUNK + 11):
            buffer.push(LogEntry.create("debug", "tests", str(i)))

        entries = buffer.get_all()
        assert len(entries) == 11
        assert entries[0].message == str(TRIM_CHUNK)

    def test_line_buffer_drain(self):
        from shared.logging import LineBuffer

        lines = LineBuffer()
        lines.append("one")
        lines.append("two")

        assert lines.drain() == ["one", "two"]
        assert lines.drain() == []

    def test_setup_logging_mirrors_into_buffer(self):
        """Test that configured loggers copy events into the buffer."""
        from shared.logging import LogBuffer, get_logger, setup_logging

        buffer = LogBuffer()
        setup_logging("DEBUG", buffer=buffer)
        try:
            get_logger("tests.logging").info("Something happened", tool="echo")
        finally:
            setup_logging("INFO")

        entry = buffer.get_all()[-1]
        assert entry.level == "INFO"
        assert entry.target == "tests.logging"
        assert entry.message == "Something happened tool=echo"


class TestSettings:
    """Tests for configuration loading."""

    def test_defaults(self):
        from shared.config import Settings

        settings = Settings()
        assert settings.rpc.request_timeout == 30.0
        assert settings.rpc.protocol_version == "2024-11-05"
        assert settings.executor.cli_timeout is None

    def test_environment_override(self, monkeypatch):
        from shared.config import RpcSettings

        monkeypatch.setenv("MCPEEK_RPC_REQUEST_TIMEOUT", "5")
        assert RpcSettings().request_timeout == 5.0

    def test_from_yaml(self, tmp_path):
        """Test loading nested settings from YAML."""
        from shared.config import Settings

        path = tmp_path / "settings.yaml"
        path.write_text("debug: true\nrpc:\n  request_timeout: 12\nexecutor:\n  cli_timeout: 4\n")

        settings = Settings.from_yaml(path)

        assert settings.debug
        assert settings.rpc.request_timeout == 12.0
        assert settings.executor.cli_timeout == 4.0

    def test_missing_yaml_uses_defaults(self, tmp_path):
        from shared.config import Settings

        settings = Settings.from_yaml(tmp_path / "absent.yaml")
        assert settings.log_level == "INFO"
