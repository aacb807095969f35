"""Unit tests for option tables and typed option dispatch."""

import pytest

from src.easy.constants import AUTH_TYPES, INFO, OPTIONS, OptionKind
from src.easy.errors import OptionKindError, UnknownOptionError
from src.easy.options import OptionEncoder, lookup_option
from tests.helpers.engine import RecordingEngine


class TestTables:
    """Tests for the static lookup tables."""

    def test_known_identifiers(self) -> None:
        """Identifiers follow libcurl numbering."""
        assert OPTIONS["URL"].identifier == 10002
        assert OPTIONS["FOLLOWLOCATION"].identifier == 52
        assert OPTIONS["TIMEOUT_MS"].identifier == 155
        assert OPTIONS["COPYPOSTFIELDS"].identifier == 10165
        assert INFO["RESPONSE_CODE"] == 2097154
        assert INFO["TOTAL_TIME"] == 3145731
        assert INFO["EFFECTIVE_URL"] == 0x100001
        assert INFO["HTTPAUTH_AVAIL"] == 0x200017

    def test_auth_auto_combines_all(self) -> None:
        """AUTO is the OR of every scheme flag."""
        assert AUTH_TYPES["AUTO"] == 31
        assert AUTH_TYPES["BASIC"] | AUTH_TYPES["DIGEST"] == 3

    def test_tables_are_read_only(self) -> None:
        """The tables cannot be mutated."""
        with pytest.raises(TypeError):
            OPTIONS["URL"] = OPTIONS["PROXY"]  # type: ignore[index]

    def test_string_options_use_string_range(self) -> None:
        """String-kind options live in the 10000+ identifier range."""
        for name, spec in OPTIONS.items():
            if spec.kind is OptionKind.STRING:
                assert spec.identifier >= 10000, name


class TestLookupOption:
    """Tests for option lookup."""

    def test_lookup_known(self) -> None:
        """Known names resolve to their spec."""
        assert lookup_option("PROXY") == OPTIONS["PROXY"]

    def test_lookup_unknown(self) -> None:
        """Unknown names raise a KeyError subclass."""
        with pytest.raises(UnknownOptionError, match="NOPE"):
            lookup_option("NOPE")

        with pytest.raises(KeyError):
            lookup_option("NOPE")


class TestOptionEncoder:
    """Tests for the string/integer dispatch."""

    @pytest.fixture
    def engine(self) -> RecordingEngine:
        """Create a recording engine."""
        return RecordingEngine()

    def test_string_value(self, engine: RecordingEngine) -> None:
        """Strings go through the string call."""
        sent = OptionEncoder(engine).set("URL", "http://h/")

        assert sent is True
        assert engine.calls == [("string", 10002, "http://h/")]

    def test_bytes_value(self, engine: RecordingEngine) -> None:
        """Bytes also go through the string call."""
        OptionEncoder(engine).set("COPYPOSTFIELDS", b"a=1")

        assert engine.calls == [("string", 10165, b"a=1")]

    def test_integer_value(self, engine: RecordingEngine) -> None:
        """Integers go through the integer call."""
        OptionEncoder(engine).set("MAXREDIRS", 5)

        assert engine.calls == [("long", 68, 5)]

    def test_explicit_zero_is_sent(self, engine: RecordingEngine) -> None:
        """Zero and False are real values, not absence."""
        encoder = OptionEncoder(engine)

        encoder.set("VERBOSE", 0)
        encoder.set("FOLLOWLOCATION", False)

        assert engine.calls == [("long", 41, 0), ("long", 52, 0)]

    def test_bool_sent_as_integer(self, engine: RecordingEngine) -> None:
        """True is sent as 1."""
        OptionEncoder(engine).set("VERBOSE", True)

        assert engine.calls == [("long", 41, 1)]

    def test_none_skipped(self, engine: RecordingEngine) -> None:
        """None leaves the engine default and makes no call."""
        sent = OptionEncoder(engine).set("PROXY", None)

        assert sent is False
        assert engine.calls == []

    def test_empty_string_is_sent(self, engine: RecordingEngine) -> None:
        """An empty string is a value."""
        OptionEncoder(engine).set("ENCODING", "")

        assert engine.calls == [("string", 10102, "")]

    def test_kind_mismatch_rejected(self, engine: RecordingEngine) -> None:
        """Values of the wrong kind raise before calling the engine."""
        encoder = OptionEncoder(engine)

        with pytest.raises(OptionKindError):
            encoder.set("URL", 5)
        with pytest.raises(OptionKindError):
            encoder.set("MAXREDIRS", "5")
        with pytest.raises(TypeError):
            encoder.set("MAXREDIRS", 1.5)  # type: ignore[arg-type]

        assert engine.calls == []

    def test_unknown_option_rejected(self, engine: RecordingEngine) -> None:
        """Unknown names raise before calling the engine."""
        with pytest.raises(UnknownOptionError):
            OptionEncoder(engine).set("NOT_AN_OPTION", 1)

        assert engine.calls == []
