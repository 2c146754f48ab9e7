"""Tests for document load, save and metadata."""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from linefold_xml.api.document import Document, parse_declaration
from linefold_xml.shared.config import LinefoldConfig
from linefold_xml.shared.errors import (
    InvalidPathError,
    MalformedInputError,
    UnboundDestinationError,
    UnsupportedConstructError,
)
from linefold_xml.tree.node import Node

SAMPLE = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    "<root>\n"
    '    <a x="1">hi</a>\n'
    "    <a>bye</a>\n"
    "</root>\n"
)


def write(tmp_path, name: str, content: str, encoding: str = "utf-8") -> Path:
    path = tmp_path / name
    path.write_bytes(content.encode(encoding))
    return path


class TestParseDeclaration:
    """Test declaration line parsing."""

    def test_version_and_encoding(self) -> None:
        """Test both fields are extracted by name."""
        assert parse_declaration('<?xml version="1.0" encoding="UTF-8"?>\n') == ("1.0", "UTF-8")

    def test_encoding_optional(self) -> None:
        """Test a missing encoding becomes an empty string."""
        assert parse_declaration('<?xml version="1.1"?>\r\n') == ("1.1", "")

    def test_field_order_and_extra_fields(self) -> None:
        """Test fields are matched by name, not position."""
        line = '<?xml encoding="latin-1" standalone="yes" version="1.0"?>'

        assert parse_declaration(line) == ("1.0", "latin-1")

    @pytest.mark.parametrize(
        "line,message",
        [
            ("", "Missing XML declaration"),
            ("<root>", "First line must be an XML declaration"),
            ('<?xml version="1.0"', "Unterminated XML declaration"),
            ('<?xml encoding="utf-8"?>', "XML declaration is missing a version"),
        ],
    )
    def test_rejected(self, line, message) -> None:
        """Test malformed declarations."""
        with pytest.raises(MalformedInputError, match=message) as exc_info:
            parse_declaration(line)

        assert exc_info.value.position.line == 1


class TestDocumentLoad:
    """Test loading documents from files."""

    def test_load(self, tmp_path) -> None:
        """Test loading a sample document."""
        path = write(tmp_path, "sample.xml", SAMPLE)

        document = Document.load(path)

        assert document.version == "1.0"
        assert document.encoding == "UTF-8"
        assert document.source_path == path
        assert document.root.tag == "root"
        assert [a.get_text() for a in document.root.get_children("a")] == ["hi", "bye"]

    def test_load_accepts_string_path(self, tmp_path) -> None:
        """Test plain string paths work."""
        path = write(tmp_path, "sample.xml", SAMPLE)

        assert Document.load(str(path)).source_path == path

    def test_load_without_encoding(self, tmp_path) -> None:
        """Test an encoding-less declaration yields an empty encoding."""
        path = write(tmp_path, "plain.xml", '<?xml version="1.0"?>\n<a>x</a>\n')

        document = Document.load(path)

        assert document.encoding == ""
        assert document.root.get_text() == "x"

    def test_wrong_extension_checked_before_open(self, tmp_path) -> None:
        """Test the suffix is rejected without touching the file system."""
        with patch("builtins.open") as mock_open:
            with pytest.raises(InvalidPathError, match="notes.txt"):
                Document.load(tmp_path / "notes.txt")

        mock_open.assert_not_called()

    def test_suffix_check_is_case_sensitive(self, tmp_path) -> None:
        """Test only the exact extension is accepted."""
        path = write(tmp_path, "upper.XML", SAMPLE)

        with pytest.raises(InvalidPathError):
            Document.load(path)

    def test_custom_extension(self, tmp_path) -> None:
        """Test the extension comes from configuration."""
        path = write(tmp_path, "layout.ui", SAMPLE)
        config = LinefoldConfig().override(document__file_extension=".ui")

        assert Document.load(path, config).root.tag == "root"

    def test_missing_file(self, tmp_path) -> None:
        """Test operating-system errors propagate unchanged."""
        with pytest.raises(FileNotFoundError):
            Document.load(tmp_path / "missing.xml")

    def test_malformed_body_reports_file_position(self, tmp_path) -> None:
        """Test errors carry the path and physical line and column."""
        path = write(
            tmp_path,
            "bad.xml",
            '<?xml version="1.0"?>\n<root>\n    <a x=1>hi</a>\n</root>\n',
        )

        with pytest.raises(MalformedInputError) as exc_info:
            Document.load(path)

        error = exc_info.value
        assert error.source == str(path)
        assert (error.position.line, error.position.column) == (3, 10)
        assert str(error).endswith(f"({path}, line 3, column 10)")

    def test_missing_declaration(self, tmp_path) -> None:
        """Test a file without a declaration line is rejected."""
        path = write(tmp_path, "nodecl.xml", "<root>\n<a>x</a>\n</root>\n")

        with pytest.raises(MalformedInputError, match="First line must be an XML declaration"):
            Document.load(path)

    def test_empty_file(self, tmp_path) -> None:
        """Test an empty file is rejected."""
        path = write(tmp_path, "empty.xml", "")

        with pytest.raises(MalformedInputError, match="Missing XML declaration"):
            Document.load(path)

    def test_declaration_only(self, tmp_path) -> None:
        """Test a file without a root element is rejected."""
        path = write(tmp_path, "decl.xml", '<?xml version="1.0"?>\n')

        with pytest.raises(MalformedInputError, match="Document has no root element"):
            Document.load(path)

    def test_unsupported_construct(self, tmp_path) -> None:
        """Test comments in a file are rejected on their line."""
        path = write(
            tmp_path,
            "comment.xml",
            '<?xml version="1.0"?>\n<root>\n    <!-- hi -->\n</root>\n',
        )

        with pytest.raises(UnsupportedConstructError) as exc_info:
            Document.load(path)

        assert exc_info.value.position.line == 3

    def test_unknown_encoding(self, tmp_path) -> None:
        """Test an unknown declared encoding is malformed input."""
        path = write(tmp_path, "enc.xml", '<?xml version="1.0" encoding="klingon-8"?>\n<a>x</a>\n')

        with pytest.raises(MalformedInputError, match="Unknown encoding 'klingon-8'"):
            Document.load(path)

    def test_declared_latin1(self, tmp_path) -> None:
        """Test the declared encoding is used to decode the body."""
        content = '<?xml version="1.0" encoding="ISO-8859-1"?>\n<a>grüße</a>\n'
        path = write(tmp_path, "latin.xml", content, "latin-1")

        assert Document.load(path).root.get_text() == "grüße"

    def test_undecodable_content(self, tmp_path) -> None:
        """Test bytes invalid for the encoding are malformed input."""
        path = tmp_path / "broken.xml"
        path.write_bytes(b'<?xml version="1.0"?>\n<a>\xff\xfe\xfa</a>\n')

        with pytest.raises(MalformedInputError, match="Cannot decode file content as utf-8"):
            Document.load(path)

    def test_utf8_bom(self, tmp_path) -> None:
        """Test a UTF-8 byte order mark is skipped."""
        path = tmp_path / "bom.xml"
        path.write_bytes(b"\xef\xbb\xbf" + SAMPLE.encode("utf-8"))

        assert Document.load(path).version == "1.0"

    def test_utf16_with_bom(self, tmp_path) -> None:
        """Test UTF-16 files are decoded from their byte order mark."""
        content = '<?xml version="1.0" encoding="UTF-16"?>\n<a>日本語</a>\n'
        path = write(tmp_path, "wide.xml", content, "utf-16")

        document = Document.load(path)

        assert document.encoding == "UTF-16"
        assert document.root.get_text() == "日本語"

    def test_crlf_file(self, tmp_path) -> None:
        """Test Windows line endings."""
        path = write(tmp_path, "crlf.xml", SAMPLE.replace("\n", "\r\n"))

        document = Document.load(path)

        assert len(document.root.get_children("a")) == 2

    def test_load_logs(self, tmp_path, caplog) -> None:
        """Test a successful load is logged at info level."""
        path = write(tmp_path, "sample.xml", SAMPLE)

        with caplog.at_level(logging.INFO, logger="linefold_xml.api.document"):
            Document.load(path)

        record = caplog.records[-1]
        assert record.getMessage() == "Loaded document"
        assert record.element_count == 3

    @pytest.mark.parametrize(
        "content,encoding,codec,method",
        [
            (SAMPLE, "utf-8", "utf-8", "xml_declaration"),
            ('<?xml version="1.0"?>\n<a>x</a>\n', "utf-8", "utf-8", "fallback"),
            ('<?xml version="1.0"?>\n<a>x</a>\n', "utf-16", "utf-16-le", "bom"),
        ],
    )
    def test_encoding_resolution_logged(
        self, tmp_path, caplog, content, encoding, codec, method
    ) -> None:
        """Test the chosen codec and how it was found are logged at debug level."""
        path = write(tmp_path, "enc.xml", content, encoding)

        with caplog.at_level(logging.DEBUG, logger="linefold_xml.api.document"):
            Document.load(path)

        records = [r for r in caplog.records if r.getMessage() == "Resolved file encoding"]
        assert len(records) == 1
        assert records[0].codec == codec
        assert records[0].method == method


class TestDocumentSave:
    """Test saving documents."""

    def test_save_to_source_path(self, tmp_path) -> None:
        """Test save() writes back to the loaded file."""
        path = write(tmp_path, "sample.xml", SAMPLE)
        document = Document.load(path)
        document.root.get_children("a")[1].set_text("later")

        document.save()

        assert path.read_text(encoding="utf-8") == (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            "\n"
            "<root>\n"
            '    <a x="1">hi</a>\n'
            "    <a>later</a>\n"
            "</root>\n"
        )

    def test_save_without_destination(self) -> None:
        """Test save() needs a previously established path."""
        document = Document(Node("root"))

        with pytest.raises(UnboundDestinationError, match="Save location not specified"):
            document.save()

    def test_save_binds_source_path(self, tmp_path) -> None:
        """Test an explicit save path becomes the default target."""
        document = Document(Node("root", text="x"))
        first = tmp_path / "first.xml"
        document.save(first)

        assert document.source_path == first

        document.root.set_text("y")
        document.save()

        assert "<root>y</root>" in first.read_text(encoding="utf-8")

    def test_save_elsewhere_leaves_source(self, tmp_path) -> None:
        """Test saving to a new path does not touch the loaded file."""
        path = write(tmp_path, "sample.xml", SAMPLE)
        document = Document.load(path)
        copy = tmp_path / "copy.xml"

        document.save(copy)

        assert path.read_text(encoding="utf-8") == SAMPLE
        assert Document.load(copy).root.to_dict() == document.root.to_dict()
        assert document.source_path == copy

    def test_round_trip_is_stable(self, tmp_path) -> None:
        """Test load-save-load-save produces identical files."""
        path = write(tmp_path, "sample.xml", SAMPLE)
        Document.load(path).save()
        first = path.read_bytes()

        Document.load(path).save()

        assert path.read_bytes() == first

    def test_save_failure_keeps_original(self, tmp_path) -> None:
        """Test a failed save leaves the destination untouched."""
        path = write(tmp_path, "sample.xml", SAMPLE)
        document = Document.load(path)
        document.root.set_tag("changed")

        with patch("linefold_xml.serialization.atomic.os.replace", side_effect=OSError("full")):
            with pytest.raises(OSError):
                document.save()

        assert path.read_text(encoding="utf-8") == SAMPLE

    def test_save_in_place(self, tmp_path) -> None:
        """Test non-atomic saving."""
        config = LinefoldConfig().override(document__atomic_save=False)
        document = Document(Node("root", text="x"), encoding="", config=config)
        path = tmp_path / "direct.xml"

        document.save(path)

        assert path.read_text(encoding="utf-8") == '<?xml version="1.0"?>\n\n<root>x</root>\n'

    def test_save_uses_declared_encoding(self, tmp_path) -> None:
        """Test the file is encoded with the document encoding."""
        document = Document(Node("a", text="grüße"), encoding="ISO-8859-1")
        path = tmp_path / "latin.xml"

        document.save(path)

        assert "grüße".encode("latin-1") in path.read_bytes()
        assert Document.load(path).root.get_text() == "grüße"

    def test_save_unknown_encoding_falls_back(self, tmp_path) -> None:
        """Test an unknown encoding name is kept but utf-8 is written."""
        document = Document(Node("a", text="é"), encoding="klingon-8")
        path = tmp_path / "fallback.xml"

        document.save(path)

        assert b'encoding="klingon-8"' in path.read_bytes()
        assert "é".encode("utf-8") in path.read_bytes()

    def test_save_crlf(self, tmp_path) -> None:
        """Test configured line endings are written verbatim."""
        config = LinefoldConfig().override(serialization__newline="\r\n")
        document = Document(Node("a", text="x"), encoding="", config=config)
        path = tmp_path / "crlf.xml"

        document.save(path)

        assert path.read_bytes() == b'<?xml version="1.0"?>\r\n\r\n<a>x</a>\r\n'


class TestDocumentModel:
    """Test metadata and navigation."""

    def test_defaults(self) -> None:
        """Test a new document uses configured defaults."""
        document = Document()

        assert document.version == "1.0"
        assert document.encoding == "utf-8"
        assert document.root.tag == ""
        assert document.source_path is None

    def test_metadata_accessors(self) -> None:
        """Test version and encoding getters and setters."""
        document = Document(Node("a"))

        document.set_version("1.1")
        document.set_encoding("")

        assert document.get_version() == "1.1"
        assert document.get_encoding() == ""
        assert document.to_string().startswith('<?xml version="1.1"?>\n')

    def test_from_string(self) -> None:
        """Test parsing document text without a file."""
        document = Document.from_string(SAMPLE)

        assert document.encoding == "UTF-8"
        assert document.source_path is None
        assert document.to_string() == Document.from_string(document.to_string()).to_string()

    def test_from_string_error_line(self) -> None:
        """Test body errors count the declaration line."""
        with pytest.raises(MalformedInputError) as exc_info:
            Document.from_string('<?xml version="1.0"?>\n<a>x</b>\n')

        assert exc_info.value.position.line == 2

    def test_navigation(self) -> None:
        """Test element iteration and search."""
        document = Document.from_string(SAMPLE)

        assert [n.tag for n in document.iter_elements()] == ["root", "a", "a"]
        assert document.element_count == 3
        assert document.find("root") is document.root
        assert document.find("a").get_attribute_value("x") == "1"
        assert document.find("missing") is None
        assert len(document.find_all("a")) == 2
        assert document.find_all("root") == [document.root]

    def test_to_dict_and_repr(self) -> None:
        """Test dictionary conversion and repr."""
        document = Document(Node("a", text="x"), version="1.0", encoding="")

        assert document.to_dict() == {
            "version": "1.0",
            "encoding": "",
            "source_path": None,
            "root": {"tag": "a", "attributes": {}, "text": "x"},
        }
        assert repr(document) == (
            "Document(root='a', version='1.0', encoding='', source_path=None)"
        )
