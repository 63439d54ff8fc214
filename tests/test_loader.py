"""Tests for reading and decoding DDR files."""

import codecs

import pytest

from ddrscope.loader import decode_document, discover_documents, read_document
from ddrscope.mapper import parse_document

from conftest import ORDERS_DDR


class TestDecodeDocument:
    def test_utf16_with_bom(self):
        data = ORDERS_DDR.replace('encoding="UTF-8"', 'encoding="UTF-16"')
        raw = data.encode("utf-16")  # writes a BOM
        assert raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE))
        text = decode_document(raw)
        assert text.startswith("<?xml")
        # the declared UTF-16 encoding must not confuse the parser
        assert parse_document(text).name == "Orders"

    def test_utf16_big_endian(self):
        raw = codecs.BOM_UTF16_BE + "<FMPReport/>".encode("utf-16-be")
        assert decode_document(raw) == "<FMPReport/>"

    def test_utf8_bom_stripped(self):
        raw = codecs.BOM_UTF8 + "<FMPReport/>".encode("utf-8")
        assert decode_document(raw) == "<FMPReport/>"

    def test_plain_utf8(self):
        assert decode_document("Größe".encode()) == "Größe"

    def test_invalid_bytes_replaced(self):
        assert decode_document(b"ok\xff") == "ok\ufffd"


class TestReadDocument:
    def test_reads_and_names(self, ddr_dir):
        doc = read_document(ddr_dir / "Orders.xml")
        assert doc.name == "Orders.xml"
        assert "Pull Orders" in doc.text

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            read_document(tmp_path / "nope.xml")


class TestDiscoverDocuments:
    def test_directories_expand_sorted(self, ddr_dir):
        nested = ddr_dir / "archive"
        nested.mkdir()
        (nested / "Old.xml").write_text("<FMPReport/>")
        (ddr_dir / "notes.txt").write_text("not a ddr")

        found = discover_documents([ddr_dir])
        assert [p.name for p in found] == [
            "Contacts.xml",
            "Orders.xml",
            "Old.xml",
        ]

    def test_suffix_match_ignores_case(self, tmp_path):
        (tmp_path / "Export.XML").write_text("<FMPReport/>")
        (tmp_path / "Other.Xml").write_text("<FMPReport/>")
        (tmp_path / "Export.XML.bak").write_text("<FMPReport/>")

        found = discover_documents([tmp_path])
        assert [p.name for p in found] == ["Export.XML", "Other.Xml"]

    def test_files_kept_as_given(self, ddr_dir):
        paths = [ddr_dir / "Orders.xml", ddr_dir / "Contacts.xml"]
        assert discover_documents(paths) == paths
