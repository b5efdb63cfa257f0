# tests/test_loader.py
import io

import pytest
from pypdf import PdfWriter

from support_rag.exceptions import DocumentLoadError, UnsupportedFileTypeError
from support_rag.memory.documents import Document, create_document, flatten_chunks
from support_rag.memory.loader import load_text


def _blank_pdf():
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class TestLoadText:

    @pytest.mark.parametrize("filename", ["faq.txt", "FAQ.MD", "data.json", "prices.csv"])
    def test_text_formats(self, filename):
        assert load_text(filename, "Gold purity is 22K.".encode("utf-8")) == "Gold purity is 22K."

    def test_invalid_utf8_is_replaced(self):
        text = load_text("notes.txt", b"caf\xe9 opens at nine")

        assert text.endswith("opens at nine")

    def test_unsupported_extension(self):
        with pytest.raises(UnsupportedFileTypeError):
            load_text("brochure.docx", b"PK\x03\x04")

    def test_missing_extension(self):
        with pytest.raises(UnsupportedFileTypeError):
            load_text("README", b"hello")

    def test_blank_pdf(self):
        assert load_text("blank.pdf", _blank_pdf()) == ""

    def test_empty_pdf_bytes(self):
        with pytest.raises(DocumentLoadError):
            load_text("broken.pdf", b"")


class TestCreateDocument:

    def test_chunks_computed_once(self):
        doc = create_document("care.txt", "Polish silver with a soft cloth. " * 100)

        assert doc.id.startswith("doc_")
        assert doc.name == "care.txt"
        assert isinstance(doc.chunks, tuple)
        assert len(doc.chunks) > 1

    def test_keeps_full_text_verbatim(self):
        text = "Line one\n\n\nLine two"

        doc = create_document("a.txt", text)

        assert doc.full_text == text
        assert doc.chunks == ("Line one Line two",)

    def test_explicit_id(self):
        assert create_document("a.txt", "text", document_id="doc_fixed").id == "doc_fixed"

    def test_document_is_immutable(self):
        doc = create_document("a.txt", "text")

        with pytest.raises(AttributeError):
            doc.name = "b.txt"

    def test_flatten_falls_back_to_full_text(self):
        chunked = create_document("a.txt", "alpha text")
        legacy = Document(id="old", name="legacy.txt", full_text="beta text")

        chunks = flatten_chunks([chunked, legacy])

        assert [(c.text, c.source_name) for c in chunks] == [
            ("alpha text", "a.txt"),
            ("beta text", "legacy.txt"),
        ]
        assert chunks[1].document_id == "old"
