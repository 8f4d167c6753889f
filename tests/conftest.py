import io

import pytest
from pypdf import PdfWriter

from combiner import CombinerConfig, IntakeManager, Upload
from combiner.errors import DocumentDecodeError

MB = 1024 * 1024


def make_pdf(*widths):
    """Build a PDF with one blank page per width; widths let tests track page order."""
    writer = PdfWriter()
    for width in widths:
        writer.add_blank_page(width=width, height=100)
    output = io.BytesIO()
    writer.write(output)
    return output.getvalue()


def make_encrypted_pdf(password="pw"):
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    writer.encrypt(password)
    output = io.BytesIO()
    writer.write(output)
    return output.getvalue()


def pdf_upload(name, data=None, content_type="application/pdf"):
    return Upload(name=name, content_type=content_type, data=make_pdf(72) if data is None else data)


class FakeDocument:
    def __init__(self, name, pages):
        self.name = name
        self.pages = list(pages)


class FakeBackend:
    """In-memory stand-in for the PDF backend that records every load."""

    def __init__(self, bad=(), pages_per_file=2):
        self.bad = set(bad)
        self.pages_per_file = pages_per_file
        self.loaded = []
        self.serialized = 0

    def create_document(self):
        return FakeDocument("merged", [])

    def load_document(self, data, name=None):
        self.loaded.append(name)
        if name in self.bad:
            raise DocumentDecodeError(f"{name}: not a PDF", name)
        return FakeDocument(name, [f"{name}#{i}" for i in range(self.pages_per_file)])

    def page_indices(self, document):
        return list(range(len(document.pages)))

    def copy_pages(self, destination, source, indices):
        return [source.pages[i] for i in indices]

    def append_page(self, destination, page):
        destination.pages.append(page)

    def page_count(self, document):
        return len(document.pages)

    def serialize(self, destination):
        self.serialized += 1
        return "|".join(destination.pages).encode()


@pytest.fixture
def config():
    return CombinerConfig()


@pytest.fixture
def intake(config):
    return IntakeManager(config)
