import io

from pypdf import PdfReader, PdfWriter

from .errors import DocumentDecodeError, SerializationError


class PdfBackend:
    """Page-level PDF operations the orchestrator delegates to, backed by pypdf."""

    def create_document(self):
        return PdfWriter()

    def load_document(self, data, name=None):
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                raise DocumentDecodeError(f"{name}: encrypted PDFs are not supported", name)
            # force the page tree to be parsed now rather than during copy
            len(reader.pages)
        except DocumentDecodeError:
            raise
        except Exception as e:
            raise DocumentDecodeError(f"{name}: {e}", name) from e
        return reader

    def page_indices(self, document):
        return list(range(len(document.pages)))

    def copy_pages(self, destination, source, indices):
        return [source.pages[i] for i in indices]

    def append_page(self, destination, page):
        destination.add_page(page)

    def page_count(self, document):
        return len(document.pages)

    def serialize(self, destination):
        output = io.BytesIO()
        try:
            destination.write(output)
        except Exception as e:
            raise SerializationError(f"Could not write merged document: {e}") from e
        finally:
            destination.close()
        return output.getvalue()
