# User value: This file turns one scanned bundle into the per-page documents the receiving system expects.
import io
import logging
from dataclasses import dataclass
from typing import Iterator

from pypdf import PdfReader, PdfWriter

from services.errors import MalformedDocumentError
from services.feature_flags import is_single_page_passthrough_enabled

logger = logging.getLogger("api.pdf")


@dataclass(frozen=True)
class PageArtifact:
    index: int
    data: bytes


class PageExtractor:
    """Splits an in-memory PDF into single-page PDFs.

    The source is parsed on construction so a bad document fails before any
    remote work starts. Pages are copied as page objects into a fresh writer;
    content streams are carried over untouched.
    """

    def __init__(self, pdf_bytes: bytes):
        self._source = pdf_bytes
        try:
            self._reader = PdfReader(io.BytesIO(pdf_bytes))
            if self._reader.is_encrypted and not self._reader.decrypt(""):
                raise MalformedDocumentError("PDF is encrypted")
            self.page_count = len(self._reader.pages)
        except MalformedDocumentError:
            raise
        except Exception as exc:
            raise MalformedDocumentError(f"{exc.__class__.__name__}: {exc}") from exc
        logger.info("pdf_parsed page_count=%s size_bytes=%s", self.page_count, len(pdf_bytes))

    def extract_page(self, index: int) -> PageArtifact:
        if index < 0 or index >= self.page_count:
            raise MalformedDocumentError(f"Page index {index} out of range (page_count={self.page_count})")

        if self.page_count == 1 and is_single_page_passthrough_enabled():
            return PageArtifact(index=0, data=self._source)

        try:
            writer = PdfWriter()
            writer.add_page(self._reader.pages[index])
            out = io.BytesIO()
            writer.write(out)
        except Exception as exc:
            raise MalformedDocumentError(f"Page {index} could not be copied: {exc}") from exc
        return PageArtifact(index=index, data=out.getvalue())

    def iter_pages(self) -> Iterator[PageArtifact]:
        for index in range(self.page_count):
            yield self.extract_page(index)


def split_pdf(pdf_bytes: bytes) -> list[PageArtifact]:
    return list(PageExtractor(pdf_bytes).iter_pages())
