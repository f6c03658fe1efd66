# User value: This test checks page splitting so every page reaches the server intact and in order.
import unittest
from io import BytesIO
from unittest.mock import patch

from pypdf import PdfReader, PdfWriter

from services.errors import MalformedDocumentError
from services.page_extractor import PageExtractor, split_pdf


def make_pdf(widths):
    writer = PdfWriter()
    for width in widths:
        writer.add_blank_page(width=width, height=200)
    buf = BytesIO()
    writer.write(buf)
    return buf.getvalue()


class PageExtractorUnitTests(unittest.TestCase):
    def test_split_produces_one_valid_document_per_page_in_order(self):
        pages = split_pdf(make_pdf([100, 150, 220]))

        self.assertEqual([p.index for p in pages], [0, 1, 2])
        for page, width in zip(pages, [100, 150, 220]):
            reader = PdfReader(BytesIO(page.data))
            self.assertEqual(len(reader.pages), 1)
            self.assertEqual(float(reader.pages[0].mediabox.width), float(width))

    def test_page_count_is_discovered(self):
        extractor = PageExtractor(make_pdf([100, 100, 100, 100]))
        self.assertEqual(extractor.page_count, 4)

    def test_iter_pages_is_not_restartable(self):
        pages = PageExtractor(make_pdf([100, 120])).iter_pages()
        self.assertEqual(len(list(pages)), 2)
        self.assertEqual(list(pages), [])

    def test_zero_page_document_yields_nothing(self):
        extractor = PageExtractor(make_pdf([]))
        self.assertEqual(extractor.page_count, 0)
        self.assertEqual(list(extractor.iter_pages()), [])

    def test_single_page_source_passes_through_untouched(self):
        source = make_pdf([300])
        with patch("services.page_extractor.is_single_page_passthrough_enabled", return_value=True):
            pages = split_pdf(source)
        self.assertEqual(len(pages), 1)
        self.assertEqual(pages[0].data, source)

    def test_single_page_source_rewritten_when_passthrough_disabled(self):
        source = make_pdf([300])
        with patch("services.page_extractor.is_single_page_passthrough_enabled", return_value=False):
            pages = split_pdf(source)
        reader = PdfReader(BytesIO(pages[0].data))
        self.assertEqual(len(reader.pages), 1)
        self.assertEqual(float(reader.pages[0].mediabox.width), 300.0)

    def test_garbage_bytes_are_malformed(self):
        with self.assertRaises(MalformedDocumentError):
            PageExtractor(b"this is not a pdf at all")

    def test_empty_bytes_are_malformed(self):
        with self.assertRaises(MalformedDocumentError):
            PageExtractor(b"")

    def test_out_of_range_page_is_malformed(self):
        extractor = PageExtractor(make_pdf([100, 100]))
        with self.assertRaises(MalformedDocumentError):
            extractor.extract_page(2)
        with self.assertRaises(MalformedDocumentError):
            extractor.extract_page(-1)


if __name__ == "__main__":
    unittest.main()
