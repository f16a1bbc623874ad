import pytest

from rss_aggregator.classifier import detect_feed_type
from rss_aggregator.models import FeedType


@pytest.mark.parametrize(
    "content,expected",
    [
        ('<?xml version="1.0"?><rss version="2.0"><channel/></rss>', FeedType.RSS_2_0),
        ("<rss version='2.0' xmlns:dc=\"http://purl.org/dc/elements/1.1/\">", FeedType.RSS_2_0),
        ('<?xml version="1.0" encoding="utf-8"?>\n<feed xmlns="http://www.w3.org/2005/Atom">', FeedType.ATOM_1_0),
        ('<atom:feed xmlns:atom="http://www.w3.org/2005/Atom">', FeedType.ATOM_1_0),
        (
            '<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#" '
            'xmlns="http://purl.org/rss/1.0/">',
            FeedType.RSS_1_0,
        ),
        ("<html><body>not a feed</body></html>", FeedType.UNKNOWN),
        ('<rss version="0.91"><channel/></rss>', FeedType.UNKNOWN),
        ("<feed><entry/></feed>", FeedType.UNKNOWN),
        ("", FeedType.UNKNOWN),
        ("plain text, no markup", FeedType.UNKNOWN),
    ],
)
def test_detect_feed_type(content, expected):
    assert detect_feed_type(content) is expected


def test_detection_tolerates_malformed_documents():
    # Unclosed elements and a truncated tail still classify by the root
    content = '<?xml version="1.0"?>\n<!-- <feed> in a comment --><rss version="2.0"><channel><item><title>x'
    assert detect_feed_type(content) is FeedType.RSS_2_0


def test_detection_skips_bom_and_doctype():
    content = '\ufeff<!DOCTYPE rss PUBLIC "-//Netscape//DTD RSS 0.91//EN" "x.dtd">\n<rss version="2.0">'
    assert detect_feed_type(content) is FeedType.RSS_2_0


def test_atom_marker_must_sit_on_the_root():
    content = '<rss version="1.0"><feed xmlns="http://www.w3.org/2005/Atom"></feed></rss>'
    assert detect_feed_type(content) is FeedType.UNKNOWN
