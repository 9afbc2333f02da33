"""
Extraction Strategy Chain
=========================
The duty page has no stable structure: the publisher renames classes,
drops fields, or serves plain text. Each strategy turns the raw HTML into
DraftRecords; the chain runs them in order and keeps the first non-empty
result.

    1. PrimarySelectorStrategy   - the current site's known markup
    2. CandidateSelectorStrategy - generic "item/article/post/card" markup
    3. LineScanStrategy          - keyword heuristics over the page text
"""
import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, FeatureNotFound

from .models import DraftRecord
from .normalizer import find_phone

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 4

WHITESPACE_PATTERN = re.compile(r'\s+')
PHARMACY_LINE_PATTERN = re.compile(r'pharmacie', re.IGNORECASE)
STREET_PATTERN = re.compile(r'rue|avenue|boulevard|quartier|bd|av\.', re.IGNORECASE)
MAX_NAME_LINE_LENGTH = 100

# Tags that end a line of rendered text; inline tags (b, strong, span...) do not
BLOCK_TAGS = [
    'address', 'article', 'aside', 'blockquote', 'br', 'dd', 'div', 'dl', 'dt',
    'footer', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'header', 'hr', 'li', 'main',
    'nav', 'ol', 'p', 'section', 'table', 'td', 'th', 'tr', 'ul',
]


def make_soup(html):
    """Parse with lxml when available, html.parser otherwise."""
    try:
        return BeautifulSoup(html, 'lxml')
    except FeatureNotFound:
        return BeautifulSoup(html, 'html.parser')


def collapse(text):
    return WHITESPACE_PATTERN.sub(' ', text or '').strip()


def element_text(element):
    if element is None:
        return ''
    return collapse(element.get_text())


def text_lines(element):
    """
    Rendered lines of `element`: a block tag starts a new line, inline
    markup stays on the current one. Mutates the tree.
    """
    for tag in element.find_all(BLOCK_TAGS):
        tag.insert_before('\n')
        tag.insert_after('\n')
    lines = (collapse(line) for line in element.get_text().split('\n'))
    return [line for line in lines if line]


def first_text(element, selector):
    """Text of the first descendant matching `selector`, in document order."""
    return element_text(element.select_one(selector))


class ExtractionStrategy:
    """One way of reading drafts out of a document."""

    name = 'base'

    def extract(self, document):
        raise NotImplementedError


class PrimarySelectorStrategy(ExtractionStrategy):
    """
    Known markup of the current source:

        <div class="list__">
            <span class="list__label--name">PHARMACIE X</span>
            12 Rue Y ... 0539 12 34 56 ... Tangier Tanger Morocco
        </div>

    Address is whatever is left of the container text once the name and
    the site's boilerplate location suffix are removed.
    """

    name = 'primary'

    def __init__(self, container_selector='.list__', name_selector='.list__label--name',
                 boilerplate='Tangier Tanger Morocco'):
        self.container_selector = container_selector
        self.name_selector = name_selector
        self.boilerplate_pattern = (
            re.compile(re.escape(boilerplate), re.IGNORECASE) if boilerplate else None
        )

    def extract(self, document):
        soup = make_soup(document)
        containers = soup.select(self.container_selector)
        logger.info("[Scraper] Found %d items with selector: %s",
                    len(containers), self.container_selector)

        drafts = []
        for container in containers:
            name = first_text(container, self.name_selector)
            if not name:
                continue

            full_text = element_text(container)
            address = full_text.replace(name, '', 1)
            if self.boilerplate_pattern is not None:
                address = self.boilerplate_pattern.sub('', address)

            drafts.append(DraftRecord(
                name=name,
                address=collapse(address),
                raw_phone_text=find_phone(full_text),
            ))
        return drafts


class CandidateSelectorStrategy(ExtractionStrategy):
    """Generic listing markup: the first container selector that matches wins."""

    name = 'candidates'

    CONTAINER_SELECTORS = (
        '.pharmacy-item',
        '.pharmacie',
        'article.pharmacy',
        '.post',
        'article',
        '.entry',
        '.pharmacy-card',
    )
    NAME_SELECTORS = ('h2, h3, .pharmacy-name, .name, .title', 'strong', 'b')
    ADDRESS_SELECTORS = ('.address, .location, .adresse', 'p')
    PHONE_SELECTOR = '.phone, .tel, .telephone'
    DAY_SELECTORS = ('.day, .jour', '.date')

    def __init__(self, container_selectors=None):
        self.container_selectors = tuple(container_selectors or self.CONTAINER_SELECTORS)

    @staticmethod
    def _first_of(element, selectors):
        for selector in selectors:
            text = first_text(element, selector)
            if text:
                return text
        return ''

    def extract(self, document):
        soup = make_soup(document)

        items = []
        for selector in self.container_selectors:
            items = soup.select(selector)
            if items:
                logger.info("[Scraper] Found %d items with selector: %s", len(items), selector)
                break

        drafts = []
        for item in items:
            name = self._first_of(item, self.NAME_SELECTORS)
            if not name:
                continue

            phone_text = first_text(item, self.PHONE_SELECTOR) or find_phone(element_text(item))
            drafts.append(DraftRecord(
                name=name,
                address=self._first_of(item, self.ADDRESS_SELECTORS),
                raw_phone_text=phone_text,
                raw_day_text=self._first_of(item, self.DAY_SELECTORS),
            ))
        return drafts


@dataclass
class _PendingDraft:
    name: str = ''
    address: str = ''
    phone: str = ''

    @property
    def complete(self):
        return bool(self.name and self.address)

    def freeze(self):
        return DraftRecord(name=self.name, address=self.address, raw_phone_text=self.phone)


class LineScanStrategy(ExtractionStrategy):
    """
    Last resort: walk the page text line by line.

    Assumes entries are laid out flat, one after the other: a "pharmacie"
    line opens an entry, the next street-like line is its address and the
    next phone-shaped line its phone.
    """

    name = 'line-scan'

    def extract(self, document):
        soup = make_soup(document)
        root = soup.body or soup
        lines = text_lines(root)

        drafts = []
        current = _PendingDraft()

        for line in lines:
            if PHARMACY_LINE_PATTERN.search(line) and len(line) < MAX_NAME_LINE_LENGTH:
                if current.complete:
                    drafts.append(current.freeze())
                current = _PendingDraft(name=line)

            if not current.address and STREET_PATTERN.search(line):
                current.address = line

            if not current.phone:
                current.phone = find_phone(line)

        if current.complete:
            drafts.append(current.freeze())

        return drafts


class ExtractionChain:
    """Ordered strategies; the first one producing any draft wins."""

    def __init__(self, strategies):
        self.strategies = list(strategies)

    @classmethod
    def default(cls, config):
        return cls([
            PrimarySelectorStrategy(
                container_selector=config.PRIMARY_CONTAINER_SELECTOR,
                name_selector=config.PRIMARY_NAME_SELECTOR,
                boilerplate=config.ADDRESS_BOILERPLATE,
            ),
            CandidateSelectorStrategy(),
            LineScanStrategy(),
        ])

    def extract(self, document):
        for strategy in self.strategies:
            drafts = [
                draft for draft in strategy.extract(document)
                if len(draft.name.strip()) >= MIN_NAME_LENGTH
            ]
            if drafts:
                logger.info("[Scraper] Strategy '%s' extracted %d pharmacies",
                            strategy.name, len(drafts))
                return drafts
            logger.info("[Scraper] Strategy '%s' found nothing, trying next", strategy.name)

        logger.warning("[Scraper] No strategy could extract any pharmacy")
        return []
