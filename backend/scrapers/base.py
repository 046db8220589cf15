"""
Base Rates Scraper - Abstract template for the interest.co.nz table scrapers.

Provides common functionality:
- Row parsing (primary rows vs continuation rows)
- Entity naming (logo alt text or cell text)
- Fold-based extraction into Entity -> Product -> Rate dicts
- RatesDocument assembly

Subclasses only decide how a row's cells become products and rates.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import reduce
from typing import Any, Callable, Dict, List, Optional, Sequence

from bs4 import BeautifulSoup
from bs4.element import Tag

from constants import model_type_for_data_type
from utils.normalize import collapse_whitespace, to_iso_timestamp, utc_now
from .utils.ids import InvalidIdError, generate_id

logger = logging.getLogger(__name__)

DEFAULT_TABLE_SELECTOR = "#interest_financial_datatable tbody tr"


@dataclass(frozen=True)
class TableRow:
    """One <tr> of the source table."""
    is_primary: bool
    cells: List[Tag] = field(default_factory=list)

    def text(self, index: int) -> str:
        """Trimmed text of a cell, '' when the row has no such cell."""
        if index < 0 or index >= len(self.cells):
            return ''
        return self.cells[index].get_text().strip()

    def has_class(self, index: int, class_name: str) -> bool:
        if index < 0 or index >= len(self.cells):
            return False
        return class_name in (self.cells[index].get('class') or [])


@dataclass(frozen=True)
class ExtractionState:
    """
    Accumulator for the row fold.

    current_index points at the entity that continuation rows attach to;
    None means rows are discarded until the next valid primary row.
    """
    entities: tuple = ()
    current_index: Optional[int] = None

    def with_current(self, entity: Dict[str, Any]) -> "ExtractionState":
        """Replace the current entity."""
        entities = list(self.entities)
        entities[self.current_index] = entity
        return ExtractionState(tuple(entities), self.current_index)

    def with_new(self, entity: Optional[Dict[str, Any]]) -> "ExtractionState":
        """Push a new current entity, or detach when entity is None."""
        if entity is None:
            return ExtractionState(self.entities, None)
        entities = self.entities + (entity,)
        return ExtractionState(entities, len(entities) - 1)


def parse_table_rows(html: str, selector: str = DEFAULT_TABLE_SELECTOR) -> List[TableRow]:
    """Parse the rate table's body rows in document order."""
    soup = BeautifulSoup(html, 'html.parser')
    rows = []
    for tr in soup.select(selector):
        rows.append(TableRow(
            is_primary='primary_row' in (tr.get('class') or []),
            cells=tr.find_all('td'),
        ))
    return rows


def entity_display_name(cell: Tag) -> str:
    """Logo alt text when present and non-empty, else the cell's text."""
    img = cell.find('img')
    if img is not None:
        alt = collapse_whitespace(img.get('alt'))
        if alt:
            return alt
    return collapse_whitespace(cell.get_text())


def with_product(
    entity: Dict[str, Any],
    product_name: str,
    new_rates: Sequence[Dict[str, Any]],
    sort_key: Callable[[Dict[str, Any]], Any],
) -> Dict[str, Any]:
    """
    Return a copy of entity with new_rates merged into the named product.

    The product is found by name or appended. Its rates are re-sorted
    after the merge so ordering never depends on source row order.
    """
    products = list(entity['products'])
    for index, product in enumerate(products):
        if product['name'] == product_name:
            break
    else:
        products.append({
            'id': generate_id(['product', entity['name'], product_name]),
            'name': product_name,
            'rates': [],
        })
        index = len(products) - 1

    product = products[index]
    rates = sorted(list(product['rates']) + list(new_rates), key=sort_key)
    products[index] = {**product, 'rates': rates}
    return {**entity, 'products': products}


class BaseRatesScraper(ABC):
    """
    Abstract base class for all rate table scrapers.

    Subclasses must implement:
    - extract_row(): fold one row into the current entity

    Subclasses should set class attributes:
    - DATA_TYPE: Wire name of the data type (e.g. 'mortgage-rates')
    - ENTITY_KIND: ID prefix of top-level entities ('institution' or 'issuer')
    - CHILDREN_KEY: Key holding the entity's products ('products' or 'plans')
    - TABLE_COLUMN_HEADERS: Headers of the rate columns, positionally
    """

    # Override in subclass
    DATA_TYPE: str = ""
    ENTITY_KIND: str = "institution"
    CHILDREN_KEY: str = "products"
    TABLE_SELECTOR: str = DEFAULT_TABLE_SELECTOR
    TABLE_COLUMN_HEADERS: List[str] = []
    SPECIAL_PRODUCT_NAMES: List[str] = []

    def __init__(self, client=None):
        """
        Initialize scraper.

        Args:
            client: Optional InterestScraperClient used by fetch_page()
        """
        self.client = client

    @property
    def model_type(self) -> str:
        return model_type_for_data_type(self.DATA_TYPE)

    @abstractmethod
    def extract_row(self, entity: Dict[str, Any], row: TableRow) -> Dict[str, Any]:
        """
        Fold one row into the current entity.

        Args:
            entity: Current entity dict (must not be mutated)
            row: Row to interpret

        Returns:
            New entity dict including the row's products and rates
        """
        pass

    def normalize_product_name(self, name: str) -> str:
        """Collapse known 'Special' variants to the canonical label."""
        if name in self.SPECIAL_PRODUCT_NAMES:
            return "Special"
        return name

    def new_entity(self, cell: Tag) -> Optional[Dict[str, Any]]:
        """
        Build an empty entity from a primary row's first cell.

        Returns None (and logs) when the name yields no usable ID.
        """
        name = entity_display_name(cell)
        try:
            entity_id = generate_id([self.ENTITY_KIND, name])
        except InvalidIdError as e:
            logger.warning(
                f"[{self.DATA_TYPE}] Skipping primary row with unusable name {name!r}: {e}"
            )
            return None
        return {'id': entity_id, 'name': name, self.CHILDREN_KEY: []}

    def step(self, state: ExtractionState, row: TableRow) -> ExtractionState:
        """One transition of the extraction fold."""
        if row.is_primary and row.cells:
            state = state.with_new(self.new_entity(row.cells[0]))

        if state.current_index is None:
            return state

        entity = state.entities[state.current_index]
        return state.with_current(self.extract_row(entity, row))

    def extract(self, html: str) -> List[Dict[str, Any]]:
        """
        Extract the entity list from a page.

        An empty list is a legal outcome when no primary row is found.
        """
        rows = parse_table_rows(html, self.TABLE_SELECTOR)
        state = reduce(self.step, rows, ExtractionState())
        logger.debug(
            f"[{self.DATA_TYPE}] Extracted {len(state.entities)} entities from {len(rows)} rows"
        )
        return list(state.entities)

    def build_document(self, html: str, last_updated: Optional[str] = None) -> Dict[str, Any]:
        """
        Extract a page and wrap it as a RatesDocument.

        Args:
            html: Raw page HTML
            last_updated: ISO timestamp; defaults to now (UTC)

        Returns:
            {'type', 'data', 'lastUpdated'} dict, not yet validated
        """
        return {
            'type': self.model_type,
            'data': self.extract(html),
            'lastUpdated': last_updated or to_iso_timestamp(utc_now()),
        }

    def fetch_page(self) -> str:
        """Fetch the source page for this data type."""
        if self.client is None:
            raise RuntimeError(f"{type(self).__name__} has no fetch client configured")
        return self.client.get_page(self.DATA_TYPE)
