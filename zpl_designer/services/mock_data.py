"""Mock values and the catalog of bindable data sources.

Dynamic elements carry a ``dataSource`` binding instead of literal content.
In template mode the binding is emitted as ``[name]`` so the print-time engine
can substitute it; in mock (preview) mode it is resolved from the tables below.
"""
from typing import Dict, List, Mapping, Optional, Sequence

from zpl_designer.api.models.schemas import (
    BarcodeType,
    DataSource,
    ElementType,
    PlacedElement,
    SectionName,
)

MOCK_DATA_ROWS: List[Dict[str, str]] = [
    {
        "Line.ProductCode": "P-101",
        "Line.ProductName": "Steel Widget",
        "Line.Quantity": "2",
        "Line.UnitPrice": "45.00",
        "Line.Total": "90.00",
        "Product.Sku": "SKU-0101",
        "Barcode": "8690000001011",
    },
    {
        "Line.ProductCode": "P-102",
        "Line.ProductName": "Brass Gadget",
        "Line.Quantity": "2",
        "Line.UnitPrice": "23.91",
        "Line.Total": "47.82",
        "Product.Sku": "SKU-0102",
        "Barcode": "8690000001028",
    },
    {
        "Line.ProductCode": "P-103",
        "Line.ProductName": "USB-C Cable 1m",
        "Line.Quantity": "3",
        "Line.UnitPrice": "8.00",
        "Line.Total": "24.00",
        "Product.Sku": "SKU-0103",
        "Barcode": "8690000001035",
    },
]

MOCK_GLOBAL_DATA: Dict[str, str] = {
    "Tenant.Name": "Acme Trading Ltd.",
    "Tenant.Address": "Istiklal Cd. 12, Istanbul",
    "Tenant.TaxNumber": "1234567890",
    "Customer.Name": "Jane Doe",
    "Customer.TaxNumber": "9876543210",
    "DocNumber": "INV2024000000123",
    "Invoice.Date": "2024-05-14",
    "Invoice.Subtotal": "161.82",
    "Invoice.Tax": "29.13",
    "Invoice.Total": "190.95",
    "ETTN": "3f2b6c1e-8d4a-4e7b-9a51-0c6d2e9f7a10",
    "GibInfo": "https://earsivportal.efatura.gov.tr/?ettn=3f2b6c1e-8d4a-4e7b-9a51-0c6d2e9f7a10",
}

GLOBAL_DATA_SOURCES: List[DataSource] = [
    DataSource(id="Tenant.Name", name="Company Name"),
    DataSource(id="Tenant.Address", name="Company Address"),
    DataSource(id="Tenant.TaxNumber", name="Company Tax Number"),
    DataSource(id="Customer.Name", name="Customer Name"),
    DataSource(id="Customer.TaxNumber", name="Customer Tax Number"),
    DataSource(id="DocNumber", name="Document Number"),
    DataSource(id="Invoice.Date", name="Invoice Date"),
    DataSource(id="Invoice.Subtotal", name="Subtotal"),
    DataSource(id="Invoice.Tax", name="Tax Amount"),
    DataSource(id="Invoice.Total", name="Grand Total"),
    DataSource(id="ETTN", name="ETTN (Invoice UUID)"),
    DataSource(id="GibInfo", name="GIB QR Payload"),
]

ROW_DATA_SOURCES: List[DataSource] = [
    DataSource(id="Line.ProductCode", name="Product Code"),
    DataSource(id="Line.ProductName", name="Product Name"),
    DataSource(id="Line.Quantity", name="Quantity"),
    DataSource(id="Line.UnitPrice", name="Unit Price"),
    DataSource(id="Line.Total", name="Line Total"),
    DataSource(id="Product.Sku", name="Product SKU"),
    DataSource(id="Barcode", name="Product Barcode"),
]

ALL_DATA_SOURCES: List[DataSource] = GLOBAL_DATA_SOURCES + ROW_DATA_SOURCES

QR_DATA_SOURCES = {"GibInfo"}
LINEAR_BARCODE_DATA_SOURCES = {"Barcode", "Product.Sku", "DocNumber", "ETTN"}


def placeholder(data_source: str) -> str:
    return f"[{data_source}]"


class MockDataProvider:
    """Resolves binding names against row-scoped and global mock tables."""

    def __init__(
        self,
        rows: Sequence[Mapping[str, str]] = MOCK_DATA_ROWS,
        global_data: Mapping[str, str] = MOCK_GLOBAL_DATA,
    ):
        self.rows = list(rows)
        self.global_data = dict(global_data)

    def row(self, index: int) -> Optional[Mapping[str, str]]:
        """Return the record for body row ``index``, wrapping around the table."""
        if not self.rows:
            return None
        return self.rows[index % len(self.rows)]

    def resolve(
        self,
        data_source: str,
        use_mock_data: bool,
        row: Optional[Mapping[str, str]] = None,
    ) -> str:
        if not use_mock_data:
            return placeholder(data_source)
        if row is not None and data_source in row:
            return row[data_source]
        if data_source in self.global_data:
            return self.global_data[data_source]
        return placeholder(data_source)

    def resolve_element(
        self,
        element: PlacedElement,
        use_mock_data: bool,
        row: Optional[Mapping[str, str]] = None,
    ) -> str:
        """Return the text an element displays: literal content or resolved binding."""
        if element.is_dynamic and element.data_source:
            return self.resolve(element.data_source, use_mock_data, row)
        return element.content or ""


DEFAULT_PROVIDER = MockDataProvider()


def data_sources_for(
    section: SectionName,
    element_type: Optional[ElementType] = None,
    barcode_type: Optional[BarcodeType] = None,
) -> List[DataSource]:
    """Bindings offered to an element placed in ``section``.

    Only the repeating body sees row-scoped sources. QR barcodes carry the GIB
    payload; linear barcodes carry identifier-like fields.
    """
    sources = ALL_DATA_SOURCES if SectionName(section) is SectionName.BODY else GLOBAL_DATA_SOURCES
    if element_type is not None and ElementType(element_type) is ElementType.BARCODE:
        if barcode_type is not None and BarcodeType(barcode_type) is BarcodeType.QR:
            allowed = QR_DATA_SOURCES
        else:
            allowed = LINEAR_BARCODE_DATA_SOURCES
        sources = [source for source in sources if source.id in allowed]
    return list(sources)
