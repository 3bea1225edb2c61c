import re
import unittest

from pydantic import ValidationError

from zpl_designer.api.models.schemas import (
    EmbeddedBitmap,
    LabelDefinition,
    PlacedElement,
    Section,
)
from zpl_designer.services.mock_data import MockDataProvider
from zpl_designer.services.zpl_generator import (
    ZPLGenerator,
    generate_element_zpl,
    generate_zpl,
    get_orientation,
)


def _invoice_label() -> LabelDefinition:
    return LabelDefinition(
        header=Section(height=40, elements=[
            PlacedElement(id="1", type="text", x=10, y=10, content="HEADER LOGO"),
        ]),
        body=Section(height=10, elements=[
            PlacedElement(id="2", type="text", x=10, y=2, is_dynamic=True, data_source="Line.ProductCode"),
        ]),
        footer=Section(height=20, elements=[
            PlacedElement(id="3", type="text", x=10, y=5, is_dynamic=True, data_source="Invoice.Total"),
        ]),
        canvas_width=104,
    )


class OrientationTests(unittest.TestCase):
    def test_known_rotations(self) -> None:
        self.assertEqual(get_orientation(0), "N")
        self.assertEqual(get_orientation(90), "R")
        self.assertEqual(get_orientation(180), "I")
        self.assertEqual(get_orientation(270), "B")

    def test_unknown_rotation_defaults_to_normal(self) -> None:
        self.assertEqual(get_orientation(45), "N")
        self.assertEqual(get_orientation(None), "N")


class ElementGenerationTests(unittest.TestCase):
    def test_literal_text(self) -> None:
        element = PlacedElement(id="t", type="text", x=10, y=2, content="Hello")
        self.assertEqual(generate_element_zpl(element), "^FO21,4^A0N,34,34^FDHello^FS\n")

    def test_offset_is_added_to_y(self) -> None:
        element = PlacedElement(id="t", type="text", x=10, y=2, content="Hello")
        self.assertTrue(generate_element_zpl(element, offset_y_mm=40).startswith("^FO21,324^"))

    def test_rotated_text(self) -> None:
        element = PlacedElement(id="t", type="text", content="Up", rotation=270, font_size=24)
        self.assertEqual(generate_element_zpl(element), "^FO0,0^A0B,68,68^FDUp^FS\n")

    def test_box(self) -> None:
        element = PlacedElement(id="b", type="box", width=100, height=50)
        self.assertEqual(generate_element_zpl(element), "^FO0,0^GB212,106,2^FS\n")

    def test_box_without_size_is_degenerate(self) -> None:
        element = PlacedElement(id="b", type="box", x=10, y=10)
        self.assertEqual(generate_element_zpl(element), "^FO21,21^GB0,0,2^FS\n")

    def test_qr_magnification(self) -> None:
        qr = PlacedElement(id="q", type="barcode", barcode_type="qr", width=100, content="hello")
        self.assertEqual(generate_element_zpl(qr), "^FO0,0^BQN,2,4^FDQA,hello^FS\n")
        large = qr.model_copy(update={"width": 1000})
        self.assertIn("^BQN,2,10^", generate_element_zpl(large))
        small = qr.model_copy(update={"width": 10})
        self.assertIn("^BQN,2,1^", generate_element_zpl(small))
        unsized = qr.model_copy(update={"width": None})
        self.assertIn("^BQN,2,2^", generate_element_zpl(unsized))

    def test_code128(self) -> None:
        element = PlacedElement(id="c", type="barcode", barcode_type="code128", height=50,
                                show_label=True, content="ABC")
        self.assertEqual(generate_element_zpl(element), "^FO0,0^BCN,106,Y,N,N^FDABC^FS\n")

    def test_code128_rotation_and_hidden_label(self) -> None:
        element = PlacedElement(id="c", type="barcode", rotation=90, content="ABC")
        self.assertEqual(generate_element_zpl(element), "^FO0,0^BCR,106,N,N,N^FDABC^FS\n")

    def test_dynamic_barcode(self) -> None:
        element = PlacedElement(id="c", type="barcode", is_dynamic=True, data_source="Barcode")
        self.assertIn("^FD[Barcode]^FS", generate_element_zpl(element))
        row = MockDataProvider().row(0)
        self.assertIn("^FD8690000001011^FS", generate_element_zpl(element, True, 0, row))

    def test_embedded_bitmap(self) -> None:
        element = PlacedElement(
            id="i", type="image", x=10, y=10, width=2, height=2,
            zpl_image=EmbeddedBitmap(hex="8040", total_bytes=2, bytes_per_row=1),
        )
        self.assertEqual(generate_element_zpl(element), "^FO21,21^GFA,2,2,1,8040^FS\n")

    def test_image_placeholder(self) -> None:
        element = PlacedElement(id="i", type="image", x=10, y=10, image_key="GibLogo")
        self.assertEqual(
            generate_element_zpl(element),
            "^FO21,21^GB127,127,1^FS^FO21,21^A0N,15,15^FD[IMG:GibLogo]^FS\n",
        )

    def test_image_without_source(self) -> None:
        element = PlacedElement(id="i", type="image")
        self.assertIn("^FD[IMG:NONE]^FS", generate_element_zpl(element))

    def test_image_source_is_exclusive(self) -> None:
        with self.assertRaises(ValidationError):
            PlacedElement(
                id="i", type="image", image_key="GibLogo",
                zpl_image=EmbeddedBitmap(hex="80", total_bytes=1, bytes_per_row=1),
            )

    def test_literal_text_is_truncated(self) -> None:
        element = PlacedElement(id="t", type="text", content="Hello World", max_chars=5)
        self.assertIn("^FDHello...^FS", generate_element_zpl(element))

    def test_template_marker_is_not_truncated(self) -> None:
        element = PlacedElement(id="t", type="text", is_dynamic=True,
                                data_source="Line.ProductName", max_chars=5)
        self.assertIn("^FD[Line.ProductName]^FS", generate_element_zpl(element))

    def test_mock_value_is_truncated(self) -> None:
        element = PlacedElement(id="t", type="text", is_dynamic=True,
                                data_source="Line.ProductName", max_chars=5)
        row = MockDataProvider().row(0)
        self.assertIn("^FDSteel...^FS", generate_element_zpl(element, True, 0, row))

    def test_negative_max_chars_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            PlacedElement(id="t", type="text", content="Hello World", max_chars=-1)

    def test_zero_max_chars_does_not_truncate(self) -> None:
        element = PlacedElement(id="t", type="text", content="Hello", max_chars=0)
        self.assertIn("^FDHello^FS", generate_element_zpl(element))

    def test_accepts_editor_json(self) -> None:
        element = PlacedElement.model_validate({
            "id": "x1", "type": "text", "x": 10, "y": 2, "isDynamic": True,
            "dataSource": "Line.ProductCode", "fontSize": 12, "maxChars": 3,
        })
        self.assertIn("^FD[Line.ProductCode]^FS", generate_element_zpl(element))


class DocumentGenerationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.label = _invoice_label()

    def test_mock_document(self) -> None:
        zpl = generate_zpl(self.label, mock_items=2, use_mock_data=True)
        self.assertTrue(zpl.startswith("^XA\n^CI28\n^LL640\n^PW832\n"))
        self.assertTrue(zpl.endswith("^XZ"))
        self.assertIn("^FO21,21^A0N,34,34^FDHEADER LOGO^FS\n", zpl)
        self.assertIn("^FO21,324^A0N,34,34^FDP-101^FS\n", zpl)
        self.assertIn("^FO21,404^A0N,34,34^FDP-102^FS\n", zpl)
        self.assertIn("^FO21,491^A0N,34,34^FD190.95^FS\n", zpl)

    def test_template_document(self) -> None:
        zpl = generate_zpl(self.label, mock_items=5, use_mock_data=False)
        self.assertIn("^LL560\n", zpl)
        self.assertEqual(zpl.count("[Line.ProductCode]"), 1)
        self.assertIn("^FO21,411^A0N,34,34^FD[Invoice.Total]^FS\n", zpl)

    def test_template_ignores_row_count(self) -> None:
        outputs = {generate_zpl(self.label, mock_items=n) for n in (1, 3, 100)}
        self.assertEqual(len(outputs), 1)

    def test_mock_rows_cycle_through_records(self) -> None:
        zpl = generate_zpl(self.label, mock_items=5, use_mock_data=True)
        codes = re.findall(r"\^FD(P-\d+)\^FS", zpl)
        self.assertEqual(codes, ["P-101", "P-102", "P-103", "P-101", "P-102"])

    def test_sections_in_order(self) -> None:
        zpl = generate_zpl(self.label, mock_items=1, use_mock_data=True)
        self.assertLess(zpl.index("HEADER LOGO"), zpl.index("P-101"))
        self.assertLess(zpl.index("P-101"), zpl.index("190.95"))

    def test_label_is_not_mutated(self) -> None:
        before = self.label.model_dump()
        generate_zpl(self.label, mock_items=3, use_mock_data=True)
        self.assertEqual(self.label.model_dump(), before)

    def test_failing_element_does_not_abort_document(self) -> None:
        class _BrokenProvider(MockDataProvider):
            def resolve_element(self, element, use_mock_data, row=None):
                if element.id == "2":
                    raise ValueError("broken binding")
                return super().resolve_element(element, use_mock_data, row)

        zpl = ZPLGenerator(_BrokenProvider()).generate_document(self.label)
        self.assertIn("HEADER LOGO", zpl)
        self.assertIn("[Invoice.Total]", zpl)
        self.assertNotIn("Line.ProductCode", zpl)
        self.assertTrue(zpl.endswith("^XZ"))

    def test_empty_label(self) -> None:
        zpl = generate_zpl(LabelDefinition())
        self.assertEqual(zpl, "^XA\n^CI28\n^LL560\n^PW832\n^XZ")


if __name__ == "__main__":
    unittest.main()
