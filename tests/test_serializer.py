"""
Unit tests for the hierarchical serializer
"""

import io
import json
from decimal import Decimal
from operator import attrgetter
from xml.etree.ElementTree import fromstring

import pytest

from catalog_export.catalog.records import CategoryRecord, ProductRecord
from catalog_export.exporters.errors import (
    EmptyInputWarning,
    EncodingError,
    SinkWriteError,
    WriterStateError,
)
from catalog_export.exporters.serializer import (
    CATALOG_SCHEMA,
    FieldSpec,
    HierarchicalSerializer,
    NodeSchema,
    serialize,
    serialize_to_path,
    serialize_to_string,
)
from catalog_export.exporters.writers import SerializationMode


class FailingSink:
    """Sink that accepts a number of writes, then fails."""

    def __init__(self, allowed_writes):
        self.allowed_writes = allowed_writes
        self.written = []

    def write(self, text):
        if len(self.written) >= self.allowed_writes:
            raise OSError(28, "No space left on device")
        self.written.append(text)


@pytest.fixture
def beverages():
    """Fixture to create a single category with one product"""
    chai = ProductRecord(
        id=1,
        name='Chai',
        discontinued=False,
        category_id=1,
        unit_price=Decimal('18.00'),
        units_in_stock=39
    )
    return CategoryRecord(id=1, name='Beverages', description='Soft drinks', products=(chai,))


@pytest.fixture
def sample_catalog(beverages):
    """Fixture to create a small catalog with an empty category and missing values"""
    chang = ProductRecord(2, 'Chang', False, 1, Decimal('19.00'), 17)
    syrup = ProductRecord(3, 'Aniseed Syrup', False, 2, Decimal('10.00'), 13)
    mishi = ProductRecord(9, 'Mishi Kobe Niku', True, 2, None, None)
    return [
        CategoryRecord(1, 'Beverages', 'Soft drinks, coffees, teas, beers, and ales', beverages.products + (chang,)),
        CategoryRecord(2, 'Condiments', 'Sweet & savory sauces', (syrup, mishi)),
        CategoryRecord(7, 'Produce', None, ()),
    ]


def _text(value):
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, Decimal):
        return format(value, 'f')
    return str(value)


def _read_elements(document):
    categories = []
    for category in fromstring(document):
        fields = [(child.tag, child.text or '') for child in category if child.tag != 'Products']
        products = [
            [(field.tag, field.text or '') for field in product]
            for product in category.find('Products')
        ]
        categories.append((fields, products))
    return categories


def _read_attributes(document):
    categories = []
    for category in fromstring(document):
        products = [list(product.attrib.items()) for product in category.find('Products')]
        categories.append((list(category.attrib.items()), products))
    return categories


def _read_object_graph(document):
    categories = []
    for category in json.loads(document, parse_float=Decimal)['Categories']:
        fields = [(name, _text(value)) for name, value in category.items() if name != 'Products']
        products = [
            [(name, _text(value)) for name, value in product.items()]
            for product in category['Products']
        ]
        categories.append((fields, products))
    return categories


READERS = {
    SerializationMode.TAGGED_ELEMENTS: _read_elements,
    SerializationMode.TAGGED_ATTRIBUTES: _read_attributes,
    SerializationMode.OBJECT_GRAPH: _read_object_graph,
}


class TestSerializeDocuments:
    """Test cases for complete documents in each mode"""

    def test_object_graph_document(self, beverages):
        """Test the exact JSON document for a single category"""
        document = serialize_to_string([beverages], SerializationMode.OBJECT_GRAPH)

        assert document == (
            '{\n'
            '  "Categories": [\n'
            '    {\n'
            '      "Id": 1,\n'
            '      "Name": "Beverages",\n'
            '      "Description": "Soft drinks",\n'
            '      "Count": 1,\n'
            '      "Products": [\n'
            '        {\n'
            '          "Id": 1,\n'
            '          "Name": "Chai",\n'
            '          "Cost": 18.00,\n'
            '          "Stock": 39,\n'
            '          "Discontinued": false\n'
            '        }\n'
            '      ]\n'
            '    }\n'
            '  ]\n'
            '}\n'
        )

    def test_tagged_elements_document(self, beverages):
        """Test the exact element-mode XML document for a single category"""
        document = serialize_to_string([beverages], SerializationMode.TAGGED_ELEMENTS)

        assert document == (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            '<Categories>\n'
            '  <Category>\n'
            '    <Id>1</Id>\n'
            '    <Name>Beverages</Name>\n'
            '    <Description>Soft drinks</Description>\n'
            '    <Count>1</Count>\n'
            '    <Products>\n'
            '      <Product>\n'
            '        <Id>1</Id>\n'
            '        <Name>Chai</Name>\n'
            '        <Cost>18.00</Cost>\n'
            '        <Stock>39</Stock>\n'
            '        <Discontinued>false</Discontinued>\n'
            '      </Product>\n'
            '    </Products>\n'
            '  </Category>\n'
            '</Categories>\n'
        )

    def test_tagged_attributes_document(self, beverages):
        """Test the exact attribute-mode XML document for a single category"""
        document = serialize_to_string([beverages], SerializationMode.TAGGED_ATTRIBUTES)

        assert document == (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            '<Categories>\n'
            '  <Category Id="1" Name="Beverages" Description="Soft drinks" Count="1">\n'
            '    <Products>\n'
            '      <Product Id="1" Name="Chai" Cost="18.00" Stock="39" Discontinued="false" />\n'
            '    </Products>\n'
            '  </Category>\n'
            '</Categories>\n'
        )

    def test_compact_object_graph(self, beverages):
        """Test compact JSON carries no whitespace"""
        document = serialize_to_string([beverages], SerializationMode.OBJECT_GRAPH, indent=None)

        assert document == (
            '{"Categories":[{"Id":1,"Name":"Beverages","Description":"Soft drinks","Count":1,'
            '"Products":[{"Id":1,"Name":"Chai","Cost":18.00,"Stock":39,"Discontinued":false}]}]}'
        )


    def test_compact_object_graph_null_description(self, beverages):
        """Test a category without description produces a JSON null"""
        category = CategoryRecord(1, 'Beverages', None, beverages.products)

        document = serialize_to_string([category], SerializationMode.OBJECT_GRAPH, indent=None)

        assert document == (
            '{"Categories":[{"Id":1,"Name":"Beverages","Description":null,"Count":1,'
            '"Products":[{"Id":1,"Name":"Chai","Cost":18.00,"Stock":39,"Discontinued":false}]}]}'
        )


class TestSerializeEdgeCases:
    """Test cases for empty input, missing values and failures"""

    def test_empty_input_elements(self):
        """Test no categories gives an empty root collection"""
        document = serialize_to_string([], SerializationMode.TAGGED_ELEMENTS)
        assert document == '<?xml version="1.0" encoding="utf-8"?>\n<Categories />\n'

    def test_empty_input_attributes(self):
        document = serialize_to_string([], SerializationMode.TAGGED_ATTRIBUTES)
        assert document == '<?xml version="1.0" encoding="utf-8"?>\n<Categories />\n'

    def test_empty_input_object_graph(self):
        document = serialize_to_string([], SerializationMode.OBJECT_GRAPH)
        assert json.loads(document) == {'Categories': []}

    def test_empty_input_warning(self):
        """Test empty input still succeeds but reports a warning"""
        summary = serialize([], SerializationMode.OBJECT_GRAPH, io.StringIO())

        assert summary.categories == 0
        assert summary.products == 0
        assert len(summary.warnings) == 1
        assert isinstance(summary.warnings[0], EmptyInputWarning)

    def test_category_without_products(self, sample_catalog):
        """Test a category without products has Count 0 and an empty collection"""
        produce = [sample_catalog[2]]

        root = fromstring(serialize_to_string(produce, SerializationMode.TAGGED_ELEMENTS))
        category = root.find('Category')
        assert category.findtext('Count') == '0'
        assert len(category.find('Products')) == 0

        data = json.loads(serialize_to_string(produce, SerializationMode.OBJECT_GRAPH))
        assert data['Categories'][0]['Count'] == 0
        assert data['Categories'][0]['Products'] == []

    def test_null_description(self, sample_catalog):
        """Test a missing description in each mode"""
        produce = [sample_catalog[2]]

        elements = serialize_to_string(produce, SerializationMode.TAGGED_ELEMENTS)
        assert '<Description />' in elements

        attributes = serialize_to_string(produce, SerializationMode.TAGGED_ATTRIBUTES)
        assert 'Description=""' in attributes

        data = json.loads(serialize_to_string(produce, SerializationMode.OBJECT_GRAPH))
        assert data['Categories'][0]['Description'] is None

    def test_missing_price_and_stock_default_to_zero(self, sample_catalog):
        """Test a product without price or stock is written with zeros"""
        condiments = [sample_catalog[1]]

        data = json.loads(serialize_to_string(condiments, SerializationMode.OBJECT_GRAPH))
        mishi = data['Categories'][0]['Products'][1]
        assert mishi['Cost'] == 0
        assert mishi['Stock'] == 0
        assert mishi['Discontinued'] is True

        root = fromstring(serialize_to_string(condiments, SerializationMode.TAGGED_ATTRIBUTES))
        product = root.find('Category/Products')[1]
        assert product.get('Cost') == '0'
        assert product.get('Stock') == '0'

    def test_count_matches_products(self, sample_catalog):
        """Test Count always equals the number of products written"""
        root = fromstring(serialize_to_string(sample_catalog, SerializationMode.TAGGED_ELEMENTS))

        for category in root.findall('Category'):
            assert int(category.findtext('Count')) == len(category.find('Products'))

    def test_summary_counts(self, sample_catalog):
        """Test the summary reports how many items were written"""
        summary = serialize(sample_catalog, SerializationMode.TAGGED_ELEMENTS, io.StringIO())

        assert summary.mode is SerializationMode.TAGGED_ELEMENTS
        assert summary.categories == 3
        assert summary.products == 4
        assert summary.warnings == ()

    def test_records_from_generator(self, sample_catalog):
        """Test any iterable of categories can be serialized"""
        summary = serialize((c for c in sample_catalog), SerializationMode.OBJECT_GRAPH, io.StringIO())
        assert summary.categories == 3

    def test_mode_by_value(self, beverages):
        """Test the mode can be given by its value"""
        document = serialize_to_string([beverages], "tagged_attributes")
        assert '<Category Id="1"' in document

    def test_sink_failure_mid_document(self, sample_catalog):
        """Test a sink that fails partway through surfaces a write error"""
        sink = FailingSink(allowed_writes=5)

        with pytest.raises(SinkWriteError, match="No space left"):
            serialize(sample_catalog, SerializationMode.TAGGED_ELEMENTS, sink)

        assert len(sink.written) == 5

    def test_illegal_xml_character(self):
        """Test a value XML cannot carry fails the XML modes but not JSON"""
        bad = CategoryRecord(3, 'Confections', 'Bell\x07', ())

        with pytest.raises(EncodingError):
            serialize_to_string([bad], SerializationMode.TAGGED_ELEMENTS)
        with pytest.raises(EncodingError):
            serialize_to_string([bad], SerializationMode.TAGGED_ATTRIBUTES)

        data = json.loads(serialize_to_string([bad], SerializationMode.OBJECT_GRAPH))
        assert data['Categories'][0]['Description'] == 'Bell\x07'


class TestModeEquivalence:
    """Test cases for value preservation across modes"""

    @pytest.mark.parametrize('mode', list(SerializationMode))
    def test_values_read_back(self, sample_catalog, mode):
        """Test every written value can be read back in order"""
        document = serialize_to_string(sample_catalog, mode)

        expected = [
            (
                [
                    ('Id', _text(category.id)),
                    ('Name', category.name),
                    ('Description', _text(category.description)),
                    ('Count', _text(category.count)),
                ],
                [
                    [
                        ('Id', _text(product.id)),
                        ('Name', product.name),
                        ('Cost', _text(product.unit_price if product.unit_price is not None else 0)),
                        ('Stock', _text(product.units_in_stock or 0)),
                        ('Discontinued', _text(product.discontinued)),
                    ]
                    for product in category.products
                ],
            )
            for category in sample_catalog
        ]

        assert READERS[mode](document) == expected

    def test_modes_agree(self, sample_catalog):
        """Test switching mode changes the shape, not the values or their order"""
        decoded = [
            READERS[mode](serialize_to_string(sample_catalog, mode))
            for mode in SerializationMode
        ]

        assert decoded[0] == decoded[1] == decoded[2]

    def test_escaped_text_read_back(self, sample_catalog):
        """Test markup characters survive a round trip"""
        for mode in SerializationMode:
            decoded = READERS[mode](serialize_to_string(sample_catalog, mode))
            assert ('Description', 'Sweet & savory sauces') in decoded[1][0]


class TestHierarchicalSerializer:
    """Test cases for HierarchicalSerializer class"""

    def test_default_schema(self):
        """Test the serializer walks the catalog schema by default"""
        serializer = HierarchicalSerializer()
        assert serializer.schema is CATALOG_SCHEMA
        assert [spec.name for spec in CATALOG_SCHEMA.fields] == ['Id', 'Name', 'Description', 'Count']
        assert CATALOG_SCHEMA.child.schema.collection == 'Products'

    def test_custom_schema(self, sample_catalog):
        """Test another document shape can be described as data"""
        schema = NodeSchema(
            collection='Products',
            item='Product',
            fields=(FieldSpec('Id', attrgetter('id')), FieldSpec('Name', attrgetter('name'))),
        )
        products = [product for category in sample_catalog for product in category.products]
        sink = io.StringIO()

        summary = HierarchicalSerializer(schema).serialize(products, SerializationMode.OBJECT_GRAPH, sink, indent=None)

        assert summary.counts == {'Product': 4}
        assert json.loads(sink.getvalue())['Products'][0] == {'Id': 1, 'Name': 'Chai'}

    def test_duplicate_field_in_attribute_mode(self, sample_catalog):
        """Test a schema repeating a field name fails in attribute mode"""
        id_field = FieldSpec('Id', attrgetter('id'))
        schema = NodeSchema(collection='Categories', item='Category', fields=(id_field, id_field))

        with pytest.raises(WriterStateError, match="already written"):
            HierarchicalSerializer(schema).serialize(
                sample_catalog, SerializationMode.TAGGED_ATTRIBUTES, io.StringIO()
            )


class TestSerializeToPath:
    """Test cases for file output"""

    def test_writes_file(self, sample_catalog, tmp_path):
        """Test the document is written as UTF-8, creating directories"""
        output_path = tmp_path / "exports" / "catalog.json"

        summary = serialize_to_path(sample_catalog, SerializationMode.OBJECT_GRAPH, output_path)

        assert output_path.exists()
        assert summary.categories == 3
        data = json.loads(output_path.read_text(encoding='utf-8'))
        assert len(data['Categories']) == 3

    def test_overwrites_file(self, beverages, tmp_path):
        """Test an existing file is replaced"""
        output_path = tmp_path / "catalog.xml"
        output_path.write_text("stale content that is much longer than anything else" * 100)

        serialize_to_path([beverages], SerializationMode.TAGGED_ELEMENTS, output_path)

        assert output_path.read_text(encoding='utf-8').startswith('<?xml')
        assert 'stale' not in output_path.read_text(encoding='utf-8')

    def test_unwritable_path(self, beverages, tmp_path):
        """Test a path that cannot be opened surfaces a write error"""
        with pytest.raises(SinkWriteError, match="Cannot open"):
            serialize_to_path([beverages], SerializationMode.OBJECT_GRAPH, tmp_path)
