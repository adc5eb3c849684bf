"""
XML exporter for the product catalog
"""

from pathlib import Path
from typing import List, Optional

from catalog_export.catalog.records import CategoryRecord
from catalog_export.catalog.source import CatalogSource, CatalogSourceError
from catalog_export.exporters.errors import SerializationError
from catalog_export.exporters.serializer import SerializationSummary, serialize_to_path, serialize_to_string
from catalog_export.exporters.writers import SerializationMode
from catalog_export.storage.database import DatabaseManager
from catalog_export.utils.logger import setup_logger

DEFAULT_INDENT = 2


class XMLExporter:
    """
    Exporter for the catalog to XML, with fields written either as child
    elements or as attributes.
    """

    def __init__(
        self,
        source: Optional[CatalogSource] = None,
        use_attributes: bool = False,
        indent: int = DEFAULT_INDENT
    ):
        """
        Initialize XML exporter.

        Args:
            source: Catalog source (optional, a DatabaseManager is created if not provided)
            use_attributes: Write fields as attributes instead of child elements
            indent: Spaces per nesting level when exporting pretty output
        """
        self.logger = setup_logger(name="xml_exporter")
        self.source = source
        self.use_attributes = use_attributes
        self.indent = indent

    @property
    def mode(self) -> SerializationMode:
        if self.use_attributes:
            return SerializationMode.TAGGED_ATTRIBUTES
        return SerializationMode.TAGGED_ELEMENTS

    @property
    def default_file_name(self) -> str:
        return f"xml-useAttributes-{self.use_attributes}.xml"

    def export_to_file(self, output_path: Path, pretty: bool = True) -> SerializationSummary:
        """
        Load the catalog from the source and export it to an XML file.

        Args:
            output_path: Path to output XML file
            pretty: If True, indent nested elements

        Returns:
            Summary of what was written

        Raises:
            CatalogSourceError: If the catalog cannot be loaded
            SerializationError: If the document cannot be written
        """
        if not self.source:
            database_manager = DatabaseManager()
            if not database_manager.connect():
                raise CatalogSourceError("Failed to connect to database")
            self.source = database_manager

        self.logger.info(f"Loading catalog for XML export: {output_path}")
        categories = self.source.fetch_categories_with_products()

        return self.export_categories_list(categories, output_path, pretty=pretty)

    def export_categories_list(
        self,
        categories: List[CategoryRecord],
        output_path: Path,
        pretty: bool = True,
        remove_partial: bool = True
    ) -> SerializationSummary:
        """
        Export already loaded categories to an XML file.

        Args:
            categories: Categories with their products, in export order
            output_path: Path to output XML file
            pretty: If True, indent nested elements
            remove_partial: Delete the file if writing fails midway

        Returns:
            Summary of what was written

        Raises:
            SerializationError: If the document cannot be written
        """
        self.logger.info(f"Exporting {len(categories)} categories to XML ({self.mode.value}): {output_path}")

        try:
            summary = serialize_to_path(
                categories,
                self.mode,
                output_path,
                indent=self.indent if pretty else None
            )
        except SerializationError as e:
            self.logger.error(f"Error exporting to XML: {e}")
            if remove_partial and output_path.exists():
                output_path.unlink()
                self.logger.info(f"Removed partial file: {output_path}")
            raise

        for warning in summary.warnings:
            self.logger.warning(f"{warning} - wrote empty document to {output_path}")

        self.logger.info(
            f"Successfully exported {summary.categories} categories "
            f"({summary.products} products) to {output_path}"
        )
        return summary

    def export_to_string(self, categories: List[CategoryRecord], pretty: bool = True) -> str:
        """
        Export categories to an XML string.

        Raises:
            SerializationError: If a value cannot be represented in XML
        """
        try:
            return serialize_to_string(categories, self.mode, indent=self.indent if pretty else None)
        except SerializationError as e:
            self.logger.error(f"Error exporting to XML string: {e}")
            raise
