"""
Main orchestrator for the catalog export

Orchestrates the complete workflow:
1. Loading configuration
2. Opening the catalog source (database or CSV files)
3. Fetching categories with their products
4. Exporting to XML (elements and/or attributes) and JSON
"""

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

from catalog_export.catalog.records import CategoryRecord
from catalog_export.catalog.source import CatalogSource, CatalogSourceError
from catalog_export.exporters.errors import SerializationError
from catalog_export.exporters.json_exporter import JSONExporter
from catalog_export.exporters.xml_exporter import DEFAULT_INDENT, XMLExporter
from catalog_export.processors.csv_source import CSVCatalogSource
from catalog_export.storage.database import DatabaseManager
from catalog_export.utils.config_helper import ConfigHelper, get_config
from catalog_export.utils.error_handler import ErrorHandler, ErrorType
from catalog_export.utils.logger import setup_logger

EXPORT_FORMATS = ('xml', 'xml-attributes', 'json')


class CatalogExportProcessor:
    """
    Main orchestrator for the catalog export workflow.
    """

    def __init__(self, config: Optional[ConfigHelper] = None, error_handler: Optional[ErrorHandler] = None):
        """
        Initialize the processor.

        Args:
            config: Configuration (the process-wide one if not provided)
            error_handler: Error ledger (created from configuration if not provided)
        """
        self.config = config or get_config()
        self.logger = setup_logger(name="catalog_export", log_level=self.config.get_log_level())
        self.error_handler = error_handler or ErrorHandler(self.config.get_errors_csv_path())

        self.source: Optional[CatalogSource] = None
        self.db_manager: Optional[DatabaseManager] = None

    def setup_source(
        self,
        source_name: Optional[str] = None,
        categories_csv: Optional[Path] = None,
        products_csv: Optional[Path] = None,
        create_tables: bool = False
    ) -> bool:
        """
        Open the catalog source.

        Args:
            source_name: 'database' or 'csv' (CATALOG_SOURCE if None)
            categories_csv: Categories CSV path for the csv source
            products_csv: Products CSV path for the csv source
            create_tables: Create the catalog tables when using the database

        Returns:
            True if the source is ready, False otherwise
        """
        source_name = source_name or self.config.get_catalog_source()
        self.logger.info(f"Setting up {source_name} source...")

        if source_name == 'csv':
            self.source = CSVCatalogSource(
                categories_csv or self.config.get_categories_csv_path(),
                products_csv or self.config.get_products_csv_path()
            )
            self.logger.info("✓ CSV source ready")
            return True

        self.db_manager = DatabaseManager(self.config.get_database_url())
        if not self.db_manager.connect():
            self.error_handler.record_error(
                'database',
                ErrorType.SOURCE_ERROR,
                'Failed to connect to database'
            )
            return False
        self.logger.info("✓ Database connected")

        if create_tables and not self.db_manager.create_tables():
            self.logger.error("Failed to create database tables")
            return False

        self.source = self.db_manager
        return True

    def fetch_catalog(self) -> Optional[List[CategoryRecord]]:
        """
        Fetch the catalog snapshot from the source.

        Returns:
            Categories with products, or None if the source failed
        """
        self.logger.info("=" * 60)
        self.logger.info("Fetching catalog")
        self.logger.info("=" * 60)

        if not self.source:
            self.logger.error("Catalog source not initialized")
            return None

        try:
            categories = self.source.fetch_categories_with_products()
        except (CatalogSourceError, FileNotFoundError, ValueError) as e:
            self.error_handler.record_exception(type(self.source).__name__, e)
            return None

        self.logger.info(f"✓ Fetched {len(categories)} categories")
        return categories

    def export_data(
        self,
        categories: List[CategoryRecord],
        output_dir: Path,
        formats: List[str],
        pretty: bool = True
    ) -> Dict[str, bool]:
        """
        Export the catalog in every requested format.

        Args:
            categories: Catalog snapshot
            output_dir: Directory receiving the documents
            formats: Any of 'xml', 'xml-attributes', 'json'
            pretty: Indent output

        Returns:
            Mapping of format to success flag
        """
        self.logger.info("=" * 60)
        self.logger.info("Exporting data")
        self.logger.info("=" * 60)

        # EXPORT_INDENT=0 forces compact output
        indent = self.config.get_export_indent()
        if indent is None:
            pretty = False

        exporters = {
            'xml': XMLExporter(self.source, use_attributes=False, indent=indent or DEFAULT_INDENT),
            'xml-attributes': XMLExporter(self.source, use_attributes=True, indent=indent or DEFAULT_INDENT),
            'json': JSONExporter(self.source, indent=indent or DEFAULT_INDENT),
        }

        results = {}
        for export_format in formats:
            exporter = exporters[export_format]
            output_path = output_dir / exporter.default_file_name
            try:
                exporter.export_categories_list(categories, output_path, pretty=pretty)
            except SerializationError as e:
                self.error_handler.record_exception(str(output_path), e, mode=exporter.mode.value)
                results[export_format] = False
                continue

            self.logger.info(f"✓ {export_format} exported to: {output_path}")
            results[export_format] = True

        return results

    def run(
        self,
        source_name: Optional[str] = None,
        formats: Optional[List[str]] = None,
        output_dir: Optional[Path] = None,
        pretty: bool = True,
        categories_csv: Optional[Path] = None,
        products_csv: Optional[Path] = None,
        create_tables: bool = False
    ) -> bool:
        """
        Run the complete workflow.

        Returns:
            True if every requested export succeeded, False otherwise
        """
        self.logger.info("=" * 60)
        self.logger.info("Catalog Export")
        self.logger.info("=" * 60)

        if not self.setup_source(source_name, categories_csv, products_csv, create_tables):
            return False

        categories = self.fetch_catalog()
        if categories is None:
            return False

        output_dir = output_dir or self.config.get_export_dir()
        results = self.export_data(categories, output_dir, list(formats or EXPORT_FORMATS), pretty=pretty)

        self.logger.info("=" * 60)
        self.logger.info("Export Summary")
        self.logger.info("=" * 60)
        self.logger.info(f"Categories: {len(categories)}")
        self.logger.info(f"Products: {sum(category.count for category in categories)}")
        for export_format, success in results.items():
            self.logger.info(f"{export_format}: {'ok' if success else 'FAILED'}")
        self.logger.info("=" * 60)

        return all(results.values())

    def cleanup(self):
        """Cleanup connections."""
        if self.db_manager:
            self.db_manager.disconnect()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Catalog Export - Export product categories and products to XML and JSON"
    )

    parser.add_argument(
        '--source',
        choices=['database', 'csv'],
        help='Catalog source (default: from CATALOG_SOURCE env var or database)'
    )

    parser.add_argument(
        '--format',
        choices=list(EXPORT_FORMATS) + ['all'],
        default='all',
        help='Export format (default: all)'
    )

    parser.add_argument(
        '--output-dir',
        type=Path,
        help='Directory for exported files (default: from EXPORT_DIR env var or data/exports)'
    )

    parser.add_argument(
        '--compact',
        action='store_true',
        help='Write documents without indentation'
    )

    parser.add_argument(
        '--categories-csv',
        type=Path,
        help='Categories CSV file (csv source only)'
    )

    parser.add_argument(
        '--products-csv',
        type=Path,
        help='Products CSV file (csv source only)'
    )

    parser.add_argument(
        '--create-tables',
        action='store_true',
        help='Create catalog tables if missing (database source only)'
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    processor = CatalogExportProcessor()

    try:
        success = processor.run(
            source_name=args.source,
            formats=list(EXPORT_FORMATS) if args.format == 'all' else [args.format],
            output_dir=args.output_dir,
            pretty=not args.compact,
            categories_csv=args.categories_csv,
            products_csv=args.products_csv,
            create_tables=args.create_tables
        )

        sys.exit(0 if success else 1)

    except KeyboardInterrupt:
        processor.logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        processor.logger.error(f"Unexpected error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        processor.cleanup()


if __name__ == "__main__":
    main()
