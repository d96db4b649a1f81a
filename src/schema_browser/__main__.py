"""
Main entry point for the schema browser command line
"""
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from schema_browser.connectors.factory import ConnectorFactory
from schema_browser.core.browser import PageResult, TableBrowser
from schema_browser.core.config import Config
from schema_browser.core.errors import SchemaBrowserError
from schema_browser.core.query_generator import QueryGenerator
from schema_browser.models.paging import SortDirection
from schema_browser.models.value import Value
from schema_browser.utils.logger import setup_logging
from schema_browser.utils.presenter import present_row

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='schema-browser',
                                     description='Browse and query tables of a database')
    parser.add_argument('--config', default=os.getenv('CONFIG_FILE'),
                        help='YAML configuration file (default: $CONFIG_FILE)')
    parser.add_argument('--database', help='Database to use instead of the configured one')

    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('databases', help='List databases')
    commands.add_parser('tables', help='List tables')

    columns = commands.add_parser('columns', help='Describe the columns and indexes of a table')
    columns.add_argument('table')

    browse = commands.add_parser('browse', help='Show one page of a table')
    browse.add_argument('table')
    browse.add_argument('--page', type=int, default=1)
    browse.add_argument('--page-size', type=int)
    browse.add_argument('--sort', help='Column to sort on')
    browse.add_argument('--desc', action='store_true', help='Sort descending')

    query = commands.add_parser('query', help='Run a query or command script')
    query.add_argument('text')

    ask = commands.add_parser('ask', help='Generate a query from a natural-language request')
    ask.add_argument('table')
    ask.add_argument('request')

    return parser


def load_config(config_file: Optional[str]) -> Config:
    """YAML file when given, otherwise environment variables only"""
    if config_file:
        if not Path(config_file).exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        return Config.from_yaml(config_file)
    return Config()


def format_rows(rows: List[Dict[str, Value]]) -> str:
    """Render rows as a tab-separated table of cell previews"""
    if not rows:
        return "(no rows)"
    headers = list(rows[0].keys())
    lines = ["\t".join(headers)]
    for row in rows:
        cells = present_row(row)
        lines.append("\t".join(cells[name].preview if name in cells else "" for name in headers))
    return "\n".join(lines)


def format_page(result: PageResult) -> str:
    footer = (f"Page {result.page}/{result.total_pages}, "
              f"{result.total} rows, {result.page_size} per page")
    return f"{format_rows(result.rows)}\n{footer}"


def run(args: argparse.Namespace, config: Config) -> str:
    """Execute one command and return its output text"""
    connection = config.connection
    connector_config = connection.to_connector_config()
    if args.database:
        connector_config['database'] = args.database
    database = connector_config.get('database')

    generator = QueryGenerator(config.ai.model_dump()) if args.command == 'ask' else None

    with ConnectorFactory.create_connector(connection.type, connector_config) as connector:
        browser = TableBrowser(
            connector,
            page_size=config.browser.page_size,
            max_page_size=config.browser.max_page_size,
            generator=generator
        )

        if args.command == 'databases':
            return "\n".join(browser.list_databases())

        if args.command == 'tables':
            return "\n".join(t.name for t in browser.list_tables(database))

        if args.command == 'columns':
            browser.table = args.table
            browser.database = database
            browser.reload_schema()
            return browser.catalog.describe()

        if args.command == 'browse':
            browser.select_table(args.table, database)
            if args.page_size:
                browser.set_page_size(args.page_size)
            if args.sort:
                direction = SortDirection.DESCENDING if args.desc else SortDirection.ASCENDING
                browser.set_sort(args.sort, direction)
            result = browser.set_page(args.page) if args.page != 1 else browser.current_page
            return format_page(result)

        if args.command == 'query':
            return format_rows(browser.run_query(args.text))

        if args.command == 'ask':
            browser.table = args.table
            browser.database = database
            browser.reload_schema()
            return browser.generate_query(args.request)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main function"""
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.logging.model_dump())

    try:
        print(run(args, config))
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except SchemaBrowserError as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
