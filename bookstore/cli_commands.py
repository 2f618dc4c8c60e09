"""
Flask CLI commands for pricing checks and API diagnostics.

Commands:
- flask price-item: Price one order line given as JSON
- flask check-api: Check that the remote bookstore API answers
"""

import json

import click
from flask import current_app

from bookstore.services.bookstore_client import BookstoreApiClient
from bookstore.services.pricing_service import price_line


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('price-item')
    @click.argument('item_json')
    def price_item(item_json):
        """Price an order line, e.g. flask price-item '{"price": 40, "conditionType": "USED", "quantity": 3}'."""
        try:
            item = json.loads(item_json)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f'Invalid JSON: {e}', param_hint='ITEM_JSON')
        if not isinstance(item, dict):
            raise click.BadParameter('Expected a JSON object.', param_hint='ITEM_JSON')

        line = price_line(item, current_app.config.get('CURRENCY_SYMBOL', '$'))
        click.echo(f"Condition:  {line['condition']}")
        click.echo(f"Quantity:   {line['quantity']}")
        click.echo(f"Unit price: {line['unit_price_display']}")
        click.echo(f"Subtotal:   {line['subtotal_display']}")
        if line['is_used']:
            click.echo(f"Base price: {line['display_base_price_display']} {line['discount_label']}")

    @app.cli.command('check-api')
    @click.option('--base-url', default=None, help='API base URL (defaults to BOOKSTORE_API_BASE)')
    def check_api(base_url):
        """Ping the remote bookstore API."""
        client = BookstoreApiClient(base_url=base_url)
        if client.ping():
            click.echo(click.style(f'API reachable: {client.base_url}', fg='green'))
        else:
            click.echo(click.style(f'API unreachable: {client.base_url}', fg='red'))
            raise SystemExit(1)
