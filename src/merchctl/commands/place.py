"""Command: create or update an entity at a display order."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click

from merchctl.commands._base import (
    KIND_CHOICE,
    MerchCommand,
    scope_usage,
    scope_variant,
    section_option,
    variant_option,
)

if TYPE_CHECKING:
    from merchctl.commands._context import AppContext

_PLACE_EXAMPLES = """\
  merchctl place hero-slide --set title="Summer Sale" --set link_url=/sale \\
      --set desktop_image=img/d.jpg --set mobile_image=img/m.jpg
  merchctl place featured-item --variant tile --order 2 \\
      --data '{"title": "Engine Oils", "link_url": "/oils", "image": "img/oils.jpg"}'
  merchctl place menu-section --id MSEC-0002 --order 1 --confirm
  merchctl place menu-item --section MSEC-0001 --set category_id=CAT-0003
  merchctl place menu-link --set label=Deals --set href=/deals"""


def parse_payload(data: str | None, fields: tuple[str, ...]) -> dict[str, Any]:
    """Merge a JSON object from ``--data`` with ``--set key=value`` pairs."""
    payload: dict[str, Any] = {}
    if data:
        try:
            loaded = json.loads(data)
        except json.JSONDecodeError as exc:
            raise click.BadParameter(f"Invalid JSON: {exc}", param_hint="--data") from exc
        if not isinstance(loaded, dict):
            raise click.BadParameter("Expected a JSON object", param_hint="--data")
        payload.update(loaded)
    for item in fields:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected key=value, got {item!r}", param_hint="--set")
        payload[key.strip()] = value
    return payload


@click.command(cls=MerchCommand, examples=_PLACE_EXAMPLES)
@click.argument("kind", type=KIND_CHOICE, metavar="KIND")
@variant_option()
@section_option()
@click.option("--order", type=int, default=None, help="Display order (auto-assigned if omitted).")
@click.option("--id", "entity_id", default=None, help="Update this entity instead of creating.")
@click.option("--set", "fields", multiple=True, help="Payload field as key=value (repeatable).")
@click.option("--data", default=None, help="Payload fields as a JSON object.")
@click.option("--confirm", is_flag=True, help="Displace an occupant without prompting.")
@click.pass_obj
def place(
    app: AppContext,
    kind: str,
    variant: str | None,
    section_id: str | None,
    order: int | None,
    entity_id: str | None,
    fields: tuple[str, ...],
    data: str | None,
    confirm: bool,
) -> None:
    """Place an entity at a display order, displacing on confirmation."""
    from merchctl.services.placement import PlacementService

    variant = scope_variant(variant, section_id)
    payload = parse_payload(data, fields)
    svc = PlacementService(app.store)

    def run(confirmed: bool) -> Any:
        return svc.place(
            kind,
            payload,
            variant=variant,
            order=order,
            entity_id=entity_id,
            confirmed=confirmed,
        )

    with scope_usage():
        result = run(confirm)
        app.emit_placement(result, lambda: run(True))
