"""Apply one default-file diff to one locale strings.xml."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from .resources import (
    ResourceSet,
    StringResource,
    StringsDocument,
    order_resources,
    write_bytes,
)


def merge_translations(existing: ResourceSet, translations: Mapping[str, str]) -> ResourceSet:
    """Overlay ``translations`` on ``existing``.

    Entries marked ``translatable="false"`` in the locale file keep their value.
    """
    merged = dict(existing)
    for name, value in translations.items():
        current = merged.get(name)
        if current is None:
            merged[name] = StringResource(name=name, value=value)
        elif current.translatable:
            merged[name] = StringResource(name=name, value=value, translatable=True)
    return merged


def reconcile(
    target_path: Path,
    translations: Mapping[str, str],
    deleted_keys: Iterable[str],
    current_order: Sequence[str],
    force_order_sync: bool = False,
) -> bool:
    """Bring ``target_path`` in line with the default file.

    Returns True when the file was rewritten. The resulting string order is
    ``current_order`` restricted to keys the locale file ends up holding.
    Comments, attributes and resources other than ``<string>`` are kept.
    """
    target_path = Path(target_path)
    deleted = list(deleted_keys)

    if not translations:
        if not (deleted or force_order_sync):
            return False
        if not target_path.exists():
            logging.info("Nothing to reorder; %s does not exist.", target_path)
            return False

    document = StringsDocument.load(target_path)
    existing = document.resources()
    updated = merge_translations(existing, translations)
    for name, resource in updated.items():
        if existing.get(name) != resource:
            document.set_value(name, resource.value)

    document.arrange(list(order_resources(updated, current_order, exclude=deleted)))

    data = document.to_bytes()
    if target_path.exists() and target_path.read_bytes() == data:
        logging.info("%s already up to date.", target_path)
        return False
    write_bytes(target_path, data)
    return True
