"""
Local Durable Mirror
====================

A stripped projection of the cart that survives across sessions. Each cart
is one row in a flat key-value table; the row's payload is a JSON array of
{id, kind, quantity, name, price}.

Only those fields are stored. Full catalog details are never persisted
(they would go stale), and customizations are not either: a customized line
is stored as a plain composite line with the price it was resolved at, since
the diff against its base recipe may not be reproducible after a session gap.
The base composite id is recovered from the synthesized line id on load so
the line can still be hydrated.

Write failures are logged and swallowed: a cart mutation must never fail
because the mirror could not be written.
"""

import logging
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.attributes import flag_modified

from ..models import CartMirrorSlot
from .identity import split_custom_id
from .models import CartLine, LineKind

logger = logging.getLogger(__name__)


class DurableMirror:
    """
    Key-value slot persistence for one cart.

    Args:
        session_factory: SQLAlchemy sessionmaker bound to the mirror database
        slot_key: Key of the slot (one per cart session)
    """

    def __init__(self, session_factory: sessionmaker, slot_key: str = "cart"):
        self._session_factory = session_factory
        self.slot_key = slot_key

    def save(self, lines: Sequence[CartLine]) -> None:
        payload = [line.display_fields() for line in lines]
        db = self._session_factory()
        try:
            slot = db.query(CartMirrorSlot).filter(
                CartMirrorSlot.slot_key == self.slot_key
            ).first()
            if slot:
                slot.payload = payload
                flag_modified(slot, "payload")
            else:
                db.add(CartMirrorSlot(slot_key=self.slot_key, payload=payload))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to write cart mirror %s: %s", self.slot_key, e)
        finally:
            db.close()

    def load(self) -> List[CartLine]:
        """
        Read the slot back as lines without details.

        Entries that do not parse are skipped; an unreadable slot yields an
        empty cart.
        """
        db = self._session_factory()
        try:
            slot = db.query(CartMirrorSlot).filter(
                CartMirrorSlot.slot_key == self.slot_key
            ).first()
            payload = slot.payload if slot and slot.payload is not None else []
        except SQLAlchemyError as e:
            logger.error("Failed to read cart mirror %s: %s", self.slot_key, e)
            return []
        finally:
            db.close()

        if not isinstance(payload, list):
            logger.warning("Cart mirror %s is not a list, ignoring it", self.slot_key)
            return []

        lines = []
        for entry in payload:
            line = self._line_from_entry(entry)
            if line is not None:
                lines.append(line)
        return lines

    def clear(self) -> None:
        db = self._session_factory()
        try:
            db.query(CartMirrorSlot).filter(
                CartMirrorSlot.slot_key == self.slot_key
            ).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to clear cart mirror %s: %s", self.slot_key, e)
        finally:
            db.close()

    def _line_from_entry(self, entry: Dict[str, Any]):
        try:
            line = CartLine(
                id=entry["id"],
                kind=entry["kind"],
                quantity=entry["quantity"],
                name=entry.get("name") or entry["id"],
                unit_price=entry.get("price", 0),
            )
        except (KeyError, TypeError, ValidationError) as e:
            logger.warning("Skipping unreadable mirror entry %r: %s", entry, e)
            return None

        if line.kind == LineKind.COMPOSITE:
            base_id, is_custom = split_custom_id(line.id)
            if is_custom:
                line.base_id = base_id
        return line
