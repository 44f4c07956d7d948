"""
Local Ticket Data Access Object.

WHAT: Record-level operations (add, find, list, update) over the
whole-document local ticket store.

WHY: The store only knows how to read and replace the entire document.
This DAO turns that into ticket operations and serializes every
read-modify-write cycle, so two concurrent requests in this process
cannot overwrite each other's changes.

HOW: One ``asyncio.Lock`` per store instance guards each cycle. Writers in
other processes sharing the same file can still race; there is no file
locking.
"""

import asyncio
import logging
import weakref
from typing import Callable, List, Optional

from support_api.db.ticket_store import TicketStore
from support_api.schemas.ticket import Ticket

logger = logging.getLogger(__name__)


_store_locks: "weakref.WeakKeyDictionary[TicketStore, asyncio.Lock]" = weakref.WeakKeyDictionary()


def _lock_for(store: TicketStore) -> asyncio.Lock:
    lock = _store_locks.get(store)
    if lock is None:
        lock = asyncio.Lock()
        _store_locks[store] = lock
    return lock


class LocalTicketDAO:
    """
    Data Access Object for tickets in the local JSON document.

    Tickets are identified by ``ticket_number``. When duplicates exist the
    first one in document order wins for lookups and updates.
    """

    def __init__(self, store: TicketStore):
        """
        Initialize LocalTicketDAO with a ticket store.

        Args:
            store: Whole-document ticket store
        """
        self.store = store
        self._lock = _lock_for(store)

    async def list_all(self) -> List[Ticket]:
        """Return every stored ticket in document order."""
        async with self._lock:
            return list(self.store.read_all().tickets)

    async def add(self, ticket: Ticket) -> Ticket:
        """
        Append a ticket to the document.

        Note: Ticket numbers are not checked for uniqueness; a duplicate
        submission creates a second entry.

        Args:
            ticket: New ticket

        Returns:
            The stored ticket
        """
        async with self._lock:
            document = self.store.read_all()
            document.tickets.append(ticket)
            self.store.write_all(document)
        return ticket

    async def get_by_number(self, ticket_number: str) -> Optional[Ticket]:
        """
        Find a ticket by exact ticket number.

        Args:
            ticket_number: Ticket number to match

        Returns:
            First matching ticket, or None
        """
        async with self._lock:
            document = self.store.read_all()
        return next(
            (t for t in document.tickets if t.ticket_number == ticket_number),
            None,
        )

    async def list_for_user(self, user_id: str) -> List[Ticket]:
        """
        List tickets belonging to a user.

        WHAT: Matches tickets whose ``user_email`` equals ``user_id`` or
        whose ``ticket_number`` contains ``user_id``.

        WHY: The loose match lets customers look tickets up by a partial
        ticket number as well as by their email.

        Args:
            user_id: Email address or ticket number fragment

        Returns:
            Matching tickets in document order
        """
        async with self._lock:
            document = self.store.read_all()
        return [
            t
            for t in document.tickets
            if t.user_email == user_id or user_id in t.ticket_number
        ]

    async def update(
        self,
        ticket_number: str,
        apply: Callable[[Ticket], None],
        default: Optional[Ticket] = None,
    ) -> Optional[Ticket]:
        """
        Modify a ticket in place, inserting ``default`` when it is missing.

        WHAT: Reads the document, applies ``apply`` to the first ticket with
        a matching number (or to ``default``, which is then appended), and
        writes the document back, all under the store lock.

        Args:
            ticket_number: Ticket number to update
            apply: Mutation applied to the ticket
            default: Ticket to insert when none matches (upsert)

        Returns:
            The updated ticket, or None when nothing matched and no default
            was given
        """
        async with self._lock:
            document = self.store.read_all()
            ticket = next(
                (t for t in document.tickets if t.ticket_number == ticket_number),
                None,
            )
            if ticket is None:
                if default is None:
                    return None
                ticket = default.model_copy(deep=True)
                document.tickets.append(ticket)
                logger.info(f"Inserting ticket {ticket_number} into local store")
            apply(ticket)
            self.store.write_all(document)
        return ticket
