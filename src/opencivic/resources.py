"""Typed helpers for the Open Civic Data endpoints.

:class:`OpenCivicData` is a thin layer over
:meth:`~opencivic.client.api.OpenCivicClient.query` that knows each
endpoint's method path and record type.  Filters are passed through
unchanged as query arguments, so anything the API accepts (``name``,
``classification``, ``page``, ``per_page``, ...) works.
"""

from __future__ import annotations

from typing import Any, Optional, TypeVar

from opencivic.client.api import OpenCivicClient
from opencivic.models import (
    BaseRecord,
    Bill,
    Division,
    Event,
    Jurisdiction,
    Organization,
    Page,
    Person,
    Record,
    Vote,
)

RecordT = TypeVar("RecordT", bound=BaseRecord)

_ID_TYPES: dict[str, type[BaseRecord]] = {
    "ocd-division": Division,
    "ocd-jurisdiction": Jurisdiction,
    "ocd-organization": Organization,
    "ocd-person": Person,
    "ocd-bill": Bill,
    "ocd-vote": Vote,
    "ocd-event": Event,
}


def record_type_for(ocd_id: str) -> type[BaseRecord]:
    """Guess the record type from an OCD id prefix (``ocd-person/...`` -> :class:`Person`).

    Unknown prefixes map to :class:`~opencivic.models.Record`.
    """
    prefix = ocd_id.split("/", 1)[0]
    return _ID_TYPES.get(prefix, Record)


class OpenCivicData:
    """Endpoint helpers bound to an open :class:`OpenCivicClient`.

    Example::

        with OpenCivicClient(resolve_settings()) as client:
            api = OpenCivicData(client)
            for person in api.people(name="Smith").results:
                print(person.name)
    """

    def __init__(self, client: OpenCivicClient) -> None:
        self._client = client

    @property
    def client(self) -> OpenCivicClient:
        return self._client

    def _list(self, endpoint: str, record_type: type[RecordT], filters: dict[str, Any]) -> Page[RecordT]:
        return self._client.query([endpoint], filters, Page[record_type])  # type: ignore[valid-type]

    def jurisdictions(self, **filters: Any) -> Page[Jurisdiction]:
        return self._list("jurisdictions", Jurisdiction, filters)

    def divisions(self, **filters: Any) -> Page[Division]:
        return self._list("divisions", Division, filters)

    def organizations(self, **filters: Any) -> Page[Organization]:
        return self._list("organizations", Organization, filters)

    def people(self, **filters: Any) -> Page[Person]:
        return self._list("people", Person, filters)

    def bills(self, **filters: Any) -> Page[Bill]:
        return self._list("bills", Bill, filters)

    def votes(self, **filters: Any) -> Page[Vote]:
        return self._list("votes", Vote, filters)

    def events(self, **filters: Any) -> Page[Event]:
        return self._list("events", Event, filters)

    def get(
        self,
        ocd_id: str,
        record_type: Optional[type[RecordT]] = None,
        **filters: Any,
    ) -> Any:
        """Fetch a single object by its OCD id.

        Args:
            ocd_id: e.g. ``ocd-person/4c8b6bde-...``.
            record_type: Record class to decode into; guessed from the id
                prefix when omitted.
            **filters: Extra query arguments (e.g. ``fields``).
        """
        target = record_type or record_type_for(ocd_id)
        return self._client.query([ocd_id], filters, target)
