"""Canonical Pydantic models shared across all opencivic modules.

The models fall into two groups:

**Configuration** -- :class:`Settings`, persisted as JSON in the user's
config directory and resolved by :func:`~opencivic.config.resolve_settings`.

**API records** -- :class:`BaseRecord` and the Open Civic Data entities
built on it (:class:`Jurisdiction`, :class:`Division`,
:class:`Organization`, :class:`Person`, :class:`Bill`, :class:`Vote`,
:class:`Event`), plus the paginated envelope :class:`Page`.

Record fields are deliberately permissive (almost everything is optional)
because the API omits empty fields.  Properties a record does not declare
are never an error: they end up in ``extension_fields`` or
``additional_fields`` (see :mod:`opencivic.decoder`).
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Generic, Optional, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PrivateAttr

from opencivic.decoder import UNKNOWN_FIELD_HANDLER_KEY, route_unknown_field

DEFAULT_BASE_URL = "http://api.opencivicdata.org"


# --- Settings ---


class Settings(BaseModel):
    """Connection and cache settings for :class:`~opencivic.client.api.OpenCivicClient`.

    ``api_key`` is optional here so that partially filled config files
    validate; the client refuses to start without one.  Leaving
    ``cache_dir`` unset disables the response cache.
    """

    api_key: Optional[str] = Field(default=None, description="Open Civic Data API key")
    cache_dir: Optional[str] = Field(
        default=None, description="Directory for cached responses (unset disables caching)"
    )
    base_url: str = Field(default=DEFAULT_BASE_URL, description="API host")
    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


# --- Record base ---

API_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _parse_api_datetime(value: Any) -> Any:
    """Accept ``yyyy-MM-dd HH:mm:ss`` in addition to pydantic's ISO 8601 parsing."""
    if isinstance(value, str):
        try:
            return datetime.strptime(value, API_DATETIME_FORMAT)
        except ValueError:
            return value
    return value


ApiDateTime = Annotated[datetime, BeforeValidator(_parse_api_datetime)]


class BaseRecord(BaseModel):
    """Base class for every API record.

    Declared fields are validated normally.  Undeclared properties are
    collected once validation has finished and passed to the unknown-field
    handler found in the validation context (the default routes them into
    :attr:`extension_fields` and :attr:`additional_fields`).  Both mappings
    stay ``None`` until a property of their kind is seen.

    Example::

        record = decode_value({"id": "x", "+party": "Dem", "memo": 1}, Person)
        record.extension_fields   # {"+party": "Dem"}
        record.additional_fields  # {"memo": 1}
    """

    model_config = ConfigDict(extra="allow")

    _extension_fields: Optional[dict[str, Any]] = PrivateAttr(default=None)
    _additional_fields: Optional[dict[str, Any]] = PrivateAttr(default=None)

    def model_post_init(self, context: Any, /) -> None:
        extra = self.__pydantic_extra__
        if not extra:
            return
        handler = None
        if isinstance(context, dict):
            handler = context.get(UNKNOWN_FIELD_HANDLER_KEY)
        handler = handler or route_unknown_field
        unknown = dict(extra)
        extra.clear()
        for name, value in unknown.items():
            handler(self, name, value)

    @property
    def extension_fields(self) -> Optional[dict[str, Any]]:
        """Undeclared properties whose names start with ``+``."""
        return self._extension_fields

    @extension_fields.setter
    def extension_fields(self, value: Optional[dict[str, Any]]) -> None:
        self._extension_fields = value

    @property
    def additional_fields(self) -> Optional[dict[str, Any]]:
        """All other undeclared properties."""
        return self._additional_fields

    @additional_fields.setter
    def additional_fields(self, value: Optional[dict[str, Any]]) -> None:
        self._additional_fields = value

    def to_json_dict(self) -> dict[str, Any]:
        """Serialise declared fields plus both side mappings, recursively.

        Declared fields left at ``None`` are dropped, matching how the API
        omits empty fields.
        """
        data: dict[str, Any] = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value is None:
                continue
            data[name] = _to_json_value(value)
        if self._additional_fields:
            data.update(self._additional_fields)
        if self._extension_fields:
            data.update(self._extension_fields)
        return data


def _to_json_value(value: Any) -> Any:
    if isinstance(value, BaseRecord):
        return value.to_json_dict()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_json_value(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_json_value(item) for key, item in value.items()}
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    return value


class Record(BaseRecord):
    """A record with no declared fields; every property is captured as unknown."""


# --- Shared sub-records ---


class Link(BaseRecord):
    url: Optional[str] = None
    note: Optional[str] = None


class Source(BaseRecord):
    url: Optional[str] = None
    note: Optional[str] = None


class OtherName(BaseRecord):
    name: Optional[str] = None
    note: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class Identifier(BaseRecord):
    identifier: Optional[str] = None
    scheme: Optional[str] = None


class ContactDetail(BaseRecord):
    type: Optional[str] = None
    value: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None


class _Timestamped(BaseRecord):
    created_at: Optional[ApiDateTime] = None
    updated_at: Optional[ApiDateTime] = None


# --- Entities ---


class Division(_Timestamped):
    """A political geography, identified by an ``ocd-division/...`` id."""

    id: Optional[str] = None
    display_name: Optional[str] = None
    country: Optional[str] = None
    children: list[Division] = Field(default_factory=list)
    geometries: list[Any] = Field(default_factory=list)


class Jurisdiction(_Timestamped):
    """A governing body with authority over a division."""

    id: Optional[str] = None
    name: Optional[str] = None
    url: Optional[str] = None
    classification: Optional[str] = None
    division_id: Optional[str] = None
    feature_flags: list[str] = Field(default_factory=list)
    legislative_sessions: list[dict[str, Any]] = Field(default_factory=list)


class Membership(BaseRecord):
    id: Optional[str] = None
    organization_id: Optional[str] = None
    person_id: Optional[str] = None
    post_id: Optional[str] = None
    role: Optional[str] = None
    label: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class Organization(_Timestamped):
    id: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    classification: Optional[str] = None
    parent_id: Optional[str] = None
    jurisdiction_id: Optional[str] = None
    founding_date: Optional[str] = None
    dissolution_date: Optional[str] = None
    identifiers: list[Identifier] = Field(default_factory=list)
    other_names: list[OtherName] = Field(default_factory=list)
    contact_details: list[ContactDetail] = Field(default_factory=list)
    links: list[Link] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)


class Person(_Timestamped):
    id: Optional[str] = None
    name: Optional[str] = None
    sort_name: Optional[str] = None
    image: Optional[str] = None
    gender: Optional[str] = None
    summary: Optional[str] = None
    biography: Optional[str] = None
    national_identity: Optional[str] = None
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    identifiers: list[Identifier] = Field(default_factory=list)
    other_names: list[OtherName] = Field(default_factory=list)
    contact_details: list[ContactDetail] = Field(default_factory=list)
    memberships: list[Membership] = Field(default_factory=list)
    links: list[Link] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)


class BillAction(BaseRecord):
    organization_id: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    classification: list[str] = Field(default_factory=list)
    order: Optional[int] = None


class Bill(_Timestamped):
    id: Optional[str] = None
    identifier: Optional[str] = None
    title: Optional[str] = None
    legislative_session: Any = None
    from_organization_id: Optional[str] = None
    classification: list[str] = Field(default_factory=list)
    subject: list[str] = Field(default_factory=list)
    abstracts: list[dict[str, Any]] = Field(default_factory=list)
    other_titles: list[dict[str, Any]] = Field(default_factory=list)
    actions: list[BillAction] = Field(default_factory=list)
    sponsorships: list[dict[str, Any]] = Field(default_factory=list)
    documents: list[dict[str, Any]] = Field(default_factory=list)
    versions: list[dict[str, Any]] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)


class VoteCount(BaseRecord):
    option: Optional[str] = None
    value: Optional[int] = None


class PersonVote(BaseRecord):
    option: Optional[str] = None
    voter_name: Optional[str] = None
    voter_id: Optional[str] = None
    note: Optional[str] = None


class Vote(_Timestamped):
    id: Optional[str] = None
    identifier: Optional[str] = None
    motion_text: Optional[str] = None
    motion_classification: list[str] = Field(default_factory=list)
    start_date: Optional[str] = None
    result: Optional[str] = None
    organization_id: Optional[str] = None
    bill_id: Optional[str] = None
    counts: list[VoteCount] = Field(default_factory=list)
    votes: list[PersonVote] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)


class Event(_Timestamped):
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    classification: Optional[str] = None
    start_time: Optional[ApiDateTime] = None
    end_time: Optional[ApiDateTime] = None
    timezone: Optional[str] = None
    all_day: Optional[bool] = None
    status: Optional[str] = None
    location: Optional[dict[str, Any]] = None
    participants: list[dict[str, Any]] = Field(default_factory=list)
    agenda: list[dict[str, Any]] = Field(default_factory=list)
    links: list[Link] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)


# --- Pagination ---

RecordT = TypeVar("RecordT", bound=BaseRecord)


class Meta(BaseRecord):
    """Pagination block returned alongside list results."""

    count: Optional[int] = None
    per_page: Optional[int] = None
    page: Optional[int] = None
    max_page: Optional[int] = None
    total_count: Optional[int] = None


class Page(BaseRecord, Generic[RecordT]):
    """One page of list results: ``{"meta": {...}, "results": [...]}``."""

    meta: Optional[Meta] = None
    results: list[RecordT] = Field(default_factory=list)
