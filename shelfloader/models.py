"""Pydantic models describing backend payloads."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Genre(BaseModel):
    """A genre entity from the backend taxonomy."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    external_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("external_id", "externalId", "tmdbId"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value


class ContentItem(BaseModel):
    """A single movie or show card on a shelf."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    title: str = Field(validation_alias=AliasChoices("title", "name"))
    release_date: str = Field(
        default="",
        validation_alias=AliasChoices(
            "release_date", "releaseDate", "firstAirDate", "first_air_date"
        ),
    )
    rating: float = Field(
        default=0.0,
        validation_alias=AliasChoices("rating", "voteAverage", "vote_average"),
    )
    poster_ref: str | None = Field(
        default=None,
        validation_alias=AliasChoices("poster_ref", "posterRef", "posterPath"),
    )
    genre_refs: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("genre_refs", "genreRefs", "genres"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("release_date", mode="before")
    @classmethod
    def _coerce_release_date(cls, value: object) -> object:
        if value is None:
            return ""
        return value

    @field_validator("rating", mode="before")
    @classmethod
    def _coerce_rating(cls, value: object) -> object:
        if value is None:
            return 0.0
        return value

    @field_validator("genre_refs", mode="before")
    @classmethod
    def _flatten_genre_refs(cls, value: object) -> object:
        """Accept bare ids as well as populated genre documents."""

        if value is None:
            return ()
        if not isinstance(value, list | tuple):
            return value
        refs: list[str] = []
        for entry in value:
            if isinstance(entry, dict):
                ref = entry.get("_id") or entry.get("id")
                if ref is None:
                    raise ValueError("Genre reference is missing its id")
                refs.append(str(ref))
            else:
                refs.append(str(entry))
        return tuple(refs)

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": self.id,
            "title": self.title,
            "releaseDate": self.release_date,
            "rating": self.rating,
            "genreRefs": list(self.genre_refs),
        }
        if self.poster_ref:
            payload["posterRef"] = self.poster_ref
        return payload


class ItemPage(BaseModel):
    """One page of a shelf as returned by the backend.

    Both fields are required: a body without them is a failed fetch rather
    than an empty page.
    """

    items: list[ContentItem] = Field(
        validation_alias=AliasChoices("items", "movies", "tvShows")
    )
    total: int = Field(ge=0)
