"""Poem record model and field-alias resolution."""

import json
from dataclasses import dataclass, field
from typing import Any

# Ordered candidate property names per logical field, first non-empty wins.
ID_KEYS = ("id", "_id")
AUTHOR_KEYS = ("author", "poet")
TITLE_KEYS = ("title", "name")
TEXT_KEYS = ("text", "content", "body")
DYNASTY_KEYS = ("dynasty",)
TIME_KEYS = ("time",)
IMAGE_KEYS = ("image",)


def first_present(props: dict[str, Any], keys: tuple[str, ...], default: Any = "") -> Any:
    """Return the first value under `keys` that is neither None nor empty."""
    for key in keys:
        value = props.get(key)
        if value is not None and value != "":
            return value
    return default


@dataclass
class PoemRecord:
    """
    A poem as shown in the poem list.

    `id` is the Neo4j internal identity, the snapshot's own id for fallback
    records, or None when neither exists.
    """

    id: Any
    author: str = ""
    title: str = ""
    text: str = ""
    dynasty: str = ""
    time: str = ""
    image: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "author": self.author,
            "title": self.title,
            "text": self.text,
            "dynasty": self.dynasty,
            "time": self.time,
            "image": self.image,
            "properties": self.properties,
        }

    def matches(self, term: str) -> bool:
        """Case-sensitive substring match over title, author and text."""
        return any(term in str(value) for value in (self.title, self.author, self.text))

    @classmethod
    def from_properties(
        cls, props: dict[str, Any], identity: int | str | None = None
    ) -> "PoemRecord":
        """Create from a property mapping (Neo4j node or snapshot item)."""
        return cls(
            id=identity,
            author=first_present(props, AUTHOR_KEYS),
            title=first_present(props, TITLE_KEYS),
            text=first_present(props, TEXT_KEYS),
            dynasty=first_present(props, DYNASTY_KEYS),
            time=first_present(props, TIME_KEYS),
            image=first_present(props, IMAGE_KEYS, default=None),
            properties=props,
        )


def dedupe_key(identity: Any) -> Any:
    """Hashable key for an id; snapshot ids may be objects such as {"$oid": ...}."""
    if isinstance(identity, (dict, list)):
        return json.dumps(identity, sort_keys=True, ensure_ascii=False)
    return identity


def dedupe_poems(records: list[PoemRecord]) -> list[PoemRecord]:
    """Keep the first record per id; records without an id are all kept."""
    seen: set[Any] = set()
    result: list[PoemRecord] = []
    for record in records:
        if record.id is not None:
            key = dedupe_key(record.id)
            if key in seen:
                continue
            seen.add(key)
        result.append(record)
    return result
