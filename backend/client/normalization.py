"""
Normalization of stored memory documents into the canonical Memory shape.

Records reach the client in several layouts: the API's camelCase JSON, the
legacy local-storage layout (user_id, username, image_url, likes,
created_at) and exports from the old document database (_id, possibly as
{"$oid": ...}). Renderers only ever see the canonical Memory.
"""

import logging
from typing import Any, Iterable, List

from domain.entities.memory import Comment, Memory
from domain.exceptions import ValidationError
from utils.serializers import parse_timestamp

logger = logging.getLogger("Normalization")


def _first(raw: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return default


def _normalize_id(value: Any) -> str:
    if isinstance(value, dict):
        value = value.get("$oid")
    if value is None or value == "":
        raise ValidationError("Memory record has no id")
    return str(value)


def normalize_liked_by(value: Any) -> List[int]:
    """Integer user ids, deduplicated in like order; unreadable entries are dropped."""
    liked_by: List[int] = []
    for uid in value or []:
        try:
            uid = int(uid)
        except (TypeError, ValueError):
            continue
        if uid not in liked_by:
            liked_by.append(uid)
    return liked_by


def normalize_memory(raw: dict) -> Memory:
    """
    Map a stored record, in any known layout, to a Memory.

    Missing likedBy and comments default to empty lists and likeCount is
    always recomputed from likedBy, so a stale "likes" counter never leaks
    through.

    Raises:
        ValidationError: record is not a mapping, has no id, or has an
            unreadable author id or comment
    """
    if not isinstance(raw, dict):
        raise ValidationError("Memory record must be an object")

    liked_by = normalize_liked_by(raw.get("likedBy"))
    author_id = _first(raw, "authorId", "user_id", "userId", default=0)
    try:
        author_id = int(author_id)
    except (TypeError, ValueError):
        raise ValidationError(f"Memory record has an invalid author id: {author_id!r}")

    try:
        comments = [Comment.from_document(doc) for doc in raw.get("comments") or [] if isinstance(doc, dict)]
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Memory record has an unreadable comment: {e}")

    return Memory(
        id=_normalize_id(_first(raw, "id", "_id")),
        author_id=author_id,
        author_name=_first(raw, "authorName", "username", default=""),
        title=_first(raw, "title", default=""),
        description=_first(raw, "description", default=""),
        image_ref=_first(raw, "imageRef", "image_url", default=""),
        like_count=len(liked_by),
        liked_by=liked_by,
        comments=comments,
        created_at=parse_timestamp(_first(raw, "createdAt", "created_at")),
    )


def normalize_memories(raws: Iterable[dict]) -> List[Memory]:
    """Normalize a batch, skipping (and logging) records that can't be read."""
    memories = []
    for raw in raws:
        try:
            memories.append(normalize_memory(raw))
        except ValidationError as e:
            logger.warning(f"Skipping unreadable memory record: {e.message}")
    return memories
