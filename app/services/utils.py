import re
from typing import Any, Iterable
from uuid import UUID
from slugify import slugify
from app.core.exceptions import InvalidId, InvalidName

MAX_NAME_LENGTH = 100


def make_slug(name: str) -> str:
    # Punctuation is dropped, not turned into a separator. Underscores and
    # non-ASCII letters survive
    stripped = re.sub(r"[^\w\s-]", "", name.strip())
    return slugify(stripped, regex_pattern=r"[^\w-]+", allow_unicode=True)


def validate_category_name(name: str | None) -> str:
    """Return the trimmed name, or raise InvalidName."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidName("Category name is required")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise InvalidName(f"Category name cannot exceed {MAX_NAME_LENGTH} characters")
    if not make_slug(cleaned):
        raise InvalidName("Category name must contain at least one letter or digit")
    return cleaned


def parse_id(value: Any, kind: str = "id") -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (TypeError, ValueError, AttributeError):
        raise InvalidId(value, kind)


def normalize_membership(
    category_ids: Iterable[Any] | None, legacy_category_id: Any = None
) -> tuple[list[UUID], UUID | None]:
    """Normalize a product's membership set and its legacy single category.

    Empty entries are dropped and duplicates removed keeping first occurrence.
    A legacy id missing from the set is merged into it. The legacy id falls
    back to the first member and is cleared when the set is empty.
    """
    ids: list[UUID] = []
    for raw in category_ids or []:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            continue
        category_id = parse_id(raw, "category id")
        if category_id not in ids:
            ids.append(category_id)

    legacy = None
    if legacy_category_id is not None and not (isinstance(legacy_category_id, str) and not legacy_category_id.strip()):
        legacy = parse_id(legacy_category_id, "category id")
        if legacy not in ids:
            ids.append(legacy)

    if not ids:
        return [], None
    if legacy is None:
        legacy = ids[0]
    return ids, legacy
