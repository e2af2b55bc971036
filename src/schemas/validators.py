"""Shared validation functions for Pydantic schemas."""

# Matches the tags.name column size
MAX_TAG_NAME_LENGTH = 100


def validate_tag_name_length(name: str) -> str:
    """
    Check that a tag name fits once normalized (trimmed).

    Normalization itself (lowercasing, dedupe) is left to the tag service.

    Raises:
        ValueError: If the trimmed name is longer than MAX_TAG_NAME_LENGTH.
    """
    if len(name.strip()) > MAX_TAG_NAME_LENGTH:
        raise ValueError(
            f"Tag name exceeds maximum length of {MAX_TAG_NAME_LENGTH} characters",
        )
    return name


def validate_tag_names(tags: list[str] | None) -> list[str] | None:
    """Apply `validate_tag_name_length` to every tag in a request list."""
    if tags is None:
        return None
    return [validate_tag_name_length(tag) for tag in tags]
