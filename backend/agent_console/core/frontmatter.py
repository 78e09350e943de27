# Agent Console - YAML front-matter parsing for skill / agent markdown

import re
from typing import Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)


class FrontMatterError(ValueError):
    """Markdown lacks a usable front-matter block."""


class FrontMatter(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1, max_length=64)
    description: str = Field(..., min_length=1, max_length=200)


def split_front_matter(content: str) -> Tuple[dict, str]:
    """Return (metadata, body). Raises FrontMatterError when the block is missing or not a mapping."""
    match = FRONT_MATTER_RE.match(content)
    if not match:
        raise FrontMatterError("Markdown must start with YAML frontmatter (---\\n...\\n---)")

    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid YAML frontmatter: {e}") from e

    if not isinstance(data, dict):
        raise FrontMatterError("YAML frontmatter must be a mapping")

    return data, content[match.end():]


def parse_front_matter(content: str) -> FrontMatter:
    """Parse and validate the required name/description fields."""
    data, _ = split_front_matter(content)

    for field in ("name", "description"):
        value = data.get(field)
        if value is None or not str(value).strip():
            raise FrontMatterError(f'YAML frontmatter must include "{field}" field')
        data[field] = str(value).strip()

    try:
        return FrontMatter(**data)
    except ValidationError as e:
        error = e.errors()[0]
        field = error["loc"][0] if error["loc"] else "frontmatter"
        if error["type"] == "string_too_long":
            limit = error.get("ctx", {}).get("max_length")
            raise FrontMatterError(f"{str(field).capitalize()} must be {limit} characters or less") from e
        raise FrontMatterError(f"Invalid {field}: {error['msg']}") from e


def read_metadata(content: str, fallback_name: str) -> dict:
    """Lenient read for listings: never raises."""
    metadata = {"name": fallback_name, "description": ""}
    try:
        data, _ = split_front_matter(content)
    except FrontMatterError:
        return metadata
    if data.get("name"):
        metadata["name"] = str(data["name"]).strip()
    if data.get("description"):
        metadata["description"] = str(data["description"]).strip()
    return metadata


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9-]", "-", name.lower())
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")
