"""Branch name templating.

Templates use ``{{variable}}`` placeholders. Available variables:
``prefix``, ``entityType``, ``entityNumber``, ``timestamp``, ``year``,
``month``, ``day``, ``hour``, ``minute``, ``sha``, ``label`` and
``description``. Unknown placeholders are left as-is.
"""
import re
from datetime import datetime

MAX_BRANCH_NAME_LENGTH = 50

_NON_SLUG = re.compile(r"[^a-z0-9-]")
_DASHES = re.compile(r"-+")


def extract_description(title: str | None) -> str:
    """First three words of ``title`` in kebab-case."""
    if not title or not title.strip():
        return ""
    words = title.split()[:3]
    slug = _NON_SLUG.sub("", "-".join(words).lower())
    return _DASHES.sub("-", slug).strip("-")


def create_branch_template_variables(
    branch_prefix: str,
    entity_type: str,
    entity_number: int,
    sha: str | None = None,
    label: str | None = None,
    title: str | None = None,
    now: datetime | None = None,
) -> dict[str, str]:
    now = now or datetime.now()
    variables = {
        "prefix": branch_prefix,
        "entityType": entity_type,
        "entityNumber": str(entity_number),
        "timestamp": now.strftime("%Y%m%d-%H%M"),
        "year": now.strftime("%Y"),
        "month": now.strftime("%m"),
        "day": now.strftime("%d"),
        "hour": now.strftime("%H"),
        "minute": now.strftime("%M"),
        "label": label or entity_type,
    }
    if sha:
        variables["sha"] = sha[:8]
    if title is not None:
        variables["description"] = extract_description(title)
    return variables


def apply_branch_template(template: str, variables: dict[str, str]) -> str:
    result = template
    for key, value in variables.items():
        result = result.replace("{{" + key + "}}", value)
    return result


def generate_branch_name(
    template: str | None,
    branch_prefix: str,
    entity_type: str,
    entity_number: int,
    sha: str | None = None,
    label: str | None = None,
    title: str | None = None,
    now: datetime | None = None,
) -> str:
    """
    Build a working branch name.

    Falls back to ``<prefix><type>-<number>-<yyyymmdd-hhmm>`` without a
    template. The result is lowercased and cut to 50 characters.
    """
    variables = create_branch_template_variables(
        branch_prefix, entity_type, entity_number, sha, label, title, now
    )
    if template and template.strip():
        name = apply_branch_template(template, variables)
    else:
        name = f"{branch_prefix}{entity_type}-{entity_number}-{variables['timestamp']}"
    return name.lower()[:MAX_BRANCH_NAME_LENGTH]
