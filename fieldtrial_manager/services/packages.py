"""Frictionless Data package writer for studies."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Sequence

from fieldtrial_manager.services.interfaces import ArtifactWriter, Document, study_label

logger = logging.getLogger(__name__)

PACKAGE_FILENAME = "datapackage.json"
PLOTS_RESOURCE_NAME = "plots"

_STUDY_FIELDS = (
    "description",
    "trial",
    "location",
    "sowing_date",
    "harvest_date",
)


def sanitize_package_name(value: str) -> str:
    """Lowercase identifier usable as both a package name and a directory."""
    sanitized = re.sub(r"[^a-z0-9._-]+", "-", value.lower())
    sanitized = sanitized.strip("-")
    return sanitized or "study"


def _field_type(values: Sequence[Any]) -> str:
    present = [value for value in values if value is not None]
    if not present:
        return "string"
    if all(isinstance(value, bool) for value in present):
        return "boolean"
    if all(isinstance(value, int) and not isinstance(value, bool) for value in present):
        return "integer"
    if all(isinstance(value, (int, float)) and not isinstance(value, bool) for value in present):
        return "number"
    return "string"


def build_table_schema(rows: Sequence[Document]) -> Dict[str, Any]:
    """Infer a Table Schema from plot rows, keeping first-seen column order."""
    columns: List[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    fields = [
        {"name": column, "type": _field_type([row.get(column) for row in rows])}
        for column in columns
    ]
    return {"fields": fields}


def build_study_package(study: Document) -> Dict[str, Any]:
    identifier = str(study.get("id") or study_label(study))
    plots = [plot for plot in study.get("plots") or [] if isinstance(plot, dict)]
    package: Dict[str, Any] = {
        "profile": "tabular-data-package",
        "name": sanitize_package_name(identifier),
        "id": identifier,
        "title": study_label(study),
    }
    for key in _STUDY_FIELDS:
        if study.get(key) is not None:
            package[key] = study[key]
    package["resources"] = [
        {
            "name": PLOTS_RESOURCE_NAME,
            "profile": "tabular-data-resource",
            "data": plots,
            "schema": build_table_schema(plots),
        }
    ]
    return package


class FrictionlessPackageWriter(ArtifactWriter):
    """Write ``<root>/<study>/datapackage.json`` for each study."""

    def __init__(self, output_root: Path) -> None:
        self.output_root = Path(output_root)

    def package_path(self, study: Document) -> Path:
        identifier = str(study.get("id") or study_label(study))
        return self.output_root / sanitize_package_name(identifier) / PACKAGE_FILENAME

    def write_study_package(self, study: Document) -> bool:
        path = self.package_path(study)
        package = build_study_package(study)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(package, indent=2, default=str), encoding="utf-8")
        except OSError as exc:
            logger.error("Could not write data package %s: %s", path, exc)
            return False
        return True


__all__ = [
    "FrictionlessPackageWriter",
    "build_study_package",
    "build_table_schema",
    "sanitize_package_name",
]
