# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release kind from pull-request labels.

A pull request requests a release by carrying exactly one label named
`release-major`, `release-minor` or `release-patch` (any case). CI passes the
PR's label list through as JSON. A release label wins over a manually chosen
release kind; with `require=True` a PR without one is rejected outright.
"""

import json
from typing import Optional, Sequence

from psforge.exceptions import PsforgeError
from psforge.manifest.version import BUMP_KINDS

LABEL_PREFIX = "release-"


class ReleaseLabelError(PsforgeError):
    """The labels don't name exactly one valid release kind."""


def _release_labels(labels: Sequence[str]) -> list[str]:
    return [label for label in labels if label.casefold().startswith(LABEL_PREFIX)]


def release_kind_from_labels(labels: Sequence[str], require: bool = False) -> Optional[str]:
    """
    Return the bump kind named by the single release label, or None.

    Raises:
        ReleaseLabelError: more than one release label, an unknown kind, or
            no release label at all when `require` is set.
    """
    release_labels = _release_labels(labels)
    if not release_labels:
        if require:
            raise ReleaseLabelError(
                "No release label found. Apply one of "
                + ", ".join(LABEL_PREFIX + kind for kind in reversed(BUMP_KINDS))
                + "."
            )
        return None
    if len(release_labels) > 1:
        raise ReleaseLabelError(
            f"Multiple release labels found: {', '.join(release_labels)}. "
            f"Remove {len(release_labels) - 1}."
        )
    kind = release_labels[0][len(LABEL_PREFIX) :].casefold()
    if kind not in BUMP_KINDS:
        raise ReleaseLabelError(
            f"Unknown release label '{release_labels[0]}'; "
            f"use one of {', '.join(LABEL_PREFIX + k for k in BUMP_KINDS)}"
        )
    return kind


def choose_release_kind(labels: Sequence[str], manual: Optional[str], require: bool = False) -> Optional[str]:
    """A release label, when present, overrides the manually chosen kind."""
    return release_kind_from_labels(labels, require=require) or manual


def parse_labels_json(text: str) -> list[str]:
    """Accept a JSON list of label names (or a single name, or null)."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as err:
        raise ReleaseLabelError(f"Release labels are not valid JSON: {err}") from err
    if data is None:
        return []
    if isinstance(data, str):
        return [data]
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise ReleaseLabelError("Release labels must be a JSON list of strings")
    return data
