# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""Catalogue of elements to quantify."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from pydantic import BaseModel, ConfigDict, Field


class ElementEntry(BaseModel):
    """
    One element to quantify.

    Note that the center of the emission line is given in keV while the width of
    the region around it is given in eV.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    name: str = Field(min_length=1, description="Element or line name, e.g. 'Fe'.")
    center_kev: float = Field(description="Center of the emission line in keV.")
    width_ev: float = Field(gt=0, description="Full width of the region in eV.")


class ElementSpec(Mapping[str, ElementEntry]):
    """Immutable mapping from element name to :py:class:`ElementEntry`."""

    def __init__(self, entries: Iterable[ElementEntry]) -> None:
        self._entries: dict[str, ElementEntry] = {}
        for entry in entries:
            if entry.name in self._entries:
                raise ValueError(f"Duplicate element name '{entry.name}'")
            self._entries[entry.name] = entry
        if not self._entries:
            raise ValueError("Element specification must not be empty")

    def __getitem__(self, name: str) -> ElementEntry:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ElementSpec({list(self._entries)})"
