# Copyright (c) 2023 Christophe Dufaza <chris@openmarl.org>
#
# SPDX-License-Identifier: Apache-2.0

"""Base view for the rich console protocol.

Views are laid out on demand and printed with rich consoles,
e.g. Console().print(view).
"""


from typing import Tuple

from rich.console import RenderableType
from rich.padding import Padding
from rich.text import Text


class View:
    """Base of the device views, typically named ViewXXX.

    A view renders as an empty placeholder until a concrete view
    has something to show.
    """

    SUB = Text()
    """Placeholder renderable (empty Text)."""

    # Top and left margins, in number of lines and characters.
    _margins: Tuple[int, int]

    def __init__(self) -> None:
        """New view, without margins."""
        self._margins = (0, 0)

    @property
    def renderable(self) -> RenderableType:
        """What this view actually renders.

        Concrete views override this property.
        """
        return View.SUB

    def left_indent(self, spaces: int) -> None:
        """Set the left margin.

        Args:
            spaces: Number of characters.
        """
        self._margins = (self._margins[0], spaces)

    def top_indent(self, lines: int) -> None:
        """Set the top margin.

        Args:
            lines: Number of empty lines.
        """
        self._margins = (lines, self._margins[1])

    def __rich__(self) -> RenderableType:
        top, left = self._margins
        if top or left:
            return Padding(self.renderable, (top, 0, 0, left))
        return self.renderable
